import dotenv

from matrixflow_sdk import RawClient

dotenv.load_dotenv()

with RawClient() as client:
    print("health:", client.health_check().status)

    for cat in client.catalogs.list().list:
        print(f"{cat.id:>6}  {cat.name:<30} dbs={cat.database_count} tables={cat.table_count}")
        for db in client.databases.list(cat.id).list:
            print(f"        - {db.name} ({db.table_count} tables)")
