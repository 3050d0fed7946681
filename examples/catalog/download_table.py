import sys

import dotenv

from matrixflow_sdk import RawClient

dotenv.load_dotenv()

table_id = int(sys.argv[1]) if len(sys.argv) > 1 else 1

with RawClient() as client:
    stream = client.catalogs.download_table_data(table_id)
    written = stream.write_to_file(f"downloads/table_{table_id}.csv")
    print("bytes:", written)
