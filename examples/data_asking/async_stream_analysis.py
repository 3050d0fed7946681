import asyncio

import dotenv

from matrixflow_sdk import DataAnalysisRequest, RawClient

dotenv.load_dotenv()


async def main() -> None:
    async with RawClient() as client:
        stream = await client.data_asking.aanalyze_data_stream(
            DataAnalysisRequest(question="Top 5 clientes por facturación")
        )
        async with stream:
            async for event in stream:
                print(event.type, event.source, event.step_name)


asyncio.run(main())
