import dotenv

from matrixflow_sdk import CallOptions, DataAnalysisRequest, RawClient

dotenv.load_dotenv()

client = RawClient()

opts = CallOptions(stream_buffer_size=64, stream_read_timeout_s=30)
with client.data_asking.analyze_data_stream(DataAnalysisRequest(question="Di: hola"), opts) as stream:
    print("status=", stream.status_code, "content-type=", stream.headers.get("content-type"))
    for i, event in enumerate(stream):
        print("i=", i, "event=", repr(event.event), "type=", event.type)
        print("raw=", event.raw_data[:300])
        if event.fields is None:
            print("(payload no JSON)")
        if i >= 30:
            break

client.close()
