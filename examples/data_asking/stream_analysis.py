import dotenv

from matrixflow_sdk import CallOptions, DataAnalysisRequest, RawClient, StreamReadTimeoutError

dotenv.load_dotenv()

client = RawClient()

req = DataAnalysisRequest(question="¿Cuáles fueron las ventas totales del último trimestre?")

# Hasta 2 minutos de silencio entre fragmentos (p.e., pasos de NL2SQL lentos)
opts = CallOptions(stream_read_timeout_s=120)

with client.data_asking.analyze_data_stream(req, opts) as stream:
    try:
        for event in stream:
            if event.type == "init":
                print("request_id:", event.request_id)
            elif event.step_name:
                print(f"[{event.step_type}] {event.step_name}")
            else:
                print(event.type or "(sin tipo)", event.text[:200])
    except StreamReadTimeoutError as e:
        print("El servidor dejó de responder:", e)

client.close()
