import threading
import time

import dotenv

from matrixflow_sdk import DataAnalysisRequest, RawClient, StreamError

dotenv.load_dotenv()

client = RawClient()

stream = client.data_asking.analyze_data_stream(
    DataAnalysisRequest(question="Analiza la evolución mensual de pedidos por región")
)

first = stream.read_event()
request_id = first.request_id if first else None
print("init:", first.text if first else None)


def _cancel_later() -> None:
    time.sleep(3)
    if request_id:
        res = client.data_asking.cancel_analyze(request_id)
        print("cancel:", res.status, res.user_name)


threading.Thread(target=_cancel_later).start()

try:
    for event in stream:
        print(event.type, event.step_name)
except StreamError as e:
    print("stream terminado:", e)
finally:
    stream.close()
    client.close()
