import os
import json
import httpx
import dotenv

from matrixflow_sdk import iter_sse_events_from_bytes

dotenv.load_dotenv()

url = os.environ["MATRIXFLOW_BASE_URL"].rstrip("/") + "/byoa/api/v1/data_asking/analyze"
api_key = os.environ["MATRIXFLOW_API_KEY"]

payload = {"question": "Responde solo con: OK"}

headers = {
    "moi-key": api_key,
    "Content-Type": "application/json",
    "Accept": "text/event-stream",
    "Cache-Control": "no-cache",
}

captured = bytearray()

with httpx.Client(timeout=httpx.Timeout(30.0, read=None)) as client:
    with client.stream("POST", url, headers=headers, json=payload) as r:
        print("status:", r.status_code)
        print("headers:", dict(r.headers))
        for i, line in enumerate(r.iter_lines()):
            print(i, repr(line))
            captured += line.encode("utf-8") + b"\n"
            if line.startswith("data: "):
                try:
                    print("   json:", json.dumps(json.loads(line[6:]), ensure_ascii=False)[:300])
                except json.JSONDecodeError:
                    print("   (no json)")

# El mismo body, decodificado por el parser de la librería.
print("--- decoded events ---")
for event in iter_sse_events_from_bytes(bytes(captured)):
    print(repr(event.event), event.type, event.raw_data[:120])
