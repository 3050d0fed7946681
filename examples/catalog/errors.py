from matrixflow_sdk import MatrixFlowAPIError, MatrixFlowHTTPError, RawClient

try:
    client = RawClient(api_key="anyway", base_url="https://catalog.example.com")
    print(client.catalogs.info(123))
except MatrixFlowHTTPError as e:
    if e.is_auth_error:
        print("Check your MATRIXFLOW_API_KEY.")
    elif e.is_server_error:
        print(f"Server error {e.status_code}, consider retrying.")
    else:
        print(e.to_dict())
except MatrixFlowAPIError as e:
    print(f"Service rejected the call: {e.code} {e.message} (request_id={e.request_id})")
