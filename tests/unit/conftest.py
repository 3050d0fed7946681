from typing import Callable

import pytest

from matrixflow_sdk import RawClient
from mock_service import Handler, use_transport


@pytest.fixture
def make_raw_client() -> Callable[..., RawClient]:
    def _make(handler: Handler, **kwargs) -> RawClient:
        kwargs.setdefault("api_key", "secret-key")
        kwargs.setdefault("base_url", "https://example.com")
        return use_transport(RawClient(**kwargs), handler)

    return _make
