"""
Entry point of the library. ``RawClient`` holds the shared HTTP transport and
exposes one attribute per API area.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from matrixflow_sdk._auth import AuthConfig
from matrixflow_sdk._client import DEFAULT_USER_AGENT, HttpConfig, MatrixFlowHttpClient
from matrixflow_sdk._errors import EnvelopeDecodeError
from matrixflow_sdk._options import DEFAULT_HTTP_TIMEOUT_S, CallOptions, resolve_base_url
from matrixflow_sdk.catalog import Catalogs
from matrixflow_sdk.data_asking import DataAsking
from matrixflow_sdk.database import Databases
from matrixflow_sdk.nl2sql import Nl2Sql
from matrixflow_sdk.tables import Tables

HEALTH_PATH = "/healthz"


class HealthStatus(BaseModel):
    model_config = ConfigDict(extra="allow")
    status: str = ""


@dataclass(slots=True)
class RawClient:
    """
    Typed client of the catalog service.

    Args:
        api_key: Sent as ``moi-key``. Falls back to MATRIXFLOW_API_KEY.
        base_url: Service root, e.g. ``https://host:port``. Falls back to MATRIXFLOW_BASE_URL.
        timeout_s: Timeout of regular requests. Streams use a per-read idle timeout instead.
        user_agent: User-Agent header value; empty to omit it.
        default_headers: Sent on every request unless a per-call header overrides them.

    Example:
        with RawClient(api_key="...", base_url="https://catalog.example.com") as client:
            catalogs = client.catalogs.list()
    """
    api_key: str | None = field(default=None, repr=False)
    base_url: str | None = None
    timeout_s: float = DEFAULT_HTTP_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT
    default_headers: dict[str, str] = field(default_factory=dict)

    _http: MatrixFlowHttpClient = field(init=False, repr=False)
    catalogs: Catalogs = field(init=False, repr=False)
    databases: Databases = field(init=False, repr=False)
    tables: Tables = field(init=False, repr=False)
    nl2sql: Nl2Sql = field(init=False, repr=False)
    data_asking: DataAsking = field(init=False, repr=False)

    def __post_init__(self) -> None:
        auth = AuthConfig.from_env_or_value(self.api_key)
        self.base_url = resolve_base_url(self.base_url)
        if self.timeout_s <= 0:
            self.timeout_s = DEFAULT_HTTP_TIMEOUT_S

        self._http = MatrixFlowHttpClient(
            config=HttpConfig(
                base_url=self.base_url,
                timeout_s=self.timeout_s,
                user_agent=self.user_agent,
                default_headers=dict(self.default_headers),
            ),
            api_key=auth.api_key,
        )
        self.catalogs = Catalogs(self._http)
        self.databases = Databases(self._http)
        self.tables = Tables(self._http)
        self.nl2sql = Nl2Sql(self._http)
        self.data_asking = DataAsking(self._http)

    @staticmethod
    def _parse_health(payload: Any) -> HealthStatus:
        try:
            return HealthStatus.model_validate(payload)
        except ValidationError as e:
            raise EnvelopeDecodeError(f"decode health status: {e}") from e

    def health_check(self, options: CallOptions | None = None) -> HealthStatus:
        """GET /healthz. The answer is plain JSON, not an envelope."""
        resp = self._http.get(HEALTH_PATH, options)
        try:
            payload = resp.json()
        except ValueError as e:
            raise EnvelopeDecodeError(f"decode health status: {e}") from e
        return self._parse_health(payload)

    async def ahealth_check(self, options: CallOptions | None = None) -> HealthStatus:
        resp = await self._http.aget(HEALTH_PATH, options)
        try:
            payload = resp.json()
        except ValueError as e:
            raise EnvelopeDecodeError(f"decode health status: {e}") from e
        return self._parse_health(payload)

    def close(self) -> None:
        self._http.close()

    async def aclose(self) -> None:
        await self._http.aclose()

    def __enter__(self) -> RawClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    async def __aenter__(self) -> RawClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()
