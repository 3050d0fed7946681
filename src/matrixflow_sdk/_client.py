from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from matrixflow_sdk._auth import API_KEY_HEADER, AuthConfig
from matrixflow_sdk._errors import EnvelopeDecodeError, MatrixFlowAPIError, MatrixFlowHTTPError
from matrixflow_sdk._options import DEFAULT_HTTP_TIMEOUT_S, CallOptions

DEFAULT_USER_AGENT = "matrixflow-sdk-python/0.1.0"
MIME_JSON = "application/json"
MIME_EVENT_STREAM = "text/event-stream"

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class HttpConfig:
    base_url: str
    timeout_s: float = DEFAULT_HTTP_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT
    default_headers: dict[str, str] = field(default_factory=dict)


def _ensure_leading_slash(path: str) -> str:
    return path if path.startswith("/") else f"/{path}"


def _decode_envelope(resp: httpx.Response) -> Any:
    """
    Unwraps the ``{code, msg, data, request_id}`` envelope and returns ``data``.

    A code other than "" or "OK" raises MatrixFlowAPIError.
    """
    try:
        envelope = resp.json()
    except ValueError as e:
        raise EnvelopeDecodeError(f"decode response: {e}") from e

    if not isinstance(envelope, dict):
        raise EnvelopeDecodeError(f"decode response: expected an object, got {type(envelope).__name__}")

    code = envelope.get("code") or ""
    if code and code != "OK":
        request_id = envelope.get("request_id")
        raise MatrixFlowAPIError(
            code=str(code),
            message=str(envelope.get("msg") or ""),
            request_id=request_id if isinstance(request_id, str) and request_id else None,
            http_status=resp.status_code,
        )
    return envelope.get("data")


def parse_data(model: type[M], data: Any) -> M:
    """Validates an envelope ``data`` payload into ``model``; a null payload gives the model defaults."""
    try:
        return model.model_validate(data if data is not None else {})
    except ValidationError as e:
        raise EnvelopeDecodeError(f"decode data field: {e}") from e


class MatrixFlowHttpClient:
    """
    Wrapper HTTPX ligero con:
    - JSON envelope requests
    - Streaming responses (event streams, downloads) left open for the caller
    - Debug logging opcional
    """

    def __init__(self, *, config: HttpConfig, api_key: str) -> None:
        self._config = config
        self._auth = AuthConfig(api_key=api_key)
        self._debug_http = os.getenv("MATRIXFLOW_HTTP_DEBUG", "").lower() in {"1", "true", "yes", "on"}

        def _redact_headers(headers: dict[str, Any]) -> dict[str, Any]:
            out = dict(headers)
            for k in list(out):
                if k.lower() == API_KEY_HEADER:
                    out[k] = "***REDACTED***"
            return out

        def _log_request(request: httpx.Request) -> None:
            if not self._debug_http:
                return
            logging.warning("HTTPX REQUEST %s %s", request.method, request.url)
            logging.warning("HTTPX REQUEST headers=%s", _redact_headers(dict(request.headers)))
            if request.content:
                try:
                    logging.warning("HTTPX REQUEST body=%s", request.content.decode("utf-8", "ignore"))
                except Exception:
                    logging.warning("HTTPX REQUEST body=(binary) len=%s", len(request.content))

        def _log_response_head(response: httpx.Response) -> bool:
            """Logs status and headers; True when the body is safe to auto-log."""
            req = response.request
            logging.warning("HTTPX RESPONSE %s %s -> %s", req.method, req.url, response.status_code)
            logging.warning("HTTPX RESPONSE headers=%s", dict(response.headers))

            ctype = response.headers.get("content-type", "")
            if MIME_EVENT_STREAM in ctype:
                logging.warning("HTTPX RESPONSE body=(event-stream; not auto-logged)")
                return False
            if MIME_JSON not in ctype:
                logging.warning("HTTPX RESPONSE body=(%s; not auto-logged)", ctype or "unknown")
                return False
            return True

        def _log_response_sync(response: httpx.Response) -> None:
            if not self._debug_http or not _log_response_head(response):
                return
            try:
                response.read()
                logging.warning("HTTPX RESPONSE body=%s", response.text)
            except Exception as e:
                logging.warning("HTTPX RESPONSE body=(unreadable) err=%r", e)

        async def _log_request_async(request: httpx.Request) -> None:
            _log_request(request)

        async def _log_response_async(response: httpx.Response) -> None:
            if not self._debug_http or not _log_response_head(response):
                return
            try:
                await response.aread()
                logging.warning("HTTPX RESPONSE body=%s", response.text)
            except Exception as e:
                logging.warning("HTTPX RESPONSE body=(unreadable) err=%r", e)

        EventHooksDict = dict[str, list[Callable[..., Any]]]

        hooks_sync: EventHooksDict = {"request": [_log_request], "response": [_log_response_sync]}
        hooks_async: EventHooksDict = {"request": [_log_request_async], "response": [_log_response_async]}

        self._client = httpx.Client(timeout=httpx.Timeout(config.timeout_s), event_hooks=hooks_sync)
        self._aclient = httpx.AsyncClient(timeout=httpx.Timeout(config.timeout_s), event_hooks=hooks_async)

    @property
    def config(self) -> HttpConfig:
        return self._config

    def close(self) -> None:
        self._client.close()

    async def aclose(self) -> None:
        await self._aclient.aclose()

    def _url(self, path: str) -> str:
        if not path:
            raise ValueError("request path cannot be empty")
        return f"{self._config.base_url}{_ensure_leading_slash(path)}"

    def _headers(
        self,
        options: CallOptions | None = None,
        *,
        accept: str | None = None,
        content_type: str | None = None,
    ) -> httpx.Headers:
        headers = httpx.Headers(self._auth.headers())
        if self._config.user_agent:
            headers["User-Agent"] = self._config.user_agent
        for k, v in self._config.default_headers.items():
            if k not in headers:
                headers[k] = v
        if options is not None:
            if options.request_id:
                headers["X-Request-ID"] = options.request_id
            for k, v in options.headers.items():
                headers[k] = v
        if accept:
            headers["Accept"] = accept
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def _build_request(
        self,
        client: httpx.Client | httpx.AsyncClient,
        method: str,
        path: str,
        payload: dict[str, Any] | None,
        options: CallOptions | None,
        *,
        accept: str | None,
        stream: bool = False,
    ) -> httpx.Request:
        kwargs: dict[str, Any] = {
            "headers": self._headers(
                options,
                accept=accept,
                content_type=MIME_JSON if payload is not None else None,
            ),
            "params": (options.query or None) if options is not None else None,
        }
        if payload is not None:
            kwargs["json"] = payload
        if stream:
            # Streamed bodies are bounded by the stream idle timeout, not by httpx.
            kwargs["timeout"] = httpx.Timeout(self._config.timeout_s, read=None)
        return client.build_request(method, self._url(path), **kwargs)

    @staticmethod
    def raise_for_status(resp: httpx.Response) -> None:
        """Verifica status y levanta MatrixFlowHTTPError con el body."""
        if 200 <= resp.status_code < 300:
            return

        body_text: str | None = None
        try:
            body_text = resp.text
        except Exception:
            body_text = None

        raise MatrixFlowHTTPError(status_code=resp.status_code, body=body_text or None)

    def request_json(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        options: CallOptions | None = None,
    ) -> Any:
        req = self._build_request(self._client, method, path, payload, options, accept=MIME_JSON)
        resp = self._client.send(req)
        self.raise_for_status(resp)
        return _decode_envelope(resp)

    async def arequest_json(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        options: CallOptions | None = None,
    ) -> Any:
        req = self._build_request(self._aclient, method, path, payload, options, accept=MIME_JSON)
        resp = await self._aclient.send(req)
        self.raise_for_status(resp)
        return _decode_envelope(resp)

    def post_json(self, path: str, payload: dict[str, Any] | None, options: CallOptions | None = None) -> Any:
        return self.request_json("POST", path, payload, options)

    async def apost_json(
        self, path: str, payload: dict[str, Any] | None, options: CallOptions | None = None
    ) -> Any:
        return await self.arequest_json("POST", path, payload, options)

    def get_json(self, path: str, options: CallOptions | None = None) -> Any:
        return self.request_json("GET", path, None, options)

    async def aget_json(self, path: str, options: CallOptions | None = None) -> Any:
        return await self.arequest_json("GET", path, None, options)

    def get(self, path: str, options: CallOptions | None = None) -> httpx.Response:
        """Plain GET without envelope decoding."""
        req = self._build_request(self._client, "GET", path, None, options, accept=None)
        resp = self._client.send(req)
        self.raise_for_status(resp)
        return resp

    async def aget(self, path: str, options: CallOptions | None = None) -> httpx.Response:
        req = self._build_request(self._aclient, "GET", path, None, options, accept=None)
        resp = await self._aclient.send(req)
        self.raise_for_status(resp)
        return resp

    def open_stream(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        options: CallOptions | None = None,
        *,
        accept: str | None = None,
    ) -> httpx.Response:
        """
        Sends the request and returns the response with its body still unread.

        The caller owns the response and must close it. On a non-2xx status the
        body is read, the response closed and MatrixFlowHTTPError raised.
        """
        req = self._build_request(self._client, method, path, payload, options, accept=accept, stream=True)
        resp = self._client.send(req, stream=True)
        if not 200 <= resp.status_code < 300:
            try:
                resp.read()
            finally:
                resp.close()
            self.raise_for_status(resp)
        return resp

    async def aopen_stream(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        options: CallOptions | None = None,
        *,
        accept: str | None = None,
    ) -> httpx.Response:
        req = self._build_request(self._aclient, method, path, payload, options, accept=accept, stream=True)
        resp = await self._aclient.send(req, stream=True)
        if not 200 <= resp.status_code < 300:
            try:
                await resp.aread()
            finally:
                await resp.aclose()
            self.raise_for_status(resp)
        return resp


def to_payload(model: BaseModel) -> dict[str, Any]:
    """JSON body of a request model; unset optional fields are omitted."""
    return model.model_dump(mode="json", exclude_none=True)
