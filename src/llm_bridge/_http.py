"""HTTP client wrapper around httpx."""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from llm_bridge.errors import (
    NetworkError,
    ProviderError,
    RequestTimeoutError,
    error_from_status_code,
)
from llm_bridge.types.config import AdapterTimeout


@dataclass(frozen=True)
class HttpResponse:
    """Parsed HTTP response."""

    status_code: int
    body: Any
    headers: dict[str, str]
    raw_text: str = ""


def _error_message(body: Any, raw_text: str) -> str:
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if body.get("message"):
            return str(body["message"])
    return raw_text or "empty response body"


def _retry_after(headers: httpx.Headers) -> float | None:
    value = headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _json_or_empty(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {}


class HttpClient:
    """Thin wrapper around :mod:`httpx` that maps failures into llm_bridge errors.

    *transport* is passed through to :class:`httpx.Client`; tests use it to
    install an :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        base_url: str = "",
        headers: Mapping[str, str] | None = None,
        timeout: AdapterTimeout | None = None,
        *,
        provider: str = "",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        t = timeout or AdapterTimeout()
        self.provider = provider
        self._timeout = t
        self._client = httpx.Client(
            base_url=base_url,
            headers=dict(headers or {}),
            timeout=httpx.Timeout(
                connect=t.connect,
                read=t.request,
                write=t.request,
                pool=t.connect,
            ),
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    # ------------------------------------------------------------------
    # Buffered requests
    # ------------------------------------------------------------------

    def post_json(
        self,
        path: str,
        json: Any,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        """POST a JSON body and return the parsed response.

        Raises an llm_bridge error on non-2xx status or transport failure.
        """
        return self._request("POST", path, json=json, headers=headers, params=params)

    def post_form(
        self,
        path: str,
        data: Mapping[str, str],
        *,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        """POST a form-encoded body (OAuth token endpoints)."""
        return self._request("POST", path, data=data, headers=headers)

    def get_json(
        self,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        return self._request("GET", path, headers=headers, params=params)

    def _request(self, method: str, path: str, **kwargs: Any) -> HttpResponse:
        kwargs["headers"] = dict(kwargs.get("headers") or {})
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(f"{method} {path} timed out: {exc}", cause=exc) from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"{method} {path} failed: {exc}", cause=exc) from exc

        if resp.status_code >= 300:
            raise self._status_error(resp, _json_or_empty(resp), resp.text)

        return HttpResponse(
            status_code=resp.status_code,
            body=_json_or_empty(resp),
            headers=dict(resp.headers),
            raw_text=resp.text,
        )

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def open_stream(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Send a request and return the still-open streaming response.

        The caller owns the response and must close it. A non-2xx status is
        read, closed and raised before this returns.
        """
        t = self._timeout
        request = self._client.build_request(
            method,
            path,
            json=json,
            headers=dict(headers or {}),
            params=params,
            timeout=httpx.Timeout(
                connect=t.connect,
                read=t.stream_read,
                write=t.request,
                pool=t.connect,
            ),
        )
        try:
            resp = self._client.send(request, stream=True)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(f"{method} {path} timed out: {exc}", cause=exc) from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"{method} {path} failed: {exc}", cause=exc) from exc

        if resp.status_code >= 300:
            try:
                raw_text = resp.read().decode("utf-8", errors="replace")
            finally:
                resp.close()
            raise self._status_error(resp, _json_or_empty(resp), raw_text)
        return resp

    def iter_lines(self, response: httpx.Response) -> Iterator[str]:
        """Yield text lines from an open streaming response."""
        try:
            yield from response.iter_lines()
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(f"Stream read timed out: {exc}", cause=exc) from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"Stream interrupted: {exc}", cause=exc) from exc

    # ------------------------------------------------------------------

    def _status_error(self, resp: httpx.Response, body: Any, raw_text: str) -> ProviderError:
        error_code = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            code = body["error"].get("code") or body["error"].get("status")
            error_code = str(code) if code is not None else None
        return error_from_status_code(
            resp.status_code,
            _error_message(body, raw_text),
            provider=self.provider,
            error_code=error_code,
            raw=body,
            retry_after=_retry_after(resp.headers),
        )

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()
