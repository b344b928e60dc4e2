"""Generic HTTP adapter used by the call controller.

One request per call, a fixed 60 second timeout, and no retries. Failures
never escape as exceptions: every outcome is an ``APIResult`` carrying
either a decoded body or an ``APIError``.
"""
from __future__ import annotations

import asyncio
import enum
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Union
from urllib.parse import quote

import httpx

REQUEST_TIMEOUT_SECONDS = 60.0
DEFAULT_HEADERS: dict[str, str] = {"Accept": "*/*", "User-Agent": "video-client/0.1"}

logger = logging.getLogger(__name__)


class ResponseEncoding(str, enum.Enum):
    """How a successful response body should be decoded."""

    HTML = "html"
    JSON = "json"
    DATA = "data"


@dataclass(frozen=True, slots=True)
class JsonBody:
    value: Any


@dataclass(frozen=True, slots=True)
class BytesBody:
    data: bytes


@dataclass(frozen=True, slots=True)
class TextBody:
    text: str


ResponseBody = Union[JsonBody, BytesBody, TextBody]


class APIError(Exception):
    """Base for every failure the adapter reports."""

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(message)


class TransportError(APIError):
    """The request never produced an HTTP response."""

    def __init__(self, exc: httpx.TransportError) -> None:
        super().__init__(str(exc))
        self.__cause__ = exc


class HTTPStatusError(APIError):
    """The server answered with a status of 300 or above."""

    def __init__(self, status_code: int, message: str = "", body: bytes = b"") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DecodeError(APIError):
    """A successful response whose body did not match the expected encoding."""


@dataclass(frozen=True, slots=True)
class APIResult:
    body: ResponseBody | None = None
    error: APIError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def value(self) -> Any:
        """The unwrapped body: parsed JSON, bytes or text."""

        if isinstance(self.body, JsonBody):
            return self.body.value
        if isinstance(self.body, BytesBody):
            return self.body.data
        if isinstance(self.body, TextBody):
            return self.body.text
        return None


CompletionCallback = Callable[[Any, "APIError | None"], None]


def build_query_string(parameters: Mapping[str, str] | None) -> str:
    """Percent-encode ``parameters`` into ``k=v&k=v`` in insertion order."""

    if not parameters:
        return ""
    pairs = []
    for key, value in parameters.items():
        if value is None:
            continue
        pairs.append(f"{quote(str(key), safe='')}={quote(str(value), safe='')}")
    return "&".join(pairs)


def _error_field(raw: bytes | str) -> str | None:
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"]
    return None


class APIClient:
    """Build, send and classify HTTP requests."""

    def __init__(
        self,
        *,
        default_headers: Mapping[str, str] | None = None,
        expected_encoding: ResponseEncoding = ResponseEncoding.HTML,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.default_headers = dict(DEFAULT_HEADERS if default_headers is None else default_headers)
        self.expected_encoding = expected_encoding
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(REQUEST_TIMEOUT_SECONDS),
            transport=transport,
        )

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def build_request(
        self,
        method: str,
        url: str,
        query: Mapping[str, str] | None = None,
        body: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Request:
        query_string = build_query_string(query)
        if query_string:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}{query_string}"

        merged = dict(self.default_headers)
        if headers:
            merged.update(headers)

        content = body.encode("utf-8") if body is not None else None
        return self._client.build_request(method.upper(), url, headers=merged, content=content)

    async def perform(
        self,
        method: str,
        url: str,
        query: Mapping[str, str] | None = None,
        body: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> APIResult:
        try:
            request = self.build_request(method, url, query, body, headers)
        except (httpx.InvalidURL, UnicodeEncodeError, ValueError) as exc:
            logger.warning("Could not build request for %s: %s", url, exc)
            return APIResult(error=APIError(str(exc)))

        logger.debug("%s: %s", request.method, request.url)
        logger.debug("query: %s", dict(query or {}))
        logger.debug("body: %s", body or "")
        logger.debug("header: %s", dict(request.headers))

        try:
            response = await asyncio.wait_for(self._client.send(request), REQUEST_TIMEOUT_SECONDS)
        except httpx.TransportError as exc:
            logger.warning("Connect error: %s", exc)
            return APIResult(error=TransportError(exc))
        except httpx.RequestError as exc:
            logger.warning("Request failed: %s", exc)
            return APIResult(error=APIError(str(exc)))
        except asyncio.TimeoutError:
            logger.warning("Request to %s exceeded %ss", request.url, REQUEST_TIMEOUT_SECONDS)
            return APIResult(error=APIError(f"request timed out after {REQUEST_TIMEOUT_SECONDS:g} seconds"))

        return self.classify(response)

    def dispatch(
        self,
        method: str,
        url: str,
        completion: CompletionCallback,
        query: Mapping[str, str] | None = None,
        body: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> asyncio.Task[APIResult]:
        """Schedule ``perform`` and call ``completion(value, error)`` once it settles.

        The callback runs on the event loop that called ``dispatch``.
        """

        task = asyncio.get_running_loop().create_task(self.perform(method, url, query, body, headers))

        def _done(finished: asyncio.Task[APIResult]) -> None:
            if finished.cancelled():
                completion(None, APIError("request cancelled"))
                return
            try:
                result = finished.result()
            except Exception as exc:  # noqa: BLE001
                logger.error("Request task failed: %s", exc)
                completion(None, APIError(str(exc)))
                return
            completion(result.value if result.ok else None, result.error)

        task.add_done_callback(_done)
        return task

    def classify(self, response: httpx.Response) -> APIResult:
        if response.status_code >= 300:
            logger.info("Error status code: %s", response.status_code)
            return APIResult(
                error=HTTPStatusError(response.status_code, self._error_message(response), response.content)
            )

        data = response.content
        try:
            body = self._decode(data)
        except (UnicodeDecodeError, ValueError) as exc:
            logger.warning("Return data could not be parsed: %r", data[:200])
            return APIResult(error=DecodeError(str(exc)))
        return APIResult(body=body)

    def _error_message(self, response: httpx.Response) -> str:
        data = response.content
        if not data:
            return ""
        if self.expected_encoding is ResponseEncoding.HTML:
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError:
                return ""
            return _error_field(text) or ""
        return _error_field(data) or ""

    def _decode(self, data: bytes) -> ResponseBody:
        if self.expected_encoding is ResponseEncoding.JSON:
            return JsonBody(json.loads(data))
        if self.expected_encoding is ResponseEncoding.DATA:
            return BytesBody(data)
        return TextBody(data.decode("utf-8"))
