"""Generic fetch-and-decode primitive over HTTP.

Callers pick the response shape explicitly: ``DecodeAs(model)`` validates the JSON
body into ``model`` with pydantic, ``RAW_BYTES`` returns the body untouched.
"""

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Generic, TypeVar, overload

import httpx
from pydantic import TypeAdapter, ValidationError

from weather_lookup.exceptions import (
    BadURLException,
    DecodeException,
    RequestFailedException,
    ServerErrorException,
    UnknownNetworkException,
)
from weather_lookup.logging_config import get_logger, log_with_context
from weather_lookup.redaction import redact_sensitive_data

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class DecodeAs(Generic[T]):
    """Decode the JSON body into ``target`` (a model class or a type like ``list[Model]``)."""

    target: Any

    @cached_property
    def adapter(self) -> TypeAdapter:
        return TypeAdapter(self.target)

    def decode(self, content: bytes) -> T:
        return self.adapter.validate_json(content)


class RawBytes:
    """Return the body bytes without decoding."""

    def __repr__(self) -> str:
        return "RAW_BYTES"


RAW_BYTES = RawBytes()


def resolve_url(url: str | httpx.URL | None) -> httpx.URL:
    """Parse ``url`` into an absolute http(s) URL.

    Raises:
        BadURLException: If the URL is absent, malformed, or not absolute http(s)
    """
    if url is None or (isinstance(url, str) and not url.strip()):
        raise BadURLException()
    try:
        resolved = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        raise BadURLException(details={"error": str(e)}) from e
    if resolved.scheme not in ("http", "https") or not resolved.host:
        raise BadURLException(details={"url": redact_sensitive_data(str(resolved))})
    return resolved


class FetchClient:
    """Stateless GET-and-decode over a shared ``httpx.AsyncClient``.

    Each call makes exactly one request; nothing is retried.
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self._client = http_client

    @overload
    async def fetch(self, url: str | httpx.URL | None, mode: DecodeAs[T]) -> T: ...

    @overload
    async def fetch(self, url: str | httpx.URL | None, mode: RawBytes) -> bytes: ...

    async def fetch(self, url, mode):
        """Fetch ``url`` and return the body in the requested shape.

        Args:
            url: Absolute request URL, possibly None
            mode: ``DecodeAs(target)`` or ``RAW_BYTES``

        Returns:
            Decoded value or raw body bytes

        Raises:
            BadURLException: URL missing or invalid, no request made
            RequestFailedException: Transport failure (DNS, connect, timeout)
            ServerErrorException: Status outside 200-299
            DecodeException: Body is not valid JSON for the target shape
            UnknownNetworkException: Any other HTTP client failure
        """
        resolved = resolve_url(url)
        redacted_url = redact_sensitive_data(str(resolved))

        try:
            response = await self._client.get(resolved)
        except httpx.TransportError as e:
            log_with_context(
                logger,
                "warning",
                "Request failed",
                url=redacted_url,
                error=str(e),
                error_type=type(e).__name__,
                event_type="fetch_transport_error",
            )
            raise RequestFailedException(details={"error_type": type(e).__name__}) from e
        except httpx.HTTPError as e:
            log_with_context(
                logger,
                "error",
                "Unexpected HTTP client error",
                url=redacted_url,
                error=str(e),
                event_type="fetch_unknown_error",
            )
            raise UnknownNetworkException(details={"error_type": type(e).__name__}) from e

        if not response.is_success:
            log_with_context(
                logger,
                "warning",
                "Server returned error status",
                url=redacted_url,
                status_code=response.status_code,
                event_type="fetch_server_error",
            )
            raise ServerErrorException(response.status_code, details={"body": response.text[:200]})

        if isinstance(mode, RawBytes):
            return response.content

        try:
            return mode.decode(response.content)
        except ValidationError as e:
            log_with_context(
                logger,
                "warning",
                "Failed to decode response",
                url=redacted_url,
                target=repr(mode.target),
                error_count=e.error_count(),
                event_type="fetch_decode_error",
            )
            raise DecodeException(e) from e
