"""Transport - Performs the single HTTP call behind a PillowRequest.

HttpTransport sends one request through httpx and folds every way that can
end into a TransportOutcome:

- DELIVERED: a response came back, whatever its status code.
- NETWORK_FAILURE: httpx could not complete the exchange (connection refused,
  timeout, protocol error). An envelope is still produced, carrying the
  message in response_error.
- INTERNAL_FAILURE: anything else went wrong while preparing or sending
  (invalid URL, unserializable body, bad TLS settings). The exception is
  returned and there is no envelope.

perform() never raises.
"""

from __future__ import annotations

import json
import logging
import ssl
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import httpx

from pillow_request.models import ResponseEnvelope, TransportConfig

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised inside the transport for invalid settings; surfaces as INTERNAL_FAILURE."""


class OutcomeKind(str, Enum):
    """How a transport call ended."""

    DELIVERED = "delivered"
    NETWORK_FAILURE = "network_failure"
    INTERNAL_FAILURE = "internal_failure"


@dataclass(frozen=True)
class TransportOutcome:
    """Terminal result of one transport call.

    DELIVERED and NETWORK_FAILURE carry an envelope; INTERNAL_FAILURE carries
    the exception instead.
    """

    kind: OutcomeKind
    envelope: ResponseEnvelope | None = None
    error: BaseException | None = None

    @classmethod
    def delivered(cls, envelope: ResponseEnvelope) -> "TransportOutcome":
        return cls(OutcomeKind.DELIVERED, envelope=envelope)

    @classmethod
    def network_failure(cls, envelope: ResponseEnvelope) -> "TransportOutcome":
        return cls(OutcomeKind.NETWORK_FAILURE, envelope=envelope)

    @classmethod
    def internal_failure(cls, error: BaseException) -> "TransportOutcome":
        return cls(OutcomeKind.INTERNAL_FAILURE, error=error)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.DELIVERED


class Transport(Protocol):
    """Anything that can perform the HTTP call for a PillowRequest."""

    async def perform(
        self,
        method: str,
        full_url: str,
        options: dict[str, Any],
        body: Any = None,
        use_https: bool = False,
    ) -> TransportOutcome: ...


def _sanitize_header_value(value: str) -> str:
    """Replace non-ASCII characters with '?' (RFC 7230 allows only ASCII)."""
    return value.encode("ascii", errors="replace").decode("ascii")


def _apply_protocol(url: str, use_https: bool) -> str:
    """Force the URL scheme to https/http, prepending it to schemeless URLs."""
    scheme = "https" if use_https else "http"
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        # e.g. "localhost:8080/items" is rejected as an absolute URL
        return f"{scheme}://{url}"
    if parsed.scheme and parsed.host:
        return str(parsed.copy_with(scheme=scheme))
    return f"{scheme}://{url}"


def _default_content_type(body: Any) -> str:
    if isinstance(body, (str, bytes)):
        return "text/plain"
    return "application/json"


def _encode_body(body: Any) -> bytes | None:
    """Strings and bytes are sent as-is, anything else as JSON."""
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body).encode("utf-8")


class HttpTransport:
    """httpx-backed Transport.

    One AsyncClient is opened per request; there is no pooling or retry.

    Usage:
        transport = HttpTransport(TransportConfig(verify_ssl=False))
        outcome = await transport.perform("GET", "https://example.com", {"headers": {}})
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: TLS, redirect and timeout settings.
            http_transport: Optional httpx transport (e.g. httpx.MockTransport)
                            handed to the AsyncClient.
        """
        self._config = config or TransportConfig()
        self._http_transport = http_transport

    @property
    def config(self) -> TransportConfig:
        return self._config

    def _build_ssl_context(self) -> ssl.SSLContext | bool:
        """Build the `verify` argument for httpx from the TLS settings."""
        config = self._config
        if not (config.ca_bundle or config.cert or config.ciphers):
            return config.verify_ssl

        ssl_context = ssl.create_default_context(cafile=config.ca_bundle)
        if not config.verify_ssl:
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE

        # Client certificate (mTLS)
        if config.cert and config.key:
            ssl_context.load_cert_chain(config.cert, config.key, config.key_password)

        if config.ciphers:
            try:
                ssl_context.set_ciphers(config.ciphers)
            except ssl.SSLError as e:
                raise TransportError(f"Invalid cipher string '{config.ciphers}': {e}") from e

        return ssl_context

    def _build_client_kwargs(self, timeout: float) -> dict[str, Any]:
        """Build kwargs for httpx.AsyncClient.

        Args:
            timeout: Timeout in seconds.
        """
        kwargs: dict[str, Any] = {
            "timeout": timeout,
            "follow_redirects": self._config.follow_redirects,
            "verify": self._build_ssl_context(),
        }
        if self._http_transport is not None:
            kwargs["transport"] = self._http_transport
        return kwargs

    def _get_timeout(self, options: dict[str, Any]) -> float:
        """Timeout in seconds; options["timeout"] is in milliseconds."""
        timeout_ms = options.get("timeout")
        if isinstance(timeout_ms, (int, float)) and not isinstance(timeout_ms, bool) and timeout_ms > 0:
            return timeout_ms / 1000
        return self._config.default_timeout_ms / 1000

    async def perform(
        self,
        method: str,
        full_url: str,
        options: dict[str, Any],
        body: Any = None,
        use_https: bool = False,
    ) -> TransportOutcome:
        """Send one request.

        Args:
            method: HTTP method.
            full_url: URL including the query string.
            options: {"headers": {name: value}, "timeout": milliseconds}.
            body: Request body (str, bytes, or a JSON-serializable value).
            use_https: Scheme to use for the request.

        Returns:
            TransportOutcome; see the module docstring for the three kinds.
        """
        start_time = time.perf_counter()
        url = full_url
        try:
            if not isinstance(method, str) or not method:
                raise TransportError("No HTTP method set")
            url = _apply_protocol(full_url, use_https)

            headers: dict[str, str] = {
                key.lower(): _sanitize_header_value(value)
                for key, value in (options.get("headers") or {}).items()
            }
            content = _encode_body(body)
            if content is not None and "content-type" not in headers:
                headers["content-type"] = _default_content_type(body)

            timeout = self._get_timeout(options)
            logger.debug("Sending %s %s", method.upper(), url)

            async with httpx.AsyncClient(**self._build_client_kwargs(timeout)) as client:
                response = await client.request(
                    method=method.upper(),
                    url=url,
                    headers=headers,
                    content=content,
                )
                # Body is read before the client closes
                elapsed_ms = (time.perf_counter() - start_time) * 1000
                envelope = self._convert_response(url, response, elapsed_ms)

        except httpx.TimeoutException as e:
            return self._network_failure(url, f"Request timeout: {e}", start_time)
        except httpx.ConnectError as e:
            return self._network_failure(url, f"Connection error: {e}", start_time)
        except httpx.RequestError as e:
            return self._network_failure(url, f"Request error: {e}", start_time)
        except Exception as e:
            logger.warning("Request to %s could not be sent: %s", url, e)
            return TransportOutcome.internal_failure(e)

        logger.debug(
            "Received %s from %s in %.1fms",
            envelope.response_status_code,
            url,
            envelope.elapsed_time,
        )
        return TransportOutcome.delivered(envelope)

    def _network_failure(self, url: str, message: str, start_time: float) -> TransportOutcome:
        logger.warning("Request to %s failed: %s", url, message)
        return TransportOutcome.network_failure(
            ResponseEnvelope(
                request_url=url,
                response_error=message,
                elapsed_time=(time.perf_counter() - start_time) * 1000,
            )
        )

    def _convert_response(
        self,
        url: str,
        response: httpx.Response,
        elapsed_ms: float,
    ) -> ResponseEnvelope:
        """Convert an httpx Response to a ResponseEnvelope."""
        grouped: dict[str, list[str]] = {}
        for key, value in response.headers.multi_items():
            grouped.setdefault(key.lower(), []).append(value)

        # set-cookie stays a list so each cookie can be parsed separately
        headers: dict[str, str | list[str]] = {
            key: values if key == "set-cookie" else ", ".join(values)
            for key, values in grouped.items()
        }

        return ResponseEnvelope(
            request_url=url,
            response_headers=headers,
            response_status_code=response.status_code,
            response_body=response.text,
            elapsed_time=elapsed_ms,
        )
