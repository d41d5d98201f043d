"""PillowRequest - fluent builder for a single HTTP request.

A request is assembled with chained setters, then executed once with
``await request.call()``. Setters never raise: malformed input is ignored and
the builder is returned unchanged.

Headers and Params instances passed to set_headers/set_params/options are
held by reference, not copied. Mutating the original afterwards changes what
the builder sends.

The outcome is delivered through exactly one channel, chosen when call()
runs:

- GENERAL: callback(error, response, body)
- SPLIT: on_error(error) and/or on_success(response, body); call() returns None
- AWAITED: no callbacks; call() returns a RequestOutcome
"""

from __future__ import annotations

import base64
import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import httpx

from pillow_request.headers import Headers
from pillow_request.models import ClientConfig, ResponseEnvelope
from pillow_request.params import Params, ParamsError
from pillow_request.transport import HttpTransport, Transport, TransportOutcome
from pillow_request.util import get_cookie_name_and_value, is_valid_value, use_https_protocol

logger = logging.getLogger(__name__)


class CookieStore(Protocol):
    """Sink for cookies received when credentials are enabled."""

    def set(self, name: str, value: str) -> None: ...


class DispatchMode(str, Enum):
    """Which channel receives the outcome of call()."""

    GENERAL = "general"
    SPLIT = "split"
    AWAITED = "awaited"


@dataclass(frozen=True)
class RequestOutcome:
    """Value returned by call() when no callbacks are registered."""

    error: BaseException | None
    response: ResponseEnvelope | None
    body: str | None

    @property
    def failed(self) -> bool:
        """True if the request did not produce a response.

        Status codes are not inspected: a 500 with a body is not a failure here.
        """
        if self.error is not None:
            return True
        return self.response is None or self.response.response_error is not None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


async def _invoke(callback: Callable[..., Any], *args: Any) -> None:
    """Call a sync or async callback."""
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class PillowRequest:
    """Builds and executes one HTTP request.

    Usage:
        outcome = await (
            PillowRequest()
            .post("https://api.example.com/items")
            .auth_by_token("Bearer abc")
            .add_param("page", "2")
            .set_body({"name": "widget"})
            .call()
        )
        if outcome.error is None:
            print(outcome.response.response_status_code, outcome.body)
    """

    def __init__(
        self,
        use_https: bool = False,
        *,
        transport: Transport | None = None,
        cookie_store: CookieStore | None = None,
        config: ClientConfig | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            use_https: Protocol for URLs without an explicit scheme. Replaced by
                       the scheme of any absolute URL passed to a verb setter.
                       config.use_https=True also selects https.
            transport: Performs the HTTP call. Defaults to an HttpTransport
                       built from config.
            cookie_store: Receives cookies when with_credentials() is set.
                          Defaults to an httpx.Cookies jar.
            config: Client defaults (transport settings and timeout).
        """
        self._config = config or ClientConfig()
        self._initial_use_https = bool(use_https or self._config.use_https)
        self.transport: Transport = transport or HttpTransport(self._config.transport)
        self.cookie_store: CookieStore = cookie_store if cookie_store is not None else httpx.Cookies()
        self.reset()

    def reset(self) -> PillowRequest:
        """Restore every request, response and callback field to its initial value."""
        self.use_https: bool = self._initial_use_https

        # Request
        self.method: str | None = None
        self.url: str | None = None
        self.auth_user: str | None = None
        self.auth_password: str | None = None
        self.token: str | None = None
        self.headers: Headers | None = None
        self.params: Params | None = None
        self.body: Any = None
        self.content_type: str | None = None
        self.credentials: bool = False
        self.timeout: float | None = self._config.timeout_ms

        # Response
        self.response: ResponseEnvelope | None = None
        self.response_error: BaseException | None = None
        self.response_body: str | None = None

        # Callbacks
        self.general_callback: Callable[..., Any] | None = None
        self.success_callback: Callable[..., Any] | None = None
        self.error_callback: Callable[..., Any] | None = None
        return self

    # -------------------------------------------------------------------------
    # Method and URL
    # -------------------------------------------------------------------------

    def _set_target(self, method: str, url: Any) -> PillowRequest:
        if isinstance(url, str):
            self.method = method
            self.set_url(url)
        return self

    def get(self, url: str) -> PillowRequest:
        return self._set_target("GET", url)

    def post(self, url: str) -> PillowRequest:
        return self._set_target("POST", url)

    def put(self, url: str) -> PillowRequest:
        return self._set_target("PUT", url)

    def patch(self, url: str) -> PillowRequest:
        return self._set_target("PATCH", url)

    def delete(self, url: str) -> PillowRequest:
        return self._set_target("DELETE", url)

    def set_method(self, method: str) -> PillowRequest:
        """Set an arbitrary HTTP method (upper-cased)."""
        if isinstance(method, str) and method.strip():
            self.method = method.strip().upper()
        return self

    def set_url(self, url: str) -> PillowRequest:
        """Set the URL, taking the protocol from it when it has an explicit scheme."""
        if isinstance(url, str):
            self.url = url
            use_https = use_https_protocol(url)
            if use_https is not None:
                self.use_https = use_https
        return self

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    def auth_by_user(self, username: str, password: str) -> PillowRequest:
        """Use Basic auth. Takes precedence over auth_by_token."""
        if isinstance(username, str) and isinstance(password, str):
            self.auth_user = username
            self.auth_password = password
        return self

    def auth_by_token(self, token: str | None) -> PillowRequest:
        """Send token as the authorization header value. A non-string clears it."""
        self.token = token if isinstance(token, str) else None
        return self

    # -------------------------------------------------------------------------
    # Headers and params
    # -------------------------------------------------------------------------

    def options(self, options: Mapping[str, Any] | None) -> PillowRequest:
        """Set headers and/or params from {"headers": ..., "params": ...}."""
        if not isinstance(options, Mapping):
            return self
        if options.get("headers") is not None:
            self.set_headers(options["headers"])
        if options.get("params") is not None:
            self.set_params(options["params"])
        return self

    def set_headers(self, headers: Headers | Mapping[str, Any]) -> PillowRequest:
        """Replace all headers. A Headers instance is shared, not copied."""
        if isinstance(headers, Headers):
            self.headers = headers
        elif isinstance(headers, Mapping):
            self.headers = Headers(headers)
        return self

    def add_header(self, key: str, value: str | list[str]) -> PillowRequest:
        if isinstance(key, str) and is_valid_value(value):
            if self.headers is None:
                self.headers = Headers()
            self.headers.add(key, value)
        return self

    def set_params(self, params: Params | Mapping[str, Any] | str) -> PillowRequest:
        """Replace all params. A Params instance is shared, not copied."""
        if isinstance(params, Params):
            self.params = params
        elif isinstance(params, (Mapping, str)):
            try:
                self.params = Params(params)
            except ParamsError as e:
                logger.warning("Ignoring invalid params: %s", e)
        return self

    def add_param(self, key: str, value: str | list[str]) -> PillowRequest:
        if isinstance(key, str) and is_valid_value(value):
            if self.params is None:
                self.params = Params()
            self.params.add(key, value)
        return self

    # -------------------------------------------------------------------------
    # Body, credentials, timeout
    # -------------------------------------------------------------------------

    def set_body(self, body: Any, content_type: str | None = None) -> PillowRequest:
        """Set the request body and, optionally, its content-type."""
        if body is None or (isinstance(body, (str, bytes)) and not body):
            return self
        self.body = body
        if isinstance(content_type, str):
            self.content_type = content_type
        return self

    def with_credentials(self, value: bool = True) -> PillowRequest:
        """Store cookies from the response in the cookie store."""
        self.credentials = bool(value)
        return self

    def set_timeout(self, time_ms: float) -> PillowRequest:
        """Milliseconds to wait for the response, forwarded to the transport."""
        if _is_number(time_ms):
            self.timeout = time_ms
        return self

    # -------------------------------------------------------------------------
    # Callbacks
    # -------------------------------------------------------------------------

    def callback(self, callback: Callable[..., Any]) -> PillowRequest:
        """Handle every outcome with callback(error, response, body)."""
        if callable(callback):
            self.general_callback = callback
        return self

    def on_success(self, callback: Callable[..., Any]) -> PillowRequest:
        """Register callback(response, body)."""
        if callable(callback):
            self.success_callback = callback
        return self

    def on_error(self, callback: Callable[..., Any]) -> PillowRequest:
        """Register callback(error)."""
        if callable(callback):
            self.error_callback = callback
        return self

    @property
    def dispatch_mode(self) -> DispatchMode:
        if self.general_callback is not None:
            return DispatchMode.GENERAL
        if self.success_callback is not None or self.error_callback is not None:
            return DispatchMode.SPLIT
        return DispatchMode.AWAITED

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def _prepare_headers(self) -> Headers:
        """Fill in content-type and authorization unless already set."""
        if self.headers is None:
            self.headers = Headers()
        headers = self.headers

        content_type_key = headers.resolve("content-type")
        if self.content_type is not None and headers.get(content_type_key) is None:
            headers.add(content_type_key, self.content_type)

        # An explicit authorization header always wins; basic auth beats token
        authorization_key = headers.resolve("authorization")
        if headers.get(authorization_key) is None:
            if self.auth_user is not None and self.auth_password is not None:
                credentials = f"{self.auth_user}:{self.auth_password}".encode("utf-8")
                headers.add(authorization_key, "Basic " + base64.b64encode(credentials).decode("ascii"))
            elif self.token is not None:
                headers.add(authorization_key, self.token)

        return headers

    def _build_options(self, headers: Headers) -> dict[str, Any]:
        options: dict[str, Any] = {"headers": headers.get_all(True)}
        if _is_number(self.timeout) and self.timeout:
            options["timeout"] = self.timeout
        return options

    def _full_url(self) -> str:
        if self.params is None:
            self.params = Params()
        return f"{self.url or ''}{self.params.get_all(True)}"

    def _store_cookies(self) -> None:
        if self.response is None:
            return
        for raw_cookie in self.response.set_cookies():
            cookie = get_cookie_name_and_value(raw_cookie)
            if cookie is not None:
                self.cookie_store.set(cookie["name"], cookie["value"])

    def _record(self, outcome: TransportOutcome) -> None:
        self.response = outcome.envelope
        self.response_error = outcome.error
        self.response_body = outcome.envelope.response_body if outcome.envelope is not None else None

    async def call(self) -> RequestOutcome | None:
        """Execute the request.

        Calling twice sends two requests with the accumulated state; use
        reset() or a new builder for a fresh request. Never raises for
        transport failures; they are reported through the active channel.

        Returns:
            RequestOutcome in AWAITED mode, otherwise None.
        """
        headers = self._prepare_headers()
        options = self._build_options(headers)
        full_url = self._full_url()
        logger.debug("Calling %s %s", self.method, full_url)
        outcome = await self.transport.perform(self.method, full_url, options, self.body, self.use_https)
        self._record(outcome)

        if self.credentials:
            self._store_cookies()

        mode = self.dispatch_mode
        if mode is DispatchMode.GENERAL:
            await _invoke(self.general_callback, self.response_error, self.response, self.response_body)
            return None
        if mode is DispatchMode.SPLIT:
            # Both registered callbacks fire on every outcome
            if self.error_callback is not None:
                await _invoke(self.error_callback, self.response_error)
            if self.success_callback is not None:
                await _invoke(self.success_callback, self.response, self.response_body)
            return None
        return RequestOutcome(
            error=self.response_error,
            response=self.response,
            body=self.response_body,
        )
