"""One-call request functions built on PillowRequest.

Each function configures a PillowRequest and executes it. With a callback the
callback receives (error, response, body) and the function returns None;
without one the RequestOutcome is returned.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from pillow_request.models import AuthOptions, ClientConfig
from pillow_request.request import PillowRequest, RequestOutcome
from pillow_request.transport import Transport

Auth = AuthOptions | Mapping[str, Any] | None


def get_request(use_https: bool = False, **kwargs: Any) -> PillowRequest:
    """Return a new PillowRequest to build step by step."""
    return PillowRequest(use_https, **kwargs)


def _to_auth(auth: Auth) -> AuthOptions | None:
    if isinstance(auth, AuthOptions):
        return auth
    if isinstance(auth, Mapping):
        try:
            return AuthOptions.model_validate(dict(auth))
        except ValidationError:
            return None
    return None


def _apply_auth(request: PillowRequest, auth: Auth) -> None:
    options = _to_auth(auth)
    if options is None:
        return
    if options.has_basic:
        request.auth_by_user(options.username, options.password)
    elif options.token:
        request.auth_by_token(options.token)


def _apply_default_headers(request: PillowRequest, config: ClientConfig | None) -> None:
    """Add configured headers that were not supplied explicitly."""
    if config is None:
        return
    for key, value in config.headers.items():
        if request.headers is None or request.headers.get(request.headers.resolve(key)) is None:
            request.add_header(key, value)


async def _send(
    request: PillowRequest,
    options: Mapping[str, Any] | None,
    auth: Auth,
    with_credentials: bool,
    callback: Callable[..., Any] | None,
    config: ClientConfig | None,
) -> RequestOutcome | None:
    request.options(options).with_credentials(with_credentials)
    _apply_default_headers(request, config)
    _apply_auth(request, auth)

    if callable(callback):
        await request.callback(callback).call()
        return None
    return await request.call()


def _new_request(transport: Transport | None, config: ClientConfig | None) -> PillowRequest:
    return PillowRequest(transport=transport, config=config)


async def get(
    url: str,
    options: Mapping[str, Any] | None = None,
    auth: Auth = None,
    with_credentials: bool = False,
    callback: Callable[..., Any] | None = None,
    *,
    transport: Transport | None = None,
    config: ClientConfig | None = None,
) -> RequestOutcome | None:
    """Perform a GET request.

    Args:
        url: Full destination URL.
        options: {"headers": ..., "params": ...}.
        auth: username/password or token.
        with_credentials: Store cookies from the response.
        callback: Optional callback(error, response, body).
        transport: Optional Transport override.
        config: Optional client defaults.
    """
    request = _new_request(transport, config).get(url)
    return await _send(request, options, auth, with_credentials, callback, config)


async def post(
    url: str,
    body: Any = None,
    options: Mapping[str, Any] | None = None,
    auth: Auth = None,
    with_credentials: bool = False,
    callback: Callable[..., Any] | None = None,
    *,
    transport: Transport | None = None,
    config: ClientConfig | None = None,
) -> RequestOutcome | None:
    """Perform a POST request; arguments as for get(), plus the body."""
    request = _new_request(transport, config).post(url).set_body(body)
    return await _send(request, options, auth, with_credentials, callback, config)


async def put(
    url: str,
    body: Any = None,
    options: Mapping[str, Any] | None = None,
    auth: Auth = None,
    with_credentials: bool = False,
    callback: Callable[..., Any] | None = None,
    *,
    transport: Transport | None = None,
    config: ClientConfig | None = None,
) -> RequestOutcome | None:
    request = _new_request(transport, config).put(url).set_body(body)
    return await _send(request, options, auth, with_credentials, callback, config)


async def patch(
    url: str,
    body: Any = None,
    options: Mapping[str, Any] | None = None,
    auth: Auth = None,
    with_credentials: bool = False,
    callback: Callable[..., Any] | None = None,
    *,
    transport: Transport | None = None,
    config: ClientConfig | None = None,
) -> RequestOutcome | None:
    request = _new_request(transport, config).patch(url).set_body(body)
    return await _send(request, options, auth, with_credentials, callback, config)


async def delete(
    url: str,
    options: Mapping[str, Any] | None = None,
    auth: Auth = None,
    with_credentials: bool = False,
    callback: Callable[..., Any] | None = None,
    *,
    transport: Transport | None = None,
    config: ClientConfig | None = None,
) -> RequestOutcome | None:
    request = _new_request(transport, config).delete(url)
    return await _send(request, options, auth, with_credentials, callback, config)
