"""Small helpers shared by the containers and the request builder."""

from __future__ import annotations

import re
from typing import Any

import httpx

# Cookie attributes are separated by ";" followed by optional spaces.
_COOKIE_SEPARATOR = re.compile(r"; *")


def is_str_list(value: Any) -> bool:
    """True if value is a non-empty list or tuple containing only strings."""
    if not isinstance(value, (list, tuple)) or not value:
        return False
    return all(isinstance(item, str) for item in value)


def is_valid_value(value: Any) -> bool:
    """True if value can be stored in a header/param container."""
    if isinstance(value, str):
        return bool(value)
    return is_str_list(value)


def use_https_protocol(url: Any) -> bool | None:
    """Decide whether a URL asks for https.

    Returns True for an absolute https URL, False for any other absolute URL,
    and None when the URL is invalid or has no explicit scheme and host
    (e.g. "localhost" or "localhost:8080"), meaning "keep the current setting".
    """
    if not isinstance(url, str):
        return None
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError):
        return None
    if not parsed.scheme or not parsed.host:
        return None
    return parsed.scheme == "https"


def get_cookie_name_and_value(cookie: Any) -> dict[str, str] | None:
    """Extract the name and value from a raw Set-Cookie string.

    The first fragment containing "=" wins; the value may itself contain "=".
    Later fragments (Path=, Domain=, ...) are never inspected.

    Returns:
        {"name": ..., "value": ...} or None if no fragment has a name and value.
    """
    if not isinstance(cookie, str) or not cookie:
        return None
    for fragment in _COOKIE_SEPARATOR.split(cookie):
        if "=" not in fragment:
            continue
        name, _, value = fragment.partition("=")
        name = name.strip()
        value = value.strip()
        if name and value:
            return {"name": name, "value": value}
    return None
