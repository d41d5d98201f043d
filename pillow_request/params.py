"""Params - query parameter container and query string codec.

Unlike Headers, Params is strict when built from a mapping: a non-string key
or an invalid value raises ParamsError, because those values end up in the URL.
A malformed query string is not an error; it simply yields no params.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from pillow_request.store import KeyValueStore
from pillow_request.util import is_str_list


class ParamsError(Exception):
    """Raised when a params mapping contains an invalid key or value."""


# Pairs may be separated by "&" or ";".
_PAIR_SEPARATOR = re.compile(r"[&;]")
_PAIR = re.compile(r"^([^=]+)=(.+)$")

# Characters left alone by JavaScript's encodeURI, plus "%" so that values
# which are already percent-encoded come out unchanged.
_URI_SAFE = ";,/?:@&=+$!*'()#%"

# A "%" that does not start a valid escape; it is encoded as "%25".
_BARE_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _is_str_sequence(value: Any) -> bool:
    # Empty lists are tolerated here; add() ignores them.
    return isinstance(value, (list, tuple)) and (not value or is_str_list(value))


def encode_query_value(value: str) -> str:
    """Percent-encode a query value the way encodeURI does, keeping valid escapes."""
    return quote(_BARE_PERCENT.sub("%25", value), safe=_URI_SAFE)


def parse_query_string(query: str) -> list[tuple[str, str]]:
    """Split "?k=v&k2=v2;k3=v3" into (key, value) pairs.

    Keys and values must be non-empty; the first "=" separates them. Values are
    not percent-decoded.

    Returns:
        The pairs in order, or an empty list if any pair is malformed.
    """
    if query[:1] in ("?", "&", ";"):
        query = query[1:]
    if not query:
        return []

    pairs: list[tuple[str, str]] = []
    for piece in _PAIR_SEPARATOR.split(query):
        match = _PAIR.match(piece)
        if match is None:
            return []
        pairs.append((match.group(1), match.group(2)))
    return pairs


class Params(KeyValueStore):
    """Multi-value query parameter container.

    Accepts None, a query string, or a mapping of key -> str | list[str].

    Raises:
        ParamsError: If a mapping key is not a string or a value is not a
            string or list of strings.
    """

    def __init__(self, params: str | Mapping[str, Any] | None = None) -> None:
        super().__init__()
        if isinstance(params, str):
            for key, value in parse_query_string(params):
                self.add(key, value)
        elif isinstance(params, Mapping):
            for key, value in params.items():
                if not isinstance(key, str):
                    raise ParamsError(f"The following param key must be a string: {key!r}")
                if not (isinstance(value, str) or _is_str_sequence(value)):
                    raise ParamsError(
                        f"The provided value for param {key} must be a string "
                        f"or list of strings: {value!r}"
                    )
                self.add(key, value)

    def get_all(self, flatten: bool = False) -> dict[str, list[str]] | str:
        """Return all params.

        Args:
            flatten: If True, return the URI-encoded query string beginning with
                "?" ("" when there are no params). Otherwise a deep copy of the
                stored mapping.
        """
        if not flatten:
            return super().get_all()
        pairs = [
            f"{key}={encode_query_value(value)}"
            for key, values in self._entries.items()
            for value in values
        ]
        if not pairs:
            return ""
        return "?" + "&".join(pairs)
