"""KeyValueStore - multi-value string container behind Headers and Params.

Keys map to ordered lists of string values. Storage is case-preserving and
case-sensitive; subclasses decide how lookups and the flattened wire form
behave.

Invariants:
- Every stored value list is non-empty. Removing the last value of a key
  removes the key.
- Invalid keys or values are ignored rather than raised on.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator
from typing import Any

from pillow_request.util import is_valid_value


class KeyValueStore:
    """Dictionary of string key -> ordered list of string values.

    Usage:
        store = KeyValueStore()
        store.add("accept", "text/html")
        store.add("accept", ["application/json"])
        store.get("accept")  # ["text/html", "application/json"]
    """

    def __init__(self) -> None:
        self._entries: dict[str, list[str]] = {}

    def add(self, key: Any, value: Any) -> None:
        """Append a value (or concatenate a list of values) to a key.

        No-op unless key is a non-empty string and value is a non-empty string
        or a non-empty list of strings.
        """
        if not isinstance(key, str) or not key or not is_valid_value(value):
            return
        values = self._entries.setdefault(key, [])
        if isinstance(value, str):
            values.append(value)
        else:
            values.extend(value)

    def remove(self, key: Any, value: Any = None) -> None:
        """Remove the first occurrence of value, or the whole key if value is None."""
        if not isinstance(key, str) or key not in self._entries:
            return
        if value is None:
            del self._entries[key]
            return
        if not isinstance(value, str):
            return
        values = self._entries[key]
        if value in values:
            values.remove(value)
        if not values:
            del self._entries[key]

    def get(self, key: Any) -> list[str] | None:
        """Return a copy of the value list for an exact key match, or None."""
        if not isinstance(key, str) or not key:
            return None
        values = self._entries.get(key)
        return list(values) if values is not None else None

    def get_all(self, flatten: bool = False) -> Any:
        """Return a deep copy of the structured mapping.

        Subclasses override this to provide their flattened wire form.
        """
        return copy.deepcopy(self._entries)

    def clear(self) -> None:
        self._entries = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._entries!r})"
