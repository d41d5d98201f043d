"""Headers - request header container.

Header names are stored exactly as given, so "H1" and "h1" are two keys.
resolve() is the case-insensitive lookup used to avoid adding a second
variant of a header that is already present.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pillow_request.store import KeyValueStore


class Headers(KeyValueStore):
    """Multi-value header container.

    Invalid entries in the source mapping are silently dropped.
    """

    def __init__(self, headers: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        if not isinstance(headers, Mapping):
            return
        for key, value in headers.items():
            # add() drops non-string keys and invalid values
            self.add(key, value)

    def resolve(self, key: Any) -> str | None:
        """Return the stored key matching key case-insensitively.

        Returns:
            The existing key in its stored case, key itself if no variant is
            stored, or None if key is not a string.
        """
        if not isinstance(key, str):
            return None
        wanted = key.lower()
        for existing in self._entries:
            if existing.lower() == wanted:
                return existing
        return key

    def get_all(self, flatten: bool = False) -> dict[str, list[str]] | dict[str, str]:
        """Return all headers.

        Args:
            flatten: If True, return lower-cased keys mapped to comma-joined
                values, the shape the transport sends. Otherwise a deep copy
                of the stored mapping.
        """
        if not flatten:
            return super().get_all()
        return {key.lower(): ",".join(values) for key, values in self._entries.items()}
