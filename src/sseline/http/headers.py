"""Case-insensitive HTTP headers over raw ASGI byte pairs.

``Headers`` wraps the request headers from the ASGI scope and decodes
on access. ``ResponseHeaders`` collects the headers an event stream
sets before the response starts.
"""

from collections.abc import Iterator, Mapping


def _lower(name: str) -> bytes:
    return name.lower().encode("latin-1")


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive request headers.

    ``__getitem__`` returns the first matching value. Pseudo-headers
    (``:path``, ``:method``) are looked up like any other name.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw

    def __getitem__(self, key: str) -> str:
        wanted = _lower(key)
        for name, value in self._raw:
            if name.lower() == wanted:
                return value.decode("latin-1")
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        wanted = _lower(key)
        return any(name.lower() == wanted for name, _ in self._raw)

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._raw:
            key = name.decode("latin-1").lower()
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self) -> int:
        return len(set(self))

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Headers({{{items}}})"


class ResponseHeaders:
    """Ordered, case-insensitive response headers.

    ``set`` replaces every existing value for a name, so setting the
    SSE headers twice never duplicates them.
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[tuple[str, str]] = []

    def set(self, name: str, value: str) -> None:
        wanted = name.lower()
        self._items = [(k, v) for k, v in self._items if k.lower() != wanted]
        self._items.append((name, value))

    def update(self, headers: Mapping[str, str]) -> None:
        for name, value in headers.items():
            self.set(name, value)

    def get(self, name: str, default: str | None = None) -> str | None:
        wanted = name.lower()
        for key, value in self._items:
            if key.lower() == wanted:
                return value
        return default

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        return len(self._items)

    def to_raw(self) -> list[tuple[bytes, bytes]]:
        """Encode as ASGI header pairs (lowercase names)."""
        return [(_lower(k), v.encode("latin-1")) for k, v in self._items]
