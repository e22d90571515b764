"""
Read-only, case-insensitive HTTP header multimap.

Header names keep the casing they arrived with; lookups ignore case. A name
may carry several values (e.g. repeated Set-Cookie or Link headers), kept in
arrival order.
"""
from collections.abc import Mapping
from typing import Any, Iterable, Iterator, List, Optional, Tuple


def _pairs_from(source: Any) -> Iterable[Tuple[str, str]]:
    """Yield (name, value) pairs from the header containers transports hand us."""
    if source is None:
        return []
    if isinstance(source, HeaderMap):
        return source.items_all()
    # httpx / starlette Headers keep repeated headers reachable through multi_items()
    if hasattr(source, 'multi_items'):
        return source.multi_items()
    if hasattr(source, 'items'):
        pairs = []
        for name, value in source.items():
            if isinstance(value, (list, tuple)):
                pairs.extend((name, v) for v in value)
            else:
                pairs.append((name, value))
        return pairs
    return list(source)


class HeaderMap(Mapping):
    """Immutable header view with case-insensitive lookup.

    Mapping access (``headers['Content-Type']``) returns the first value for a
    name; ``get_all`` returns every value.
    """

    __slots__ = ('_entries', '_index')

    def __init__(self, source: Any = None):
        entries: List[Tuple[str, str]] = []
        index = {}
        for name, value in _pairs_from(source):
            name = str(name)
            value = str(value)
            entries.append((name, value))
            index.setdefault(name.lower(), []).append(len(entries) - 1)
        self._entries = tuple(entries)
        self._index = {key: tuple(positions) for key, positions in index.items()}

    def __getitem__(self, name: str) -> str:
        positions = self._index.get(name.lower()) if isinstance(name, str) else None
        if not positions:
            raise KeyError(name)
        return self._entries[positions[0]][1]

    def __iter__(self) -> Iterator[str]:
        # One entry per distinct name, in the casing it was first seen
        for positions in self._index.values():
            yield self._entries[positions[0]][0]

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._index

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HeaderMap):
            return self._entries == other._entries
        if isinstance(other, Mapping):
            return dict(self.items()) == {str(k): str(v) for k, v in other.items()}
        return NotImplemented

    def __hash__(self):
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"HeaderMap({list(self._entries)!r})"

    def get_all(self, name: str) -> List[str]:
        """Return every value received for ``name`` in arrival order."""
        positions = self._index.get(name.lower(), ())
        return [self._entries[p][1] for p in positions]

    def items_all(self) -> Tuple[Tuple[str, str], ...]:
        """Return all (name, value) pairs exactly as received."""
        return self._entries

    @property
    def content_type(self) -> Optional[str]:
        """Media type of Content-Type without parameters, lower-cased."""
        return media_type_of(self.get('content-type'))

    @property
    def charset(self) -> Optional[str]:
        value = self.get('content-type')
        if not value:
            return None
        return parse_charset(value)


def parse_charset(content_type: str) -> Optional[str]:
    """Extract the charset parameter from a Content-Type value."""
    for param in content_type.split(';')[1:]:
        key, _, val = param.partition('=')
        if key.strip().lower() == 'charset':
            return val.strip().strip('"') or None
    return None


def media_type_of(content_type: Optional[str]) -> Optional[str]:
    """Strip parameters from a Content-Type value."""
    if not content_type:
        return None
    media_type = content_type.split(';', 1)[0].strip().lower()
    return media_type or None
