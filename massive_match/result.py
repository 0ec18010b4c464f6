"""Read-only sequence of decoded matches."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Dict, Iterable, List, Tuple


class ResultSet(Sequence):
    """Ordered tuples of domain objects, one per collection."""

    def __init__(self, tuples: Iterable[Tuple[Any, ...]], names: Iterable[str] = ()):
        self._tuples: Tuple[Tuple[Any, ...], ...] = tuple(tuple(t) for t in tuples)
        self.names: Tuple[str, ...] = tuple(names)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return ResultSet(self._tuples[index], self.names)
        return self._tuples[index]

    def __len__(self) -> int:
        return len(self._tuples)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ResultSet):
            return self._tuples == other._tuples
        if isinstance(other, (list, tuple)):
            return list(self._tuples) == [tuple(item) for item in other]
        return NotImplemented

    def __repr__(self) -> str:
        return f"ResultSet({list(self._tuples)!r})"

    def as_dicts(self) -> List[Dict[str, Any]]:
        """Each match keyed by collection name."""

        return [dict(zip(self.names, match)) for match in self._tuples]


__all__ = ["ResultSet"]
