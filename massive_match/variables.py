"""Index tables and variable spaces over named element collections.

Every element of every collection receives an integer position once, when the
:class:`VariableSpace` is built.  A tuple holding one element per collection is
then named by its positions, e.g. ``v3x0x12`` for the fourth element of the
first collection, the first of the second and the thirteenth of the third.
Subset views filter those positions but never assign new ones, so a tuple has
the same identifier in every view that contains it.
"""

from __future__ import annotations

import re
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from .errors import UnknownElement


VAR_PREFIX = "v"
INDEX_SEPARATOR = "x"
VARIABLE_PATTERN = re.compile(r"v\d+(?:x\d+)*")


def odometer(sizes: Sequence[int]) -> Iterator[Tuple[int, ...]]:
    """Yield every position tuple for axes of the given ``sizes``.

    The last axis turns fastest.  Any empty axis makes the product empty and
    zero axes produce nothing at all.
    """

    sizes = list(sizes)
    if not sizes or any(size <= 0 for size in sizes):
        return
    counters = [0] * len(sizes)
    while True:
        yield tuple(counters)
        axis = len(sizes) - 1
        while axis >= 0:
            counters[axis] += 1
            if counters[axis] < sizes[axis]:
                break
            counters[axis] = 0
            axis -= 1
        if axis < 0:
            return


def cartesian_product(axes: Sequence[Sequence[Any]]) -> Iterator[Tuple[Any, ...]]:
    """Iterate the N-ary Cartesian product of ``axes`` without recursion."""

    axes = [list(axis) for axis in axes]
    for positions in odometer([len(axis) for axis in axes]):
        yield tuple(axis[pos] for axis, pos in zip(axes, positions))


def format_variable(indices: Iterable[int]) -> str:
    return VAR_PREFIX + INDEX_SEPARATOR.join(str(int(idx)) for idx in indices)


def parse_variable(identifier: str) -> Tuple[int, ...]:
    """Return the index tuple encoded in ``identifier``."""

    if not isinstance(identifier, str) or not VARIABLE_PATTERN.fullmatch(identifier):
        raise ValueError(f"Malformed variable identifier {identifier!r}")
    return tuple(int(part) for part in identifier[len(VAR_PREFIX):].split(INDEX_SEPARATOR))


def _as_values(value: Any) -> List[Any]:
    """Normalise one axis of a partial specification to a list of elements."""

    if isinstance(value, (str, bytes)):
        return [value]
    try:
        return list(value)
    except TypeError:
        return [value]


class IndexTable:
    """Bijection between each collection's elements and their positions."""

    def __init__(self, collections: Mapping[str, Iterable[Any]]):
        self._names: List[str] = []
        self._forward: Dict[str, Dict[Any, int]] = {}
        self._inverse: Dict[str, List[Any]] = {}
        for name, elements in collections.items():
            elements = list(elements)
            positions: Dict[Any, int] = {}
            for idx, element in enumerate(elements):
                if element in positions:
                    raise ValueError(
                        f"Collection '{name}' contains {element!r} more than once."
                    )
                positions[element] = idx
            self._names.append(name)
            self._forward[name] = positions
            self._inverse[name] = elements

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._forward

    def size(self, name: str) -> int:
        return len(self._inverse[self._check_name(name)])

    def elements(self, name: str) -> List[Any]:
        return list(self._inverse[self._check_name(name)])

    def has_element(self, name: str, element: Any) -> bool:
        try:
            return element in self._forward[self._check_name(name)]
        except TypeError:
            return False

    def index_of(self, name: str, element: Any) -> int:
        positions = self._forward[self._check_name(name)]
        try:
            return positions[element]
        except (KeyError, TypeError):
            raise UnknownElement(
                f"{element!r} is not an element of collection '{name}'."
            ) from None

    def element_at(self, name: str, index: int) -> Any:
        elements = self._inverse[self._check_name(name)]
        if not 0 <= index < len(elements):
            raise UnknownElement(f"Collection '{name}' has no element at index {index}.")
        return elements[index]

    def _check_name(self, name: str) -> str:
        if name not in self._forward:
            known = ", ".join(self._names) or "none"
            raise UnknownElement(f"Unknown collection '{name}'. Known collections: {known}.")
        return name


class BaseVariableSpace:
    """Cartesian product of per-collection index ranges over an :class:`IndexTable`."""

    def __init__(self, index_table: IndexTable, axes: Mapping[str, Sequence[int]]):
        self.index_table = index_table
        self._axes: Dict[str, Tuple[int, ...]] = {
            name: tuple(axes[name]) for name in index_table.names
        }
        self._axis_sets = {name: frozenset(axis) for name, axis in self._axes.items()}
        self._ids: Optional[List[str]] = None

    @property
    def names(self) -> Tuple[str, ...]:
        return self.index_table.names

    def axis(self, name: str) -> Tuple[int, ...]:
        self.index_table._check_name(name)
        return self._axes[name]

    def elements(self, name: str) -> List[Any]:
        return [self.index_table.element_at(name, idx) for idx in self.axis(name)]

    def is_empty(self) -> bool:
        return not self._axes or any(not axis for axis in self._axes.values())

    def all_ids(self) -> List[str]:
        if self._ids is None:
            self._ids = [
                format_variable(indices)
                for indices in cartesian_product([self._axes[name] for name in self.names])
            ]
        return list(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self.all_ids())

    def __len__(self) -> int:
        if self.is_empty():
            return 0
        total = 1
        for axis in self._axes.values():
            total *= len(axis)
        return total

    def __contains__(self, identifier: object) -> bool:
        try:
            indices = parse_variable(identifier)  # type: ignore[arg-type]
        except ValueError:
            return False
        if len(indices) != len(self.names):
            return False
        return all(idx in self._axis_sets[name] for name, idx in zip(self.names, indices))

    def tuple_to_id(self, elements: Sequence[Any]) -> str:
        """Return the identifier for one element per collection, in order."""

        elements = list(elements)
        if len(elements) != len(self.names):
            raise ValueError(
                f"Expected {len(self.names)} elements ({', '.join(self.names)}), got {len(elements)}."
            )
        indices = []
        for name, element in zip(self.names, elements):
            idx = self.index_table.index_of(name, element)
            if idx not in self._axis_sets[name]:
                raise UnknownElement(f"{element!r} of '{name}' is outside this subset.")
            indices.append(idx)
        return format_variable(indices)

    def id_to_tuple(self, identifier: str) -> Tuple[Any, ...]:
        """Decode ``identifier`` back into the caller's domain objects."""

        indices = parse_variable(identifier)
        if len(indices) != len(self.names):
            raise ValueError(
                f"Identifier {identifier!r} does not have {len(self.names)} components."
            )
        decoded = []
        for name, idx in zip(self.names, indices):
            if idx not in self._axis_sets[name]:
                raise UnknownElement(f"Identifier {identifier!r} is outside this subset.")
            decoded.append(self.index_table.element_at(name, idx))
        return tuple(decoded)

    def create_subset(self, partial: Mapping[str, Any]) -> "SubsetView":
        """Restrict the named axes to the given elements.

        Collections missing from ``partial`` keep every element of this view.
        A value that is an element of its collection selects just that element;
        any other iterable is read as a list of elements.
        Elements outside this view are filtered out, so nesting only narrows.
        """

        for name in partial:
            self.index_table._check_name(name)
        axes: Dict[str, List[int]] = {}
        for name in self.names:
            if name not in partial:
                axes[name] = list(self._axes[name])
                continue
            value = partial[name]
            # a tuple that is itself an element is not a list of elements
            values = [value] if self.index_table.has_element(name, value) else _as_values(value)
            wanted = {self.index_table.index_of(name, element) for element in values}
            axes[name] = sorted(wanted & self._axis_sets[name])
        return SubsetView(self.index_table, axes)

    def variables_for(self, name: str, element: Any) -> List[str]:
        """Every identifier of this view that involves ``element`` of ``name``."""

        return self.create_subset({name: [element]}).all_ids()

    def __repr__(self) -> str:
        shape = " x ".join(f"{name}[{len(axis)}]" for name, axis in self._axes.items())
        return f"<{type(self).__name__} {shape or 'empty'}>"


class VariableSpace(BaseVariableSpace):
    """The full variable space, owning the index table it is built from."""

    def __init__(self, collections: Mapping[str, Iterable[Any]]):
        table = IndexTable(collections)
        super().__init__(table, {name: range(table.size(name)) for name in table.names})


class SubsetView(BaseVariableSpace):
    """A filtered view sharing its parent's index table."""


__all__ = [
    "IndexTable",
    "BaseVariableSpace",
    "VariableSpace",
    "SubsetView",
    "VARIABLE_PATTERN",
    "cartesian_product",
    "format_variable",
    "odometer",
    "parse_variable",
]
