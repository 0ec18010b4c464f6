"""Per-element match counts, composer weights and marker grouping."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import cycle
from numbers import Real
from typing import Any, Dict, Hashable, Iterable, Iterator, List, Mapping, Tuple, Union

from .errors import InvalidCountSpec


@dataclass(frozen=True)
class Exact:
    """Every element is matched exactly ``count`` times."""

    count: int


@dataclass(frozen=True)
class Bounded:
    """Every element is matched between ``minimum`` and ``maximum`` times, inclusive."""

    minimum: int
    maximum: int


CountSpec = Union[Exact, Bounded]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def coerce_count_spec(spec: Any) -> CountSpec:
    """Resolve a user-supplied count into :class:`Exact` or :class:`Bounded`.

    Accepted: an ``int``, a non-empty ``range`` (its smallest and largest
    members), a two-item ``(min, max)`` tuple or list, or an existing spec.
    """

    if isinstance(spec, (Exact, Bounded)):
        return spec
    if _is_int(spec):
        if spec < 0:
            raise InvalidCountSpec(f"Match count must not be negative, got {spec}.")
        return Exact(spec)
    if isinstance(spec, range):
        if len(spec) == 0:
            raise InvalidCountSpec(f"Match count range {spec!r} is empty.")
        return Bounded(min(spec), max(spec))
    if isinstance(spec, (tuple, list)) and len(spec) == 2 and all(_is_int(v) for v in spec):
        low, high = spec
        if low > high:
            raise InvalidCountSpec(f"Match count range ({low}, {high}) has min above max.")
        return Bounded(low, high)
    raise InvalidCountSpec(
        f"Matches per element must be an integer or a range, got {spec!r}."
    )


def is_weight_range(weight: Any) -> bool:
    return isinstance(weight, (range, list, tuple))


def validate_weight(weight: Any) -> Any:
    if is_weight_range(weight):
        values = list(weight)
        if not values or not all(isinstance(v, Real) for v in values):
            raise ValueError(f"Weight range {weight!r} must contain at least one number.")
        return weight
    if isinstance(weight, Real) and not isinstance(weight, bool):
        return weight
    raise ValueError(f"Composer weight must be a number or a range of numbers, got {weight!r}.")


def iter_weights(weight: Any) -> Iterator[float]:
    """Endless stream of weights: a constant, or the range's values in turn."""

    if is_weight_range(weight):
        return cycle(list(weight))
    return cycle([weight])


def reindex_by_marker(
    marker_maps: Mapping[str, Mapping[Any, Any]],
) -> Dict[Hashable, Dict[str, List[Any]]]:
    """Regroup ``{collection: {element: markers}}`` by marker.

    Example::

        {"panelists": {"p1": [1, 2], "p2": 2},
         "applications": {"a1": [1, 4]}}

    becomes::

        {1: {"panelists": ["p1"], "applications": ["a1"]},
         2: {"panelists": ["p1", "p2"]},
         4: {"applications": ["a1"]}}

    A single marker may be given without wrapping it in a list.
    """

    grouped: Dict[Hashable, Dict[str, List[Any]]] = {}
    for collection, element_markers in marker_maps.items():
        for element, markers in element_markers.items():
            if isinstance(markers, (str, bytes)) or not isinstance(markers, Iterable):
                markers = [markers]
            for marker in markers:
                members = grouped.setdefault(marker, {}).setdefault(collection, [])
                if element not in members:
                    members.append(element)
    return grouped


def marker_pairs(
    marker_maps: Mapping[str, Mapping[Any, Any]],
) -> List[Dict[str, List[Any]]]:
    """Partial specs for every pair of collections that share a marker."""

    pairs: List[Dict[str, List[Any]]] = []
    for marker, by_collection in reindex_by_marker(marker_maps).items():
        names: List[Tuple[str, List[Any]]] = list(by_collection.items())
        for i, (outer, outer_elements) in enumerate(names):
            for inner, inner_elements in names[i + 1:]:
                pairs.append({outer: list(outer_elements), inner: list(inner_elements)})
    return pairs


__all__ = [
    "Bounded",
    "CountSpec",
    "Exact",
    "coerce_count_spec",
    "is_weight_range",
    "iter_weights",
    "marker_pairs",
    "reindex_by_marker",
    "validate_weight",
]
