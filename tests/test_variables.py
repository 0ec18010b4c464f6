"""Tests for the index table and variable spaces."""

from __future__ import annotations

import pytest

from massive_match.errors import UnknownElement
from massive_match.variables import (
    IndexTable,
    SubsetView,
    VariableSpace,
    cartesian_product,
    format_variable,
    odometer,
    parse_variable,
)


DOGS = ["Arfie", "Bear", "Canon", "Cupcake", "Godzilla"]
HUMANS = ["Alice", "Bob", "Carol", "Dave", "Eve", "Franz"]


@pytest.fixture
def space():
    return VariableSpace({"dogs": DOGS, "humans": HUMANS})


def test_odometer_turns_last_axis_fastest():
    assert list(odometer([2, 3])) == [
        (0, 0), (0, 1), (0, 2),
        (1, 0), (1, 1), (1, 2),
    ]


def test_odometer_with_empty_axis_yields_nothing():
    assert list(odometer([3, 0, 2])) == []
    assert list(odometer([])) == []


def test_cartesian_product_handles_many_axes():
    axes = [[0, 1]] * 12
    combos = list(cartesian_product(axes))
    assert len(combos) == 2 ** 12
    assert combos[0] == (0,) * 12
    assert combos[-1] == (1,) * 12


def test_identifier_format_round_trips():
    assert format_variable([3, 0, 12]) == "v3x0x12"
    assert parse_variable("v3x0x12") == (3, 0, 12)
    with pytest.raises(ValueError):
        parse_variable("constraint0")


def test_index_table_rejects_duplicates():
    with pytest.raises(ValueError) as excinfo:
        IndexTable({"dogs": ["Bear", "Bear"]})
    assert "Bear" in str(excinfo.value)


def test_index_table_is_bijective():
    table = IndexTable({"dogs": DOGS})
    for idx, dog in enumerate(DOGS):
        assert table.index_of("dogs", dog) == idx
        assert table.element_at("dogs", idx) == dog


def test_every_tuple_round_trips(space):
    for dog in DOGS:
        for human in HUMANS:
            identifier = space.tuple_to_id((dog, human))
            assert space.id_to_tuple(identifier) == (dog, human)


def test_all_ids_cover_the_product(space):
    ids = space.all_ids()
    assert len(ids) == len(space) == len(DOGS) * len(HUMANS)
    assert len(set(ids)) == len(ids)
    assert ids[0] == "v0x0"
    assert ids[-1] == "v4x5"


def test_identifiers_are_deterministic():
    first = VariableSpace({"dogs": DOGS, "humans": HUMANS})
    second = VariableSpace({"dogs": list(DOGS), "humans": list(HUMANS)})
    assert first.all_ids() == second.all_ids()
    for identifier in first.all_ids():
        assert first.id_to_tuple(identifier) == second.id_to_tuple(identifier)


def test_subset_identifiers_match_parent(space):
    subset = space.create_subset({"dogs": ["Bear", "Godzilla"]})
    assert isinstance(subset, SubsetView)
    assert subset.index_table is space.index_table
    assert len(subset) == 2 * len(HUMANS)
    for identifier in subset.all_ids():
        assert identifier in space
        dog, human = subset.id_to_tuple(identifier)
        assert space.tuple_to_id((dog, human)) == identifier
        assert subset.tuple_to_id((dog, human)) == identifier


def test_missing_collections_are_wildcards(space):
    subset = space.create_subset({"humans": ["Eve"]})
    assert subset.elements("dogs") == DOGS
    assert subset.elements("humans") == ["Eve"]
    assert subset.all_ids() == [space.tuple_to_id((dog, "Eve")) for dog in DOGS]


def test_subset_axes_are_in_index_order(space):
    subset = space.create_subset({"dogs": ["Godzilla", "Arfie"], "humans": ["Bob"]})
    assert subset.all_ids() == ["v0x1", "v4x1"]


def test_single_element_may_be_given_bare(space):
    subset = space.create_subset({"dogs": "Bear", "humans": "Alice"})
    assert subset.all_ids() == ["v1x0"]


def test_empty_axis_makes_subset_empty(space):
    subset = space.create_subset({"dogs": []})
    assert subset.is_empty()
    assert subset.all_ids() == []
    assert len(subset) == 0


def test_nested_subsets_only_narrow(space):
    outer = space.create_subset({"dogs": ["Bear"]})
    inner = outer.create_subset({"dogs": ["Bear", "Canon"], "humans": ["Alice"]})
    assert inner.all_ids() == ["v1x0"]


def test_subset_rejects_tuples_outside_it(space):
    subset = space.create_subset({"dogs": ["Bear"]})
    with pytest.raises(UnknownElement):
        subset.tuple_to_id(("Arfie", "Alice"))
    with pytest.raises(UnknownElement):
        subset.id_to_tuple("v0x0")
    assert "v0x0" not in subset


def test_unknown_names_raise(space):
    with pytest.raises(UnknownElement):
        space.create_subset({"cats": ["Tom"]})
    with pytest.raises(UnknownElement):
        space.create_subset({"dogs": ["Lassie"]})


def test_variables_for_element(space):
    variables = space.variables_for("humans", "Carol")
    assert variables == [f"v{i}x2" for i in range(len(DOGS))]


def test_three_collections():
    space = VariableSpace({"a": [1, 2], "b": ["x"], "c": [True, False]})
    assert space.all_ids() == ["v0x0x0", "v0x0x1", "v1x0x0", "v1x0x1"]
    assert space.id_to_tuple("v1x0x1") == (2, "x", False)


def test_tuple_elements_may_be_given_bare():
    space = VariableSpace({"slots": [(1, 2), (3, 4)], "rooms": ["r1", "r2"]})

    assert space.create_subset({"slots": (1, 2)}).all_ids() == ["v0x0", "v0x1"]
    assert space.create_subset({"slots": [(3, 4)], "rooms": "r2"}).all_ids() == ["v1x1"]
    assert space.create_subset({"slots": ((1, 2), (3, 4))}).all_ids() == space.all_ids()


def test_tuple_that_is_not_an_element_lists_elements(space):
    subset = space.create_subset({"dogs": ("Bear", "Canon"), "humans": "Alice"})
    assert subset.all_ids() == ["v1x0", "v2x0"]
