"""End-to-end matching scenarios solved by each in-process backend."""

from __future__ import annotations

import importlib.util

import pytest

from massive_match import InfeasibleProblem, ResultSet, TupleMatch


ORTOOLS_AVAILABLE = importlib.util.find_spec("ortools") is not None
PULP_AVAILABLE = importlib.util.find_spec("pulp") is not None

BACKENDS = [
    pytest.param(
        "ortools",
        marks=pytest.mark.skipif(
            not ORTOOLS_AVAILABLE,
            reason="OR-Tools backend is optional",
        ),
    ),
    pytest.param(
        "pulp",
        marks=pytest.mark.skipif(
            not PULP_AVAILABLE,
            reason="PuLP backend is optional",
        ),
    ),
]

DOGS = ["Arfie", "Bear", "Canon", "Cupcake", "Godzilla"]
HUMANS = ["Alice", "Bob", "Carol", "Dave", "Eve", "Franz"]


@pytest.fixture(params=BACKENDS)
def matcher(request):
    return TupleMatch({"dogs": DOGS, "humans": HUMANS}, backend=request.param)


def test_no_constraints_produce_empty_results(matcher):
    results = matcher.solve()
    assert isinstance(results, ResultSet)
    assert not results
    assert len(results) == 0


def test_every_dog_and_human_is_walked(matcher):
    matcher.match_at_least({"dogs": iter(DOGS), "humans": HUMANS}, 1)
    matcher.match_at_least({"dogs": DOGS, "humans": iter(HUMANS)}, 1)

    results = matcher.solve()

    assert len(results) == max(len(DOGS), len(HUMANS))
    assert all(any(d == dog for d, _ in results) for dog in DOGS)
    assert all(any(h == human for _, h in results) for human in HUMANS)


def test_insoluble_raises_error(matcher):
    matcher.match_exactly({"humans": [HUMANS[0]]}, len(DOGS))
    matcher.match_exactly({"humans": [HUMANS[0]]}, len(DOGS) + 1)

    with pytest.raises(InfeasibleProblem):
        matcher.solve()


def test_exact_matches_per_element(matcher):
    matcher.set_matches_per_element("dogs", 2)
    matcher.set_matches_per_element("humans", (0, 2))

    results = matcher.solve()

    assert len(results) == 2 * len(DOGS)
    for dog in DOGS:
        assert sum(1 for d, _ in results if d == dog) == 2
    for human in HUMANS:
        assert sum(1 for _, h in results if h == human) <= 2


def test_marker_exclusions_are_respected(matcher):
    matcher.set_matches_per_element("dogs", 1)
    matcher.set_matches_per_element("humans", (0, 1))
    markers = {
        "dogs": {dog: dog[0] for dog in DOGS},
        "humans": {human: human[0] for human in HUMANS},
    }
    matcher.exclude_on_markers(markers)

    results = matcher.solve()

    assert len(results) == len(DOGS)
    for dog, human in results:
        assert dog[0] != human[0]


def test_composers_limit_candidates_and_prefer_low_weights(matcher):
    matcher.add_inclusion_composer({"humans": ["Alice", "Bob"]}, weight=5)
    matcher.add_inclusion_composer({"humans": ["Eve"]}, weight=1)
    matcher.set_matches_per_element("dogs", 1)

    results = matcher.solve()

    assert len(results) == len(DOGS)
    assert {human for _, human in results} == {"Eve"}


def test_count_range_is_clamped_by_padding(matcher):
    matcher.add_inclusion_composer({"dogs": ["Bear"], "humans": ["Alice", "Bob"]})
    matcher.set_matches_per_element("dogs", (3, 4), match_padding=0)

    results = matcher.solve()

    # Bear only has two candidates and the other dogs none at all
    assert sorted(results) == [("Bear", "Alice"), ("Bear", "Bob")]


def test_match_at_most_caps_selection(matcher):
    matcher.match_at_least({"dogs": ["Bear"]}, 2)
    matcher.match_at_most({"humans": iter(HUMANS)}, 1)
    matcher.match_at_most({"dogs": ["Bear"], "humans": ["Alice", "Bob", "Carol"]}, 0)

    results = matcher.solve()

    assert len(results) == 2
    assert all(dog == "Bear" for dog, _ in results)
    assert all(human in ("Dave", "Eve", "Franz") for _, human in results)


def test_solve_is_repeatable_and_sees_new_configuration(matcher):
    matcher.set_matches_per_element("dogs", 1)
    first = matcher.solve()
    assert len(first) == len(DOGS)

    matcher.set_matches_per_element("dogs", 2)
    second = matcher.solve()
    assert len(second) == 2 * len(DOGS)


def test_result_set_behaves_like_a_sequence(matcher):
    matcher.match_all({"dogs": ["Bear"], "humans": ["Alice", "Bob"]})

    results = matcher.solve()

    assert results == [("Bear", "Alice"), ("Bear", "Bob")]
    assert ("Bear", "Alice") in results
    assert results[0] == ("Bear", "Alice")
    assert list(reversed(results))[0] == ("Bear", "Bob")
    assert results.as_dicts() == [
        {"dogs": "Bear", "humans": "Alice"},
        {"dogs": "Bear", "humans": "Bob"},
    ]


def test_three_way_match():
    backend = "pulp" if PULP_AVAILABLE else "ortools"
    if not (PULP_AVAILABLE or ORTOOLS_AVAILABLE):
        pytest.skip("No in-process solver installed")
    matcher = TupleMatch(
        {
            "panelists": ["p1", "p2", "p3"],
            "applications": ["a1", "a2"],
            "rooms": ["r1", "r2"],
        },
        backend=backend,
    )
    matcher.set_matches_per_element("applications", 1)
    matcher.set_matches_per_element("rooms", (0, 1))
    matcher.exclude_on_markers(
        {
            "panelists": {"p1": ["x"], "p2": ["y"]},
            "applications": {"a1": ["x", "y"]},
        }
    )

    results = matcher.solve()

    assert len(results) == 2
    assert {app for _, app, _ in results} == {"a1", "a2"}
    assert {room for _, _, room in results} == {"r1", "r2"}
    for panelist, app, _ in results:
        if app == "a1":
            assert panelist == "p3"
