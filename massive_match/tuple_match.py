"""Match elements drawn from any number of named collections.

A :class:`TupleMatch` returns tuples holding one member of each collection.
Matching dogs with walkers, for example::

    matcher = TupleMatch({"dogs": ["Arnold", "Bear"], "walkers": ["Alice", "Bob"]})
    matcher.set_matches_per_element("dogs", 1)
    matcher.set_matches_per_element("walkers", 1)
    matcher.exclude_on_markers({"dogs": {"Arnold": "A"}, "walkers": {"Alice": "A"}})
    matcher.solve()  # [("Arnold", "Bob"), ("Bear", "Alice")]

Every candidate tuple is a binary variable.  Rules become linear constraints
over those variables, the problem is handed to a solver backend and the
variables it sets to 1 are decoded back into tuples.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from .api import require_solution, solve_problem
from .constraint import Constraint, ConstraintNamer, Operator
from .errors import UnknownElement
from .problem import Problem
from .result import ResultSet
from .rules import (
    Bounded,
    CountSpec,
    Exact,
    coerce_count_spec,
    iter_weights,
    marker_pairs,
    validate_weight,
)
from .variables import BaseVariableSpace, VariableSpace, cartesian_product


logger = logging.getLogger(__name__)


@dataclass
class InclusionComposer:
    """A weighted subset of the variable space.

    Composers decide which tuples may be selected at all, and lower weights
    are preferred over higher ones.
    """

    weight: Any
    view: BaseVariableSpace


class TupleMatch:
    """Collects matching rules over named collections and solves them."""

    def __init__(
        self,
        collections: Mapping[str, Any],
        *,
        backend: Optional[str] = None,
        time_limit: Optional[float] = None,
        namer: Optional[ConstraintNamer] = None,
    ):
        self.collections: Dict[str, List[Any]] = {
            name: list(elements) for name, elements in collections.items()
        }
        self.variable_space = VariableSpace(self.collections)
        self.namer = namer or ConstraintNamer()
        self.backend = backend
        self.time_limit = time_limit
        self._constraints: List[Constraint] = []
        self._composers: List[InclusionComposer] = []
        self._matches_per_element: Dict[str, Tuple[CountSpec, int]] = {}
        self._active: Optional[List[str]] = None
        self._active_set: FrozenSet[str] = frozenset()

    @property
    def constraints(self) -> List[Constraint]:
        return list(self._constraints)

    @property
    def composers(self) -> List[InclusionComposer]:
        return list(self._composers)

    # ------------------------------------------------------------------
    # configuration

    def add_inclusion_composer(self, partial: Mapping[str, Any], weight: Any = 1) -> Optional[InclusionComposer]:
        """Allow the tuples of ``partial`` to be selected at cost ``weight``.

        Once any composer exists only the union of all composers' tuples can
        be matched.  ``weight`` is a number or a range of numbers; a range is
        handed out to the composer's tuples in turn.
        """

        weight = validate_weight(weight)
        view = self.variable_space.create_subset(partial)
        self._active = None
        if view.is_empty():
            logger.debug("Ignoring empty inclusion composer %r", dict(partial))
            return None
        composer = InclusionComposer(weight=weight, view=view)
        self._composers.append(composer)
        return composer

    def add_constraint(self, constraint: Union[Constraint, Mapping[str, Any], None] = None, **fields: Any) -> Constraint:
        """Add a constraint over variable identifiers.

        Accepts a :class:`Constraint`, a mapping with ``variables`` (or
        ``vars``), ``operator``, ``target`` and optionally ``name`` and
        ``flexible``, or the same fields as keyword arguments.
        """

        if constraint is None:
            constraint = Constraint.from_spec(fields)
        elif not isinstance(constraint, Constraint):
            constraint = Constraint.from_spec(dict(constraint, **fields))
        for var in constraint.variables:
            if var not in self.variable_space:
                raise UnknownElement(f"Variable {var!r} is not part of this match.")
        if constraint.name:
            self.namer.claim(constraint.name)
        else:
            constraint.name = self.namer()
        self._constraints.append(constraint)
        return constraint

    def add_exclusion_constraint(self, partial: Mapping[str, Any], name: Optional[str] = None) -> Optional[Constraint]:
        """Forbid every tuple formed from exactly these elements."""

        view = self.variable_space.create_subset(partial)
        if view.is_empty():
            logger.debug("Ignoring empty exclusion group %r", dict(partial))
            return None
        return self.add_constraint(variables=view.all_ids(), operator=Operator.EQ, target=0, name=name)

    def exclude_on_markers(self, marker_maps: Mapping[str, Mapping[Any, Any]]) -> List[Constraint]:
        """Keep elements that share a marker out of the same tuple.

        ``marker_maps`` is ``{collection: {element: marker or markers}}``.
        One exclusion is added per marker and pair of collections carrying it.
        """

        added = []
        for pair in marker_pairs(marker_maps):
            constraint = self.add_exclusion_constraint(pair)
            if constraint is not None:
                added.append(constraint)
        return added

    def include_on_markers(self, marker_maps: Mapping[str, Mapping[Any, Any]], weight: Any = 1) -> List[InclusionComposer]:
        """Like :meth:`exclude_on_markers`, but registers inclusion composers."""

        added = []
        for pair in marker_pairs(marker_maps):
            composer = self.add_inclusion_composer(pair, weight=weight)
            if composer is not None:
                added.append(composer)
        return added

    def set_matches_per_element(self, collection: str, count: Any, match_padding: int = 0) -> CountSpec:
        """Match every element of ``collection`` ``count`` times.

        ``count`` is an int or an inclusive range (``range``, ``(min, max)``
        or :class:`Bounded`).  ``match_padding`` loosens the lower bound of a
        range for elements with few candidate tuples.
        """

        if collection not in self.variable_space.index_table:
            raise UnknownElement(f"Unknown collection '{collection}'.")
        spec = coerce_count_spec(count)
        self._matches_per_element[collection] = (spec, int(match_padding))
        return spec

    def match_exactly(self, partial: Mapping[str, Any], target: int, name: Optional[str] = None) -> List[Constraint]:
        return self._match(partial, Operator.EQ, target, name)

    def match_at_least(self, partial: Mapping[str, Any], target: int, name: Optional[str] = None) -> List[Constraint]:
        return self._match(partial, Operator.GE, target, name)

    def match_at_most(self, partial: Mapping[str, Any], target: int, name: Optional[str] = None) -> List[Constraint]:
        return self._match(partial, Operator.LE, target, name)

    def match_all(self, partial: Mapping[str, Any], name: Optional[str] = None) -> List[Constraint]:
        """Require every tuple of ``partial`` to be selected."""

        return self._match(partial, Operator.EQ, None, name)

    def _expand(self, partial: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """One partial spec per combination of the iterator-valued axes."""

        lazy = [name for name, value in partial.items() if isinstance(value, Iterator)]
        if not lazy:
            return [dict(partial)]
        axes = [list(partial[name]) for name in lazy]
        expanded = []
        for combo in cartesian_product(axes):
            spec = dict(partial)
            for name, element in zip(lazy, combo):
                spec[name] = [element]
            expanded.append(spec)
        return expanded

    def _match(self, partial: Mapping[str, Any], operator: Operator, target: Optional[int], name: Optional[str]) -> List[Constraint]:
        specs = self._expand(partial)
        created = []
        for idx, spec in enumerate(specs):
            view = self.variable_space.create_subset(spec)
            if view.is_empty():
                continue
            constraint_name = name
            if name and len(specs) > 1:
                constraint_name = f"{name}_{idx}"
            created.append(
                self.add_constraint(
                    variables=view.all_ids(),
                    operator=operator,
                    target=len(view) if target is None else target,
                    name=constraint_name,
                )
            )
        return created

    # ------------------------------------------------------------------
    # composition

    def active_variables(self) -> List[str]:
        """The identifiers that may be selected, in a fixed order."""

        if self._active is None:
            if not self._composers:
                self._active = self.variable_space.all_ids()
            else:
                seen: Dict[str, None] = {}
                for composer in self._composers:
                    for var in composer.view.all_ids():
                        seen.setdefault(var, None)
                self._active = list(seen)
            self._active_set = frozenset(self._active)
        return list(self._active)

    def _universe(self) -> Optional[FrozenSet[str]]:
        self.active_variables()
        return self._active_set if self._composers else None

    def count_constraints(self) -> List[Constraint]:
        """Per-element count constraints for the current configuration."""

        universe = self._universe()
        namer = ConstraintNamer("count", reserved=self.namer.taken)
        built: List[Constraint] = []
        for collection, (spec, padding) in self._matches_per_element.items():
            for element in self.collections[collection]:
                variables = self.variable_space.variables_for(collection, element)
                if universe is not None:
                    variables = [var for var in variables if var in universe]
                if isinstance(spec, Exact):
                    built.append(Constraint(variables, Operator.EQ, min(spec.count, len(variables)), name=namer()))
                elif isinstance(spec, Bounded):
                    lower = min(spec.minimum, len(variables) - padding)
                    built.append(Constraint(variables, Operator.GE, lower, name=namer(), flexible=True))
                    built.append(Constraint(variables, Operator.LE, spec.maximum, name=namer()))
        return built

    def compose_objective(self) -> Dict[str, float]:
        """Accumulated weight per active identifier."""

        composers = self._composers or [InclusionComposer(weight=1, view=self.variable_space)]
        objective: Dict[str, float] = {}
        for composer in composers:
            weights = iter_weights(composer.weight)
            for var in composer.view.all_ids():
                objective[var] = objective.get(var, 0) + next(weights)
        return objective

    def compose_problem(self) -> Problem:
        universe = self._universe()
        constraints: List[Constraint] = []
        for constraint in self._constraints + self.count_constraints():
            finalized = constraint.finalize(universe)
            if finalized is None:
                logger.debug("Dropping constraint %s: no variables left", constraint.name)
                continue
            constraints.append(finalized)
        problem = Problem(
            variables=self.active_variables(),
            objective=self.compose_objective(),
            constraints=constraints,
        )
        logger.debug(
            "Composed problem with %d variables and %d constraints",
            len(problem.variables),
            len(problem.constraints),
        )
        return problem

    def to_lp(self) -> str:
        """The problem exactly as it would be handed to lp_solve."""

        return self.compose_problem().to_lp()

    def write_lp(self, path) -> None:
        with open(path, "w") as handle:
            handle.write(self.to_lp())

    # ------------------------------------------------------------------
    # solving

    def solve(
        self,
        *,
        backend: Optional[str] = None,
        time_limit: Optional[float] = None,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> ResultSet:
        """Solve the current rules and return the selected tuples.

        Raises :class:`~massive_match.errors.InfeasibleProblem` when no
        matching satisfies every rule.
        """

        problem = self.compose_problem()
        names = self.variable_space.names
        if not problem.variables:
            return ResultSet([], names)

        result = solve_problem(
            problem,
            backend=backend or self.backend,
            time_limit=time_limit if time_limit is not None else self.time_limit,
            progress_callback=progress_callback,
        )
        selected = require_solution(result)
        order = {var: idx for idx, var in enumerate(problem.variables)}
        selected.sort(key=lambda var: order.get(var, len(order)))
        return ResultSet([self.variable_space.id_to_tuple(var) for var in selected], names)

    match = solve


__all__ = ["InclusionComposer", "TupleMatch"]
