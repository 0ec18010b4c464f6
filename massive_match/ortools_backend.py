"""OR-Tools CP-SAT backend.

CP-SAT only accepts integer coefficients, so objective weights are scaled by
``WEIGHT_SCALE`` and rounded.  Constraint targets are rounded towards the
feasible side of their operator.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Optional

from ortools.sat.python import cp_model

from .api import SolverResult, SolverStatus
from .constraint import Operator
from .problem import Problem


logger = logging.getLogger(__name__)

# keeps three decimal places of a weight
WEIGHT_SCALE = 1000


def _scaled_int(value: float, scale: int) -> int:
    return int(round(float(value) * scale))


def _integer_target(operator: Operator, target: float) -> int:
    if float(target).is_integer():
        return int(target)
    if operator is Operator.GE:
        return math.ceil(target)
    return math.floor(target)


def build_model(problem: Problem):
    """Return ``(model, variables)`` for ``problem``."""

    model = cp_model.CpModel()
    variables: Dict[str, cp_model.IntVar] = {var: model.NewBoolVar(var) for var in problem.variables}

    for constraint in problem.constraints:
        lhs = sum(variables[var] for var in constraint.variables if var in variables)
        target = _integer_target(constraint.operator, constraint.target)
        if constraint.operator is Operator.EQ and not float(constraint.target).is_integer():
            # a sum of booleans never equals a fractional target
            ct = model.AddBoolOr([])
        elif constraint.operator is Operator.EQ:
            ct = model.Add(lhs == target)
        elif constraint.operator is Operator.LE:
            ct = model.Add(lhs <= target)
        else:
            ct = model.Add(lhs >= target)
        if constraint.name:
            ct.WithName(constraint.name)

    terms = [
        _scaled_int(weight, WEIGHT_SCALE) * variables[var]
        for var, weight in problem.weighted_terms()
        if var in variables
    ]
    if terms:
        model.Minimize(sum(terms))
    return model, variables


_STATUS_MAP = {
    cp_model.OPTIMAL: SolverStatus.OPTIMAL,
    cp_model.FEASIBLE: SolverStatus.FEASIBLE,
    cp_model.INFEASIBLE: SolverStatus.INFEASIBLE,
    cp_model.MODEL_INVALID: SolverStatus.MODEL_INVALID,
    cp_model.UNKNOWN: SolverStatus.UNKNOWN,
}


def solve(
    problem: Problem,
    *,
    time_limit: Optional[float] = None,
    progress_callback: Optional[Callable[[str], None]] = None,
) -> SolverResult:
    """Solve ``problem`` with CP-SAT and return a :class:`SolverResult`."""

    model, variables = build_model(problem)
    solver = cp_model.CpSolver()
    if time_limit is not None:
        solver.parameters.max_time_in_seconds = float(time_limit)
    raw_status = solver.Solve(model)
    status = _STATUS_MAP.get(raw_status, SolverStatus.UNKNOWN)
    status_name = solver.StatusName(raw_status)

    selected: List[str] = []
    objective_value: Optional[float] = None
    if status in (SolverStatus.OPTIMAL, SolverStatus.FEASIBLE):
        selected = [var for var, bool_var in variables.items() if solver.Value(bool_var)]
        objective_value = solver.ObjectiveValue() / WEIGHT_SCALE
        message = f"CP-SAT solution: status={status_name}, objective={objective_value:.2f}"
    else:
        message = f"CP-SAT solution: status={status_name}"
    if progress_callback is not None:
        progress_callback(message)
    logger.info(message)

    return SolverResult(
        status=status,
        selected=selected,
        progress=[message],
        raw_status=status_name,
        objective_value=objective_value,
    )


__all__ = [
    "WEIGHT_SCALE",
    "build_model",
    "solve",
]
