"""Mixed-integer linear programming backend implemented with PuLP/HiGHS."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import pulp

from .api import SolverResult, SolverStatus
from .constraint import Operator
from .problem import Problem


logger = logging.getLogger(__name__)


def _make_solver(time_limit: Optional[float]) -> pulp.apis.core.LpSolver:
    solver_cmd = pulp.apis.HiGHS_CMD(msg=False, timeLimit=time_limit)
    if solver_cmd.available():
        return solver_cmd
    solver = pulp.apis.HiGHS(msg=False, timeLimit=time_limit)
    if solver.available():
        return solver
    logger.warning("HiGHS is not available, falling back to PuLP's bundled CBC")
    solver = pulp.apis.PULP_CBC_CMD(msg=False, timeLimit=time_limit)
    if not solver.available():
        raise RuntimeError("Neither HiGHS nor CBC is available to PuLP")
    return solver


def _value(var: pulp.LpVariable) -> float:
    value = pulp.value(var)
    if value is None:
        return 0.0
    return float(value)


def build_model(problem: Problem):
    """Translate ``problem`` into a PuLP model.

    Returns ``(model, variables)`` where ``variables`` maps each identifier to
    its binary :class:`pulp.LpVariable`.
    """

    model = pulp.LpProblem("massive_match", pulp.LpMinimize)
    variables: Dict[str, pulp.LpVariable] = {
        var: pulp.LpVariable(var, lowBound=0, upBound=1, cat=pulp.LpBinary)
        for var in problem.variables
    }

    terms = [weight * variables[var] for var, weight in problem.weighted_terms() if var in variables]
    if terms:
        model += pulp.lpSum(terms)
    else:
        model += 0

    for constraint in problem.constraints:
        members = [variables[var] for var in constraint.variables if var in variables]
        lhs = pulp.lpSum(members)
        if constraint.operator is Operator.EQ:
            model += lhs == constraint.target, constraint.name
        elif constraint.operator is Operator.LE:
            model += lhs <= constraint.target, constraint.name
        elif constraint.operator is Operator.GE:
            model += lhs >= constraint.target, constraint.name
        else:  # pragma: no cover
            raise ValueError(f"Unknown constraint sense '{constraint.operator}'")

    return model, variables


_STATUS_MAP = {
    "Optimal": SolverStatus.OPTIMAL,
    "Feasible": SolverStatus.FEASIBLE,
    "Integer Feasible": SolverStatus.FEASIBLE,
    "Infeasible": SolverStatus.INFEASIBLE,
    "Unbounded": SolverStatus.MODEL_INVALID,
    "Undefined": SolverStatus.UNKNOWN,
    "Not Solved": SolverStatus.UNKNOWN,
}


def solve(
    problem: Problem,
    *,
    time_limit: Optional[float] = None,
    progress_callback: Optional[Any] = None,
) -> SolverResult:
    """Solve ``problem`` with HiGHS (or CBC) through PuLP."""

    model, variables = build_model(problem)
    solver = _make_solver(time_limit)
    model.solve(solver)
    status_str = pulp.LpStatus.get(model.status, "Undefined")
    status = _STATUS_MAP.get(status_str, SolverStatus.UNKNOWN)

    selected: List[str] = []
    progress: List[str] = []
    objective_value: Optional[float] = None
    if status in (SolverStatus.OPTIMAL, SolverStatus.FEASIBLE):
        selected = [var for var, lp_var in variables.items() if _value(lp_var) > 0.5]
        objective_value = pulp.value(model.objective)
        if objective_value is None:
            objective_value = 0.0
        message = f"PuLP solution: status={status_str}, objective={objective_value:.2f}"
    else:
        message = f"PuLP solution: status={status_str}"
    progress.append(message)
    if progress_callback is not None:
        progress_callback(message)
    logger.info(message)

    return SolverResult(
        status=status,
        selected=selected,
        progress=progress,
        raw_status=status_str,
        objective_value=objective_value,
    )


__all__ = [
    "build_model",
    "solve",
]
