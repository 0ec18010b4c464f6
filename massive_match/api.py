"""Public abstractions for interacting with solver backends."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from importlib import import_module
from types import ModuleType
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from .errors import InfeasibleProblem

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from .problem import Problem


logger = logging.getLogger(__name__)


class SolverStatus(str, Enum):
    """Enum representing the high-level result of a solver invocation."""

    OPTIMAL = "OPTIMAL"
    FEASIBLE = "FEASIBLE"
    INFEASIBLE = "INFEASIBLE"
    UNKNOWN = "UNKNOWN"
    MODEL_INVALID = "MODEL_INVALID"


@dataclass
class SolverResult:
    """Container encapsulating solver outputs and auxiliary metadata."""

    status: SolverStatus
    selected: List[str]
    progress: List[str] = field(default_factory=list)
    raw_status: Any = None
    objective_value: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.status in (SolverStatus.OPTIMAL, SolverStatus.FEASIBLE)


_BACKEND_REGISTRY: Dict[str, str] = {}
_FALLBACK_BACKEND = "pulp"
_PREFERRED_BACKEND = "lp_solve"


def register_backend(identifier: str, module_path: str) -> None:
    """Register a solver backend import path under ``identifier``."""

    _BACKEND_REGISTRY[identifier.lower()] = module_path


def available_backends() -> List[str]:
    """Return the list of registered backend identifiers."""

    return sorted(_BACKEND_REGISTRY)


def default_backend() -> str:
    """``lp_solve`` when its executable can be found, otherwise ``pulp``."""

    module = import_module(_BACKEND_REGISTRY[_PREFERRED_BACKEND])
    if module.available():
        return _PREFERRED_BACKEND
    return _FALLBACK_BACKEND


def _resolve_backend_name(identifier: Optional[str]) -> str:
    key = (identifier or default_backend()).lower()
    if key not in _BACKEND_REGISTRY:
        available = ", ".join(available_backends()) or "none"
        raise ValueError(f"Unknown solver backend '{identifier}'. Available options: {available}.")
    return key


def get_backend(identifier: Optional[str] = None) -> ModuleType:
    """Return the module implementing the requested solver backend."""

    key = _resolve_backend_name(identifier)
    return import_module(_BACKEND_REGISTRY[key])


def solve_problem(
    problem: "Problem",
    *,
    backend: Optional[str] = None,
    time_limit: Optional[float] = None,
    progress_callback: Optional[Callable[[str], None]] = None,
) -> SolverResult:
    """Solve ``problem`` with the selected backend and return its :class:`SolverResult`."""

    backend_module = get_backend(backend)
    solver = getattr(backend_module, "solve", None)
    if solver is None:
        name = backend or default_backend()
        raise ValueError(f"Backend '{name}' does not expose a solve() function.")
    return solver(problem, time_limit=time_limit, progress_callback=progress_callback)


def require_solution(result: SolverResult) -> List[str]:
    """Return the selected identifiers, raising :class:`InfeasibleProblem` otherwise."""

    if not result.ok:
        logger.info("Solver finished without a usable assignment: %s", result.raw_status)
        raise InfeasibleProblem(
            f"No valid matching exists (solver status: {result.status.value}).",
            result,
        )
    return list(result.selected)


register_backend("lp_solve", "massive_match.lp_solve_backend")
register_backend("pulp", "massive_match.pulp_backend")
register_backend("ortools", "massive_match.ortools_backend")


__all__ = [
    "SolverResult",
    "SolverStatus",
    "available_backends",
    "default_backend",
    "get_backend",
    "register_backend",
    "require_solution",
    "solve_problem",
]
