"""Combinatorial matching over named collections, solved as binary programs."""

from .api import (
    SolverResult,
    SolverStatus,
    available_backends,
    default_backend,
    get_backend,
    register_backend,
    solve_problem,
)
from .constraint import Constraint, ConstraintNamer, Operator
from .errors import InfeasibleProblem, InvalidCountSpec, MatchError, UnknownElement
from .problem import Problem
from .result import ResultSet
from .rules import Bounded, Exact
from .tuple_match import InclusionComposer, TupleMatch
from .variables import IndexTable, SubsetView, VariableSpace

__version__ = "0.2.0"

__all__ = [
    "Bounded",
    "Constraint",
    "ConstraintNamer",
    "Exact",
    "InclusionComposer",
    "IndexTable",
    "InfeasibleProblem",
    "InvalidCountSpec",
    "MatchError",
    "Operator",
    "Problem",
    "ResultSet",
    "SolverResult",
    "SolverStatus",
    "SubsetView",
    "TupleMatch",
    "UnknownElement",
    "VariableSpace",
    "available_backends",
    "default_backend",
    "get_backend",
    "register_backend",
    "solve_problem",
]
