"""Exception hierarchy shared by the matching engine and solver backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from .api import SolverResult


class MatchError(Exception):
    """Base class for every error raised by :mod:`massive_match`."""


class InfeasibleProblem(MatchError):
    """The solver could not produce a usable assignment.

    Raised for reported infeasibility as well as for unknown statuses or a
    solver process that died without printing a solution.  ``result`` holds
    the backend's :class:`~massive_match.api.SolverResult` when one exists.
    """

    def __init__(self, message: str, result: Optional["SolverResult"] = None):
        super().__init__(message)
        self.result = result


class InvalidCountSpec(MatchError, ValueError):
    """A per-element match count is neither an integer nor a closed range."""


class UnknownElement(MatchError, KeyError):
    """A partial specification names an unknown collection or element."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


__all__ = [
    "MatchError",
    "InfeasibleProblem",
    "InvalidCountSpec",
    "UnknownElement",
]
