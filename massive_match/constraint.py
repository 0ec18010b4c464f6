"""Linear constraints over binary match variables."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Collection, Dict, Iterable, List, Optional, Union

from .variables import VARIABLE_PATTERN


class Operator(str, Enum):
    """Comparison operators understood by every solver backend."""

    EQ = "="
    LE = "<="
    GE = ">="


# Strict comparisons become inclusive ones with the target moved by one.
_OPERATOR_ALIASES: Dict[str, tuple] = {
    "=": (Operator.EQ, 0),
    "==": (Operator.EQ, 0),
    "<=": (Operator.LE, 0),
    "=<": (Operator.LE, 0),
    ">=": (Operator.GE, 0),
    "=>": (Operator.GE, 0),
    "<": (Operator.LE, -1),
    ">": (Operator.GE, 1),
}


def normalize_operator(operator: Union[str, Operator], target: float):
    """Return ``(Operator, target)`` with strict operators rewritten."""

    if isinstance(operator, Operator):
        return operator, target
    key = str(operator).strip()
    if key not in _OPERATOR_ALIASES:
        choices = ", ".join(sorted(_OPERATOR_ALIASES))
        raise ValueError(f"Unknown constraint operator '{operator}'. Expected one of: {choices}.")
    normalized, shift = _OPERATOR_ALIASES[key]
    return normalized, target + shift


# Row names are written into LP text and echoed next to variable rows in
# lp_solve's listing.
_NAME_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_LP_KEYWORDS = frozenset(
    ["int", "bin", "sec", "sin", "free", "max", "min", "maximise", "maximize", "minimise", "minimize"]
)


def validate_name(name: str) -> str:
    """Return ``name`` if it can be used as a constraint row name."""

    if not isinstance(name, str) or not _NAME_PATTERN.fullmatch(name):
        raise ValueError(
            f"Constraint name {name!r} must start with a letter or underscore and "
            "contain only letters, digits and underscores."
        )
    if VARIABLE_PATTERN.fullmatch(name):
        raise ValueError(f"Constraint name {name!r} collides with a variable identifier.")
    if name.lower() in _LP_KEYWORDS:
        raise ValueError(f"Constraint name {name!r} is a reserved LP keyword.")
    return name


class ConstraintNamer:
    """Hands out ``<prefix>0``, ``<prefix>1``, ... for one matching session."""

    def __init__(self, prefix: str = "constraint", reserved: Iterable[str] = ()):
        self.prefix = prefix
        self._next = 0
        self._reserved = frozenset(reserved)
        self._taken: set = set(self._reserved)

    def __call__(self) -> str:
        while True:
            name = f"{self.prefix}{self._next}"
            self._next += 1
            if name not in self._taken:
                self._taken.add(name)
                return name

    def claim(self, name: str) -> str:
        """Reserve a caller-chosen name; a name may only be used once."""

        validate_name(name)
        if name in self._taken:
            raise ValueError(f"Constraint name '{name}' is already in use.")
        self._taken.add(name)
        return name

    @property
    def taken(self) -> frozenset:
        return frozenset(self._taken)

    def reset(self) -> None:
        self._next = 0
        self._taken = set(self._reserved)


@dataclass
class Constraint:
    """``sum(variables) <operator> target``.

    ``variables`` may repeat an identifier; each occurrence counts once more
    towards the sum.  A ``flexible`` GE constraint lowers its target to the
    number of variables it ends up with, so it never asks for more matches
    than can exist.
    """

    variables: List[str]
    operator: Operator
    target: float
    name: Optional[str] = None
    flexible: bool = False

    def __post_init__(self) -> None:
        self.variables = list(self.variables)
        self.operator, self.target = normalize_operator(self.operator, self.target)

    @classmethod
    def from_spec(cls, spec: Dict[str, Any]) -> "Constraint":
        """Build a constraint from a mapping such as ``{"vars": [...], "operator": ">=", "target": 1}``."""

        variables = spec.get("variables", spec.get("vars"))
        if variables is None:
            raise ValueError("Constraint spec requires 'variables'.")
        if "operator" not in spec or "target" not in spec:
            raise ValueError("Constraint spec requires 'operator' and 'target'.")
        return cls(
            variables=list(variables),
            operator=spec["operator"],
            target=spec["target"],
            name=spec.get("name"),
            flexible=bool(spec.get("flexible", False)),
        )

    def finalize(self, universe: Optional[Collection[str]] = None) -> Optional["Constraint"]:
        """Return the constraint as it should be serialized, or ``None`` to drop it.

        The stored constraint is left untouched so every solve starts from the
        variables that were originally given.
        """

        variables = self.variables
        if universe is not None:
            variables = [var for var in variables if var in universe]
        if not variables:
            return None
        target = self.target
        if self.flexible and self.operator is Operator.GE:
            target = min(target, len(variables))
        return replace(self, variables=variables, target=target)

    def to_lp(self) -> str:
        lhs = " ".join(f"+{var}" for var in self.variables)
        prefix = f"{self.name}: " if self.name else ""
        return f"{prefix}{lhs} {self.operator.value} {format_number(self.target)};"


def format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


__all__ = [
    "Constraint",
    "ConstraintNamer",
    "Operator",
    "format_number",
    "normalize_operator",
    "validate_name",
]
