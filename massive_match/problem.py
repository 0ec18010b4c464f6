"""A composed binary program and its lp_solve text rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .constraint import Constraint, format_number


@dataclass
class Problem:
    """Minimise ``sum(weight * var)`` subject to ``constraints`` with every var in {0, 1}.

    ``variables`` is the active universe in a fixed order; ``objective`` holds
    the accumulated weight per identifier (zero weights are kept here but not
    rendered).  Constraints are already finalized.
    """

    variables: List[str]
    objective: Dict[str, float] = field(default_factory=dict)
    constraints: List[Constraint] = field(default_factory=list)

    def weighted_terms(self):
        return [(var, weight) for var, weight in self.objective.items() if weight != 0]

    def to_lp(self) -> str:
        """Render in lp_solve's LP format."""

        terms = " ".join(
            f"{'+' if weight >= 0 else '-'}{format_number(abs(weight))} {var}"
            for var, weight in self.weighted_terms()
        )
        lines = ["/* Objective function */", f"min: {terms};", ""]
        lines.append("/* Constraints */")
        lines.extend(constraint.to_lp() for constraint in self.constraints)
        lines.extend(f"{var} <= 1;" for var in self.variables)
        if self.variables:
            lines.append("")
            lines.append(f"int {','.join(self.variables)};")
        return "\n".join(lines) + "\n"

    def __len__(self) -> int:
        return len(self.variables)


__all__ = ["Problem"]
