"""Backend that shells out to the ``lp_solve`` command-line solver.

The problem is written to a temporary ``.lp`` file, ``lp_solve`` is run on it
synchronously and its standard output is parsed for the variables set to 1.
The temporary file is removed whatever the outcome.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
import tempfile
from typing import Callable, Iterable, List, Optional, Set

from .api import SolverResult, SolverStatus
from .problem import Problem
from .variables import VARIABLE_PATTERN


logger = logging.getLogger(__name__)

EXECUTABLE_ENV = "MASSIVE_MATCH_LP_SOLVE"
DEFAULT_EXECUTABLE = "lp_solve"
INFEASIBLE_MARKER = "this problem is infeasible"
UNBOUNDED_MARKER = "this problem is unbounded"
SOLUTION_HEADER = "actual values of the variables"

_VALUE_LINE = re.compile(r"^\s*(?P<var>\S+)\s+(?P<value>\S+)\s*$")


def executable_path(executable: Optional[str] = None) -> str:
    return executable or os.environ.get(EXECUTABLE_ENV) or DEFAULT_EXECUTABLE


def available(executable: Optional[str] = None) -> bool:
    """Return ``True`` when the lp_solve executable can be found."""

    return shutil.which(executable_path(executable)) is not None


def _is_one(token: str) -> bool:
    try:
        return abs(float(token) - 1.0) < 1e-6
    except ValueError:
        return False


def parse_output(text: str, variables: Optional[Iterable[str]] = None):
    """Classify lp_solve's output and collect the variables set to 1.

    Returns ``(status, selected)``.  Lines naming something other than a
    known variable (constraint rows, headers, zero values) are ignored.
    """

    lowered = text.lower()
    # status sentences come before the listing, which echoes row names
    preamble = lowered.split(SOLUTION_HEADER, 1)[0]
    status_lines = {line.strip().rstrip(".") for line in preamble.splitlines()}
    if INFEASIBLE_MARKER in status_lines:
        return SolverStatus.INFEASIBLE, []
    if UNBOUNDED_MARKER in status_lines:
        return SolverStatus.MODEL_INVALID, []

    known: Optional[Set[str]] = set(variables) if variables is not None else None
    selected: List[str] = []
    for line in text.splitlines():
        match = _VALUE_LINE.match(line)
        if not match:
            continue
        var = match.group("var")
        if not VARIABLE_PATTERN.fullmatch(var):
            continue
        if known is not None and var not in known:
            continue
        if _is_one(match.group("value")) and var not in selected:
            selected.append(var)

    if SOLUTION_HEADER not in lowered and not selected:
        return SolverStatus.UNKNOWN, []
    return SolverStatus.OPTIMAL, selected


def _run(command: List[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        command,
        capture_output=True,
        text=True,
        check=False,
    )


def solve(
    problem: Problem,
    *,
    time_limit: Optional[float] = None,
    progress_callback: Optional[Callable[[str], None]] = None,
    executable: Optional[str] = None,
) -> SolverResult:
    """Solve ``problem`` with lp_solve and return a :class:`SolverResult`."""

    binary = executable_path(executable)
    if shutil.which(binary) is None:
        raise RuntimeError(f"lp_solve executable '{binary}' is not available")

    command = [binary, "-S3"]
    if time_limit is not None:
        command += ["-timeout", str(max(1, int(time_limit)))]

    fd, path = tempfile.mkstemp(prefix="massive_match_", suffix=".lp")
    try:
        with os.fdopen(fd, "w") as handle:
            handle.write(problem.to_lp())
        logger.debug("Running %s on %s (%d variables)", binary, path, len(problem))
        proc = _run(command + [path])
    finally:
        if os.path.exists(path):
            os.remove(path)

    output = proc.stdout or ""
    status, selected = parse_output(output, problem.variables)
    # 0 = optimal, 1 = suboptimal, 2 = infeasible, 3 = unbounded
    if proc.returncode not in (0, 1, 2, 3) and status is SolverStatus.OPTIMAL:
        status, selected = SolverStatus.UNKNOWN, []
    elif proc.returncode == 1 and status is SolverStatus.OPTIMAL:
        status = SolverStatus.FEASIBLE

    raw_status = f"lp_solve exit code {proc.returncode}"
    progress: List[str] = []
    message = f"lp_solve solution: status={status.value}, selected={len(selected)}"
    progress.append(message)
    if proc.returncode not in (0, 1) and proc.stderr:
        progress.append(proc.stderr.strip())
    if progress_callback is not None:
        progress_callback(message)
    logger.info(message)

    return SolverResult(
        status=status,
        selected=selected,
        progress=progress,
        raw_status=raw_status,
    )


__all__ = [
    "available",
    "executable_path",
    "parse_output",
    "solve",
]
