from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Sequence, runtime_checkable

import numpy as np

from de_convergence.runner import DenseOutput, Solution


class AnalyticSolution:
    """
    Closed-form solution t -> state used as ground truth.

    eval_series keeps the order and length of the times it is given, one row
    per time, so the result lines up with a dense trajectory sample by sample.
    """

    def __init__(self, fn: Callable[[float], Any], name: str = "analytic"):
        self.fn = fn
        self.name = name

    def __call__(self, t: float) -> np.ndarray:
        return np.atleast_1d(np.asarray(self.fn(float(t)), dtype=float))

    def eval_series(self, times: Sequence[float]) -> np.ndarray:
        times = np.asarray(times, dtype=float)
        if times.ndim != 1:
            raise ValueError(f"times must be one-dimensional, got shape {times.shape}")
        if times.size == 0:
            return np.empty((0, 0), dtype=float)
        return np.stack([self(tt) for tt in times], axis=0)

    def __repr__(self) -> str:
        return f"AnalyticSolution({self.name!r})"


@runtime_checkable
class EquationModel(Protocol):
    """Anything the convergence driver can sweep: a dense solver plus reference solutions."""

    analytic_solutions: Sequence[AnalyticSolution]

    def solution(
        self,
        h: float,
        t_finish: float,
        reference: AnalyticSolution,
        dense: Optional[DenseOutput] = None,
    ) -> Solution:
        ...


def check_solutions(solutions: Sequence[AnalyticSolution]) -> list:
    solutions = list(solutions)
    if not solutions:
        raise ValueError("an equation model needs at least one analytic solution")
    return solutions
