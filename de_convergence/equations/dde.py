from __future__ import annotations

import math
from typing import Any, Callable, Mapping, Optional, Sequence

import numpy as np

from de_convergence.equations.base import AnalyticSolution, check_solutions
from de_convergence.runner import DenseOutput, Solution, solve_fixed_step


class DDEModel:
    """
    Delay differential equation y'(t) = f(t, y(t), p, x) with a constant
    delay tau, where x(s) is the continuous history of the run. The history
    for t <= 0 is the reference analytic solution itself.
    """

    def __init__(
        self,
        rhs: Callable[..., np.ndarray],
        tau: float,
        analytic_solutions: Sequence[AnalyticSolution],
        method: str = "rk4",
        params: Optional[Mapping[str, Any]] = None,
        name: str = "dde",
    ):
        if not tau > 0.0:
            raise ValueError(f"delay tau must be positive, got {tau}")
        self.rhs = rhs
        self.tau = float(tau)
        self.analytic_solutions = check_solutions(analytic_solutions)
        self.method = method
        self.params = {**dict(params or {}), "tau": self.tau}
        self.name = name

    def solution(
        self,
        h: float,
        t_finish: float,
        reference: AnalyticSolution,
        dense: Optional[DenseOutput] = None,
    ) -> Solution:
        return solve_fixed_step(
            self.rhs,
            t_span=(0.0, t_finish),
            y0=reference(0.0),
            dt=h,
            method=self.method,
            params=self.params,
            dense=dense,
            initial=reference,
        )

    def __repr__(self) -> str:
        return f"DDEModel({self.name!r}, tau={self.tau}, method={self.method!r})"


def rhs_linear_delay(t, y, p, x):
    """x'(t) = a x(t) + b x(t - tau)"""
    return p["a"] * y + p["b"] * x(t - p["tau"])


def dde_lin_1_sin(params: Mapping[str, Any], method: str = "rk4") -> DDEModel:
    """
    Coefficients chosen so that sin(k t) solves the equation:
    a = k / tan(k tau), b = -k / sin(k tau).
    """
    k = float(params.get("k", 1.0))
    tau = float(params.get("tau", 1.0))
    if math.isclose(math.sin(k * tau), 0.0, abs_tol=1e-12):
        raise ValueError(f"dde_lin_1_sin needs sin(k*tau) != 0 (k={k}, tau={tau})")
    a = k / math.tan(k * tau)
    b = -k / math.sin(k * tau)
    sol = AnalyticSolution(lambda t: [math.sin(k * t)], name="sin(k t)")
    return DDEModel(rhs_linear_delay, tau, [sol], method, {"a": a, "b": b}, name="dde_lin_1_sin")
