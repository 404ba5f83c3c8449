from __future__ import annotations

import math
from typing import Any, Callable, Mapping, Optional, Sequence

import numpy as np

from de_convergence.equations.base import AnalyticSolution, check_solutions
from de_convergence.runner import DenseOutput, Solution, solve_fixed_step


class RelayModel:
    """
    Relay (switching) system: the right-hand side reads p["branch"], the
    sign of switch(t, y) on the current side, and the solver steps exactly
    onto every sign change of switch(t, y).
    """

    def __init__(
        self,
        rhs: Callable[..., np.ndarray],
        switch: Callable[[float, np.ndarray], float],
        analytic_solutions: Sequence[AnalyticSolution],
        method: str = "rk4",
        params: Optional[Mapping[str, Any]] = None,
        name: str = "relay",
    ):
        self.rhs = rhs
        self.switch = switch
        self.analytic_solutions = check_solutions(analytic_solutions)
        self.method = method
        self.params = dict(params or {})
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
            switch=self.switch,
        )

    def __repr__(self) -> str:
        return f"RelayModel({self.name!r}, method={self.method!r})"


def rhs_relay_msign(t, y, p):
    """(x, dx)' = (dx, -g sign x), with sign x held as p["branch"]"""
    return np.array([y[1], -p["gain"] * p["branch"]])


def switch_position(t, y):
    return y[0]


def relay_wave(t: float, shift: float = 0.5):
    """
    Piecewise-parabolic solution of x'' = -2 sign x: zeros at t + shift
    integer, alternating sign on consecutive unit intervals.
    """
    s = t + shift
    fl = math.floor(s)
    sgn = -1.0 if (0.5 * s) % 1.0 < 0.5 else 1.0
    return [sgn * (s - fl) * (s - fl - 1.0), sgn * (2.0 * (s - fl) - 1.0)]


def ode2_relay_msign(params: Mapping[str, Any], method: str = "rk4") -> RelayModel:
    sol = AnalyticSolution(relay_wave, name="relay wave")
    return RelayModel(
        rhs_relay_msign, switch_position, [sol], method, {"gain": 2.0}, name="ode2_relay_msign"
    )
