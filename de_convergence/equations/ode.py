from __future__ import annotations

import math
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import numpy as np

from de_convergence.equations.base import AnalyticSolution, check_solutions
from de_convergence.runner import DenseOutput, Solution, solve_fixed_step


class ODEModel:
    """Ordinary differential equation y' = f(t, y, p) integrated from t = 0."""

    def __init__(
        self,
        rhs: Callable[[float, np.ndarray, Dict[str, Any]], np.ndarray],
        analytic_solutions: Sequence[AnalyticSolution],
        method: str = "rk4",
        params: Optional[Mapping[str, Any]] = None,
        name: str = "ode",
    ):
        self.rhs = rhs
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
        # initial state taken from the reference solution
        return solve_fixed_step(
            self.rhs,
            t_span=(0.0, t_finish),
            y0=reference(0.0),
            dt=h,
            method=self.method,
            params=self.params,
            dense=dense,
        )

    def __repr__(self) -> str:
        return f"ODEModel({self.name!r}, method={self.method!r})"


# ---------- right-hand sides ----------

def rhs_linear(t, y, p):
    """x' = k x"""
    return p["k"] * y


def rhs_linear_cos(t, y, p):
    """x' = cos(t) x"""
    return np.cos(t) * y


def rhs_t_cos(t, y, p):
    """x' = cos(t)"""
    return np.full_like(y, np.cos(t))


def rhs_rotation(t, y, p):
    """(x, y)' = (-y, x)"""
    return np.array([-y[1], y[0]])


def rhs_oscillator(t, y, p):
    """(x, dx)' = (dx, -k^2 x)"""
    k = p["k"]
    return np.array([y[1], -k * k * y[0]])


def rhs_stable_cycle(t, y, p):
    a = 1.0 - (y[0] * y[0] + y[1] * y[1])
    w = p["omega"]
    return np.array([a * y[0] - w * y[1], w * y[0] + a * y[1]])


# ---------- builders: (params, method) -> ODEModel ----------

def ode_lin_1(params: Mapping[str, Any], method: str = "rk4") -> ODEModel:
    k = float(params.get("k", math.log(2.0)))
    sol = AnalyticSolution(lambda t: [math.exp(k * t)], name="exp(k t)")
    return ODEModel(rhs_linear, [sol], method, {"k": k}, name="ode_lin_1")


def ode_lin_m1(params: Mapping[str, Any], method: str = "rk4") -> ODEModel:
    sol = AnalyticSolution(lambda t: [math.exp(-t)], name="exp(-t)")
    return ODEModel(rhs_linear, [sol], method, {"k": -1.0}, name="ode_lin_m1")


def ode_lin_cos(params: Mapping[str, Any], method: str = "rk4") -> ODEModel:
    sol = AnalyticSolution(lambda t: [math.exp(math.sin(t))], name="exp(sin t)")
    return ODEModel(rhs_linear_cos, [sol], method, {}, name="ode_lin_cos")


def ode_t_cos(params: Mapping[str, Any], method: str = "rk4") -> ODEModel:
    sol = AnalyticSolution(lambda t: [math.sin(t)], name="sin t")
    return ODEModel(rhs_t_cos, [sol], method, {}, name="ode_t_cos")


def ode2_lin_i(params: Mapping[str, Any], method: str = "rk4") -> ODEModel:
    sols = [
        AnalyticSolution(lambda t: [math.cos(t), math.sin(t)], name="(cos t, sin t)"),
        AnalyticSolution(lambda t: [-math.sin(t), math.cos(t)], name="(-sin t, cos t)"),
    ]
    return ODEModel(rhs_rotation, sols, method, {}, name="ode2_lin_i")


def ode2_sin(params: Mapping[str, Any], method: str = "rk4") -> ODEModel:
    k = float(params.get("k", 0.5))
    sol = AnalyticSolution(lambda t: [math.sin(k * t), k * math.cos(k * t)], name="sin(k t)")
    return ODEModel(rhs_oscillator, [sol], method, {"k": k}, name="ode2_sin")


def ode2_stable_cycle(params: Mapping[str, Any], method: str = "rk4") -> ODEModel:
    omega = float(params.get("omega", 30.0))

    def cycle(t):
        # starts at radius 0.1 and relaxes onto the unit circle
        r = math.sqrt(1.0 + 99.0 * math.exp(-2.0 * t))
        return [math.cos(omega * t) / r, math.sin(omega * t) / r]

    sol = AnalyticSolution(cycle, name="stable cycle")
    return ODEModel(rhs_stable_cycle, [sol], method, {"omega": omega}, name="ode2_stable_cycle")
