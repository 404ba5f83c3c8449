from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Any

import numpy as np
from scipy.optimize import brentq

from de_convergence.core import time_integrators as ti
from de_convergence.utils.diagnostic_manager import DiagnosticManager


@dataclass
class Solution:
    t: np.ndarray           # shape (Ns,)
    y: np.ndarray           # shape (Ns, dim)
    meta: Dict[str, Any] = field(default_factory=dict)   # method, dt, steps, events, elapsed

    def __post_init__(self):
        self.t = np.asarray(self.t, dtype=float)
        self.y = np.asarray(self.y, dtype=float)
        if len(self.t) != len(self.y):
            raise ValueError(
                f"Solution times and states must pair up: {len(self.t)} times vs {len(self.y)} states"
            )

    def __len__(self) -> int:
        return len(self.t)

    def __iter__(self):
        # allows: times, states = solution
        yield self.t
        yield self.y


@dataclass(frozen=True)
class DenseOutput:
    """Request for a dense reconstruction with n_points samples over the whole interval."""
    n_points: int = 100

    def __post_init__(self):
        if int(self.n_points) < 2:
            raise ValueError(f"DenseOutput needs at least 2 points, got {self.n_points}")


@dataclass
class _Step:
    t: float
    dt: float
    y: np.ndarray
    K: np.ndarray


class DenseHistory:
    """
    Continuous record of a fixed-step run.

    Calling it with a time t returns the state from the continuous extension
    of the step that contains t. Times at or before t0 come from the initial
    function; times after the last completed step extrapolate that step's
    interpolant, or hold the value at t0 while no step is complete (needed
    when the step is longer than a delay). The initial function is never
    evaluated after t0.
    """

    def __init__(self, t0: float, initial: Callable[[float], Any], tableau: ti.ButcherTableau):
        self.t0 = float(t0)
        self.initial = initial
        self.tableau = tableau
        self._starts: List[float] = []
        self._steps: List[_Step] = []

    def __len__(self) -> int:
        return len(self._steps)

    @property
    def t_end(self) -> float:
        if not self._steps:
            return self.t0
        last = self._steps[-1]
        return last.t + last.dt

    def append(self, t: float, dt: float, y: np.ndarray, K: np.ndarray) -> None:
        self._starts.append(float(t))
        self._steps.append(_Step(float(t), float(dt), np.array(y, copy=True), np.array(K, copy=True)))

    def __call__(self, t: float) -> np.ndarray:
        t = float(t)
        if t <= self.t0:
            return np.asarray(self.initial(t), dtype=float)
        if not self._steps:
            # nothing integrated yet: hold the state at t0
            return np.asarray(self.initial(self.t0), dtype=float)
        i = bisect_right(self._starts, t) - 1
        step = self._steps[max(i, 0)]
        theta = (t - step.t) / step.dt
        return ti.dense_eval(step.y, step.K, step.dt, theta, self.tableau)

    def sample(self, times: Iterable[float]) -> np.ndarray:
        return np.stack([self(tt) for tt in times], axis=0)


def _sign(value: float) -> float:
    return 1.0 if value >= 0.0 else -1.0


def _make_rhs(f, params, history):
    if history is None:
        def rhs(u, tt):
            return f(tt, u, params)
    else:
        def rhs(u, tt):
            return f(tt, u, params, history)
    return rhs


def _locate_switch(switch, t, dt, y, K, tableau, branch) -> Optional[float]:
    """
    Fraction theta in (0, 1] of the step where switch(t, y) leaves the side
    given by branch, or None when the step stays on that side.
    """
    def g(theta):
        return float(switch(t + theta * dt, ti.dense_eval(y, K, dt, theta, tableau)))

    g1 = g(1.0)
    if g1 == 0.0 or _sign(g1) == branch:
        return None
    g0 = g(0.0)
    if g0 == 0.0 or _sign(g0) != branch:
        # already across at the start of the step (rounding at a previous switch)
        return 0.0
    return float(brentq(g, 0.0, 1.0, xtol=1e-15, rtol=4 * np.finfo(float).eps))


def solve_fixed_step(
    f: Callable[..., np.ndarray],
    *,
    t_span: Tuple[float, float],
    y0: np.ndarray,
    dt: float,
    method: str = "rk4",
    params: Optional[Dict[str, Any]] = None,
    save_every: int = 1,
    dense: Optional[DenseOutput] = None,
    initial: Optional[Callable[[float], Any]] = None,
    switch: Optional[Callable[[float, np.ndarray], float]] = None,
    callbacks: Optional[Iterable[Callable[[float, np.ndarray, Dict[str, Any]], Optional[bool]]]] = None,
    diagnostics: Optional[DiagnosticManager] = None,
) -> Solution:
    """
    Fixed-step explicit Runge-Kutta integration with continuous output.

    f(t, y, params) is the right-hand side. With `initial` (a history
    function for t <= t0) the equation is treated as a delay equation and
    f(t, y, params, x) receives the continuous history x(s). With `switch`
    the equation is a relay system: params["branch"] holds the sign of
    switch(t, y) on the current side, switching times are located on the
    step interpolant and stepped onto exactly.

    Without `dense` the result holds every `save_every`-th step boundary and
    the final point. With `dense` it holds exactly dense.n_points samples at
    evenly spaced times over t_span.
    """
    if dt <= 0.0:
        raise ValueError("dt must be positive")

    t0, t1 = float(t_span[0]), float(t_span[1])
    if t1 <= t0:
        raise ValueError("t_span must satisfy t1 > t0")
    if save_every < 1:
        raise ValueError("save_every must be >= 1")

    tableau = ti.get_tableau(method)
    p = dict(params or {})
    cbs = list(callbacks) if callbacks is not None else []

    y = np.atleast_1d(np.array(y0, dtype=float, copy=True))
    t = t0

    if initial is None:
        y_start = np.array(y, copy=True)
        hist_initial = lambda _t: y_start
    else:
        hist_initial = initial
    history = DenseHistory(t0, hist_initial, tableau)
    rhs = _make_rhs(f, p, history if initial is not None else None)

    if switch is not None:
        p["branch"] = _sign(float(switch(t, y)))

    dm = diagnostics or DiagnosticManager()
    dm.reset()
    dm.start()

    t_hist: List[float] = [t]
    y_hist: List[np.ndarray] = [np.array(y, copy=True)]

    steps = 0
    events = 0
    while t < t1 - 1e-15:
        # Adjust last dt to land exactly on t1
        dt_eff = min(dt, t1 - t)

        y_next, K = ti.rk_step(y, rhs, t, dt_eff, tableau)

        if switch is not None:
            theta = _locate_switch(switch, t, dt_eff, y, K, tableau, p["branch"])
            if theta is not None:
                events += 1
                dt_event = theta * dt_eff
                if dt_event > 1e-15:
                    # redo the step so it ends on the switching time
                    y_next, K = ti.rk_step(y, rhs, t, dt_event, tableau)
                    dt_eff = dt_event
                else:
                    dt_eff = 0.0
                p["branch"] = -p["branch"]
                dm.record("last_switch_t", t + dt_eff)
                if dt_eff == 0.0:
                    continue

        if not np.all(np.isfinite(y_next)):
            raise FloatingPointError(
                f"Non-finite state at t={t + dt_eff:.6g} (method={tableau.name}, dt={dt:.6g})"
            )

        history.append(t, dt_eff, y, K)
        y = y_next
        t = t + dt_eff
        steps += 1
        dm.tick()

        # Save history
        if (steps % save_every) == 0 or t >= t1 - 1e-15:
            t_hist.append(t)
            y_hist.append(np.array(y, copy=True))

        # Callbacks can stop early
        if cbs:
            meta = {"step": steps, "t": t, "dt": dt_eff, "method": tableau.name}
            if any(bool(cb(t, y, meta)) for cb in cbs):
                break

    dm.stop()

    if dense is not None:
        T = np.linspace(t0, history.t_end, int(dense.n_points))
        Y = history.sample(T)
    else:
        T = np.asarray(t_hist, dtype=float)
        Y = np.stack(y_hist, axis=0)  # shape (Ns, dim)

    meta = {
        "method": tableau.name,
        "dt": float(dt),
        "steps": steps,
        "events": events,
        **dm.summary(),
    }
    return Solution(t=T, y=Y, meta=meta)
