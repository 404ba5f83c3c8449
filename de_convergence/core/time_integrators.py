from dataclasses import dataclass
from fractions import Fraction
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np
from numpy.polynomial import polynomial as P


@dataclass(frozen=True)
class ButcherTableau:
    """
    Explicit Runge-Kutta table with a continuous extension.

    a[i] holds the i coefficients of stage i (lower-triangular rows),
    bi[i] holds ascending polynomial coefficients of b_i(theta), so that
    u(t + theta*dt) ~ u + dt * sum_i b_i(theta) k_i.
    """
    name: str
    order: int
    order_interpolant: int
    a: Tuple[Tuple[float, ...], ...]
    b: Tuple[float, ...]
    c: Tuple[float, ...]
    bi: Tuple[Tuple[float, ...], ...]

    @property
    def stages(self) -> int:
        return len(self.b)

    def dense_weights(self, theta: float) -> np.ndarray:
        return np.array([P.polyval(theta, coef) for coef in self.bi])


def _f(*values) -> Tuple[float, ...]:
    return tuple(float(Fraction(v)) if isinstance(v, str) else float(v) for v in values)


# order 2, linear interpolation, alpha is the second node
def _rk2(name: str, alpha: float) -> ButcherTableau:
    b = (1.0 - 0.5 / alpha, 0.5 / alpha)
    return ButcherTableau(
        name=name, order=2, order_interpolant=1,
        a=((), (alpha,)),
        b=b,
        c=(0.0, alpha),
        bi=((0.0, b[0]), (0.0, b[1])),
    )


# order 3, linear interpolation, nodes (0, alpha, beta)
def _rk3(name: str, alpha: float, beta: float) -> ButcherTableau:
    denom = 3.0 * alpha - 2.0
    a20 = (beta / alpha) * (beta - 3.0 * alpha * (1.0 - alpha)) / denom
    a21 = (beta / alpha) * (alpha - beta) / denom
    b = (
        1.0 - (3.0 * alpha + 3.0 * beta - 2.0) / (6.0 * alpha * beta),
        (3.0 * beta - 2.0) / (6.0 * alpha * (beta - alpha)),
        (2.0 - 3.0 * alpha) / (6.0 * beta * (beta - alpha)),
    )
    return ButcherTableau(
        name=name, order=3, order_interpolant=1,
        a=((), (alpha,), (a20, a21)),
        b=b,
        c=(0.0, alpha, beta),
        bi=tuple((0.0, bk) for bk in b),
    )


EULER = ButcherTableau(
    name="euler", order=1, order_interpolant=1,
    a=((),), b=(1.0,), c=(0.0,), bi=((0.0, 1.0),),
)

MIDPOINT = _rk2("midpoint", 0.5)
HEUN2 = _rk2("heun2", 1.0)
RALSTON2 = _rk2("ralston2", 2.0 / 3.0)

KUTTA3 = _rk3("kutta3", 0.5, 1.0)
HEUN3 = _rk3("heun3", 1.0 / 3.0, 2.0 / 3.0)
RALSTON3 = _rk3("ralston3", 0.5, 0.75)
WRAY3 = _rk3("wray3", 8.0 / 15.0, 2.0 / 3.0)
SSP3 = _rk3("ssp3", 1.0, 0.5)

_CLASSIC4_BI = (
    (0.0, 1.0, -1.5, 2.0 / 3.0),
    (0.0, 0.0, 1.0, -2.0 / 3.0),
    (0.0, 0.0, 1.0, -2.0 / 3.0),
    (0.0, 0.0, -0.5, 2.0 / 3.0),
)

CLASSIC4 = ButcherTableau(
    name="classic4", order=4, order_interpolant=3,
    a=((), (0.5,), (0.0, 0.5), (0.0, 0.0, 1.0)),
    b=_f("1/6", "1/3", "1/3", "1/6"),
    c=(0.0, 0.5, 0.5, 1.0),
    bi=_CLASSIC4_BI,
)

# Zonneveld 4(3): classic RK4 plus a fifth stage for the embedded pair
CLASSIC43 = ButcherTableau(
    name="classic43", order=4, order_interpolant=3,
    a=((), (0.5,), (0.0, 0.5), (0.0, 0.0, 1.0), _f("5/32", "7/32", "13/32", "-1/32")),
    b=_f("1/6", "1/3", "1/3", "1/6", 0),
    c=(0.0, 0.5, 0.5, 1.0, 0.75),
    bi=_CLASSIC4_BI + ((0.0,),),
)

# Dormand-Prince 5(4) with its fourth order continuous extension
DOPRI5 = ButcherTableau(
    name="dopri5", order=5, order_interpolant=4,
    a=(
        (),
        _f("1/5"),
        _f("3/40", "9/40"),
        _f("44/45", "-56/15", "32/9"),
        _f("19372/6561", "-25360/2187", "64448/6561", "-212/729"),
        _f("9017/3168", "-355/33", "46732/5247", "49/176", "-5103/18656"),
        _f("35/384", 0, "500/1113", "125/192", "-2187/6784", "11/84"),
    ),
    b=_f("35/384", 0, "500/1113", "125/192", "-2187/6784", "11/84", 0),
    c=_f(0, "1/5", "3/10", "4/5", "8/9", 1, 1),
    bi=(
        _f(0, 1, "-8048581381/2820520608", "8663915743/2820520608", "-12715105075/11282082432"),
        (0.0,),
        _f(0, 0, "131558114200/32700410799", "-68118460800/10900136933", "87487479700/32700410799"),
        _f(0, 0, "-1754552775/470086768", "14199869525/1410260304", "-10690763975/1880347072"),
        _f(0, 0, "127303824393/49829197408", "-318862633887/49829197408", "701980252875/199316789632"),
        _f(0, 0, "-282668133/205662961", "2019193451/616988883", "-1453857185/822651844"),
        _f(0, 0, "40617522/29380423", "-110615467/29380423", "69997945/29380423"),
    ),
)

TABLEAUX: Dict[str, ButcherTableau] = {
    tab.name: tab
    for tab in (EULER, MIDPOINT, HEUN2, RALSTON2, KUTTA3, HEUN3, RALSTON3,
                WRAY3, SSP3, CLASSIC4, CLASSIC43, DOPRI5)
}

_ALIASES = {
    "rk1": "euler",
    "rk2": "heun2", "heun": "heun2", "ralston": "ralston2",
    "rk3": "kutta3", "ssprk3": "ssp3",
    "rk4": "classic4", "classic": "classic4", "zonneveld": "classic43",
    "rk5": "dopri5", "dp5": "dopri5", "rk45": "dopri5", "dormandprince": "dopri5",
}


def get_tableau(method: str) -> ButcherTableau:
    """Resolve a method name (case-insensitive, '-'/'_' ignored for aliases)."""
    name = str(method).strip().lower()
    if name in TABLEAUX:
        return TABLEAUX[name]
    key = name.replace("-", "").replace("_", "")
    if key in _ALIASES:
        return TABLEAUX[_ALIASES[key]]
    valid = ", ".join(sorted(TABLEAUX))
    raise ValueError(f"Unknown method '{method}'. Use one of: {valid}.")


def rk_stages(u, rhs_func, t, dt, tableau: ButcherTableau) -> np.ndarray:
    """Stage derivatives K with shape (s, *u.shape) for rhs_func(u, t)."""
    u = np.asarray(u, dtype=float)
    K = np.empty((tableau.stages,) + u.shape, dtype=float)
    for i, (ci, row) in enumerate(zip(tableau.c, tableau.a)):
        ui = u
        for j, aij in enumerate(row):
            if aij != 0.0:
                ui = ui + dt * aij * K[j]
        K[i] = rhs_func(ui, t + ci * dt)
    return K


def rk_step(
    u,
    rhs_func: Callable,
    t: float,
    dt: float,
    tableau: ButcherTableau,
    diagnostics_fn: Optional[Callable] = None,
):
    if diagnostics_fn: diagnostics_fn(u, t)
    K = rk_stages(u, rhs_func, t, dt, tableau)
    u_next = np.asarray(u, dtype=float) + dt * np.tensordot(np.asarray(tableau.b), K, axes=1)
    return u_next, K


def dense_eval(u, K: np.ndarray, dt: float, theta: float, tableau: ButcherTableau) -> np.ndarray:
    """Continuous extension of a step from u over dt, evaluated at fraction theta."""
    w = tableau.dense_weights(theta)
    return np.asarray(u, dtype=float) + dt * np.tensordot(w, K, axes=1)


def tableau_defects(tableau: ButcherTableau) -> Tuple[float, float]:
    """
    Return (max |c_i - sum_j a_ij|, max |b_i(1) - b_i|) for a table.
    Both should vanish up to rounding for a consistent table.
    """
    row_sum = max(abs(ci - sum(row)) for ci, row in zip(tableau.c, tableau.a))
    w1 = tableau.dense_weights(1.0)
    continuity = float(np.max(np.abs(w1 - np.asarray(tableau.b))))
    return float(row_sum), continuity


__all__: Sequence[str] = [
    "ButcherTableau", "TABLEAUX", "get_tableau", "rk_stages", "rk_step",
    "dense_eval", "tableau_defects",
]
