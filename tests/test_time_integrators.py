import numpy as np
import pytest

from de_convergence.core.time_integrators import (
    TABLEAUX, dense_eval, get_tableau, rk_step, tableau_defects,
)
from de_convergence.runner import solve_fixed_step


def f(t, y, p):
    """ODE: y' = -k y"""
    return -p["k"] * y


@pytest.mark.parametrize("name", sorted(TABLEAUX))
def test_tableau_is_consistent(name):
    tab = TABLEAUX[name]
    row_sum, continuity = tableau_defects(tab)
    assert row_sum < 1e-12
    assert continuity < 1e-12
    assert abs(sum(tab.b) - 1.0) < 1e-12
    assert np.allclose(tab.dense_weights(0.0), 0.0)


def test_generic_step_matches_hand_written_rk4():
    def rhs(u, t):
        return -2.0 * u + np.sin(t)

    u = np.array([1.0, -0.5])
    t, dt = 0.3, 0.1
    k1 = rhs(u, t)
    k2 = rhs(u + 0.5 * dt * k1, t + 0.5 * dt)
    k3 = rhs(u + 0.5 * dt * k2, t + 0.5 * dt)
    k4 = rhs(u + dt * k3, t + dt)
    expected = u + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)
    got, K = rk_step(u, rhs, t, dt, get_tableau("rk4"))
    assert K.shape == (4, 2)
    assert np.allclose(got, expected, atol=1e-15, rtol=0.0)


def test_dense_eval_hits_both_ends_of_the_step():
    def rhs(u, t):
        return np.cos(t) * u

    tab = get_tableau("dopri5")
    u = np.array([1.0])
    u_next, K = rk_step(u, rhs, 0.0, 0.2, tab)
    assert np.allclose(dense_eval(u, K, 0.2, 0.0, tab), u)
    assert np.allclose(dense_eval(u, K, 0.2, 1.0, tab), u_next, atol=1e-14)


def test_exponential_decay_rk4_converges():
    """
    y' = -k y with y(0)=1, exact solution y(T)=exp(-kT).
    Check that RK4 global error decreases ~ O(h^4).
    """
    k = 2.0
    T = 2.0
    y0 = np.array([1.0])
    exact = np.exp(-k * T)

    dt1 = 1e-2
    dt2 = dt1 / 2

    sol1 = solve_fixed_step(f, t_span=(0.0, T), y0=y0, dt=dt1,
                            method="rk4", params={"k": k})
    sol2 = solve_fixed_step(f, t_span=(0.0, T), y0=y0, dt=dt2,
                            method="rk4", params={"k": k})

    err1 = abs(sol1.y[-1, 0] - exact)
    err2 = abs(sol2.y[-1, 0] - exact)

    # RK4 is 4th order => halving dt should reduce error by ~16x.
    assert err2 < err1 / 8.0, f"Expected >=8x reduction, got {err1=}, {err2=}"


@pytest.mark.parametrize("name", sorted(TABLEAUX))
def test_observed_order_matches_table(name):
    tab = TABLEAUX[name]
    errs = []
    for dt in (0.2, 0.1):
        sol = solve_fixed_step(f, t_span=(0.0, 1.0), y0=[1.0], dt=dt,
                               method=name, params={"k": 1.0})
        errs.append(abs(sol.y[-1, 0] - np.exp(-1.0)))
    observed = np.log2(errs[0] / errs[1])
    assert observed > tab.order - 0.5, f"{name}: observed order {observed:.2f}"


@pytest.mark.parametrize("alias,name", [
    ("RK4", "classic4"),
    ("rk-45", "dopri5"),
    ("heun", "heun2"),
    ("Euler", "euler"),
    ("ssp_rk3", "ssp3"),
])
def test_aliases_resolve(alias, name):
    assert get_tableau(alias).name == name


def test_unknown_method_raises():
    with pytest.raises(ValueError, match="Unknown method"):
        get_tableau("rk99")
