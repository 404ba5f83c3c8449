import numpy as np
import pytest

from de_convergence.runner import DenseHistory, DenseOutput, Solution, solve_fixed_step
from de_convergence.core.time_integrators import get_tableau


def f_zero(t, u, p):
    return np.zeros_like(u)


def f_linear_decay(t, u, p):
    lam = p.get("lam", 1.0)
    return -lam * u


def test_dense_output_has_requested_count_over_the_whole_interval():
    sol = solve_fixed_step(f_linear_decay, t_span=(0.0, 2.0), y0=[1.0], dt=0.3,
                           method="rk4", dense=DenseOutput(57))
    assert len(sol) == 57
    assert sol.y.shape == (57, 1)
    assert sol.t[0] == 0.0
    assert sol.t[-1] == pytest.approx(2.0, abs=1e-12)
    assert np.all(np.diff(sol.t) > 0.0)


def test_dense_samples_follow_the_exact_solution():
    sol = solve_fixed_step(f_linear_decay, t_span=(0.0, 1.0), y0=[1.0], dt=0.05,
                           method="dopri5", params={"lam": 1.0}, dense=DenseOutput(101))
    assert np.allclose(sol.y[:, 0], np.exp(-sol.t), atol=1e-6)


def test_runner_keeps_constant_state():
    N = 16
    x = np.linspace(0.0, 1.0, N, endpoint=False)
    u0 = np.sin(2 * np.pi * x)

    sol = solve_fixed_step(f_zero, t_span=(0.0, 0.01), y0=u0, dt=1e-3,
                           method="rk4", save_every=5)

    assert np.allclose(sol.y[-1], u0, atol=1e-12)
    assert sol.meta["steps"] == 10
    assert sol.meta["method"] == "classic4"


def test_runner_reproducible_with_same_params():
    kwargs = dict(t_span=(0.0, 0.05), y0=np.cos(np.linspace(0.0, 1.0, 8)), dt=1e-3,
                  method="rk4", params={"lam": 0.25}, dense=DenseOutput(30))
    sol1 = solve_fixed_step(f_linear_decay, **kwargs)
    sol2 = solve_fixed_step(f_linear_decay, **kwargs)

    assert np.array_equal(sol1.t, sol2.t)
    assert np.array_equal(sol1.y, sol2.y)


def test_last_step_lands_on_the_final_time():
    sol = solve_fixed_step(f_linear_decay, t_span=(0.0, 1.0), y0=[1.0], dt=0.3)
    assert sol.t[-1] == pytest.approx(1.0, abs=1e-12)
    assert sol.meta["steps"] == 4


def test_callback_stops_early():
    sol = solve_fixed_step(f_linear_decay, t_span=(0.0, 1.0), y0=[1.0], dt=0.1,
                           callbacks=[lambda t, y, meta: meta["step"] >= 3])
    assert sol.meta["steps"] == 3
    assert sol.t[-1] == pytest.approx(0.3)


def test_blow_up_is_reported():
    with pytest.raises(FloatingPointError):
        solve_fixed_step(lambda t, y, p: y * y, t_span=(0.0, 10.0), y0=[1.0], dt=0.5)


@pytest.mark.parametrize("kwargs", [
    dict(t_span=(0.0, 1.0), dt=0.0),
    dict(t_span=(0.0, 1.0), dt=-0.1),
    dict(t_span=(1.0, 1.0), dt=0.1),
    dict(t_span=(0.0, 1.0), dt=0.1, save_every=0),
])
def test_invalid_arguments_raise(kwargs):
    with pytest.raises(ValueError):
        solve_fixed_step(f_zero, y0=[1.0], **kwargs)


def test_dense_request_needs_two_points():
    with pytest.raises(ValueError):
        DenseOutput(1)


def test_solution_pairs_times_and_states():
    with pytest.raises(ValueError):
        Solution(t=[0.0, 1.0], y=[[1.0]])
    times, states = Solution(t=[0.0, 1.0], y=[[1.0], [2.0]])
    assert times.shape == (2,) and states.shape == (2, 1)


def test_history_uses_initial_function_before_start():
    hist = DenseHistory(0.0, lambda t: [np.sin(t)], get_tableau("rk4"))
    assert np.allclose(hist(-0.5), np.sin(-0.5))
    # no steps yet: later times hold the state at t0
    assert np.allclose(hist(0.7), np.sin(0.0))
    assert len(hist) == 0 and hist.t_end == 0.0
