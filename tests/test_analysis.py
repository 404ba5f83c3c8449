import numpy as np
import pytest

from de_convergence.analysis import fit_convergence_order
from de_convergence.convergence import expspace


@pytest.mark.parametrize("p", [1.0, 2.0, 4.0])
def test_power_law_recovers_order(p):
    hs = expspace(0.01, 1.0, 20)
    slope, intercept, r2 = fit_convergence_order(hs, 3.0 * hs ** p)
    assert slope == pytest.approx(p, abs=1e-10)
    assert intercept == pytest.approx(np.log(3.0), abs=1e-10)
    assert r2 == pytest.approx(1.0)


def test_zero_and_non_finite_errors_are_ignored():
    hs = expspace(0.01, 1.0, 6)
    errors = hs ** 2
    errors[0] = 0.0
    errors[-1] = np.nan
    slope, _, _ = fit_convergence_order(hs, errors)
    assert slope == pytest.approx(2.0)


def test_needs_two_usable_points():
    with pytest.raises(ValueError):
        fit_convergence_order([0.1, 0.2, 0.3], [0.0, 0.0, 1e-3])
