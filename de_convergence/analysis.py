from typing import Sequence, Tuple

import numpy as np
from scipy import stats


def fit_convergence_order(
    hs: Sequence[float],
    errors: Sequence[float],
) -> Tuple[float, float, float]:
    """
    Fit the convergence order via linear regression on log-log scale.

    Points whose error is zero, negative or non-finite carry no slope
    information (errors at round-off level are exactly zero for some
    step sizes) and are left out of the fit.

    Parameters
    ----------
    hs : array_like
        Step sizes.
    errors : array_like
        Max-norm errors, errors[i] belonging to hs[i].

    Returns
    -------
    slope : float
        Observed order (slope on the log-log plot).
    intercept : float
        Y-intercept of log(error) against log(h).
    r_squared : float
        R² of the fit.
    """
    hs = np.asarray(hs, dtype=float)
    errors = np.asarray(errors, dtype=float)
    if hs.shape != errors.shape:
        raise ValueError(f"length mismatch: {hs.shape} step sizes vs {errors.shape} errors")

    keep = np.isfinite(errors) & (errors > 0.0) & np.isfinite(hs) & (hs > 0.0)
    if np.count_nonzero(keep) < 2:
        raise ValueError("need at least two positive finite errors to fit an order")

    log_h = np.log(hs[keep])
    log_err = np.log(errors[keep])

    slope, intercept, r_value, _, _ = stats.linregress(log_h, log_err)

    return float(slope), float(intercept), float(r_value ** 2)
