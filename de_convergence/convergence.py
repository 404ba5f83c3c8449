"""
Dense-output convergence sweep.

For every step size h of a log-spaced sweep, the model's dense reconstruction
over [0, t_finish] is compared with its first analytic solution evaluated at
exactly the same times; the error for h is the largest per-sample norm of
the difference. The sweep runs from the largest step size to the smallest,
sequentially, and any failure aborts it.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np

from de_convergence.equations.base import EquationModel
from de_convergence.runner import DenseOutput

logger = logging.getLogger(__name__)

H_MIN = 0.01
H_MAX = 1.0
N_STEPSIZES = 100
N_DENSE = 100


def expspace(lo: float, hi: float, n: int) -> np.ndarray:
    """
    n geometrically spaced values from lo to hi, both included:
    value[k] = lo * (hi/lo)**(k/(n-1)). For n == 1 the result is [lo].
    """
    if n < 1:
        raise ValueError(f"expspace needs n >= 1, got {n}")
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise ValueError(f"expspace bounds must be finite, got lo={lo}, hi={hi}")
    if lo <= 0.0 or hi <= 0.0:
        raise ValueError(f"expspace bounds must be positive, got lo={lo}, hi={hi}")
    if hi < lo:
        raise ValueError(f"expspace needs hi >= lo, got lo={lo}, hi={hi}")
    if n == 1:
        return np.array([float(lo)])
    k = np.arange(n, dtype=float)
    out = lo * (hi / lo) ** (k / (n - 1))
    out[0], out[-1] = lo, hi
    return out


def max_norm_error(
    numerical: Sequence,
    analytic: Sequence,
    norm: Optional[Callable[[np.ndarray], float]] = None,
) -> float:
    """
    Max over samples of norm(numerical[i] - analytic[i]).

    The default norm is the Euclidean norm of each sample. Both sequences
    must have the same length; a mismatch is an error, never a truncation.
    """
    if len(numerical) != len(analytic):
        raise ValueError(
            f"length mismatch: {len(numerical)} numerical samples vs {len(analytic)} analytic samples"
        )
    if len(numerical) == 0:
        return 0.0

    # one row per sample, so scalar states and 1-vectors compare pointwise
    num = np.asarray(numerical, dtype=float).reshape(len(numerical), -1)
    ref = np.asarray(analytic, dtype=float).reshape(len(analytic), -1)
    if num.shape != ref.shape:
        raise ValueError(
            f"sample shape mismatch: numerical {num.shape[1:]} vs analytic {ref.shape[1:]}"
        )
    diff = num - ref
    if norm is None:
        per_sample = np.linalg.norm(diff, axis=1)
    else:
        per_sample = np.array([float(norm(d)) for d in diff])
    return float(np.max(per_sample))


@dataclass
class ConvergenceResult:
    hs: np.ndarray          # step-size sequence
    errors: np.ndarray      # errors[i] belongs to hs[i]

    def __post_init__(self):
        self.hs = np.asarray(self.hs, dtype=float)
        self.errors = np.asarray(self.errors, dtype=float)
        if self.hs.shape != self.errors.shape:
            raise ValueError(
                f"step sizes and errors must pair up: {self.hs.shape} vs {self.errors.shape}"
            )

    def __len__(self) -> int:
        return len(self.hs)

    def __iter__(self):
        yield self.hs
        yield self.errors


def dense_error_sweep(
    model: EquationModel,
    t_finish: float,
    hs: Sequence[float],
    n_dense: int = N_DENSE,
    norm: Optional[Callable[[np.ndarray], float]] = None,
) -> ConvergenceResult:
    """Error of the model's dense output against analytic_solutions[0], one value per step size."""
    hs = np.asarray(hs, dtype=float)
    reference = model.analytic_solutions[0]
    request = DenseOutput(n_dense)
    errors = np.zeros(len(hs))

    # largest step sizes first
    order = np.argsort(hs, kind="stable")[::-1]
    for i in order:
        h = float(hs[i])
        times, states = model.solution(h, t_finish, reference, request)
        true_states = reference.eval_series(times)
        errors[i] = max_norm_error(states, true_states, norm=norm)
        logger.debug("h=%.6g samples=%d error=%.3e", h, len(times), errors[i])

    return ConvergenceResult(hs=hs, errors=errors)
