from typing import Optional, Sequence, Union
import os
import numpy as np
import matplotlib.pyplot as plt

from matplotlib.figure import Figure

ArrayLike = Union[np.ndarray, Sequence[float]]

def _ensure_outdir(outdir: Optional[str]) -> None:
    if outdir:
        os.makedirs(outdir, exist_ok=True)

def _maybe_save(fig: Figure, outdir: Optional[str], fname: Optional[str]) -> Optional[str]:
    if outdir and fname:
        path = os.path.join(outdir, fname)
        fig.savefig(path, dpi=150, bbox_inches="tight")
        return path
    return None

def plot_convergence(
    hs: ArrayLike,
    errors: ArrayLike,
    *,
    order: Optional[float] = None,
    title: str = "Convergence",
    outdir: Optional[str] = None,
    filename: Optional[str] = None,
    show: bool = False,
):
    """
    Log-log plot of the max-norm error against the step size.

    Parameters
    ----------
    hs : (N,) array
    errors : (N,) array
    order : fitted slope, drawn as a reference line through the smallest h
    """
    _ensure_outdir(outdir)
    hs = np.asarray(hs, dtype=float)
    errors = np.asarray(errors, dtype=float)

    # zero errors cannot be shown on a log axis
    mask = np.isfinite(errors) & (errors > 0.0)

    fig, ax = plt.subplots()
    ax.loglog(hs[mask], errors[mask], "o-", ms=3, lw=1.2, label="max-norm error")
    if order is not None and np.any(mask):
        i0 = int(np.argmin(np.where(mask, hs, np.inf)))
        ref = errors[i0] * (hs / hs[i0]) ** order
        ax.loglog(hs, ref, "--", lw=1.0, color="gray", label=f"slope {order:.2f}")
    ax.set_xlabel("h")
    ax.set_ylabel("error")
    ax.set_title(title)
    ax.legend(frameon=False)
    ax.grid(True, which="both", ls=":", alpha=0.5)

    path = _maybe_save(fig, outdir, filename or "convergence.png")
    if show:
        plt.show()
    else:
        plt.close(fig)
    return path
