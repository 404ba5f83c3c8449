from pathlib import Path
from typing import Tuple, Union

import numpy as np

OUTPUT_DIR = Path("output") / "bin"
EXTENSION = ".npz"

PathLike = Union[str, Path]


def result_path(name: str, out_dir: PathLike = OUTPUT_DIR) -> Path:
    """Artifact location for an extension-less result name."""
    return Path(out_dir) / f"{name}{EXTENSION}"


def save_arrays(path: PathLike, hs, errors) -> Path:
    """
    Write the paired step sizes and errors as float64 arrays `hs` and
    `errors`. The file lands at exactly `path`; parent directories are
    created, write failures propagate.
    """
    hs = np.asarray(hs, dtype=np.float64)
    errors = np.asarray(errors, dtype=np.float64)
    if hs.shape != errors.shape:
        raise ValueError(f"length mismatch: {hs.shape} step sizes vs {errors.shape} errors")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    # open the file ourselves so numpy does not append its own suffix
    with open(path, "wb") as fh:
        np.savez(fh, hs=hs, errors=errors)
    return path


def load_arrays(path: PathLike) -> Tuple[np.ndarray, np.ndarray]:
    with np.load(Path(path)) as z:
        return z["hs"].copy(), z["errors"].copy()
