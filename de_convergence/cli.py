import argparse
import math
from pathlib import Path
from typing import Optional, Sequence

from de_convergence.analysis import fit_convergence_order
from de_convergence.convergence import (
    H_MAX, H_MIN, N_DENSE, N_STEPSIZES, ConvergenceResult, dense_error_sweep, expspace,
)
from de_convergence.equations.registry import from_config
from de_convergence.io.results import OUTPUT_DIR, result_path, save_arrays
from de_convergence.utils.config_loader import read_params
from de_convergence.utils.diagnostic_manager import DiagnosticManager


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        "de-convergence",
        description="Max-norm error of a dense fixed-step solution over a log-spaced step-size sweep.",
    )
    ap.add_argument("params", help="inline YAML/JSON payload, or the path of a YAML file")
    ap.add_argument("output", help="artifact name, without extension")
    ap.add_argument("--out-dir", default=str(OUTPUT_DIR), help="artifact directory (default: output/bin)")
    ap.add_argument("--plot", action="store_true", help="also write <output>.png next to the artifact")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> ConvergenceResult:
    ap = build_parser()
    args = ap.parse_args(argv)

    print(f"~~~ {ap.prog} is executed ~~~")
    print(f"~~~  parameters: {args.params} ~~~")

    dm = DiagnosticManager()
    dm.start()

    cfg = read_params(args.params)
    model = from_config(cfg)

    hs = expspace(H_MIN, H_MAX, N_STEPSIZES)
    result = dense_error_sweep(model, cfg.t_finish, hs, n_dense=N_DENSE)

    path = save_arrays(result_path(args.output, args.out_dir), result.hs, result.errors)
    print(f"[output] {path}")

    try:
        slope, _, r2 = fit_convergence_order(result.hs, result.errors)
    except ValueError:
        # every error at round-off level: nothing to fit
        slope = r2 = float("nan")
    print(f"[order] {cfg.equation} ({cfg.method}): slope={slope:.3f}  R^2={r2:.4f}")

    if args.plot:
        from de_convergence.visualization.plotting import plot_convergence

        plot_convergence(
            result.hs, result.errors,
            order=None if math.isnan(slope) else slope,
            title=f"{cfg.equation} ({cfg.method})",
            outdir=str(Path(path).parent),
            filename=f"{args.output}.png",
        )

    dm.stop()
    print(f"~~~ Computation took {dm.elapsed_hms()} (hh:mm:ss) ~~~")
    print(f"~~~ {ap.prog} is finished ~~~")
    return result


if __name__ == "__main__":
    main()
