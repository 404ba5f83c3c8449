from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union

import yaml


@dataclass
class HarnessCfg:
    t_finish: float
    # nominal step size: parsed and validated, the sweep does not use it
    h: float
    equation: str = "ode_lin_1"
    method: str = "rk4"
    params: Dict[str, Any] = field(default_factory=dict)


_METHOD_ALIASES = {
    "rk-4": "rk4", "rk_4": "rk4",
    "rk-45": "dopri5", "rk45": "dopri5", "dp5": "dopri5",
}

# scalar keys accepted at top level and folded into params
_PARAM_PASSTHROUGH = ("k", "tau", "omega", "alpha", "sigma")


def _lower_str(x: Any, default: str) -> str:
    return str(x if x is not None else default).strip().lower()


def _positive_float(d: Dict[str, Any], key: str) -> float:
    if key not in d or d[key] is None:
        raise ValueError(f"config requires '{key}'")
    try:
        value = float(d[key])
    except (TypeError, ValueError) as e:
        raise ValueError(f"config field '{key}' must be a number, got {d[key]!r}") from e
    if not math.isfinite(value) or value <= 0.0:
        raise ValueError(f"config field '{key}' must be a positive real, got {value}")
    return value


def normalize_config(raw: Any) -> HarnessCfg:
    """
    Normalize a parsed payload into a HarnessCfg.

    Accepted shapes:
      t_finish | T          : time horizon (required, > 0)
      h | dt                : nominal step size (required, > 0)
      equation | eq         : equation name (default ode_lin_1)
      method | integrator.method : Runge-Kutta table (default rk4)
      params | physics.params    : equation parameters
    """
    if not isinstance(raw, dict):
        raise ValueError(f"config payload must be a mapping, got {type(raw).__name__}")
    d = dict(raw)

    # ---------- time ----------
    tm = dict(d.get("time", {}) or {})
    if "t_finish" not in d:
        d["t_finish"] = d.get("T", tm.get("t_finish", tm.get("T")))
    if "h" not in d:
        d["h"] = d.get("dt", tm.get("h", tm.get("dt")))
    t_finish = _positive_float(d, "t_finish")
    h = _positive_float(d, "h")

    # ---------- equation ----------
    equation = _lower_str(d.get("equation", d.get("eq")), "ode_lin_1")

    # ---------- integrator ----------
    integ = d.get("integrator", {}) or {}
    if isinstance(integ, str):
        integ = {"method": integ}
    method = _lower_str(d.get("method", integ.get("method")), "rk4")
    method = _METHOD_ALIASES.get(method, method)

    # ---------- params ----------
    physics = d.get("physics", {}) or {}
    params = dict(physics.get("params", {}) or {})
    params.update(dict(d.get("params", {}) or {}))
    for k in _PARAM_PASSTHROUGH:
        if k in d and k not in params:
            params[k] = d[k]

    return HarnessCfg(t_finish=t_finish, h=h, equation=equation, method=method, params=params)


def parse_config(payload: str) -> HarnessCfg:
    """Parse an inline YAML or JSON payload (JSON is a subset of YAML)."""
    try:
        raw = yaml.safe_load(payload)
    except yaml.YAMLError as e:
        raise ValueError(f"config payload is not valid YAML/JSON: {e}") from e
    return normalize_config(raw)


def load_config(path: Union[str, Path]) -> HarnessCfg:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return parse_config(f.read())


def read_params(arg: str) -> HarnessCfg:
    """CLI helper: the argument is either a YAML file path or the payload itself."""
    if os.path.isfile(arg):
        return load_config(arg)
    return parse_config(arg)
