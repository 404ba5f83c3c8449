from typing import Any, Callable, Dict, Mapping

from de_convergence.core.time_integrators import get_tableau
from de_convergence.equations import dde, ode, relay
from de_convergence.equations.base import EquationModel

Builder = Callable[[Mapping[str, Any], str], EquationModel]

EQUATIONS: Dict[str, Builder] = {
    "ode_lin_1": ode.ode_lin_1,
    "ode_lin_m1": ode.ode_lin_m1,
    "ode_lin_cos": ode.ode_lin_cos,
    "ode_t_cos": ode.ode_t_cos,
    "ode2_lin_i": ode.ode2_lin_i,
    "ode2_sin": ode.ode2_sin,
    "ode2_stable_cycle": ode.ode2_stable_cycle,
    "dde_lin_1_sin": dde.dde_lin_1_sin,
    "ode2_relay_msign": relay.ode2_relay_msign,
}


def build_equation(name: str, params: Mapping[str, Any] = None, method: str = "rk4") -> EquationModel:
    key = str(name).strip().lower()
    if key not in EQUATIONS:
        raise ValueError(f"Unknown equation '{name}'. Use one of: {', '.join(sorted(EQUATIONS))}.")
    get_tableau(method)  # unknown methods fail at construction
    return EQUATIONS[key](dict(params or {}), method)


def from_config(cfg) -> EquationModel:
    """Build the equation model a HarnessCfg describes."""
    return build_equation(cfg.equation, cfg.params, cfg.method)
