from pathlib import Path

import pytest

from de_convergence.equations.registry import from_config
from de_convergence.utils.config_loader import (
    HarnessCfg, load_config, normalize_config, parse_config, read_params,
)


def test_json_payload():
    cfg = parse_config('{"t_finish": 10.0, "h": 0.1}')
    assert isinstance(cfg, HarnessCfg)
    assert cfg.t_finish == 10.0 and cfg.h == 0.1
    assert cfg.equation == "ode_lin_1" and cfg.method == "rk4"
    assert cfg.params == {}


def test_yaml_payload_with_aliases():
    cfg = parse_config("""
T: 5
dt: 0.05
eq: DDE_LIN_1_SIN
integrator: {method: RK-45}
physics: {params: {k: 2.0}}
tau: 0.5
""")
    assert cfg.t_finish == 5.0 and cfg.h == 0.05
    assert cfg.equation == "dde_lin_1_sin"
    assert cfg.method == "dopri5"
    assert cfg.params == {"k": 2.0, "tau": 0.5}


def test_time_block():
    cfg = normalize_config({"time": {"T": 2.0, "dt": 0.01}, "method": "euler"})
    assert cfg.t_finish == 2.0 and cfg.h == 0.01 and cfg.method == "euler"


def test_config_builds_the_named_model():
    cfg = parse_config('{"t_finish": 1.0, "h": 0.1, "equation": "ode2_sin", "k": 0.25}')
    model = from_config(cfg)
    assert model.params["k"] == 0.25


@pytest.mark.parametrize("payload", [
    '{"h": 0.1}',
    '{"t_finish": 1.0}',
    '{"t_finish": -1.0, "h": 0.1}',
    '{"t_finish": 1.0, "h": 0}',
    '{"t_finish": "soon", "h": 0.1}',
    '{"t_finish": .inf, "h": 0.1}',
])
def test_missing_or_invalid_fields_raise(payload):
    with pytest.raises(ValueError):
        parse_config(payload)


@pytest.mark.parametrize("payload", ["[1, 2, 3]", "42", "{t_finish: [1"])
def test_non_mapping_or_malformed_payload_raises(payload):
    with pytest.raises(ValueError):
        parse_config(payload)


def test_config_file(tmp_path: Path):
    yml = tmp_path / "sweep.yaml"
    yml.write_text("t_finish: 3.0\nh: 0.2\nequation: ode_t_cos\n")
    cfg = load_config(yml)
    assert cfg.equation == "ode_t_cos"
    assert read_params(str(yml)) == cfg


def test_read_params_falls_back_to_inline_payload():
    cfg = read_params('{"t_finish": 1.5, "h": 0.5}')
    assert cfg.t_finish == 1.5


def test_missing_config_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")
