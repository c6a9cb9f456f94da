# tests/test_config.py
from __future__ import annotations

import importlib
import json
import logging
from pathlib import Path

import pytest

from horocore.core.aspects import AspectKind, find_aspect
from horocore.core.constants import DEFAULT_ORBS_DEG
from horocore.core.errors import InvalidArgumentError, UnsupportedSystemError
from horocore.core.houses import HouseSystem, solve
from horocore.utils.config import CoreConfig, load_config
from horocore.version import VERSION

YAML_BODY = """\
orbs:
  square: 8
  trine: [118.0, 5.0]
latitude_limits:
  placidus: 66.5
placidus:
  max_iterations: 50
  tolerance_deg: 1.0e-8
returns:
  max_iterations: 30
  tolerance_seconds: 5
"""


@pytest.fixture
def yaml_path(tmp_path):
    p = tmp_path / "horocore.yaml"
    p.write_text(YAML_BODY, encoding="utf-8")
    return str(p)


def test_defaults_without_any_file(clean_env) -> None:
    cfg = load_config()
    d = cfg.as_dict()
    assert d["orbs"] == {k.value: DEFAULT_ORBS_DEG[k.value] for k in AspectKind}
    assert d["latitude_limits"]["placidus"] == 60.0
    assert d["latitude_limits"]["equal"] == 90.0
    assert d["returns"] == {"max_iterations": 20, "tolerance_seconds": 60.0}
    assert d["placidus"]["max_iterations"] == CoreConfig().house_options.max_iterations


def test_yaml_overrides(clean_env, yaml_path) -> None:
    cfg = load_config(yaml_path)
    assert cfg.orb_table.orb_for("square") == 8.0
    assert cfg.orb_table.orb_for("conjunction") == 8.0
    trine = next(s for s in cfg.orb_table if s.kind is AspectKind.TRINE)
    assert (trine.angle, trine.orb) == (118.0, 5.0)
    ho = cfg.house_options
    assert ho.latitude_limits.for_system(HouseSystem.PLACIDUS) == 66.5
    assert ho.latitude_limits.for_system("koch") == 60.0
    assert ho.max_iterations == 50
    assert ho.tolerance_deg == 1e-8
    assert cfg.return_max_iterations == 30
    assert cfg.return_tolerance_seconds == 5.0


def test_loaded_options_drive_the_engines(clean_env, yaml_path) -> None:
    cfg = load_config(yaml_path)
    cusps = solve("placidus", 120.0, 62.0, 23.44, cfg.house_options)
    assert len(cusps.cusps) == 12
    assert find_aspect(0.0, 97.5, cfg.orb_table).aspect is AspectKind.SQUARE


def test_config_path_from_env(clean_env, yaml_path) -> None:
    clean_env.setenv("HOROCORE_CONFIG", yaml_path)
    assert load_config().return_max_iterations == 30


def test_missing_env_config_falls_back(clean_env, tmp_path, caplog) -> None:
    clean_env.setenv("HOROCORE_CONFIG", str(tmp_path / "absent.yaml"))
    with caplog.at_level(logging.WARNING):
        cfg = load_config()
    assert cfg.return_max_iterations == 20
    assert "HOROCORE_CONFIG" in caplog.text


def test_missing_explicit_path_raises(clean_env, tmp_path) -> None:
    with pytest.raises(OSError):
        load_config(str(tmp_path / "absent.yaml"))


def test_orbs_json_merges_over_yaml(clean_env, yaml_path, tmp_path) -> None:
    j = tmp_path / "orbs.json"
    j.write_text(json.dumps({"square": 4.0, "quincunx": 1.5}), encoding="utf-8")
    clean_env.setenv("HOROCORE_ORBS", str(j))
    cfg = load_config(yaml_path)
    assert cfg.orb_table.orb_for("square") == 4.0
    assert cfg.orb_table.orb_for("quincunx") == 1.5
    assert cfg.orb_table.orb_for("trine") == 5.0


def test_unreadable_orbs_json_is_ignored(clean_env, tmp_path, caplog) -> None:
    j = tmp_path / "orbs.json"
    j.write_text("{not json", encoding="utf-8")
    clean_env.setenv("HOROCORE_ORBS", str(j))
    with caplog.at_level(logging.WARNING):
        cfg = load_config()
    assert cfg.orb_table.as_dict() == dict(CoreConfig().orb_table.as_dict())
    assert "orbs.json" in caplog.text


def test_env_beats_yaml_for_placidus(clean_env, yaml_path) -> None:
    clean_env.setenv("HOROCORE_PLACIDUS_MAX_ITERS", "7")
    clean_env.setenv("HOROCORE_PLACIDUS_TOL_DEG", "1e-6")
    ho = load_config(yaml_path).house_options
    assert ho.max_iterations == 7
    assert ho.tolerance_deg == 1e-6


def test_malformed_env_is_ignored(clean_env, yaml_path, caplog) -> None:
    clean_env.setenv("HOROCORE_PLACIDUS_MAX_ITERS", "many")
    with caplog.at_level(logging.WARNING):
        ho = load_config(yaml_path).house_options
    assert ho.max_iterations == 50
    assert "HOROCORE_PLACIDUS_MAX_ITERS" in caplog.text


def test_unknown_section_warns(clean_env, tmp_path, caplog) -> None:
    p = tmp_path / "c.yaml"
    p.write_text("colours: {sun: gold}\n", encoding="utf-8")
    with caplog.at_level(logging.WARNING):
        load_config(str(p))
    assert "colours" in caplog.text


@pytest.mark.parametrize(
    "body, exc",
    [
        ("orbs: {squre: 5}\n", InvalidArgumentError),
        ("orbs: {square: -2}\n", InvalidArgumentError),
        ("latitude_limits: {placidos: 50}\n", UnsupportedSystemError),
        ("latitude_limits: {koch: 95}\n", InvalidArgumentError),
        ("placidus: {max_iterations: 0}\n", InvalidArgumentError),
        ("returns: {max_iterations: 0}\n", InvalidArgumentError),
        ("returns: {tolerance_seconds: -1}\n", InvalidArgumentError),
        ("orbs: [1, 2]\n", InvalidArgumentError),
        ("- just\n- a list\n", InvalidArgumentError),
    ],
)
def test_invalid_config_raises(clean_env, tmp_path, body, exc) -> None:
    p = tmp_path / "bad.yaml"
    p.write_text(body, encoding="utf-8")
    with pytest.raises(exc):
        load_config(str(p))


def test_version_string() -> None:
    assert isinstance(VERSION, str) and VERSION


def test_version_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    import horocore.version as version_mod

    monkeypatch.setenv("HOROCORE_VERSION", "9.9.9rc1")
    try:
        assert importlib.reload(version_mod).VERSION == "9.9.9rc1"
    finally:
        monkeypatch.undo()
        importlib.reload(version_mod)


def test_package_version_comes_from_version_module() -> None:
    pyproject = (Path(__file__).resolve().parents[1] / "pyproject.toml").read_text(encoding="utf-8")
    assert 'dynamic = ["version"]' in pyproject
    assert 'version = {attr = "horocore.version.VERSION"}' in pyproject
