# horocore/utils/config.py
"""
YAML configuration -> immutable option structs.

    orbs:              {aspect: orb | [angle, orb]}
    latitude_limits:   {house_system: max |latitude|}
    placidus:          {max_iterations: int, tolerance_deg: float}
    returns:           {max_iterations: int, tolerance_seconds: float}

Env:
  HOROCORE_CONFIG               default YAML path when `load_config()` gets none
  HOROCORE_ORBS                 JSON file with orb overrides (merged over `orbs`)
  HOROCORE_PLACIDUS_MAX_ITERS   overrides placidus.max_iterations
  HOROCORE_PLACIDUS_TOL_DEG     overrides placidus.tolerance_deg
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

import yaml

from horocore.core.aspects import OrbTable
from horocore.core.errors import InvalidArgumentError
from horocore.core.houses import HouseOptions, LatitudeLimits

log = logging.getLogger(__name__)

__all__ = ["CoreConfig", "load_config"]

_SECTIONS = ("orbs", "latitude_limits", "placidus", "returns")


@dataclass(frozen=True)
class CoreConfig:
    orb_table: OrbTable = field(default_factory=OrbTable.default)
    house_options: HouseOptions = field(default_factory=HouseOptions)
    return_max_iterations: int = 20
    return_tolerance_seconds: float = 60.0

    def as_dict(self) -> Dict[str, Any]:
        ho = self.house_options
        return {
            "orbs": self.orb_table.as_dict(),
            "latitude_limits": ho.latitude_limits.as_dict(),
            "placidus": {"max_iterations": ho.max_iterations, "tolerance_deg": ho.tolerance_deg},
            "returns": {
                "max_iterations": self.return_max_iterations,
                "tolerance_seconds": self.return_tolerance_seconds,
            },
        }


def _load_json_if(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f) or {}
    except (OSError, ValueError) as e:
        log.warning("Optional JSON %s unreadable (%s); ignoring", path, e)
        return {}
    if not isinstance(data, dict):
        log.warning("Optional JSON %s is not an object; ignoring", path)
        return {}
    return data


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise InvalidArgumentError(f"config root in {path} must be a mapping", field="config", value=path)
    return data


def _section(data: Mapping[str, Any], name: str) -> Dict[str, Any]:
    sec = data.get(name) or {}
    if not isinstance(sec, dict):
        raise InvalidArgumentError(f"config section '{name}' must be a mapping", field=name, value=sec)
    return sec


def _env_or(name: str, fallback: Any, cast: Callable[[str], Any]) -> Any:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return fallback
    try:
        return cast(raw)
    except ValueError:
        log.warning("Ignoring malformed %s=%r", name, raw)
        return fallback


def load_config(path: Optional[str] = None) -> CoreConfig:
    """
    Build a CoreConfig from YAML at `path` (or $HOROCORE_CONFIG) plus env
    overrides. An explicit `path` must exist; a missing $HOROCORE_CONFIG file
    only logs a warning. No file at all yields the defaults.
    """
    data: Dict[str, Any] = {}
    if path:
        data = _read_yaml(path)
    else:
        env_path = os.getenv("HOROCORE_CONFIG")
        if env_path:
            try:
                data = _read_yaml(env_path)
            except OSError as e:
                log.warning("HOROCORE_CONFIG=%s unreadable (%s); using defaults", env_path, e)

    for key in data:
        if key not in _SECTIONS:
            log.warning("Unknown config section '%s' ignored", key)

    orbs = dict(_section(data, "orbs"))
    orbs.update(_load_json_if(os.getenv("HOROCORE_ORBS")))
    orb_table = OrbTable.default().with_orbs(orbs) if orbs else OrbTable.default()

    limits = LatitudeLimits(_section(data, "latitude_limits"))

    plac = _section(data, "placidus")
    defaults = HouseOptions()
    house_options = HouseOptions(
        latitude_limits=limits,
        max_iterations=_env_or("HOROCORE_PLACIDUS_MAX_ITERS",
                               int(plac.get("max_iterations", defaults.max_iterations)), int),
        tolerance_deg=_env_or("HOROCORE_PLACIDUS_TOL_DEG",
                              float(plac.get("tolerance_deg", defaults.tolerance_deg)), float),
    )

    ret = _section(data, "returns")
    max_iter = int(ret.get("max_iterations", 20))
    tol_s = float(ret.get("tolerance_seconds", 60.0))
    if max_iter < 1:
        raise InvalidArgumentError("returns.max_iterations must be >= 1",
                                   field="returns.max_iterations", value=max_iter)
    if not tol_s > 0.0:
        raise InvalidArgumentError("returns.tolerance_seconds must be > 0",
                                   field="returns.tolerance_seconds", value=tol_s)

    cfg = CoreConfig(
        orb_table=orb_table,
        house_options=house_options,
        return_max_iterations=max_iter,
        return_tolerance_seconds=tol_s,
    )
    log.debug("Loaded config from %s", path or os.getenv("HOROCORE_CONFIG") or "<defaults>")
    return cfg
