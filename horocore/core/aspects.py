# horocore/core/aspects.py
from __future__ import annotations

import difflib
import itertools
import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from horocore.core.angles import directed_separation, shortest_distance
from horocore.core.constants import ASPECT_ANGLES_DEG, DEFAULT_ORBS_DEG
from horocore.core.errors import InvalidArgumentError

__all__ = [
    "AspectKind",
    "AspectSpec",
    "OrbTable",
    "AspectRecord",
    "find_aspect",
    "find_aspects",
    "find_cross_aspects",
]

# ─────────────────────────────────────────────────────────────────────────────
# Aspect catalog
# ─────────────────────────────────────────────────────────────────────────────

class AspectKind(str, Enum):
    CONJUNCTION = "conjunction"
    SEMISEXTILE = "semisextile"
    SEMISQUARE = "semisquare"
    SEXTILE = "sextile"
    QUINTILE = "quintile"
    SQUARE = "square"
    TRINE = "trine"
    SESQUIQUADRATE = "sesquiquadrate"
    BIQUINTILE = "biquintile"
    QUINCUNX = "quincunx"
    OPPOSITION = "opposition"

    @property
    def nominal(self) -> float:
        return ASPECT_ANGLES_DEG[self.value]

    @classmethod
    def parse(cls, name: Union[str, "AspectKind"]) -> "AspectKind":
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        for k in cls:
            if k.value == key:
                return k
        labels = [k.value for k in cls]
        hints = difflib.get_close_matches(key, labels, n=3, cutoff=0.5)
        msg = f"unknown aspect '{name}'"
        if hints:
            msg += f" (did you mean: {', '.join(hints)}?)"
        raise InvalidArgumentError(msg, field="aspect", value=name, valid_range=tuple(labels))


@dataclass(frozen=True)
class AspectSpec:
    kind: AspectKind
    angle: float
    orb: float


def _check_orb(kind: AspectKind, angle: float, orb: float) -> None:
    if not (math.isfinite(angle) and 0.0 <= angle <= 180.0):
        raise InvalidArgumentError(
            f"{kind.value}: angle {angle!r} outside [0, 180]",
            field=f"orbs.{kind.value}", value=angle, valid_range=(0.0, 180.0),
        )
    if not (math.isfinite(orb) and orb >= 0.0):
        raise InvalidArgumentError(
            f"{kind.value}: orb must be finite and >= 0, got {orb!r}",
            field=f"orbs.{kind.value}", value=orb,
        )


@dataclass(frozen=True)
class OrbTable:
    """
    Immutable, ordered aspect table. Order is the catalog order of AspectKind
    and breaks ties between equally tight matches.
    """

    entries: Tuple[AspectSpec, ...]

    @classmethod
    def default(cls) -> "OrbTable":
        return cls.from_mapping(DEFAULT_ORBS_DEG)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "OrbTable":
        """name -> orb, or name -> (angle, orb) for a non-standard angle."""
        specs: Dict[AspectKind, AspectSpec] = {}
        for name, val in mapping.items():
            kind = AspectKind.parse(name)
            if isinstance(val, (tuple, list)):
                if len(val) != 2:
                    raise InvalidArgumentError(
                        f"{kind.value}: expected (angle, orb), got {val!r}",
                        field=f"orbs.{kind.value}", value=val,
                    )
                angle, orb = float(val[0]), float(val[1])
            else:
                angle, orb = kind.nominal, float(val)
            _check_orb(kind, angle, orb)
            specs[kind] = AspectSpec(kind, angle, orb)
        return cls(tuple(specs[k] for k in AspectKind if k in specs))

    def with_orbs(self, overrides: Mapping[str, Any]) -> "OrbTable":
        merged: Dict[str, Any] = {s.kind.value: (s.angle, s.orb) for s in self.entries}
        for name, val in overrides.items():
            kind = AspectKind.parse(name)
            if isinstance(val, (tuple, list)):
                merged[kind.value] = val
            else:
                angle = merged.get(kind.value, (kind.nominal, 0.0))[0]
                merged[kind.value] = (angle, val)
        return OrbTable.from_mapping(merged)

    def orb_for(self, kind: Union[str, AspectKind]) -> Optional[float]:
        k = AspectKind.parse(kind)
        for s in self.entries:
            if s.kind is k:
                return s.orb
        return None

    def as_dict(self) -> Dict[str, float]:
        return {s.kind.value: s.orb for s in self.entries}

    def __iter__(self) -> Iterator[AspectSpec]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


_DEFAULT_TABLE = OrbTable.default()

# ─────────────────────────────────────────────────────────────────────────────
# Results
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AspectRecord:
    aspect: AspectKind
    nominal: float
    separation: float                 # shortest distance, [0, 180]
    orb: float                        # separation - nominal (signed)
    orb_allowed: float
    applying: Optional[bool] = None   # None when motion was not supplied
    pair: Optional[Tuple[str, str]] = None

    def as_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["aspect"] = self.aspect.value
        d["pair"] = list(self.pair) if self.pair else None
        return d

# ─────────────────────────────────────────────────────────────────────────────
# Geometry
# ─────────────────────────────────────────────────────────────────────────────

def _separation_rate(lon_a: float, lon_b: float, speed_a: float, speed_b: float) -> float:
    """d/dt of shortest_distance(a, b), deg/day."""
    rel = speed_b - speed_a
    d = directed_separation(lon_a, lon_b)
    if d == 0.0:
        return abs(rel)
    if d == 180.0:
        return -abs(rel)
    return rel if d < 180.0 else -rel


def find_aspect(
    lon_a: float,
    lon_b: float,
    orb_table: Optional[OrbTable] = None,
    *,
    speed_a: Optional[float] = None,
    speed_b: Optional[float] = None,
    pair: Optional[Tuple[str, str]] = None,
) -> Optional[AspectRecord]:
    """Tightest aspect between two longitudes, or None."""
    for nm, v in (("lon_a", lon_a), ("lon_b", lon_b)):
        if not math.isfinite(v):
            raise InvalidArgumentError(f"{nm} must be finite, got {v!r}", field=nm, value=v)
    table = orb_table if orb_table is not None else _DEFAULT_TABLE
    sep = shortest_distance(lon_a, lon_b)

    best: Optional[AspectSpec] = None
    best_delta = math.inf
    for spec in table:
        delta = abs(sep - spec.angle)
        if delta <= spec.orb and delta < best_delta:
            best, best_delta = spec, delta
    if best is None:
        return None

    orb = sep - best.angle
    applying: Optional[bool] = None
    if speed_a is not None and speed_b is not None:
        applying = orb * _separation_rate(lon_a, lon_b, speed_a, speed_b) < 0.0

    return AspectRecord(
        aspect=best.kind,
        nominal=best.angle,
        separation=sep,
        orb=orb,
        orb_allowed=best.orb,
        applying=applying,
        pair=tuple(sorted(pair)) if pair is not None else None,  # type: ignore[arg-type]
    )


def _lon_speed(value: Any, speeds: Optional[Mapping[str, float]], name: str) -> Tuple[float, Optional[float]]:
    lon = float(getattr(value, "longitude", value))
    speed = getattr(value, "speed", None)
    if speeds is not None and name in speeds:
        speed = speeds[name]
    return lon, (float(speed) if speed is not None else None)


def find_aspects(
    positions: Mapping[str, Any],
    orb_table: Optional[OrbTable] = None,
    *,
    speeds: Optional[Mapping[str, float]] = None,
) -> List[AspectRecord]:
    """
    Every aspected pair within one chart. `positions` maps names to longitudes
    or to objects carrying `.longitude` (and optionally `.speed`).
    """
    hits: List[AspectRecord] = []
    for a, b in itertools.combinations(sorted(positions), 2):
        la, va = _lon_speed(positions[a], speeds, a)
        lb, vb = _lon_speed(positions[b], speeds, b)
        rec = find_aspect(la, lb, orb_table, speed_a=va, speed_b=vb, pair=(a, b))
        if rec is not None:
            hits.append(rec)
    return hits


def find_cross_aspects(
    positions_a: Mapping[str, Any],
    positions_b: Mapping[str, Any],
    orb_table: Optional[OrbTable] = None,
    *,
    speeds_a: Optional[Mapping[str, float]] = None,
    speeds_b: Optional[Mapping[str, float]] = None,
    labels: Tuple[str, str] = ("A", "B"),
) -> List[AspectRecord]:
    """Synastry: every (chart A point, chart B point) pair. Names are prefixed with `labels`."""
    hits: List[AspectRecord] = []
    for a in sorted(positions_a):
        la, va = _lon_speed(positions_a[a], speeds_a, a)
        for b in sorted(positions_b):
            lb, vb = _lon_speed(positions_b[b], speeds_b, b)
            rec = find_aspect(
                la, lb, orb_table, speed_a=va, speed_b=vb,
                pair=(f"{labels[0]}:{a}", f"{labels[1]}:{b}"),
            )
            if rec is not None:
                hits.append(rec)
    return hits
