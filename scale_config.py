import json
import math
import os
from dataclasses import asdict, dataclass, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from db import APP_DIR
from orrery_errors import ConfigurationError

CONFIG_PATH = Path(os.environ.get("ORRERY_SCALE_CONFIG", str(APP_DIR / "config" / "orrery_scale.json")))

DEFAULT_PARAMETERS: Dict[str, Any] = {
    "distance_compression": 1.0,
    "distance_multiplier": 1.0,
    "radius_compression": 1.0,
    "radius_multiplier": 1.0,
    "minimum_orbit_gap": 1.0,
    "max_radius_fraction_of_gap": 0.4,
    "aggregation_threshold": 20,
}

KEY_ALIASES: Dict[str, str] = {
    "n": "distance_compression",
    "x": "distance_multiplier",
    "g": "minimum_orbit_gap",
    "f": "max_radius_fraction_of_gap",
    "k": "aggregation_threshold",
    "distanceCompressionExponent": "distance_compression",
    "distanceMultiplier": "distance_multiplier",
    "radiusCompressionExponent": "radius_compression",
    "radiusMultiplier": "radius_multiplier",
    "minimumOrbitGap": "minimum_orbit_gap",
    "maxRadiusFractionOfGap": "max_radius_fraction_of_gap",
    "aggregationThreshold": "aggregation_threshold",
}


def _as_float(value: Any, field: str, depth: Optional[int] = None) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field} must be numeric", depth)
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{field} must be numeric", depth)
    if not math.isfinite(out):
        raise ConfigurationError(f"{field} must be finite", depth)
    return out


def _as_int(value: Any, field: str, depth: Optional[int] = None) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field} must be an integer", depth)
    try:
        out = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{field} must be an integer", depth)
    if out != value and not isinstance(value, str):
        raise ConfigurationError(f"{field} must be an integer", depth)
    return out


_POSITIVE_FIELDS = (
    "distance_compression",
    "distance_multiplier",
    "radius_compression",
    "radius_multiplier",
    "minimum_orbit_gap",
)
_FLOAT_FIELDS = _POSITIVE_FIELDS + ("max_radius_fraction_of_gap",)


@dataclass(frozen=True)
class ScaleParameters:
    """Tuning constants for one hierarchy depth.

    Orbits: ``sqrt(aphelion * distance_compression) * distance_multiplier``.
    Body sizes: ``sqrt(radius * radius_compression) * radius_multiplier``,
    clamped to ``max_radius_fraction_of_gap`` of the free slot. Sibling
    orbits end up at least ``minimum_orbit_gap`` apart, and a region with
    more than ``aggregation_threshold`` members under one parent is drawn
    as a band.
    """

    distance_compression: float = DEFAULT_PARAMETERS["distance_compression"]
    distance_multiplier: float = DEFAULT_PARAMETERS["distance_multiplier"]
    radius_compression: float = DEFAULT_PARAMETERS["radius_compression"]
    radius_multiplier: float = DEFAULT_PARAMETERS["radius_multiplier"]
    minimum_orbit_gap: float = DEFAULT_PARAMETERS["minimum_orbit_gap"]
    max_radius_fraction_of_gap: float = DEFAULT_PARAMETERS["max_radius_fraction_of_gap"]
    aggregation_threshold: int = DEFAULT_PARAMETERS["aggregation_threshold"]

    def __post_init__(self) -> None:
        # Fields hold the converted numbers, never the raw input.
        for name in _FLOAT_FIELDS:
            object.__setattr__(self, name, _as_float(getattr(self, name), name))
        object.__setattr__(
            self, "aggregation_threshold", _as_int(self.aggregation_threshold, "aggregation_threshold")
        )
        self.validate()

    def validate(self) -> None:
        for name in _POSITIVE_FIELDS:
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive (got {value})")
        fraction = self.max_radius_fraction_of_gap
        if not 0 < fraction <= 1:
            raise ConfigurationError(
                f"max_radius_fraction_of_gap must be in (0, 1] (got {fraction})"
            )
        threshold = self.aggregation_threshold
        if threshold < 1:
            raise ConfigurationError(f"aggregation_threshold must be at least 1 (got {threshold})")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScaleConfig:
    defaults: ScaleParameters = ScaleParameters()
    overrides: Tuple[Tuple[int, ScaleParameters], ...] = ()

    def for_depth(self, depth: int) -> ScaleParameters:
        for override_depth, params in self.overrides:
            if override_depth == depth:
                return params
        return self.defaults

    def to_dict(self) -> Dict[str, Any]:
        return {
            "defaults": self.defaults.to_dict(),
            "depths": {str(d): p.to_dict() for d, p in self.overrides},
        }


_PARAMETER_FIELDS = {f.name for f in fields(ScaleParameters)}


def _normalize_entry(entry: Any, ctx: str, depth: Optional[int]) -> Dict[str, Any]:
    if not isinstance(entry, Mapping):
        raise ConfigurationError(f"{ctx} must be an object", depth)
    out: Dict[str, Any] = {}
    for key, value in entry.items():
        name = KEY_ALIASES.get(str(key), str(key))
        if name not in _PARAMETER_FIELDS:
            raise ConfigurationError(f"{ctx} has unknown key: {key}", depth)
        if name == "aggregation_threshold":
            out[name] = _as_int(value, f"{ctx}.{key}", depth)
        else:
            out[name] = _as_float(value, f"{ctx}.{key}", depth)
    return out


def _make_parameters(values: Dict[str, Any], depth: Optional[int]) -> ScaleParameters:
    try:
        return ScaleParameters(**values)
    except ConfigurationError as exc:
        ctx = "defaults" if depth is None else f"depths[{depth}]"
        raise ConfigurationError(f"{ctx}: {exc.message}", depth) from exc


def build_scale_config(raw: Mapping[str, Any]) -> ScaleConfig:
    """Build and validate a ScaleConfig from ``{"defaults": {...}, "depths": {"1": {...}}}``.

    A mapping with neither key is read as the defaults block. Depth
    overrides merge key by key over the defaults.
    """
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Scale config root must be an object")
    if "defaults" not in raw and "depths" not in raw:
        raw = {"defaults": raw}
    unknown = set(raw) - {"defaults", "depths"}
    if unknown:
        raise ConfigurationError(f"Scale config has unknown sections: {', '.join(sorted(unknown))}")

    base = dict(DEFAULT_PARAMETERS)
    defaults_raw = raw.get("defaults")
    base.update(_normalize_entry({} if defaults_raw is None else defaults_raw, "defaults", None))
    defaults = _make_parameters(base, None)

    depths = raw.get("depths")
    if depths is None:
        depths = {}
    if not isinstance(depths, Mapping):
        raise ConfigurationError("depths must be an object keyed by depth")
    overrides = []
    for key, entry in depths.items():
        try:
            depth = int(key)
        except (TypeError, ValueError):
            raise ConfigurationError(f"depths key must be an integer depth: {key}")
        if depth < 0:
            raise ConfigurationError(f"depths key must be non-negative: {key}")
        merged = dict(base)
        merged.update(_normalize_entry(entry, f"depths[{depth}]", depth))
        overrides.append((depth, _make_parameters(merged, depth)))
    overrides.sort(key=lambda item: item[0])
    return ScaleConfig(defaults=defaults, overrides=tuple(overrides))


def as_scale_config(config: Any) -> ScaleConfig:
    if config is None:
        return ScaleConfig()
    if isinstance(config, ScaleConfig):
        return config
    if isinstance(config, ScaleParameters):
        return ScaleConfig(defaults=config)
    return build_scale_config(config)


@lru_cache(maxsize=8)
def load_scale_config(path: Path = CONFIG_PATH) -> ScaleConfig:
    if not path.exists():
        raise ConfigurationError(f"Scale config not found: {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {path}: {exc}") from exc
    return build_scale_config(raw)


def clear_scale_config_cache() -> None:
    load_scale_config.cache_clear()
