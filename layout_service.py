"""
Layout composer — turns the resolved forest into a flat scene.

Pipeline for one pass:
  scale config check → orbit scaling + reconciliation per sibling group
  → body sizes → band aggregation → depth-first composition

The composer only accumulates already-reconciled magnitudes into absolute
coordinates (root at the origin). The Scene it returns is a fresh value on
every call; identical input gives byte-identical ``to_json()`` output.
"""

import json
import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from band_service import BandRecord, aggregate_bands
from hierarchy_service import Forest
from orrery_errors import DANGLING_REFERENCE, IntegrityError, IntegrityWarning
from orrery_model import CelestialBody, Region, Subregion
from reconcile_service import reconcile_forest
from scale_config import as_scale_config
from scale_service import compute_body_sizes, scale_distance

GOLDEN_ANGLE_DEG = 180.0 * (3.0 - math.sqrt(5.0))

Point = Tuple[float, float]


@dataclass(frozen=True)
class Placement:
    body_id: int
    name: str
    parent_id: Optional[int]
    depth: int
    x: float
    y: float
    angle_deg: float
    orbit_radius: float
    scaled_orbit_radius: float
    scaled_perihelion: float
    eccentricity: float
    size: float
    region: Optional[int] = None
    subregion: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "body_id": self.body_id,
            "name": self.name,
            "parent_id": self.parent_id,
            "depth": self.depth,
            "x": self.x,
            "y": self.y,
            "angle_deg": self.angle_deg,
            "orbit_radius": self.orbit_radius,
            "scaled_orbit_radius": self.scaled_orbit_radius,
            "scaled_perihelion": self.scaled_perihelion,
            "eccentricity": self.eccentricity,
            "size": self.size,
            "region": self.region,
            "subregion": self.subregion,
        }


@dataclass(frozen=True)
class Scene:
    placements: Tuple[Placement, ...]
    bands: Tuple[BandRecord, ...]
    warnings: Tuple[IntegrityWarning, ...] = ()
    root_id: Optional[int] = None

    def placement(self, body_id: int) -> Optional[Placement]:
        return next((p for p in self.placements if p.body_id == body_id), None)

    def placements_by_parent(self) -> Dict[Optional[int], List[Placement]]:
        out: Dict[Optional[int], List[Placement]] = {}
        for p in self.placements:
            out.setdefault(p.parent_id, []).append(p)
        return out

    def bands_by_parent(self) -> Dict[Optional[int], List[BandRecord]]:
        out: Dict[Optional[int], List[BandRecord]] = {}
        for band in self.bands:
            out.setdefault(band.parent_id, []).append(band)
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root_id": self.root_id,
            "placements": [p.to_dict() for p in self.placements],
            "bands": [b.to_dict() for b in self.bands],
            "warnings": [w.to_dict() for w in self.warnings],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))


def resolve_angle(
    body: CelestialBody,
    sibling_index: int,
    angles: Mapping[int, float],
    at: Optional[float],
) -> float:
    if body.id in angles:
        return float(angles[body.id]) % 360.0
    if at is not None and body.orbital_period:
        return (360.0 * (at / body.orbital_period)) % 360.0
    return (sibling_index * GOLDEN_ANGLE_DEG) % 360.0


def _polar(origin: Point, radius: float, angle_deg: float) -> Point:
    a = math.radians(angle_deg)
    return (origin[0] + radius * math.cos(a), origin[1] + radius * math.sin(a))


def compute_scene(
    forest: Forest,
    bodies: Iterable[CelestialBody],
    config: Any = None,
    angles: Optional[Mapping[int, float]] = None,
    at: Optional[float] = None,
    regions: Optional[Mapping[int, Region]] = None,
    subregions: Optional[Mapping[int, Subregion]] = None,
) -> Scene:
    cfg = as_scale_config(config)
    angles = angles or {}

    by_id: Dict[int, CelestialBody] = {b.id: b for b in bodies}
    missing = sorted(bid for bid in forest.depth_of if bid not in by_id)
    if missing:
        raise IntegrityError(DANGLING_REFERENCE, f"Forest references bodies not supplied: {missing}", missing)
    extra = sorted(bid for bid in by_id if bid not in forest)
    if extra:
        raise IntegrityError(DANGLING_REFERENCE, f"Bodies missing from the forest: {extra}", extra)

    groups = reconcile_forest(forest, by_id, cfg)
    orbits: Dict[int, float] = {}
    scaled: Dict[int, float] = {}
    for group in groups.values():
        orbits.update(zip(group.body_ids, group.adjusted))
        scaled.update(zip(group.body_ids, group.scaled))

    sizes = compute_body_sizes(forest, by_id, orbits, cfg)
    bands, banded = aggregate_bands(forest, by_id, orbits, cfg, regions, subregions)

    sibling_index = {kid: i for _, kids in forest.sibling_groups() for i, kid in enumerate(kids)}
    positions: Dict[Optional[int], Point] = {forest.root_id: (0.0, 0.0)}
    placements: List[Placement] = []
    for bid in forest.walk():
        body = by_id[bid]
        if bid == forest.root_id:
            placements.append(
                Placement(
                    body_id=bid,
                    name=body.name,
                    parent_id=None,
                    depth=0,
                    x=0.0,
                    y=0.0,
                    angle_deg=0.0,
                    orbit_radius=0.0,
                    scaled_orbit_radius=0.0,
                    scaled_perihelion=0.0,
                    eccentricity=0.0,
                    size=sizes[bid],
                    region=body.region,
                    subregion=body.subregion,
                )
            )
            continue
        if bid in banded:
            continue

        parent_id = forest.parent_of[bid]
        depth = forest.depth_of[bid]
        angle = resolve_angle(body, sibling_index[bid], angles, at)
        x, y = _polar(positions[parent_id], orbits[bid], angle)
        positions[bid] = (x, y)
        placements.append(
            Placement(
                body_id=bid,
                name=body.name,
                parent_id=parent_id,
                depth=depth,
                x=x,
                y=y,
                angle_deg=angle,
                orbit_radius=orbits[bid],
                scaled_orbit_radius=scaled[bid],
                scaled_perihelion=scale_distance(body.perihelion, cfg.for_depth(depth)),
                eccentricity=body.eccentricity,
                size=sizes[bid],
                region=body.region,
                subregion=body.subregion,
            )
        )

    centered = [
        replace(band, center_x=positions[band.parent_id][0], center_y=positions[band.parent_id][1])
        for band in bands
    ]
    logging.debug(
        "[layout] %d placements, %d bands (%d bodies banded), %d warnings",
        len(placements),
        len(centered),
        len(banded),
        len(forest.warnings),
    )
    return Scene(
        placements=tuple(placements),
        bands=tuple(centered),
        warnings=forest.warnings,
        root_id=forest.root_id,
    )
