"""
Visual scale transforms — orbit radii and body sizes.

Both use the same compression family, ``sqrt(raw * n) * x``, with separate
constants per hierarchy depth. Orbit radii are relative to the immediate
parent. Body sizes are clamped to a fraction of the free slot around the
body's reconciled orbit; clamping never fails.

Pure math over the resolved forest; no database or framework dependencies.
"""

import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from hierarchy_service import Forest
from orrery_model import CelestialBody
from scale_config import ScaleConfig, ScaleParameters


# ── Distance scale ─────────────────────────────────────────

def compress(raw: float, exponent: float, multiplier: float) -> float:
    return math.sqrt(max(0.0, raw) * exponent) * multiplier


def scale_distance(raw: float, params: ScaleParameters) -> float:
    """Strictly increasing in ``raw`` for positive constants."""
    return compress(raw, params.distance_compression, params.distance_multiplier)


def scale_sibling_orbits(children: Sequence[CelestialBody], params: ScaleParameters) -> List[float]:
    return [scale_distance(body.aphelion, params) for body in children]


# ── Body radius ────────────────────────────────────────────

def scale_radius(radius: float, params: ScaleParameters) -> float:
    return compress(radius, params.radius_compression, params.radius_multiplier)


def cap_body_size(size: float, fraction: float, slots: Iterable[Optional[float]]) -> float:
    capped = size
    for slot in slots:
        if slot is None:
            continue
        capped = min(capped, fraction * max(0.0, slot))
    return capped


def compute_body_sizes(
    forest: Forest,
    by_id: Mapping[int, CelestialBody],
    orbits: Mapping[int, float],
    config: ScaleConfig,
) -> Dict[int, float]:
    """Visual size per body, resolved top-down so a parent's size is final
    before its innermost child measures its slot against it.

    ``orbits`` holds the reconciled orbit radius of every non-root body.
    """
    sizes: Dict[int, float] = {}

    def first_satellite_orbit(body_id: Optional[int]) -> Optional[float]:
        kids = forest.children(body_id)
        return orbits[kids[0]] if kids else None

    if forest.root_id is not None:
        params = config.for_depth(0)
        raw = scale_radius(by_id[forest.root_id].radius, params)
        sizes[forest.root_id] = cap_body_size(
            raw, params.max_radius_fraction_of_gap, [first_satellite_orbit(forest.root_id)]
        )

    for parent_id, kids in forest.sibling_groups():
        parent_size = sizes.get(parent_id, 0.0) if parent_id is not None else 0.0
        for i, kid in enumerate(kids):
            params = config.for_depth(forest.depth_of[kid])
            orbit = orbits[kid]
            inward = orbit - (orbits[kids[i - 1]] if i > 0 else parent_size)
            outward = orbits[kids[i + 1]] - orbit if i + 1 < len(kids) else None
            raw = scale_radius(by_id[kid].radius, params)
            sizes[kid] = cap_body_size(
                raw,
                params.max_radius_fraction_of_gap,
                [inward, outward, first_satellite_orbit(kid)],
            )
    return sizes
