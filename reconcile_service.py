"""
Collision reconciler — enforces a minimum gap between sibling orbits.

Each parent's children are scaled and swept left to right in ascending
aphelion order. An orbit is only ever pushed outward, never reordered or
shrunk, so for any gap g > 0:

  adjusted[i] >= scaled[i]
  adjusted[i + 1] - adjusted[i] >= g

Groups are independent of each other; each takes its own slice of input
and returns a new value.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from hierarchy_service import Forest
from orrery_errors import ConfigurationError
from orrery_model import CelestialBody
from scale_config import ScaleConfig, ScaleParameters
from scale_service import scale_sibling_orbits


@dataclass(frozen=True)
class ReconciledGroup:
    parent_id: Optional[int]
    body_ids: Tuple[int, ...]
    scaled: Tuple[float, ...]
    adjusted: Tuple[float, ...]

    @property
    def pushed(self) -> int:
        return sum(1 for s, a in zip(self.scaled, self.adjusted) if a > s)


def reconcile_orbits(scaled: Sequence[float], gap: float) -> List[float]:
    if not gap > 0:
        raise ConfigurationError(f"minimum_orbit_gap must be positive (got {gap})")
    adjusted: List[float] = []
    previous: Optional[float] = None
    for radius in scaled:
        if previous is None:
            value = float(radius)
        else:
            floor = previous + gap
            # (previous + gap) - previous can round to just under gap.
            while floor - previous < gap:
                floor = math.nextafter(floor, math.inf)
            value = max(float(radius), floor)
        adjusted.append(value)
        previous = value
    return adjusted


def reconcile_group(
    parent_id: Optional[int],
    children: Sequence[CelestialBody],
    params: ScaleParameters,
) -> ReconciledGroup:
    scaled = scale_sibling_orbits(children, params)
    adjusted = reconcile_orbits(scaled, params.minimum_orbit_gap)
    return ReconciledGroup(
        parent_id=parent_id,
        body_ids=tuple(body.id for body in children),
        scaled=tuple(scaled),
        adjusted=tuple(adjusted),
    )


def reconcile_forest(
    forest: Forest,
    by_id: Mapping[int, CelestialBody],
    config: ScaleConfig,
) -> Dict[Optional[int], ReconciledGroup]:
    groups: Dict[Optional[int], ReconciledGroup] = {}
    for parent_id, kids in forest.sibling_groups():
        params = config.for_depth(forest.depth_of[kids[0]])
        group = reconcile_group(parent_id, [by_id[k] for k in kids], params)
        if group.pushed:
            logging.debug(
                "[reconcile] parent %s: pushed %d of %d orbits outward",
                parent_id,
                group.pushed,
                len(kids),
            )
        groups[parent_id] = group
    return groups
