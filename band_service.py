"""
Region band aggregator.

Siblings that share a region tag (subregion when set, else region) and
outnumber the aggregation threshold of their depth are drawn as one band
spanning their reconciled orbits instead of one placement each. Bodies
with satellites always stay individual so their subtree keeps a position.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from hierarchy_service import Forest
from orrery_model import CelestialBody, Region, Subregion
from scale_config import ScaleConfig

REGION = "region"
SUBREGION = "subregion"

Tag = Tuple[str, int]


@dataclass(frozen=True)
class BandRecord:
    parent_id: Optional[int]
    tag_kind: str
    tag_id: int
    tag_name: Optional[str]
    inner_radius: float
    outer_radius: float
    member_count: int
    member_ids: Tuple[int, ...]
    center_x: float = 0.0
    center_y: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parent_id": self.parent_id,
            "tag_kind": self.tag_kind,
            "tag_id": self.tag_id,
            "tag_name": self.tag_name,
            "inner_radius": self.inner_radius,
            "outer_radius": self.outer_radius,
            "member_count": self.member_count,
            "member_ids": list(self.member_ids),
            "center": [self.center_x, self.center_y],
        }


def body_tag(body: CelestialBody) -> Optional[Tag]:
    if body.subregion is not None:
        return (SUBREGION, body.subregion)
    if body.region is not None:
        return (REGION, body.region)
    return None


def _tag_name(
    tag: Tag,
    regions: Mapping[int, Region],
    subregions: Mapping[int, Subregion],
) -> Optional[str]:
    kind, tag_id = tag
    lookup = subregions if kind == SUBREGION else regions
    entry = lookup.get(tag_id)
    return entry.name if entry is not None else None


def aggregate_bands(
    forest: Forest,
    by_id: Mapping[int, CelestialBody],
    orbits: Mapping[int, float],
    config: ScaleConfig,
    regions: Optional[Mapping[int, Region]] = None,
    subregions: Optional[Mapping[int, Subregion]] = None,
) -> Tuple[List[BandRecord], Set[int]]:
    """Return the band records (parents in walk order) and the ids of the
    bodies they absorb."""
    regions = regions or {}
    subregions = subregions or {}
    bands: List[BandRecord] = []
    banded: Set[int] = set()

    for parent_id, kids in forest.sibling_groups():
        members: Dict[Tag, List[int]] = {}
        for kid in kids:
            if forest.children(kid):
                continue
            tag = body_tag(by_id[kid])
            if tag is not None:
                members.setdefault(tag, []).append(kid)

        group_bands: List[BandRecord] = []
        for tag, ids in members.items():
            threshold = config.for_depth(forest.depth_of[ids[0]]).aggregation_threshold
            if len(ids) <= threshold:
                continue
            radii = [orbits[bid] for bid in ids]
            group_bands.append(
                BandRecord(
                    parent_id=parent_id,
                    tag_kind=tag[0],
                    tag_id=tag[1],
                    tag_name=_tag_name(tag, regions, subregions),
                    inner_radius=min(radii),
                    outer_radius=max(radii),
                    member_count=len(ids),
                    member_ids=tuple(ids),
                )
            )
            banded.update(ids)
        group_bands.sort(key=lambda b: (b.inner_radius, b.tag_kind, b.tag_id))
        bands.extend(group_bands)

    return bands, banded
