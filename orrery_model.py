"""
Domain records for the orrery: bodies, regions, subregions and parent links.

All records are frozen; the engine treats one collection of them as the
read-only input of a single layout pass.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from orrery_errors import INVALID_BODY, IntegrityError


class CelestialRegion(Enum):
    INNER_SOLAR_SYSTEM = "Inner Solar System"
    OUTER_SOLAR_SYSTEM = "Outer Solar System"
    TRANS_NEPTUNIAN_REGION = "Trans-Neptunian Region"
    FARTHEST_REGIONS = "Farthest Regions"


class CelestialSubregion(Enum):
    INNER_PLANETS = "Inner Planets"
    ASTEROID_BELT = "Asteroid Belt"
    OUTER_PLANETS = "Outer Planets"
    CENTAURS = "Centaurs"
    KUIPER_BELT = "Kuiper Belt"
    SCATTERED_DISC = "Scattered Disc"
    DETACHED_OBJECTS = "Detached Objects"


@dataclass(frozen=True)
class Region:
    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


@dataclass(frozen=True)
class Subregion:
    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


@dataclass(frozen=True)
class CelestialBody:
    """A body as stored: physical radius plus orbital extrema relative to
    its immediate parent. ``orbital_period`` is None only for the sun.
    """

    id: int
    name: str
    radius: float
    aphelion: float
    perihelion: float
    orbital_period: Optional[float] = None
    region: Optional[int] = None
    subregion: Optional[int] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise IntegrityError(INVALID_BODY, f"Body {self.id} must have a non-empty name", [self.id])
        for field in ("radius", "aphelion", "perihelion", "orbital_period"):
            value = getattr(self, field)
            if value is not None and not math.isfinite(value):
                raise IntegrityError(INVALID_BODY, f"Body {self.name} {field} must be finite (got {value})", [self.id])
        if not self.radius > 0:
            raise IntegrityError(INVALID_BODY, f"Body {self.name} radius must be positive", [self.id])
        if self.aphelion < 0 or self.perihelion < 0:
            raise IntegrityError(INVALID_BODY, f"Body {self.name} orbital extrema must be non-negative", [self.id])
        if self.aphelion < self.perihelion:
            raise IntegrityError(INVALID_BODY, f"Body {self.name} aphelion is below its perihelion", [self.id])
        if self.orbital_period is not None and not self.orbital_period > 0:
            raise IntegrityError(INVALID_BODY, f"Body {self.name} orbital_period must be positive", [self.id])

    @property
    def eccentricity(self) -> float:
        total = self.aphelion + self.perihelion
        if total <= 0:
            return 0.0
        return (self.aphelion - self.perihelion) / total

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CelestialBody":
        period = data.get("orbital_period")
        region = data.get("region")
        subregion = data.get("subregion")
        return cls(
            id=int(data["id"]),
            name=str(data["name"]).strip(),
            radius=float(data["radius"]),
            aphelion=float(data["aphelion"]),
            perihelion=float(data["perihelion"]),
            orbital_period=float(period) if period is not None else None,
            region=int(region) if region is not None else None,
            subregion=int(subregion) if subregion is not None else None,
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass(frozen=True)
class OrbitalParent:
    child: int
    parent: int
