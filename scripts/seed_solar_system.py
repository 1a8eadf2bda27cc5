"""
Seed the reference store with the major bodies of the solar system.

Radii in km, aphelion/perihelion in AU relative to the immediate parent,
orbital periods in days. Skips seeding when bodies already exist.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from db import DB_PATH, connect_db  # noqa: E402
from db_migrations import apply_migrations  # noqa: E402
from orrery_model import CelestialBody, CelestialRegion, CelestialSubregion  # noqa: E402
import orrery_repository  # noqa: E402

INNER = CelestialRegion.INNER_SOLAR_SYSTEM
OUTER = CelestialRegion.OUTER_SOLAR_SYSTEM
TNO = CelestialRegion.TRANS_NEPTUNIAN_REGION
FAR = CelestialRegion.FARTHEST_REGIONS

# (name, radius_km, aphelion_au, perihelion_au, period_days, parent, region, subregion)
BODIES = [
    ("Sun", 696340.0, 0.0, 0.0, None, None, None, None),
    ("Mercury", 2439.7, 0.4667, 0.3075, 87.97, "Sun", INNER, CelestialSubregion.INNER_PLANETS),
    ("Venus", 6051.8, 0.7282, 0.7184, 224.70, "Sun", INNER, CelestialSubregion.INNER_PLANETS),
    ("Earth", 6371.0, 1.0167, 0.9833, 365.26, "Sun", INNER, CelestialSubregion.INNER_PLANETS),
    ("Mars", 3389.5, 1.6660, 1.3814, 686.98, "Sun", INNER, CelestialSubregion.INNER_PLANETS),
    ("Vesta", 262.7, 2.57, 2.15, 1325.0, "Sun", INNER, CelestialSubregion.ASTEROID_BELT),
    ("Ceres", 469.7, 2.98, 2.55, 1680.0, "Sun", INNER, CelestialSubregion.ASTEROID_BELT),
    ("Pallas", 256.0, 3.41, 2.13, 1686.0, "Sun", INNER, CelestialSubregion.ASTEROID_BELT),
    ("Hygiea", 216.0, 3.50, 2.79, 2031.0, "Sun", INNER, CelestialSubregion.ASTEROID_BELT),
    ("Jupiter", 69911.0, 5.4588, 4.9501, 4332.59, "Sun", OUTER, CelestialSubregion.OUTER_PLANETS),
    ("Saturn", 58232.0, 10.1238, 9.0412, 10759.22, "Sun", OUTER, CelestialSubregion.OUTER_PLANETS),
    ("Uranus", 25362.0, 20.0965, 18.2861, 30688.5, "Sun", OUTER, CelestialSubregion.OUTER_PLANETS),
    ("Neptune", 24622.0, 30.33, 29.81, 60182.0, "Sun", OUTER, CelestialSubregion.OUTER_PLANETS),
    ("Pluto", 1188.3, 49.305, 29.658, 90560.0, "Sun", TNO, CelestialSubregion.KUIPER_BELT),
    ("Haumea", 780.0, 51.54, 34.95, 103468.0, "Sun", TNO, CelestialSubregion.KUIPER_BELT),
    ("Makemake", 715.0, 52.84, 38.59, 111845.0, "Sun", TNO, CelestialSubregion.KUIPER_BELT),
    ("Eris", 1163.0, 97.46, 38.27, 203830.0, "Sun", TNO, CelestialSubregion.SCATTERED_DISC),
    ("Sedna", 497.0, 936.0, 76.2, 4163850.0, "Sun", FAR, CelestialSubregion.DETACHED_OBJECTS),
    ("Moon", 1737.4, 0.002718, 0.002424, 27.32, "Earth", None, None),
    ("Phobos", 11.267, 0.0000641, 0.0000614, 0.319, "Mars", None, None),
    ("Deimos", 6.2, 0.0001570, 0.0001565, 1.263, "Mars", None, None),
    ("Io", 1821.6, 0.002837, 0.002807, 1.769, "Jupiter", None, None),
    ("Europa", 1560.8, 0.004537, 0.004441, 3.551, "Jupiter", None, None),
    ("Ganymede", 2634.1, 0.007171, 0.007145, 7.155, "Jupiter", None, None),
    ("Callisto", 2410.3, 0.012652, 0.012541, 16.689, "Jupiter", None, None),
    ("Titan", 2574.7, 0.008337, 0.007823, 15.945, "Saturn", None, None),
    ("Charon", 606.0, 0.0001310, 0.0001309, 6.387, "Pluto", None, None),
]


def main() -> None:
    conn = connect_db()
    try:
        apply_migrations(conn)
        if conn.execute("SELECT COUNT(*) AS n FROM celestial_body").fetchone()["n"]:
            print(f"{DB_PATH} already has bodies; nothing to seed")
            return

        ids = {}
        for body_id, (name, radius, aphelion, perihelion, period, _, region, subregion) in enumerate(BODIES, start=1):
            body = CelestialBody(
                id=body_id,
                name=name,
                radius=radius,
                aphelion=aphelion,
                perihelion=perihelion,
                orbital_period=period,
                region=orrery_repository.find_region_id(conn, region.value) if region else None,
                subregion=orrery_repository.find_subregion_id(conn, subregion.value) if subregion else None,
            )
            orrery_repository.create_body(conn, body)
            ids[name] = body_id

        for name, _, _, _, _, parent, _, _ in BODIES:
            if parent is not None:
                orrery_repository.create_orbital_parent(conn, ids[name], ids[parent])
        conn.commit()
        print(f"Seeded {len(BODIES)} bodies into {DB_PATH}")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
