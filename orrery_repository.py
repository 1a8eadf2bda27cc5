import sqlite3
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from orrery_model import CelestialBody, OrbitalParent, Region, Subregion


@dataclass(frozen=True)
class OrrerySnapshot:
    bodies: List[CelestialBody]
    edges: List[OrbitalParent]
    regions: Dict[int, Region]
    subregions: Dict[int, Subregion]


def _body_from_row(row: sqlite3.Row) -> CelestialBody:
    return CelestialBody.from_dict(
        {
            "id": row["body_id"],
            "name": row["body_name"],
            "radius": row["radius"],
            "aphelion": row["aphelion"],
            "perihelion": row["perihelion"],
            "orbital_period": row["orbital_period"],
            "region": row["region"],
            "subregion": row["subregion"],
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }
    )


def list_bodies(conn: sqlite3.Connection) -> List[CelestialBody]:
    rows = conn.execute(
        """
        SELECT body_id,body_name,radius,aphelion,perihelion,orbital_period,
               region,subregion,created_at,updated_at
        FROM celestial_body ORDER BY body_id
        """
    ).fetchall()
    return [_body_from_row(r) for r in rows]


def list_regions(conn: sqlite3.Connection) -> List[Region]:
    rows = conn.execute(
        "SELECT region_id,region_name,region_description,created_at,updated_at FROM celestial_region ORDER BY region_id"
    ).fetchall()
    return [
        Region(
            id=int(r["region_id"]),
            name=str(r["region_name"]),
            description=r["region_description"],
            created_at=r["created_at"],
            updated_at=r["updated_at"],
        )
        for r in rows
    ]


def list_subregions(conn: sqlite3.Connection) -> List[Subregion]:
    rows = conn.execute(
        """
        SELECT subregion_id,subregion_name,subregion_description,created_at,updated_at
        FROM celestial_subregion ORDER BY subregion_id
        """
    ).fetchall()
    return [
        Subregion(
            id=int(r["subregion_id"]),
            name=str(r["subregion_name"]),
            description=r["subregion_description"],
            created_at=r["created_at"],
            updated_at=r["updated_at"],
        )
        for r in rows
    ]


def list_orbital_parents(conn: sqlite3.Connection) -> List[OrbitalParent]:
    rows = conn.execute("SELECT child,parent FROM orbital_parent ORDER BY child, parent").fetchall()
    return [OrbitalParent(child=int(r["child"]), parent=int(r["parent"])) for r in rows]


def load_snapshot(conn: sqlite3.Connection) -> OrrerySnapshot:
    return OrrerySnapshot(
        bodies=list_bodies(conn),
        edges=list_orbital_parents(conn),
        regions={r.id: r for r in list_regions(conn)},
        subregions={s.id: s for s in list_subregions(conn)},
    )


def find_region_id(conn: sqlite3.Connection, name: str) -> Optional[int]:
    row = conn.execute("SELECT region_id FROM celestial_region WHERE region_name=?", (name,)).fetchone()
    return int(row["region_id"]) if row else None


def find_subregion_id(conn: sqlite3.Connection, name: str) -> Optional[int]:
    row = conn.execute("SELECT subregion_id FROM celestial_subregion WHERE subregion_name=?", (name,)).fetchone()
    return int(row["subregion_id"]) if row else None


def create_body(conn: sqlite3.Connection, body: CelestialBody) -> None:
    conn.execute(
        """
        INSERT INTO celestial_body
          (body_id,body_name,radius,aphelion,perihelion,orbital_period,region,subregion,created_at,updated_at)
        VALUES (?,?,?,?,?,?,?,?,?,?)
        """,
        (
            body.id,
            body.name,
            body.radius,
            body.aphelion,
            body.perihelion,
            body.orbital_period,
            body.region,
            body.subregion,
            body.created_at if body.created_at is not None else int(time.time()),
            body.updated_at,
        ),
    )


def create_orbital_parent(conn: sqlite3.Connection, child: int, parent: int) -> None:
    conn.execute("INSERT INTO orbital_parent (child,parent) VALUES (?,?)", (child, parent))
