import sqlite3
import time
from dataclasses import dataclass
from typing import Callable, List

from orrery_model import CelestialRegion, CelestialSubregion


@dataclass(frozen=True)
class Migration:
    migration_id: str
    description: str
    apply: Callable[[sqlite3.Connection], None]


def _migration_0001_initial(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS celestial_region (
          region_id INTEGER NOT NULL PRIMARY KEY,
          region_name TEXT UNIQUE NOT NULL,
          region_description TEXT,
          created_at INTEGER NOT NULL,
          updated_at INTEGER
        );

        CREATE TABLE IF NOT EXISTS celestial_subregion (
          subregion_id INTEGER NOT NULL PRIMARY KEY,
          subregion_name TEXT UNIQUE NOT NULL,
          subregion_description TEXT,
          created_at INTEGER NOT NULL,
          updated_at INTEGER
        );

        CREATE TABLE IF NOT EXISTS celestial_body (
          body_id INTEGER NOT NULL PRIMARY KEY,
          body_name TEXT UNIQUE NOT NULL,
          radius REAL NOT NULL,
          aphelion REAL NOT NULL,
          perihelion REAL NOT NULL,
          orbital_period REAL,
          region INTEGER REFERENCES celestial_region(region_id),
          subregion INTEGER REFERENCES celestial_subregion(subregion_id),
          created_at INTEGER NOT NULL,
          updated_at INTEGER
        );

        CREATE TABLE IF NOT EXISTS orbital_parent (
          child INTEGER NOT NULL REFERENCES celestial_body(body_id),
          parent INTEGER NOT NULL REFERENCES celestial_body(body_id)
        );
        CREATE INDEX IF NOT EXISTS idx_orbital_parent_child ON orbital_parent(child);
        CREATE INDEX IF NOT EXISTS idx_orbital_parent_parent ON orbital_parent(parent);
        """
    )


def _migration_0002_seed_regions(conn: sqlite3.Connection) -> None:
    now = int(time.time())
    for region in CelestialRegion:
        conn.execute(
            "INSERT OR IGNORE INTO celestial_region (region_name,created_at) VALUES (?,?)",
            (region.value, now),
        )
    for subregion in CelestialSubregion:
        conn.execute(
            "INSERT OR IGNORE INTO celestial_subregion (subregion_name,created_at) VALUES (?,?)",
            (subregion.value, now),
        )


def _migrations() -> List[Migration]:
    return [
        Migration("0001_initial", "Create celestial body, region and orbital parent tables", _migration_0001_initial),
        Migration("0002_seed_regions", "Seed the well-known regions and subregions", _migration_0002_seed_regions),
    ]


def apply_migrations(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
          migration_id TEXT PRIMARY KEY,
          description TEXT NOT NULL,
          applied_at REAL NOT NULL
        );
        """
    )

    applied = {
        str(r["migration_id"])
        for r in conn.execute("SELECT migration_id FROM schema_migrations").fetchall()
    }

    for migration in _migrations():
        if migration.migration_id in applied:
            continue
        migration.apply(conn)
        conn.execute(
            "INSERT INTO schema_migrations (migration_id,description,applied_at) VALUES (?,?,?)",
            (migration.migration_id, migration.description, time.time()),
        )
