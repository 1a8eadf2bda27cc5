"""
Shared pytest fixtures for the orrery layout tests.

Provides:
  - Body / edge builders for hand-made systems
  - The Sun / Mercury / Venus / Earth example system
  - In-memory SQLite DB with migrations applied (and a seeded variant)
  - FastAPI TestClient reading from the seeded DB
"""

import os
import sqlite3
import sys
import tempfile
from pathlib import Path
from typing import Generator, List, Optional

import pytest

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so we can import app modules
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Use a writable temp directory for the app DB so startup succeeds.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="orrery_test_")
os.environ["DB_DIR"] = _TEST_DB_DIR
os.environ.pop("DB_PATH", None)
os.environ.pop("ORRERY_SCALE_CONFIG", None)

from orrery_model import CelestialBody, OrbitalParent  # noqa: E402
from scale_config import ScaleConfig, ScaleParameters  # noqa: E402

SUN, MERCURY, VENUS, EARTH, MOON, MARS = 1, 2, 3, 4, 5, 6


# ---------------------------------------------------------------------------
# Test data helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    """Stateless builders for bodies, edges and configs."""

    @staticmethod
    def body(
        body_id: int,
        name: str,
        aphelion: float,
        *,
        radius: float = 1.0,
        perihelion: Optional[float] = None,
        period: Optional[float] = 100.0,
        region: Optional[int] = None,
        subregion: Optional[int] = None,
    ) -> CelestialBody:
        return CelestialBody(
            id=body_id,
            name=name,
            radius=radius,
            aphelion=aphelion,
            perihelion=aphelion if perihelion is None else perihelion,
            orbital_period=period,
            region=region,
            subregion=subregion,
        )

    @staticmethod
    def sun(body_id: int = SUN, radius: float = 1.0) -> CelestialBody:
        return CelestialBody(id=body_id, name="Sun", radius=radius, aphelion=0.0, perihelion=0.0)

    @staticmethod
    def edges(*pairs) -> List[OrbitalParent]:
        return [OrbitalParent(child=c, parent=p) for c, p in pairs]

    @staticmethod
    def config(**overrides) -> ScaleConfig:
        values = {
            "distance_compression": 10.0,
            "distance_multiplier": 1.0,
            "radius_compression": 1.0,
            "radius_multiplier": 1.0,
            "minimum_orbit_gap": 0.5,
            "max_radius_fraction_of_gap": 0.4,
            "aggregation_threshold": 20,
        }
        values.update(overrides)
        return ScaleConfig(defaults=ScaleParameters(**values))


@pytest.fixture()
def helpers() -> TestHelpers:
    return TestHelpers()


@pytest.fixture()
def inner_system(helpers):
    """Sun, Mercury, Venus, Earth (aphelion 0.47 / 0.73 / 1.0), all parented to the Sun."""
    bodies = [
        helpers.sun(),
        helpers.body(MERCURY, "Mercury", 0.47, period=88.0),
        helpers.body(VENUS, "Venus", 0.73, period=224.7),
        helpers.body(EARTH, "Earth", 1.0, period=365.25),
    ]
    edges = helpers.edges((MERCURY, SUN), (VENUS, SUN), (EARTH, SUN))
    return bodies, edges


@pytest.fixture()
def nested_system(helpers, inner_system):
    """inner_system plus the Moon around Earth and Mars further out."""
    bodies, edges = inner_system
    bodies = bodies + [
        helpers.body(MOON, "Moon", 0.00257, period=27.3),
        helpers.body(MARS, "Mars", 1.67, period=687.0),
    ]
    edges = edges + helpers.edges((MOON, EARTH), (MARS, SUN))
    return bodies, edges


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def db_conn() -> Generator[sqlite3.Connection, None, None]:
    """Yield an in-memory SQLite connection with all migrations applied."""
    from db_migrations import apply_migrations

    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON;")
    apply_migrations(conn)

    yield conn
    conn.close()


@pytest.fixture()
def seeded_db(db_conn: sqlite3.Connection, nested_system) -> sqlite3.Connection:
    """db_conn with the nested example system stored."""
    import orrery_repository

    bodies, edges = nested_system
    for body in bodies:
        orrery_repository.create_body(db_conn, body)
    for edge in edges:
        orrery_repository.create_orbital_parent(db_conn, edge.child, edge.parent)
    db_conn.commit()
    return db_conn


# ---------------------------------------------------------------------------
# FastAPI TestClient
# ---------------------------------------------------------------------------

@pytest.fixture()
def client(seeded_db):
    """Starlette TestClient with the DB dependency pointed at seeded_db."""
    from fastapi.testclient import TestClient
    from db import get_db
    from main import app

    def _seeded() -> Generator[sqlite3.Connection, None, None]:
        yield seeded_db

    app.dependency_overrides[get_db] = _seeded
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _reset_scale_config_cache():
    """Ensure no cached scale config leaks between tests."""
    from scale_config import clear_scale_config_cache
    clear_scale_config_cache()
    yield
    clear_scale_config_cache()
