import os
import sqlite3
from pathlib import Path
from typing import Generator, Optional

APP_DIR = Path(__file__).resolve().parent
DB_DIR = Path(os.environ.get("DB_DIR", str(APP_DIR / "data")))
DB_PATH = Path(os.environ.get("DB_PATH", str(DB_DIR / "orrery.db")))


def connect_db(path: Optional[Path] = None, read_only: bool = False) -> sqlite3.Connection:
    """Open the reference store. Migrations and seeding write; request
    handlers pass ``read_only=True``."""
    target = Path(path) if path is not None else DB_PATH
    target.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(target), timeout=30)
    conn.row_factory = sqlite3.Row
    if read_only:
        conn.execute("PRAGMA query_only=ON;")
    else:
        conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    conn.execute("PRAGMA busy_timeout=30000;")
    return conn


def get_db() -> Generator[sqlite3.Connection, None, None]:
    """FastAPI dependency yielding a read-only connection for one request."""
    conn = connect_db(read_only=True)
    try:
        yield conn
    finally:
        conn.close()
