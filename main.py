from typing import Any, Dict

from fastapi import FastAPI

from db import connect_db
from db_migrations import apply_migrations
from orrery_router import router as orrery_router

app = FastAPI()
app.include_router(orrery_router)


@app.on_event("startup")
def _startup():
    conn = connect_db()
    try:
        apply_migrations(conn)
        conn.commit()
    finally:
        conn.close()


@app.get("/api/health")
def api_health() -> Dict[str, Any]:
    conn = connect_db(read_only=True)
    try:
        conn.execute("SELECT 1")
    finally:
        conn.close()
    return {
        "ok": True,
        "service": "orrery",
    }
