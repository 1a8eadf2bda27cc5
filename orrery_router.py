"""
Orrery API routes.

Handles:
  /api/orrery/hierarchy
  /api/orrery/scene        (GET: stored records, POST: records in the body)
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from db import get_db
from hierarchy_service import build_tree, resolve_hierarchy
from layout_service import compute_scene
from orrery_errors import ConfigurationError, IntegrityError
from orrery_model import CelestialBody, OrbitalParent
import orrery_repository
import scale_config

router = APIRouter(tags=["orrery"])


class BodyIn(BaseModel):
    id: int
    name: str
    radius: float
    aphelion: float
    perihelion: float
    orbital_period: Optional[float] = None
    region: Optional[int] = None
    subregion: Optional[int] = None


class EdgeIn(BaseModel):
    child: int
    parent: int


class SceneReq(BaseModel):
    bodies: List[BodyIn] = Field(default_factory=list)
    edges: List[EdgeIn] = Field(default_factory=list)
    config: Optional[Dict[str, Any]] = None
    angles: Optional[Dict[int, float]] = None
    at: Optional[float] = None
    sun_id: Optional[int] = None


def _integrity_failure(exc: IntegrityError) -> HTTPException:
    logging.warning("[orrery] integrity check failed (%s): %s", exc.kind, exc.message)
    return HTTPException(status_code=409, detail=exc.to_dict())


def _shipped_scale_config() -> scale_config.ScaleConfig:
    try:
        return scale_config.load_scale_config()
    except ConfigurationError as exc:
        logging.error("[orrery] scale config load failed: %s", exc.message)
        raise HTTPException(status_code=500, detail=f"Scale configuration invalid: {exc.message}")


# ── Routes ─────────────────────────────────────────────────

@router.get("/api/orrery/hierarchy")
def api_orrery_hierarchy(conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
    try:
        snapshot = orrery_repository.load_snapshot(conn)
        forest = resolve_hierarchy(snapshot.bodies, snapshot.edges)
    except IntegrityError as exc:
        raise _integrity_failure(exc)
    return build_tree(forest, {b.id: b for b in snapshot.bodies})


@router.get("/api/orrery/scene")
def api_orrery_scene(
    at: Optional[float] = None,
    conn: sqlite3.Connection = Depends(get_db),
) -> Dict[str, Any]:
    cfg = _shipped_scale_config()

    try:
        snapshot = orrery_repository.load_snapshot(conn)
        forest = resolve_hierarchy(snapshot.bodies, snapshot.edges)
        scene = compute_scene(
            forest,
            snapshot.bodies,
            cfg,
            at=at,
            regions=snapshot.regions,
            subregions=snapshot.subregions,
        )
    except IntegrityError as exc:
        raise _integrity_failure(exc)
    return scene.to_dict()


@router.post("/api/orrery/scene")
def api_orrery_scene_from_records(req: SceneReq) -> Dict[str, Any]:
    if req.config is not None:
        try:
            cfg = scale_config.as_scale_config(req.config)
        except ConfigurationError as exc:
            raise HTTPException(status_code=422, detail=exc.to_dict())
    else:
        cfg = _shipped_scale_config()

    try:
        bodies = [CelestialBody.from_dict(b.model_dump()) for b in req.bodies]
        edges = [OrbitalParent(child=e.child, parent=e.parent) for e in req.edges]
        forest = resolve_hierarchy(bodies, edges, sun_id=req.sun_id)
        scene = compute_scene(forest, bodies, cfg, angles=req.angles, at=req.at)
    except IntegrityError as exc:
        raise _integrity_failure(exc)
    return scene.to_dict()
