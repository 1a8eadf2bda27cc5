"""
API smoke tests — hit every endpoint and verify it doesn't crash.

These tests run against the FastAPI TestClient with the DB dependency
pointed at an in-memory store holding the Sun / Mercury / Venus / Earth /
Moon / Mars example. The goal is not to validate layout math in depth
but to catch:
  - import errors / missing dependencies
  - broken SQL (syntax errors, missing columns)
  - error kinds not mapped onto the right status codes
  - regressions after migrations or refactors
"""

import json

import pytest

from conftest import EARTH, MARS, MERCURY, MOON, SUN, VENUS


@pytest.fixture()
def broken_shipped_config(tmp_path, monkeypatch):
    """Point the server-side scale config at an invalid file."""
    import scale_config

    path = tmp_path / "broken.json"
    path.write_text('{"defaults": {"g": 0}}', encoding="utf-8")
    original = scale_config.load_scale_config
    monkeypatch.setattr(scale_config, "load_scale_config", lambda: original(path))
    return path


def _example_payload():
    return {
        "bodies": [
            {"id": SUN, "name": "Sun", "radius": 1.0, "aphelion": 0.0, "perihelion": 0.0},
            {"id": MERCURY, "name": "Mercury", "radius": 1.0, "aphelion": 0.47, "perihelion": 0.31, "orbital_period": 88.0},
            {"id": VENUS, "name": "Venus", "radius": 1.0, "aphelion": 0.73, "perihelion": 0.72, "orbital_period": 224.7},
            {"id": EARTH, "name": "Earth", "radius": 1.0, "aphelion": 1.0, "perihelion": 0.98, "orbital_period": 365.25},
        ],
        "edges": [
            {"child": MERCURY, "parent": SUN},
            {"child": VENUS, "parent": SUN},
            {"child": EARTH, "parent": SUN},
        ],
        "config": {"n": 10, "x": 1, "g": 0.5},
        "angles": {str(MERCURY): 0, str(VENUS): 0, str(EARTH): 0},
    }


# ── Health ─────────────────────────────────────────────────────────────────

class TestHealth:
    def test_health(self, client):
        r = client.get("/api/health")
        assert r.status_code == 200
        assert r.json()["ok"] is True


# ── Stored records ─────────────────────────────────────────────────────────

class TestStoredEndpoints:
    def test_hierarchy(self, client):
        r = client.get("/api/orrery/hierarchy")
        assert r.status_code == 200
        tree = r.json()["tree"]
        assert tree["id"] == SUN
        assert tree["virtual"] is False
        assert [c["name"] for c in tree["children"]] == ["Mercury", "Venus", "Earth", "Mars"]
        earth = next(c for c in tree["children"] if c["id"] == EARTH)
        assert [c["id"] for c in earth["children"]] == [MOON]
        assert r.json()["warnings"] == []

    def test_scene_uses_shipped_config(self, client):
        r = client.get("/api/orrery/scene")
        assert r.status_code == 200
        data = r.json()
        assert data["root_id"] == SUN
        by_id = {p["body_id"]: p for p in data["placements"]}
        assert set(by_id) == {SUN, MERCURY, VENUS, EARTH, MOON, MARS}
        assert by_id[EARTH]["orbit_radius"] == pytest.approx(3.2019, abs=1e-4)
        assert by_id[MOON]["parent_id"] == EARTH

    def test_scene_at_snapshot(self, client):
        r = client.get("/api/orrery/scene", params={"at": 22.0})
        assert r.status_code == 200
        mercury = next(p for p in r.json()["placements"] if p["body_id"] == MERCURY)
        assert mercury["angle_deg"] == pytest.approx(90.0)

    def test_scene_is_deterministic(self, client):
        first = client.get("/api/orrery/scene").json()
        second = client.get("/api/orrery/scene").json()
        assert first == second

    def test_bad_shipped_config_is_server_error(self, client, broken_shipped_config):
        r = client.get("/api/orrery/scene")
        assert r.status_code == 500


# ── Records in the request body ────────────────────────────────────────────

class TestSceneFromRecords:
    def test_example_scene(self, client):
        r = client.post("/api/orrery/scene", json=_example_payload())
        assert r.status_code == 200
        by_id = {p["body_id"]: p for p in r.json()["placements"]}
        radii = [round(by_id[bid]["orbit_radius"], 2) for bid in (MERCURY, VENUS, EARTH)]
        assert radii == [2.17, 2.70, 3.20]
        assert by_id[EARTH]["x"] == pytest.approx(by_id[EARTH]["orbit_radius"])

    def test_cycle_is_conflict(self, client):
        payload = _example_payload()
        payload["bodies"].append(
            {"id": 20, "name": "Alpha", "radius": 1.0, "aphelion": 1.0, "perihelion": 1.0, "orbital_period": 5.0}
        )
        payload["bodies"].append(
            {"id": 21, "name": "Beta", "radius": 1.0, "aphelion": 1.0, "perihelion": 1.0, "orbital_period": 5.0}
        )
        payload["edges"] += [{"child": 20, "parent": 21}, {"child": 21, "parent": 20}]
        r = client.post("/api/orrery/scene", json=payload)
        assert r.status_code == 409
        detail = r.json()["detail"]
        assert detail["kind"] == "cycle_detected"
        assert set(detail["body_ids"]) == {20, 21}

    def test_dangling_edge_is_conflict(self, client):
        payload = _example_payload()
        payload["edges"].append({"child": 99, "parent": SUN})
        r = client.post("/api/orrery/scene", json=payload)
        assert r.status_code == 409
        assert r.json()["detail"]["kind"] == "dangling_reference"

    def test_invalid_body_is_conflict(self, client):
        payload = _example_payload()
        payload["bodies"][1]["radius"] = -1
        r = client.post("/api/orrery/scene", json=payload)
        assert r.status_code == 409
        assert r.json()["detail"]["kind"] == "invalid_body"

    @pytest.mark.parametrize("token", ["NaN", "Infinity"])
    def test_non_finite_aphelion_is_conflict(self, client, token):
        payload = _example_payload()
        payload["bodies"][1]["aphelion"] = "__APHELION__"
        body = json.dumps(payload).replace('"__APHELION__"', token)
        r = client.post("/api/orrery/scene", content=body, headers={"Content-Type": "application/json"})
        assert r.status_code == 409
        detail = r.json()["detail"]
        assert detail["kind"] == "invalid_body"
        assert detail["body_ids"] == [MERCURY]

    def test_bad_config_is_unprocessable(self, client):
        payload = _example_payload()
        payload["config"] = {"defaults": {"g": 0}}
        r = client.post("/api/orrery/scene", json=payload)
        assert r.status_code == 422
        assert r.json()["detail"]["error"] == "configuration"

    def test_bad_shipped_config_is_server_error(self, client, broken_shipped_config):
        payload = _example_payload()
        del payload["config"]
        r = client.post("/api/orrery/scene", json=payload)
        assert r.status_code == 500

    def test_request_config_overrides_broken_shipped_config(self, client, broken_shipped_config):
        r = client.post("/api/orrery/scene", json=_example_payload())
        assert r.status_code == 200

    def test_missing_fields(self, client):
        r = client.post("/api/orrery/scene", json={"bodies": [{"id": 1}]})
        assert r.status_code == 422

    def test_orphan_warning_in_response(self, client):
        payload = _example_payload()
        payload["bodies"].append(
            {"id": 30, "name": "Lost", "radius": 1.0, "aphelion": 5.0, "perihelion": 5.0, "orbital_period": 900.0}
        )
        r = client.post("/api/orrery/scene", json=payload)
        assert r.status_code == 200
        assert [w["body_id"] for w in r.json()["warnings"]] == [30]
