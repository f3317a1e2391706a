"""Tests for FastAPI endpoints."""

import pytest
from fastapi.testclient import TestClient
from modelsync.main import app

client = TestClient(app)


ANCHORED_MODEL = {
    "anchors": [{"id": "root_anchor", "target": {"boneId": "root"}, "offset": [1, 2, 3]}],
    "bones": [{"id": "child", "pivotAnchorId": "root_anchor"}],
    "cubes": [{"id": "box", "from": [0, 0, 0], "to": [2, 2, 2], "centerAnchorId": "root_anchor"}],
}


class TestHealthEndpoint:
    def test_health(self):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert "version" in data
        assert data["limits"]["maxCubes"] > 0


class TestTemplatesEndpoint:
    def test_lists_rig_templates(self):
        resp = client.get("/api/templates")
        assert resp.status_code == 200
        templates = {item["id"]: item for item in resp.json()}
        assert set(templates) == {"empty", "biped", "quadruped", "block_entity"}
        assert templates["biped"]["bones"] == 7
        assert templates["biped"]["cubes"] == 6
        assert templates["empty"]["bones"] == 0


class TestValidateEndpoint:
    def test_valid_model(self):
        resp = client.post("/api/validate", json={"model": ANCHORED_MODEL})
        assert resp.status_code == 200
        data = resp.json()
        assert data["valid"] is True
        assert data["boneCount"] == 2  # child + injected root
        assert data["cubeCount"] == 1
        assert data["anchorCount"] == 1

    def test_counts_include_template_and_instances(self):
        model = {
            "rigTemplate": "biped",
            "instances": [{"type": "repeat", "sourceCubeId": "body", "count": 2}],
        }
        data = client.post("/api/validate", json={"model": model}).json()
        assert data["valid"] is True
        assert data["boneCount"] == 7
        assert data["cubeCount"] == 8

    @pytest.mark.parametrize("model, message", [
        ({"cubes": [{"id": "lid", "center": [0, 0, 0]}]}, "cube bounds missing for lid"),
        ({"bones": [{"id": "arm", "parentId": "ghost"}]}, "bone parent not found: ghost"),
        ({"policies": {"idPolicy": "explicit"}, "bones": [{"name": "spine"}]}, "idPolicy is explicit"),
    ])
    def test_rejects_what_normalize_rejects(self, model, message):
        resp = client.post("/api/validate", json={"model": model})
        assert resp.status_code == 200
        data = resp.json()
        assert data["valid"] is False
        assert message in data["error"]
        assert data["boneCount"] is None

    def test_cube_limit(self):
        model = {
            "cubes": [{"id": "a", "from": [0, 0, 0], "to": [1, 1, 1]}],
            "instances": [{"type": "repeat", "sourceCubeId": "a", "count": 5}],
        }
        data = client.post("/api/validate", json={"model": model, "maxCubes": 3}).json()
        assert data["valid"] is False
        assert "too many cubes" in data["error"]

    def test_references_without_anchors(self):
        resp = client.post(
            "/api/validate",
            json={"model": {"bones": [{"id": "child", "pivotAnchorId": "missing"}]}},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["valid"] is False
        assert "anchors required for id references" in data["error"]


class TestNormalizeEndpoint:
    def test_anchored_model(self):
        resp = client.post("/api/normalize", json={"model": ANCHORED_MODEL})
        assert resp.status_code == 200
        data = resp.json()
        assert data["error"] is None
        bones = {bone["id"]: bone for bone in data["bones"]}
        assert bones["child"]["pivot"] == [1.0, 2.0, 3.0]
        assert bones["child"]["parentId"] == "root"
        box = data["cubes"][0]
        assert box["from"] == [0.0, 1.0, 2.0]
        assert box["to"] == [2.0, 3.0, 4.0]
        assert box["origin"] == [1.0, 2.0, 3.0]

    def test_explicit_policy_error(self):
        resp = client.post(
            "/api/normalize",
            json={"model": {"policies": {"idPolicy": "explicit"}, "cubes": [{"from": [0, 0, 0], "to": [1, 1, 1]}]}},
        )
        assert resp.status_code == 200
        error = resp.json()["error"]
        assert error["code"] == "invalid_payload"
        assert "idPolicy is explicit" in error["message"]
        assert error["fix"]

    def test_cube_ceiling(self):
        model = {
            "cubes": [{"id": "a", "from": [0, 0, 0], "to": [1, 1, 1]}],
            "instances": [{"type": "repeat", "sourceCubeId": "a", "count": 4}],
        }
        resp = client.post("/api/normalize", json={"model": model, "maxCubes": 3})
        assert "too many cubes" in resp.json()["error"]["message"]

    def test_unknown_instance_warning(self):
        model = {
            "cubes": [{"id": "a", "from": [0, 0, 0], "to": [1, 1, 1]}],
            "instances": [{"type": "scatter", "sourceCubeId": "a"}],
        }
        data = client.post("/api/normalize", json={"model": model}).json()
        assert data["warnings"] == ["unknown instance type skipped: scatter"]
        assert len(data["cubes"]) == 1

    @pytest.mark.parametrize("model", [
        {"cubes": [{"id": "a", "from": [0, 0], "to": [1, 1, 1]}]},
        {"rigTemplate": "octopus"},
        {"policies": {"snap": {"grid": 0}}},
    ])
    def test_malformed_payload(self, model):
        resp = client.post("/api/normalize", json={"model": model})
        assert resp.status_code == 422


class TestPlanEndpoint:
    def test_replace_deletes_orphans(self):
        resp = client.post("/api/plan", json={
            "model": {},
            "existingBones": [
                {"id": "root", "name": "root"},
                {"id": "leg", "name": "leg", "parent": "root"},
            ],
            "existingCubes": [
                {"id": "leg_cube", "name": "leg_cube", "bone": "leg", "from": [0, 0, 0], "to": [1, 4, 1]},
            ],
            "mode": "replace",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["error"] is None
        assert data["ops"] == [
            {"id": "leg_cube", "name": "leg_cube", "op": "delete_cube"},
            {"id": "leg", "name": "leg", "op": "delete_bone"},
        ]
        assert data["summary"]["deleteCubes"] == 1
        assert data["summary"]["deleteBones"] == 1
        assert set(data["timings"]) == {"normalize_ms", "plan_ms"}

    def test_merge_visibility_change(self):
        resp = client.post("/api/plan", json={
            "model": {"bones": [{"id": "spine", "visibility": False}]},
            "existingBones": [
                {"id": "root", "name": "root"},
                {"id": "spine", "name": "spine", "parent": "root", "visibility": True},
            ],
        })
        ops = resp.json()["ops"]
        assert len(ops) == 1
        assert ops[0]["op"] == "update_bone"
        assert ops[0]["changes"] == {"visibility": False}
        assert ops[0]["bone"]["id"] == "spine"

    def test_create_on_existing_is_an_error(self):
        resp = client.post("/api/plan", json={
            "model": {},
            "existingBones": [{"id": "root", "name": "root"}],
            "mode": "create",
        })
        assert resp.status_code == 200
        assert resp.json()["error"]["message"] == "bone already exists: root"

    def test_unknown_mode_rejected(self):
        resp = client.post("/api/plan", json={"model": {}, "mode": "upsert"})
        assert resp.status_code == 422
