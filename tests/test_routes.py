"""Tests for the FastAPI routes, using TestClient against an in-memory store."""

import pytest
from fastapi.testclient import TestClient

from grc_dashboard.ai_helper import AnalysisRunner
from grc_dashboard.api.server import create_app
from grc_dashboard.config import Settings
from grc_dashboard.db import MemoryStore
from grc_dashboard.store import EntityStore


class BrokenStore(MemoryStore):
    def set(self, key, value):
        raise OSError("disk full")


@pytest.fixture
def runner():
    return AnalysisRunner(lambda risks, docs, unit, **kw: f"### {len(risks)} riscos")


@pytest.fixture
def client(store, runner):
    return TestClient(create_app(store=store, runner=runner, settings=Settings()))


class TestRiskRoutes:

    def test_list_filtered(self, client):
        resp = client.get("/risks", params={"unit": "Ciclos Pay"})
        assert resp.status_code == 200
        assert [r["id"] for r in resp.json()] == ["r2", "r3"]

        resp = client.get("/risks", params={"level": "Large"})
        assert [r["id"] for r in resp.json()] == ["r1"]

    def test_create(self, client, store):
        resp = client.post("/risks")
        assert resp.status_code == 201
        body = resp.json()
        assert body["level"] == "Small"
        assert body["impact"] == 1.0
        assert store.get_risk(body["id"]) is not None

    def test_patch_recomputes(self, client):
        resp = client.patch("/risks/r4", json={"field": "factor_management", "value": 5})
        assert resp.status_code == 200
        body = resp.json()
        assert body["impact"] == pytest.approx(2.4)
        assert body["level"] == "High"

    def test_patch_invalid_value(self, client):
        resp = client.patch("/risks/r4", json={"field": "probability", "value": 9})
        assert resp.status_code == 422

    def test_patch_unknown_field(self, client):
        resp = client.patch("/risks/r4", json={"field": "level", "value": "Small"})
        assert resp.status_code == 422

    def test_patch_missing(self, client):
        resp = client.patch("/risks/nope", json={"field": "title", "value": "x"})
        assert resp.status_code == 404

    def test_delete_is_idempotent(self, client, store):
        assert client.delete("/risks/r1").status_code == 204
        assert client.delete("/risks/r1").status_code == 204
        assert store.get_risk("r1") is None


class TestDocumentRoutes:

    def test_list_by_status_label(self, client):
        resp = client.get("/documents", params={"status": "In Review"})
        assert [d["id"] for d in resp.json()] == ["3"]

    def test_create_and_patch(self, client):
        doc = client.post("/documents").json()
        assert doc["status"] == "Draft"
        resp = client.patch(f"/documents/{doc['id']}", json={"field": "status", "value": "Published"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "Published"

    def test_patch_bad_date(self, client):
        resp = client.patch("/documents/1", json={"field": "last_updated", "value": "yesterday"})
        assert resp.status_code == 422


class TestDashboardRoutes:

    def test_summary(self, client):
        body = client.get("/summary").json()
        assert body["critical_risks"] == 5
        assert body["active_policies"] == 3
        assert body["risks_by_category"]["Legal / Regulatory"] == 2

    def test_summary_no_critical_in_unit(self, client):
        body = client.get("/summary", params={"unit": "Ciclos Pay", "level": "Critical"}).json()
        assert body["critical_risks"] == 0
        assert body["risks_by_category"] == {}

    def test_matrix(self, client):
        body = client.get("/matrix").json()
        assert body["impact_rows"] == [5, 4, 3, 2, 1]
        assert sum(sum(row) for row in body["counts"]) == 5
        assert body["counts"][0][2] == 1

    def test_analysis(self, client):
        resp = client.post("/analysis", json={"unit": "All"})
        assert resp.status_code == 200
        assert resp.json()["analysis"] == "### 5 riscos"


class TestSaveRoute:

    def test_save(self, client, store, storage):
        client.post("/risks")
        resp = client.post("/save")
        assert resp.status_code == 200
        assert resp.json() == {"status": "saved"}
        assert len(EntityStore.open(storage).risks) == 6

    def test_save_failure(self, runner):
        broken = EntityStore.open(BrokenStore())
        client = TestClient(create_app(store=broken, runner=runner, settings=Settings()))
        resp = client.post("/save")
        assert resp.status_code == 503
        assert broken.save_status.value == "idle"
