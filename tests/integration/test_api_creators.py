"""
HTTP Integration Tests: Creator Registry

Drives the FastAPI application end to end (routing, validation, domain
services, SQLite persistence and the error envelope).
"""

from unittest.mock import AsyncMock

import pytest

from api.main import app
from config.settings import CorpusSettings
from container import get_creator_service_dependency, get_stats_service_dependency
from core.exceptions import UnavailableError
from services.stats_service import StatsService

pytestmark = pytest.mark.integration


def _create(client, name="Alex", **fields):
    response = client.post("/creators", json={"name": name, **fields})
    assert response.status_code == 201, response.text
    return response.json()


class TestCreatorCrud:
    def test_create_get_update_delete(self, api_client):
        created = _create(api_client, description="Fitness coach")
        creator_id = created["id"]
        assert created["is_active"] is True

        fetched = api_client.get(f"/creators/{creator_id}")
        assert fetched.status_code == 200
        assert fetched.json()["description"] == "Fitness coach"

        patched = api_client.patch(f"/creators/{creator_id}", json={"name": "Alexandra"})
        assert patched.status_code == 200
        assert patched.json()["name"] == "Alexandra"
        assert patched.json()["description"] == "Fitness coach"

        deleted = api_client.delete(f"/creators/{creator_id}")
        assert deleted.status_code == 204
        assert api_client.get(f"/creators/{creator_id}").status_code == 404

    def test_status_toggle_and_filter(self, api_client):
        alex = _create(api_client, "Alex")
        _create(api_client, "Bella")

        response = api_client.put(f"/creators/{alex['id']}/status", json={"is_active": False})
        assert response.json()["is_active"] is False

        inactive = api_client.get("/creators", params={"status": "inactive"}).json()
        assert [c["name"] for c in inactive["items"]] == ["Alex"]

        active = api_client.get("/creators", params={"status": "active"}).json()
        assert [c["name"] for c in active["items"]] == ["Bella"]

    def test_listing_pages(self, api_client):
        for i in range(12):
            _create(api_client, f"Creator {i}")

        body = api_client.get("/creators", params={"skip": 10, "limit": 10}).json()
        assert (body["total"], body["page"], body["pages"]) == (12, 2, 2)
        assert len(body["items"]) == 2


class TestErrorEnvelope:
    def test_not_found_body(self, api_client):
        response = api_client.get("/creators/999", headers={"X-Request-ID": "req-42"})
        body = response.json()

        assert response.status_code == 404
        assert body["error_code"] == "CREATOR_NOT_FOUND"
        assert body["request_id"] == "req-42"
        assert response.headers["X-Request-ID"] == "req-42"

    def test_validation_body_lists_fields(self, api_client):
        response = api_client.post("/creators", json={"name": "", "description": "x" * 501})
        body = response.json()

        assert response.status_code == 422
        assert set(body["fields"]) == {"name", "description"}
        assert body["request_id"]

    def test_bad_path_parameter(self, api_client):
        response = api_client.get("/creators/not-a-number")
        assert response.status_code == 422
        assert "creator_id" in response.json()["fields"]

    def test_bad_status_filter(self, api_client):
        response = api_client.get("/creators", params={"status": "archived"})
        assert response.status_code == 422


class TestAuthentication:
    def test_missing_token_rejected(self, unauthenticated_client):
        response = unauthenticated_client.get("/creators")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error_code"] == "UNAUTHENTICATED"

    def test_garbage_token_rejected(self, unauthenticated_client):
        response = unauthenticated_client.get(
            "/creators", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    def test_valid_token_accepted(self, unauthenticated_client, auth_headers):
        response = unauthenticated_client.get("/creators", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 0

    def test_health_and_metrics_need_no_token(self, unauthenticated_client):
        assert unauthenticated_client.get("/health").status_code == 200
        assert unauthenticated_client.get("/metrics").status_code == 200


class TestStatistics:
    def test_stats_and_bulk_stats(self, api_client):
        alex = _create(api_client, "Alex")
        api_client.post(
            f"/creators/{alex['id']}/style-examples",
            json={"fan_message": "hi!", "creator_response": "heyy", "category": "Greeting"},
        )

        stats = api_client.get(f"/creators/{alex['id']}/stats").json()
        assert stats["style_examples_count"] == 1
        assert stats["style_examples_by_category"] == {"Greeting": 1}
        assert stats["has_style_config"] is False

        bulk = api_client.post("/creators/stats/bulk", json={"creator_ids": [alex["id"], 999]})
        assert bulk.status_code == 200
        body = bulk.json()
        assert body[str(alex["id"])]["total_examples"] == 1
        assert body["999"]["creator_name"] == "Creator 999"

    def test_stats_export_is_attachment(self, api_client):
        alex = _create(api_client, "Alex")
        response = api_client.get(f"/creators/{alex['id']}/stats/export")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert "attachment" in response.headers["content-disposition"]
        assert response.json()["creator_name"] == "Alex"

    def test_roster_export(self, api_client):
        _create(api_client, "Alex")
        response = api_client.get("/creators/export")
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.splitlines()
        assert lines[0].startswith("ID,Name,Description,Status")
        assert len(lines) == 2

    def test_bulk_stats_degrade_to_known_creator_records(self, api_client):
        alex = _create(api_client, "Alex", description="Fitness coach")
        failing_repository = AsyncMock()
        failing_repository.aggregate.side_effect = UnavailableError("aggregation down")
        app.dependency_overrides[get_stats_service_dependency] = lambda: StatsService(
            failing_repository, corpus_settings=CorpusSettings()
        )

        response = api_client.post("/creators/stats/bulk", json={"creator_ids": [alex["id"], 999]})

        assert response.status_code == 200
        body = response.json()
        assert body[str(alex["id"])]["creator_name"] == "Alex"
        assert body[str(alex["id"])]["creator_description"] == "Fitness coach"
        assert body[str(alex["id"])]["total_examples"] == 0
        assert body["999"]["creator_name"] == "Creator 999"

    def test_bulk_stats_survive_creator_lookup_failure(self, api_client):
        failing_creators = AsyncMock()
        failing_creators.get_many.side_effect = UnavailableError("registry down")
        failing_repository = AsyncMock()
        failing_repository.aggregate.side_effect = UnavailableError("aggregation down")
        app.dependency_overrides[get_creator_service_dependency] = lambda: failing_creators
        app.dependency_overrides[get_stats_service_dependency] = lambda: StatsService(
            failing_repository, corpus_settings=CorpusSettings()
        )

        response = api_client.post("/creators/stats/bulk", json={"creator_ids": [4, 7]})

        assert response.status_code == 200
        body = response.json()
        assert [body[k]["creator_name"] for k in ("4", "7")] == ["Creator 4", "Creator 7"]
