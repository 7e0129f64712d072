import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from main import app, configure
from services.decision_store import FileDecisionStore


@pytest.fixture
def client(decisions_path):
    configure(FileDecisionStore(decisions_path))
    return TestClient(app)


@pytest.fixture
def headers(sample_user_id):
    return {"x-user-id": sample_user_id}


def _create(client, headers, **body):
    payload = {"categoryId": "daily", "title": "Tidy the desk"}
    payload.update(body)
    response = client.post("/api/decisions", json=payload, headers=headers)
    assert response.status_code == 200
    return response.json()


class TestAuth:
    def test_health_is_public(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "store": "file"}

    @pytest.mark.parametrize("path", [
        "/api/decisions", "/api/analysis", "/api/analysis/pending",
        "/api/analysis/summary", "/api/analysis/weekly-trend", "/api/analysis/weekly"
    ])
    def test_missing_user_header(self, client, path):
        response = client.get(path)
        assert response.status_code == 401
        assert "error" in response.json()

    def test_blank_user_header(self, client):
        assert client.get("/api/decisions", headers={"x-user-id": "   "}).status_code == 401


class TestDecisionRoutes:
    def test_create_and_fetch(self, client, headers):
        created = _create(client, headers, tags=[" focus ", ""], confidence=4, notes="  ")

        assert created["title"] == "Tidy the desk"
        assert created["tags"] == ["focus"]
        assert created["confidence"] == 4
        assert created["result"] == "pending"
        assert "notes" not in created
        assert "resolvedAt" not in created

        fetched = client.get(f"/api/decisions/{created['id']}", headers=headers)
        assert fetched.status_code == 200
        assert fetched.json()["id"] == created["id"]

        listed = client.get("/api/decisions", headers=headers).json()
        assert [d["id"] for d in listed] == [created["id"]]

    def test_create_validation(self, client, headers):
        missing_title = client.post("/api/decisions", json={"categoryId": "daily"}, headers=headers)
        assert missing_title.status_code == 400
        assert missing_title.json() == {"error": "title is required"}

        missing_category = client.post("/api/decisions", json={"title": "x"}, headers=headers)
        assert missing_category.status_code == 400

        not_json = client.post("/api/decisions", content=b"nope", headers=headers)
        assert not_json.status_code == 400

    def test_resolve(self, client, headers):
        created = _create(client, headers, categoryId="invest", meta={"action": "buy", "entryPrice": 100})

        response = client.patch(
            f"/api/decisions/{created['id']}",
            json={"result": "positive", "confidence": 5, "meta": {"exitPrice": 110}},
            headers=headers
        )

        body = response.json()
        assert response.status_code == 200
        assert body["result"] == "positive"
        assert body["resolvedAt"]
        assert body["meta"]["returnRate"] == 10

        reopened = client.patch(f"/api/decisions/{created['id']}", json={"result": "pending"}, headers=headers)
        assert "resolvedAt" not in reopened.json()

    def test_resolve_rejects_unknown_result(self, client, headers):
        created = _create(client, headers)
        response = client.patch(f"/api/decisions/{created['id']}", json={"result": "great"}, headers=headers)
        assert response.status_code == 400
        assert "error" in response.json()

    def test_edit_fields(self, client, headers):
        created = _create(client, headers, notes="first")

        response = client.patch(
            f"/api/decisions/{created['id']}",
            json={"title": "Tidy the whole room", "tags": ["habit"]},
            headers=headers
        )

        body = response.json()
        assert body["title"] == "Tidy the whole room"
        assert body["tags"] == ["habit"]
        assert body["notes"] == "first"
        assert body["result"] == "pending"

    def test_other_users_get_404(self, client, headers):
        created = _create(client, headers)
        stranger = {"x-user-id": "stranger"}

        assert client.get(f"/api/decisions/{created['id']}", headers=stranger).status_code == 404
        assert client.patch(
            f"/api/decisions/{created['id']}", json={"result": "positive"}, headers=stranger
        ).status_code == 404
        assert client.delete(f"/api/decisions/{created['id']}", headers=stranger).status_code == 404

    def test_delete(self, client, headers):
        created = _create(client, headers)

        response = client.delete(f"/api/decisions/{created['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert client.get(f"/api/decisions/{created['id']}", headers=headers).status_code == 404


class TestAnalysisRoutes:
    @pytest.fixture
    def seeded(self, client, headers):
        _create(client, headers, categoryId="health", title="Run", result="positive", confidence=4, tags=["exercise"])
        _create(client, headers, categoryId="health", title="Stretch", tags=["exercise"])
        _create(client, headers, categoryId="invest", title="Buy", result="negative", meta={"action": "buy"})
        return client

    def test_overview(self, seeded, headers):
        body = seeded.get("/api/analysis", headers=headers).json()
        assert body["total"] == 3
        assert body["completed"] == 2
        assert body["positiveRate"] == 50
        assert body["byAction"]["buy"]["total"] == 1

    def test_pending(self, seeded, headers):
        body = seeded.get("/api/analysis/pending", headers=headers).json()
        assert [d["title"] for d in body] == ["Stretch"]

    def test_summary(self, seeded, headers):
        response = seeded.get(
            "/api/analysis/summary", params={"days": "abc", "categoryId": "health", "limit": "3"}, headers=headers
        )

        body = response.json()
        assert response.status_code == 200
        assert response.headers["cache-control"].startswith("no-store")
        assert body["summary"]["total"] == 2
        assert body["summary"]["positiveRate"] == 100
        assert body["topTags"][0] == {"tag": "exercise", "count": 2, "completed": 1, "positiveRate": 100}
        assert len(body["byWeekday"]) == 7
        assert len(body["byHour"]) == 24
        assert len(body["confidenceStats"]) == 5

    def test_weekly_trend(self, seeded, headers):
        body = seeded.get("/api/analysis/weekly-trend", params={"weeks": "100"}, headers=headers).json()
        assert len(body["weeks"]) == 24
        assert body["weeks"][-1]["total"] == 2

    def test_weekly_report(self, seeded, headers):
        response = seeded.get("/api/analysis/weekly", params={"weekStart": "bogus"}, headers=headers)

        body = response.json()
        assert response.headers["pragma"] == "no-cache"
        assert body["counts"]["total"] == 3
        assert set(body) >= {"period", "counts", "resultCounts", "confidence", "topCategory",
                             "insight", "previous", "delta"}
        assert body["topCategory"] == {"categoryId": "health", "total": 2}

    def test_empty_user(self, client, headers):
        body = client.get("/api/analysis/summary", headers=headers).json()
        assert body["summary"]["total"] == 0
        assert body["recentCompleted"] == []

    @pytest.mark.parametrize("week_start", ["9999-12-31", "0001-01-01"])
    def test_weekly_report_at_calendar_limits(self, client, headers, week_start):
        response = client.get("/api/analysis/weekly", params={"weekStart": week_start}, headers=headers)

        assert response.status_code == 200
        assert response.json()["period"]["start"] != week_start

    @pytest.mark.parametrize("path", [
        "/api/analysis", "/api/analysis/pending", "/api/analysis/summary",
        "/api/analysis/weekly-trend", "/api/analysis/weekly"
    ])
    def test_analysis_responses_not_cached(self, client, headers, path):
        response = client.get(path, headers=headers)
        assert response.status_code == 200
        assert response.headers["cache-control"].startswith("no-store")
        assert response.headers["pragma"] == "no-cache"
