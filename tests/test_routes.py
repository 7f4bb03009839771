"""HTTP API tests against the FastAPI app.

Usage:
    pytest tests/test_routes.py -v
"""

import pytest
from fastapi.testclient import TestClient

from ramp_fitment.config import get_settings
from ramp_fitment.main import app

TRUCK = {"bedLengthClosed": 96, "bedLengthWithTailgate": 114, "tailgateHeight": 22}
MOTORCYCLE = {"totalLength": 85, "wheelbase": 60, "weight": 450}


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


class TestHealth:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["service"] == "ramp-fitment-api"
        assert body["configVersion"] == "1.0.0"
        assert body["configProblems"] == []


class TestQuickFitment:
    def test_short_bed(self, client):
        response = client.post("/api/fitment/quick", json={"bedLength": "short"})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["primaryRecommendation"]["rampId"] == "AUN210"
        assert body["alternativeRecommendation"]["rampId"] == "AUN250"
        assert body["explanation"].startswith("AUN210 Standard Ramp")

    def test_unsure_carries_validation_warning(self, client):
        body = client.post("/api/fitment/quick", json={"bedLength": "unsure"}).json()
        assert body["primaryRecommendation"]["rampId"] == "AUN250"
        assert len(body["validationWarnings"]) == 1

    def test_missing_tonneau_type_rejected(self, client):
        response = client.post(
            "/api/fitment/quick", json={"bedLength": "short", "hasTonneau": True}
        )
        assert response.status_code == 422
        assert "tonneauType" in response.json()["detail"]["errors"]

    def test_unknown_bed_length_rejected(self, client):
        response = client.post("/api/fitment/quick", json={"bedLength": "huge"})
        assert response.status_code == 422


class TestAdvancedFitment:
    def test_loaded_closure_with_quote(self, client):
        response = client.post(
            "/api/fitment/advanced",
            json={
                "truck": TRUCK,
                "motorcycle": MOTORCYCLE,
                "tailgateMustClose": True,
                "motorcycleLoadedWhenClosed": True,
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["primaryRecommendation"]["rampId"] == "AUN210"
        assert body["quote"]["total"] == 1262.23
        assert body["calculatedValuesSummary"][0]["label"] == "Usable Bed Length"
        assert "Total: $1,262.23" in body["summaryText"]

    def test_quantity_and_extras(self, client):
        response = client.post(
            "/api/fitment/advanced?quantity=3&extras=AC012",
            json={"truck": TRUCK, "motorcycle": MOTORCYCLE},
        )
        quote = response.json()["quote"]
        assert quote["quantity"] == 3
        assert quote["discountPercent"] == 5
        assert quote["lineItems"][-1]["sku"] == "AC012"

    def test_quantity_bounds(self, client):
        response = client.post(
            "/api/fitment/advanced?quantity=0",
            json={"truck": TRUCK, "motorcycle": MOTORCYCLE},
        )
        assert response.status_code == 422

    def test_hard_failure_returns_no_quote(self, client):
        body = client.post(
            "/api/fitment/advanced",
            json={
                "truck": TRUCK,
                "motorcycle": {**MOTORCYCLE, "totalLength": 95},
                "tailgateMustClose": True,
                "motorcycleLoadedWhenClosed": True,
            },
        ).json()
        assert body["success"] is False
        assert body["failure"]["kind"] == "hard"
        assert body["quote"] is None

    def test_out_of_range_rejected(self, client):
        response = client.post(
            "/api/fitment/advanced",
            json={"truck": {**TRUCK, "bedLengthClosed": 30}, "motorcycle": MOTORCYCLE},
        )
        assert response.status_code == 422
        assert "truck.bedLengthClosed" in response.json()["detail"]["errors"]


class TestQuickFlowQuestions:
    def test_no_answers(self, client):
        body = client.get("/api/quick-flow/questions").json()
        assert body["currentQuestionId"] == "bedLength"
        assert body["isComplete"] is False
        assert body["result"] is None

    def test_complete(self, client):
        body = client.get(
            "/api/quick-flow/questions",
            params={"bedLength": "long", "hasTonneau": "no", "tailgateRequired": "no"},
        ).json()
        assert body["isComplete"] is True
        assert body["progress"]["percent"] == 100
        assert body["result"]["primaryRecommendation"]["rampId"] == "AUN210"

    def test_hidden_answers_ignored(self, client):
        body = client.get(
            "/api/quick-flow/questions",
            params={"bedLength": "short", "tonneauType": "hinged"},
        ).json()
        assert "tonneauType" not in body["answers"]

    def test_invalid_answer(self, client):
        response = client.get("/api/quick-flow/questions", params={"bedLength": "huge"})
        assert response.status_code == 422


class TestAccessoryCompatibility:
    def test_compatible(self, client):
        body = client.post(
            "/api/accessories/compatibility", json={"accessoryId": "AC004", "rampId": "AUN210"}
        ).json()
        assert body["isCompatible"] is True

    def test_incompatible(self, client):
        body = client.post(
            "/api/accessories/compatibility", json={"accessoryId": "AC004", "rampId": "AUN250"}
        ).json()
        assert body["isCompatible"] is False
        assert "designed for AUN210" in body["reason"]


class TestSync:
    def test_round_trip(self, client):
        saved = client.put(
            "/api/sync/abc",
            json={"source": "quick", "quickData": {"bedLength": "short", "hasTonneau": False}},
        ).json()
        assert saved["status"]["hasData"] is True
        assert saved["status"]["source"] == "quick"

        body = client.get("/api/sync/abc", params={"target": "advanced"}).json()
        assert body["message"].startswith("We pre-filled")
        assert body["state"]["vehicleType"] == "pickup"
        assert body["state"]["truck"] == {"hasTonneau": False}

        assert client.delete("/api/sync/abc").json() == {"cleared": True}
        assert client.delete("/api/sync/abc").json() == {"cleared": False}

    def test_same_flow_has_no_message(self, client):
        client.put("/api/sync/abc", json={"source": "quick", "quickData": {"bedLength": "long"}})
        body = client.get("/api/sync/abc", params={"target": "quick"}).json()
        assert body["message"] is None
        assert body["state"]["answers"] == {"bedLength": "long"}

    def test_missing_session(self, client):
        response = client.get("/api/sync/unknown")
        assert response.status_code == 404

    def test_invalid_quick_answers_are_dropped(self, client):
        saved = client.put(
            "/api/sync/s1",
            json={"source": "quick", "quickData": {"bedLength": "huge", "hasTonneau": "yes"}},
        )
        assert saved.status_code == 200

        response = client.get("/api/sync/s1", params={"target": "quick"})
        assert response.status_code == 200
        state = response.json()["state"]
        assert state["answers"] == {"hasTonneau": True}
        assert state["currentQuestionId"] == "bedLength"

    def test_invalid_advanced_data_is_dropped(self, client):
        client.put("/api/sync/s1", json={"source": "advanced", "advancedData": {"vehicleType": "car"}})

        response = client.get("/api/sync/s1", params={"target": "advanced"})
        assert response.status_code == 200
        state = response.json()["state"]
        assert state["vehicleType"] is None
        assert state["stepValidation"]["vehicle"] is False


class TestConfig:
    def test_summary(self, client):
        body = client.get("/api/config").json()
        assert [r["id"] for r in body["ramps"]] == ["AUN210", "AUN250"]
        assert {a["id"] for a in body["accessories"]} >= {"AC004", "4-BEAM", "AC012"}
        assert [o["value"] for o in body["bedLengthOptions"]] == [
            "short",
            "standard",
            "long",
            "unsure",
        ]

    def test_reload_disabled_without_key(self, client):
        assert client.post("/api/config/reload").status_code == 503

    def test_reload_auth(self, client, monkeypatch):
        monkeypatch.setenv("API_ADMIN_KEY", "secret")
        get_settings.cache_clear()

        assert client.post("/api/config/reload").status_code == 401
        wrong = client.post("/api/config/reload", headers={"X-Admin-Key": "nope"})
        assert wrong.status_code == 403

        ok = client.post("/api/config/reload", headers={"X-Admin-Key": "secret"})
        assert ok.status_code == 200
        assert ok.json()["status"] == "reloaded"
        assert ok.json()["valid"] is True

    def test_reload_broken_config(self, monkeypatch, config_dir, client):
        monkeypatch.setenv("API_ADMIN_KEY", "secret")
        get_settings.cache_clear()
        (config_dir / "ramp-models.json").write_text("{not json", encoding="utf-8")

        response = client.post("/api/config/reload", headers={"X-Admin-Key": "secret"})
        assert response.status_code == 500
        # previous configuration stays in service
        assert client.get("/api/config").status_code == 200
