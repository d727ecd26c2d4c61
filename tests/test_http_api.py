from __future__ import annotations

import random

from starlette.testclient import TestClient

from adapters.http_api import CORS_HEADERS, INTERNAL_ERROR, MISSING_FIELDS_ERROR, create_app
from core.bots import MICRO_THERAPY_CATALOG, SLEEP_GUARDIAN_CATALOG
from core.catalog import GENERIC_RESPONSE


def _client() -> TestClient:
    return TestClient(create_app(rng=random.Random(0)))


def test_classify_known_bot() -> None:
    response = _client().post(
        "/classify", json={"message": "I feel so anxious about the exam", "botType": "micro_therapy"}
    )
    assert response.status_code == 200
    assert response.json() == {"response": MICRO_THERAPY_CATALOG["responses"]["anxious"]}
    assert response.headers["access-control-allow-origin"] == "*"


def test_classify_uses_default_when_nothing_matches() -> None:
    response = _client().post("/classify", json={"message": "hello", "botType": "sleep_guardian"})
    assert response.json() == {"response": SLEEP_GUARDIAN_CATALOG["responses"]["listening"]}


def test_missing_fields_is_400() -> None:
    client = _client()
    for body in ({}, {"message": "hi"}, {"botType": "micro_therapy"}, {"message": "", "botType": "x"}, []):
        response = client.post("/classify", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": MISSING_FIELDS_ERROR}


def test_unknown_bot_gets_generic_reply() -> None:
    response = _client().post("/classify", json={"message": "hello", "botType": "unknown_bot"})
    assert response.status_code == 200
    assert response.json() == {"response": GENERIC_RESPONSE}


def test_bot_without_rules_gets_generic_reply() -> None:
    response = _client().post("/classify", json={"message": "hello", "botType": "face_detection"})
    assert response.json() == {"response": GENERIC_RESPONSE}


def test_invalid_json_is_500() -> None:
    response = _client().post(
        "/classify", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 500
    assert response.json() == {"error": INTERNAL_ERROR}


def test_preflight() -> None:
    response = _client().options("/classify")
    assert response.status_code == 200
    for name, value in CORS_HEADERS.items():
        assert response.headers[name] == value


def test_health() -> None:
    response = _client().get("/health")
    assert response.json() == {"ok": True}


def test_browser_preflight_accepts_any_requested_header() -> None:
    response = _client().options(
        "/classify",
        headers={
            "Origin": "https://app.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type, x-supabase-api-version",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]
    assert "x-supabase-api-version" in response.headers["access-control-allow-headers"].lower()


def test_cross_origin_post_is_allowed() -> None:
    response = _client().post(
        "/classify",
        json={"message": "I feel so anxious", "botType": "micro_therapy"},
        headers={"Origin": "https://app.example"},
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
