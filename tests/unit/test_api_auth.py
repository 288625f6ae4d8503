"""Tests for API authentication, the allowlist gate and sign-in."""

from __future__ import annotations

from typing import Any, Callable, Iterator

import jwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from constellation.services.store import DataStore
from tests.conftest import API_KEY, JWT_SECRET, make_settings

_DEAL_BODY = {
    "name": "Pioneer Mill SAF",
    "opportunityTypeId": "bioenergy",
    "stage": "definition",
    "readinessState": "conceptual-interest",
    "dominantConstraint": "revenue-certainty",
    "summary": "Sustainable aviation fuel from bagasse.",
}


def _token(email: str | None, **claims: Any) -> str:
    payload: dict[str, Any] = {"aud": "constellation", **claims}
    if email is not None:
        payload["email"] = email
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def _bearer(email: str | None, **claims: Any) -> dict[str, str]:
    return {"Authorization": f"Bearer {_token(email, **claims)}"}


@pytest.fixture
def client(build_app: Callable[..., FastAPI], seeded_store: DataStore) -> Iterator[TestClient]:
    with TestClient(build_app(seeded_store)) as c:
        yield c


class TestAuthDisabled:
    def test_writes_return_503(self, build_app: Callable[..., FastAPI], seeded_store: DataStore) -> None:
        app = build_app(seeded_store, settings=make_settings(auth_enabled=False))
        with TestClient(app) as client:
            resp = client.post("/api/deals", json=_DEAL_BODY, headers={"X-API-Key": API_KEY})
        assert resp.status_code == 503
        assert resp.json() == {"error": "Authentication is not configured"}

    def test_reads_stay_public(self, build_app: Callable[..., FastAPI], seeded_store: DataStore) -> None:
        app = build_app(seeded_store, settings=make_settings(auth_enabled=False))
        with TestClient(app) as client:
            assert client.get("/api/deals").status_code == 200


class TestApiKey:
    def test_missing_credentials(self, client: TestClient) -> None:
        resp = client.post("/api/deals", json=_DEAL_BODY)
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    def test_wrong_key(self, client: TestClient) -> None:
        resp = client.post("/api/deals", json=_DEAL_BODY, headers={"X-API-Key": "nope"})
        assert resp.status_code == 401

    def test_valid_key(self, client: TestClient) -> None:
        resp = client.post("/api/deals", json=_DEAL_BODY, headers={"X-API-Key": API_KEY})
        assert resp.status_code == 201

    def test_api_key_is_admin(self, client: TestClient) -> None:
        assert client.get("/api/access/allowlist", headers={"X-API-Key": API_KEY}).status_code == 200

    def test_auth_checked_before_body(self, client: TestClient) -> None:
        resp = client.post("/api/deals", json={})
        assert resp.status_code == 401


class TestBearer:
    def test_allowlisted_member(self, client: TestClient) -> None:
        resp = client.post("/api/deals", json=_DEAL_BODY, headers=_bearer("member@example.gov.au"))
        assert resp.status_code == 201

    def test_email_case_insensitive(self, client: TestClient) -> None:
        resp = client.post("/api/deals", json=_DEAL_BODY, headers=_bearer("Member@Example.GOV.au"))
        assert resp.status_code == 201

    def test_not_allowlisted(self, client: TestClient) -> None:
        resp = client.post("/api/deals", json=_DEAL_BODY, headers=_bearer("stranger@example.com"))
        assert resp.status_code == 403
        assert resp.json() == {"error": "Access denied"}

    def test_inactive_entry(self, client: TestClient) -> None:
        resp = client.post("/api/deals", json=_DEAL_BODY, headers=_bearer("former@example.gov.au"))
        assert resp.status_code == 403

    def test_bad_signature(self, client: TestClient) -> None:
        token = jwt.encode(
            {"email": "admin@example.gov.au", "aud": "constellation"},
            "another-secret-that-is-long-enough-too",
            algorithm="HS256",
        )
        resp = client.post("/api/deals", json=_DEAL_BODY, headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["error"].startswith("Invalid token")

    def test_wrong_audience(self, client: TestClient) -> None:
        resp = client.post("/api/deals", json=_DEAL_BODY, headers=_bearer("admin@example.gov.au", aud="other-app"))
        assert resp.status_code == 401

    def test_missing_email_claim(self, client: TestClient) -> None:
        resp = client.post("/api/deals", json=_DEAL_BODY, headers=_bearer(None, sub="123"))
        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid token: missing email claim"}

    def test_member_cannot_administer_allowlist(self, client: TestClient) -> None:
        resp = client.get("/api/access/allowlist", headers=_bearer("member@example.gov.au"))
        assert resp.status_code == 403
        assert resp.json() == {"error": "Forbidden"}

    def test_admin_can_administer_allowlist(self, client: TestClient) -> None:
        assert client.get("/api/access/allowlist", headers=_bearer("admin@example.gov.au")).status_code == 200


class TestSignIn:
    def test_allowed(self, client: TestClient, seeded_store: DataStore) -> None:
        resp = client.post("/api/auth/signin", headers=_bearer("admin@example.gov.au"))
        assert resp.status_code == 200
        assert resp.json() == {"email": "admin@example.gov.au", "role": "admin"}
        events = seeded_store.auth_audit.list()
        assert [(e.email, e.outcome) for e in events] == [("admin@example.gov.au", "allowed")]

    def test_denied_is_audited(self, client: TestClient, seeded_store: DataStore) -> None:
        resp = client.post("/api/auth/signin", headers=_bearer("former@example.gov.au"))
        assert resp.status_code == 403
        assert [e.outcome for e in seeded_store.auth_audit.list()] == ["denied_inactive"]

    def test_not_allowlisted_is_audited(self, client: TestClient, seeded_store: DataStore) -> None:
        client.post("/api/auth/signin", headers=_bearer("stranger@example.com"))
        assert [e.outcome for e in seeded_store.auth_audit.list()] == ["denied_not_allowlisted"]

    def test_no_token(self, client: TestClient) -> None:
        assert client.post("/api/auth/signin").status_code == 401

    def test_auth_disabled(self, build_app: Callable[..., FastAPI], seeded_store: DataStore) -> None:
        app = build_app(seeded_store, settings=make_settings(auth_enabled=False))
        with TestClient(app) as client:
            resp = client.post("/api/auth/signin", headers=_bearer("admin@example.gov.au"))
        assert resp.status_code == 503
