"""Tests for screen pairing API endpoints."""

from datetime import timedelta
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from clubhouse.core.time import utcnow
from clubhouse.models.screen import ScreenStatus
from clubhouse.models.user import User
from clubhouse.services.screen import activate_screen, get_screen_by_code, request_pairing


class TestRequestPairingEndpoint:
    """POST /api/screens/pair"""

    def test_issues_pairing_code(self, client: TestClient):
        resp = client.post("/api/screens/pair")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["pairing_code"]) == 6
        assert "expires_at" in data

    def test_pairing_code_is_uppercase_alphanumeric(self, client: TestClient):
        code = client.post("/api/screens/pair").json()["pairing_code"]
        assert code.isalnum()
        assert code == code.upper()

    def test_persists_pending_session(self, client: TestClient, db: Session):
        code = client.post("/api/screens/pair").json()["pairing_code"]
        screen = get_screen_by_code(db, code)
        assert screen is not None
        assert screen.status == ScreenStatus.PENDING.value

    def test_store_outage_returns_503(self, client: TestClient):
        error = OperationalError("INSERT INTO screens", {}, Exception("connection refused"))
        with patch("clubhouse.api.screens.request_pairing", side_effect=error):
            resp = client.post("/api/screens/pair")
        assert resp.status_code == 503
        assert resp.headers["Retry-After"] == "5"


class TestPairingStatusEndpoint:
    """GET /api/screens/status/{pairing_code}"""

    def test_pending_code_is_not_activated(self, client: TestClient, db: Session):
        screen = request_pairing(db)
        resp = client.get(f"/api/screens/status/{screen.pairing_code}")
        assert resp.status_code == 200
        assert resp.json() == {"activated": False, "status": "pending"}

    def test_activated_code(self, client: TestClient, db: Session):
        screen = request_pairing(db)
        activate_screen(db, screen.pairing_code)
        resp = client.get(f"/api/screens/status/{screen.pairing_code}")
        assert resp.status_code == 200
        assert resp.json() == {"activated": True, "status": "activated"}

    def test_expired_code(self, client: TestClient, db: Session):
        screen = request_pairing(db)
        screen.expires_at = utcnow() - timedelta(minutes=1)
        db.commit()
        resp = client.get(f"/api/screens/status/{screen.pairing_code}")
        assert resp.status_code == 200
        assert resp.json() == {"activated": False, "status": "expired"}

    def test_lowercase_code(self, client: TestClient, db: Session):
        screen = request_pairing(db)
        resp = client.get(f"/api/screens/status/{screen.pairing_code.lower()}")
        assert resp.status_code == 200

    def test_404_for_unknown_code(self, client: TestClient):
        resp = client.get("/api/screens/status/ZZ99ZZ")
        assert resp.status_code == 404

    def test_responses_are_not_cacheable(self, client: TestClient, db: Session):
        screen = request_pairing(db)
        resp = client.get(f"/api/screens/status/{screen.pairing_code}")
        assert resp.headers["Cache-Control"] == "no-store, max-age=0"


class TestActivateEndpoint:
    """POST /api/screens/activate"""

    def test_success(
        self, client: TestClient, db: Session, admin_headers: dict, admin_user: User
    ):
        screen = request_pairing(db)
        resp = client.post(
            "/api/screens/activate",
            json={"pairing_code": screen.pairing_code},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json() == {"message": "Screen activated successfully"}
        db.refresh(screen)
        assert screen.status == ScreenStatus.ACTIVATED.value
        assert screen.activated_by_user_id == admin_user.id

    def test_already_activated(self, client: TestClient, db: Session, admin_headers: dict):
        screen = request_pairing(db)
        body = {"pairing_code": screen.pairing_code}
        first = client.post("/api/screens/activate", json=body, headers=admin_headers)
        assert first.status_code == 200

        resp = client.post("/api/screens/activate", json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert "already activated" in resp.json()["detail"]

    def test_expired(self, client: TestClient, db: Session, admin_headers: dict):
        screen = request_pairing(db)
        screen.expires_at = utcnow() - timedelta(minutes=1)
        db.commit()
        resp = client.post(
            "/api/screens/activate",
            json={"pairing_code": screen.pairing_code},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "expired" in resp.json()["detail"]

    def test_unknown_code(self, client: TestClient, db: Session, admin_headers: dict):
        resp = client.post(
            "/api/screens/activate", json={"pairing_code": "ZZ99ZZ"}, headers=admin_headers
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid pairing code"
        assert get_screen_by_code(db, "ZZ99ZZ") is None

    def test_missing_pairing_code(self, client: TestClient, admin_headers: dict):
        resp = client.post("/api/screens/activate", json={}, headers=admin_headers)
        assert resp.status_code == 422

    def test_requires_token(self, client: TestClient, db: Session):
        screen = request_pairing(db)
        resp = client.post("/api/screens/activate", json={"pairing_code": screen.pairing_code})
        assert resp.status_code == 401
        db.refresh(screen)
        assert screen.status == ScreenStatus.PENDING.value

    def test_rejects_invalid_token(self, client: TestClient, db: Session):
        screen = request_pairing(db)
        resp = client.post(
            "/api/screens/activate",
            json={"pairing_code": screen.pairing_code},
            headers={"Authorization": "Bearer invalidtoken"},
        )
        assert resp.status_code == 401

    def test_content_manager_forbidden(self, client: TestClient, db: Session, auth_headers: dict):
        screen = request_pairing(db)
        resp = client.post(
            "/api/screens/activate",
            json={"pairing_code": screen.pairing_code},
            headers=auth_headers,
        )
        assert resp.status_code == 403
        db.refresh(screen)
        assert screen.status == ScreenStatus.PENDING.value
        assert screen.activated_at is None

    def test_inactive_admin_rejected(
        self, client: TestClient, db: Session, admin_headers: dict, admin_user: User
    ):
        admin_user.is_active = False
        db.commit()
        screen = request_pairing(db)
        resp = client.post(
            "/api/screens/activate",
            json={"pairing_code": screen.pairing_code},
            headers=admin_headers,
        )
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Inactive user"
        db.refresh(screen)
        assert screen.status == ScreenStatus.PENDING.value


class TestListScreensEndpoint:
    """GET /api/screens"""

    def test_lists_sessions(self, client: TestClient, db: Session, admin_headers: dict):
        screen = request_pairing(db)
        resp = client.get("/api/screens", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert len(data) == 1
        assert data[0]["pairing_code"] == screen.pairing_code
        assert data[0]["status"] == "pending"
        assert data[0]["activated_at"] is None

    def test_requires_admin(self, client: TestClient, auth_headers: dict):
        assert client.get("/api/screens", headers=auth_headers).status_code == 403

    def test_requires_token(self, client: TestClient):
        assert client.get("/api/screens").status_code == 401


class TestDeleteScreenEndpoint:
    """DELETE /api/screens/{pairing_code}"""

    def test_deletes_session(self, client: TestClient, db: Session, admin_headers: dict):
        screen = request_pairing(db)
        code = screen.pairing_code
        resp = client.delete(f"/api/screens/{code}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
        assert client.get(f"/api/screens/status/{code}").status_code == 404

    def test_404_for_unknown_code(self, client: TestClient, admin_headers: dict):
        assert client.delete("/api/screens/ZZ99ZZ", headers=admin_headers).status_code == 404

    def test_requires_admin(self, client: TestClient, db: Session, auth_headers: dict):
        screen = request_pairing(db)
        resp = client.delete(f"/api/screens/{screen.pairing_code}", headers=auth_headers)
        assert resp.status_code == 403
        assert get_screen_by_code(db, screen.pairing_code) is not None


class TestPairingHandshake:
    """Kiosk requests a code, polls, an admin activates it, the kiosk sees it."""

    def test_full_flow(self, client: TestClient, admin_headers: dict):
        code = client.post("/api/screens/pair").json()["pairing_code"]

        for _ in range(3):
            assert client.get(f"/api/screens/status/{code}").json()["activated"] is False

        resp = client.post(
            "/api/screens/activate", json={"pairing_code": code}, headers=admin_headers
        )
        assert resp.status_code == 200

        for _ in range(3):
            assert client.get(f"/api/screens/status/{code}").json()["activated"] is True

        resp = client.post(
            "/api/screens/activate", json={"pairing_code": code}, headers=admin_headers
        )
        assert resp.status_code == 400


class TestHealth:
    def test_root_health(self, client: TestClient):
        assert client.get("/health").json() == {"status": "ok"}

    def test_api_health(self, client: TestClient):
        assert client.get("/api/health").json() == {"status": "ok", "service": "api"}

    def test_security_headers(self, client: TestClient):
        resp = client.get("/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert "Strict-Transport-Security" not in resp.headers
