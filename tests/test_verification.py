from urllib.parse import parse_qs, urlparse

import pytest

from skyfall_backend import runtime as app_module
from tests.conftest import signed_in


@pytest.fixture()
def sent_emails(monkeypatch):
    outbox = []

    def fake_send(to_email, link):
        outbox.append({"to": to_email, "link": link})
        return True, "msg-1"

    monkeypatch.setattr(app_module, "send_verification_email", fake_send)
    monkeypatch.setattr(app_module, "EMAIL_VERIFIED_REDIRECT_URL", "")
    return outbox


def _token_from(link):
    return parse_qs(urlparse(link).query)["token"][0]


def test_send_verification_requires_auth(client, monkeypatch, fake_db, sent_emails):
    monkeypatch.setattr(app_module, "verify_firebase_token", lambda _request: None)

    response = client.post("/api/send-verification-email", json={"email": "a@example.com"})

    assert response.status_code == 401
    assert sent_emails == []


def test_send_then_verify_marks_user_verified(client, monkeypatch, fake_db, clock, sent_emails):
    signed_in(monkeypatch, "player-1", email="Player@Example.com")

    response = client.post("/api/send-verification-email", json={})

    assert response.status_code == 200
    assert sent_emails[0]["to"] == "player@example.com"
    assert sent_emails[0]["link"].startswith(f"{app_module.PUBLIC_BASE_URL}/api/verify-email?token=")
    token = _token_from(sent_emails[0]["link"])
    stored = fake_db.doc("email_verifications", token)
    assert stored["uid"] == "player-1"
    assert stored["verified"] is False
    assert stored["expiresAt"] == clock.now + 86400

    clock.advance(60)
    verified = client.get(f"/api/verify-email?token={token}")

    assert verified.status_code == 200
    assert verified.get_json() == {"ok": True, "verified": True}
    assert fake_db.doc("users", "player-1")["emailVerified"] is True
    assert fake_db.doc("users", "player-1")["emailVerifiedAt"] == clock.now

    again = client.get(f"/api/verify-email?token={token}")
    assert again.status_code == 200
    assert again.get_json() == {"ok": True, "alreadyVerified": True}


def test_verify_rejects_missing_and_malformed_tokens(client, fake_db, sent_emails):
    assert client.get("/api/verify-email").status_code == 400
    assert client.get("/api/verify-email?token=short").status_code == 400
    assert client.get("/api/verify-email?token=" + "a" * 40).status_code == 404


def test_verify_rejects_expired_token(client, monkeypatch, fake_db, clock, sent_emails):
    signed_in(monkeypatch, "player-2")
    client.post("/api/send-verification-email", json={"email": "late@example.com"})
    token = _token_from(sent_emails[0]["link"])

    clock.advance(86400 + 1)
    response = client.get(f"/api/verify-email?token={token}")

    assert response.status_code == 400
    assert "expired" in response.get_json()["error"].lower()
    assert fake_db.doc("users", "player-2")["emailVerified"] is False


def test_verify_redirects_when_configured(client, monkeypatch, fake_db, clock, sent_emails):
    signed_in(monkeypatch, "player-3")
    client.post("/api/send-verification-email", json={"email": "p3@example.com"})
    token = _token_from(sent_emails[0]["link"])
    monkeypatch.setattr(app_module, "EMAIL_VERIFIED_REDIRECT_URL", "https://topseat.us/verified.html")

    response = client.get(f"/api/verify-email?token={token}")

    assert response.status_code == 302
    assert response.headers["Location"] == "https://topseat.us/verified.html?status=verified"


def test_send_verification_reports_delivery_failure(client, monkeypatch, fake_db):
    signed_in(monkeypatch, "player-4")
    monkeypatch.setattr(app_module, "send_verification_email", lambda _to, _link: (False, "Email delivery is not configured."))

    response = client.post("/api/send-verification-email", json={"email": "p4@example.com"})

    assert response.status_code == 500
    assert "not configured" in response.get_json()["error"]


def test_resend_requires_existing_unverified_user(client, monkeypatch, fake_db, sent_emails):
    signed_in(monkeypatch, "ghost")
    assert client.post("/api/resend-verification").status_code == 404

    fake_db.seed("users", "ghost", {"uid": "ghost", "email": "g@example.com", "emailVerified": True})
    response = client.post("/api/resend-verification")
    assert response.status_code == 400
    assert "already verified" in response.get_json()["error"].lower()


def test_resend_is_rate_limited(client, monkeypatch, fake_db, sent_emails):
    signed_in(monkeypatch, "eager")
    fake_db.seed("users", "eager", {"uid": "eager", "email": "eager@example.com", "emailVerified": False})
    monkeypatch.setattr(app_module, "check_rate_limit", lambda **_kwargs: (False, 900))

    response = client.post("/api/resend-verification")

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "900"
    assert sent_emails == []


def test_resend_supersedes_previous_link(client, monkeypatch, fake_db, clock, sent_emails):
    signed_in(monkeypatch, "retry")
    monkeypatch.setattr(app_module, "check_rate_limit", lambda **_kwargs: (True, 0))
    client.post("/api/send-verification-email", json={"email": "retry@example.com"})
    first_token = _token_from(sent_emails[0]["link"])

    clock.advance(30)
    response = client.post("/api/resend-verification")

    assert response.status_code == 200
    second_token = _token_from(sent_emails[1]["link"])
    assert second_token != first_token
    assert client.get(f"/api/verify-email?token={first_token}").status_code == 400
    assert client.get(f"/api/verify-email?token={second_token}").status_code == 200
