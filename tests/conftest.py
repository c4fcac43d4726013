import pytest

from skyfall_backend import runtime as app_module
from tests.fakes import FakeFirestore, FakeFirestoreModule


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = float(now)

    def time(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture()
def client():
    app_module.app.config["TESTING"] = True
    app_module.RATE_LIMIT_EVENTS.clear()
    with app_module.app.test_client() as test_client:
        yield test_client
    app_module.RATE_LIMIT_EVENTS.clear()


@pytest.fixture(autouse=True)
def disable_sentry(monkeypatch):
    monkeypatch.setattr(app_module, "sentry_sdk", None)


@pytest.fixture()
def fake_db(monkeypatch):
    db = FakeFirestore()
    monkeypatch.setattr(app_module, "db", db)
    monkeypatch.setattr(app_module, "firestore", FakeFirestoreModule)
    return db


@pytest.fixture()
def clock(monkeypatch):
    fake_clock = FakeClock()
    monkeypatch.setattr(app_module, "time", fake_clock)
    return fake_clock


def signed_in(monkeypatch, uid, email="player@example.com"):
    monkeypatch.setattr(app_module, "verify_firebase_token", lambda _request: {"uid": uid, "email": email})
