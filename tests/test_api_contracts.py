from types import SimpleNamespace

from skyfall_backend import runtime as app_module
from tests.conftest import signed_in


def _allow_rate_limit(monkeypatch):
    monkeypatch.setattr(app_module, "check_rate_limit", lambda **_kwargs: (True, 0))


def _webhook_event(monkeypatch, event):
    monkeypatch.setattr(app_module, "STRIPE_WEBHOOK_SECRET", "whsec_contract")
    monkeypatch.setattr(app_module.stripe.Webhook, "construct_event", lambda _payload, _sig, _secret: event)


def _post_webhook(client):
    return client.post("/webhook", data=b"{}", headers={"Stripe-Signature": "t=1,v1=sig"})


def test_health_endpoints(client):
    for path in ("/health", "/healthz"):
        response = client.get(path)
        assert response.status_code == 200
        assert response.get_json() == {"status": "ok"}


def test_checkout_requires_price_id(client, monkeypatch):
    _allow_rate_limit(monkeypatch)

    response = client.post("/create-checkout-session", json={"mode": "payment"})

    assert response.status_code == 400
    assert response.get_json()["error"] == "priceId is required"


def test_checkout_non_object_json_body_returns_400(client, monkeypatch):
    _allow_rate_limit(monkeypatch)

    response = client.post("/create-checkout-session", json=[1])

    assert response.status_code == 400
    assert response.get_json()["error"] == "priceId is required"


def test_checkout_rejects_unknown_mode(client, monkeypatch):
    _allow_rate_limit(monkeypatch)

    response = client.post("/create-checkout-session", json={"priceId": "price_a", "mode": "setup"})

    assert response.status_code == 400


def test_checkout_creates_session_with_user_metadata(client, monkeypatch):
    _allow_rate_limit(monkeypatch)
    signed_in(monkeypatch, "token-user")
    monkeypatch.setattr(app_module, "PRICE_BONUS_ATTEMPTS", {"price_a": 10})
    captured = {}

    def fake_create(**params):
        captured.update(params)
        return SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.com/c/cs_test_1")

    monkeypatch.setattr(app_module.stripe.checkout.Session, "create", fake_create)

    response = client.post("/create-checkout-session", json={"priceId": "price_a", "userId": "body-user"})

    assert response.status_code == 200
    assert response.get_json() == {"id": "cs_test_1", "url": "https://checkout.stripe.com/c/cs_test_1"}
    assert captured["mode"] == "payment"
    assert captured["line_items"] == [{"price": "price_a", "quantity": 1}]
    assert captured["client_reference_id"] == "token-user"
    assert captured["metadata"] == {"userId": "token-user", "priceId": "price_a", "bonusAttempts": "10"}


def test_checkout_subscription_mode_copies_metadata_to_subscription(client, monkeypatch):
    _allow_rate_limit(monkeypatch)
    monkeypatch.setattr(app_module, "verify_firebase_token", lambda _request: None)
    captured = {}

    def fake_create(**params):
        captured.update(params)
        return SimpleNamespace(id="cs_sub", url="https://checkout.stripe.com/c/cs_sub")

    monkeypatch.setattr(app_module.stripe.checkout.Session, "create", fake_create)

    response = client.post("/create-checkout-session", json={"priceId": "price_sub", "mode": "subscription", "userId": "u-sub"})

    assert response.status_code == 200
    assert captured["subscription_data"]["metadata"]["userId"] == "u-sub"


def test_checkout_stripe_error_returns_500_with_type(client, monkeypatch):
    _allow_rate_limit(monkeypatch)

    def fake_create(**_params):
        raise app_module.stripe.InvalidRequestError("No such price: 'price_missing'", "line_items")

    monkeypatch.setattr(app_module.stripe.checkout.Session, "create", fake_create)

    response = client.post("/create-checkout-session", json={"priceId": "price_missing"})

    assert response.status_code == 500
    body = response.get_json()
    assert body["type"] == "InvalidRequestError"
    assert "price_missing" in body["error"]


def test_checkout_rate_limited_returns_429(client, monkeypatch):
    monkeypatch.setattr(app_module, "check_rate_limit", lambda **_kwargs: (False, 42))
    monkeypatch.setattr(app_module, "db", None)

    response = client.post("/create-checkout-session", json={"priceId": "price_a"})

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "42"
    assert response.get_json()["retry_after_seconds"] == 42


def test_stripe_webhook_requires_secret(client, monkeypatch):
    monkeypatch.setattr(app_module, "STRIPE_WEBHOOK_SECRET", "")

    response = client.post("/webhook", data=b"{}", headers={"Content-Type": "application/json"})

    assert response.status_code == 500
    assert response.get_json().get("error") == "Webhook not configured"


def test_stripe_webhook_rejects_bad_signature(client, monkeypatch):
    monkeypatch.setattr(app_module, "STRIPE_WEBHOOK_SECRET", "whsec_contract")

    def fake_construct(_payload, sig_header, _secret):
        raise app_module.stripe.SignatureVerificationError("No signatures found", sig_header)

    monkeypatch.setattr(app_module.stripe.Webhook, "construct_event", fake_construct)

    response = _post_webhook(client)

    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid signature"


def test_webhook_payment_grants_attempts_once(client, monkeypatch, fake_db):
    _webhook_event(monkeypatch, {
        "type": "checkout.session.completed",
        "data": {"object": {
            "id": "cs_paid_1",
            "mode": "payment",
            "payment_status": "paid",
            "amount_total": 499,
            "currency": "usd",
            "metadata": {"userId": "buyer", "priceId": "price_a", "bonusAttempts": "10"},
        }},
    })

    first = _post_webhook(client)
    replay = _post_webhook(client)

    assert first.status_code == 200
    assert first.get_json() == {"received": True, "status": "granted"}
    assert replay.get_json()["status"] == "already_processed"
    assert fake_db.doc("users", "buyer")["bonusAttempts"] == 10
    assert fake_db.doc("purchases", "cs_paid_1")["bonusAttempts"] == 10


def test_webhook_subscription_checkout_activates_user(client, monkeypatch, fake_db):
    _webhook_event(monkeypatch, {
        "type": "checkout.session.completed",
        "data": {"object": {
            "id": "cs_sub_1",
            "mode": "subscription",
            "customer": "cus_1",
            "subscription": "sub_1",
            "metadata": {"userId": "subscriber"},
        }},
    })

    response = _post_webhook(client)

    assert response.status_code == 200
    user = fake_db.doc("users", "subscriber")
    assert user["subscriptionStatus"] == "active"
    assert user["stripeCustomerId"] == "cus_1"
    assert user["stripeSubscriptionId"] == "sub_1"


def test_webhook_subscription_lifecycle_resolves_user_by_customer(client, monkeypatch, fake_db):
    fake_db.seed("users", "subscriber", {"uid": "subscriber", "stripeCustomerId": "cus_9", "subscriptionStatus": "active"})

    _webhook_event(monkeypatch, {
        "type": "customer.subscription.updated",
        "data": {"object": {"id": "sub_9", "customer": "cus_9", "status": "trialing", "metadata": {}}},
    })
    _post_webhook(client)
    assert fake_db.doc("users", "subscriber")["subscriptionStatus"] == "trialing"

    _webhook_event(monkeypatch, {
        "type": "invoice.payment_failed",
        "data": {"object": {"id": "in_9", "customer": "cus_9", "subscription": "sub_9"}},
    })
    _post_webhook(client)
    assert fake_db.doc("users", "subscriber")["subscriptionStatus"] == "past_due"

    _webhook_event(monkeypatch, {
        "type": "customer.subscription.deleted",
        "data": {"object": {"id": "sub_9", "customer": "cus_9", "status": "canceled"}},
    })
    response = _post_webhook(client)
    assert response.get_json()["status"] == "subscription_canceled"
    assert fake_db.doc("users", "subscriber")["subscriptionStatus"] == "canceled"


def test_webhook_ignores_unhandled_event_types(client, monkeypatch, fake_db):
    _webhook_event(monkeypatch, {"type": "charge.refunded", "data": {"object": {"id": "ch_1"}}})

    response = _post_webhook(client)

    assert response.status_code == 200
    assert response.get_json() == {"received": True, "status": "ignored"}


def test_webhook_failed_commit_then_retry_grants_once(client, monkeypatch, fake_db):
    fake_db.seed("users", "buyer", {"uid": "buyer", "bonusAttempts": 0})
    _webhook_event(monkeypatch, {
        "type": "checkout.session.completed",
        "data": {"object": {
            "id": "cs_retry",
            "mode": "payment",
            "payment_status": "paid",
            "metadata": {"userId": "buyer", "bonusAttempts": "10"},
        }},
    })
    fake_db.commit_error = RuntimeError("firestore unavailable")

    failed = _post_webhook(client)

    assert failed.status_code == 500
    assert fake_db.doc("users", "buyer")["bonusAttempts"] == 0
    assert fake_db.doc("purchases", "cs_retry") is None

    retried = _post_webhook(client)
    replayed = _post_webhook(client)

    assert retried.get_json()["status"] == "granted"
    assert replayed.get_json()["status"] == "already_processed"
    assert fake_db.doc("users", "buyer")["bonusAttempts"] == 10


def test_webhook_purchase_recorded_concurrently_is_not_granted_again(client, monkeypatch, fake_db):
    fake_db.seed("users", "buyer", {"uid": "buyer", "bonusAttempts": 10})
    fake_db.seed("purchases", "cs_race", {"uid": "buyer", "bonusAttempts": 10, "stripe_session_id": "cs_race"})
    monkeypatch.setattr(app_module, "purchase_record_exists_for_session", lambda _session_id: False)
    _webhook_event(monkeypatch, {
        "type": "checkout.session.completed",
        "data": {"object": {
            "id": "cs_race",
            "mode": "payment",
            "payment_status": "paid",
            "metadata": {"userId": "buyer", "bonusAttempts": "10"},
        }},
    })

    response = _post_webhook(client)

    assert response.get_json()["status"] == "already_processed"
    assert fake_db.doc("users", "buyer")["bonusAttempts"] == 10


def test_webhook_without_database_returns_500(client, monkeypatch):
    monkeypatch.setattr(app_module, "db", None)
    _webhook_event(monkeypatch, {"type": "charge.refunded", "data": {"object": {}}})

    response = _post_webhook(client)

    assert response.status_code == 500
    assert response.get_json()["error"] == "Database not configured"


def test_cors_preflight_for_allowed_origin(client):
    response = client.open("/anything", method="OPTIONS", headers={"Origin": "https://topseat.us"})

    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "https://topseat.us"
    assert "Stripe-Signature" in response.headers["Access-Control-Allow-Headers"]
    assert response.headers["Access-Control-Allow-Methods"] == "GET, POST, OPTIONS"


def test_cors_ignores_unknown_origin(client):
    response = client.get("/health", headers={"Origin": "https://evil.example"})

    assert response.status_code == 200
    assert "Access-Control-Allow-Origin" not in response.headers


def test_unknown_route_returns_json_404(client):
    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.get_json() == {"error": "Not found"}
