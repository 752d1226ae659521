"""
Tests for Stripe checkout and webhook handling

The Stripe SDK is patched; no network calls are made.
"""

import json
import pytest
import stripe
from datetime import datetime, timezone
from decimal import Decimal
from sqlmodel import select

from snytra.core.config import Settings
from snytra.models import Subscription, SubscriptionPlan, SubscriptionStatus
from snytra.services import stripe_billing
from snytra.services.stripe_billing import StripeService, process_event


@pytest.fixture
def plan(db):
    plan = SubscriptionPlan(name="Standard", price=Decimal("99.99"), features=["waitlist"],
                            has_trial=True, trial_days=14)
    db.add(plan)
    db.commit()
    db.refresh(plan)
    return plan


@pytest.fixture
def stripe_calls(monkeypatch):
    calls = {"customers": [], "sessions": []}

    def create_customer(**kwargs):
        calls["customers"].append(kwargs)
        return {"id": "cus_123"}

    def create_session(**kwargs):
        calls["sessions"].append(kwargs)
        return {"id": "cs_test_123", "url": "https://checkout.stripe.com/pay/cs_test_123"}

    monkeypatch.setattr(stripe.Customer, "create", create_customer)
    monkeypatch.setattr(stripe.checkout.Session, "create", create_session)
    return calls


@pytest.fixture
def accept_signatures(monkeypatch):
    monkeypatch.setattr(stripe.Webhook, "construct_event", lambda payload, sig, secret: json.loads(payload))


# ============================================================================
# Service
# ============================================================================

def test_service_requires_api_key(monkeypatch):
    monkeypatch.setattr(stripe_billing, "get_settings", lambda: Settings(STRIPE_SECRET_KEY=""))

    with pytest.raises(ValueError):
        StripeService()


def test_line_item_without_stripe_price(plan):
    item = StripeService()._line_item(plan)

    assert item["price_data"]["unit_amount"] == 9999
    assert item["price_data"]["recurring"] == {"interval": "month"}
    assert item["price_data"]["product_data"] == {"name": "Standard"}


def test_line_item_with_stripe_price(plan):
    plan.stripe_price_id = "price_abc"

    assert StripeService()._line_item(plan) == {"price": "price_abc", "quantity": 1}


def test_construct_event_without_secret(monkeypatch):
    monkeypatch.setattr(stripe_billing, "get_settings", lambda: Settings(STRIPE_WEBHOOK_SECRET=""))

    with pytest.raises(ValueError):
        StripeService(api_key="sk_test_123").construct_event(b"{}", "t=1,v1=abc")


# ============================================================================
# Checkout
# ============================================================================

def test_checkout_creates_customer_and_session(client, db, plan, make_user, headers_for, stripe_calls):
    user = make_user()

    response = client.post(
        "/api/v1/subscriptions/checkout",
        json={"planId": plan.id, "successUrl": "https://app.example.com/ok"},
        headers=headers_for("customer", user.id),
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "sessionId": "cs_test_123",
        "url": "https://checkout.stripe.com/pay/cs_test_123",
    }

    session_args = stripe_calls["sessions"][0]
    assert session_args["mode"] == "subscription"
    assert session_args["customer"] == "cus_123"
    assert session_args["success_url"] == "https://app.example.com/ok"
    assert session_args["metadata"] == {"user_id": str(user.id), "plan_id": str(plan.id)}
    assert session_args["subscription_data"]["trial_period_days"] == 14

    db.refresh(user)
    assert user.stripe_customer_id == "cus_123"


def test_checkout_reuses_existing_customer(client, plan, make_user, headers_for, stripe_calls):
    user = make_user(stripe_customer_id="cus_existing")

    client.post("/api/v1/subscriptions/checkout", json={"planId": plan.id}, headers=headers_for("customer", user.id))

    assert stripe_calls["customers"] == []
    assert stripe_calls["sessions"][0]["customer"] == "cus_existing"


def test_checkout_unknown_or_inactive_plan(client, db, plan, make_user, headers_for, stripe_calls):
    headers = headers_for("customer", make_user().id)

    assert client.post("/api/v1/subscriptions/checkout", json={"planId": 999}, headers=headers).status_code == 404

    plan.is_active = False
    db.add(plan)
    db.commit()
    assert client.post("/api/v1/subscriptions/checkout", json={"planId": plan.id}, headers=headers).status_code == 400


def test_checkout_provider_error(client, plan, make_user, headers_for, monkeypatch):
    def fail(**kwargs):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.Customer, "create", fail)

    response = client.post("/api/v1/subscriptions/checkout", json={"planId": plan.id},
                           headers=headers_for("customer", make_user().id))

    assert response.status_code == 502
    assert response.json()["error"] == "Payment provider error"


def test_checkout_without_stripe_configured(client, plan, make_user, headers_for, monkeypatch):
    monkeypatch.setattr(stripe_billing, "get_settings", lambda: Settings(STRIPE_SECRET_KEY=""))

    response = client.post("/api/v1/subscriptions/checkout", json={"planId": plan.id},
                           headers=headers_for("customer", make_user().id))

    assert response.status_code == 500
    assert response.json() == {"error": "Payment service not configured", "success": False}


# ============================================================================
# Webhooks
# ============================================================================

def _post_event(client, event, signature="t=1,v1=abc"):
    headers = {"Stripe-Signature": signature} if signature else {}
    return client.post("/api/v1/webhooks/stripe", content=json.dumps(event), headers=headers)


def _checkout_event(user, plan):
    return {
        "type": "checkout.session.completed",
        "data": {"object": {
            "id": "cs_test_123",
            "customer": "cus_123",
            "subscription": "sub_123",
            "metadata": {"user_id": str(user.id), "plan_id": str(plan.id)},
        }},
    }


def test_webhook_requires_signature(client):
    response = _post_event(client, {"type": "checkout.session.completed"}, signature=None)

    assert response.status_code == 400
    assert response.json()["error"] == "Missing signature or webhook secret"


def test_webhook_rejects_bad_signature(client):
    # Real verification against the test secret fails for a made-up header
    response = _post_event(client, {"type": "checkout.session.completed"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_checkout_completed_activates_subscription(client, db, plan, make_user, accept_signatures):
    user = make_user()

    response = _post_event(client, _checkout_event(user, plan))

    assert response.status_code == 200
    assert response.json() == {"received": True}

    db.refresh(user)
    assert user.subscription_status == "active"
    assert user.subscription_plan == str(plan.id)
    assert user.stripe_customer_id == "cus_123"

    subscription = db.exec(select(Subscription)).one()
    assert subscription.status == SubscriptionStatus.ACTIVE
    assert subscription.stripe_subscription_id == "sub_123"


def test_subscription_lifecycle_events(db, plan, make_user):
    user = make_user()
    process_event(db, _checkout_event(user, plan))

    process_event(db, {"type": "customer.subscription.updated", "data": {"object": {
        "id": "sub_123",
        "status": "past_due",
        "current_period_start": 1893456000,
        "current_period_end": 1896134400,
        "cancel_at_period_end": True,
    }}})
    db.refresh(user)
    assert user.subscription_status == "past_due"
    assert user.subscription_current_period_end is not None
    assert not user.has_active_subscription()

    process_event(db, {"type": "customer.subscription.deleted", "data": {"object": {"id": "sub_123"}}})
    db.refresh(user)
    assert user.subscription_status == "canceled"


def test_payment_failed_marks_past_due(db, plan, make_user):
    user = make_user()
    process_event(db, _checkout_event(user, plan))

    process_event(db, {"type": "invoice.payment_failed", "data": {"object": {"subscription": "sub_123"}}})

    db.refresh(user)
    assert user.subscription_status == "past_due"


def test_unhandled_event_is_acknowledged(client, accept_signatures):
    response = _post_event(client, {"type": "charge.refunded", "data": {"object": {}}})

    assert response.status_code == 200
    assert response.json() == {"received": True}


def test_checkout_without_metadata_is_ignored(db):
    assert process_event(db, {"type": "checkout.session.completed", "data": {"object": {"id": "cs_1"}}}) is True
    assert db.exec(select(Subscription)).all() == []


# ============================================================================
# Current subscription
# ============================================================================

def test_current_subscription(client, db, plan, make_user, headers_for):
    user = make_user(subscription_plan=str(plan.id), subscription_status="active")

    data = client.get("/api/v1/subscriptions/current", headers=headers_for("customer", user.id)).json()

    subscription = data["subscription"]
    assert subscription["planId"] == plan.id
    assert subscription["planName"] == "Standard"
    assert subscription["isActive"] is True
    assert subscription["features"] == ["Waitlist Management"]


def test_current_subscription_for_legacy_plan_name(client, make_user, headers_for):
    user = make_user(subscription_plan="Standard", subscription_status="active")

    subscription = client.get("/api/v1/subscriptions/current",
                              headers=headers_for("customer", user.id)).json()["subscription"]

    assert subscription["plan"] == "Standard"
    assert subscription["planId"] is None
    assert "Table management" in subscription["features"]


def test_event_timestamps_are_utc():
    assert stripe_billing._timestamp(1893456000) == datetime(2030, 1, 1, tzinfo=timezone.utc)
    assert stripe_billing._timestamp(None) is None
