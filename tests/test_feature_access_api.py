"""
Integration tests for the feature access API
"""

from decimal import Decimal

from snytra.models import PlanFeature, SubscriptionPlan, UserRole
from snytra.services.feature_catalog import SYSTEM_FEATURES

BASE = "/api/v1/feature-access"


def _subscriber(db, make_user, headers_for, keys):
    plan = SubscriptionPlan(name="Custom", price=Decimal("10.00"), features=keys)
    plan.plan_features = [PlanFeature(feature_key=key) for key in keys]
    db.add(plan)
    db.commit()
    user = make_user(subscription_plan=str(plan.id), subscription_status="active")
    return user, headers_for(user.role.value, user.id)


def test_feature_included_in_plan(client, db, make_user, headers_for):
    _, headers = _subscriber(db, make_user, headers_for, ["waitlist"])

    response = client.get(BASE, params={"feature": "waitlist"}, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "hasAccess": True, "reason": "feature_included"}


def test_feature_not_included(client, db, make_user, headers_for):
    _, headers = _subscriber(db, make_user, headers_for, ["waitlist"])

    data = client.get(BASE, params={"feature": "api_access"}, headers=headers).json()

    assert data["hasAccess"] is False
    assert data["reason"] == "feature_not_included"


def test_feature_parameter_required(client, db, make_user, headers_for):
    _, headers = _subscriber(db, make_user, headers_for, ["waitlist"])

    response = client.get(BASE, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Feature parameter is required"


def test_without_subscription(client, make_user, headers_for):
    user = make_user()

    data = client.get(BASE, params={"feature": "waitlist"}, headers=headers_for("customer", user.id)).json()

    assert data["hasAccess"] is False
    assert data["reason"] == "no_active_subscription"


def test_admin_bypass(client, make_user, headers_for):
    admin = make_user(UserRole.ADMIN)

    data = client.get(BASE, params={"feature": "white_label_app"}, headers=headers_for("admin", admin.id)).json()

    assert data == {"success": True, "hasAccess": True, "reason": "admin_role"}


def test_requires_authentication(client):
    assert client.get(BASE, params={"feature": "waitlist"}).status_code == 401


def test_unknown_user_token(client, headers_for):
    response = client.get(BASE, params={"feature": "waitlist"}, headers=headers_for("customer", 999))

    assert response.status_code == 404


def test_all_features(client, db, make_user, headers_for):
    _, headers = _subscriber(db, make_user, headers_for, ["waitlist", "reservations"])

    response = client.get(f"{BASE}/all", headers=headers)

    assert response.status_code == 200
    features = response.json()["features"]
    assert set(features) == {f.id for f in SYSTEM_FEATURES}
    assert features["waitlist"] is True
    assert features["reservations"] is True
    assert features["phone_support"] is False
