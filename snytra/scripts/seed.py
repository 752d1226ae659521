"""
Seed subscription plans, opening hours and an admin account

Run after migrations:
    python -m snytra.scripts.seed

Existing plans (matched by name), settings rows and users are left alone, so
the job can be re-run safely.
"""

import os
import sys
from datetime import time
from decimal import Decimal

from sqlmodel import Session, select
import structlog

from snytra.core.auth import hash_password
from snytra.core.database import engine
from snytra.models.reservation_settings import ReservationSettings
from snytra.models.subscription_plan import PlanFeature, SubscriptionPlan
from snytra.models.user import User, UserRole

logger = structlog.get_logger(__name__)

PLANS = [
    {
        "name": "Basic",
        "description": "Everything a small restaurant needs to take bookings",
        "price": Decimal("49.99"),
        "features": ["online_ordering", "menu_items", "menu_categories", "reservations", "email_support"],
        "has_trial": True,
        "trial_days": 14,
    },
    {
        "name": "Standard",
        "description": "Table management and staff tools for growing restaurants",
        "price": Decimal("99.99"),
        "features": [
            "online_ordering", "menu_items", "menu_categories", "reservations", "email_support",
            "table_mapping", "table_status", "waitlist", "staff_accounts", "staff_scheduling",
            "sales_reports", "customer_database",
        ],
        "has_trial": True,
        "trial_days": 14,
    },
    {
        "name": "Premium",
        "description": "Analytics, integrations and priority support",
        "price": Decimal("199.99"),
        "features": [
            "online_ordering", "menu_items", "menu_categories", "reservations", "email_support",
            "table_mapping", "table_status", "waitlist", "staff_accounts", "staff_scheduling",
            "sales_reports", "customer_database", "customer_analytics", "export_reports",
            "payment_processing", "pos_integration", "priority_support",
        ],
        "has_trial": False,
        "trial_days": 0,
    },
    {
        "name": "Enterprise",
        "description": "Complete solution for restaurant groups",
        "price": Decimal("499.99"),
        "features": [
            "online_ordering", "menu_items", "menu_categories", "reservations", "email_support",
            "table_mapping", "table_status", "waitlist", "staff_accounts", "staff_scheduling",
            "sales_reports", "customer_database", "customer_analytics", "export_reports",
            "payment_processing", "pos_integration", "priority_support", "custom_branding",
            "accounting_integration", "dedicated_account", "phone_support",
        ],
        "has_trial": False,
        "trial_days": 0,
    },
]

OPEN_TIME = time(17, 0)
CLOSE_TIME = time(23, 0)


def seed_plans(session: Session) -> int:
    created = 0
    for data in PLANS:
        if session.exec(select(SubscriptionPlan).where(SubscriptionPlan.name == data["name"])).first():
            logger.info("Plan already present", name=data["name"])
            continue

        plan = SubscriptionPlan(**data)
        plan.plan_features = [PlanFeature(feature_key=key) for key in data["features"]]
        session.add(plan)
        created += 1
        logger.info("Plan seeded", name=data["name"], features=len(data["features"]))
    return created


def seed_reservation_settings(session: Session) -> int:
    created = 0
    for day in range(7):
        exists = session.exec(
            select(ReservationSettings).where(ReservationSettings.day_of_week == day)
        ).first()
        if exists:
            continue
        session.add(ReservationSettings(day_of_week=day, open_time=OPEN_TIME, close_time=CLOSE_TIME))
        created += 1
    return created


def seed_admin(session: Session) -> bool:
    email = os.getenv("SEED_ADMIN_EMAIL")
    password = os.getenv("SEED_ADMIN_PASSWORD")
    if not email or not password:
        logger.info("SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD not set, skipping admin user")
        return False

    if session.exec(select(User).where(User.email == email)).first():
        return False

    session.add(User(
        email=email,
        password_hash=hash_password(password),
        name="Administrator",
        role=UserRole.ADMIN,
    ))
    return True


def main():
    """Main entry point for the seed job"""
    logger.info("Starting seed job")

    try:
        with Session(engine) as session:
            plans = seed_plans(session)
            days = seed_reservation_settings(session)
            admin = seed_admin(session)
            session.commit()
    except Exception as e:
        logger.error("Seed job failed", error=str(e))
        sys.exit(1)

    logger.info("Seed job complete", plans=plans, reservation_days=days, admin_created=admin)


if __name__ == "__main__":
    main()
