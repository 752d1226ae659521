"""
Integration tests for the waitlist API
"""

import pytest
from datetime import date, time, timedelta
from sqlmodel import select

from snytra.api import waitlist as waitlist_api
from snytra.models import NotificationLog, WaitlistEntry, WaitlistStatus

BASE = "/api/v1/waitlist"


@pytest.fixture
def sent_notifications(monkeypatch):
    calls = []
    monkeypatch.setattr(waitlist_api, "send_table_ready", lambda *args: calls.append(args))
    return calls


def _join(client, day, **overrides):
    body = {
        "customerName": "Alice",
        "customerPhone": "555-0101",
        "partySize": 2,
        "date": day,
        "time": "18:30",
    }
    body.update(overrides)
    return client.post(BASE, json=body)


def _entry(db, **fields):
    entry = WaitlistEntry(
        name=fields.pop("name", "Alice"),
        phone_number=fields.pop("phone_number", "555-0101"),
        party_size=fields.pop("party_size", 2),
        date=fields.pop("date", date.today() + timedelta(days=1)),
        time=fields.pop("time", time(18, 30)),
        **fields,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


# ============================================================================
# Joining
# ============================================================================

def test_join_waitlist(client, open_every_day, tomorrow):
    response = _join(client, tomorrow)

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Added to waitlist successfully"
    assert data["position"] == 1
    assert data["estimatedWaitTime"] == 0
    assert data["waitlistEntry"]["customerName"] == "Alice"
    assert data["waitlistEntry"]["status"] == "waiting"


def test_join_waitlist_queue_grows(client, open_every_day, tomorrow):
    _join(client, tomorrow)
    _join(client, tomorrow, customerPhone="555-0102")
    third = _join(client, tomorrow, customerPhone="555-0103").json()

    assert third["position"] == 3
    assert third["estimatedWaitTime"] == 15


def test_join_waitlist_rejects_bad_slot(client, open_every_day, tomorrow):
    assert _join(client, "2030-13-01").status_code == 400
    assert _join(client, tomorrow, time="25:00").status_code == 400

    yesterday = (date.today() - timedelta(days=1)).isoformat()
    past = _join(client, yesterday)
    assert past.status_code == 400
    assert past.json()["error"] == "Waitlist date and time must be in the future"


def test_join_waitlist_outside_business_hours(client, open_every_day, tomorrow):
    response = _join(client, tomorrow, time="10:00")

    assert response.status_code == 400
    assert response.json()["error"] == "Waitlist time is outside of business hours"


def test_join_waitlist_on_closed_day(client, tomorrow):
    response = _join(client, tomorrow)

    assert response.status_code == 400
    assert response.json()["error"] == "Reservations are not available for this day"


def test_join_waitlist_missing_fields(client):
    response = client.post(BASE, json={"customerName": "Alice"})

    assert response.status_code == 400
    assert "Missing required fields" in response.json()["error"]


# ============================================================================
# Staff listing
# ============================================================================

def test_list_waitlist_requires_staff(client, customer_headers):
    assert client.get(BASE).status_code == 401
    assert client.get(BASE, headers=customer_headers).status_code == 403


def test_list_waitlist_filters(client, db, staff_headers):
    tomorrow = date.today() + timedelta(days=1)
    _entry(db, name="Alice")
    _entry(db, name="Bob", phone_number="555-0199", status=WaitlistStatus.SEATED)
    _entry(db, name="Carol", date=tomorrow + timedelta(days=1))

    everyone = client.get(BASE, headers=staff_headers).json()["waitlist"]
    assert len(everyone) == 3

    waiting = client.get(BASE, params={"status": "waiting"}, headers=staff_headers).json()["waitlist"]
    assert {e["customerName"] for e in waiting} == {"Alice", "Carol"}

    on_day = client.get(BASE, params={"date": tomorrow.isoformat()}, headers=staff_headers).json()["waitlist"]
    assert {e["customerName"] for e in on_day} == {"Alice", "Bob"}

    found = client.get(BASE, params={"search": "0199"}, headers=staff_headers).json()["waitlist"]
    assert [e["customerName"] for e in found] == ["Bob"]


# ============================================================================
# Customer lookups
# ============================================================================

def test_check_waitlist_by_phone(client, db):
    _entry(db, phone_number="555-0001")
    mine = _entry(db, phone_number="555-0101")

    response = client.get(f"{BASE}/check", params={"phone": "555-0101"})

    assert response.status_code == 200
    entries = response.json()["entries"]
    assert len(entries) == 1
    assert entries[0]["id"] == mine.id
    assert entries[0]["position"] == 2


def test_check_waitlist_errors(client, db):
    assert client.get(f"{BASE}/check").status_code == 400

    _entry(db, status=WaitlistStatus.SEATED)
    response = client.get(f"{BASE}/check", params={"phone": "555-0101"})
    assert response.status_code == 404
    assert response.json()["error"] == "Active waitlist entry not found"


def test_get_entry_with_phone(client, db):
    entry = _entry(db)

    ok = client.get(f"{BASE}/{entry.id}", params={"phone": "555-0101"})
    assert ok.status_code == 200
    assert ok.json()["waitlistEntry"]["id"] == entry.id

    wrong = client.get(f"{BASE}/{entry.id}", params={"phone": "555-9999"})
    assert wrong.status_code == 404


def test_get_entry_requires_phone_or_token(client, db, staff_headers):
    entry = _entry(db)

    anonymous = client.get(f"{BASE}/{entry.id}")
    assert anonymous.status_code == 401
    assert anonymous.json() == {"error": "Unauthorized", "success": False}

    signed_in = client.get(f"{BASE}/{entry.id}", headers=staff_headers)
    assert signed_in.status_code == 200


# ============================================================================
# Updates
# ============================================================================

def test_update_waitlist_status(client, db):
    entry = _entry(db)

    response = client.patch(BASE, json={"id": entry.id, "status": "seated"})

    assert response.status_code == 200
    assert response.json()["waitlist"]["status"] == "seated"


def test_update_waitlist_rejects_unknown_status(client, db):
    entry = _entry(db)

    response = client.patch(BASE, json={"id": entry.id, "status": "teleported"})

    assert response.status_code == 400


def test_remove_from_waitlist(client, db):
    entry = _entry(db)

    response = client.delete(BASE, params={"id": entry.id})

    assert response.status_code == 200
    assert db.get(WaitlistEntry, entry.id) is None
    assert client.delete(BASE, params={"id": entry.id}).status_code == 404
    assert client.delete(BASE).status_code == 400


# ============================================================================
# Notifications
# ============================================================================

def test_notify_entry(client, db, staff_headers, sent_notifications):
    _entry(db, phone_number="555-0001")
    entry = _entry(db, customer_email="alice@example.com")

    response = client.post(f"{BASE}/{entry.id}/notify", headers=staff_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["waitlist"]["notified"] is True
    assert data["notification"] == {"method": "email", "status": "queued", "position": 2}
    assert sent_notifications == [("alice@example.com", "Alice", 2)]

    logs = db.exec(select(NotificationLog)).all()
    assert len(logs) == 1
    assert logs[0].recipient_id == str(entry.id)
    assert logs[0].sent_by == "1"


def test_notify_without_email_is_only_logged(client, db, staff_headers, sent_notifications):
    entry = _entry(db)

    data = client.post(f"{BASE}/{entry.id}/notify", headers=staff_headers).json()

    assert data["notification"]["status"] == "prepared"
    assert sent_notifications == []


def test_notify_rejects_non_waiting_entries(client, db, staff_headers, sent_notifications):
    seated = _entry(db, status=WaitlistStatus.SEATED)

    assert client.post(f"{BASE}/{seated.id}/notify", headers=staff_headers).status_code == 404
    assert client.post(f"{BASE}/999/notify", headers=staff_headers).status_code == 404


def test_notify_requires_permission(client, db, customer_headers):
    entry = _entry(db)

    assert client.post(f"{BASE}/{entry.id}/notify").status_code == 401
    assert client.post(f"{BASE}/{entry.id}/notify", headers=customer_headers).status_code == 403
