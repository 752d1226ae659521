"""
Integration tests for the opening hours API
"""

from datetime import date

from snytra.services.allocator import day_of_week

BASE = "/api/v1/reservation-settings"


def test_list_settings_sorted(client, open_every_day):
    response = client.get(BASE)

    assert response.status_code == 200
    days = response.json()
    assert [d["day_of_week"] for d in days] == list(range(7))
    assert days[0]["open_time"] == "17:00:00"


def test_upsert_creates_then_replaces(client, manager_headers):
    created = client.put(f"{BASE}/5", json={"open_time": "18:00", "close_time": "23:30"}, headers=manager_headers)
    assert created.status_code == 200
    assert created.json()["day_of_week"] == 5
    assert created.json()["is_active"] is True

    replaced = client.put(
        f"{BASE}/5",
        json={"open_time": "12:00", "close_time": "15:00", "is_active": False},
        headers=manager_headers,
    )
    assert replaced.json()["id"] == created.json()["id"]
    assert replaced.json()["open_time"] == "12:00:00"
    assert replaced.json()["is_active"] is False

    assert len(client.get(BASE).json()) == 1


def test_upsert_validation(client, manager_headers):
    out_of_range = client.put(f"{BASE}/7", json={"open_time": "18:00", "close_time": "22:00"}, headers=manager_headers)
    assert out_of_range.status_code == 400

    backwards = client.put(f"{BASE}/1", json={"open_time": "22:00", "close_time": "18:00"}, headers=manager_headers)
    assert backwards.status_code == 400


def test_upsert_requires_manager(client, staff_headers):
    response = client.put(f"{BASE}/1", json={"open_time": "18:00", "close_time": "22:00"}, headers=staff_headers)

    assert response.status_code == 403


def test_closed_day_blocks_waitlist(client, manager_headers, tomorrow):
    day = day_of_week(date.fromisoformat(tomorrow))
    client.put(f"{BASE}/{day}", json={"open_time": "17:00", "close_time": "23:00", "is_active": False},
               headers=manager_headers)

    response = client.post("/api/v1/waitlist", json={
        "customerName": "Alice", "customerPhone": "1", "partySize": 2, "date": tomorrow, "time": "18:30",
    })
    assert response.status_code == 400
