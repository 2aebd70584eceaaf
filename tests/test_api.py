from servicedesk.core.security import create_access_token, decode_token
from servicedesk.core.service_day import today
from servicedesk.utils.timeslots import shower_slots_for

API = "/api/v1"


def _first_shower_slot():
    return shower_slots_for(today())[0]


def _book_shower(client, headers, guest_id, slot_id=None):
    return client.post(
        f"{API}/bookings/",
        json={"service_type": "shower", "guest_id": guest_id, "slot_id": slot_id or _first_shower_slot()},
        headers=headers,
    )


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


def test_requests_need_a_token(client):
    assert client.get(f"{API}/slots/shower").status_code == 401


def test_me(client, volunteer_headers):
    response = client.get(f"{API}/auth/me", headers=volunteer_headers)
    assert response.status_code == 200
    assert response.json()["role"] == "volunteer"


def test_register_requires_admin_secret(client):
    response = client.post(
        f"{API}/auth/register",
        json={
            "email": "new@example.org",
            "full_name": "New Person",
            "password": "pw",
            "admin_secret": "wrong",
        },
    )
    assert response.status_code == 403


# ---------------------------------------------------------------------------
# Slots & bookings
# ---------------------------------------------------------------------------


def test_availability_board(client, volunteer_headers):
    response = client.get(f"{API}/slots/shower", headers=volunteer_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["service_date"] == today().isoformat()
    assert [s["slot_id"] for s in body["slots"]] == shower_slots_for(today())


def test_laundry_board_reports_day_cap(client, volunteer_headers):
    body = client.get(f"{API}/slots/laundry", headers=volunteer_headers).json()
    assert body["day_capacity"] == 5
    assert body["day_occupied"] == 0


def test_full_slot_answers_409_with_actionable_message(client, volunteer_headers):
    assert _book_shower(client, volunteer_headers, "A").status_code == 201
    assert _book_shower(client, volunteer_headers, "B").status_code == 201

    response = _book_shower(client, volunteer_headers, "C")
    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "slot_full"
    assert "waitlist" in body["message"]


def test_waitlist_flow(client, volunteer_headers):
    first = client.post(f"{API}/bookings/waitlist", json={"guest_id": "W-1"}, headers=volunteer_headers)
    second = client.post(f"{API}/bookings/waitlist", json={"guest_id": "W-2"}, headers=volunteer_headers)
    assert first.status_code == 201
    assert second.json()["waitlist_position"] == 2

    listing = client.get(f"{API}/slots/shower/waitlist", headers=volunteer_headers).json()
    assert [e["booking"]["guest_id"] for e in listing] == ["W-1", "W-2"]
    assert [e["position"] for e in listing] == [1, 2]

    booked = client.patch(
        f"{API}/bookings/{first.json()['id']}/reschedule",
        json={"slot_id": _first_shower_slot()},
        headers=volunteer_headers,
    )
    assert booked.json()["status"] == "booked"

    detail = client.get(f"{API}/bookings/{second.json()['id']}", headers=volunteer_headers).json()
    assert detail["waitlist_position"] == 1


def test_unknown_booking_is_404(client, volunteer_headers):
    response = client.get(f"{API}/bookings/00000000-0000-4000-8000-000000000000", headers=volunteer_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_laundry_status_needs_bag_number(client, volunteer_headers):
    created = client.post(
        f"{API}/bookings/",
        json={"service_type": "laundry", "guest_id": "L-1", "laundry_type": "offsite"},
        headers=volunteer_headers,
    ).json()

    refused = client.patch(
        f"{API}/bookings/{created['id']}/status", json={"status": "transported"}, headers=volunteer_headers
    )
    assert refused.status_code == 422
    assert refused.json()["error"] == "bag_number_required"

    moved = client.patch(
        f"{API}/bookings/{created['id']}/status",
        json={"status": "transported", "bag_number": "77"},
        headers=volunteer_headers,
    )
    assert moved.status_code == 200
    assert moved.json()["bag_number"] == "77"


def test_list_bookings_filters_by_status(client, volunteer_headers):
    a = _book_shower(client, volunteer_headers, "A").json()
    _book_shower(client, volunteer_headers, "B")
    client.patch(f"{API}/bookings/{a['id']}/cancel", headers=volunteer_headers)

    response = client.get(
        f"{API}/bookings/",
        params={"service_type": "shower", "status": "cancelled"},
        headers=volunteer_headers,
    )
    assert [b["guest_id"] for b in response.json()] == ["A"]


def test_cancel_batch(client, volunteer_headers):
    a = _book_shower(client, volunteer_headers, "A").json()
    b = _book_shower(client, volunteer_headers, "B").json()
    response = client.post(
        f"{API}/bookings/cancel-batch",
        json={"booking_ids": [a["id"], b["id"]]},
        headers=volunteer_headers,
    )
    assert response.status_code == 200
    assert {x["status"] for x in response.json()} == {"cancelled"}


# ---------------------------------------------------------------------------
# History & undo
# ---------------------------------------------------------------------------


def test_undo_through_the_api(client, volunteer_headers):
    booking = _book_shower(client, volunteer_headers, "A").json()
    client.patch(f"{API}/bookings/{booking['id']}/cancel", headers=volunteer_headers)

    history = client.get(f"{API}/history/", headers=volunteer_headers).json()
    assert history["total"] == 2
    cancel_entry = history["data"][0]
    assert cancel_entry["action_type"] == "SHOWER_CANCELLED"

    undone = client.post(f"{API}/history/{cancel_entry['id']}/undo", headers=volunteer_headers)
    assert undone.status_code == 200
    assert undone.json()["booking"]["status"] == "booked"
    assert undone.json()["entry"]["undone_at"] is not None

    again = client.post(f"{API}/history/{cancel_entry['id']}/undo", headers=volunteer_headers)
    assert again.status_code == 409
    assert again.json()["error"] == "already_undone"


def test_clearing_history_is_admin_only(client, volunteer_headers, admin_headers):
    _book_shower(client, volunteer_headers, "A")
    assert client.delete(f"{API}/history/", headers=volunteer_headers).status_code == 403

    response = client.delete(f"{API}/history/", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["deleted"] == 1


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


def test_blocking_is_staff_only(client, volunteer_headers, staff_headers):
    payload = {"service_type": "shower", "slot_id": _first_shower_slot(), "service_date": today().isoformat()}
    assert client.post(f"{API}/admin/blocked-slots/", json=payload, headers=volunteer_headers).status_code == 403

    created = client.post(f"{API}/admin/blocked-slots/", json=payload, headers=staff_headers)
    assert created.status_code == 201

    refused = _book_shower(client, volunteer_headers, "A")
    assert refused.status_code == 409
    assert refused.json()["error"] == "slot_blocked"

    removed = client.delete(
        f"{API}/admin/blocked-slots/",
        params={"service_type": "shower", "slot_id": payload["slot_id"], "date": payload["service_date"]},
        headers=staff_headers,
    )
    assert removed.status_code == 204
    assert _book_shower(client, volunteer_headers, "A").status_code == 201


def test_blocking_unknown_slot_is_422(client, staff_headers):
    response = client.post(
        f"{API}/admin/blocked-slots/",
        json={"service_type": "shower", "slot_id": "03:00", "service_date": today().isoformat()},
        headers=staff_headers,
    )
    assert response.status_code == 422
    assert response.json()["error"] == "unknown_slot"


def test_settings_update_is_admin_only(client, staff_headers, admin_headers):
    assert client.patch(
        f"{API}/admin/settings/", json={"max_onsite_laundry_slots": 3}, headers=staff_headers
    ).status_code == 403

    response = client.patch(
        f"{API}/admin/settings/",
        json={"max_onsite_laundry_slots": 3, "offsite_laundry_enabled": False},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["max_onsite_laundry_slots"] == 3

    board = client.get(f"{API}/slots/laundry", headers=staff_headers).json()
    assert board["day_capacity"] == 3
    assert all(s["capacity"] == 1 for s in board["slots"])


def test_token_carries_subject_and_role():
    payload = decode_token(create_access_token(subject="abc", role="staff"))
    assert (payload.sub, payload.role) == ("abc", "staff")
    assert decode_token("not-a-token") is None
