from conftest import create_branch_headers


def _booking_payload(**overrides) -> dict:
    payload = {
        "gym": "Indiranagar",
        "facility": "Squash Court",
        "date": "2026-11-02",
        "time_slot": "18:00-19:00",
        "name": "Ravi Kumar",
        "email": "Ravi@Example.com",
        "phone": "+919811111111",
    }
    payload.update(overrides)
    return payload


def test_create_booking_without_account(client):
    response = client.post("/bookings", json=_booking_payload())

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "confirmed"
    assert data["user_id"] is None
    assert data["email"] == "ravi@example.com"
    assert data["date"].startswith("2026-11-02T00:00:00")


def test_booking_links_authenticated_user(client, customer_headers):
    response = client.post("/bookings", headers=customer_headers, json=_booking_payload(email="asha@example.com"))
    assert response.status_code == 201
    assert response.json()["user_id"] is not None

    mine = client.get("/bookings/me", headers=customer_headers)
    assert mine.status_code == 200
    assert [booking["id"] for booking in mine.json()] == [response.json()["id"]]


def test_same_slot_is_rejected_with_existing_booking(client):
    first = client.post("/bookings", json=_booking_payload())
    second = client.post("/bookings", json=_booking_payload(name="Someone Else", email="else@example.com"))

    assert first.status_code == 201
    assert second.status_code == 409
    body = second.json()
    assert body["error"]["message"] == "This time slot is already booked"
    assert body["detail"]["existing_booking"]["id"] == first.json()["id"]
    assert body["detail"]["existing_booking"]["time_slot"] == "18:00-19:00"


def test_offset_datetimes_resolve_to_written_calendar_day(client):
    first = client.post("/bookings", json=_booking_payload(date="2026-11-02T00:30:00+05:30"))
    second = client.post("/bookings", json=_booking_payload(date="2026-11-02T23:00:00-07:00"))

    assert first.status_code == 201
    assert second.status_code == 409


def test_different_facility_slot_or_day_is_available(client):
    assert client.post("/bookings", json=_booking_payload()).status_code == 201
    assert client.post("/bookings", json=_booking_payload(facility="Pool")).status_code == 201
    assert client.post("/bookings", json=_booking_payload(time_slot="19:00-20:00")).status_code == 201
    assert client.post("/bookings", json=_booking_payload(date="2026-11-03")).status_code == 201
    assert client.post("/bookings", json=_booking_payload(gym="Koramangala")).status_code == 201


def test_invalid_booking_input_is_rejected(client):
    assert client.post("/bookings", json=_booking_payload(date="not-a-date")).status_code == 422
    assert client.post("/bookings", json=_booking_payload(gym="   ")).status_code == 422

    payload = _booking_payload()
    del payload["phone"]
    assert client.post("/bookings", json=payload).status_code == 422


def test_booked_slots_are_grouped_by_facility(client):
    client.post("/bookings", json=_booking_payload())
    client.post("/bookings", json=_booking_payload(time_slot="07:00-08:00"))
    client.post("/bookings", json=_booking_payload(facility="Pool", time_slot="06:00-07:00"))
    client.post("/bookings", json=_booking_payload(date="2026-11-03", time_slot="09:00-10:00"))

    response = client.get("/bookings/booked-slots", params={"gym": "Indiranagar", "date": "2026-11-02"})

    assert response.status_code == 200
    assert response.json()["booked_slots"] == {
        "Pool": ["06:00-07:00"],
        "Squash Court": ["07:00-08:00", "18:00-19:00"],
    }


def test_booked_slots_rejects_invalid_date(client):
    response = client.get("/bookings/booked-slots", params={"gym": "Indiranagar", "date": "02/11/2026"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid date format"


def test_branch_cancels_booking_and_slot_becomes_free(client, admin_headers, email_sender):
    branch_headers = create_branch_headers(client, admin_headers, "Indiranagar")
    booking = client.post("/bookings", json=_booking_payload()).json()

    response = client.post(f"/bookings/{booking['id']}/cancel", headers=branch_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["booking"]["status"] == "cancelled"
    assert data["booking"]["cancelled_at"] is not None
    assert [mail["to"] for mail in email_sender.sent] == ["ravi@example.com"]
    assert "Squash Court" in email_sender.sent[0]["html_body"]

    slots = client.get("/bookings/booked-slots", params={"gym": "Indiranagar", "date": "2026-11-02"})
    assert slots.json()["booked_slots"] == {}
    assert client.post("/bookings", json=_booking_payload()).status_code == 201


def test_cancel_twice_is_conflict(client, admin_headers):
    booking = client.post("/bookings", json=_booking_payload()).json()

    first = client.post(f"/bookings/{booking['id']}/cancel", headers=admin_headers)
    second = client.post(f"/bookings/{booking['id']}/cancel", headers=admin_headers)

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["detail"] == "Booking is already cancelled"


def test_cancel_succeeds_when_email_fails(client, admin_headers, email_sender):
    email_sender.fail = True
    booking = client.post("/bookings", json=_booking_payload()).json()

    response = client.post(f"/bookings/{booking['id']}/cancel", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["booking"]["status"] == "cancelled"
    assert email_sender.sent == []


def test_branch_cannot_cancel_other_gym_booking(client, admin_headers):
    branch_headers = create_branch_headers(client, admin_headers, "Koramangala")
    booking = client.post("/bookings", json=_booking_payload()).json()

    response = client.post(f"/bookings/{booking['id']}/cancel", headers=branch_headers)

    assert response.status_code == 403


def test_cancel_unknown_booking_returns_404(client, admin_headers):
    response = client.post("/bookings/9999/cancel", headers=admin_headers)
    assert response.status_code == 404


def test_customer_cannot_cancel_or_list_all(client, customer_headers):
    booking = client.post("/bookings", json=_booking_payload()).json()

    assert client.post(f"/bookings/{booking['id']}/cancel", headers=customer_headers).status_code == 403
    assert client.get("/bookings", headers=customer_headers).status_code == 403
    assert client.get("/bookings").status_code == 401


def test_branch_sees_only_its_gym(client, admin_headers):
    branch_headers = create_branch_headers(client, admin_headers, "Indiranagar")
    client.post("/bookings", json=_booking_payload())
    client.post("/bookings", json=_booking_payload(time_slot="07:00-08:00"))
    client.post("/bookings", json=_booking_payload(gym="Koramangala", email="other@example.com"))

    bookings = client.get("/bookings/branch", headers=branch_headers)
    members = client.get("/bookings/branch/members", headers=branch_headers)

    assert bookings.status_code == 200
    assert {booking["gym"] for booking in bookings.json()} == {"Indiranagar"}
    assert len(bookings.json()) == 2
    assert members.status_code == 200
    assert members.json() == [
        {
            "name": "Ravi Kumar",
            "email": "ravi@example.com",
            "phone": "+919811111111",
            "first_booking": members.json()[0]["first_booking"],
            "booking_count": 2,
        }
    ]


def test_admin_lists_all_bookings_with_pagination(client, admin_headers):
    first = client.post("/bookings", json=_booking_payload()).json()
    second = client.post("/bookings", json=_booking_payload(time_slot="07:00-08:00")).json()

    everything = client.get("/bookings", headers=admin_headers)
    paged = client.get("/bookings?limit=1&offset=1", headers=admin_headers)

    assert {booking["id"] for booking in everything.json()} == {first["id"], second["id"]}
    assert len(paged.json()) == 1
