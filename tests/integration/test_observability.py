from prometheus_client import REGISTRY


def test_health_endpoint_returns_ok_and_request_id(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers.get("X-Request-ID")


def test_metrics_endpoint_returns_prometheus_text(client):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "text/plain" in response.headers.get("content-type", "")
    body = response.text
    assert "http_requests_total" in body
    assert "http_request_duration_seconds" in body


def test_booking_conflicts_are_counted(client):
    payload = {
        "gym": "Metrics Gym",
        "facility": "Court",
        "date": "2026-11-02",
        "time_slot": "10:00-11:00",
        "name": "Ravi",
        "email": "ravi@example.com",
        "phone": "+919811111111",
    }
    before = REGISTRY.get_sample_value("booking_conflicts_total") or 0.0
    client.post("/bookings", json=payload)
    client.post("/bookings", json=payload)
    client.post("/bookings", json={**payload, "gym": "Another Gym " * 5})

    body = client.get("/metrics").text

    assert REGISTRY.get_sample_value("booking_conflicts_total") == before + 1
    assert "booking_conflicts_total " in body
    assert "Another Gym" not in body
    assert "Metrics Gym" not in body
