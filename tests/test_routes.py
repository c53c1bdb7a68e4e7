"""
End-to-end tests of the HTTP surface with the fake backend behind it.
"""
from datetime import date, timedelta

from app.security.auth import create_refresh_token


def booking_payload(product, days_from_now=1, nights=2, **overrides) -> dict:
    start = date.today() + timedelta(days=days_from_now)
    payload = {
        "product_id": product["id"],
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=nights)).isoformat(),
    }
    payload.update(overrides)
    return payload


def test_home(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "RentLens" in response.json()["message"]


def test_responses_carry_request_id(client):
    response = client.get("/", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
    assert float(response.headers["X-Process-Time"]) >= 0

    generated = client.get("/")
    assert generated.headers["X-Request-ID"]


# AUTH


def test_register_then_login(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "budi", "password": "rahasia1", "full_name": "Budi Santoso", "email": "budi@gmail.com"},
    )
    assert response.status_code == 201
    assert response.json()["username"] == "budi"

    login = client.post("/api/auth/login", json={"username": "budi", "password": "rahasia1"})
    assert login.status_code == 200
    body = login.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["display_name"] == "Budi Santoso"

    me = client.get("/api/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["username"] == "budi"


def test_register_duplicate_username(client, renter):
    response = client.post(
        "/api/auth/register",
        json={"username": "renter", "password": "rahasia1", "full_name": "Someone Else"},
    )
    assert response.status_code == 400


def test_register_validates_lengths(client):
    short_name = client.post(
        "/api/auth/register", json={"username": "ab", "password": "rahasia1", "full_name": "A"}
    )
    short_password = client.post(
        "/api/auth/register", json={"username": "budi", "password": "12345", "full_name": "A"}
    )
    assert short_name.status_code == 422
    assert short_password.status_code == 422


def test_login_with_wrong_password(client, renter):
    response = client.post("/api/auth/login", json={"username": "renter", "password": "wrong-pass"})
    assert response.status_code == 401


def test_banned_user_cannot_log_in(client, backend):
    backend.add_user(username="banned", is_banned=True, ban_reason="Fraud")
    response = client.post("/api/auth/login", json={"username": "banned", "password": "secret123"})
    assert response.status_code == 403
    assert "Fraud" in response.json()["detail"]


def test_token_endpoint_uses_form_login(client, renter):
    response = client.post("/api/token", data={"username": "renter", "password": "secret123"})
    assert response.status_code == 200
    assert response.json()["access_token"]


def test_refresh_issues_new_pair(client, renter):
    refresh_token, _ = create_refresh_token({"sub": renter["id"], "role": "user"})
    response = client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == 200
    assert response.json()["refresh_token"] != refresh_token


def test_access_token_is_not_a_refresh_token(client, renter, auth_headers):
    access_token = auth_headers(renter)["Authorization"].split(" ", 1)[1]
    response = client.post("/api/auth/refresh", json={"refresh_token": access_token})
    assert response.status_code == 401


def test_protected_routes_need_a_token(client):
    assert client.get("/api/me").status_code == 401
    assert client.get("/api/bookings", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401


def test_banned_user_is_locked_out(client, backend, auth_headers):
    banned = backend.add_user(username="banned", is_banned=True)
    assert client.get("/api/me", headers=auth_headers(banned)).status_code == 403


def test_update_profile(client, renter, auth_headers):
    response = client.patch("/api/me", json={"full_name": "Rina Renter"}, headers=auth_headers(renter))
    assert response.status_code == 200
    assert response.json()["full_name"] == "Rina Renter"


def test_update_location(client, renter, auth_headers):
    response = client.put(
        "/api/me/location",
        json={"latitude": -6.9175, "longitude": 107.6191, "city": "Bandung"},
        headers=auth_headers(renter),
    )
    assert response.status_code == 200
    body = response.json()
    assert (body["latitude"], body["longitude"]) == (-6.9175, 107.6191)
    assert body["has_location"] is True
    assert body["location_updated_at"]

    public = client.get(f"/api/users/{renter['id']}", headers=auth_headers(renter)).json()
    assert public["city"] == "Bandung"
    assert "latitude" not in public

    off_the_map = client.put(
        "/api/me/location", json={"latitude": 91, "longitude": 0}, headers=auth_headers(renter)
    )
    assert off_the_map.status_code == 422


# PRODUCTS


def test_catalogue_is_public(client, product):
    response = client.get("/api/products")
    assert response.status_code == 200
    assert response.json()[0]["formatted_price"] == "Rp 100.000"

    single = client.get(f"/api/products/{product['id']}")
    assert single.json()["image_url"] == "https://cdn.example.com/a7iii.jpg"


def test_product_availability(client, backend, product, renter):
    backend.add_booking(renter["id"], product)
    tomorrow = date.today() + timedelta(days=1)

    busy = client.get(
        f"/api/products/{product['id']}/availability",
        params={"start_date": tomorrow.isoformat(), "end_date": (tomorrow + timedelta(days=1)).isoformat()},
    )
    assert busy.status_code == 200
    assert busy.json()["available"] is False

    reversed_range = client.get(
        f"/api/products/{product['id']}/availability",
        params={"start_date": tomorrow.isoformat(), "end_date": tomorrow.isoformat()},
    )
    assert reversed_range.status_code == 400


def test_owner_lists_and_edits_products(client, owner, renter, product, auth_headers):
    mine = client.get("/api/products/mine", headers=auth_headers(owner))
    assert [p["id"] for p in mine.json()] == [product["id"]]

    forbidden = client.patch(
        f"/api/products/{product['id']}", json={"price_per_day": 1}, headers=auth_headers(renter)
    )
    assert forbidden.status_code == 403

    created = client.post(
        "/api/products",
        json={"name": "DJI Mini 3", "category": "Drone", "price_per_day": 150000},
        headers=auth_headers(owner),
    )
    assert created.status_code == 201
    assert created.json()["short_price"] == "Rp 150.000"

    deleted = client.delete(f"/api/products/{created.json()['id']}", headers=auth_headers(owner))
    assert deleted.status_code == 204


def test_nearby_products_around_the_caller(client, backend, product, owner, renter, auth_headers):
    assert client.get("/api/products/nearby", headers=auth_headers(renter)).status_code == 400
    half = client.get("/api/products/nearby", params={"latitude": -6.9}, headers=auth_headers(renter))
    assert half.status_code == 400

    backend.find("users", owner["id"]).update(latitude=-6.9175, longitude=107.6191, city="Bandung")
    client.put("/api/me/location", json={"latitude": -6.8725, "longitude": 107.6191}, headers=auth_headers(renter))

    response = client.get("/api/products/nearby", headers=auth_headers(renter))
    assert response.status_code == 200
    [nearby] = response.json()
    assert nearby["id"] == product["id"]
    assert nearby["owner_city"] == "Bandung"
    assert nearby["formatted_distance"] == "5.0 km"
    assert nearby["estimated_travel_time"] == "10 mins"

    # explicit coordinates win over the stored ones
    from_jakarta = client.get(
        "/api/products/nearby", params={"latitude": -6.2, "longitude": 106.8}, headers=auth_headers(renter)
    )
    assert from_jakarta.json() == []

    own = client.get("/api/products/nearby", params={"latitude": -6.9175, "longitude": 107.6191},
                     headers=auth_headers(owner))
    assert own.json() == []


def test_product_distance(client, backend, product, owner, renter, auth_headers):
    params = {"latitude": -6.8725, "longitude": 107.6191}
    unknown = client.get(f"/api/products/{product['id']}/distance", params=params, headers=auth_headers(renter))
    assert unknown.status_code == 200
    assert unknown.json()["distance_km"] is None

    backend.find("users", owner["id"]).update(latitude=-6.9175, longitude=107.6191)
    known = client.get(f"/api/products/{product['id']}/distance", params=params, headers=auth_headers(renter))
    assert known.json()["formatted_distance"] == "5.0 km"
    assert known.json()["is_within_rental_radius"] is True

    missing = client.get(
        "/api/products/00000000-0000-0000-0000-000000000000/distance", params=params, headers=auth_headers(renter)
    )
    assert missing.status_code == 404


# BOOKINGS


def test_booking_flow_through_the_api(client, backend, product, renter, owner, admin, auth_headers):
    created = client.post("/api/bookings", json=booking_payload(product), headers=auth_headers(renter))
    assert created.status_code == 201
    booking = created.json()
    assert booking["status"] == "pending"
    assert booking["total_price"] == 200000
    assert booking["status_text"] == "Pending Confirmation"
    booking_id = booking["id"]

    actions = client.get(f"/api/bookings/{booking_id}/actions", headers=auth_headers(owner))
    assert actions.json() == {"booking_id": booking_id, "actor": "owner", "actions": ["cancel"]}

    unpaid = client.post(f"/api/bookings/{booking_id}/confirm", headers=auth_headers(owner))
    assert unpaid.status_code == 400

    payment = client.post(
        f"/api/bookings/{booking_id}/payment", json={"method": "qris"}, headers=auth_headers(renter)
    )
    assert payment.status_code == 201
    order_id = payment.json()["order_id"]

    settled = client.patch(
        f"/api/admin/payments/{order_id}/status", json={"status": "paid"}, headers=auth_headers(admin)
    )
    assert settled.status_code == 200
    # the backend mirrors payment status onto the booking with a trigger
    backend.find("bookings", booking_id)["payment_status"] = "paid"

    for action, status in (("confirm", "confirmed"), ("activate", "active"), ("complete", "completed")):
        response = client.post(f"/api/bookings/{booking_id}/{action}", headers=auth_headers(owner))
        assert response.status_code == 200
        assert response.json()["status"] == status

    too_late = client.post(f"/api/bookings/{booking_id}/cancel", headers=auth_headers(renter))
    assert too_late.status_code == 409

def test_owner_cannot_book_own_product(client, backend, product, owner, auth_headers):
    response = client.post("/api/bookings", json=booking_payload(product), headers=auth_headers(owner))
    assert response.status_code == 400
    assert backend.tables["bookings"] == []


def test_delivery_priced_from_stored_locations(client, backend, product, owner, renter, auth_headers):
    payload = booking_payload(product, delivery_method="delivery", renter_address="Jl. Dago 1", distance_km=0)
    no_location = client.post("/api/bookings", json=payload, headers=auth_headers(renter))
    assert no_location.status_code == 400

    backend.find("users", owner["id"]).update(latitude=-6.9175, longitude=107.6191)
    backend.find("users", renter["id"]).update(latitude=-6.8725, longitude=107.6191)
    created = client.post("/api/bookings", json=payload, headers=auth_headers(renter))
    assert created.status_code == 201
    assert created.json()["delivery_fee"] == 15000
    assert created.json()["total_price"] == 215000



def test_booking_validation(client, product, renter, auth_headers):
    yesterday = booking_payload(product, days_from_now=-1)
    same_day = booking_payload(product, nights=0)
    delivery_without_address = booking_payload(product, delivery_method="delivery")

    for payload in (yesterday, same_day, delivery_without_address):
        response = client.post("/api/bookings", json=payload, headers=auth_headers(renter))
        assert response.status_code == 422


def test_unknown_action_is_rejected(client, backend, product, renter, auth_headers):
    row = backend.add_booking(renter["id"], product)
    response = client.post(f"/api/bookings/{row['id']}/refund", headers=auth_headers(renter))
    assert response.status_code == 422


def test_renter_sees_own_bookings(client, backend, product, renter, auth_headers):
    backend.add_booking(renter["id"], product)
    response = client.get("/api/bookings", headers=auth_headers(renter))
    assert response.status_code == 200
    assert response.json()[0]["product_name"] == "Sony A7 III"


def test_owner_bookings_with_counts(client, backend, product, renter, owner, auth_headers):
    backend.add_booking(renter["id"], product)
    backend.add_booking(renter["id"], product, status="completed")

    response = client.get(
        "/api/owner/bookings", params={"booking_status": "pending"}, headers=auth_headers(owner)
    )
    body = response.json()
    assert len(body["bookings"]) == 1
    assert body["counts"]["pending"] == 1
    assert body["counts"]["completed"] == 1
    assert body["counts"]["cancelled"] == 0


def test_stranger_cannot_see_booking(client, backend, product, renter, auth_headers):
    row = backend.add_booking(renter["id"], product)
    stranger = backend.add_user(username="stranger")
    response = client.get(f"/api/bookings/{row['id']}", headers=auth_headers(stranger))
    assert response.status_code == 403


# REPORTS AND ADMIN


def test_report_and_moderate(client, backend, renter, admin, auth_headers):
    scammer = backend.add_user(username="scammer")
    filed = client.post(
        "/api/reports",
        json={"report_type": "user", "reported_user_id": scammer["id"], "reason": "Took the money"},
        headers=auth_headers(renter),
    )
    assert filed.status_code == 201
    report_id = filed.json()["id"]

    listed = client.get("/api/admin/reports", params={"status": "pending"}, headers=auth_headers(admin))
    assert [r["id"] for r in listed.json()] == [report_id]

    banned = client.post(f"/api/admin/reports/{report_id}/ban", json={}, headers=auth_headers(admin))
    assert banned.status_code == 200
    assert banned.json()["status"] == "resolved"
    assert banned.json()["reported_user_is_banned"] is True

    profile = client.get(f"/api/admin/users/{scammer['id']}", headers=auth_headers(admin))
    assert profile.json()["reports_count"] == 1
    assert profile.json()["ban_reason"] == "Took the money"

    unbanned = client.post(f"/api/admin/users/{scammer['id']}/unban", headers=auth_headers(admin))
    assert unbanned.status_code == 200

def test_pending_reports_queue(client, backend, renter, admin, auth_headers):
    scammer = backend.add_user(username="scammer")
    waiting = backend.add_report(renter["id"], reported_user_id=scammer["id"])
    backend.add_report(renter["id"], reported_user_id=scammer["id"], status="resolved")

    response = client.get("/api/admin/reports/pending", headers=auth_headers(admin))
    assert response.status_code == 200
    assert [r["id"] for r in response.json()] == [waiting["id"]]
    assert client.get("/api/admin/reports/pending", headers=auth_headers(renter)).status_code == 403



def test_admin_routes_need_admin_role(client, renter, auth_headers):
    assert client.get("/api/admin/statistics", headers=auth_headers(renter)).status_code == 403
    assert client.get("/api/admin/users", headers=auth_headers(renter)).status_code == 403


def test_statistics(client, admin, renter, product, auth_headers):
    response = client.get("/api/admin/statistics", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["total_users"] == 3
    assert response.json()["total_products"] == 1
