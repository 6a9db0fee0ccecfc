import pytest

from bookings.models import Booking


@pytest.mark.django_db
def test_create_and_list_own_bookings(api_client, user, other_user, package, travel_date, make_booking):
    make_booking(user=other_user, customer_email=other_user.email)
    api_client.force_authenticate(user=user)

    response = api_client.post(
        "/api/bookings/",
        {"package_id": package.pk, "travel_date": travel_date.isoformat(), "travelers": 2},
        format="json",
    )

    assert response.status_code == 201
    body = response.json()
    assert body["total_amount"] == "30000.00"
    assert body["status"] == "pending"
    assert body["payment_status"] == "unpaid"

    listing = api_client.get("/api/bookings/").json()
    assert [item["id"] for item in listing] == [body["id"]]


@pytest.mark.django_db
def test_create_booking_rejects_past_date(api_client, user, package):
    api_client.force_authenticate(user=user)

    response = api_client.post(
        "/api/bookings/",
        {"package_id": package.pk, "travel_date": "2000-01-01", "travelers": 1},
        format="json",
    )

    assert response.status_code == 400
    assert "travel_date" in response.json()


@pytest.mark.django_db
def test_booking_detail_hidden_from_other_users(api_client, other_user, make_booking):
    booking = make_booking()
    api_client.force_authenticate(user=other_user)

    response = api_client.get(f"/api/bookings/{booking.pk}/")

    assert response.status_code == 403
    assert response.json()["code"] == "unauthorized"


@pytest.mark.django_db
def test_cancel_endpoint(api_client, user, make_booking):
    booking = make_booking()
    api_client.force_authenticate(user=user)

    response = api_client.put(f"/api/bookings/{booking.pk}/cancel/")

    assert response.status_code == 200
    assert response.json()["booking"]["status"] == "cancelled"

    again = api_client.put(f"/api/bookings/{booking.pk}/cancel/")
    assert again.status_code == 400
    assert again.json()["code"] == "invalid_state"


@pytest.mark.django_db
def test_admin_status_override_requires_admin(api_client, user, admin_user, make_booking):
    booking = make_booking(status=Booking.CONFIRMED, payment_status=Booking.PAID)

    api_client.force_authenticate(user=user)
    assert api_client.put(f"/api/bookings/{booking.pk}/", {"status": "cancelled"}, format="json").status_code == 403

    api_client.force_authenticate(user=admin_user)
    response = api_client.put(f"/api/bookings/{booking.pk}/", {"status": "cancelled"}, format="json")

    assert response.status_code == 200
    assert response.json()["payment_status"] == "refund_pending"


@pytest.mark.django_db
def test_admin_listing_is_paged(api_client, admin_user, make_booking):
    for _ in range(3):
        make_booking()
    api_client.force_authenticate(user=admin_user)

    response = api_client.get("/api/bookings/admin/all/", {"page": 2, "limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["total"] == 3
    assert body["pagination"] == {"page": 2, "limit": 2, "total_pages": 2}
    assert body["data"][0]["user"]["email"] == "traveler@example.com"
