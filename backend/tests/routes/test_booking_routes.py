"""HTTP contract of the customer and staff booking routes."""

from datetime import timedelta

import pytest

BOOKINGS = "/api/v1/bookings"
ADMIN_BOOKINGS = "/api/v1/admin/bookings"


@pytest.fixture
def create_payload(daycare, rex, booking_day):
    return {
        "service_type_id": daycare.id,
        "dog_ids": [rex.id],
        "start_date": booking_day.isoformat(),
    }


@pytest.fixture
def created(client, customer_headers, create_payload):
    response = client.post(BOOKINGS, json=create_payload, headers=customer_headers)
    assert response.status_code == 201
    return response.json()


class TestIdentity:
    def test_missing_customer_header(self, client, create_payload):
        response = client.post(BOOKINGS, json=create_payload)

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHENTICATED"

    def test_malformed_customer_header(self, client, create_payload):
        response = client.post(BOOKINGS, json=create_payload, headers={"X-Customer-Id": "jamie"})

        assert response.status_code == 401

    def test_admin_routes_need_staff_header(self, client, customer_headers, booking_day):
        response = client.get(
            f"{ADMIN_BOOKINGS}/schedule", params={"date": booking_day.isoformat()}, headers=customer_headers
        )

        assert response.status_code == 401

    def test_unknown_staff_user(self, client, booking_day):
        response = client.get(
            f"{ADMIN_BOOKINGS}/schedule",
            params={"date": booking_day.isoformat()},
            headers={"X-Staff-Id": "00000000-0000-4000-8000-000000000000"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Unknown staff user"


class TestCustomerBookings:
    def test_create(self, created, customer, booking_day):
        assert created["status"] == "pending"
        assert created["customer_id"] == customer.id
        assert created["service_name"] == "daycare"
        assert created["booking_date"] == booking_day.isoformat()
        assert created["total_cents"] == 4500
        assert [dog["dog_name"] for dog in created["dogs"]] == ["Rex"]

    def test_create_multi_day(self, client, customer_headers, boarding, rex, booking_day):
        response = client.post(
            BOOKINGS,
            json={
                "service_type_id": boarding.id,
                "dog_ids": [rex.id],
                "start_date": booking_day.isoformat(),
                "end_date": (booking_day + timedelta(days=1)).isoformat(),
            },
            headers=customer_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["start_date"] == booking_day.isoformat()
        assert body["total_cents"] == 13_000

    def test_duplicate_is_a_conflict(self, client, customer_headers, create_payload, created):
        response = client.post(BOOKINGS, json=create_payload, headers=customer_headers)

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "DUPLICATE_BOOKING"
        assert body["errors"]["dog"] == "Rex"

    def test_foreign_dog(self, client, customer_headers, daycare, other_customer, booking_day):
        response = client.post(
            BOOKINGS,
            json={
                "service_type_id": daycare.id,
                "dog_ids": [other_customer.dogs[0].id],
                "start_date": booking_day.isoformat(),
            },
            headers=customer_headers,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_DOG_OWNERSHIP"

    def test_dates_must_be_date_only(self, client, customer_headers, create_payload, booking_day):
        create_payload["start_date"] = f"{booking_day.isoformat()}T09:00:00"

        response = client.post(BOOKINGS, json=create_payload, headers=customer_headers)

        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"

    def test_availability(self, client, customer_headers, daycare, created, booking_day):
        response = client.get(
            f"{BOOKINGS}/availability",
            params={
                "service_type_id": daycare.id,
                "start_date": booking_day.isoformat(),
                "end_date": (booking_day + timedelta(days=1)).isoformat(),
            },
            headers=customer_headers,
        )

        assert response.status_code == 200
        days = response.json()["availability"]
        assert [day["spots_remaining"] for day in days] == [39, 40]

    def test_grooming_slot_booking(self, client, customer_headers, grooming, rex, booking_day):
        response = client.post(
            BOOKINGS,
            json={
                "service_type_id": grooming.id,
                "dog_ids": [rex.id],
                "start_date": booking_day.isoformat(),
                "start_time": "09:00",
            },
            headers=customer_headers,
        )
        assert response.status_code == 201
        assert response.json()["start_time"] == "09:00"

        slots = client.get(
            f"{BOOKINGS}/grooming-slots", params={"date": booking_day.isoformat()}, headers=customer_headers
        )

        assert slots.status_code == 200
        body = slots.json()
        assert body["date"] == booking_day.isoformat()
        assert body["slots"][0] == {
            "start_time": "09:00",
            "end_time": "10:30",
            "available": True,
            "spots_remaining": 1,
            "max_capacity": 2,
        }

    def test_start_time_must_be_a_time_of_day(self, client, customer_headers, create_payload):
        create_payload["start_time"] = "9am"

        response = client.post(BOOKINGS, json=create_payload, headers=customer_headers)

        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"

    def test_service_types(self, client, customer_headers):
        response = client.get(f"{BOOKINGS}/service-types", headers=customer_headers)

        assert response.status_code == 200
        assert [service["name"] for service in response.json()] == ["daycare", "boarding", "grooming"]

    def test_list_and_get(self, client, customer_headers, created):
        listing = client.get(BOOKINGS, params={"status": "pending"}, headers=customer_headers)

        assert listing.status_code == 200
        assert listing.json()["total"] == 1

        detail = client.get(f"{BOOKINGS}/{created['id']}", headers=customer_headers)
        assert detail.json()["id"] == created["id"]

    def test_other_customer_gets_not_found(self, client, other_customer, created):
        response = client.get(f"{BOOKINGS}/{created['id']}", headers={"X-Customer-Id": other_customer.id})

        assert response.status_code == 404

    def test_cancel(self, client, customer_headers, created):
        response = client.post(
            f"{BOOKINGS}/{created['id']}/cancel", json={"reason": "Sick"}, headers=customer_headers
        )

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["cancel_reason"] == "Sick"

    def test_cancel_without_body(self, client, customer_headers, created):
        response = client.post(f"{BOOKINGS}/{created['id']}/cancel", headers=customer_headers)

        assert response.status_code == 200


class TestStaffBookings:
    def test_staff_booking_is_confirmed(self, client, staff_headers, create_payload, customer):
        response = client.post(
            ADMIN_BOOKINGS, json={**create_payload, "customer_id": customer.id}, headers=staff_headers
        )

        assert response.status_code == 201
        assert response.json()["status"] == "confirmed"

    def test_day_at_the_facility(self, client, staff_headers, created):
        booking_url = f"{ADMIN_BOOKINGS}/{created['id']}"

        assert client.post(f"{booking_url}/confirm", headers=staff_headers).json()["status"] == "confirmed"
        assert client.post(f"{booking_url}/check-in", headers=staff_headers).json()["status"] == "checked_in"
        checked_out = client.post(
            f"{booking_url}/check-out", json={"notes": "Great day"}, headers=staff_headers
        )
        assert checked_out.json()["status"] == "checked_out"
        assert checked_out.json()["notes"] == "Great day"

    def test_invalid_transition(self, client, staff_headers, created):
        response = client.post(f"{ADMIN_BOOKINGS}/{created['id']}/check-out", headers=staff_headers)

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_BOOKING_TRANSITION"

    def test_no_show(self, client, staff_headers, created):
        response = client.post(f"{ADMIN_BOOKINGS}/{created['id']}/no-show", headers=staff_headers)

        assert response.json()["status"] == "no_show"

    def test_schedule(self, client, staff_headers, created, booking_day):
        response = client.get(
            f"{ADMIN_BOOKINGS}/schedule", params={"date": booking_day.isoformat()}, headers=staff_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert [booking["id"] for booking in body["bookings"]] == [created["id"]]
        assert body["dogs_by_status"] == {"pending": 1}
        assert body["spots_remaining"] == body["total_capacity"] - 1
