import pytest

from pawledger.core.enums import BookingStatus

GROOMING = "/api/v1/grooming"
ADMIN_GROOMING = "/api/v1/admin/grooming"


def test_price_range(client, customer_headers):
    response = client.get(f"{GROOMING}/pricing/medium", headers=customer_headers)

    assert response.status_code == 200
    assert response.json() == {"size_category": "medium", "min_price_cents": 6000, "max_price_cents": 10_000}


def test_unknown_size(client, customer_headers):
    response = client.get(f"{GROOMING}/pricing/giant", headers=customer_headers)

    assert response.status_code == 422


class TestRating:
    @pytest.fixture
    def booking_dog_id(self, make_booking, customer, grooming, rex, booking_day):
        booking = make_booking(customer, grooming, [rex], booking_day, 7500, status=BookingStatus.CONFIRMED)
        return booking.dogs[0].id

    def test_rate(self, client, staff_headers, booking_dog_id):
        response = client.post(
            f"{ADMIN_GROOMING}/rate/{booking_dog_id}", json={"rating": 2}, headers=staff_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["quoted_price_cents"] == 7000
        assert body["tier_label"] == "Good"
        assert body["all_rated"] is True
        assert body["booking_total_cents"] == 7000

    def test_rating_out_of_range(self, client, staff_headers, booking_dog_id):
        response = client.post(
            f"{ADMIN_GROOMING}/rate/{booking_dog_id}", json={"rating": 9}, headers=staff_headers
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_RATING"


def test_matrix_and_update(client, staff_headers):
    tiers = client.get(f"{ADMIN_GROOMING}/matrix", headers=staff_headers).json()["tiers"]

    assert len(tiers) == 20

    tier = tiers[0]
    response = client.put(
        f"{ADMIN_GROOMING}/matrix/{tier['id']}", json={"estimated_minutes": 75}, headers=staff_headers
    )

    assert response.status_code == 200
    assert response.json()["estimated_minutes"] == 75
    assert response.json()["price_cents"] == tier["price_cents"]
