"""Validation rules on the request models."""

from datetime import date

from pydantic import ValidationError
import pytest

from pawledger.core.enums import PaymentMethod
from pawledger.schemas.booking import BookingCreate
from pawledger.schemas.checkout import CheckoutRequest
from pawledger.schemas.wallet import LoadFundsRequest

SERVICE_ID = "7d4b3c2a-1e0f-4a9b-8c7d-6e5f4a3b2c1d"
DOG_ID = "1a2b3c4d-5e6f-4a7b-8c9d-0e1f2a3b4c5d"
BOOKING_A = "aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaaa"
BOOKING_B = "bbbbbbbb-bbbb-4bbb-8bbb-bbbbbbbbbbbb"


class TestBookingCreate:
    def test_end_date_defaults_to_start_date(self):
        payload = BookingCreate(service_type_id=SERVICE_ID, dog_ids=[DOG_ID], start_date="2026-11-02")

        assert payload.end_date == date(2026, 11, 2)
        assert not payload.is_multi_day

    def test_multi_day_span(self):
        payload = BookingCreate(
            service_type_id=SERVICE_ID,
            dog_ids=[DOG_ID],
            start_date="2026-11-02",
            end_date="2026-11-05",
        )

        assert payload.is_multi_day

    def test_datetime_strings_are_rejected(self):
        with pytest.raises(ValidationError):
            BookingCreate(
                service_type_id=SERVICE_ID, dog_ids=[DOG_ID], start_date="2026-11-02T10:00:00"
            )

    def test_start_time_only_on_single_day_bookings(self):
        single = BookingCreate(
            service_type_id=SERVICE_ID, dog_ids=[DOG_ID], start_date="2026-11-02", start_time="13:00"
        )
        assert single.start_time == "13:00"

        with pytest.raises(ValidationError):
            BookingCreate(
                service_type_id=SERVICE_ID,
                dog_ids=[DOG_ID],
                start_date="2026-11-02",
                end_date="2026-11-03",
                start_time="13:00",
            )

    def test_at_least_one_dog(self):
        with pytest.raises(ValidationError):
            BookingCreate(service_type_id=SERVICE_ID, dog_ids=[], start_date="2026-11-02")

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            BookingCreate(
                service_type_id=SERVICE_ID,
                dog_ids=[DOG_ID],
                start_date="2026-11-02",
                price_cents=1,
            )


class TestCheckoutRequest:
    def test_duplicate_booking_ids_are_collapsed(self):
        request = CheckoutRequest(
            booking_ids=[BOOKING_A, BOOKING_B, BOOKING_A], payment_method=PaymentMethod.CARD
        )

        assert request.booking_ids == [BOOKING_A, BOOKING_B]

    def test_ids_must_be_uuids(self):
        with pytest.raises(ValidationError):
            CheckoutRequest(booking_ids=["not-a-uuid"], payment_method=PaymentMethod.CARD)

    def test_negative_amounts_are_rejected(self):
        with pytest.raises(ValidationError):
            CheckoutRequest(
                booking_ids=[BOOKING_A], payment_method=PaymentMethod.SPLIT, wallet_amount_cents=-1
            )

    def test_idempotency_key_is_normalized(self):
        request = CheckoutRequest(
            booking_ids=[BOOKING_A],
            payment_method=PaymentMethod.CARD,
            idempotency_key=BOOKING_B.upper(),
        )

        assert request.idempotency_key == BOOKING_B


def test_load_amount_must_be_positive():
    with pytest.raises(ValidationError):
        LoadFundsRequest(amount_cents=0)
