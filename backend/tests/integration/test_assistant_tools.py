"""Assistant tool dispatch: every failure must come back as an error payload."""

from datetime import timedelta

import pytest

from pawledger.services.assistant_tool_service import NO_ACCOUNT_MESSAGE, AssistantToolService


@pytest.fixture
def tools(db):
    return AssistantToolService(db)


def _booking_input(day, dog_names, service="daycare", end_day=None):
    return {
        "service_name": service,
        "start_date": day.isoformat(),
        "end_date": (end_day or day).isoformat(),
        "dog_names": dog_names,
    }


class TestDispatch:
    def test_tool_catalogue(self, tools):
        assert set(tools.tool_names) == {
            "check_availability",
            "create_booking",
            "get_my_bookings",
            "cancel_booking",
            "get_wallet_balance",
            "get_services_and_pricing",
        }

    def test_unknown_tool(self, tools, customer):
        assert tools.execute_tool("order_pizza", {}, customer.id) == {"error": "Unknown tool: order_pizza"}

    def test_account_required(self, tools):
        assert tools.execute_tool("get_wallet_balance", {}, None) == {"error": NO_ACCOUNT_MESSAGE}
        assert "need an account" in tools.execute_tool("create_booking", {}, None)["error"]

    def test_invalid_input_names_the_field(self, tools, customer, booking_day):
        result = tools.execute_tool(
            "create_booking",
            {"service_name": "daycare", "end_date": booking_day.isoformat(), "dog_names": ["Rex"]},
            customer.id,
        )

        assert result == {"error": "Invalid input for create_booking: start_date"}


class TestCatalogueTools:
    def test_services_and_pricing(self, tools):
        result = tools.execute_tool("get_services_and_pricing", {}, None)

        by_name = {service["name"]: service for service in result["services"]}
        assert by_name["daycare"] == {"name": "daycare", "base_price": "$45.00", "duration": "Full day"}
        assert by_name["grooming"]["duration"] == "90 min"
        assert "Multi-dog discount" in result["notes"]

    def test_check_availability(self, tools, booking_day):
        result = tools.execute_tool(
            "check_availability",
            {
                "service_name": " Boarding ",
                "start_date": booking_day.isoformat(),
                "end_date": (booking_day + timedelta(days=1)).isoformat(),
            },
            None,
        )

        assert result["service"] == "boarding"
        assert [day["date"] for day in result["dates"]] == [
            booking_day.isoformat(),
            (booking_day + timedelta(days=1)).isoformat(),
        ]
        assert all(day["available"] for day in result["dates"])

    def test_reversed_range_is_an_error(self, tools, booking_day):
        result = tools.execute_tool(
            "check_availability",
            {
                "service_name": "daycare",
                "start_date": booking_day.isoformat(),
                "end_date": (booking_day - timedelta(days=1)).isoformat(),
            },
            None,
        )

        assert "error" in result


class TestBookingTools:
    def test_create_booking_by_dog_name(self, tools, customer, booking_day):
        result = tools.execute_tool("create_booking", _booking_input(booking_day, ["rex", "Bella"]), customer.id)

        assert result["success"] is True
        assert result["status"] == "confirmed"
        assert result["total_price"] == "$81.00"
        assert result["date"] == booking_day.isoformat()
        assert sorted(result["dogs"]) == ["Bella", "Rex"]

    def test_multi_day_booking(self, tools, customer, booking_day):
        end_day = booking_day + timedelta(days=2)

        result = tools.execute_tool(
            "create_booking", _booking_input(booking_day, ["Rex"], "boarding", end_day), customer.id
        )

        assert result["date"] == f"{booking_day.isoformat()} to {end_day.isoformat()}"
        assert result["total_price"] == "$195.00"

    def test_unknown_dog(self, tools, customer, booking_day):
        result = tools.execute_tool("create_booking", _booking_input(booking_day, ["Fido"]), customer.id)

        assert result == {"error": 'Dog "Fido" not found on your account'}

    def test_duplicate_is_reported(self, tools, customer, booking_day):
        tools.execute_tool("create_booking", _booking_input(booking_day, ["Rex"]), customer.id)

        result = tools.execute_tool("create_booking", _booking_input(booking_day, ["Rex"]), customer.id)

        assert "already has a Daycare booking" in result["error"]

    def test_list_and_cancel(self, tools, customer, booking_day):
        created = tools.execute_tool("create_booking", _booking_input(booking_day, ["Rex"]), customer.id)

        listing = tools.execute_tool("get_my_bookings", {}, customer.id)
        assert listing["total"] == 1
        assert listing["bookings"][0]["id"] == created["booking_id"]
        assert listing["bookings"][0]["price"] == "$45.00"

        cancelled = tools.execute_tool("cancel_booking", {"booking_id": created["booking_id"]}, customer.id)
        assert cancelled["status"] == "cancelled"

        assert tools.execute_tool("get_my_bookings", {}, customer.id)["total"] == 0
        assert tools.execute_tool("get_my_bookings", {"include_past": True}, customer.id)["total"] == 1

        again = tools.execute_tool("cancel_booking", {"booking_id": created["booking_id"]}, customer.id)
        assert again == {"error": "Cannot cancel a booking with status 'cancelled'"}

    def test_cannot_cancel_someone_elses_booking(self, tools, customer, other_customer, booking_day):
        created = tools.execute_tool("create_booking", _booking_input(booking_day, ["Rex"]), customer.id)

        result = tools.execute_tool("cancel_booking", {"booking_id": created["booking_id"]}, other_customer.id)

        assert result == {"error": "Booking not found"}


def test_wallet_balance(tools, customer, fund_wallet, grant_points):
    fund_wallet(customer.id, 2550)
    grant_points(customer.id, 120)

    result = tools.execute_tool("get_wallet_balance", {}, customer.id)

    assert result == {
        "wallet_balance": "$25.50",
        "tier": "basic",
        "loyalty_points": 120,
        "max_points": 500,
    }
