WALLET = "/api/v1/wallet"
ADMIN_WALLET = "/api/v1/admin/wallet"


def test_balance_of_a_new_customer(client, customer_headers):
    response = client.get(f"{WALLET}/balance", headers=customer_headers)

    assert response.status_code == 200
    assert response.json() == {
        "balance_cents": 0,
        "tier": "basic",
        "points_balance": 0,
        "auto_reload_enabled": False,
        "auto_reload_threshold_cents": None,
        "auto_reload_amount_cents": None,
    }


def test_load_and_history(client, customer_headers):
    loaded = client.post(f"{WALLET}/load", json={"amount_cents": 2000}, headers=customer_headers)

    assert loaded.status_code == 200
    assert loaded.json()["type"] == "load"
    assert loaded.json()["balance_after_cents"] == 2000

    history = client.get(f"{WALLET}/transactions", headers=customer_headers).json()
    assert [txn["id"] for txn in history["transactions"]] == [loaded.json()["id"]]
    assert history["limit"] == 20


def test_load_below_minimum(client, customer_headers):
    response = client.post(f"{WALLET}/load", json={"amount_cents": 100}, headers=customer_headers)

    assert response.status_code == 422
    assert response.json()["code"] == "WALLET_LOAD_LIMIT"


def test_load_must_be_positive(client, customer_headers):
    response = client.post(f"{WALLET}/load", json={"amount_cents": 0}, headers=customer_headers)

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_pay_for_a_grooming_booking(
    client, customer_headers, customer, fund_wallet, make_booking, grooming, rex, booking_day
):
    fund_wallet(customer.id, 5000)
    booking = make_booking(customer, grooming, [rex], booking_day, 7500)

    response = client.post(
        f"{WALLET}/pay",
        json={"amount_cents": 1500, "description": "Groom", "booking_id": booking.id},
        headers=customer_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["balance_cents"] == 3500
    assert body["transaction"]["amount_cents"] == -1500
    assert body["transaction"]["booking_id"] == booking.id
    assert body["points_awarded"] == 45
    assert body["points_capped"] == 0


def test_pay_cannot_claim_the_grooming_bonus(
    client, customer_headers, customer, fund_wallet, make_booking, daycare, rex, booking_day
):
    fund_wallet(customer.id, 5000)
    booking = make_booking(customer, daycare, [rex], booking_day, 4500)

    payload = {"amount_cents": 2000, "description": "Daycare", "booking_id": booking.id}

    flagged = client.post(
        f"{WALLET}/pay", json={**payload, "is_grooming": True}, headers=customer_headers
    )
    assert flagged.status_code == 422
    assert flagged.json()["code"] == "validation_error"

    response = client.post(f"{WALLET}/pay", json=payload, headers=customer_headers)
    assert response.json()["points_awarded"] == 40


def test_pay_against_another_customers_booking(
    client, customer_headers, customer, other_customer, fund_wallet, make_booking, grooming, booking_day
):
    fund_wallet(customer.id, 5000)
    booking = make_booking(other_customer, grooming, other_customer.dogs, booking_day, 9000)

    response = client.post(
        f"{WALLET}/pay",
        json={"amount_cents": 2000, "description": "Groom", "booking_id": booking.id},
        headers=customer_headers,
    )

    assert response.status_code == 404


def test_auto_reload(client, customer_headers, customer, fund_wallet):
    fund_wallet(customer.id, 600)

    updated = client.put(
        f"{WALLET}/auto-reload",
        json={"enabled": True, "threshold_cents": 1000, "amount_cents": 2500},
        headers=customer_headers,
    )

    assert updated.status_code == 200
    assert updated.json()["auto_reload_enabled"] is True
    check = client.get(f"{WALLET}/auto-reload/check", headers=customer_headers).json()
    assert check == {"should_reload": True, "amount_cents": 2500}


def test_auto_reload_needs_amounts(client, customer_headers):
    response = client.put(f"{WALLET}/auto-reload", json={"enabled": True}, headers=customer_headers)

    assert response.status_code == 400


class TestStaffWallet:
    def test_refund_and_adjust(self, client, staff_headers, customer):
        refunded = client.post(
            f"{ADMIN_WALLET}/{customer.id}/refund",
            json={"amount_cents": 1200, "reason": "Rainy day closure"},
            headers=staff_headers,
        )
        assert refunded.status_code == 200
        assert refunded.json()["description"] == "Refund: Rainy day closure"

        adjusted = client.post(
            f"{ADMIN_WALLET}/{customer.id}/adjust",
            json={"amount_cents": -200, "reason": "Correction"},
            headers=staff_headers,
        )
        assert adjusted.json()["balance_after_cents"] == 1000

        balance = client.get(f"{ADMIN_WALLET}/{customer.id}", headers=staff_headers).json()
        assert balance["balance_cents"] == 1000
        history = client.get(f"{ADMIN_WALLET}/{customer.id}/transactions", headers=staff_headers).json()
        assert sorted(txn["type"] for txn in history["transactions"]) == ["adjustment", "refund"]

    def test_customers_cannot_use_admin_routes(self, client, customer_headers, customer):
        response = client.post(
            f"{ADMIN_WALLET}/{customer.id}/refund",
            json={"amount_cents": 1200, "reason": "Please"},
            headers=customer_headers,
        )

        assert response.status_code == 401
