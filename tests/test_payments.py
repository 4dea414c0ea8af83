"""Installment recording, payment status derivation and the payment overview."""

from datetime import datetime

import pytest
from fastapi import status

from order_dashboard.core.exceptions import InvalidRequestError
from order_dashboard.db.models import Order
from order_dashboard.services import payment_service


def make_order(total: float = 1000.0, deposit: float = 0.0, *payments: float) -> Order:
    order = Order(order_ref="ORD-TEST", buyer="Test", total_topay=total, deposit_25=deposit)
    for (amount_col, date_col), amount in zip(payment_service.PAYMENT_SLOTS, payments):
        setattr(order, amount_col, amount)
        setattr(order, date_col, datetime(2024, 1, 1))
    return order


@pytest.mark.parametrize(
    "total, paid, payment_type, expected",
    [
        (1000, 0, None, "No Payment Received"),
        (1000, 250, None, "Deposit Paid"),
        (1000, 400, "deposit", "Deposit Paid"),
        (1000, 400, None, "Partial Payment"),
        (1000, 999.995, None, "Paid"),
        (1000, 1000, "final", "Paid"),
    ],
)
def test_derive_payment_status(total, paid, payment_type, expected):
    assert payment_service.derive_payment_status(total, paid, payment_type) == expected


def test_deposit_defaults_to_quarter_of_total():
    order = make_order(800.0)
    updates = payment_service.record_payment(order, payment_type="deposit", paid_on=datetime(2024, 2, 1))

    assert updates["payment_1"] == 200.0
    assert updates["date_p1"] == datetime(2024, 2, 1)
    assert updates["deposit_25"] == 200.0
    assert updates["payment_status"] == "Deposit Paid"


def test_payment_fills_next_empty_slot():
    order = make_order(1000.0, 250.0, 250.0, 100.0)
    updates = payment_service.record_payment(order, amount=150.0, payment_type="additional")

    assert "payment_3" in updates
    assert updates["payment_3"] == 150.0
    assert updates["payment_status"] == "Partial Payment"


def test_final_payment_settles_outstanding_balance():
    order = make_order(1000.0, 250.0, 250.0)
    updates = payment_service.record_payment(order)

    assert updates["payment_2"] == 750.0
    assert updates["payment_status"] == "Paid"


@pytest.mark.parametrize(
    "order, kwargs, message",
    [
        (make_order(1000.0), {"amount": 1200.0}, "exceeds the outstanding balance"),
        (make_order(1000.0), {"amount": 0}, "greater than zero"),
        (make_order(1000.0), {"payment_type": "refund"}, "Invalid payment type"),
        (make_order(1000.0), {"payment_type": "additional"}, "Amount is required"),
        (make_order(1000.0, 250.0, 1000.0), {"amount": 1.0}, "already fully paid"),
        (make_order(1000.0, 250.0, 100, 100, 100, 100), {"amount": 50.0}, "installments are already recorded"),
    ],
)
def test_invalid_payments_are_rejected(order, kwargs, message):
    with pytest.raises(InvalidRequestError) as exc_info:
        payment_service.record_payment(order, **kwargs)
    assert message in exc_info.value.message


def test_next_payment_due_moves_from_deposit_to_balance():
    assert payment_service.next_payment_due(make_order(1000.0)) == 250.0
    assert payment_service.next_payment_due(make_order(1000.0, 250.0, 250.0)) == 750.0
    assert payment_service.next_payment_due(make_order(1000.0, 250.0, 1000.0)) == 0.0


def test_payment_summary_counts_orders_by_stage():
    orders = [
        make_order(1000.0),
        make_order(400.0, 100.0, 100.0),
        make_order(200.0, 50.0, 200.0),
    ]
    assert payment_service.payment_summary(orders) == {
        "totalOutstanding": 1300.0,
        "pendingDeposits": 1,
        "pendingFinalPayments": 1,
        "fullyPaid": 1,
    }


def test_record_deposit_then_final_through_api(client, create_order):
    order = create_order(total_topay=1200.0)

    deposit = client.post(f"/api/orders/{order['id']}/payments", json={"payment_type": "deposit"})
    assert deposit.status_code == status.HTTP_200_OK
    body = deposit.json()
    assert body["payment_1"] == 300.0
    assert body["payment_status"] == "Deposit Paid"
    assert body["payment_summary"]["outstanding"] == 900.0
    assert body["payment_summary"]["next_payment_due"] == 900.0

    final = client.post(
        f"/api/orders/{order['id']}/payments",
        json={"payment_type": "final", "paid_on": "2024-06-01T12:00:00"},
    )
    body = final.json()
    assert body["payment_2"] == 900.0
    assert body["date_p2"] == "2024-06-01T12:00:00"
    assert body["payment_status"] == "Paid"
    assert body["payment_summary"]["fully_paid"] is True

    again = client.post(f"/api/orders/{order['id']}/payments", json={"amount": 10})
    assert again.status_code == status.HTTP_400_BAD_REQUEST
    assert "already fully paid" in again.json()["error"]


def test_partial_payment_status_through_api(client, create_order):
    order = create_order(total_topay=1000.0)
    response = client.post(
        f"/api/orders/{order['id']}/payments",
        json={"amount": 400, "payment_type": "additional"},
    )
    assert response.json()["payment_status"] == "Partial Payment"


def test_overpayment_rejected_through_api(client, create_order):
    order = create_order(total_topay=100.0)
    response = client.post(f"/api/orders/{order['id']}/payments", json={"amount": 100.5})
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    fetched = client.get(f"/api/orders/{order['id']}").json()
    assert fetched["payment_1"] is None


def test_fifth_installment_rejected_through_api(client, create_order):
    order = create_order(total_topay=1000.0)
    for _ in range(4):
        response = client.post(
            f"/api/orders/{order['id']}/payments",
            json={"amount": 100, "payment_type": "additional"},
        )
        assert response.status_code == status.HTTP_200_OK

    fifth = client.post(
        f"/api/orders/{order['id']}/payments",
        json={"amount": 100, "payment_type": "additional"},
    )
    assert fifth.status_code == status.HTTP_400_BAD_REQUEST
    assert "installments are already recorded" in fifth.json()["error"]
    assert client.get(f"/api/orders/{order['id']}").json()["payment_summary"]["installments_used"] == 4


def test_payment_on_unknown_order_is_404(client):
    response = client.post("/api/orders/999/payments", json={"amount": 10})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_payment_summary_endpoint(client, create_order):
    create_order(order_ref="N-1", total_topay=1000.0)
    create_order(order_ref="D-1", total_topay=400.0, payment_1=100.0)
    create_order(order_ref="P-1", total_topay=200.0, payment_1=200.0, ship_status="Shipped")

    summary = client.get("/api/payments/summary").json()
    assert summary == {
        "totalOutstanding": 1300.0,
        "pendingDeposits": 1,
        "pendingFinalPayments": 1,
        "fullyPaid": 1,
    }

    shipped_only = client.get("/api/payments/summary", params={"ship_status": "Shipped"}).json()
    assert shipped_only["fullyPaid"] == 1
    assert shipped_only["pendingDeposits"] == 0
