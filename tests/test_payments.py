import hashlib
import hmac
from datetime import datetime

import pytest

from homeservices.domain.payments.service import PaymentService, amounts_match
from homeservices.models import Booking, Payment
from homeservices.services import notification_service, razorpay_service


def _checkout_signature(order_id: str, payment_id: str) -> str:
    return hmac.new(b"rzp_test_secret", f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


def _issue_order(make_payment, booking, order_id="order_1"):
    """Payment row as left behind by create-order"""
    return make_payment(booking, status="pending", gateway_order_id=order_id)


def _verify(client, booking, headers, order_id="order_1", payment_id="pay_1"):
    return client.post(
        "/payments/verify",
        json={
            "order_id": order_id,
            "payment_id": payment_id,
            "signature": _checkout_signature(order_id, payment_id),
            "booking_id": booking.id,
        },
        headers=headers,
    )


@pytest.fixture()
def gateway(monkeypatch):
    """Stands in for the Razorpay REST API"""
    state = {"orders": [], "payment": None}

    async def fake_create_order(amount, receipt, notes=None, currency="INR"):
        state["orders"].append({"amount": amount, "receipt": receipt, "notes": notes, "currency": currency})
        return {"id": f"order_{len(state['orders'])}", "amount": amount, "currency": currency}

    async def fake_fetch_payment(payment_id):
        return state["payment"]

    async def fake_notify(*args, **kwargs):
        return True

    monkeypatch.setattr(razorpay_service, "create_order", fake_create_order)
    monkeypatch.setattr(razorpay_service, "fetch_payment", fake_fetch_payment)
    monkeypatch.setattr(notification_service, "notify_payment_confirmed", fake_notify)
    monkeypatch.setattr(notification_service, "notify_booking_confirmed", fake_notify)
    return state


def test_create_order(client, db, gateway, make_user, make_service, make_booking, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service(), final_amount=549.0)

    resp = client.post("/payments/create-order", json={"booking_id": booking.id}, headers=auth_headers(customer))
    assert resp.status_code == 200
    data = resp.json()
    assert data == {
        "order_id": "order_1",
        "amount": 54900,
        "currency": "INR",
        "key": "rzp_test_key",
        "booking_id": booking.id,
    }

    sent = gateway["orders"][0]
    assert sent["notes"] == {"booking_id": str(booking.id), "customer_id": str(customer.id)}
    assert sent["receipt"] == "bk_" + booking.public_id.replace("-", "")[:32]

    payment = db.query(Payment).filter(Payment.booking_id == booking.id).one()
    assert payment.status == "pending"
    assert payment.gateway_order_id == "order_1"


def test_create_order_reuses_payment_row(client, db, gateway, make_user, make_service, make_booking, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service())
    headers = auth_headers(customer)
    client.post("/payments/create-order", json={"booking_id": booking.id}, headers=headers)
    client.post("/payments/create-order", json={"booking_id": booking.id}, headers=headers)

    payments = db.query(Payment).filter(Payment.booking_id == booking.id).all()
    assert len(payments) == 1
    assert payments[0].gateway_order_id == "order_2"


def test_create_order_amount_mismatch(client, gateway, make_user, make_service, make_booking, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service(), final_amount=549.0)
    resp = client.post(
        "/payments/create-order", json={"booking_id": booking.id, "amount": 500.0}, headers=auth_headers(customer)
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Payment amount mismatch"
    assert gateway["orders"] == []


def test_create_order_requires_pending_booking(client, gateway, make_user, make_service, make_booking, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service(), status="cancelled")
    resp = client.post("/payments/create-order", json={"booking_id": booking.id}, headers=auth_headers(customer))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot pay for a booking that is cancelled"


def test_create_order_for_another_customer(client, gateway, make_user, make_service, make_booking, auth_headers):
    booking = make_booking(make_user(), make_service())
    resp = client.post("/payments/create-order", json={"booking_id": booking.id}, headers=auth_headers(make_user()))
    assert resp.status_code == 403


def test_create_order_already_paid(client, gateway, make_user, make_service, make_booking, make_payment, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service())
    make_payment(booking, status="completed")
    resp = client.post("/payments/create-order", json={"booking_id": booking.id}, headers=auth_headers(customer))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Booking is already paid"


def test_create_order_gateway_failure(client, monkeypatch, make_user, make_service, make_booking, auth_headers):
    async def failing_create_order(**kwargs):
        raise razorpay_service.PaymentGatewayError("Bad request", status_code=400)

    monkeypatch.setattr(razorpay_service, "create_order", failing_create_order)
    customer = make_user()
    booking = make_booking(customer, make_service())
    resp = client.post("/payments/create-order", json={"booking_id": booking.id}, headers=auth_headers(customer))
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to create payment order"


def test_verify_payment_confirms_booking(client, db, gateway, make_user, make_service, make_booking, make_payment, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service(), final_amount=549.0)
    _issue_order(make_payment, booking)
    gateway["payment"] = {"id": "pay_1", "order_id": "order_1", "amount": 54900, "status": "captured", "method": "card"}

    resp = client.post(
        "/payments/verify",
        json={
            "order_id": "order_1",
            "payment_id": "pay_1",
            "signature": _checkout_signature("order_1", "pay_1"),
            "booking_id": booking.id,
        },
        headers=auth_headers(customer),
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "status": "completed",
        "booking_id": booking.id,
        "booking_status": "confirmed",
        "payment_id": "pay_1",
    }

    payment = db.query(Payment).filter(Payment.booking_id == booking.id).one()
    assert payment.transaction_id == "pay_1"
    assert payment.method == "credit_card"


def test_verify_payment_rejects_bad_signature(client, gateway, make_user, make_service, make_booking, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service())
    resp = client.post(
        "/payments/verify",
        json={"order_id": "order_1", "payment_id": "pay_1", "signature": "deadbeef", "booking_id": booking.id},
        headers=auth_headers(customer),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid payment signature"


def test_verify_payment_rejects_other_order(client, gateway, make_user, make_service, make_booking, make_payment, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service(), final_amount=549.0)
    _issue_order(make_payment, booking)
    gateway["payment"] = {"id": "pay_1", "order_id": "order_9", "amount": 54900, "status": "captured"}
    resp = client.post(
        "/payments/verify",
        json={
            "order_id": "order_1",
            "payment_id": "pay_1",
            "signature": _checkout_signature("order_1", "pay_1"),
            "booking_id": booking.id,
        },
        headers=auth_headers(customer),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Payment does not belong to this order"


def test_verify_payment_rejects_amount_mismatch(client, gateway, make_user, make_service, make_booking, make_payment, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service(), final_amount=549.0)
    _issue_order(make_payment, booking)
    gateway["payment"] = {"id": "pay_1", "order_id": "order_1", "amount": 100, "status": "captured"}
    resp = client.post(
        "/payments/verify",
        json={
            "order_id": "order_1",
            "payment_id": "pay_1",
            "signature": _checkout_signature("order_1", "pay_1"),
            "booking_id": booking.id,
        },
        headers=auth_headers(customer),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Payment amount mismatch"


def test_verify_failed_gateway_payment(client, db, gateway, make_user, make_service, make_booking, make_payment, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service(), final_amount=549.0)
    _issue_order(make_payment, booking)
    gateway["payment"] = {"id": "pay_1", "order_id": "order_1", "amount": 54900, "status": "failed"}
    resp = client.post(
        "/payments/verify",
        json={
            "order_id": "order_1",
            "payment_id": "pay_1",
            "signature": _checkout_signature("order_1", "pay_1"),
            "booking_id": booking.id,
        },
        headers=auth_headers(customer),
    )
    assert resp.status_code == 200
    assert resp.json()["success"] is False
    assert resp.json()["status"] == "failed"
    assert resp.json()["booking_status"] == "pending"


def test_verify_requires_order_issued_for_booking(client, gateway, make_user, make_service, make_booking, make_payment, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service(), final_amount=549.0)
    gateway["payment"] = {"id": "pay_1", "order_id": "order_1", "amount": 54900, "status": "captured"}

    resp = _verify(client, booking, auth_headers(customer))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Order does not belong to this booking"

    _issue_order(make_payment, booking, order_id="order_2")
    resp = _verify(client, booking, auth_headers(customer))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Order does not belong to this booking"


def test_one_gateway_payment_cannot_confirm_two_bookings(
    client, db, gateway, make_user, make_service, make_booking, make_payment, auth_headers
):
    customer = make_user()
    service = make_service()
    first = make_booking(customer, service, final_amount=549.0)
    second = make_booking(customer, service, final_amount=549.0)
    _issue_order(make_payment, first, order_id="order_1")
    _issue_order(make_payment, second, order_id="order_2")
    gateway["payment"] = {"id": "pay_1", "order_id": "order_1", "amount": 54900, "status": "captured"}

    assert _verify(client, first, auth_headers(customer)).status_code == 200

    # Same order replayed against the other booking
    replayed = _verify(client, second, auth_headers(customer))
    assert replayed.status_code == 400
    assert replayed.json()["detail"] == "Order does not belong to this booking"

    # Same gateway payment claimed under the other booking's order
    claimed = _verify(client, second, auth_headers(customer), order_id="order_2")
    assert claimed.status_code == 400
    assert claimed.json()["detail"] == "Payment is already linked to another booking"

    db.expire_all()
    assert db.get(Booking, second.id).status == "pending"


def test_verify_rejects_refunded_payment(client, gateway, make_user, make_service, make_booking, make_payment, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service(), final_amount=549.0)
    make_payment(booking, status="refunded", gateway_order_id="order_1", transaction_id="pay_1")
    gateway["payment"] = {"id": "pay_1", "order_id": "order_1", "amount": 54900, "status": "captured"}

    resp = _verify(client, booking, auth_headers(customer))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Payment has already been refunded"


def test_amounts_match_within_a_paisa():
    assert amounts_match(54900, 549.0)
    assert amounts_match(54900, 549.004)
    assert not amounts_match(54902, 549.0)


def test_list_payments(client, make_user, make_service, make_booking, make_payment, auth_headers):
    customer = make_user()
    payment = make_payment(make_booking(customer, make_service()))
    make_payment(make_booking(make_user(), make_service(name="Other")))

    resp = client.get("/payments", headers=auth_headers(customer))
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()] == [payment.id]


def _earnings_fixture(db, make_user, make_service, make_booking, make_payment):
    professional = make_user(role="professional")
    customer = make_user()
    service = make_service()
    recent = make_booking(customer, service, professional, status="completed", final_amount=1000.0)
    recent.completed_at = datetime(2030, 3, 13, 10, 0)
    earlier = make_booking(customer, service, professional, status="completed", final_amount=500.0)
    earlier.completed_at = datetime(2030, 2, 3, 10, 0)
    make_booking(customer, service, professional, status="confirmed", final_amount=900.0)
    db.commit()
    make_payment(earlier, status="completed")
    return professional


def test_earnings_summary(db, make_user, make_service, make_booking, make_payment):
    professional = _earnings_fixture(db, make_user, make_service, make_booking, make_payment)

    earnings = PaymentService(db).get_earnings(professional, now=datetime(2030, 3, 15, 12, 0))
    assert earnings.completed_jobs == 2
    assert earnings.total_earnings == 1200.0
    assert earnings.monthly_earnings == 800.0
    assert earnings.weekly_earnings == 800.0
    assert earnings.pending_payouts == 800.0
    assert earnings.average_earning_per_job == 600.0
    assert [m.month for m in earnings.monthly_breakdown] == [
        "2029-10",
        "2029-11",
        "2029-12",
        "2030-01",
        "2030-02",
        "2030-03",
    ]
    assert [m.earnings for m in earnings.monthly_breakdown][-2:] == [400.0, 800.0]


def test_earnings_without_jobs(db, make_user):
    earnings = PaymentService(db).get_earnings(make_user(role="professional"))
    assert earnings.completed_jobs == 0
    assert earnings.average_earning_per_job == 0.0
    assert len(earnings.monthly_breakdown) == 6


def test_earnings_endpoint_is_professional_only(client, db, make_user, make_service, make_booking, make_payment, auth_headers):
    professional = _earnings_fixture(db, make_user, make_service, make_booking, make_payment)
    resp = client.get("/payments/earnings", headers=auth_headers(professional))
    assert resp.status_code == 200
    assert resp.json()["total_earnings"] == 1200.0

    assert client.get("/payments/earnings", headers=auth_headers(make_user())).status_code == 403
