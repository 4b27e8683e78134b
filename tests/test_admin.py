import pytest

from homeservices.models import AdminAction, Booking, Payment, ProfessionalDocument, Profile, Service
from homeservices.services import razorpay_service


@pytest.fixture()
def admin(make_user):
    return make_user(role="admin", full_name="Ops Admin")


@pytest.fixture()
def admin_headers(admin, auth_headers):
    return auth_headers(admin)


def _last_action(db) -> AdminAction:
    return db.query(AdminAction).order_by(AdminAction.id.desc()).first()


# Users


def test_list_users_filters(client, make_user, admin_headers):
    make_user(full_name="Asha Rao", email="asha@example.com")
    make_user(role="professional", full_name="Kiran Kumar")

    professionals = client.get("/admin/users", params={"role": "professional"}, headers=admin_headers).json()
    assert [u["full_name"] for u in professionals] == ["Kiran Kumar"]

    by_email = client.get("/admin/users", params={"search": "ASHA@"}, headers=admin_headers).json()
    assert [u["email"] for u in by_email] == ["asha@example.com"]


def test_get_user_detail(client, make_user, make_service, make_booking, admin_headers):
    customer = make_user(full_name="Asha Rao")
    make_booking(customer, make_service())
    resp = client.get(f"/admin/users/{customer.id}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["booking_count"] == 1
    assert client.get("/admin/users/9999", headers=admin_headers).status_code == 404


def test_suspend_user_is_audited(client, db, admin, make_user, admin_headers):
    customer = make_user()
    resp = client.post(
        f"/admin/users/{customer.id}/suspend",
        headers={**admin_headers, "X-Forwarded-For": "203.0.113.9, 10.0.0.1", "User-Agent": "ops-console"},
    )
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    action = _last_action(db)
    assert action.admin_id == admin.id
    assert action.action_type == "user_suspended"
    assert action.target_type == "user"
    assert action.target_id == str(customer.id)
    assert action.ip_address == "203.0.113.9"
    assert action.user_agent == "ops-console"


def test_admins_cannot_be_suspended(client, make_user, admin_headers):
    other_admin = make_user(role="admin")
    resp = client.post(f"/admin/users/{other_admin.id}/suspend", headers=admin_headers)
    assert resp.status_code == 400


def test_activate_user(client, db, make_user, admin_headers):
    customer = make_user(is_active=False)
    resp = client.post(f"/admin/users/{customer.id}/activate", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is True
    assert _last_action(db).action_type == "user_activated"


# Professional verification


def _add_document(db, professional, status="pending") -> ProfessionalDocument:
    document = ProfessionalDocument(
        professional_id=professional.id,
        document_type="id_proof",
        document_name="aadhaar.pdf",
        file_key=f"{professional.id}/id_proof_1.pdf",
        status=status,
    )
    db.add(document)
    db.commit()
    return document


def test_pending_professionals(client, make_user, admin_headers):
    pending = make_user(role="professional")
    make_user(role="professional", is_verified=True)
    make_user(role="customer")

    resp = client.get("/admin/professionals/pending", headers=admin_headers)
    assert [p["id"] for p in resp.json()] == [pending.id]


def test_approve_professional_approves_documents(client, db, admin, make_user, admin_headers):
    professional = make_user(role="professional")
    document = _add_document(db, professional)

    resp = client.post(f"/admin/professionals/{professional.id}/approve", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["is_verified"] is True

    db.expire_all()
    doc = db.get(ProfessionalDocument, document.id)
    assert doc.status == "approved"
    assert doc.verified_by == admin.id
    assert _last_action(db).action_type == "user_activated"


def test_reject_professional(client, db, make_user, admin_headers):
    professional = make_user(role="professional")
    document = _add_document(db, professional)

    resp = client.post(
        f"/admin/professionals/{professional.id}/reject", json={"reason": "Blurry ID"}, headers=admin_headers
    )
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    db.expire_all()
    doc = db.get(ProfessionalDocument, document.id)
    assert doc.status == "rejected"
    assert doc.rejection_reason == "Blurry ID"
    action = _last_action(db)
    assert action.action_type == "user_suspended"
    assert "Blurry ID" in action.description


def test_approve_unknown_professional(client, make_user, admin_headers):
    customer = make_user()
    assert client.post(f"/admin/professionals/{customer.id}/approve", headers=admin_headers).status_code == 404


# Services


def test_service_crud_is_audited(client, db, admin, admin_headers):
    created = client.post(
        "/admin/services",
        json={"name": "AC Service", "category": "appliances", "base_price": 799.0, "duration_minutes": 90},
        headers=admin_headers,
    )
    assert created.status_code == 201
    service_id = created.json()["id"]
    assert created.json()["created_by"] == admin.id
    assert _last_action(db).action_type == "service_created"

    updated = client.patch(f"/admin/services/{service_id}", json={"base_price": 899.0}, headers=admin_headers)
    assert updated.json()["base_price"] == 899.0
    action = _last_action(db)
    assert action.action_type == "service_updated"
    assert action.action_metadata == {"fields": ["base_price"]}

    listed = client.get("/admin/services", headers=admin_headers).json()
    assert [s["id"] for s in listed] == [service_id]

    deleted = client.delete(f"/admin/services/{service_id}", headers=admin_headers)
    assert deleted.status_code == 200
    db.expire_all()
    assert db.get(Service, service_id) is None
    assert _last_action(db).action_type == "service_deleted"


def test_service_status_is_validated(client, admin_headers):
    resp = client.post(
        "/admin/services",
        json={"name": "AC Service", "category": "appliances", "base_price": 799.0, "status": "archived"},
        headers=admin_headers,
    )
    assert resp.status_code == 422


def test_service_with_active_bookings_cannot_be_deleted(client, make_user, make_service, make_booking, admin_headers):
    service = make_service()
    make_booking(make_user(), service, status="confirmed")
    resp = client.delete(f"/admin/services/{service.id}", headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot delete a service with active bookings"


# Bookings


def test_admin_booking_status_override(client, db, make_user, make_service, make_booking, admin_headers):
    booking = make_booking(make_user(), make_service())
    resp = client.patch(f"/admin/bookings/{booking.id}/status", json={"status": "completed"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    assert resp.json()["completed_at"] is not None

    action = _last_action(db)
    assert action.action_type == "other"
    assert action.action_metadata == {"previous_status": "pending", "new_status": "completed"}


def test_admin_cancel_booking(client, db, make_user, make_service, make_booking, admin_headers):
    booking = make_booking(make_user(), make_service(), status="confirmed")
    resp = client.post(f"/admin/bookings/{booking.id}/cancel", json={}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"
    assert resp.json()["cancellation_reason"] == "Cancelled by admin"
    assert _last_action(db).action_type == "booking_cancelled"


def test_assign_professional(client, make_user, make_service, make_offering, make_booking, admin_headers):
    service = make_service()
    professional = make_user(role="professional")
    make_offering(professional, service)
    booking = make_booking(make_user(), service)

    resp = client.post(
        f"/admin/bookings/{booking.id}/assign", json={"professional_id": professional.id}, headers=admin_headers
    )
    assert resp.status_code == 200
    assert resp.json()["professional_id"] == professional.id
    assert resp.json()["status"] == "confirmed"


def test_assign_professional_without_offering(client, make_user, make_service, make_booking, admin_headers):
    booking = make_booking(make_user(), make_service())
    professional = make_user(role="professional")
    resp = client.post(
        f"/admin/bookings/{booking.id}/assign", json={"professional_id": professional.id}, headers=admin_headers
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Professional does not offer this service"


def test_admin_lists_all_bookings(client, make_user, make_service, make_booking, admin_headers):
    service = make_service()
    make_booking(make_user(), service)
    make_booking(make_user(), service, status="completed")
    assert len(client.get("/admin/bookings", headers=admin_headers).json()) == 2
    completed = client.get("/admin/bookings", params={"status": "completed"}, headers=admin_headers).json()
    assert [b["status"] for b in completed] == ["completed"]


# Disputes


def test_list_disputes(client, make_user, make_service, make_booking, make_payment, admin_headers):
    service = make_service()
    cancelled = make_booking(make_user(), service, status="cancelled", cancellation_reason="No show")
    make_payment(cancelled, transaction_id="pay_9")
    make_booking(make_user(), service, status="confirmed")

    disputes = client.get("/admin/disputes", headers=admin_headers).json()
    assert len(disputes) == 1
    assert disputes[0]["booking_id"] == cancelled.id
    assert disputes[0]["payment_status"] == "completed"
    assert disputes[0]["transaction_id"] == "pay_9"


def test_refund_calls_gateway(client, db, monkeypatch, make_user, make_service, make_booking, make_payment, admin_headers):
    calls = []

    async def fake_refund(payment_id, amount=None, notes=None):
        calls.append((payment_id, amount, notes))
        return {"id": "rfnd_1", "status": "processed"}

    monkeypatch.setattr(razorpay_service, "refund_payment", fake_refund)
    booking = make_booking(make_user(), make_service(), status="cancelled", final_amount=549.0)
    make_payment(booking, transaction_id="pay_9")

    resp = client.post(
        f"/admin/disputes/{booking.id}/refund", json={"reason": "Late arrival", "amount": 200.0}, headers=admin_headers
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "refunded"
    assert data["refund_amount"] == 200.0
    assert data["refund_reason"] == "Late arrival"
    assert calls == [("pay_9", 20000, {"reason": "Late arrival", "booking_id": str(booking.id)})]

    db.expire_all()
    assert db.get(Booking, booking.id).status == "refunded"
    assert _last_action(db).action_type == "payment_refunded"


def test_refund_rejects_excess_amount(client, make_user, make_service, make_booking, make_payment, admin_headers):
    booking = make_booking(make_user(), make_service(), status="cancelled", final_amount=549.0)
    make_payment(booking)
    resp = client.post(f"/admin/disputes/{booking.id}/refund", json={"amount": 600.0}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Refund amount exceeds payment amount"


def test_refund_requires_completed_payment(client, make_user, make_service, make_booking, make_payment, admin_headers):
    booking = make_booking(make_user(), make_service(), status="cancelled")
    make_payment(booking, status="pending")
    resp = client.post(f"/admin/disputes/{booking.id}/refund", json={}, headers=admin_headers)
    assert resp.status_code == 400


def test_refund_gateway_failure(client, db, monkeypatch, make_user, make_service, make_booking, make_payment, admin_headers):
    async def failing_refund(payment_id, amount=None, notes=None):
        raise razorpay_service.PaymentGatewayError("Refund not allowed", status_code=400)

    monkeypatch.setattr(razorpay_service, "refund_payment", failing_refund)
    booking = make_booking(make_user(), make_service(), status="cancelled")
    payment = make_payment(booking, transaction_id="pay_9")

    resp = client.post(f"/admin/disputes/{booking.id}/refund", json={}, headers=admin_headers)
    assert resp.status_code == 502
    db.expire_all()
    assert db.get(Payment, payment.id).status == "completed"


def test_resolve_dispute(client, make_user, make_service, make_booking, admin_headers):
    booking = make_booking(make_user(), make_service(), status="cancelled")
    resp = client.post(
        f"/admin/disputes/{booking.id}/resolve", json={"resolution": "Partial credit issued"}, headers=admin_headers
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["action_type"] == "other"
    assert data["target_id"] == str(booking.id)
    assert data["metadata"] == {"resolution": "Partial credit issued"}


# Reviews


def test_hide_review_recomputes_rating(client, db, make_user, make_service, make_booking, make_review, admin_headers):
    customer = make_user()
    professional = make_user(role="professional")
    service = make_service()
    make_review(make_booking(customer, service, professional, status="completed"), rating=5)
    bad = make_review(make_booking(customer, service, professional, status="completed"), rating=1)

    resp = client.post(f"/admin/reviews/{bad.id}/hide", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["is_visible"] is False

    db.expire_all()
    profile = db.get(Profile, professional.id)
    assert profile.rating_average == 5.0
    assert profile.total_reviews == 1

    hidden = client.get("/admin/reviews", params={"visible": False}, headers=admin_headers).json()
    assert [r["id"] for r in hidden] == [bad.id]

    shown = client.post(f"/admin/reviews/{bad.id}/show", headers=admin_headers)
    assert shown.json()["is_visible"] is True


def test_unknown_review_action(client, make_user, make_service, make_booking, make_review, admin_headers):
    review = make_review(make_booking(make_user(), make_service(), status="completed"))
    assert client.post(f"/admin/reviews/{review.id}/delete", headers=admin_headers).status_code == 422


# Reporting


def test_dashboard_stats(client, make_user, make_service, make_booking, make_payment, admin_headers):
    customer = make_user()
    make_user(role="professional")
    service = make_service()
    make_payment(make_booking(customer, service, status="completed", final_amount=549.0))
    make_booking(customer, service)

    stats = client.get("/admin/stats", headers=admin_headers).json()
    assert stats["users_by_role"] == {"admin": 1, "customer": 1, "professional": 1}
    assert stats["total_users"] == 3
    assert stats["bookings_by_status"] == {"completed": 1, "pending": 1}
    assert stats["total_bookings"] == 2
    assert stats["total_revenue"] == 549.0
    assert stats["pending_verifications"] == 1


def test_audit_log_filter(client, make_user, admin_headers):
    customer = make_user()
    client.post(f"/admin/users/{customer.id}/suspend", headers=admin_headers)
    client.post(f"/admin/users/{customer.id}/activate", headers=admin_headers)

    everything = client.get("/admin/audit-log", headers=admin_headers).json()
    assert [a["action_type"] for a in everything] == ["user_activated", "user_suspended"]

    suspensions = client.get("/admin/audit-log", params={"action_type": "user_suspended"}, headers=admin_headers).json()
    assert len(suspensions) == 1
    assert suspensions[0]["description"] == f"Suspended user: {customer.id}"


def test_admin_routes_require_admin(client, make_user, auth_headers):
    professional = make_user(role="professional")
    assert client.get("/admin/stats", headers=auth_headers(professional)).status_code == 403
    assert client.get("/admin/stats").status_code == 401
