from datetime import datetime, timedelta

import pytest

from homeservices.models import AvailabilitySlot, ProfessionalBankAccount, ProfessionalDocument
from homeservices.security_utils import decrypt_value
from homeservices.utils import storage


@pytest.fixture()
def professional(make_user):
    return make_user(role="professional")


@pytest.fixture()
def bucket(monkeypatch):
    """In-memory replacement for the document bucket"""
    objects = {}

    def fake_upload(key, content, mime_type):
        objects[key] = (content, mime_type)

    monkeypatch.setattr(storage, "upload_document", fake_upload)
    monkeypatch.setattr(storage, "generate_presigned_url", lambda key, expiration=3600: f"https://files.test/{key}")
    return objects


def _iso(dt: datetime) -> str:
    return dt.replace(microsecond=0).isoformat()


# Offered services


def test_offering_lifecycle(client, professional, make_service, auth_headers):
    service = make_service(name="Tap Repair", category="plumbing")
    headers = auth_headers(professional)

    created = client.post("/professional/services", json={"service_id": service.id, "price": 350.0}, headers=headers)
    assert created.status_code == 201
    offering = created.json()
    assert offering["service_name"] == "Tap Repair"
    assert offering["category"] == "plumbing"
    assert offering["is_available"] is True

    updated = client.patch(
        f"/professional/services/{offering['id']}", json={"price": 400.0, "is_available": False}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.json()["price"] == 400.0
    assert updated.json()["is_available"] is False

    listed = client.get("/professional/services", headers=headers).json()
    assert [o["id"] for o in listed] == [offering["id"]]

    removed = client.delete(f"/professional/services/{offering['id']}", headers=headers)
    assert removed.status_code == 200
    assert client.get("/professional/services", headers=headers).json() == []


def test_offering_duplicate(client, professional, make_service, make_offering, auth_headers):
    service = make_service()
    make_offering(professional, service)
    resp = client.post(
        "/professional/services", json={"service_id": service.id, "price": 300.0}, headers=auth_headers(professional)
    )
    assert resp.status_code == 409
    assert resp.json()["detail"] == "You already offer this service"


def test_offering_requires_active_service(client, professional, make_service, auth_headers):
    service = make_service(status="inactive")
    resp = client.post(
        "/professional/services", json={"service_id": service.id, "price": 300.0}, headers=auth_headers(professional)
    )
    assert resp.status_code == 404


def test_offering_of_another_professional(client, professional, make_user, make_service, make_offering, auth_headers):
    offering = make_offering(make_user(role="professional"), make_service())
    resp = client.patch(f"/professional/services/{offering.id}", json={"price": 1.0}, headers=auth_headers(professional))
    assert resp.status_code == 404


# Availability


def test_create_and_list_slots(client, professional, make_slot, auth_headers):
    make_slot(professional, start=datetime.utcnow() - timedelta(days=2))
    start = datetime.utcnow() + timedelta(days=5)
    resp = client.post(
        "/professional/slots",
        json={"start_time": _iso(start), "end_time": _iso(start + timedelta(hours=3))},
        headers=auth_headers(professional),
    )
    assert resp.status_code == 201
    assert resp.json()["status"] == "available"

    listed = client.get("/professional/slots", headers=auth_headers(professional)).json()
    assert [s["id"] for s in listed] == [resp.json()["id"]]


def test_slot_overlap(client, professional, make_slot, auth_headers):
    existing = make_slot(professional, hours=2)
    start = existing.start_time + timedelta(hours=1)
    resp = client.post(
        "/professional/slots",
        json={"start_time": _iso(start), "end_time": _iso(start + timedelta(hours=2))},
        headers=auth_headers(professional),
    )
    assert resp.status_code == 409


def test_adjacent_slot_is_allowed(client, professional, make_slot, auth_headers):
    existing = make_slot(professional, hours=2)
    resp = client.post(
        "/professional/slots",
        json={"start_time": _iso(existing.end_time), "end_time": _iso(existing.end_time + timedelta(hours=1))},
        headers=auth_headers(professional),
    )
    assert resp.status_code == 201


def test_slot_end_before_start(client, professional, auth_headers):
    start = datetime.utcnow() + timedelta(days=5)
    resp = client.post(
        "/professional/slots",
        json={"start_time": _iso(start), "end_time": _iso(start - timedelta(hours=1))},
        headers=auth_headers(professional),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "End time must be after start time"


def test_slot_in_the_past(client, professional, auth_headers):
    start = datetime.utcnow() - timedelta(days=1)
    resp = client.post(
        "/professional/slots",
        json={"start_time": _iso(start), "end_time": _iso(start + timedelta(hours=1))},
        headers=auth_headers(professional),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Slot must start in the future"


def test_delete_slot(client, db, professional, make_slot, auth_headers):
    free = make_slot(professional)
    booked = make_slot(professional, start=datetime.utcnow() + timedelta(days=6), status="booked")
    headers = auth_headers(professional)

    assert client.delete(f"/professional/slots/{free.id}", headers=headers).status_code == 200
    resp = client.delete(f"/professional/slots/{booked.id}", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Only available slots can be deleted"

    db.expire_all()
    assert db.get(AvailabilitySlot, free.id) is None


# Documents


def test_upload_document(client, db, professional, bucket, auth_headers):
    resp = client.post(
        "/professional/documents",
        data={"document_type": "id_proof"},
        files={"file": ("aadhaar.pdf", b"%PDF-1.4 test", "application/pdf")},
        headers=auth_headers(professional),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "pending"
    assert data["document_name"] == "aadhaar.pdf"
    assert data["url"].startswith(f"https://files.test/{professional.id}/id_proof_")

    document = db.query(ProfessionalDocument).one()
    assert document.file_key.endswith(".pdf")
    assert bucket[document.file_key] == (b"%PDF-1.4 test", "application/pdf")

    listed = client.get("/professional/documents", headers=auth_headers(professional)).json()
    assert [d["id"] for d in listed] == [document.id]


def test_upload_document_rejects_unknown_type(client, professional, bucket, auth_headers):
    resp = client.post(
        "/professional/documents",
        data={"document_type": "selfie"},
        files={"file": ("me.png", b"png", "image/png")},
        headers=auth_headers(professional),
    )
    assert resp.status_code == 400
    assert bucket == {}


def test_upload_document_rejects_unsupported_file(client, professional, bucket, auth_headers):
    resp = client.post(
        "/professional/documents",
        data={"document_type": "id_proof"},
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers(professional),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Unsupported file type. Allowed formats: PDF, JPEG, PNG, WebP"


def test_upload_document_storage_failure(client, db, professional, monkeypatch, auth_headers):
    def failing_upload(key, content, mime_type):
        raise storage.StorageError("bucket unavailable")

    monkeypatch.setattr(storage, "upload_document", failing_upload)
    resp = client.post(
        "/professional/documents",
        data={"document_type": "certification"},
        files={"file": ("cert.jpg", b"jpeg", "image/jpeg")},
        headers=auth_headers(professional),
    )
    assert resp.status_code == 502
    assert db.query(ProfessionalDocument).count() == 0


# Bank accounts

BANK_ACCOUNT = {
    "account_holder_name": "Kiran Kumar",
    "account_number": "1234 5678 9012",
    "ifsc_code": "hdfc0001234",
    "bank_name": "HDFC Bank",
}


def test_add_bank_account_masks_and_encrypts(client, db, professional, auth_headers):
    resp = client.post("/professional/bank-accounts", json=BANK_ACCOUNT, headers=auth_headers(professional))
    assert resp.status_code == 201
    data = resp.json()
    assert data["masked_account_number"] == "********9012"
    assert data["ifsc_code"] == "HDFC0001234"
    assert data["is_primary"] is True
    assert "account_number" not in data

    account = db.query(ProfessionalBankAccount).one()
    assert account.account_number_encrypted != "123456789012"
    assert decrypt_value(account.account_number_encrypted) == "123456789012"
    assert account.account_number_last4 == "9012"


def test_switch_primary_bank_account(client, db, professional, auth_headers):
    headers = auth_headers(professional)
    first = client.post("/professional/bank-accounts", json=BANK_ACCOUNT, headers=headers).json()
    second = client.post(
        "/professional/bank-accounts", json={**BANK_ACCOUNT, "account_number": "999988887777"}, headers=headers
    ).json()
    assert second["is_primary"] is False

    resp = client.post(f"/professional/bank-accounts/{second['id']}/primary", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["is_primary"] is True

    db.expire_all()
    assert db.get(ProfessionalBankAccount, first["id"]).is_primary is False

    again = client.post(f"/professional/bank-accounts/{second['id']}/primary", headers=headers)
    assert again.json()["is_primary"] is True


def test_bank_account_rejects_invalid_ifsc(client, professional, auth_headers):
    resp = client.post(
        "/professional/bank-accounts", json={**BANK_ACCOUNT, "ifsc_code": "HDFC123"}, headers=auth_headers(professional)
    )
    assert resp.status_code == 422


# Profile


def test_update_profile(client, professional, auth_headers):
    resp = client.patch(
        "/professional/profile",
        json={"bio": "Licensed <electrician>", "skills": [" wiring ", "", "fans"], "experience_years": 8},
        headers=auth_headers(professional),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["bio"] == "Licensed &lt;electrician&gt;"
    assert data["skills"] == ["wiring", "fans"]
    assert data["experience_years"] == 8

    assert client.get("/professional/profile", headers=auth_headers(professional)).json()["bio"] == data["bio"]


def test_workspace_is_professional_only(client, make_user, auth_headers):
    customer = make_user()
    assert client.get("/professional/services", headers=auth_headers(customer)).status_code == 403
    assert client.get("/professional/profile", headers=auth_headers(customer)).status_code == 403
