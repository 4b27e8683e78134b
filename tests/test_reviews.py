from homeservices.models import Profile


def test_review_completed_booking_updates_rating(client, db, make_user, make_service, make_booking, make_review, auth_headers):
    customer = make_user(full_name="Meera")
    professional = make_user(role="professional")
    service = make_service()
    make_review(make_booking(customer, service, professional, status="completed"), rating=3)
    booking = make_booking(customer, service, professional, status="completed")

    resp = client.post(
        f"/bookings/{booking.id}/review",
        json={"rating": 5, "comment": "Great <b>work</b>"},
        headers=auth_headers(customer),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["rating"] == 5
    assert data["comment"] == "Great &lt;b&gt;work&lt;/b&gt;"
    assert data["is_verified"] is True
    assert data["customer_name"] == "Meera"
    assert data["professional_id"] == professional.id

    db.expire_all()
    profile = db.get(Profile, professional.id)
    assert profile.rating_average == 4.0
    assert profile.total_reviews == 2


def test_review_requires_completed_booking(client, make_user, make_service, make_booking, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service(), status="confirmed")
    resp = client.post(f"/bookings/{booking.id}/review", json={"rating": 4}, headers=auth_headers(customer))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Only completed bookings can be reviewed"


def test_review_only_once(client, make_user, make_service, make_booking, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service(), status="completed")
    headers = auth_headers(customer)
    assert client.post(f"/bookings/{booking.id}/review", json={"rating": 4}, headers=headers).status_code == 201
    resp = client.post(f"/bookings/{booking.id}/review", json={"rating": 2}, headers=headers)
    assert resp.status_code == 409


def test_review_by_other_customer(client, make_user, make_service, make_booking, auth_headers):
    booking = make_booking(make_user(), make_service(), status="completed")
    resp = client.post(f"/bookings/{booking.id}/review", json={"rating": 4}, headers=auth_headers(make_user()))
    assert resp.status_code == 403


def test_review_rating_bounds(client, make_user, make_service, make_booking, auth_headers):
    customer = make_user()
    booking = make_booking(customer, make_service(), status="completed")
    headers = auth_headers(customer)
    assert client.post(f"/bookings/{booking.id}/review", json={"rating": 6}, headers=headers).status_code == 422
    assert client.post(f"/bookings/{booking.id}/review", json={"rating": 0}, headers=headers).status_code == 422


def test_public_review_lists_hide_moderated_reviews(client, make_user, make_service, make_booking, make_review):
    customer = make_user(full_name="Meera")
    professional = make_user(role="professional")
    service = make_service()
    shown = make_review(make_booking(customer, service, professional, status="completed"), rating=5, comment="Tidy")
    make_review(make_booking(customer, service, professional, status="completed"), rating=1, is_visible=False)

    by_professional = client.get(f"/professionals/{professional.id}/reviews").json()
    assert [r["id"] for r in by_professional] == [shown.id]
    assert by_professional[0]["customer_name"] == "Meera"

    by_service = client.get(f"/services/{service.id}/reviews").json()
    assert [r["id"] for r in by_service] == [shown.id]
