from homeservices.auth import check_route_access, get_role_based_redirect
from homeservices.models import AuthUser, Profile

STRONG_PASSWORD = "Str0ng!Pass"


def _signup(client, **overrides):
    payload = {
        "email": "asha@example.com",
        "password": STRONG_PASSWORD,
        "full_name": "Asha Rao",
        "role": "customer",
    }
    payload.update(overrides)
    return client.post("/auth/signup", json=payload)


def test_signup_creates_user_and_profile(client, db):
    resp = _signup(client, email="Asha@Example.com", phone="+91 98765 43210")
    assert resp.status_code == 201
    data = resp.json()
    assert data["role"] == "customer"
    assert data["redirect_path"] == "/customer/dashboard"
    assert data["access_token"]

    user = db.query(AuthUser).filter(AuthUser.id == data["user_id"]).one()
    assert user.email == "asha@example.com"
    assert user.phone == "+919876543210"
    profile = db.query(Profile).filter(Profile.id == user.id).one()
    assert profile.role == "customer"
    assert profile.full_name == "Asha Rao"
    assert profile.phone == "9876543210"


def test_signup_as_professional_redirects_to_professional_dashboard(client):
    resp = _signup(client, role="professional")
    assert resp.status_code == 201
    assert resp.json()["redirect_path"] == "/professional/dashboard"


def test_signup_rejects_admin_role(client):
    assert _signup(client, role="admin").status_code == 422


def test_signup_rejects_weak_password(client):
    resp = _signup(client, password="password")
    assert resp.status_code == 400
    assert resp.json()["detail"]["message"] == "Password is too weak"


def test_signup_rejects_duplicate_email(client):
    assert _signup(client).status_code == 201
    resp = _signup(client)
    assert resp.status_code == 409


def test_signin_with_valid_credentials(client, make_user):
    make_user(email="ravi@example.com", password=STRONG_PASSWORD, role="professional")
    resp = client.post("/auth/signin", json={"email": "ravi@example.com", "password": STRONG_PASSWORD})
    assert resp.status_code == 200
    assert resp.json()["role"] == "professional"
    assert resp.json()["redirect_path"] == "/professional/dashboard"


def test_signin_honours_safe_redirect_only(client, make_user):
    make_user(email="ravi@example.com", password=STRONG_PASSWORD)
    ok = client.post(
        "/auth/signin",
        json={"email": "ravi@example.com", "password": STRONG_PASSWORD, "redirect_to": "/bookings/4"},
    )
    assert ok.json()["redirect_path"] == "/bookings/4"

    offsite = client.post(
        "/auth/signin",
        json={"email": "ravi@example.com", "password": STRONG_PASSWORD, "redirect_to": "//evil.example"},
    )
    assert offsite.json()["redirect_path"] == "/customer/dashboard"


def test_signin_with_wrong_password(client, make_user):
    make_user(email="ravi@example.com", password=STRONG_PASSWORD)
    resp = client.post("/auth/signin", json={"email": "ravi@example.com", "password": "Wrong!Pass1"})
    assert resp.status_code == 401


def test_signin_suspended_account(client, make_user):
    make_user(email="ravi@example.com", password=STRONG_PASSWORD, is_active=False)
    resp = client.post("/auth/signin", json={"email": "ravi@example.com", "password": STRONG_PASSWORD})
    assert resp.status_code == 403


def test_me_requires_authentication(client):
    resp = client.get("/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Not authenticated"


def test_me_rejects_garbage_token(client):
    resp = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401


def test_me_returns_profile(client, make_user, auth_headers):
    customer = make_user(full_name="Meera")
    resp = client.get("/auth/me", headers=auth_headers(customer))
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == customer.id
    assert data["role"] == "customer"
    assert data["profile"]["full_name"] == "Meera"


def test_update_me(client, make_user, auth_headers):
    customer = make_user()
    resp = client.patch("/auth/me", json={"full_name": "New Name", "phone": "98765 43210"}, headers=auth_headers(customer))
    assert resp.status_code == 200
    assert resp.json()["full_name"] == "New Name"
    assert resp.json()["phone"] == "9876543210"


def test_update_me_syncs_login_phone(client, db, make_user, auth_headers):
    customer = make_user(phone="9123456780")
    resp = client.patch("/auth/me", json={"phone": "98765 43210"}, headers=auth_headers(customer))
    assert resp.status_code == 200

    db.expire_all()
    assert db.get(AuthUser, customer.id).phone == "+919876543210"

    cleared = client.patch("/auth/me", json={"phone": None}, headers=auth_headers(customer))
    assert cleared.status_code == 200
    db.expire_all()
    assert db.get(AuthUser, customer.id).phone is None
    assert db.get(Profile, customer.id).phone is None


def test_update_me_rejects_phone_of_another_account(client, db, make_user, auth_headers):
    owner = make_user(phone="9876543210")
    other = make_user(phone="9123456780")

    resp = client.patch("/auth/me", json={"phone": "+91 98765 43210"}, headers=auth_headers(other))
    assert resp.status_code == 409
    assert resp.json()["detail"] == "This phone number is already linked to another account"

    db.expire_all()
    assert db.get(Profile, other.id).phone == "9123456780"
    assert db.get(AuthUser, other.id).phone == "+919123456780"
    assert db.get(AuthUser, owner.id).phone == "+919876543210"


def test_update_me_keeping_own_phone_is_allowed(client, make_user, auth_headers):
    customer = make_user(phone="9876543210")
    resp = client.patch("/auth/me", json={"phone": "9876543210"}, headers=auth_headers(customer))
    assert resp.status_code == 200


def test_suspended_profile_is_forbidden(client, make_user, auth_headers):
    customer = make_user(is_active=False)
    resp = client.get("/addresses", headers=auth_headers(customer))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Account is suspended"


def test_role_guard_rejects_wrong_role(client, make_user, auth_headers):
    customer = make_user()
    resp = client.get("/admin/users", headers=auth_headers(customer))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Forbidden: admin role required"


def test_route_access_endpoint(client, make_user, auth_headers):
    customer = make_user()
    resp = client.get("/auth/route-access", params={"path": "/admin/users"}, headers=auth_headers(customer))
    assert resp.status_code == 200
    data = resp.json()
    assert data["allowed"] is False
    assert data["redirect"] == "/customer/dashboard?error=unauthorized"

    anonymous = client.get("/auth/route-access", params={"path": "/bookings"})
    assert anonymous.json()["redirect"] == "/login?redirect=%2Fbookings"


def test_signout_clears_cookie(client):
    resp = client.post("/auth/signout")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Signed out"


def test_role_based_redirect():
    assert get_role_based_redirect("admin") == "/admin/dashboard"
    assert get_role_based_redirect("professional") == "/professional/dashboard"
    assert get_role_based_redirect("customer") == "/customer/dashboard"
    assert get_role_based_redirect(None) == "/dashboard"


def test_check_route_access_rules():
    # Signed-in users are bounced off the login page to their dashboard
    assert check_route_access("/login", True, "admin") == "/admin/dashboard"
    assert check_route_access("/login", True, "customer", message="Welcome back") == (
        "/customer/dashboard?message=Welcome+back"
    )
    assert check_route_access("/login", False, None) is None

    assert check_route_access("/users", True, "customer") == "/dashboard?error=unauthorized"
    assert check_route_access("/users", True, "admin") is None

    assert check_route_access("/professional/jobs", False, None) == "/login?redirect=%2Fprofessional%2Fjobs"
    assert check_route_access("/professional/jobs", True, None) == "/login?error=role_not_set"
    assert check_route_access("/professional/jobs", True, "customer") == "/customer/dashboard?error=unauthorized"
    assert check_route_access("/professional/jobs", True, "professional") is None

    assert check_route_access("/profile", False, None) == "/login?redirect=%2Fprofile"
    assert check_route_access("/services", False, None) is None
