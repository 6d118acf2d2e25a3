"""Tests for hash-addressed page access through the gatekeeper middleware"""

import re

import pytest

from conftest import ADMIN_EMAIL, CUSTOMER_EMAIL, STAFF_EMAIL, expire_all, login
from web.gatekeeper import is_excluded


def login_hash(client, email):
    response = login(client, email)
    assert response.status_code == 200
    return re.search(r"/([A-Za-z0-9_-]{8})/", response.json()["redirectUrl"]).group(1)


def get(client, path):
    return client.get(path, follow_redirects=False)


def test_admin_login_end_to_end(client, admin):
    response = login(client, ADMIN_EMAIL)
    assert response.status_code == 200
    redirect_url = response.json()["redirectUrl"]
    assert re.fullmatch(r"http://testserver/[A-Za-z0-9_-]{8}/admin/dashboard", redirect_url)
    assert "session_token" in response.cookies

    page = client.get(redirect_url, follow_redirects=False)
    assert page.status_code == 200
    access_hash = redirect_url.split("/")[3]
    assert f'data-session-hash="{access_hash}"' in page.text
    assert page.headers["x-session-hash"] == access_hash

    wrong_area = get(client, f"/{access_hash}/dashboard")
    assert wrong_area.status_code == 302
    assert wrong_area.headers["location"] == f"/{access_hash}/admin/dashboard"


def test_customer_cannot_open_admin_pages(client, customer):
    access_hash = login_hash(client, CUSTOMER_EMAIL)

    assert get(client, f"/{access_hash}/dashboard").status_code == 200
    response = get(client, f"/{access_hash}/admin/bookings")
    assert response.status_code == 302
    assert response.headers["location"] == f"/{access_hash}/dashboard"


def test_staff_reaches_admin_pages(client, staff):
    access_hash = login_hash(client, STAFF_EMAIL)
    for page in ("dashboard", "bookings", "contacts", "customers", "settings"):
        assert get(client, f"/{access_hash}/admin/{page}").status_code == 200


def test_bare_hash_redirects_to_role_home(client, admin):
    access_hash = login_hash(client, ADMIN_EMAIL)
    for path in (f"/{access_hash}", f"/{access_hash}/"):
        response = get(client, path)
        assert response.status_code == 302
        assert response.headers["location"] == f"/{access_hash}/admin/dashboard"


def test_unknown_remainder_goes_to_login(client, admin):
    access_hash = login_hash(client, ADMIN_EMAIL)
    response = get(client, f"/{access_hash}/settings")
    assert response.status_code == 302
    assert response.headers["location"] == "/login"


def test_internal_paths_without_hash_go_to_login(client, admin):
    login_hash(client, ADMIN_EMAIL)
    for path in ("/admin", "/admin/dashboard", "/dashboard"):
        response = get(client, path)
        assert response.status_code == 302
        assert response.headers["location"] == "/login"


def test_hash_without_cookie_goes_to_login(client, admin):
    access_hash = login_hash(client, ADMIN_EMAIL)
    client.cookies.clear()
    response = get(client, f"/{access_hash}/admin/dashboard")
    assert response.status_code == 302
    assert response.headers["location"] == "/login"


def test_hash_of_another_session_is_rejected(client, ecolimpio, admin, staff):
    other = ecolimpio.sessions.create_session(staff)
    login_hash(client, ADMIN_EMAIL)

    response = get(client, f"/{other.access_hash}/admin/dashboard")
    assert response.status_code == 302
    assert response.headers["location"] == "/login"


def test_malformed_hash_goes_to_login(client, admin):
    login_hash(client, ADMIN_EMAIL)
    response = get(client, "/ab.d!fgh/admin/dashboard")
    assert response.status_code == 302
    assert response.headers["location"] == "/login"


def test_expired_session_goes_to_login(client, storage, admin):
    access_hash = login_hash(client, ADMIN_EMAIL)
    expire_all(storage, "sessions")

    response = get(client, f"/{access_hash}/admin/dashboard")
    assert response.status_code == 302
    assert response.headers["location"] == "/login"
    assert storage.sessions.count() == 0


def test_logout_invalidates_hash(client, admin):
    access_hash = login_hash(client, ADMIN_EMAIL)
    assert client.post("/api/auth/logout").status_code == 200
    response = get(client, f"/{access_hash}/admin/dashboard")
    assert response.headers["location"] == "/login"


@pytest.mark.parametrize("path", ["/", "/login", "/contacto", "/reservar", "/servicios", "/precios"])
def test_public_pages_pass_through(client, path):
    response = get(client, path)
    assert response.status_code == 200
    assert f'data-page="{path}"' in response.text


def test_health(client):
    assert get(client, "/health").json() == {"status": "healthy"}


def test_unknown_short_path_is_not_treated_as_hash(client):
    assert get(client, "/nothing").status_code == 404


@pytest.mark.parametrize("path,excluded", [
    ("/contacto", True),
    ("/reservar", True),
    ("/api/bookings", True),
    ("/static/app.js", True),
    ("/Xy3_k9Qa/logo.png", True),
    ("/favicon.ico", True),
    ("/Xy3_k9Qa/admin", False),
    ("/dashboard", False),
])
def test_excluded_paths(path, excluded):
    assert is_excluded(path) is excluded
