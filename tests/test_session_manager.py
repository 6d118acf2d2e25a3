"""Tests for session issuance, access-hash uniqueness and resolution"""

import pytest

from conftest import expire_all
from ecolimpio.auth.roles import home_path, may_access
from ecolimpio.auth.session_hash import (
    build_hash_url,
    extract_hash_from_path,
    generate_access_hash,
    is_valid_hash_format,
)
from ecolimpio.auth.session_manager import SessionManager
from ecolimpio.models.user import Role
from ecolimpio.utils.exceptions import SessionHashCollisionError


def test_generated_hash_format():
    hashes = {generate_access_hash() for _ in range(200)}
    assert all(is_valid_hash_format(h) for h in hashes)
    assert len(hashes) == 200


@pytest.mark.parametrize("value,expected", [
    ("Xy3_k9Qa", True),
    ("abc-DEF1", True),
    ("short", False),
    ("toolong12", False),
    ("bad!char", False),
    ("", False),
])
def test_hash_format_validation(value, expected):
    assert is_valid_hash_format(value) is expected


def test_extract_and_build_hash_paths():
    assert extract_hash_from_path("/Xy3_k9Qa/admin/dashboard") == "Xy3_k9Qa"
    assert extract_hash_from_path("/Xy3_k9Qa") == "Xy3_k9Qa"
    assert extract_hash_from_path("/admin/dashboard") is None
    # Eight-character segments come back unchecked; the format test is separate
    assert extract_hash_from_path("/ab.d!fgh/admin") == "ab.d!fgh"
    assert not is_valid_hash_format(extract_hash_from_path("/ab.d!fgh/admin"))
    assert extract_hash_from_path("/") is None
    assert build_hash_url("https://ecolimpio.es/", "Xy3_k9Qa", "dashboard") == "https://ecolimpio.es/Xy3_k9Qa/dashboard"


def test_role_homes_and_namespaces():
    assert home_path(Role.ADMIN) == "/admin/dashboard"
    assert home_path(Role.STAFF) == "/admin/dashboard"
    assert home_path(Role.CUSTOMER) == "/dashboard"
    assert may_access(Role.STAFF, "/admin/bookings")
    assert not may_access(Role.CUSTOMER, "/admin/dashboard")
    assert not may_access(Role.ADMIN, "/dashboard")
    assert not may_access(Role.CUSTOMER, "/administrator")


def test_create_session_is_resolvable(ecolimpio, admin):
    session = ecolimpio.sessions.create_session(admin)
    assert is_valid_hash_format(session.access_hash)
    assert len(session.token) == 32

    resolved = ecolimpio.sessions.resolve(session.token, session.access_hash)
    assert resolved.user.id == admin.id
    assert resolved.session.id == session.id


def test_concurrent_logins_get_distinct_sessions(ecolimpio, admin):
    first = ecolimpio.sessions.create_session(admin)
    second = ecolimpio.sessions.create_session(admin)
    assert first.token != second.token
    assert first.access_hash != second.access_hash
    assert ecolimpio.sessions.resolve(first.token, first.access_hash) is not None
    assert ecolimpio.sessions.resolve(second.token, second.access_hash) is not None


def test_hash_from_another_session_is_rejected(ecolimpio, admin, customer):
    admin_session = ecolimpio.sessions.create_session(admin)
    customer_session = ecolimpio.sessions.create_session(customer)
    assert ecolimpio.sessions.resolve(admin_session.token, customer_session.access_hash) is None
    assert ecolimpio.sessions.resolve(customer_session.token, admin_session.access_hash) is None


def test_expired_session_is_deleted_on_resolve(ecolimpio, storage, admin):
    session = ecolimpio.sessions.create_session(admin)
    expire_all(storage, "sessions")

    assert ecolimpio.sessions.resolve(session.token, session.access_hash) is None
    assert storage.sessions.find_by_token(session.token) is None


def test_authenticate_by_token_only(ecolimpio, storage, customer):
    session = ecolimpio.sessions.create_session(customer)
    assert ecolimpio.sessions.authenticate(session.token).user.email == customer.email
    assert ecolimpio.sessions.authenticate("not-a-token") is None
    assert ecolimpio.sessions.authenticate(None) is None

    expire_all(storage, "sessions")
    assert ecolimpio.sessions.authenticate(session.token) is None
    assert storage.sessions.count() == 0


def test_revoke(ecolimpio, admin):
    session = ecolimpio.sessions.create_session(admin)
    assert ecolimpio.sessions.revoke(session.token)
    assert ecolimpio.sessions.resolve(session.token, session.access_hash) is None
    assert not ecolimpio.sessions.revoke(session.token)


def test_collision_gives_up_after_five_attempts(storage, admin):
    attempts = []

    def constant_hash():
        attempts.append(1)
        return "SameHash"

    manager = SessionManager(storage.sessions, storage.users, hash_factory=constant_hash)
    manager.create_session(admin)
    attempts.clear()

    with pytest.raises(SessionHashCollisionError):
        manager.create_session(admin)
    assert len(attempts) == 5


def test_insert_collision_counts_as_attempt(storage, admin, monkeypatch):
    manager = SessionManager(storage.sessions, storage.users, hash_factory=lambda: "SameHash")
    manager.create_session(admin)

    # Simulate a concurrent writer taking the hash between check and insert
    monkeypatch.setattr(storage.sessions, "hash_in_use", lambda access_hash: False)
    with pytest.raises(SessionHashCollisionError):
        manager.create_session(admin)
    assert storage.sessions.count() == 1


def test_purge_expired(ecolimpio, storage, admin):
    ecolimpio.sessions.create_session(admin)
    ecolimpio.sessions.create_session(admin)
    expire_all(storage, "sessions")
    ecolimpio.sessions.create_session(admin)

    assert ecolimpio.sessions.purge_expired() == 2
    assert storage.sessions.count() == 1


def test_sessions_cascade_with_user(ecolimpio, storage, customer):
    session = ecolimpio.sessions.create_session(customer)
    with storage.db.connection() as conn:
        conn.execute("DELETE FROM users WHERE id = ?", (customer.id,))
    assert ecolimpio.sessions.resolve(session.token, session.access_hash) is None
