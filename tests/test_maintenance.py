from datetime import timedelta

from conftest import expire_all
from ecolimpio.models.base import utcnow
from ecolimpio.models.verification import VerificationCode
from ecolimpio.safety.rate_limiter import POLICIES


def test_sweep_removes_expired_state(ecolimpio, storage, clock, admin):
    ecolimpio.sessions.create_session(admin)
    expire_all(storage, "sessions")
    live = ecolimpio.sessions.create_session(admin)
    storage.verifications.replace_for_phone(VerificationCode(
        phone="+34612345678",
        code="123456",
        expires_at=utcnow() - timedelta(minutes=1),
    ))
    ecolimpio.rate_limiter.hit(POLICIES["api"], "10.0.0.1")
    for _ in range(5):
        ecolimpio.login_lockout.record_attempt("a@example.com", success=False)
    clock.advance(16 * 60)

    results = ecolimpio.run_maintenance()

    assert results == {
        "rate_limits": 1,
        "login_lockouts": 1,
        "phone_lockouts": 0,
        "sessions": 1,
        "verification_codes": 1,
    }
    assert storage.sessions.count() == 1
    assert storage.sessions.find_by_token(live.token) is not None


def test_failing_step_does_not_stop_sweep(ecolimpio, storage, admin, monkeypatch):
    ecolimpio.sessions.create_session(admin)
    expire_all(storage, "sessions")

    def broken():
        raise RuntimeError("boom")

    monkeypatch.setattr(ecolimpio.rate_limiter, "reap_expired", broken)
    results = ecolimpio.run_maintenance()

    assert "rate_limits" not in results
    assert results["sessions"] == 1
