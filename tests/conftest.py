import re
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from ecolimpio.app import EcoLimpioApp
from ecolimpio.auth.passwords import hash_password
from ecolimpio.models.user import Role, User
from ecolimpio.services.sms import SmsResult
from ecolimpio.storage import Storage
from ecolimpio.utils.config import (
    AppSettings,
    DatabaseSettings,
    LoggingSettings,
    MaintenanceSettings,
    SecuritySettings,
    Settings,
)

ADMIN_EMAIL = "admin@ecolimpio.es"
STAFF_EMAIL = "staff@ecolimpio.es"
CUSTOMER_EMAIL = "cliente@example.com"
PASSWORD = "Secreta123"
VALID_CAPTCHA = "valid-captcha-token"


class FakeClock:
    """Manually advanced clock for rate limiter and lockout tests"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCaptcha:
    def __init__(self):
        self.calls = []

    def verify(self, token: str, expected_action: str = "send_code") -> bool:
        self.calls.append((token, expected_action))
        return token == VALID_CAPTCHA


class FakeSms:
    def __init__(self, success: bool = True):
        self.success = success
        self.sent = []

    def send(self, to: str, body: str) -> SmsResult:
        self.sent.append((to, body))
        if self.success:
            return SmsResult(success=True, message_id=f"msg-{len(self.sent)}")
        return SmsResult(success=False, error="provider down")

    def last_code(self) -> str:
        return re.search(r"\d{6}", self.sent[-1][1]).group(0)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        app=AppSettings(environment="testing", base_url="http://testserver"),
        database=DatabaseSettings(path=str(tmp_path / "ecolimpio.db")),
        security=SecuritySettings(bcrypt_rounds=4),
        logging=LoggingSettings(level="WARNING", format="console"),
        maintenance=MaintenanceSettings(enabled=False),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sms() -> FakeSms:
    return FakeSms()


@pytest.fixture
def captcha() -> FakeCaptcha:
    return FakeCaptcha()


@pytest.fixture
def ecolimpio(settings, clock, sms, captcha) -> EcoLimpioApp:
    return EcoLimpioApp(
        settings=settings,
        storage=Storage.open(settings.database.path),
        captcha=captcha,
        sms=sms,
        clock=clock,
    ).initialize()


@pytest.fixture
def storage(ecolimpio) -> Storage:
    return ecolimpio.storage


@pytest.fixture
def client(ecolimpio) -> TestClient:
    from web.main import create_app

    return TestClient(create_app(ecolimpio, run_maintenance=False))


def make_user(storage: Storage, email: str, role: Role, name: str = "Test User", password: str = PASSWORD) -> User:
    return storage.users.create(
        User(email=email, password_hash=hash_password(password, rounds=4), name=name, role=role)
    )


@pytest.fixture
def admin(storage) -> User:
    return make_user(storage, ADMIN_EMAIL, Role.ADMIN, name="Ana Admin")


@pytest.fixture
def staff(storage) -> User:
    return make_user(storage, STAFF_EMAIL, Role.STAFF, name="Sergio Staff")


@pytest.fixture
def customer(storage) -> User:
    return make_user(storage, CUSTOMER_EMAIL, Role.CUSTOMER, name="Carla Cliente")


def login(client: TestClient, email: str, password: str = PASSWORD, ip: str = None):
    headers = {"X-Forwarded-For": ip} if ip else None
    return client.post("/api/auth/login", json={"email": email, "password": password}, headers=headers)


def expire_all(storage: Storage, table: str) -> None:
    """Push every expires_at in `table` into the past"""
    with storage.db.connection() as conn:
        conn.execute(f"UPDATE {table} SET expires_at = ?", ("2000-01-01T00:00:00.000000+00:00",))
