"""Application container wiring configuration, storage and services together"""

import time
from typing import Callable, Optional

from .auth.session_manager import SessionManager
from .models.base import utcnow
from .safety.lockout import LockoutTracker
from .safety.rate_limiter import RateLimiter
from .services.captcha import CaptchaVerifier
from .services.sms import SmsClient
from .services.verification_service import VerificationService
from .storage import Storage
from .utils.config import Settings, config_manager
from .utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


class EcoLimpioApp:
    """Holds every long-lived component the HTTP layer and scripts need"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        storage: Optional[Storage] = None,
        captcha: Optional[CaptchaVerifier] = None,
        sms: Optional[SmsClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.storage = storage
        self.captcha = captcha
        self.sms = sms
        self.clock = clock
        self.rate_limiter: Optional[RateLimiter] = None
        self.login_lockout: Optional[LockoutTracker] = None
        self.phone_lockout: Optional[LockoutTracker] = None
        self.sessions: Optional[SessionManager] = None
        self.verification: Optional[VerificationService] = None
        self._initialized = False

    def initialize(self) -> "EcoLimpioApp":
        """Build any component that was not injected"""
        if self._initialized:
            return self

        if self.settings is None:
            self.settings = config_manager.load_settings()
        settings = self.settings

        configure_logging(
            level=settings.logging.level,
            fmt=settings.logging.format,
            file_path=settings.logging.file_path,
            max_bytes=settings.logging.max_bytes,
            backup_count=settings.logging.backup_count,
        )
        logger.info(
            "Configuration loaded",
            app_name=settings.app.name,
            version=settings.app.version,
            environment=settings.app.environment,
        )

        if self.storage is None:
            self.storage = Storage.open(settings.database.path)

        development = settings.app.is_development
        if self.captcha is None:
            self.captcha = CaptchaVerifier(settings.captcha, development=development)
        if self.sms is None:
            self.sms = SmsClient(settings.sms, development=development)

        security = settings.security
        self.rate_limiter = RateLimiter(clock=self.clock)
        self.login_lockout = LockoutTracker(
            "login",
            max_attempts=security.max_failed_attempts,
            lockout_seconds=security.lockout_minutes * 60,
            clock=self.clock,
        )
        self.phone_lockout = LockoutTracker(
            "phone",
            max_attempts=security.max_failed_attempts,
            lockout_seconds=security.lockout_minutes * 60,
            clock=self.clock,
        )
        self.sessions = SessionManager(
            self.storage.sessions,
            self.storage.users,
            expiry_days=settings.session.expiry_days,
            max_hash_attempts=settings.session.hash_max_attempts,
        )
        self.verification = VerificationService(
            self.storage.verifications,
            self.sms,
            self.phone_lockout,
            code_ttl_minutes=security.code_ttl_minutes,
            resend_seconds=security.code_resend_seconds,
        )

        self._initialized = True
        logger.info("EcoLimpio application initialized", database=settings.database.path)
        return self

    def run_maintenance(self) -> dict:
        """
        One sweep of expired state. Each step is independent: a failing step
        is logged and the rest still run.
        """
        results = {}
        steps = (
            ("rate_limits", self.rate_limiter.reap_expired),
            ("login_lockouts", self.login_lockout.reap_expired),
            ("phone_lockouts", self.phone_lockout.reap_expired),
            ("sessions", self.sessions.purge_expired),
            ("verification_codes", lambda: self.storage.verifications.purge_expired(utcnow())),
        )
        for name, step in steps:
            try:
                results[name] = step()
            except Exception as e:
                logger.warning("Maintenance step failed", step=name, error=str(e))
        if any(results.values()):
            logger.info("Maintenance sweep", **results)
        return results
