"""Phone verification codes: issuance, SMS dispatch and checking"""

import secrets
from datetime import datetime, timedelta
from typing import Callable

from ..models.base import utcnow
from ..models.verification import VerificationCode
from ..safety.lockout import LockoutTracker
from ..storage.verification_store import VerificationStore
from ..utils.exceptions import AccountLockedError, RateLimitError, ValidationError
from ..utils.logger import get_logger
from .sms import SmsClient

logger = get_logger(__name__)

SMS_TEMPLATE = "Tu código de verificación EcoLimpio es: {code}"


def generate_code() -> str:
    """Uniformly random six-digit code without a leading zero"""
    return str(100000 + secrets.randbelow(900000))


class VerificationService:
    def __init__(
        self,
        store: VerificationStore,
        sms: SmsClient,
        lockout: LockoutTracker,
        code_ttl_minutes: int = 10,
        resend_seconds: int = 60,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.sms = sms
        self.lockout = lockout
        self.code_ttl = timedelta(minutes=code_ttl_minutes)
        self.resend_interval = timedelta(seconds=resend_seconds)
        self.clock = clock

    def issue_code(self, phone: str) -> VerificationCode:
        """
        Persist a fresh code for `phone`, replacing any earlier one, then try
        to deliver it by SMS.

        Raises RateLimitError if a code went out for this phone less than the
        resend interval ago. A failed SMS does not undo issuance; the code is
        logged so an operator can read it back to the customer.
        """
        now = self.clock()
        if self.store.created_since(phone, now - self.resend_interval):
            raise RateLimitError(
                "Espera 1 minuto antes de solicitar otro código",
                retry_after=int(self.resend_interval.total_seconds()),
            )

        verification = VerificationCode(
            phone=phone,
            code=generate_code(),
            expires_at=now + self.code_ttl,
            created_at=now,
        )
        self.store.replace_for_phone(verification)

        result = self.sms.send(phone, SMS_TEMPLATE.format(code=verification.code))
        if result.success:
            logger.info("Verification code sent", phone=phone, message_id=result.message_id)
        else:
            logger.warning(
                "Verification SMS not delivered, code kept",
                phone=phone,
                code=verification.code,
                error=result.error,
            )
        return verification

    def check_code(self, phone: str, code: str) -> VerificationCode:
        """Validate a submitted code and mark it verified"""
        status = self.lockout.is_locked(phone)
        if status.locked:
            raise AccountLockedError(
                f"Demasiados intentos fallidos. Espera {status.lockout_minutes} minutos.",
                lockout_minutes=status.lockout_minutes,
                status_code=429,
            )

        verification = self.store.find_match(phone, code)
        if verification is None:
            status = self.lockout.record_attempt(phone, success=False)
            if status.locked:
                raise AccountLockedError(
                    f"Demasiados intentos fallidos. Espera {status.lockout_minutes} minutos.",
                    lockout_minutes=status.lockout_minutes,
                    status_code=429,
                )
            raise ValidationError(
                "Código incorrecto", attemptsRemaining=status.attempts_remaining
            )

        if verification.is_expired(self.clock()):
            self.store.delete(verification.id)
            raise ValidationError("El código ha expirado. Solicita uno nuevo.")

        self.lockout.record_attempt(phone, success=True)
        if not verification.verified:
            self.store.mark_verified(verification.id)
            verification.verified = True
        logger.info("Phone verified", phone=phone)
        return verification

    def require_verified(self, phone: str) -> VerificationCode:
        """The live verified code for `phone`, as signup needs it"""
        verification = self.store.find_verified(phone)
        if verification is None or verification.is_expired(self.clock()):
            raise ValidationError(
                "El teléfono no ha sido verificado"
            )
        return verification
