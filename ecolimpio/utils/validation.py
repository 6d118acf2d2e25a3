"""Input validation and sanitization shared by the API handlers"""

import re
import uuid
from datetime import date, datetime
from typing import Iterable, List, Optional

from .exceptions import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SPANISH_PHONE_RE = re.compile(r"^(\+34)?[6-9]\d{8}$")
E164_RE = re.compile(r"^\+[1-9]\d{1,14}$")
CODE_RE = re.compile(r"^\d{6}$")
TAG_RE = re.compile(r"<[^>]*>")

MAX_NAME = 100
MAX_ADDRESS = 500
MAX_NOTES = 1000
MAX_MESSAGE = 2000
MAX_SEARCH = 100
MAX_TIME = 20
MAX_PHONE = 30
MAX_SERVICE = 100


def sanitize(value: str) -> str:
    """Strip HTML tags and surrounding whitespace"""
    return TAG_RE.sub("", value).strip()


def sanitize_optional(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return sanitize(value) or None


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def normalize_email(email: str) -> str:
    return email.strip().lower()


def require_email(email: str, message: str = "Formato de email inválido") -> str:
    email = email.strip()
    if not is_valid_email(email):
        raise ValidationError(message)
    return normalize_email(email)


def normalize_phone(phone: str) -> str:
    """Validate a Spanish mobile/landline number and return it in E.164.

    Accepts "612345678", "+34612345678" and the same with spaces.
    """
    cleaned = re.sub(r"\s", "", phone or "")
    if not SPANISH_PHONE_RE.match(cleaned):
        raise ValidationError("Formato de teléfono inválido")
    if not cleaned.startswith("+34"):
        cleaned = "+34" + cleaned
    return cleaned


def is_valid_e164(phone: str) -> bool:
    return bool(E164_RE.match(phone))


def require_code(code: str) -> str:
    if not CODE_RE.match(code or ""):
        raise ValidationError("Formato de código inválido")
    return code


def check_length(value: Optional[str], limit: int, message: str) -> None:
    if value and len(value) > limit:
        raise ValidationError(message)


def require_choice(value: str, allowed: Iterable[str], message: str = "Valor de estado inválido") -> str:
    if value not in set(allowed):
        raise ValidationError(message)
    return value


def require_uuid(value: str, message: str) -> str:
    try:
        return str(uuid.UUID(value))
    except (ValueError, AttributeError, TypeError):
        raise ValidationError(message)


def parse_date(value: str) -> date:
    """Parse YYYY-MM-DD (a full ISO datetime is accepted and truncated)"""
    try:
        if "T" in value:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        return date.fromisoformat(value)
    except (ValueError, TypeError):
        raise ValidationError("Fecha inválida")


def require_future_date(value: str, today: Optional[date] = None) -> date:
    booking_date = parse_date(value)
    today = today or date.today()
    if booking_date <= today:
        raise ValidationError("La fecha debe ser en el futuro")
    return booking_date


def password_policy_errors(password: str) -> List[str]:
    """Every rule the password breaks, in a stable order"""
    errors = []
    if len(password) < 8:
        errors.append("La contraseña debe tener al menos 8 caracteres.")
    if not re.search(r"[A-Z]", password):
        errors.append("La contraseña debe contener al menos una mayúscula.")
    if not re.search(r"[a-z]", password):
        errors.append("La contraseña debe contener al menos una minúscula.")
    if not re.search(r"[0-9]", password):
        errors.append("La contraseña debe contener al menos un número.")
    return errors


def require_strong_password(password: str) -> str:
    errors = password_policy_errors(password)
    if errors:
        raise ValidationError(" ".join(errors), errors=errors)
    return password
