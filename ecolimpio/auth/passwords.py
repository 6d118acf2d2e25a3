"""Password hashing with bcrypt"""

import bcrypt

from ..utils.validation import password_policy_errors

DEFAULT_ROUNDS = 12


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password using bcrypt"""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash"""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def validate_password(password: str) -> tuple[bool, list[str]]:
    """Return (is_valid, errors) listing every rule the password breaks"""
    errors = password_policy_errors(password)
    return not errors, errors
