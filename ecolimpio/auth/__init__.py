from .passwords import hash_password, validate_password, verify_password
from .roles import ADMIN_HOME, ADMIN_ROLES, CUSTOMER_HOME, STAFF_ROLES, home_path, may_access
from .session_hash import (
    build_hash_url,
    extract_hash_from_path,
    generate_access_hash,
    generate_session_token,
    is_valid_hash_format,
)
from .session_manager import AuthenticatedSession, SessionManager

__all__ = [
    "hash_password",
    "validate_password",
    "verify_password",
    "ADMIN_HOME",
    "ADMIN_ROLES",
    "CUSTOMER_HOME",
    "STAFF_ROLES",
    "home_path",
    "may_access",
    "build_hash_url",
    "extract_hash_from_path",
    "generate_access_hash",
    "generate_session_token",
    "is_valid_hash_format",
    "AuthenticatedSession",
    "SessionManager",
]
