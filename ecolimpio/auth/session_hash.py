"""
Access hashes: random 8-character path segments that prefix every
authenticated page URL, e.g. /Xy3_k9Qa/admin/dashboard.
"""

import re
import secrets
from typing import Optional

HASH_LENGTH = 8
HASH_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_-"

_HASH_RE = re.compile(r"^[A-Za-z0-9_-]{8}$")


def generate_access_hash() -> str:
    return "".join(secrets.choice(HASH_ALPHABET) for _ in range(HASH_LENGTH))


def generate_session_token() -> str:
    """32 URL-safe characters"""
    return secrets.token_urlsafe(24)


def is_valid_hash_format(value: str) -> bool:
    return bool(_HASH_RE.match(value or ""))


def extract_hash_from_path(path: str) -> Optional[str]:
    """The first segment of /<segment>/... when it has hash length, whatever its characters.

    Callers still check the format, so a malformed hash can be told apart
    from an ordinary path.
    """
    segment = path[1:].split("/", 1)[0]
    return segment if len(segment) == HASH_LENGTH else None


def build_hash_url(base_url: str, access_hash: str, path: str = "/") -> str:
    """https://ecolimpio.es + /<hash> + /admin/dashboard"""
    clean_path = path if path.startswith("/") else f"/{path}"
    return f"{base_url.rstrip('/')}/{access_hash}{clean_path}"
