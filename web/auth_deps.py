"""
FastAPI dependencies for authentication, authorization and rate limiting.
"""

from typing import Optional

from fastapi import Depends, Request

from ecolimpio.app import EcoLimpioApp
from ecolimpio.auth.roles import ADMIN_ROLES, STAFF_ROLES
from ecolimpio.models.user import User
from ecolimpio.safety.rate_limiter import POLICIES
from ecolimpio.utils.exceptions import AuthenticationError, AuthorizationError, RateLimitError


def get_ecolimpio(request: Request) -> EcoLimpioApp:
    """Dependency to get the application container"""
    return request.app.state.ecolimpio


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_session_token(request: Request) -> Optional[str]:
    """Extract session token from request (Authorization header or cookie)"""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]

    cookie_name = get_ecolimpio(request).settings.session.cookie_name
    return request.cookies.get(cookie_name) or None


def get_current_user(request: Request) -> User:
    """Dependency to get current authenticated user"""
    token = get_session_token(request)
    if not token:
        raise AuthenticationError("No autorizado - Sesión requerida")

    authenticated = get_ecolimpio(request).sessions.authenticate(token)
    if authenticated is None:
        raise AuthenticationError("Sesión inválida o expirada")

    return authenticated.user


def require_roles(allowed: frozenset):
    """Dependency factory for role-based access control"""

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise AuthorizationError("No tienes permisos para realizar esta acción")
        return current_user

    return role_checker


def rate_limit(policy_name: str, message: str = "Demasiadas solicitudes. Intenta de nuevo en {retry_after} segundos."):
    """Dependency factory applying a named rate-limit policy to the client IP"""
    policy = POLICIES[policy_name]

    def limiter(request: Request) -> None:
        result = get_ecolimpio(request).rate_limiter.hit(policy, client_ip(request))
        if not result.allowed:
            raise RateLimitError(
                message.format(retry_after=result.retry_after),
                retry_after=result.retry_after,
            )

    return limiter


# Pre-configured dependencies
require_auth = get_current_user
require_staff = require_roles(STAFF_ROLES)
require_admin = require_roles(ADMIN_ROLES)
