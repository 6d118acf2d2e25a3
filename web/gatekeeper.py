"""
Access-hash gatekeeper.

Authenticated pages live under /{hash}/admin/... and /{hash}/dashboard. The
gatekeeper checks the path hash against the session cookie, keeps each role
inside its own namespace and rewrites the request to the internal route
(/admin/..., /dashboard) before routing. Every failure is a redirect, never an
error page.
"""

import re
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ecolimpio.app import EcoLimpioApp
from ecolimpio.auth.roles import home_path, in_namespace, may_access
from ecolimpio.auth.session_hash import HASH_LENGTH, extract_hash_from_path, is_valid_hash_format
from ecolimpio.utils.logger import get_logger

logger = get_logger(__name__)

LOGIN_PATH = "/login"

# Public pages, API and assets never carry a hash. Checked before hash
# extraction because some page names are themselves eight characters long.
EXCLUDED_PATHS = {"/favicon.ico", "/login", "/contacto", "/reservar", "/servicios", "/precios", "/health"}
EXCLUDED_PREFIXES = ("/static/", "/api/")
IMAGE_RE = re.compile(r"\.(svg|png|jpe?g|gif|webp|ico)$", re.IGNORECASE)


def is_excluded(path: str) -> bool:
    return (
        path in EXCLUDED_PATHS
        or path == "/api"
        or path == "/static"
        or path.startswith(EXCLUDED_PREFIXES)
        or any(path.startswith(p + "/") for p in EXCLUDED_PATHS)
        or bool(IMAGE_RE.search(path))
    )


def _get_cookie_from_scope(scope: Scope, cookie_name: str) -> Optional[str]:
    """Extract a cookie value from the ASGI scope."""
    for key, value in scope.get("headers") or []:
        if key.lower() != b"cookie":
            continue
        for part in value.decode("latin-1").split(";"):
            name, _, cookie_value = part.strip().partition("=")
            if name == cookie_name and cookie_value:
                return cookie_value.strip()
    return None


async def _redirect(send: Send, location: str) -> None:
    await send({
        "type": "http.response.start",
        "status": 302,
        "headers": [[b"location", location.encode("latin-1")]],
    })
    await send({"type": "http.response.body", "body": b""})


class GatekeeperMiddleware:
    """Raw ASGI middleware; avoids request stream wrapping that causes CancelledError on disconnect."""

    def __init__(self, app: ASGIApp, ecolimpio: EcoLimpioApp):
        self.app = app
        self.ecolimpio = ecolimpio

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path") or "/"
        if is_excluded(path):
            await self.app(scope, receive, send)
            return

        candidate = extract_hash_from_path(path)
        if candidate is None:
            # Internal namespaces are never reachable without a hash
            if in_namespace(path, "/admin") or in_namespace(path, "/dashboard"):
                await _redirect(send, LOGIN_PATH)
                return
            await self.app(scope, receive, send)
            return

        if not is_valid_hash_format(candidate):
            await _redirect(send, LOGIN_PATH)
            return

        token = _get_cookie_from_scope(scope, self.ecolimpio.settings.session.cookie_name)
        if not token:
            await _redirect(send, LOGIN_PATH)
            return

        try:
            authenticated = await run_in_threadpool(self.ecolimpio.sessions.resolve, token, candidate)
        except Exception as e:
            logger.error("Session lookup failed in gatekeeper", error=str(e))
            authenticated = None
        if authenticated is None:
            await _redirect(send, LOGIN_PATH)
            return

        role = authenticated.user.role
        remainder = path[HASH_LENGTH + 1:]
        if remainder in ("", "/"):
            await _redirect(send, f"/{candidate}{home_path(role)}")
            return
        if not (in_namespace(remainder, "/admin") or in_namespace(remainder, "/dashboard")):
            await _redirect(send, LOGIN_PATH)
            return
        if not may_access(role, remainder):
            logger.info("Role outside its namespace", role=role.value, path=remainder)
            await _redirect(send, f"/{candidate}{home_path(role)}")
            return

        state = dict(scope.get("state") or {})
        state.update(access_hash=candidate, role=role, user_id=authenticated.user.id)
        rewritten = dict(scope)
        rewritten["path"] = remainder
        rewritten["raw_path"] = remainder.encode("utf-8")
        rewritten["state"] = state

        async def send_with_hash(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers") or [])
                headers.append((b"x-session-hash", candidate.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        await self.app(rewritten, receive, send_with_hash)
