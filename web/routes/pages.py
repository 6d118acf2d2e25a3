"""HTML page routes. Pages are thin shells; data comes from the JSON API."""

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ecolimpio.auth.roles import home_path, may_access
from ecolimpio.models.user import User
from ecolimpio.utils.logger import get_logger

from ..auth_deps import get_ecolimpio

logger = get_logger(__name__)

router = APIRouter(tags=["pages"])

templates_path = Path(__file__).resolve().parent.parent / "templates"
jinja_env = Environment(
    loader=FileSystemLoader(templates_path),
    autoescape=select_autoescape(["html"]),
)


def _render_template_sync(template_name: str, context: dict) -> str:
    template = jinja_env.get_template(template_name)
    return template.render(**context)


async def render_page(page: str, title: str, access_hash: Optional[str] = None, user: Optional[User] = None) -> HTMLResponse:
    """Render the page shell in threadpool so the event loop is not blocked."""
    content = await run_in_threadpool(
        _render_template_sync,
        "shell.html",
        {"page": page, "title": title, "access_hash": access_hash, "user": user},
    )
    return HTMLResponse(content=content)


def _resolve_page_user(request: Request):
    """Re-check the cookie and path hash pair behind a rewritten page request"""
    ecolimpio = get_ecolimpio(request)
    access_hash = getattr(request.state, "access_hash", None)
    token = request.cookies.get(ecolimpio.settings.session.cookie_name)
    return ecolimpio.sessions.resolve(token, access_hash)


async def _protected_page(request: Request, title: str):
    authenticated = await run_in_threadpool(_resolve_page_user, request)
    if authenticated is None:
        return RedirectResponse(url="/login", status_code=302)

    path = request.url.path
    user = authenticated.user
    access_hash = authenticated.session.access_hash
    if not may_access(user.role, path):
        return RedirectResponse(url=f"/{access_hash}{home_path(user.role)}", status_code=302)
    return await render_page(path, title, access_hash=access_hash, user=user)


# Public pages
@router.get("/", response_class=HTMLResponse)
async def index_page():
    return await render_page("/", "Inicio")


@router.get("/login", response_class=HTMLResponse)
async def login_page():
    return await render_page("/login", "Iniciar sesión")


@router.get("/servicios", response_class=HTMLResponse)
async def services_page():
    return await render_page("/servicios", "Servicios")


@router.get("/precios", response_class=HTMLResponse)
async def prices_page():
    """Price calculator page"""
    return await render_page("/precios", "Precios")


@router.get("/contacto", response_class=HTMLResponse)
async def contact_page():
    return await render_page("/contacto", "Contacto")


@router.get("/reservar", response_class=HTMLResponse)
async def booking_page():
    """Booking form with optional account signup"""
    return await render_page("/reservar", "Reservar")


# Pages reached only through /{hash}/... rewrites
@router.get("/admin/dashboard", response_class=HTMLResponse)
async def admin_dashboard_page(request: Request):
    return await _protected_page(request, "Panel")


@router.get("/admin/bookings", response_class=HTMLResponse)
async def admin_bookings_page(request: Request):
    return await _protected_page(request, "Reservas")


@router.get("/admin/contacts", response_class=HTMLResponse)
async def admin_contacts_page(request: Request):
    return await _protected_page(request, "Mensajes")


@router.get("/admin/customers", response_class=HTMLResponse)
async def admin_customers_page(request: Request):
    return await _protected_page(request, "Clientes")


@router.get("/admin/settings", response_class=HTMLResponse)
async def admin_settings_page(request: Request):
    """Own profile and password"""
    return await _protected_page(request, "Ajustes")


@router.get("/dashboard", response_class=HTMLResponse)
async def customer_dashboard_page(request: Request):
    """Customer's own bookings"""
    return await _protected_page(request, "Mis reservas")


@router.get("/health")
def health_check():
    return {"status": "healthy"}
