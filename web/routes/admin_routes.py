"""Admin panel endpoints: customers, dashboard statistics and own profile"""

from datetime import timedelta

from fastapi import APIRouter, Depends

from ecolimpio.app import EcoLimpioApp
from ecolimpio.auth.passwords import hash_password, verify_password
from ecolimpio.models.base import utcnow
from ecolimpio.models.booking import BookingStatus
from ecolimpio.models.contact import ContactStatus
from ecolimpio.models.user import User
from ecolimpio.utils.exceptions import DuplicateError, NotFoundError, ValidationError
from ecolimpio.utils.logger import get_logger
from ecolimpio.utils.validation import (
    MAX_NAME,
    MAX_SEARCH,
    check_length,
    require_email,
    require_strong_password,
    sanitize,
)

from ..auth_deps import get_ecolimpio, rate_limit, require_auth, require_staff
from ..models import UpdateProfileRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

RECENT_LIMIT = 5
TREND_DAYS = 7


@router.get("/customers", dependencies=[Depends(rate_limit("api"))])
def list_customers(
    search: str = "",
    staff: User = Depends(require_staff),
    ecolimpio: EcoLimpioApp = Depends(get_ecolimpio),
):
    """Customers with their booking count and latest booking"""
    check_length(search, MAX_SEARCH, "Búsqueda demasiado larga")
    customers = ecolimpio.storage.users.list_customers(sanitize(search))
    return {"success": True, "customers": customers}


@router.get("/stats", dependencies=[Depends(rate_limit("api"))])
def stats(
    staff: User = Depends(require_staff),
    ecolimpio: EcoLimpioApp = Depends(get_ecolimpio),
):
    bookings = ecolimpio.storage.bookings
    contacts = ecolimpio.storage.contacts

    recent_bookings = [
        {
            "id": b.id,
            "name": b.name,
            "services": b.services,
            "date": b.date.isoformat(),
            "status": b.status.value,
            "createdAt": b.created_at.isoformat(),
        }
        for b in bookings.recent(RECENT_LIMIT)
    ]
    recent_contacts = [
        {
            "id": c.id,
            "name": c.name,
            "email": c.email,
            "message": c.message,
            "status": c.status.value,
            "createdAt": c.created_at.isoformat(),
        }
        for c in contacts.recent(RECENT_LIMIT)
    ]

    return {
        "success": True,
        "stats": {
            "bookings": {
                "total": bookings.count(),
                "pending": bookings.count(BookingStatus.PENDING),
                "confirmed": bookings.count(BookingStatus.CONFIRMED),
                "completed": bookings.count(BookingStatus.COMPLETED),
            },
            "contacts": {
                "total": contacts.count(),
                "new": contacts.count(ContactStatus.NEW),
            },
            "recentBookings": recent_bookings,
            "recentContacts": recent_contacts,
            "serviceStats": bookings.service_counts(),
            "bookingsTrend": bookings.count_created_since(utcnow() - timedelta(days=TREND_DAYS)),
        },
    }


@router.get("/profile")
def get_profile(current_user: User = Depends(require_auth)):
    return {"success": True, "user": current_user.to_public()}


@router.patch("/profile", dependencies=[Depends(rate_limit("api"))])
def update_profile(
    body: UpdateProfileRequest,
    current_user: User = Depends(require_auth),
    ecolimpio: EcoLimpioApp = Depends(get_ecolimpio),
):
    """
    Change own name, email or password.

    A password change requires the current password. Unchanged values are
    ignored; an empty change set is reported rather than written.
    """
    users = ecolimpio.storage.users
    user = users.get_by_id(current_user.id)
    if user is None:
        raise NotFoundError("Usuario no encontrado")

    changes = {}
    if body.name and body.name != user.name:
        check_length(body.name, MAX_NAME, "El nombre es demasiado largo (máximo 100 caracteres)")
        name = sanitize(body.name)
        if not name:
            raise ValidationError("El nombre no puede estar vacío")
        changes["name"] = name

    if body.email and body.email.strip().lower() != user.email:
        email = require_email(body.email)
        existing = users.get_by_email(email)
        if existing is not None and existing.id != user.id:
            raise DuplicateError("Este email ya está en uso")
        changes["email"] = email

    if body.new_password:
        if not body.current_password:
            raise ValidationError("Debes proporcionar tu contraseña actual")
        if not verify_password(body.current_password, user.password_hash):
            raise ValidationError("Contraseña actual incorrecta")
        require_strong_password(body.new_password)
        changes["password_hash"] = hash_password(
            body.new_password, rounds=ecolimpio.settings.security.bcrypt_rounds
        )

    if not changes:
        return {"success": True, "message": "No hay cambios para guardar"}

    updated = users.update(user.id, **changes)
    logger.info("Profile updated", user_id=user.id, fields=sorted(changes))
    return {
        "success": True,
        "user": updated.to_public(),
        "message": "Perfil actualizado correctamente",
    }
