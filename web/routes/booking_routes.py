"""Booking endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ecolimpio.app import EcoLimpioApp
from ecolimpio.auth.passwords import hash_password
from ecolimpio.models.booking import SERVICE_IDS, Booking, BookingStatus
from ecolimpio.models.user import Role, User
from ecolimpio.utils.exceptions import DuplicateError, NotFoundError, ValidationError
from ecolimpio.utils.logger import get_logger
from ecolimpio.utils.validation import (
    MAX_ADDRESS,
    MAX_NAME,
    MAX_NOTES,
    MAX_TIME,
    check_length,
    normalize_phone,
    parse_date,
    require_choice,
    require_email,
    require_future_date,
    require_strong_password,
    require_uuid,
    sanitize,
    sanitize_optional,
)

from ..auth_deps import get_ecolimpio, rate_limit, require_admin, require_auth, require_staff
from ..models import BookingWithSignupRequest, CreateBookingRequest, UpdateBookingRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["bookings"])

BOOKING_STATUSES = [s.value for s in BookingStatus]
INVALID_ID = "ID de reserva inválido"
NOT_FOUND = "Reserva no encontrada"


def _build_booking(body: CreateBookingRequest, missing_message: str) -> Booking:
    """Validate and sanitize a booking form into an unsaved Booking"""
    if not body.services:
        raise ValidationError("Se requiere al menos un servicio")
    if any(service not in SERVICE_IDS for service in body.services):
        raise ValidationError("Selección de servicio inválida")
    if not all([body.date, body.time, body.name, body.email, body.phone, body.address]):
        raise ValidationError(missing_message)

    check_length(body.name, MAX_NAME, "El nombre es demasiado largo (máximo 100 caracteres)")
    check_length(body.address, MAX_ADDRESS, "La dirección es demasiado larga (máximo 500 caracteres)")
    check_length(body.notes, MAX_NOTES, "Las notas son demasiado largas (máximo 1000 caracteres)")
    check_length(body.time, MAX_TIME, "Hora inválida")
    email = require_email(body.email)
    booking_date = require_future_date(body.date)
    phone = normalize_phone(body.phone)

    name = sanitize(body.name)
    address = sanitize(body.address)
    time = sanitize(body.time)
    if not name or not address or not time:
        raise ValidationError(missing_message)

    return Booking(
        services=list(dict.fromkeys(body.services)),
        date=booking_date,
        time=time,
        name=name,
        email=email,
        phone=phone,
        address=address,
        notes=sanitize_optional(body.notes),
    )


def _load_booking_id(booking_id: str) -> str:
    return require_uuid(booking_id, INVALID_ID)


@router.get("", dependencies=[Depends(rate_limit("api"))])
def list_bookings(
    status: Optional[str] = None,
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    staff: User = Depends(require_staff),
    ecolimpio: EcoLimpioApp = Depends(get_ecolimpio),
):
    """List all bookings, newest first, optionally filtered (staff only)"""
    status_filter = None
    if status and status != "ALL":
        status_filter = require_choice(status, BOOKING_STATUSES)
    bookings = ecolimpio.storage.bookings.list(
        status_filter,
        parse_date(date_from) if date_from else None,
        parse_date(date_to) if date_to else None,
    )
    return {
        "success": True,
        "bookings": [b.to_public() for b in bookings],
        "count": len(bookings),
    }


@router.post("", status_code=201, dependencies=[Depends(rate_limit("booking"))])
def create_booking(body: CreateBookingRequest, ecolimpio: EcoLimpioApp = Depends(get_ecolimpio)):
    """Public booking form"""
    booking = _build_booking(body, "Faltan campos obligatorios")
    ecolimpio.storage.bookings.create(booking)
    logger.info("Booking created", booking_id=booking.id, services=booking.services)
    return {"success": True, "message": "Reserva creada correctamente"}


@router.post("/with-signup", dependencies=[Depends(rate_limit("booking"))])
def create_booking_with_signup(
    body: BookingWithSignupRequest,
    ecolimpio: EcoLimpioApp = Depends(get_ecolimpio),
):
    """
    Create a customer account and their first booking together.

    The phone must have been verified beforehand; the verification code is
    consumed in the same transaction that creates the user and booking.
    """
    if not all([body.name, body.email, body.password, body.phone]):
        raise ValidationError("Todos los campos de usuario son obligatorios")
    booking = _build_booking(body, "Todos los campos de reserva son obligatorios")
    require_strong_password(body.password)

    verification = ecolimpio.verification.require_verified(booking.phone)
    users = ecolimpio.storage.users
    if users.get_by_email(booking.email) is not None:
        raise DuplicateError("Este email ya está registrado. Por favor, inicia sesión.")

    user = User(
        email=booking.email,
        password_hash=hash_password(body.password, rounds=ecolimpio.settings.security.bcrypt_rounds),
        name=booking.name,
        role=Role.CUSTOMER,
    )
    user, booking = ecolimpio.storage.bookings.create_with_signup(user, booking, verification.id)
    logger.info("Customer signed up with booking", user_id=user.id, booking_id=booking.id)

    return {
        "success": True,
        "message": "Cuenta creada y reserva realizada correctamente",
        "user": {"id": user.id, "name": user.name, "email": user.email},
        "booking": {
            "id": booking.id,
            "services": booking.services,
            "date": booking.date.isoformat(),
            "time": booking.time,
        },
    }


@router.get("/my", dependencies=[Depends(rate_limit("api"))])
def my_bookings(
    current_user: User = Depends(require_auth),
    ecolimpio: EcoLimpioApp = Depends(get_ecolimpio),
):
    bookings = ecolimpio.storage.bookings.list_for_user(current_user.id)
    return {"success": True, "bookings": [b.to_public() for b in bookings]}


@router.get("/{booking_id}", dependencies=[Depends(rate_limit("api"))])
def get_booking(
    booking_id: str,
    staff: User = Depends(require_staff),
    ecolimpio: EcoLimpioApp = Depends(get_ecolimpio),
):
    booking = ecolimpio.storage.bookings.get(_load_booking_id(booking_id))
    if booking is None:
        raise NotFoundError(NOT_FOUND)
    return {"success": True, "booking": booking.to_public()}


@router.patch("/{booking_id}", dependencies=[Depends(rate_limit("api"))])
def update_booking(
    booking_id: str,
    body: UpdateBookingRequest,
    staff: User = Depends(require_staff),
    ecolimpio: EcoLimpioApp = Depends(get_ecolimpio),
):
    """Change status, notes, date or time (staff only)"""
    booking_id = _load_booking_id(booking_id)
    fields = {}
    if body.status:
        fields["status"] = BookingStatus(require_choice(body.status, BOOKING_STATUSES))
    if "notes" in body.model_fields_set:
        check_length(body.notes, MAX_NOTES, "Las notas son demasiado largas (máximo 1000 caracteres)")
        fields["notes"] = sanitize_optional(body.notes)
    if body.date:
        fields["date"] = parse_date(body.date)
    if body.time:
        check_length(body.time, MAX_TIME, "Hora inválida")
        fields["time"] = sanitize(body.time)

    booking = ecolimpio.storage.bookings.update(booking_id, **fields)
    if booking is None:
        raise NotFoundError(NOT_FOUND)
    logger.info("Booking updated", booking_id=booking_id, by=staff.id, fields=sorted(fields))
    return {
        "success": True,
        "booking": booking.to_public(),
        "message": "Reserva actualizada correctamente",
    }


@router.delete("/{booking_id}", dependencies=[Depends(rate_limit("api"))])
def delete_booking(
    booking_id: str,
    admin: User = Depends(require_admin),
    ecolimpio: EcoLimpioApp = Depends(get_ecolimpio),
):
    booking_id = _load_booking_id(booking_id)
    if not ecolimpio.storage.bookings.delete(booking_id):
        raise NotFoundError(NOT_FOUND)
    logger.info("Booking deleted", booking_id=booking_id, by=admin.id)
    return {"success": True, "message": "Reserva eliminada correctamente"}
