"""Contact message endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends

from ecolimpio.app import EcoLimpioApp
from ecolimpio.models.contact import Contact, ContactStatus
from ecolimpio.models.user import User
from ecolimpio.utils.exceptions import NotFoundError, ValidationError
from ecolimpio.utils.logger import get_logger
from ecolimpio.utils.validation import (
    MAX_MESSAGE,
    MAX_NAME,
    MAX_SERVICE,
    check_length,
    normalize_phone,
    require_choice,
    require_email,
    require_uuid,
    sanitize,
    sanitize_optional,
)

from ..auth_deps import get_ecolimpio, rate_limit, require_admin, require_staff
from ..models import CreateContactRequest, UpdateContactRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/api/contacts", tags=["contacts"])

CONTACT_STATUSES = [s.value for s in ContactStatus]
INVALID_ID = "ID de contacto inválido"
NOT_FOUND = "Mensaje no encontrado"


@router.get("", dependencies=[Depends(rate_limit("api"))])
def list_contacts(
    status: Optional[str] = None,
    staff: User = Depends(require_staff),
    ecolimpio: EcoLimpioApp = Depends(get_ecolimpio),
):
    status_filter = None
    if status and status != "ALL":
        status_filter = require_choice(status, CONTACT_STATUSES)
    contacts = ecolimpio.storage.contacts.list(status_filter)
    return {
        "success": True,
        "contacts": [c.to_public() for c in contacts],
        "count": len(contacts),
    }


@router.post("", status_code=201, dependencies=[Depends(rate_limit("contact"))])
def create_contact(body: CreateContactRequest, ecolimpio: EcoLimpioApp = Depends(get_ecolimpio)):
    """Public contact form"""
    if not all([body.name, body.email, body.phone, body.message]):
        raise ValidationError("Faltan campos obligatorios")

    check_length(body.name, MAX_NAME, "El nombre es demasiado largo (máximo 100 caracteres)")
    check_length(body.message, MAX_MESSAGE, "El mensaje es demasiado largo (máximo 2000 caracteres)")
    check_length(body.service, MAX_SERVICE, "Servicio inválido")
    email = require_email(body.email)
    phone = normalize_phone(body.phone)

    name = sanitize(body.name)
    message = sanitize(body.message)
    if not name or not message:
        raise ValidationError("Faltan campos obligatorios")

    contact = Contact(
        name=name,
        email=email,
        phone=phone,
        service=sanitize_optional(body.service),
        message=message,
    )
    ecolimpio.storage.contacts.create(contact)
    logger.info("Contact message received", contact_id=contact.id)
    return {"success": True, "message": "Mensaje enviado correctamente"}


@router.get("/{contact_id}", dependencies=[Depends(rate_limit("api"))])
def get_contact(
    contact_id: str,
    staff: User = Depends(require_staff),
    ecolimpio: EcoLimpioApp = Depends(get_ecolimpio),
):
    """Fetch one message; a NEW message becomes READ on first view"""
    contact = ecolimpio.storage.contacts.mark_read_if_new(require_uuid(contact_id, INVALID_ID))
    if contact is None:
        raise NotFoundError(NOT_FOUND)
    return {"success": True, "contact": contact.to_public()}


@router.patch("/{contact_id}", dependencies=[Depends(rate_limit("api"))])
def update_contact(
    contact_id: str,
    body: UpdateContactRequest,
    staff: User = Depends(require_staff),
    ecolimpio: EcoLimpioApp = Depends(get_ecolimpio),
):
    contact_id = require_uuid(contact_id, INVALID_ID)
    if not body.status:
        raise ValidationError("Valor de estado inválido")
    new_status = ContactStatus(require_choice(body.status, CONTACT_STATUSES))

    contact = ecolimpio.storage.contacts.set_status(contact_id, new_status)
    if contact is None:
        raise NotFoundError(NOT_FOUND)
    logger.info("Contact status changed", contact_id=contact_id, status=new_status.value, by=staff.id)
    return {
        "success": True,
        "contact": contact.to_public(),
        "message": "Mensaje actualizado correctamente",
    }


@router.delete("/{contact_id}", dependencies=[Depends(rate_limit("api"))])
def delete_contact(
    contact_id: str,
    admin: User = Depends(require_admin),
    ecolimpio: EcoLimpioApp = Depends(get_ecolimpio),
):
    contact_id = require_uuid(contact_id, INVALID_ID)
    if not ecolimpio.storage.contacts.delete(contact_id):
        raise NotFoundError(NOT_FOUND)
    logger.info("Contact deleted", contact_id=contact_id, by=admin.id)
    return {"success": True, "message": "Mensaje eliminado correctamente"}
