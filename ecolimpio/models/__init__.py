from .base import Record, utcnow
from .booking import SERVICE_IDS, Booking, BookingStatus
from .contact import Contact, ContactStatus
from .user import Role, Session, User
from .verification import VerificationCode

__all__ = [
    "Record",
    "utcnow",
    "SERVICE_IDS",
    "Booking",
    "BookingStatus",
    "Contact",
    "ContactStatus",
    "Role",
    "Session",
    "User",
    "VerificationCode",
]
