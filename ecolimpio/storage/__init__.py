"""Persistence layer: one store per entity over a shared SQLite database."""

from dataclasses import dataclass

from .booking_store import BookingStore
from .contact_store import ContactStore
from .database import Database
from .session_store import SessionStore
from .user_store import UserStore
from .verification_store import VerificationStore


@dataclass
class Storage:
    db: Database
    users: UserStore
    sessions: SessionStore
    verifications: VerificationStore
    bookings: BookingStore
    contacts: ContactStore

    @classmethod
    def open(cls, path: str) -> "Storage":
        db = Database(path)
        db.init_schema()
        return cls(
            db=db,
            users=UserStore(db),
            sessions=SessionStore(db),
            verifications=VerificationStore(db),
            bookings=BookingStore(db),
            contacts=ContactStore(db),
        )


__all__ = [
    "Storage",
    "Database",
    "UserStore",
    "SessionStore",
    "VerificationStore",
    "BookingStore",
    "ContactStore",
]
