"""User and session records"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import Field

from .base import Record, utcnow


class Role(str, Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    CUSTOMER = "CUSTOMER"


class User(Record):
    """Identity record. Email is stored lower-cased and is unique."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    email: str
    password_hash: str
    name: str
    role: Role = Role.CUSTOMER
    created_at: datetime = Field(default_factory=utcnow)

    def to_public(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
        }


class Session(Record):
    """Proof of authentication: bearer token plus its URL access hash"""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    token: str
    access_hash: str
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) > self.expires_at
