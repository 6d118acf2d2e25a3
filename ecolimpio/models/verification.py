"""Phone verification codes. Keyed by phone only, never by user."""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import Field

from .base import Record, utcnow


class VerificationCode(Record):
    id: str = Field(default_factory=lambda: str(uuid4()))
    phone: str
    code: str
    verified: bool = False
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) > self.expires_at
