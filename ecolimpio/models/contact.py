"""Inbound contact messages"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import Field

from .base import Record, utcnow


class ContactStatus(str, Enum):
    NEW = "NEW"
    READ = "READ"
    REPLIED = "REPLIED"
    ARCHIVED = "ARCHIVED"


class Contact(Record):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    email: str
    phone: str
    service: Optional[str] = None
    message: str
    status: ContactStatus = ContactStatus.NEW
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
