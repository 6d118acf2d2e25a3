"""Booking records"""

import datetime as dt
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import Field

from .base import Record, utcnow

# Known service identifiers offered on the public site
SERVICE_IDS = ("vehiculos", "entradas", "ventanas", "pack")


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Booking(Record):
    id: str = Field(default_factory=lambda: str(uuid4()))
    services: List[str]
    date: dt.date
    time: str
    name: str
    email: str
    phone: str
    address: str
    notes: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    user_id: Optional[str] = None
    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)
