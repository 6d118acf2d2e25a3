"""Booking storage"""

import json
import sqlite3
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from ..models.base import utcnow
from ..models.booking import Booking, BookingStatus
from ..models.user import User
from .database import Database
from .timestamps import date_to_db, to_db
from .user_store import insert_user

_UPDATABLE = {"status", "notes", "date", "time"}


def _row_to_booking(row: Optional[sqlite3.Row]) -> Optional[Booking]:
    if row is None:
        return None
    data = dict(row)
    data["services"] = json.loads(data["services"])
    return Booking(**data)


def _insert_booking(conn: sqlite3.Connection, booking: Booking) -> None:
    conn.execute(
        "INSERT INTO bookings (id, user_id, services, date, time, name, email, phone, "
        "address, notes, status, created_at, updated_at) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        (
            booking.id,
            booking.user_id,
            json.dumps(booking.services),
            date_to_db(booking.date),
            booking.time,
            booking.name,
            booking.email,
            booking.phone,
            booking.address,
            booking.notes,
            booking.status.value,
            to_db(booking.created_at),
            to_db(booking.updated_at),
        ),
    )


def _to_column(key: str, value: Any) -> Any:
    if isinstance(value, BookingStatus):
        return value.value
    if isinstance(value, date) and not isinstance(value, datetime):
        return date_to_db(value)
    return value


class BookingStore:
    def __init__(self, db: Database):
        self.db = db

    def create(self, booking: Booking) -> Booking:
        with self.db.connection() as conn:
            _insert_booking(conn, booking)
        return booking

    def create_with_signup(self, user: User, booking: Booking, verification_id: str) -> tuple[User, Booking]:
        """Create the customer, their booking and consume the phone code in one transaction"""
        booking.user_id = user.id
        with self.db.connection() as conn:
            insert_user(conn, user)
            _insert_booking(conn, booking)
            conn.execute("DELETE FROM verification_codes WHERE id = ?", (verification_id,))
        return user, booking

    def get(self, booking_id: str) -> Optional[Booking]:
        with self.db.connection() as conn:
            row = conn.execute("SELECT * FROM bookings WHERE id = ?", (booking_id,)).fetchone()
        return _row_to_booking(row)

    def list(
        self,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Booking]:
        clauses, params = [], []
        if status:
            clauses.append("status = ?")
            params.append(status)
        if date_from:
            clauses.append("date >= ?")
            params.append(date_to_db(date_from))
        if date_to:
            clauses.append("date <= ?")
            params.append(date_to_db(date_to))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        with self.db.connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM bookings{where} ORDER BY created_at DESC", params
            ).fetchall()
        return [_row_to_booking(row) for row in rows]

    def list_for_user(self, user_id: str) -> List[Booking]:
        with self.db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM bookings WHERE user_id = ? ORDER BY date DESC", (user_id,)
            ).fetchall()
        return [_row_to_booking(row) for row in rows]

    def update(self, booking_id: str, **fields: Any) -> Optional[Booking]:
        """Apply a partial update; None if the booking does not exist"""
        changes = {k: _to_column(k, v) for k, v in fields.items() if k in _UPDATABLE}
        changes["updated_at"] = to_db(utcnow())
        assignments = ", ".join(f"{column} = ?" for column in changes)
        with self.db.connection() as conn:
            cur = conn.execute(
                f"UPDATE bookings SET {assignments} WHERE id = ?",
                (*changes.values(), booking_id),
            )
            if cur.rowcount == 0:
                return None
        return self.get(booking_id)

    def delete(self, booking_id: str) -> bool:
        with self.db.connection() as conn:
            cur = conn.execute("DELETE FROM bookings WHERE id = ?", (booking_id,))
        return cur.rowcount > 0

    def count(self, status: Optional[BookingStatus] = None) -> int:
        with self.db.connection() as conn:
            if status is None:
                return conn.execute("SELECT COUNT(*) FROM bookings").fetchone()[0]
            return conn.execute(
                "SELECT COUNT(*) FROM bookings WHERE status = ?", (status.value,)
            ).fetchone()[0]

    def count_created_since(self, since: datetime) -> int:
        with self.db.connection() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM bookings WHERE created_at >= ?", (to_db(since),)
            ).fetchone()[0]

    def recent(self, limit: int = 5) -> List[Booking]:
        with self.db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM bookings ORDER BY created_at DESC LIMIT ?", (limit,)
            ).fetchall()
        return [_row_to_booking(row) for row in rows]

    def service_counts(self) -> Dict[str, int]:
        """How many bookings include each service"""
        counts: Dict[str, int] = {}
        with self.db.connection() as conn:
            for row in conn.execute("SELECT services FROM bookings"):
                for service in json.loads(row["services"]):
                    counts[service] = counts.get(service, 0) + 1
        return counts
