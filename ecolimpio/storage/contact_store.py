"""Contact message storage"""

import sqlite3
from typing import List, Optional

from ..models.base import utcnow
from ..models.contact import Contact, ContactStatus
from .database import Database
from .timestamps import to_db


def _row_to_contact(row: Optional[sqlite3.Row]) -> Optional[Contact]:
    if row is None:
        return None
    return Contact(**dict(row))


class ContactStore:
    def __init__(self, db: Database):
        self.db = db

    def create(self, contact: Contact) -> Contact:
        with self.db.connection() as conn:
            conn.execute(
                "INSERT INTO contacts (id, name, email, phone, service, message, status, "
                "created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    contact.id,
                    contact.name,
                    contact.email,
                    contact.phone,
                    contact.service,
                    contact.message,
                    contact.status.value,
                    to_db(contact.created_at),
                    to_db(contact.updated_at),
                ),
            )
        return contact

    def get(self, contact_id: str) -> Optional[Contact]:
        with self.db.connection() as conn:
            row = conn.execute("SELECT * FROM contacts WHERE id = ?", (contact_id,)).fetchone()
        return _row_to_contact(row)

    def list(self, status: Optional[str] = None) -> List[Contact]:
        with self.db.connection() as conn:
            if status:
                rows = conn.execute(
                    "SELECT * FROM contacts WHERE status = ? ORDER BY created_at DESC", (status,)
                ).fetchall()
            else:
                rows = conn.execute("SELECT * FROM contacts ORDER BY created_at DESC").fetchall()
        return [_row_to_contact(row) for row in rows]

    def set_status(self, contact_id: str, status: ContactStatus) -> Optional[Contact]:
        with self.db.connection() as conn:
            cur = conn.execute(
                "UPDATE contacts SET status = ?, updated_at = ? WHERE id = ?",
                (status.value, to_db(utcnow()), contact_id),
            )
            if cur.rowcount == 0:
                return None
        return self.get(contact_id)

    def mark_read_if_new(self, contact_id: str) -> Optional[Contact]:
        """NEW -> READ on first view; any other status is left alone"""
        with self.db.connection() as conn:
            conn.execute(
                "UPDATE contacts SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                (ContactStatus.READ.value, to_db(utcnow()), contact_id, ContactStatus.NEW.value),
            )
        return self.get(contact_id)

    def delete(self, contact_id: str) -> bool:
        with self.db.connection() as conn:
            cur = conn.execute("DELETE FROM contacts WHERE id = ?", (contact_id,))
        return cur.rowcount > 0

    def count(self, status: Optional[ContactStatus] = None) -> int:
        with self.db.connection() as conn:
            if status is None:
                return conn.execute("SELECT COUNT(*) FROM contacts").fetchone()[0]
            return conn.execute(
                "SELECT COUNT(*) FROM contacts WHERE status = ?", (status.value,)
            ).fetchone()[0]

    def recent(self, limit: int = 5) -> List[Contact]:
        with self.db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM contacts ORDER BY created_at DESC LIMIT ?", (limit,)
            ).fetchall()
        return [_row_to_contact(row) for row in rows]
