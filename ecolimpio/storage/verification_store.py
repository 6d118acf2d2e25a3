"""Verification code storage, keyed by phone"""

import sqlite3
from datetime import datetime
from typing import Optional

from ..models.verification import VerificationCode
from .database import Database
from .timestamps import to_db


def _row_to_code(row: Optional[sqlite3.Row]) -> Optional[VerificationCode]:
    if row is None:
        return None
    data = dict(row)
    data["verified"] = bool(data["verified"])
    return VerificationCode(**data)


class VerificationStore:
    def __init__(self, db: Database):
        self.db = db

    def created_since(self, phone: str, since: datetime) -> bool:
        """True if a code for this phone was issued at or after `since`"""
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM verification_codes WHERE phone = ? AND created_at >= ? LIMIT 1",
                (phone, to_db(since)),
            ).fetchone()
        return row is not None

    def replace_for_phone(self, code: VerificationCode) -> VerificationCode:
        """Drop every earlier code for the phone and store the new one atomically"""
        with self.db.connection() as conn:
            conn.execute("DELETE FROM verification_codes WHERE phone = ?", (code.phone,))
            conn.execute(
                "INSERT INTO verification_codes (id, phone, code, verified, expires_at, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    code.id,
                    code.phone,
                    code.code,
                    1 if code.verified else 0,
                    to_db(code.expires_at),
                    to_db(code.created_at),
                ),
            )
        return code

    def find_match(self, phone: str, code: str) -> Optional[VerificationCode]:
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM verification_codes WHERE phone = ? AND code = ? "
                "ORDER BY created_at DESC LIMIT 1",
                (phone, code),
            ).fetchone()
        return _row_to_code(row)

    def find_verified(self, phone: str) -> Optional[VerificationCode]:
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM verification_codes WHERE phone = ? AND verified = 1 "
                "ORDER BY created_at DESC LIMIT 1",
                (phone,),
            ).fetchone()
        return _row_to_code(row)

    def mark_verified(self, code_id: str) -> None:
        with self.db.connection() as conn:
            conn.execute("UPDATE verification_codes SET verified = 1 WHERE id = ?", (code_id,))

    def delete(self, code_id: str) -> None:
        with self.db.connection() as conn:
            conn.execute("DELETE FROM verification_codes WHERE id = ?", (code_id,))

    def list_for_phone(self, phone: str) -> list[VerificationCode]:
        with self.db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM verification_codes WHERE phone = ? ORDER BY created_at", (phone,)
            ).fetchall()
        return [_row_to_code(row) for row in rows]

    def purge_expired(self, now: datetime) -> int:
        with self.db.connection() as conn:
            cur = conn.execute(
                "DELETE FROM verification_codes WHERE expires_at < ?", (to_db(now),)
            )
        return cur.rowcount
