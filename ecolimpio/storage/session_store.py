"""Session storage. token and access_hash are both UNIQUE columns."""

import sqlite3
from datetime import datetime
from typing import Optional

from ..models.user import Session
from ..utils.exceptions import DuplicateError
from .database import Database
from .timestamps import to_db


def _row_to_session(row: Optional[sqlite3.Row]) -> Optional[Session]:
    if row is None:
        return None
    return Session(**dict(row))


class SessionStore:
    def __init__(self, db: Database):
        self.db = db

    def hash_in_use(self, access_hash: str) -> bool:
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM sessions WHERE access_hash = ?", (access_hash,)
            ).fetchone()
        return row is not None

    def create(self, session: Session) -> Session:
        """Insert a session; DuplicateError if the token or hash is taken"""
        try:
            with self.db.connection() as conn:
                conn.execute(
                    "INSERT INTO sessions (id, user_id, token, access_hash, expires_at, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        session.id,
                        session.user_id,
                        session.token,
                        session.access_hash,
                        to_db(session.expires_at),
                        to_db(session.created_at),
                    ),
                )
        except sqlite3.IntegrityError:
            raise DuplicateError("Session token or access hash already in use")
        return session

    def find(self, token: str, access_hash: str) -> Optional[Session]:
        """Both credentials must belong to the same row"""
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM sessions WHERE token = ? AND access_hash = ?",
                (token, access_hash),
            ).fetchone()
        return _row_to_session(row)

    def find_by_token(self, token: str) -> Optional[Session]:
        with self.db.connection() as conn:
            row = conn.execute("SELECT * FROM sessions WHERE token = ?", (token,)).fetchone()
        return _row_to_session(row)

    def delete(self, session_id: str) -> None:
        with self.db.connection() as conn:
            conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))

    def delete_by_token(self, token: str) -> int:
        with self.db.connection() as conn:
            cur = conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
        return cur.rowcount

    def purge_expired(self, now: datetime) -> int:
        with self.db.connection() as conn:
            cur = conn.execute("DELETE FROM sessions WHERE expires_at < ?", (to_db(now),))
        return cur.rowcount

    def delete_all(self) -> int:
        with self.db.connection() as conn:
            cur = conn.execute("DELETE FROM sessions")
        return cur.rowcount

    def count(self) -> int:
        with self.db.connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM sessions").fetchone()[0]
