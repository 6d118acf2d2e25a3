"""User storage"""

import sqlite3
from typing import Any, Dict, List, Optional

from ..models.user import Role, User
from ..utils.exceptions import DuplicateError
from ..utils.logger import get_logger
from .database import Database
from .timestamps import to_db

logger = get_logger(__name__)

_UPDATABLE = {"email", "name", "password_hash", "role"}


def _like_pattern(term: str) -> str:
    """Substring pattern matching `term` literally"""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _row_to_user(row: Optional[sqlite3.Row]) -> Optional[User]:
    if row is None:
        return None
    return User(**dict(row))


def insert_user(conn: sqlite3.Connection, user: User) -> None:
    try:
        conn.execute(
            "INSERT INTO users (id, email, password_hash, name, role, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (user.id, user.email, user.password_hash, user.name, user.role.value, to_db(user.created_at)),
        )
    except sqlite3.IntegrityError:
        raise DuplicateError("Este email ya está registrado. Por favor, inicia sesión.")


class UserStore:
    def __init__(self, db: Database):
        self.db = db

    def create(self, user: User) -> User:
        with self.db.connection() as conn:
            insert_user(conn, user)
        logger.info("User created", user_id=user.id, role=user.role.value)
        return user

    def get_by_id(self, user_id: str) -> Optional[User]:
        with self.db.connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return _row_to_user(row)

    def get_by_email(self, email: str) -> Optional[User]:
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
            ).fetchone()
        return _row_to_user(row)

    def update(self, user_id: str, **fields: Any) -> Optional[User]:
        """Update the given columns; returns None if the user does not exist"""
        changes = {k: v for k, v in fields.items() if k in _UPDATABLE}
        if "role" in changes and isinstance(changes["role"], Role):
            changes["role"] = changes["role"].value
        if changes:
            assignments = ", ".join(f"{column} = ?" for column in changes)
            try:
                with self.db.connection() as conn:
                    conn.execute(
                        f"UPDATE users SET {assignments} WHERE id = ?",
                        (*changes.values(), user_id),
                    )
            except sqlite3.IntegrityError:
                raise DuplicateError("Este email ya está en uso")
        return self.get_by_id(user_id)

    def list_customers(self, search: str = "") -> List[Dict[str, Any]]:
        """Customers with their booking count and most recent booking"""
        query = (
            "SELECT u.*, "
            "(SELECT COUNT(*) FROM bookings b WHERE b.user_id = u.id) AS total_bookings "
            "FROM users u WHERE u.role = ?"
        )
        params: list = [Role.CUSTOMER.value]
        if search:
            query += " AND (u.name LIKE ? ESCAPE '\\' OR u.email LIKE ? ESCAPE '\\')"
            like = _like_pattern(search)
            params.extend([like, like])
        query += " ORDER BY u.created_at DESC"

        with self.db.connection() as conn:
            rows = conn.execute(query, params).fetchall()
            customers = []
            for row in rows:
                last = conn.execute(
                    "SELECT created_at, status FROM bookings WHERE user_id = ? "
                    "ORDER BY created_at DESC LIMIT 1",
                    (row["id"],),
                ).fetchone()
                customers.append({
                    "id": row["id"],
                    "name": row["name"],
                    "email": row["email"],
                    "createdAt": row["created_at"],
                    "totalBookings": row["total_bookings"],
                    "lastBooking": (
                        {"createdAt": last["created_at"], "status": last["status"]} if last else None
                    ),
                })
        return customers
