import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from app_errors import StoreError
from db_models import PRIMARY, Contact
from db_setup import execute_query

logger = logging.getLogger(__name__)

# Contact field -> Contact table column
CONTACT_COLUMNS = {
    "id": "id",
    "phoneNumber": "phoneNumber",
    "email": "email",
    "linkedId": "linkedId",
    "linkPrecedence": "linkPrecedence",
    "createdAt": "createdAt",
    "updatedAt": "updatedAt",
    "deletedAt": "deletedAt",
}

UPDATABLE_FIELDS = ("linkPrecedence", "linkedId")

_SELECT = "SELECT {columns} FROM Contact WHERE deletedAt IS NULL AND {where} ORDER BY createdAt ASC, id ASC"


def _now():
    return datetime.now().isoformat(timespec="microseconds")


def _to_contact(row: dict) -> Contact:
    return Contact(**{field: row[column] for field, column in CONTACT_COLUMNS.items()})


class ContactStore:
    """Contact lookups and writes against the SQLite Contact table.

    Soft-deleted rows are invisible to every read. Results come back oldest
    first, ties broken by id.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _run(self, query: str, params=None):
        try:
            return execute_query(self.db_path, query, params)
        except sqlite3.Error as exc:
            logger.error("Contact store query failed: %s", exc)
            raise StoreError(str(exc)) from exc

    def _select(self, where: str, params) -> List[Contact]:
        columns = ", ".join(CONTACT_COLUMNS.values())
        rows = self._run(_SELECT.format(columns=columns, where=where), params)
        return [_to_contact(row) for row in rows]

    def find_by_phone_and_email(self, phone: str, email: str) -> List[Contact]:
        return self._select("phoneNumber = ? AND email = ?", (phone, email))

    def find_by_phone(self, phone: str) -> List[Contact]:
        return self._select("phoneNumber = ?", (phone,))

    def find_by_email(self, email: str) -> List[Contact]:
        return self._select("email = ?", (email,))

    def find_by_id(self, contact_id: int) -> Optional[Contact]:
        contacts = self._select("id = ?", (contact_id,))
        return contacts[0] if contacts else None

    def find_secondaries_of(self, primary_id: int) -> List[Contact]:
        return self._select("linkPrecedence = 'secondary' AND linkedId = ?", (primary_id,))

    def insert(
        self,
        email: Optional[str] = None,
        phoneNumber: Optional[str] = None,
        linkPrecedence: str = PRIMARY,
        linkedId: Optional[int] = None,
        contact_id: Optional[int] = None,
    ) -> Contact:
        now = _now()

        if contact_id is not None:
            self._run("""
                INSERT INTO Contact (id, phoneNumber, email, linkedId, linkPrecedence, createdAt, updatedAt)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (contact_id, phoneNumber, email, linkedId, linkPrecedence, now, now))
            new_id = contact_id
        else:
            new_id = self._run("""
                INSERT INTO Contact (phoneNumber, email, linkedId, linkPrecedence, createdAt, updatedAt)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (phoneNumber, email, linkedId, linkPrecedence, now, now))

        contact = self.find_by_id(new_id)
        if contact is None:
            raise StoreError(f"Contact {new_id} not readable after insert")
        return contact

    def update_by_id(self, contact_id: int, **fields) -> Contact:
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update contact fields: {sorted(unknown)}")
        if not fields:
            raise ValueError("No contact fields to update")

        assignments = [f"{CONTACT_COLUMNS[name]} = ?" for name in fields]
        params = list(fields.values())
        assignments.append("updatedAt = ?")
        params.extend([_now(), contact_id])

        self._run(
            f"UPDATE Contact SET {', '.join(assignments)} WHERE id = ? AND deletedAt IS NULL",
            tuple(params),
        )

        contact = self.find_by_id(contact_id)
        if contact is None:
            raise StoreError(f"Contact {contact_id} not found for update")
        return contact
