"""
Session persistence, one independent entry per auth domain.

Portals receive a SessionStore instead of touching storage directly, so
persistence stays a single testable boundary.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ValidationError

from .connection import DatabaseConnection, DatabaseError
from .models import Session, SessionDomain, SessionRecord

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Keyed session persistence: load/save/clear per domain."""

    @abstractmethod
    def load(self, domain: SessionDomain) -> Optional[Session]:
        """Return the saved session for ``domain``, or None if absent or unreadable.

        Never raises.
        """
        pass

    @abstractmethod
    def save(self, domain: SessionDomain, session: Session) -> None:
        """Persist ``session`` for ``domain`` in a single write, replacing any prior one."""
        pass

    @abstractmethod
    def clear(self, domain: SessionDomain) -> None:
        """Remove the saved session for ``domain``."""
        pass


class SQLiteSessionStore(SessionStore):
    """SessionStore backed by the ``Session`` table."""

    def __init__(self, db: DatabaseConnection):
        self.db = db
        self.db.initialize_database()

    def load(self, domain: SessionDomain) -> Optional[Session]:
        try:
            row = self.db.fetchone(
                "SELECT payload FROM Session WHERE key = ?",
                (domain.storage_key,)
            )
        except DatabaseError as e:
            logger.error(f"Failed to read {domain.value} session: {e}")
            return None

        if row is None:
            return None

        try:
            record = SessionRecord.model_validate_json(row["payload"])
        except ValidationError as e:
            # Corrupt or partial records (user without token or vice versa) count as absent
            logger.warning(f"Discarding unreadable {domain.value} session: {e.error_count()} errors")
            return None

        return Session(role=domain, principal=record.user, token=record.token)

    def save(self, domain: SessionDomain, session: Session) -> None:
        if session.role != domain:
            raise ValueError(f"Cannot save a {session.role.value} session under {domain.value}")

        payload = session.to_record().model_dump_json()
        now = datetime.now(timezone.utc).isoformat()
        self.db.execute_query("""
            INSERT INTO Session (key, payload, updatedAt) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET payload = excluded.payload, updatedAt = excluded.updatedAt
        """, (domain.storage_key, payload, now))
        logger.info(f"Saved {domain.value} session for {session.principal.email}")

    def clear(self, domain: SessionDomain) -> None:
        cursor = self.db.execute_query(
            "DELETE FROM Session WHERE key = ?",
            (domain.storage_key,)
        )
        if cursor.rowcount:
            logger.info(f"Cleared {domain.value} session")

    def keys(self) -> List[str]:
        """Storage keys currently holding a session."""
        return [row["key"] for row in self.db.fetchall("SELECT key FROM Session ORDER BY key")]
