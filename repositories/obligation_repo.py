"""
repositories/obligation_repo.py
-------------------------------
Data access layer for payment obligations.
All SQL queries related to the `obligations` table live here.
"""

from abc import ABC, abstractmethod
from typing import Optional

from db.connection import transaction
from models.obligation import Frequency, Obligation
from utils.logger import get_logger

logger = get_logger(__name__)


class ObligationStore(ABC):
    """
    Persistence contract used by the scheduling engine.

    Implementations must give read-your-writes consistency within the process.
    Failures are raised unchanged; the engine does not interpret them.
    """

    @abstractmethod
    def list_all(self) -> list[Obligation]:
        """All obligations, ordered by due_at ascending."""

    @abstractmethod
    def get(self, obligation_id: str) -> Optional[Obligation]:
        ...

    @abstractmethod
    def upsert(self, obligation: Obligation) -> None:
        ...

    @abstractmethod
    def delete(self, obligation_id: str) -> None:
        ...


class ObligationRepository(ObligationStore):
    """PostgreSQL-backed store for the obligations table."""

    _COLUMNS = (
        "id, title, amount, currency, due_at, frequency, "
        "notification_handle, notes, created_at"
    )

    # ── READ ──────────────────────────────────────────────

    def list_all(self) -> list[Obligation]:
        sql = f"SELECT {self._COLUMNS} FROM obligations ORDER BY due_at ASC, created_at ASC;"
        with transaction() as cur:
            cur.execute(sql)
            return [self._row_to_obligation(r) for r in cur.fetchall()]

    def get(self, obligation_id: str) -> Optional[Obligation]:
        """Fetch a single obligation by ID."""
        sql = f"SELECT {self._COLUMNS} FROM obligations WHERE id = %s;"
        with transaction() as cur:
            cur.execute(sql, (obligation_id,))
            row = cur.fetchone()
            return self._row_to_obligation(row) if row else None

    # ── WRITE ─────────────────────────────────────────────

    def upsert(self, obligation: Obligation) -> None:
        """
        Insert a new obligation or overwrite the mutable fields of an existing one.

        Only due_at, notification_handle and notes change on conflict;
        the identity, currency, frequency and created_at are immutable.
        """
        sql = """
            INSERT INTO obligations
                (id, title, amount, currency, due_at, frequency,
                 notification_handle, notes, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, COALESCE(%s, NOW()))
            ON CONFLICT (id) DO UPDATE SET
                due_at = EXCLUDED.due_at,
                notification_handle = EXCLUDED.notification_handle,
                notes = EXCLUDED.notes
            RETURNING created_at;
        """
        try:
            with transaction() as cur:
                cur.execute(sql, (
                    obligation.id, obligation.title, obligation.amount,
                    obligation.currency, obligation.due_at, obligation.frequency.value,
                    obligation.notification_handle, obligation.notes,
                    obligation.created_at,
                ))
                obligation.created_at = cur.fetchone()["created_at"]
            logger.debug(f"Upserted obligation '{obligation.title}' #{obligation.id}")
        except Exception as e:
            logger.error(f"Failed to upsert obligation #{obligation.id}: {e}")
            raise

    def delete(self, obligation_id: str) -> None:
        sql = "DELETE FROM obligations WHERE id = %s;"
        try:
            with transaction() as cur:
                cur.execute(sql, (obligation_id,))
                deleted = cur.rowcount > 0
            if deleted:
                logger.info(f"Deleted obligation #{obligation_id}")
        except Exception as e:
            logger.error(f"Failed to delete obligation #{obligation_id}: {e}")
            raise

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_obligation(row: dict) -> Obligation:
        """Convert a database row to an Obligation domain object."""
        return Obligation(
            id=row["id"],
            title=row["title"],
            amount=row["amount"],
            currency=row["currency"],
            due_at=row["due_at"],
            frequency=Frequency(row["frequency"]),
            notification_handle=row["notification_handle"],
            notes=row["notes"],
            created_at=row["created_at"],
        )
