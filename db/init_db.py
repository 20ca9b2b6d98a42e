"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.connection import transaction
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- Obligations table: one row per tracked bill / subscription / one-off due.
-- due_at is local wall-clock time, so it is stored without a zone.
CREATE TABLE IF NOT EXISTS obligations (
    id                  VARCHAR(32) PRIMARY KEY,
    title               VARCHAR(200) NOT NULL CHECK (length(trim(title)) > 0),
    amount              NUMERIC(12,2) CHECK (amount IS NULL OR amount >= 0),
    currency            CHAR(3) NOT NULL,
    due_at              TIMESTAMP NOT NULL,
    frequency           VARCHAR(10) NOT NULL
                        CHECK (frequency IN ('one-time', 'weekly', 'monthly', 'yearly')),
    notification_handle VARCHAR(64),
    notes               TEXT,
    created_at          TIMESTAMP NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_obligations_due ON obligations(due_at);
"""


def create_tables() -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    try:
        with transaction() as cur:
            cur.execute(SCHEMA_SQL)
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        logger.error(f"Failed to initialize schema: {e}")
        raise


if __name__ == "__main__":
    from db.connection import init_pool
    init_pool()
    create_tables()
    print("✅ Database schema created successfully.")
