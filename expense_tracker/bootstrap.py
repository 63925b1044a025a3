"""
Expense Tracker Bootstrap.

Builds the entire dependency graph via constructor injection and
initialises the local SQLite schema.  The presentation layer calls
:func:`bootstrap` once at startup; every subsystem is wired here, with no
module-level globals.

Usage::

    from expense_tracker.bootstrap import bootstrap

    db, services = bootstrap()
    try:
        services["record_repository"].add("Lunch", 50000, "expense")
    finally:
        db.close()
"""

from __future__ import annotations

import atexit
from typing import Optional

from expense_tracker.config import AppConfig, get_config
from expense_tracker.database import DatabaseManager
from expense_tracker.logger import StructuredLogger, get_logger
from expense_tracker.schema import initialize_schema
from expense_tracker.services import ServiceContainer, create_services


def bootstrap(
    config: Optional[AppConfig] = None,
) -> tuple[DatabaseManager, ServiceContainer]:
    """Open the database, bring its schema up to date, and wire services.

    The caller owns the returned ``DatabaseManager`` and should close it
    on shutdown; an ``atexit`` hook closes it too on interpreter exit.
    """
    logger: StructuredLogger = get_logger("bootstrap")
    logger.info("Starting Expense Tracker core...")

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = config or get_config()

    # ------------------------------------------------------------------
    # 2. Database Manager (local SQLite, the source of truth)
    # ------------------------------------------------------------------
    db = DatabaseManager(
        sqlite_path=config.DATABASE_PATH,
        logger=StructuredLogger(name="database"),
    )
    # DatabaseManager.close() is idempotent.
    atexit.register(db.close)

    # ------------------------------------------------------------------
    # 3. SQLite Schema Initialization (idempotent)
    # ------------------------------------------------------------------
    try:
        initialize_schema(db.sqlite, StructuredLogger(name="schema"))
    except Exception:
        db.close()
        raise

    # ------------------------------------------------------------------
    # 4. Service Container (single composition root)
    # ------------------------------------------------------------------
    services = create_services(db=db, config=config)

    logger.info("Expense Tracker core ready.")
    return db, services
