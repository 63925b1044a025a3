"""
Business Logic Services Package.

Services depend on the Repository layer for data access.  The
``create_services()`` factory wires every repository and service together,
returning a typed dict that the presentation layer can consume without
knowing the internal dependency graph.  The record search helpers are
re-exported here for the list and trash screens.
"""

from __future__ import annotations

from typing import Optional, TypedDict

import requests

from expense_tracker.config import AppConfig
from expense_tracker.database import DatabaseManager
from expense_tracker.logger import StructuredLogger, get_logger
from expense_tracker.repositories.record_repository import RecordRepository
from expense_tracker.services.app_settings_service import AppSettingsService
from expense_tracker.services.record_filters import filter_records, matches_query
from expense_tracker.services.remote_mirror import RemoteMirrorClient
from expense_tracker.services.statistics import StatisticsService
from expense_tracker.services.sync_service import SyncService

__all__ = [
    "ServiceContainer",
    "create_services",
    "filter_records",
    "matches_query",
]


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    record_repository: RecordRepository
    app_settings_service: AppSettingsService
    remote_mirror_client: RemoteMirrorClient
    sync_service: SyncService
    statistics_service: StatisticsService


def create_services(
    db: DatabaseManager,
    config: AppConfig,
    logger: Optional[StructuredLogger] = None,
    session: Optional[requests.Session] = None,
) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.  The
    application entry-point calls this once at startup, after the schema
    has been initialised, and passes the returned dict to its views.

    Args:
        db: Initialised DatabaseManager.
        config: Application configuration.
        logger: Shared structured logger; ``get_logger("services")`` if omitted.
        session: Optional ``requests.Session`` for the remote mirror client.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = logger or get_logger("services")

    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    record_repo = RecordRepository(db=db, logger=logger)

    # ------------------------------------------------------------------
    # 2. Infrastructure -- persistent app settings
    # ------------------------------------------------------------------
    app_settings_service = AppSettingsService(db=db, logger=logger)

    # ------------------------------------------------------------------
    # 3. Leaf services
    # ------------------------------------------------------------------
    remote_mirror_client = RemoteMirrorClient(
        settings=app_settings_service,
        config=config,
        logger=logger,
        session=session,
    )
    statistics_service = StatisticsService(
        repo=record_repo,
        config=config,
        logger=logger,
    )

    # ------------------------------------------------------------------
    # 4. Orchestration services
    # ------------------------------------------------------------------
    sync_service = SyncService(
        repo=record_repo,
        remote=remote_mirror_client,
        logger=logger,
    )

    return ServiceContainer(
        record_repository=record_repo,
        app_settings_service=app_settings_service,
        remote_mirror_client=remote_mirror_client,
        sync_service=sync_service,
        statistics_service=statistics_service,
    )
