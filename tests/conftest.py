from __future__ import annotations

import io
import itertools
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from expense_tracker import config as config_module
from expense_tracker.config import AppConfig
from expense_tracker.database import DatabaseManager
from expense_tracker.logger import StructuredLogger
from expense_tracker.repositories.record_repository import RecordRepository
from expense_tracker.services.app_settings_service import AppSettingsService
from expense_tracker.services.remote_mirror import RemoteMirrorClient

ENDPOINT = "https://example.test/api/records"


class FakeClock:
    """Returns strictly increasing UTC timestamps, one minute apart."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(minutes=1)
        return value

    def set(self, value: datetime) -> None:
        self.current = value


class FakeResponse:
    _INVALID = object()

    def __init__(self, status_code: int = 200, payload: object = None) -> None:
        self.status_code = status_code
        self._payload = payload

    @classmethod
    def invalid_json(cls, status_code: int = 200) -> "FakeResponse":
        return cls(status_code, cls._INVALID)

    def json(self) -> object:
        if self._payload is self._INVALID:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    """Stands in for ``requests.Session``; routes calls to *handler*."""

    def __init__(self, handler: Callable[..., FakeResponse]) -> None:
        self.headers: dict[str, str] = {}
        self.calls: list[tuple[str, str, dict[str, object]]] = []
        self._handler = handler
        self._lock = threading.Lock()

    def request(self, method: str, url: str, **kwargs: object) -> FakeResponse:
        with self._lock:
            self.calls.append((method, url, kwargs))
        return self._handler(method, url, **kwargs)

    def get(self, url: str, **kwargs: object) -> FakeResponse:
        return self.request("GET", url, **kwargs)


class FakeRemoteCollection:
    """In-memory mockapi-style collection served at ``ENDPOINT``."""

    def __init__(self, endpoint: str = ENDPOINT) -> None:
        self.endpoint = endpoint
        self.items: dict[str, dict[str, object]] = {}
        self.fail_delete_ids: set[str] = set()
        self.fail_create_titles: set[str] = set()
        self.fail_list: bool = False
        self.events: list[str] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def seed(self, title: str, amount: float, kind: str) -> str:
        item_id = str(next(self._ids))
        self.items[item_id] = {
            "id": item_id,
            "title": title,
            "amount": amount,
            "type": kind,
            "createdAt": "2025-10-01T08:00:00.000Z",
        }
        return item_id

    def __call__(self, method: str, url: str, **kwargs: object) -> FakeResponse:
        with self._lock:
            if url == self.endpoint and method == "GET":
                if self.fail_list:
                    return FakeResponse(503)
                return FakeResponse(200, list(self.items.values()))

            if url == self.endpoint and method == "POST":
                body = dict(kwargs["json"])  # type: ignore[arg-type]
                self.events.append("create")
                if body["title"] in self.fail_create_titles:
                    return FakeResponse(500)
                item_id = str(next(self._ids))
                body["id"] = item_id
                self.items[item_id] = body
                return FakeResponse(201, body)

            if url.startswith(self.endpoint + "/") and method == "DELETE":
                item_id = url.rsplit("/", 1)[1]
                self.events.append("delete")
                if item_id in self.fail_delete_ids or item_id not in self.items:
                    return FakeResponse(404 if item_id not in self.items else 500)
                del self.items[item_id]
                return FakeResponse(200, {})

            return FakeResponse(405)


@pytest.fixture(autouse=True)
def app_config(tmp_path, monkeypatch) -> AppConfig:
    cfg = AppConfig(
        DATABASE_PATH=tmp_path / "expense_tracker_test.db",
        DEFAULT_REMOTE_URL=ENDPOINT,
        LOG_FILE="",
    )
    monkeypatch.setattr(config_module, "_config_instance", cfg)
    return cfg


@pytest.fixture()
def logger() -> StructuredLogger:
    return StructuredLogger(name="tests", stream=io.StringIO(), log_file="")


@pytest.fixture()
def db(app_config, logger):
    manager = DatabaseManager(sqlite_path=app_config.DATABASE_PATH, logger=logger)
    try:
        yield manager
    finally:
        manager.close()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 11, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def repo(db, logger, clock) -> RecordRepository:
    repository = RecordRepository(db=db, logger=logger, clock=clock)
    repository.init()
    return repository


@pytest.fixture()
def settings(repo, db, logger) -> AppSettingsService:
    return AppSettingsService(db=db, logger=logger)


@pytest.fixture()
def endpoint() -> str:
    return ENDPOINT


@pytest.fixture()
def fake_response() -> type[FakeResponse]:
    return FakeResponse


@pytest.fixture()
def remote_collection() -> FakeRemoteCollection:
    return FakeRemoteCollection()


@pytest.fixture()
def make_client(settings, app_config, logger):
    def _make(handler: Optional[Callable[..., FakeResponse]] = None) -> tuple[RemoteMirrorClient, FakeSession]:
        session = FakeSession(handler or (lambda method, url, **kw: FakeResponse(200, [])))
        client = RemoteMirrorClient(
            settings=settings,
            config=app_config,
            logger=logger,
            session=session,  # type: ignore[arg-type]
        )
        return client, session

    return _make
