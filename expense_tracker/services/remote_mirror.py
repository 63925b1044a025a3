"""
Remote Mirror Client.

Thin ``requests`` wrapper around the one remote collection resource the
user has configured (a mockapi.io-style REST collection)::

    GET    <endpoint>        -> JSON array of records
    POST   <endpoint>        -> created record, with server-assigned id
    DELETE <endpoint>/<id>   -> 2xx on success

Any non-2xx status or transport failure raises :class:`RemoteError`.
Nothing is retried and error bodies are not parsed.  The only method
that never raises is :meth:`RemoteMirrorClient.test_connection`, a
yes/no connectivity probe.

The endpoint lives in ``app_settings`` and falls back to
``AppConfig.DEFAULT_REMOTE_URL`` when unset.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote, urlsplit

import requests
from pydantic import ValidationError as PydanticValidationError

from expense_tracker.config import AppConfig
from expense_tracker.exceptions import InvalidConfigError, RemoteError
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.remote_record import RemoteRecord, RemoteRecordDraft
from expense_tracker.services.app_settings_service import AppSettingsService
from expense_tracker.services.base_service import BaseService

_ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https"})


def validate_endpoint_url(url: str) -> str:
    """Return *url* stripped if it is a well-formed absolute HTTP(S) URL.

    Raises:
        InvalidConfigError: empty input, missing scheme or host, embedded
            whitespace, or a scheme other than http/https.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidConfigError("The API URL must not be empty.")

    cleaned = url.strip()
    if any(ch.isspace() for ch in cleaned):
        raise InvalidConfigError(f"Invalid API URL: {cleaned!r}")

    try:
        parts = urlsplit(cleaned)
        # Accessing .port validates the port component.
        parts.port
    except ValueError as exc:
        raise InvalidConfigError(f"Invalid API URL: {cleaned!r}") from exc

    if parts.scheme.lower() not in _ALLOWED_SCHEMES or not parts.hostname:
        raise InvalidConfigError(
            f"Invalid API URL: {cleaned!r}. Use an absolute http(s) URL."
        )
    return cleaned


class RemoteMirrorClient(BaseService):
    """HTTP client for the remote record collection.

    Parameters
    ----------
    settings:
        Settings store holding the configured endpoint.
    config:
        Application configuration (default endpoint, HTTP timeout).
    logger:
        Structured logger instance.
    session:
        Optional pre-built ``requests.Session``; one is created otherwise.
    """

    def __init__(
        self,
        settings: AppSettingsService,
        config: AppConfig,
        logger: StructuredLogger,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(logger)
        self._settings = settings
        self._config = config
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    # ------------------------------------------------------------------
    # Endpoint configuration
    # ------------------------------------------------------------------

    def configured_endpoint(self) -> str:
        """Return the persisted endpoint, or the built-in default."""
        stored = self._settings.get_remote_endpoint()
        return stored or self._config.DEFAULT_REMOTE_URL

    def set_endpoint(self, url: str) -> None:
        """Validate and persist a new endpoint.

        Raises:
            InvalidConfigError: malformed URL, or the settings write failed.
        """
        cleaned = validate_endpoint_url(url)
        if not self._settings.set_remote_endpoint(cleaned):
            raise InvalidConfigError("Could not save the API URL.")
        self._logger.info("Remote endpoint set to %s", cleaned)

    def test_connection(self, url: Optional[str] = None) -> bool:
        """Probe *url* (default: the configured endpoint) with a GET.

        Returns ``True`` iff the response status is 2xx.  Never raises.
        """
        target = url if url is not None else self.configured_endpoint()
        try:
            response = self._session.get(
                target.strip(), timeout=self._config.HTTP_TIMEOUT_S,
            )
        except Exception as exc:
            self._logger.warning("Connection test to %s failed: %s", target, exc)
            return False

        ok = 200 <= response.status_code < 300
        if not ok:
            self._logger.warning(
                "Connection test to %s returned HTTP %d",
                target,
                response.status_code,
            )
        return ok

    # ------------------------------------------------------------------
    # Collection operations
    # ------------------------------------------------------------------

    def fetch_all(self, endpoint: Optional[str] = None) -> list[RemoteRecord]:
        """GET the whole remote collection."""
        url = endpoint or self.configured_endpoint()
        response = self._request("GET", url, action="fetch remote records")
        body = self._json(response, url, action="fetch remote records")

        if not isinstance(body, list):
            raise RemoteError(
                "Could not fetch remote records: expected a JSON array.",
                url=url,
                status_code=response.status_code,
            )
        try:
            return [RemoteRecord.model_validate(item) for item in body]
        except PydanticValidationError as exc:
            self._logger.error("Malformed remote record at %s: %s", url, exc)
            raise RemoteError(
                f"Could not fetch remote records: malformed record ({exc.error_count()} error(s)).",
                url=url,
                status_code=response.status_code,
            ) from exc

    def fetch_ids(self, endpoint: Optional[str] = None) -> list[str]:
        """GET the remote collection and return only the item ids.

        Other fields are not validated, so items this client could not
        parse as records can still be deleted.
        """
        url = endpoint or self.configured_endpoint()
        response = self._request("GET", url, action="fetch remote record ids")
        body = self._json(response, url, action="fetch remote record ids")

        if not isinstance(body, list):
            raise RemoteError(
                "Could not fetch remote record ids: expected a JSON array.",
                url=url,
                status_code=response.status_code,
            )

        ids: list[str] = []
        for item in body:
            item_id = item.get("id") if isinstance(item, dict) else None
            if isinstance(item_id, bool) or not isinstance(item_id, (str, int)):
                raise RemoteError(
                    f"Could not fetch remote record ids: item without an id: {item!r}",
                    url=url,
                    status_code=response.status_code,
                )
            ids.append(str(item_id))
        return ids

    def create(
        self,
        draft: RemoteRecordDraft,
        endpoint: Optional[str] = None,
    ) -> RemoteRecord:
        """POST one record; the server assigns its id."""
        url = endpoint or self.configured_endpoint()
        response = self._request(
            "POST", url, action="upload record", json=draft.to_payload(),
        )
        body = self._json(response, url, action="upload record")
        try:
            created = RemoteRecord.model_validate(body)
        except PydanticValidationError as exc:
            raise RemoteError(
                "Could not upload record: malformed response.",
                url=url,
                status_code=response.status_code,
            ) from exc
        self._logger.debug("Remote record created: %s", created.id)
        return created

    def delete(self, record_id: str, endpoint: Optional[str] = None) -> None:
        """DELETE one remote record by id."""
        base = endpoint or self.configured_endpoint()
        url = f"{base.rstrip('/')}/{quote(str(record_id), safe='')}"
        self._request("DELETE", url, action=f"delete remote record {record_id}")
        self._logger.debug("Remote record deleted: %s", record_id)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        url: str,
        *,
        action: str,
        **kwargs: object,
    ) -> requests.Response:
        try:
            response = self._session.request(
                method, url, timeout=self._config.HTTP_TIMEOUT_S, **kwargs,
            )
        except requests.RequestException as exc:
            self._logger.error("Failed to %s (%s %s): %s", action, method, url, exc)
            raise RemoteError(f"Could not {action}: {exc}", url=url) from exc

        if not 200 <= response.status_code < 300:
            self._logger.error(
                "Failed to %s (%s %s): HTTP %d",
                action,
                method,
                url,
                response.status_code,
            )
            raise RemoteError(
                f"Could not {action}: HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        return response

    def _json(self, response: requests.Response, url: str, *, action: str) -> object:
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteError(
                f"Could not {action}: response is not valid JSON.",
                url=url,
                status_code=response.status_code,
            ) from exc
