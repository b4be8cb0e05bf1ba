# cheatsync HTTP Sync Service
# Reference backend adapter speaking the JSON push/pull protocol

import logging
from datetime import datetime
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter

from cheatsync.sync.conflicts import ConflictItem, Resolution
from cheatsync.sync.errors import SyncServiceError
from cheatsync.sync.service import SyncService
from cheatsync.sync.snapshot import Snapshot, parse_timestamp


class HttpSyncService(SyncService):
    """
    Sync backend reached over HTTP.

    Endpoints (relative to ``endpoint``):
    - ``POST /push``      store a snapshot
    - ``GET  /pull``      fetch the snapshot; 404 means no remote data yet
    - ``GET  /last-sync`` ``{"last_sync": <timestamp>}``
    - ``POST /resolve``   ``{"item": <conflict>, "resolution": <code>}``

    Every request carries a bearer token and is bounded by ``timeout``.
    There is no retry: a failed request fails the call.
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_POOL_CONNECTIONS = 4
    DEFAULT_POOL_MAXSIZE = 4

    def __init__(self, endpoint: str, api_key: str, timeout: float = DEFAULT_TIMEOUT):
        """
        Initialize the client.

        Args:
            endpoint: Base URL of the sync backend.
            api_key: Bearer token for authentication.
            timeout: Per-request timeout in seconds.
        """
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/json",
                "Authorization": f"Bearer {api_key}",
            }
        )

        adapter = HTTPAdapter(
            pool_connections=self.DEFAULT_POOL_CONNECTIONS,
            pool_maxsize=self.DEFAULT_POOL_MAXSIZE,
        )
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.endpoint}{path}"
        kwargs.setdefault("timeout", self.timeout)
        self.logger.debug("%s %s", method, url)
        try:
            return self._session.request(method, url, **kwargs)
        except requests.exceptions.RequestException as e:
            raise SyncServiceError(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _check(response: requests.Response, operation: str) -> None:
        if 200 <= response.status_code < 300:
            return
        body = response.text
        raise SyncServiceError(
            f"{operation} failed ({response.status_code}): {body}",
            status_code=response.status_code,
            body=body,
        )

    @staticmethod
    def _json(response: requests.Response, operation: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise SyncServiceError(f"{operation} returned invalid JSON: {e}", body=response.text) from e

    # -------------------------------------------------------------------------
    # SyncService
    # -------------------------------------------------------------------------

    def push(self, snapshot: Snapshot) -> None:
        response = self._request("POST", "/push", json=snapshot.to_dict())
        self._check(response, "push")
        self.logger.info("Pushed snapshot %s", snapshot.checksum[:12])

    def pull(self) -> Snapshot:
        response = self._request("GET", "/pull")
        if response.status_code == 404:
            self.logger.info("No remote snapshot yet, starting from empty")
            return Snapshot.empty()
        self._check(response, "pull")

        data = self._json(response, "pull")
        if data is not None and not isinstance(data, dict):
            raise SyncServiceError("pull returned an unexpected payload", body=response.text)
        try:
            return Snapshot.from_dict(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise SyncServiceError(f"pull returned a malformed snapshot: {e}", body=response.text) from e

    def get_last_sync(self) -> Optional[datetime]:
        response = self._request("GET", "/last-sync")
        self._check(response, "last-sync")

        data = self._json(response, "last-sync")
        if not isinstance(data, dict):
            raise SyncServiceError("last-sync returned an unexpected payload", body=response.text)
        try:
            return parse_timestamp(data.get("last_sync"))
        except ValueError as e:
            raise SyncServiceError(f"last-sync returned an invalid timestamp: {e}", body=response.text) from e

    def resolve_conflict(self, item: ConflictItem, resolution: Resolution) -> None:
        payload = {"item": item.to_dict(), "resolution": resolution.code}
        response = self._request("POST", "/resolve", json=payload)
        self._check(response, "conflict resolution")

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the client and release connection pool resources."""
        self._session.close()

    def __enter__(self) -> "HttpSyncService":
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> None:
        self.close()
