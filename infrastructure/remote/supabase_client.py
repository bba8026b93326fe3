"""
Supabase State Client
=====================

Reads and writes the device-state record through Supabase's PostgREST API.

The table holds one row per device, keyed by ``id``:

    GET   {url}/rest/v1/{table}?select=*&id=eq.{device_id}
    PATCH {url}/rest/v1/{table}?id=eq.{device_id}    (Prefer: return=representation)

HTTP is done with a pooled ``requests.Session``. Each blocking call runs in a
worker thread via ``asyncio.to_thread`` so the session's event loop keeps
serving the other polling loop while one request is outstanding.

Status mapping:
    - connection errors, timeouts, 5xx   -> NetworkFailureError
    - 404, 406, empty result             -> NotFoundError
    - 409, 412                           -> ConflictError
    - any other 4xx                      -> RemoteStateError
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests
from pydantic import ValidationError

from infrastructure.remote.base import RemoteStateClient, UpdateFields
from plantbuddy.domain.exceptions import (
    ConfigurationError,
    ConflictError,
    InvalidRecordError,
    NetworkFailureError,
    NotFoundError,
    RemoteStateError,
)
from plantbuddy.schemas.device import DeviceId, DeviceState, DeviceStateUpdate

logger = logging.getLogger(__name__)


class SupabaseStateClient(RemoteStateClient):
    """Device-state store backed by a Supabase (PostgREST) table."""

    DEFAULT_TABLE = "sensor_data"
    DEFAULT_HTTP_TIMEOUT = 10.0  # seconds per request

    NOT_FOUND_STATUSES = frozenset({404, 406})
    CONFLICT_STATUSES = frozenset({409, 412})

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = DEFAULT_TABLE,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
        session: requests.Session | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Project URL, e.g. ``https://xyz.supabase.co``
            api_key: Anon or service key sent as ``apikey`` and bearer token
            table: Table holding the device-state rows
            http_timeout: Per-request timeout in seconds
            session: Optional pre-configured requests session
        """
        if not base_url:
            raise ConfigurationError("Supabase URL is not configured")
        if not api_key:
            raise ConfigurationError("Supabase API key is not configured")

        self.base_url = base_url.rstrip("/")
        self.table = table
        self.http_timeout = http_timeout

        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

        logger.info("Supabase state client initialized for %s (table=%s)", self.base_url, self.table)

    # =========================================================================
    # RemoteStateClient Implementation
    # =========================================================================

    async def fetch_state(self, device_id: DeviceId) -> DeviceState:
        rows = await asyncio.to_thread(
            self._request,
            "GET",
            device_id,
            params={"select": "*", "id": f"eq.{device_id}"},
        )
        if not rows:
            raise NotFoundError(f"No state record for device {device_id}", detail={"device_id": device_id})

        try:
            return DeviceState.model_validate(rows[0])
        except ValidationError as exc:
            raise InvalidRecordError(
                f"Malformed state record for device {device_id}",
                detail={"device_id": device_id, "errors": exc.errors(include_url=False)},
            ) from exc

    async def update_state(self, device_id: DeviceId, fields: UpdateFields) -> None:
        payload = DeviceStateUpdate.coerce(fields).to_payload()
        if not payload:
            logger.debug("Skipping empty update for device %s", device_id)
            return

        rows = await asyncio.to_thread(
            self._request,
            "PATCH",
            device_id,
            params={"id": f"eq.{device_id}"},
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise NotFoundError(f"No state record for device {device_id}", detail={"device_id": device_id})

        logger.debug("Updated device %s: %s", device_id, sorted(payload))

    def close(self) -> None:
        self._session.close()

    # =========================================================================
    # HTTP
    # =========================================================================

    def _table_url(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    def _request(
        self,
        method: str,
        device_id: DeviceId,
        *,
        params: dict[str, Any],
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        """Perform one blocking request and return the decoded row list."""
        detail = {"device_id": device_id, "method": method}
        try:
            response = self._session.request(
                method,
                self._table_url(),
                params=params,
                json=json,
                headers=headers,
                timeout=self.http_timeout,
            )
        except requests.exceptions.Timeout as exc:
            raise NetworkFailureError(f"Timed out after {self.http_timeout}s", detail=detail) from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkFailureError(f"Connection error: {exc}", detail=detail) from exc
        except requests.exceptions.RequestException as exc:
            raise NetworkFailureError(f"Request failed: {exc}", detail=detail) from exc

        self._raise_for_status(response, detail)

        try:
            payload = response.json()
        except ValueError as exc:
            raise InvalidRecordError("Response body is not JSON", detail=detail) from exc

        if isinstance(payload, dict):
            payload = [payload]
        if not isinstance(payload, list):
            raise InvalidRecordError(f"Unexpected response type {type(payload).__name__}", detail=detail)
        return payload

    def _raise_for_status(self, response: requests.Response, detail: dict[str, Any]) -> None:
        status = response.status_code
        if status < 400:
            return

        detail = {**detail, "status": status}
        message = self._error_message(response)

        if status in self.NOT_FOUND_STATUSES:
            raise NotFoundError(message, detail=detail)
        if status in self.CONFLICT_STATUSES:
            raise ConflictError(message, detail=detail)
        if status >= 500:
            raise NetworkFailureError(message, detail=detail)
        raise RemoteStateError(message, detail=detail)

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """PostgREST puts a human-readable reason under ``message``."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return f"HTTP {response.status_code}: {body['message']}"
        return f"HTTP {response.status_code}"
