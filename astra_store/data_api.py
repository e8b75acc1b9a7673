"""Minimal synchronous client for the Astra DB Data API.

Every operation is a JSON command POSTed to either the keyspace endpoint
(``/api/json/v1/{namespace}``) or a collection endpoint
(``/api/json/v1/{namespace}/{collection}``).  Command-level failures come
back as an ``errors`` array in an HTTP 200 response; both those and
transport errors are raised as ``BackendReadError``/``BackendWriteError``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from contracts.config import AstraStoreConfig
from contracts.errors import BackendError, BackendReadError, BackendWriteError

logger = logging.getLogger(__name__)

API_PATH = "api/json/v1"


class DataAPIClient:
    """Keyspace-scoped Data API client sharing one ``httpx.Client``."""

    def __init__(
        self,
        token: str,
        api_endpoint: str,
        namespace: str = "default_keyspace",
        *,
        timeout: httpx.Timeout | float = 30.0,
        proxy: str | None = None,
        enable_logging: bool = False,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._namespace = namespace
        self._base_url = f"{api_endpoint.rstrip('/')}/{API_PATH}/{namespace}"
        event_hooks = {"request": [_log_request], "response": [_log_response]} if enable_logging else {}
        self._http = httpx.Client(
            headers={"Token": token, "Accept": "application/json"},
            timeout=timeout,
            proxy=proxy,
            transport=transport,
            event_hooks=event_hooks,
        )

    @classmethod
    def from_config(
        cls, config: AstraStoreConfig, *, transport: httpx.BaseTransport | None = None
    ) -> DataAPIClient:
        http = config.http_client
        return cls(
            config.token,
            config.api_endpoint,
            config.namespace,
            timeout=httpx.Timeout(
                http.read_timeout_seconds, connect=http.connect_timeout_seconds
            ),
            proxy=http.proxy,
            enable_logging=config.enable_logging,
            transport=transport,
        )

    @property
    def namespace(self) -> str:
        return self._namespace

    # ── commands ──────────────────────────────────────────────────────

    def command(
        self,
        payload: dict[str, Any],
        *,
        collection: str | None = None,
        error_cls: type[BackendError] = BackendReadError,
    ) -> dict[str, Any]:
        """POST a single Data API command and return the decoded response."""
        name = next(iter(payload))
        url = f"{self._base_url}/{collection}" if collection else self._base_url
        try:
            resp = self._http.post(url, json=payload)
        except httpx.HTTPError as exc:
            raise error_cls(
                f"Data API {name} request failed: {exc}",
                details={"command": name, "collection": collection},
            ) from exc

        if resp.status_code != 200:
            raise error_cls(
                f"Data API {name} failed ({resp.status_code}): {resp.text}",
                code=f"HTTP_{resp.status_code}",
                details={"command": name, "collection": collection},
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise error_cls(
                f"Data API {name} returned a non-JSON response: {resp.text[:200]}",
                code="INVALID_RESPONSE",
                details={"command": name, "collection": collection},
            ) from exc

        errors = body.get("errors") or []
        if errors:
            messages = "; ".join(e.get("message", "unknown error") for e in errors)
            raise error_cls(
                f"Data API {name} returned errors: {messages}",
                code=errors[0].get("errorCode"),
                details={"command": name, "collection": collection, "errors": errors},
            )
        return body

    def list_collections(self) -> list[dict[str, Any]]:
        """Return collection descriptors (name and options)."""
        body = self.command({"findCollections": {"options": {"explain": True}}})
        return body.get("status", {}).get("collections", [])

    def list_collection_names(self) -> list[str]:
        return [c["name"] for c in self.list_collections()]

    def create_collection(self, name: str, options: dict[str, Any]) -> DataAPICollection:
        self.command(
            {"createCollection": {"name": name, "options": options}},
            error_cls=BackendWriteError,
        )
        return DataAPICollection(self, name, options)

    def get_collection(self, name: str) -> DataAPICollection:
        return DataAPICollection(self, name)

    def close(self) -> None:
        self._http.close()


class DataAPICollection:
    """Handle on one collection; safe to share across worker threads."""

    def __init__(
        self,
        client: DataAPIClient,
        name: str,
        options: dict[str, Any] | None = None,
    ) -> None:
        self._client = client
        self._name = name
        self._options = options

    @property
    def name(self) -> str:
        return self._name

    def options(self) -> dict[str, Any]:
        """Collection definition options, fetched once and then reused."""
        if self._options is None:
            for descriptor in self._client.list_collections():
                if descriptor.get("name") == self._name:
                    self._options = descriptor.get("options") or {}
                    break
            else:
                self._options = {}
        return self._options

    def is_vectorized(self) -> bool:
        """True when a server-side embedding service is attached."""
        service = (self.options().get("vector") or {}).get("service") or {}
        return bool(service.get("provider"))

    def insert_many(self, records: list[dict[str, Any]], *, ordered: bool = False) -> list[Any]:
        body = self._client.command(
            {"insertMany": {"documents": records, "options": {"ordered": ordered}}},
            collection=self._name,
            error_cls=BackendWriteError,
        )
        return body.get("status", {}).get("insertedIds", [])

    def delete_one(self, filter: dict[str, Any]) -> int:
        body = self._client.command(
            {"deleteOne": {"filter": filter}},
            collection=self._name,
            error_cls=BackendWriteError,
        )
        return body.get("status", {}).get("deletedCount", 0)

    def delete_all(self) -> None:
        self._client.command(
            {"deleteMany": {"filter": {}}},
            collection=self._name,
            error_cls=BackendWriteError,
        )

    def find(
        self,
        filter: dict[str, Any] | None = None,
        *,
        limit: int | None = None,
        include_similarity: bool = False,
        sort: dict[str, Any] | None = None,
        projection: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        options: dict[str, Any] = {}
        if limit is not None:
            options["limit"] = limit
        if include_similarity:
            options["includeSimilarity"] = True

        find: dict[str, Any] = {"filter": filter or {}}
        if sort:
            find["sort"] = sort
        if projection:
            find["projection"] = projection
        if options:
            find["options"] = options

        body = self._client.command({"find": find}, collection=self._name)
        return body.get("data", {}).get("documents", [])


# ── request logging ──────────────────────────────────────────────────


def _log_request(request: httpx.Request) -> None:
    try:
        payload = json.loads(request.content or b"{}")
        command = next(iter(payload), "?")
    except ValueError:
        command = "?"
    logger.debug("Data API > %s %s [%s]", request.method, request.url.path, command)


def _log_response(response: httpx.Response) -> None:
    logger.debug(
        "Data API < %s %s (%s)",
        response.request.method,
        response.request.url.path,
        response.status_code,
    )
