"""Shared Supabase data access helpers."""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Iterable
from typing import Any

import httpx
from postgrest import APIError

from svj.config import settings
from svj.utils.errors import AppError, InvalidInputError, NotFoundError, StoreUnavailableError
from supabase import Client

logger = logging.getLogger(__name__)


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def execute(self, query, default: Any = None) -> Any:
        """Execute a Supabase query and normalize API errors."""
        started = time.perf_counter()
        try:
            response = query.execute()
        except APIError as exc:
            message = getattr(exc, "message", "Database request failed")
            raise InvalidInputError(str(message)) from exc
        except httpx.TransportError as exc:
            logger.warning("Supabase transport failure: %s", exc)
            raise StoreUnavailableError() from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        threshold_ms = settings.slow_query_log_threshold_ms
        if threshold_ms > 0 and elapsed_ms >= threshold_ms:
            logger.warning("Slow Supabase query %.1fms", elapsed_ms)
        data = response.data
        return default if data is None and default is not None else data

    def select_one(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        not_found_label: str | None = None,
        not_found_error: AppError | None = None,
    ) -> dict[str, Any]:
        """Select a single row and raise when missing.

        ``not_found_error`` takes precedence over the generic
        ``NotFoundError`` built from ``not_found_label``.
        """
        query = self.client.table(table).select(columns)
        for key, value in filters.items():
            query = query.eq(key, value)
        rows = self.execute(query.limit(1), default=[])
        if not rows:
            if not_found_error is not None:
                raise not_found_error
            raise NotFoundError(not_found_label or table)
        return rows[0]

    def find_one(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """Select a single row or return None."""
        query = self.client.table(table).select(columns)
        for key, value in filters.items():
            query = query.eq(key, value)
        rows = self.execute(query.limit(1), default=[])
        return rows[0] if rows else None

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select many rows from a table with optional filters and paging."""
        query = self.client.table(table).select(columns)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return self.execute(query, default=[])

    def select_in(
        self,
        table: str,
        column: str,
        values: Iterable[Any],
        filters: dict[str, Any] | None = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """Select rows whose ``column`` matches any of ``values``."""
        wanted = list(dict.fromkeys(str(value) for value in values))
        if not wanted:
            return []
        query = self.client.table(table).select(columns).in_(column, wanted)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        return self.execute(query, default=[])

    def exists(self, table: str, filters: dict[str, Any]) -> bool:
        """Return whether at least one row matches the equality filters."""
        return self.find_one(table, filters, columns="id") is not None

    def insert_one(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return the created object."""
        rows = self.execute(self.client.table(table).insert(payload), default=[])
        if not rows:
            raise InvalidInputError(f"Failed to insert into {table}")
        return rows[0]

    def insert_many(self, table: str, payloads: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert many rows and return inserted rows."""
        if not payloads:
            return []
        return self.execute(self.client.table(table).insert(payloads), default=[])

    def update(
        self,
        table: str,
        filters: dict[str, Any],
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Update rows by equality filters and return the updated rows."""
        query = self.client.table(table).update(payload)
        for key, value in filters.items():
            query = query.eq(key, value)
        return self.execute(query, default=[])

    def delete(self, table: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """Delete rows by equality filters and return removed rows."""
        query = self.client.table(table).delete()
        for key, value in filters.items():
            query = query.eq(key, value)
        return self.execute(query, default=[])

    def rpc(self, function: str, params: dict[str, Any]) -> Any:
        """Call a Postgres function exposed through PostgREST."""
        return self.execute(self.client.rpc(function, params), default=[])


def group_by(rows: list[dict[str, Any]], key: str) -> dict[str, list[dict[str, Any]]]:
    """Group rows by an arbitrary key."""
    grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        grouped[str(row[key])].append(row)
    return grouped


def matches_search(row: dict[str, Any], fields: Iterable[str], term: str | None) -> bool:
    """Case-insensitive substring match of ``term`` against any of ``fields``."""
    if not term or not term.strip():
        return True
    needle = term.strip().lower()
    return any(needle in str(row.get(field) or "").lower() for field in fields)
