"""
Base store — shared Supabase access for the catalog stores.

Stores inherit standardised select / update primitives. PostgREST failures
surface as ExternalAPIError so HTTP routes and Celery tasks handle them
the same way as gateway failures.
Version: 1.0.0
"""

import logging
from typing import Any, Dict, List, Sequence

from postgrest.exceptions import APIError

from commerce_sync.clients.supabase_client import SupabaseClient
from commerce_sync.core.exceptions import ExternalAPIError

logger = logging.getLogger("base_store")


class BaseStore:
    """Base class for all Supabase stores providing shared CRUD operations."""

    def __init__(self, supabase_client: SupabaseClient) -> None:
        self._supabase_client = supabase_client

    @property
    def _client(self):
        """Get the Supabase client instance."""
        return self._supabase_client.client

    async def _select(
        self, table: str, columns: str = "*", filters: Dict[str, Any] | None = None
    ) -> List[Dict[str, Any]]:
        """Select rows from a table with optional equality filters."""
        try:
            query = self._client.table(table).select(columns)
            if filters:
                for key, value in filters.items():
                    query = query.eq(key, value)
            response = query.execute()
            return response.data or []
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise ExternalAPIError("Supabase", f"select from {table} failed: {e}")

    async def _select_in(
        self, table: str, column: str, values: Sequence[Any], columns: str = "*"
    ) -> List[Dict[str, Any]]:
        """Select rows whose ``column`` is one of ``values``."""
        if not values:
            return []
        try:
            response = self._client.table(table).select(columns).in_(column, list(values)).execute()
            return response.data or []
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise ExternalAPIError("Supabase", f"select from {table} failed: {e}")

    async def _update(
        self, table: str, filters: Dict[str, Any], payload: Dict[str, Any]
    ) -> None:
        """Update rows in a table matching the filters."""
        try:
            query = self._client.table(table).update(payload)
            for key, value in filters.items():
                query = query.eq(key, value)
            query.execute()
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise ExternalAPIError("Supabase", f"update {table} failed: {e}")
