"""
Shopify client — Admin GraphQL gateway for the product push.

Resolves named operations to their documents, posts them to the store's
Admin API endpoint and unwraps the response root. Throttling and 5xx
responses are retried here; user errors are left to the caller.
Version: 1.0.0
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import httpx

from commerce_sync.clients.shopify_operations import get_operation
from commerce_sync.core.config import Settings
from commerce_sync.core.exceptions import (
    AuthenticationError,
    ConnectionTimeoutError,
    ExternalAPIError,
    RateLimitError,
)
from commerce_sync.schemas.push import ShopifyStore

logger = logging.getLogger("shopify_client")

SERVICE = "Shopify"
RETRYABLE_STATUS_CODES = {429, 502, 503, 504}


class ShopifyClient:
    """
    Remote operation gateway for the Shopify Admin GraphQL API.

    Stateless with respect to stores: every call receives the store
    descriptor, so one client serves any number of shops. Calls are spaced
    by a minimum interval and throttled/5xx responses are retried with
    backoff; field-level user errors are returned to the caller untouched.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._api_version = settings.shopify_api_version
        self._timeout = settings.shopify_request_timeout
        self._min_interval = settings.shopify_min_request_interval
        self._max_retries = max(1, settings.shopify_max_retries)
        self._base_url_override = settings.shopify_base_url_override
        self._transport = transport
        self._last_request_at = 0.0
        self._throttle_lock = asyncio.Lock()
        self.requests_made = 0
        logger.info(
            "ShopifyClient initialized: api_version=%s min_interval=%ss max_retries=%s",
            self._api_version, self._min_interval, self._max_retries,
        )

    @staticmethod
    def _normalize_store_domain(domain: Optional[str]) -> Optional[str]:
        """
        Normalize Shopify store domain to a bare host.

        Handles these formats:
        - "my-store" -> "my-store.myshopify.com"
        - "https://my-store.myshopify.com/" -> "my-store.myshopify.com"
        - "my-store.myshopify.com/admin/products" -> "my-store.myshopify.com"
        """
        if not domain:
            return domain

        domain = domain.strip().replace("https://", "").replace("http://", "")

        # Drop any admin path pasted from the browser
        if "/admin" in domain:
            domain = domain.split("/admin", 1)[0]

        domain = domain.rstrip("/")

        if "." not in domain:
            domain = f"{domain}.myshopify.com"

        return domain

    @staticmethod
    def to_gid(entity: str, value: str | int) -> str:
        if isinstance(value, str) and value.startswith("gid://"):
            return value
        return f"gid://shopify/{entity}/{value}"

    def _graphql_url(self, store: ShopifyStore) -> str:
        domain = self._normalize_store_domain(store.store_url)
        if not domain or not store.access_token.get_secret_value():
            raise AuthenticationError("Shopify store URL or access token missing")
        if self._base_url_override:
            return f"{self._base_url_override.rstrip('/')}/admin/api/{self._api_version}/graphql.json"
        return f"https://{domain}/admin/api/{self._api_version}/graphql.json"

    async def _rate_limit(self) -> None:
        """Keep at least ``min_interval`` seconds between consecutive calls."""
        async with self._throttle_lock:
            elapsed = time.monotonic() - self._last_request_at
            if elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_request_at = time.monotonic()
            self.requests_made += 1

    @staticmethod
    def _retry_after(resp: httpx.Response, attempt: int) -> float:
        header = resp.headers.get("Retry-After")
        if header:
            try:
                return float(header)
            except ValueError:
                pass
        return float(2 ** attempt)

    @staticmethod
    def _is_throttled(errors: Any) -> bool:
        for err in errors or []:
            if isinstance(err, dict) and (err.get("extensions") or {}).get("code") == "THROTTLED":
                return True
        return False

    async def call_shopify_graphql(
        self,
        query: str,
        variables: Optional[Dict[str, Any]],
        store: ShopifyStore,
        label: str = "graphql",
    ) -> Dict[str, Any]:
        """POST one GraphQL document and return its ``data`` object."""
        url = self._graphql_url(store)
        headers = {
            "X-Shopify-Access-Token": store.access_token.get_secret_value(),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        payload = {"query": query, "variables": variables or {}}

        for attempt in range(self._max_retries):
            await self._rate_limit()
            logger.info("shopify request operation=%s store=%s attempt=%s", label, store.id or store.store_url, attempt + 1)
            try:
                async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                    resp = await client.post(url, headers=headers, json=payload)
            except httpx.TimeoutException as exc:
                raise ConnectionTimeoutError(f"Shopify {label} timed out: {exc}") from exc
            except httpx.TransportError as exc:
                raise ConnectionTimeoutError(f"Shopify {label} transport error: {exc}") from exc

            logger.info("shopify response status=%s operation=%s", resp.status_code, label)

            if resp.status_code in RETRYABLE_STATUS_CODES:
                wait = self._retry_after(resp, attempt)
                if attempt + 1 >= self._max_retries:
                    if resp.status_code == 429:
                        raise RateLimitError(SERVICE, retry_after=int(wait))
                    raise ExternalAPIError(SERVICE, resp.text[:200], status_code=resp.status_code)
                logger.warning(
                    "shopify HTTP %s on %s, retry %s/%s in %.1fs",
                    resp.status_code, label, attempt + 1, self._max_retries, wait,
                )
                await asyncio.sleep(wait)
                continue

            if resp.status_code in (401, 403):
                raise AuthenticationError(f"Shopify rejected credentials ({resp.status_code}): {resp.text[:200]}")
            if resp.status_code >= 400:
                raise ExternalAPIError(SERVICE, resp.text[:200], status_code=resp.status_code)

            try:
                body = resp.json()
            except ValueError as exc:
                raise ExternalAPIError(
                    SERVICE, f"invalid JSON response: {resp.text[:200]}", status_code=resp.status_code
                ) from exc

            errors = body.get("errors")
            if errors and self._is_throttled(errors) and attempt + 1 < self._max_retries:
                wait = float(2 ** attempt)
                logger.warning("shopify THROTTLED on %s, retry %s/%s in %.1fs", label, attempt + 1, self._max_retries, wait)
                await asyncio.sleep(wait)
                continue
            if errors:
                if isinstance(errors, list):
                    message = ", ".join(
                        e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in errors
                    )
                else:
                    message = str(errors)
                raise ExternalAPIError(SERVICE, message, status_code=resp.status_code)

            return body.get("data") or {}

        raise ExternalAPIError(SERVICE, f"max retries ({self._max_retries}) exceeded for {label}")

    async def execute(
        self,
        operation: str,
        variables: Optional[Dict[str, Any]],
        store: ShopifyStore,
    ) -> Dict[str, Any]:
        """
        Run a named operation and return its root-field payload.

        Transport and GraphQL-level failures raise; field-level user errors
        stay inside the returned payload for the caller to judge.
        """
        op = get_operation(operation)
        data = await self.call_shopify_graphql(op.document, variables, store, label=operation)
        return data.get(op.root_field) or {}

    async def get_product(self, product_id: str | int, store: ShopifyStore) -> Optional[Dict[str, Any]]:
        """Fetch the product graph for operator verification."""
        product = await self.execute("get_product", {"id": self.to_gid("Product", product_id)}, store)
        return product or None

    async def delete_product(self, product_id: str | int, store: ShopifyStore) -> bool:
        """Delete a product. Returns True when Shopify confirms the deletion."""
        payload = await self.execute(
            "delete_product", {"input": {"id": self.to_gid("Product", product_id)}}, store
        )
        errors = payload.get("userErrors") or []
        if errors:
            logger.warning("shopify delete failed product_id=%s errors=%s", product_id, errors)
            return False
        logger.info("shopify product deleted product_id=%s", product_id)
        return bool(payload.get("deletedProductId"))
