"""
Media readiness poller — uploads product images and waits for processing.

Shopify accepts image URLs immediately but fetches and processes them out of
band. After the upload call the product's media list is polled until every
item reaches a terminal status (READY or FAILED) or the attempt budget runs
out. Whatever is READY at that point is returned; everything else is dropped
with a warning. Media problems never fail a push on their own.
Version: 1.0.0
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List

from commerce_sync.clients.shopify_client import ShopifyClient
from commerce_sync.core.constants.push import (
    MEDIA_STATUS_FAILED,
    MEDIA_STATUS_READY,
    MEDIA_TERMINAL_STATUSES,
)
from commerce_sync.core.exceptions import RetryableError
from commerce_sync.schemas.push import MediaRecord, ShopifyStore
from commerce_sync.utils.shopify_payload_builder import build_media_input, extract_errors

logger = logging.getLogger("media_poller")

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class MediaUploadOutcome:
    ready: List[MediaRecord] = field(default_factory=list)
    requested: int = 0
    attempts: int = 0
    warnings: List[str] = field(default_factory=list)


def is_terminal(status: str) -> bool:
    return (status or "").upper() in MEDIA_TERMINAL_STATUSES


def _parse_media(product_payload: Dict) -> List[MediaRecord]:
    edges = ((product_payload or {}).get("media") or {}).get("edges") or []
    records = []
    for edge in edges:
        node = edge.get("node") or {}
        # Non-image media come back as empty nodes from the MediaImage fragment
        if not node.get("id"):
            continue
        records.append(MediaRecord(
            id=node["id"],
            status=(node.get("status") or "").upper(),
            alt=node.get("alt") or "",
        ))
    return records


class MediaReadinessPoller:
    """Bounded poll of remote media processing; never waits unboundedly."""

    def __init__(
        self,
        client: ShopifyClient,
        max_attempts: int = 10,
        interval_seconds: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._max_attempts = max(1, max_attempts)
        self._interval = interval_seconds
        self._sleep = sleep

    async def upload_and_wait(
        self, product_id: str, images: List[Dict[str, str]], store: ShopifyStore
    ) -> MediaUploadOutcome:
        """Upload all images in one call, then poll until ready or out of attempts."""
        outcome = MediaUploadOutcome(requested=len(images))
        if not images:
            return outcome

        payload = await self._client.execute(
            "create_media",
            {"productId": product_id, "media": build_media_input(images)},
            store,
        )
        media_errors = extract_errors(payload, key="mediaUserErrors")
        if media_errors:
            logger.warning("media upload warnings product_id=%s errors=%s", product_id, media_errors)
            outcome.warnings.extend(f"Media upload: {e}" for e in media_errors)

        # Rejected images never show up on the product
        accepted = max(0, len(images) - len(media_errors))
        if not accepted:
            for w in outcome.warnings:
                logger.warning("media product_id=%s %s", product_id, w)
            return outcome

        records, attempts = await self.wait_until_ready(product_id, accepted, store)
        outcome.attempts = attempts
        outcome.ready = [m for m in records if m.status == MEDIA_STATUS_READY]

        failed = sum(1 for m in records if m.status == MEDIA_STATUS_FAILED)
        pending = sum(1 for m in records if not is_terminal(m.status))
        missing = max(0, accepted - len(records))
        if failed:
            outcome.warnings.append(f"{failed} image(s) failed processing")
        if pending:
            outcome.warnings.append(
                f"{pending} image(s) still processing after {attempts} attempts"
            )
        if missing:
            outcome.warnings.append(f"{missing} image(s) not returned by Shopify")
        for w in outcome.warnings:
            logger.warning("media product_id=%s %s", product_id, w)
        logger.info(
            "media ready product_id=%s ready=%d requested=%d attempts=%d",
            product_id, len(outcome.ready), len(images), attempts,
        )
        return outcome

    async def wait_until_ready(
        self, product_id: str, expected_count: int, store: ShopifyStore
    ) -> tuple[List[MediaRecord], int]:
        """
        Poll the product's media list.

        Returns the last snapshot and the number of attempts used. Stops as
        soon as every item is terminal and at least ``expected_count`` items
        are present; otherwise after ``max_attempts`` queries.
        """
        snapshot: List[MediaRecord] = []
        for attempt in range(1, self._max_attempts + 1):
            try:
                product = await self._client.execute("get_product_media", {"id": product_id}, store)
                snapshot = _parse_media(product)
            except RetryableError as exc:
                logger.warning(
                    "media status query failed product_id=%s attempt=%d error=%s",
                    product_id, attempt, exc,
                )
            else:
                if len(snapshot) >= expected_count and all(is_terminal(m.status) for m in snapshot):
                    return snapshot, attempt
            if attempt < self._max_attempts:
                await self._sleep(self._interval)
        return snapshot, self._max_attempts
