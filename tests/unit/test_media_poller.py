"""
Unit tests for MediaReadinessPoller.

Uses the scripted gateway and a recording sleep so nothing waits.

Version: 1.0.0
"""
import pytest

from commerce_sync.core.exceptions import ConnectionTimeoutError, ExternalAPIError
from commerce_sync.services.media_poller import MediaReadinessPoller, is_terminal


pytestmark = pytest.mark.unit

PRODUCT_ID = "gid://shopify/Product/1001"
IMAGES = [
    {"src": "https://cdn.example.com/a.jpg", "alt": "Tee"},
    {"src": "https://cdn.example.com/b.jpg", "alt": "Tee - Red"},
]


def _snapshot(*statuses):
    return {"media": {"edges": [
        {"node": {"id": f"gid://shopify/MediaImage/{i}", "status": s, "alt": f"alt {i}"}}
        for i, s in enumerate(statuses, start=1)
    ]}}


def _make_poller(gateway, sleep, attempts=5, interval=1.0):
    return MediaReadinessPoller(gateway, max_attempts=attempts, interval_seconds=interval, sleep=sleep)


class TestIsTerminal:
    """Tests for is_terminal."""

    @pytest.mark.parametrize("status,expected", [
        ("READY", True), ("FAILED", True), ("ready", True),
        ("UPLOADED", False), ("PROCESSING", False), ("", False), (None, False),
    ])
    def test_statuses(self, status, expected):
        assert is_terminal(status) is expected


class TestUploadAndWait:
    """Tests for MediaReadinessPoller.upload_and_wait."""

    @pytest.mark.asyncio
    async def test_no_images_makes_no_calls(self, gateway, sample_store, no_sleep):
        outcome = await _make_poller(gateway, no_sleep).upload_and_wait(PRODUCT_ID, [], sample_store)
        assert outcome.ready == []
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_ready_on_first_poll(self, gateway, sample_store, no_sleep):
        outcome = await _make_poller(gateway, no_sleep).upload_and_wait(PRODUCT_ID, IMAGES, sample_store)
        assert [m.alt for m in outcome.ready] == ["Tee", "Tee - Red"]
        assert outcome.attempts == 1
        assert outcome.warnings == []
        assert gateway.ops() == ["create_media", "get_product_media"]
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_polls_until_terminal(self, gateway, sample_store, no_sleep):
        gateway.script(
            "get_product_media",
            _snapshot("UPLOADED", "PROCESSING"),
            _snapshot("READY", "PROCESSING"),
            _snapshot("READY", "READY"),
        )
        outcome = await _make_poller(gateway, no_sleep, interval=0.5).upload_and_wait(
            PRODUCT_ID, IMAGES, sample_store
        )
        assert outcome.attempts == 3
        assert len(outcome.ready) == 2
        assert no_sleep.await_count == 2
        no_sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_never_waits_past_attempt_budget(self, gateway, sample_store, no_sleep):
        gateway.media_status = "PROCESSING"
        outcome = await _make_poller(gateway, no_sleep, attempts=4).upload_and_wait(
            PRODUCT_ID, IMAGES, sample_store
        )
        assert gateway.ops().count("get_product_media") == 4
        assert no_sleep.await_count == 3
        assert outcome.ready == []
        assert outcome.warnings == ["2 image(s) still processing after 4 attempts"]

    @pytest.mark.asyncio
    async def test_failed_media_is_dropped_with_warning(self, gateway, sample_store, no_sleep):
        gateway.script("get_product_media", _snapshot("READY", "FAILED"))
        outcome = await _make_poller(gateway, no_sleep).upload_and_wait(PRODUCT_ID, IMAGES, sample_store)
        assert [m.status for m in outcome.ready] == ["READY"]
        assert outcome.warnings == ["1 image(s) failed processing"]

    @pytest.mark.asyncio
    async def test_missing_media_reported(self, gateway, sample_store, no_sleep):
        gateway.script("get_product_media", _snapshot("READY"))
        outcome = await _make_poller(gateway, no_sleep, attempts=2).upload_and_wait(
            PRODUCT_ID, IMAGES, sample_store
        )
        assert len(outcome.ready) == 1
        assert outcome.warnings == ["1 image(s) not returned by Shopify"]

    @pytest.mark.asyncio
    async def test_media_user_errors_become_warnings(self, gateway, sample_store, no_sleep):
        gateway.script("create_media", {
            "media": [],
            "mediaUserErrors": [{"field": ["media", "1"], "message": "Invalid image URL"}],
        })
        gateway.script("get_product_media", _snapshot("READY"))
        outcome = await _make_poller(gateway, no_sleep, attempts=1).upload_and_wait(
            PRODUCT_ID, IMAGES, sample_store
        )
        assert "Media upload: media.1: Invalid image URL" in outcome.warnings

    @pytest.mark.asyncio
    async def test_rejected_images_are_not_waited_for(self, gateway, sample_store, no_sleep):
        gateway.script("create_media", {
            "media": [{"id": "gid://shopify/MediaImage/1", "status": "UPLOADED"}],
            "mediaUserErrors": [{"field": ["media", "1"], "message": "Invalid image URL"}],
        })
        gateway.script("get_product_media", _snapshot("READY"))
        outcome = await _make_poller(gateway, no_sleep, attempts=10).upload_and_wait(
            PRODUCT_ID, IMAGES, sample_store
        )
        assert outcome.attempts == 1
        assert gateway.ops().count("get_product_media") == 1
        no_sleep.assert_not_awaited()
        assert outcome.warnings == ["Media upload: media.1: Invalid image URL"]

    @pytest.mark.asyncio
    async def test_every_image_rejected_skips_polling(self, gateway, sample_store, no_sleep):
        gateway.script("create_media", {
            "media": [],
            "mediaUserErrors": [
                {"field": ["media", "0"], "message": "Invalid image URL"},
                {"field": ["media", "1"], "message": "Invalid image URL"},
            ],
        })
        outcome = await _make_poller(gateway, no_sleep).upload_and_wait(PRODUCT_ID, IMAGES, sample_store)
        assert outcome.ready == []
        assert gateway.ops() == ["create_media"]
        assert len(outcome.warnings) == 2

    @pytest.mark.asyncio
    async def test_transient_poll_errors_use_an_attempt(self, gateway, sample_store, no_sleep):
        gateway.script(
            "get_product_media",
            ConnectionTimeoutError("read timeout"),
            _snapshot("READY", "READY"),
        )
        outcome = await _make_poller(gateway, no_sleep).upload_and_wait(PRODUCT_ID, IMAGES, sample_store)
        assert outcome.attempts == 2
        assert len(outcome.ready) == 2

    @pytest.mark.asyncio
    async def test_upload_transport_error_propagates(self, gateway, sample_store, no_sleep):
        gateway.script("create_media", ExternalAPIError("Shopify", "bad gateway", 502))
        with pytest.raises(ExternalAPIError):
            await _make_poller(gateway, no_sleep).upload_and_wait(PRODUCT_ID, IMAGES, sample_store)
