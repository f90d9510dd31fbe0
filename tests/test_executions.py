"""Tests for seed execution records."""

import pytest

from core.seed.executions import SeedExecutionTracker
from core.store.base import DocumentNotFoundError


@pytest.fixture
def tracker(store):
    return SeedExecutionTracker(store)


class TestSeedExecutionTracker:
    """Test the execution lifecycle."""

    @pytest.mark.asyncio
    async def test_create(self, tracker):
        record = await tracker.create({"limit": 2})

        assert record["status"] == "running"
        assert record["options"] == {"limit": 2}
        assert record["generated_styles"] == []
        assert record["expected_total_rooms"] is None

    @pytest.mark.asyncio
    async def test_snapshot_keeps_first_value(self, tracker):
        record = await tracker.create()

        assert await tracker.snapshot_expected_rooms(record["id"], 24) == 24
        assert await tracker.snapshot_expected_rooms(record["id"], 6) == 24
        assert (await tracker.get(record["id"]))["expected_total_rooms"] == 24

    @pytest.mark.asyncio
    async def test_snapshot_missing_record(self, tracker):
        with pytest.raises(DocumentNotFoundError):
            await tracker.snapshot_expected_rooms("missing", 24)

    @pytest.mark.asyncio
    async def test_record_style_keeps_order(self, tracker):
        record = await tracker.create()

        await tracker.record_style(record["id"], "style-a")
        await tracker.record_style(record["id"], "style-b")

        assert await tracker.generated_styles(record["id"]) == ["style-a", "style-b"]
        assert await tracker.generated_styles("missing") == []

    @pytest.mark.asyncio
    async def test_complete_status_follows_success(self, tracker):
        ok = await tracker.create()
        partial = await tracker.create()

        await tracker.complete(ok["id"], {"success": True})
        await tracker.complete(partial["id"], {"success": False})

        assert (await tracker.get(ok["id"]))["status"] == "completed"
        finished = await tracker.get(partial["id"])
        assert finished["status"] == "completed_with_errors"
        assert finished["completed_at"] is not None

    @pytest.mark.asyncio
    async def test_fail(self, tracker):
        record = await tracker.create()

        await tracker.fail(record["id"], "boom")

        failed = await tracker.get(record["id"])
        assert (failed["status"], failed["error"]) == ("failed", "boom")
