"""Execution records for long-running style seeding jobs.

A record lists the styles a run has persisted, in order. After a restart the
last style in the list is the one to inspect for an interrupted room-profile
loop. ``expected_total_rooms`` is fixed when the record is created so a later
change of room-type filters cannot shift the resume index.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from core.store.base import SEED_EXECUTIONS, DocumentNotFoundError, DocumentStore

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SeedExecutionTracker:
    """Stores execution records in the ``seed_executions`` collection."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def create(
        self,
        options: Optional[dict] = None,
        expected_total_rooms: Optional[int] = None,
    ) -> dict:
        record = await self.store.insert(SEED_EXECUTIONS, {
            "status": "running",
            "options": options or {},
            "expected_total_rooms": expected_total_rooms,
            "generated_styles": [],
            "result": None,
            "error": None,
            "started_at": _now(),
            "completed_at": None,
        })
        logger.info(f"Created seed execution {record['id']}")
        return record

    async def get(self, execution_id: str) -> Optional[dict]:
        return await self.store.find_by_id(SEED_EXECUTIONS, execution_id)

    async def snapshot_expected_rooms(self, execution_id: str, total: int) -> int:
        """Record the expected room count unless one is already stored; returns the stored value."""
        record = await self.get(execution_id)
        if record is None:
            raise DocumentNotFoundError(SEED_EXECUTIONS, execution_id)
        if record.get("expected_total_rooms") is not None:
            return record["expected_total_rooms"]
        await self.store.update(SEED_EXECUTIONS, execution_id, {"expected_total_rooms": total})
        return total

    async def record_style(self, execution_id: str, style_id: str) -> None:
        await self.store.push(SEED_EXECUTIONS, execution_id, "generated_styles", style_id)

    async def generated_styles(self, execution_id: str) -> List[str]:
        record = await self.get(execution_id)
        return list(record.get("generated_styles", [])) if record else []

    async def complete(self, execution_id: str, result: dict) -> None:
        await self.store.update(SEED_EXECUTIONS, execution_id, {
            "status": "completed" if result.get("success") else "completed_with_errors",
            "result": result,
            "completed_at": _now(),
        })
        logger.info(f"Seed execution {execution_id} finished")

    async def fail(self, execution_id: str, error: str) -> None:
        await self.store.update(SEED_EXECUTIONS, execution_id, {
            "status": "failed",
            "error": error,
            "completed_at": _now(),
        })
        logger.error(f"Seed execution {execution_id} failed: {error}")
