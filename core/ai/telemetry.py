"""Operation telemetry and token cost accounting for provider calls.

The collector is constructed explicitly and injected into the gateway and
generators; there is no module-level instance.

Example usage:
    metrics = MetricsCollector()
    op_id = generate_operation_id()
    metrics.start_operation(op_id, "generate-style-content", GEMINI_FLASH)
    ...
    metrics.complete_operation(op_id, usage, "stop")
    print(metrics.get_aggregated_metrics())
"""

import logging
import random
import string
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, Dict, List, Optional

from core.resilience.rate_limit import Clock, MonotonicClock

from .models import GEMINI_FLASH, GEMINI_FLASH_EXP, GEMINI_FLASH_IMAGE, GEMINI_FLASH_LITE, GEMINI_PRO, GPT_4O

logger = logging.getLogger(__name__)


# Prices per 1K tokens (input, output)
MODEL_PRICING: Dict[str, Dict[str, float]] = {
    GEMINI_FLASH: {"input": 0.0000075, "output": 0.00003},
    GEMINI_FLASH_EXP: {"input": 0.0000075, "output": 0.00003},
    GEMINI_FLASH_LITE: {"input": 0.000004, "output": 0.000016},
    GEMINI_FLASH_IMAGE: {"input": 0.0000075, "output": 0.00003},
    GEMINI_PRO: {"input": 0.00025, "output": 0.0005},
    GPT_4O: {"input": 0.0025, "output": 0.01},
}

# Prices per token (input, output) used by the running usage tracker
TOKEN_PRICING: Dict[str, Dict[str, float]] = {
    GEMINI_FLASH: {"input": 0.00001875, "output": 0.000075},
    GEMINI_FLASH_EXP: {"input": 0.00001875, "output": 0.000075},
    GEMINI_FLASH_LITE: {"input": 0.00001, "output": 0.00004},
    GEMINI_PRO: {"input": 0.00035, "output": 0.00105},
    GPT_4O: {"input": 0.0000025, "output": 0.00001},
}

DEFAULT_PRICING_MODEL = GEMINI_FLASH


@dataclass
class TokenUsage:
    """Uniform token usage triple, independent of the serving backend."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __post_init__(self):
        if not self.total_tokens:
            self.total_tokens = self.prompt_tokens + self.completion_tokens

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class OperationRecord:
    """A single tracked provider call."""

    operation_id: str
    function_id: str
    model: str
    started_at: datetime
    started_clock: float
    completed_at: Optional[datetime] = None
    duration_ms: Optional[float] = None
    time_to_first_chunk_ms: Optional[float] = None
    usage: Optional[TokenUsage] = None
    estimated_cost_usd: float = 0.0
    finish_reason: Optional[str] = None
    success: bool = False
    error: Optional[str] = None
    retry_attempts: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "operation_id": self.operation_id,
            "function_id": self.function_id,
            "model": self.model,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "time_to_first_chunk_ms": self.time_to_first_chunk_ms,
            "usage": self.usage.to_dict() if self.usage else None,
            "estimated_cost_usd": self.estimated_cost_usd,
            "finish_reason": self.finish_reason,
            "success": self.success,
            "error": self.error,
            "retry_attempts": self.retry_attempts,
        }


def calculate_cost(usage: TokenUsage, model: str) -> float:
    """Estimated USD cost of a call from the per-1K token price table."""
    prices = MODEL_PRICING.get(model, MODEL_PRICING[DEFAULT_PRICING_MODEL])
    input_cost = (usage.prompt_tokens / 1000) * prices["input"]
    output_cost = (usage.completion_tokens / 1000) * prices["output"]
    return input_cost + output_cost


def estimate_cost(usage: TokenUsage, model: str) -> float:
    """Estimated USD cost of a call from the per-token price table."""
    prices = TOKEN_PRICING.get(model, TOKEN_PRICING[DEFAULT_PRICING_MODEL])
    return usage.prompt_tokens * prices["input"] + usage.completion_tokens * prices["output"]


def generate_operation_id() -> str:
    """Timestamp plus random suffix, unique enough for in-process tracking."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"ai-op-{int(time.time() * 1000)}-{suffix}"


class MetricsCollector:
    """In-flight and completed operation ledger."""

    def __init__(self, max_completed: int = 1000, clock: Optional[Clock] = None):
        self.max_completed = max_completed
        self.clock = clock or MonotonicClock()
        self._in_flight: Dict[str, OperationRecord] = {}
        self._completed: Deque[OperationRecord] = deque(maxlen=max_completed)

    def start_operation(self, operation_id: str, function_id: str, model: str) -> None:
        """Begin tracking a call. A duplicate id overwrites the previous record."""
        self._in_flight[operation_id] = OperationRecord(
            operation_id=operation_id,
            function_id=function_id,
            model=model,
            started_at=datetime.now(),
            started_clock=self.clock.now(),
        )

    def record_first_chunk(self, operation_id: str) -> None:
        """Record time-to-first-chunk; later calls are ignored."""
        op = self._in_flight.get(operation_id)
        if op is not None and op.time_to_first_chunk_ms is None:
            op.time_to_first_chunk_ms = (self.clock.now() - op.started_clock) * 1000

    def complete_operation(
        self,
        operation_id: str,
        usage: TokenUsage,
        finish_reason: Optional[str] = None,
    ) -> Optional[OperationRecord]:
        """
        Finalize a successful call.

        Args:
            operation_id: Id passed to ``start_operation``
            usage: Token usage reported by the backend
            finish_reason: Backend finish reason, if any

        Returns:
            The finalized record, or None if the id is not in flight
        """
        op = self._in_flight.pop(operation_id, None)
        if op is None:
            return None

        self._finish(op)
        op.usage = usage
        op.estimated_cost_usd = calculate_cost(usage, op.model)
        op.finish_reason = finish_reason
        op.success = True
        self._completed.append(op)
        return op

    def fail_operation(
        self,
        operation_id: str,
        error: str,
        retry_attempts: Optional[int] = None,
    ) -> Optional[OperationRecord]:
        """Finalize a failed call. Returns None if the id is not in flight."""
        op = self._in_flight.pop(operation_id, None)
        if op is None:
            return None

        self._finish(op)
        op.success = False
        op.error = error
        op.retry_attempts = retry_attempts
        self._completed.append(op)
        return op

    def set_cost(self, operation_id: str, cost_usd: float) -> bool:
        """Override the estimated cost of a completed record (per-image pricing)."""
        for op in reversed(self._completed):
            if op.operation_id == operation_id:
                op.estimated_cost_usd = cost_usd
                return True
        return False

    def _finish(self, op: OperationRecord) -> None:
        op.completed_at = datetime.now()
        op.duration_ms = (self.clock.now() - op.started_clock) * 1000

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def get_aggregated_metrics(self) -> dict:
        """Read-only aggregate over completed records."""
        completed = list(self._completed)
        successful = [op for op in completed if op.success]
        with_duration = [op.duration_ms for op in completed if op.duration_ms is not None]
        with_ttfc = [op.time_to_first_chunk_ms for op in completed if op.time_to_first_chunk_ms is not None]

        by_function: Dict[str, int] = {}
        by_model: Dict[str, int] = {}
        for op in completed:
            by_function[op.function_id] = by_function.get(op.function_id, 0) + 1
            by_model[op.model] = by_model.get(op.model, 0) + 1

        return {
            "total_operations": len(completed),
            "successful_operations": len(successful),
            "failed_operations": len(completed) - len(successful),
            "total_tokens": sum(op.usage.total_tokens for op in completed if op.usage),
            "total_cost_usd": sum(op.estimated_cost_usd for op in completed),
            "average_duration_ms": sum(with_duration) / len(with_duration) if with_duration else 0.0,
            "average_time_to_first_chunk_ms": sum(with_ttfc) / len(with_ttfc) if with_ttfc else 0.0,
            "operations_by_function": by_function,
            "operations_by_model": by_model,
        }

    def get_recent_operations(self, limit: int = 10) -> List[OperationRecord]:
        """Most recent completed records, newest last."""
        if limit <= 0:
            return []
        return list(self._completed)[-limit:]

    def clear(self) -> None:
        """Drop all in-flight and completed records."""
        self._in_flight.clear()
        self._completed.clear()

    def log_summary(self) -> None:
        """Log the aggregated metrics."""
        m = self.get_aggregated_metrics()
        success_rate = (
            m["successful_operations"] / m["total_operations"] * 100
            if m["total_operations"] else 0.0
        )
        logger.info(
            f"AI metrics: {m['total_operations']} operations "
            f"({success_rate:.1f}% success), {m['total_tokens']} tokens, "
            f"${m['total_cost_usd']:.4f}, avg {m['average_duration_ms']:.0f}ms"
        )
        for function_id, count in m["operations_by_function"].items():
            logger.info(f"  {function_id}: {count}")


class TokenUsageTracker:
    """Running token and cost totals across calls."""

    def __init__(self):
        self.reset()

    def track(self, usage: TokenUsage, model: str) -> None:
        self.prompt_tokens += usage.prompt_tokens
        self.completion_tokens += usage.completion_tokens
        self.total_tokens += usage.total_tokens
        self.estimated_cost += estimate_cost(usage, model)

    def get_usage(self) -> dict:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
            "estimated_cost": self.estimated_cost,
        }

    def reset(self) -> None:
        self.prompt_tokens = 0
        self.completion_tokens = 0
        self.total_tokens = 0
        self.estimated_cost = 0.0

    def log(self, prefix: str = "Token usage") -> None:
        logger.info(
            f"{prefix}: prompt {self.prompt_tokens}, completion {self.completion_tokens}, "
            f"total {self.total_tokens}, cost ${self.estimated_cost:.4f}"
        )
