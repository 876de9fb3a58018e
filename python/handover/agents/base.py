"""Shared result envelope for the extraction, Q&A, gap and skill agents."""

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class AgentResult(Generic[T]):
    success: bool
    data: T | None = None
    error: str | None = None
    duration_ms: int = 0


async def run_agent(label: str, work: Awaitable[T]) -> AgentResult[T]:
    """Await ``work`` and wrap its outcome; failures never propagate."""
    start = time.monotonic()
    try:
        data = await work
    except Exception as err:
        duration = int((time.monotonic() - start) * 1000)
        logger.warning("%s failed: %s", label, err)
        return AgentResult(success=False, error=f"{label} failed: {err}", duration_ms=duration)

    duration = int((time.monotonic() - start) * 1000)
    return AgentResult(success=True, data=data, duration_ms=duration)
