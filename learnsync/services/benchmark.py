"""Micro-benchmarks for interactive actions.

Times repeated lesson toggles against a latency target, and single UI
actions against a 60fps frame budget.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from ..config.constants import (
    DEFAULT_BENCHMARK_ITERATIONS,
    FRAME_BUDGET_MS,
    LESSON_TOGGLE_TARGET_MS,
)

logger = logging.getLogger(__name__)

ToggleAction = Callable[[int, int, int, str], Awaitable[Any]]
UIAction = Callable[[], Awaitable[Any]]


async def _yield_one_frame() -> None:
    await asyncio.sleep(0)


@dataclass
class BenchmarkResult:
    """Timing statistics for repeated invocations, in milliseconds."""

    average: float
    minimum: float
    maximum: float
    results: list[float] = field(default_factory=list)
    passed: bool = False
    target_ms: float = LESSON_TOGGLE_TARGET_MS


@dataclass
class FrameResult:
    """Timing of a single UI action, in milliseconds."""

    duration: float
    passed: bool
    budget_ms: float = FRAME_BUDGET_MS


class BenchmarkRunner:
    """Times caller-supplied async actions."""

    def __init__(
        self,
        target_ms: float = LESSON_TOGGLE_TARGET_MS,
        frame_budget_ms: float = FRAME_BUDGET_MS,
        next_frame: Callable[[], Awaitable[None]] = _yield_one_frame,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.target_ms = target_ms
        self.frame_budget_ms = frame_budget_ms
        self.next_frame = next_frame
        self.clock = clock

    def _elapsed_ms(self, start: float) -> float:
        return (self.clock() - start) * 1000.0

    async def measure_repeated(
        self,
        action: ToggleAction,
        iterations: int = DEFAULT_BENCHMARK_ITERATIONS,
    ) -> BenchmarkResult:
        """Await action(1, 1, i, "Test Lesson i") for each iteration and time it.

        Raises:
            ValueError: If iterations is less than 1.
        """
        if iterations < 1:
            raise ValueError("iterations must be at least 1")

        logger.info(f"Starting performance test with {iterations} iterations")
        results: list[float] = []
        for i in range(iterations):
            start = self.clock()
            await action(1, 1, i, f"Test Lesson {i}")
            duration = self._elapsed_ms(start)
            results.append(duration)
            logger.debug(f"Iteration {i + 1}: {duration:.2f}ms")

        average = sum(results) / len(results)
        result = BenchmarkResult(
            average=average,
            minimum=min(results),
            maximum=max(results),
            results=results,
            passed=average < self.target_ms,
            target_ms=self.target_ms,
        )
        logger.info(
            f"Average {average:.2f}ms, min {result.minimum:.2f}ms, "
            f"max {result.maximum:.2f}ms (target <{self.target_ms:g}ms): "
            f"{'PASSED' if result.passed else 'FAILED'}"
        )
        return result

    async def measure_ui_response(
        self,
        action: UIAction,
        locate: Optional[Callable[[], Any]] = None,
    ) -> Optional[FrameResult]:
        """Time one action plus a frame wait against the frame budget.

        Returns None without running the action when ``locate`` is given
        and cannot find its target.
        """
        if locate is not None and locate() is None:
            logger.error("UI target not found, skipping measurement")
            return None

        start = self.clock()
        await action()
        await self.next_frame()
        duration = self._elapsed_ms(start)

        logger.info(f"UI response time: {duration:.2f}ms")
        return FrameResult(
            duration=duration,
            passed=duration < self.frame_budget_ms,
            budget_ms=self.frame_budget_ms,
        )
