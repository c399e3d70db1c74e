"""
Fan-out/join helper for independent provider calls.

``settle_all`` starts every awaitable at once, bounds each by its own timeout
and waits for all of them. One failure or timeout never cancels the others.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settled(Generic[T]):
    """Outcome of one awaitable: either a value or the error it raised."""

    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: T) -> T:
        if self.error is not None or self.value is None:
            return default
        return self.value


async def _bounded(awaitable: Awaitable[T], timeout: float | None) -> T:
    if timeout is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout)


async def settle_all(
    awaitables: Sequence[Awaitable[T]],
    timeout: float | None = None,
) -> list[Settled[T]]:
    """
    Run awaitables concurrently and collect every outcome.

    Args:
        awaitables: Independent calls to dispatch together
        timeout: Per-call limit in seconds; a timeout is recorded as a failure

    Returns:
        One Settled per awaitable, in input order
    """
    if not awaitables:
        return []

    outcomes = await asyncio.gather(
        *(_bounded(aw, timeout) for aw in awaitables),
        return_exceptions=True,
    )

    settled: list[Settled[T]] = []
    for outcome in outcomes:
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            if isinstance(outcome, TimeoutError):
                log.warning(f"Provider call timed out after {timeout}s")
            else:
                log.warning(f"Provider call failed: {outcome!r}")
            settled.append(Settled(error=outcome))
        else:
            settled.append(Settled(value=outcome))
    return settled


## Tests


def test_settle_all_isolates_failures():
    async def ok(value: int) -> int:
        return value

    async def boom() -> int:
        raise RuntimeError("boom")

    results = asyncio.run(settle_all([ok(1), boom(), ok(3)]))

    assert [r.ok for r in results] == [True, False, True]
    assert results[0].value == 1
    assert results[2].value == 3
    assert isinstance(results[1].error, RuntimeError)
    assert results[1].value_or(0) == 0


def test_settle_all_times_out_slow_calls():
    async def slow() -> str:
        await asyncio.sleep(5)
        return "late"

    async def fast() -> str:
        return "fast"

    results = asyncio.run(settle_all([slow(), fast()], timeout=0.05))

    assert isinstance(results[0].error, TimeoutError)
    assert results[1].value == "fast"


def test_settle_all_empty():
    assert asyncio.run(settle_all([])) == []
