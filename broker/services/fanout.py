"""Concurrent fan-out with per-branch timeouts.

Each branch's outcome is captured as a ``BranchResult`` so callers can treat
successful and failed branches uniformly when merging.
"""

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any

from broker.services.errors import UpstreamTimeout


@dataclass
class BranchResult:
    name: str
    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.value


async def _run_branch(name: str, awaitable: Awaitable, timeout: float) -> BranchResult:
    try:
        value = await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        return BranchResult(name, error=UpstreamTimeout(f"{name} did not answer within {timeout:g}s"))
    except Exception as e:
        return BranchResult(name, error=e)
    return BranchResult(name, value=value)


async def fan_out(branches: dict[str, tuple[Awaitable, float]]) -> dict[str, BranchResult]:
    """Run every branch concurrently and wait for all of them.

    ``branches`` maps a branch name to ``(awaitable, timeout_seconds)``.
    A slow branch never waits longer than its own timeout.
    """
    results = await asyncio.gather(
        *(_run_branch(name, aw, timeout) for name, (aw, timeout) in branches.items())
    )
    return {r.name: r for r in results}
