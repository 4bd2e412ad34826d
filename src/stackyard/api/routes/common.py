"""Common route helpers."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from concurrent.futures import Executor


async def run_blocking[T](executor: Executor, func: Callable[..., T], *args: object) -> T:
    """Run a blocking orchestrator call off the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, func, *args)
