"""Worker pool for dockwire.

Connections are driven by a fixed set of anyio event loops, each in its own
thread, so blocking callers and asyncio/trio backends behave the same way.
"""

from dockwire.concurrency.pool import Worker, WorkerPool

__all__ = [
    "Worker",
    "WorkerPool",
]
