"""
Fixed-size pool of event-loop worker threads.

Each worker runs its own anyio event loop in a dedicated thread behind a
blocking portal. Connections are opened on, and stay bound to, one worker;
caller threads drive them synchronously through the portal.
"""

import itertools
import threading
import time
from concurrent.futures import CancelledError
from contextlib import ExitStack
from typing import Any, Callable, List, Optional, Set, Tuple

from anyio.from_thread import BlockingPortal, start_blocking_portal

from dockwire.errors import NotInitializedError
from dockwire.telemetry import get_telemetry


class Worker:
    """One event loop running in its own thread."""

    def __init__(self, pool: "WorkerPool", index: int, portal: BlockingPortal):
        self.pool = pool
        self.index = index
        self.portal = portal
        self.thread: threading.Thread = portal.call(threading.current_thread)
        self._connections: Set[Any] = set()

    def call(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run ``func`` on this worker's loop and block until it finishes.

        Must not be called from the worker thread itself.

        Raises:
            NotInitializedError: If the pool shut down while ``func`` was
                still running.
        """
        try:
            return self.portal.call(func, *args)
        except CancelledError:
            raise NotInitializedError(
                f"Worker pool {self.pool.name} shut down during the call"
            ) from None

    def track(self, connection: Any) -> None:
        with self.pool._cond:
            if not self.pool._running:
                raise NotInitializedError(
                    f"Worker pool {self.pool.name} is shutting down"
                )
            self._connections.add(connection)

    def release(self, connection: Any) -> None:
        with self.pool._cond:
            self._connections.discard(connection)
            self.pool._cond.notify_all()

    @property
    def connections(self) -> Tuple[Any, ...]:
        with self.pool._cond:
            return tuple(self._connections)

    def __repr__(self) -> str:
        return f"<Worker {self.pool.name}-{self.index} thread={self.thread.name}>"


class WorkerPool:
    """A fixed set of event-loop threads shared by one transport strategy."""

    def __init__(
        self,
        size: int = 1,
        backend: str = "asyncio",
        grace_period: float = 2.0,
        name: str = "dockwire",
    ):
        """Create a pool; no threads are started until :meth:`start`.

        Args:
            size: Number of event-loop threads.
            backend: The anyio backend each loop runs on.
            grace_period: Seconds :meth:`shutdown` waits for live connections
                to be closed by their owners before closing them itself.
            name: Name used in log entries.
        """
        self.size = size
        self.backend = backend
        self.grace_period = grace_period
        self.name = name
        self._workers: List[Worker] = []
        self._cycle: Optional[Any] = None
        self._stack: Optional[ExitStack] = None
        self._running = False
        self._stopped = False
        self._cond = threading.Condition()
        _, self._logger = get_telemetry("dockwire.concurrency")

    @property
    def running(self) -> bool:
        return self._running

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def workers(self) -> Tuple[Worker, ...]:
        return tuple(self._workers)

    def start(self) -> "WorkerPool":
        """Start every worker thread.

        Returns:
            The pool itself.

        Raises:
            RuntimeError: If the pool was already started.
        """
        with self._cond:
            if self._running or self._stopped:
                raise RuntimeError(f"Worker pool {self.name} was already started")

            stack = ExitStack()
            try:
                for index in range(self.size):
                    portal = stack.enter_context(start_blocking_portal(self.backend))
                    self._workers.append(Worker(self, index, portal))
            except BaseException:
                self._workers.clear()
                stack.close()
                raise

            self._stack = stack
            self._cycle = itertools.cycle(self._workers)
            self._running = True

        self._logger.info(
            "worker_pool.started", pool=self.name, size=self.size, backend=self.backend
        )
        return self

    def next_worker(self) -> Worker:
        """Pick the worker for the next connection, round-robin.

        Raises:
            NotInitializedError: If the pool is not running.
        """
        with self._cond:
            if not self._running:
                raise NotInitializedError(f"Worker pool {self.name} is not running")
            return next(self._cycle)

    def live_connections(self) -> int:
        with self._cond:
            return sum(len(w._connections) for w in self._workers)

    def shutdown(self) -> None:
        """Stop the pool and join every worker thread.

        New work is refused immediately. Connections still open are given the
        grace period to be closed by their owners and are then closed
        forcibly. Calls still running on a worker after that, such as a
        connect in progress, are cancelled. Calling this more than once is
        harmless.
        """
        with self._cond:
            if not self._running:
                return
            self._running = False

            deadline = time.monotonic() + self.grace_period
            while self.live_connections():
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._cond.wait(remaining)

            stragglers = [(w, c) for w in self._workers for c in w._connections]

        for worker, connection in stragglers:
            self._logger.warning(
                "worker_pool.force_close",
                pool=self.name,
                worker=worker.index,
                connection_id=getattr(connection, "id", None),
            )
            try:
                worker.call(connection.abort)
            except Exception as e:
                self._logger.error(
                    "worker_pool.force_close_failed",
                    pool=self.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        # In-flight calls, such as a connect still opening its socket, are
        # cancelled so their cleanup runs before the loops exit.
        for worker in self._workers:
            try:
                worker.portal.call(worker.portal.stop, True)
            except RuntimeError:
                pass

        self._stack.close()
        self._stack = None
        self._cycle = None
        self._stopped = True
        self._logger.info("worker_pool.stopped", pool=self.name, size=self.size)
