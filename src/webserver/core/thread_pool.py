"""
=============================================================================
FIXED-SIZE WORKER POOL
=============================================================================

A fixed set of worker threads that take tasks from one shared queue. The
server submits one task per accepted connection; a task runs on a single
worker from start to finish.

=============================================================================
ARCHITECTURE
=============================================================================

    accept loop
        │  submit(handler, args=(conn,))
        ▼
    ┌──────────────────────────────┐
    │  queue.Queue  [t5][t4][t3]   │   connections waiting for a worker
    └──────────────────────────────┘
        │         │         │
        ▼         ▼         ▼
    Worker-0  Worker-1  Worker-2  ...   created once, never resized

Idle workers block in Queue.get(), which wakes waiters in FIFO order, so a
steady stream of tasks rotates over all the workers.

When every worker is busy, new tasks wait in the queue. Nothing is rejected
or retried: a client of a saturated server just waits longer. With a bounded
queue, submit() blocks the caller until a slot frees up.

=============================================================================
STOPPING
=============================================================================

shutdown() optionally waits for the queue to drain, then enqueues one
``None`` per worker. A worker that dequeues ``None`` returns from run().

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)

_STOP = None


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """One queued call: func(*args, **kwargs)."""
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)

    def __call__(self):
        return self.func(*self.args, **self.kwargs)


class Worker(threading.Thread):
    """
    Daemon thread that runs tasks until it dequeues the stop marker.

    A task that raises is logged and counted in ``tasks_failed``; the
    worker moves on to the next task.
    """

    def __init__(self, tasks: queue.Queue, worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.tasks = tasks
        self.worker_id = worker_id
        self.state = WorkerState.IDLE

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        while True:
            task = self.tasks.get()
            try:
                if task is _STOP:
                    break
                self._run_task(task)
            finally:
                self.tasks.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"{self.name} exited after {self.tasks_completed} tasks")

    def _run_task(self, task: Task):
        self.state = WorkerState.BUSY
        started = time.time()
        logger.debug(
            f"executing on thread: {self.worker_id} "
            f"(waited {started - task.submitted_at:.3f}s in queue)"
        )

        try:
            task()
        except Exception:
            self.tasks_failed += 1
            logger.exception(f"Task on {self.name} raised after {time.time() - started:.3f}s")
        else:
            self.tasks_completed += 1
        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Fixed-size thread pool.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   pool = ThreadPool(num_workers=4)                                  │
    │   pool.start()                                                      │
    │   pool.submit(handler, args=(conn,))                                │
    │   pool.stats["per_worker"]    # {"Worker-0": 12, "Worker-1": 11}    │
    │   pool.shutdown()                                                   │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(self, num_workers: int = 4, queue_size: int = 0):
        """
        Args:
            num_workers: Number of worker threads, fixed for the pool's life.
            queue_size: Maximum number of waiting tasks. 0 = unbounded.
        """
        if num_workers < 1:
            raise ValueError("num_workers must be >= 1")

        self.num_workers = num_workers
        self._tasks: queue.Queue = queue.Queue(maxsize=queue_size)
        self._workers: List[Worker] = []
        self._lock = threading.Lock()
        # held across the accepting check and the put, so no task lands
        # behind the stop markers
        self._submit_lock = threading.Lock()
        self._accepting = False

    @property
    def workers(self) -> List[Worker]:
        """Snapshot of the live worker threads."""
        with self._lock:
            return list(self._workers)

    def start(self):
        """Spawn the workers. A second call does nothing."""
        with self._lock:
            if self._workers:
                return

            self._workers = [Worker(self._tasks, i) for i in range(self.num_workers)]
            for worker in self._workers:
                worker.start()
            with self._submit_lock:
                self._accepting = True

        logger.info(f"Thread pool started with {self.num_workers} workers")

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        block: bool = True,
        queue_timeout: Optional[float] = None
    ) -> bool:
        """
        Queue a call for the next free worker.

        Args:
            func: Callable to run on a worker.
            args: Positional arguments.
            kwargs: Keyword arguments.
            block: Wait for a slot when a bounded queue is full.
            queue_timeout: Upper bound on that wait.

        Returns:
            True once queued, False if a bounded queue stayed full.

        Raises:
            RuntimeError: The pool is not running.
        """
        with self._submit_lock:
            if not self._accepting:
                raise RuntimeError("Thread pool is not running")

            try:
                self._tasks.put(Task(func, args, kwargs or {}), block=block, timeout=queue_timeout)
            except queue.Full:
                return False
            return True

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop every worker.

        Args:
            wait: Let the queued tasks finish first.
            timeout: Give up waiting for the queue after this many seconds.
        """
        with self._lock:
            if not self._workers:
                return
            workers = self._workers

        with self._submit_lock:
            self._accepting = False

        logger.info("Stopping thread pool")
        if wait:
            self._drain(timeout)

        for _ in workers:
            try:
                self._tasks.put(_STOP, timeout=1.0)
            except queue.Full:
                logger.warning("Queue full, a worker did not get its stop marker")

        for worker in workers:
            worker.join(timeout=2.0)

        with self._lock:
            self._workers = []
        logger.info("Thread pool stopped")

    def _drain(self, timeout: Optional[float]):
        if timeout is None:
            self._tasks.join()
            return

        deadline = time.time() + timeout
        while self._tasks.unfinished_tasks:
            if time.time() >= deadline:
                logger.warning(f"{self._tasks.unfinished_tasks} tasks still pending after {timeout}s")
                return
            time.sleep(0.05)

    # =========================================================================
    # MONITORING
    # =========================================================================

    def _count(self, state: WorkerState) -> int:
        return sum(w.state is state for w in self.workers)

    @property
    def busy_workers(self) -> int:
        return self._count(WorkerState.BUSY)

    @property
    def idle_workers(self) -> int:
        return self._count(WorkerState.IDLE)

    @property
    def queue_size(self) -> int:
        """Tasks waiting for a worker."""
        return self._tasks.qsize()

    @property
    def stats(self) -> dict:
        """
        Counters for the running pool.

        ``per_worker`` maps worker names to completed task counts, showing
        how the work was spread. Counters go away with the workers on
        shutdown().
        """
        workers = self.workers
        return {
            "workers": {
                "total": len(workers),
                "busy": self.busy_workers,
                "idle": self.idle_workers,
            },
            "tasks": {
                "queued": self.queue_size,
                "completed": sum(w.tasks_completed for w in workers),
                "failed": sum(w.tasks_failed for w in workers),
            },
            "per_worker": {w.name: w.tasks_completed for w in workers},
        }
