"""
Cooperative scheduler for the monitor's periodic activities.

Design goals
------------
- Everything runs on one asyncio event loop; blocking I/O is pushed to an
  executor with `run_blocking` and awaited, so state is only touched on the loop.
- Periodic tasks fire at a fixed cadence. A tick that returns a coroutine runs
  it as its own task, so a slow round trip never delays the next tick.
- Session-scoped work is tagged with the scheduler generation. Bumping the
  generation cancels every scoped periodic task at once, and results of
  scoped requests submitted under an older generation are discarded.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Set, TypeVar

root_package_name = __name__.split(".")[0] if "." in __name__ else __name__
logger = logging.getLogger(root_package_name)

T = TypeVar("T")


@dataclass
class PeriodicTask:
    """A named activity fired every `interval` seconds.

    Attributes
    ----------
    name : str
        Unique task name.
    interval : float
        Cadence in seconds.
    fn : Callable[[], Any]
        Tick callback; may return an awaitable.
    generation : int or None
        Generation the task is scoped to, None for tasks that outlive sessions.
    """

    name: str
    interval: float
    fn: Callable[[], Any]
    generation: Optional[int]
    task: Optional["asyncio.Task[None]"] = field(default=None, repr=False)


class TaskScheduler:
    """
    Named periodic tasks and generation-tagged requests on the running loop.

    Parameters
    ----------
    executor : concurrent.futures.Executor, optional
        Executor for `run_blocking`; the loop's default executor when omitted.
    """

    def __init__(self, executor: Optional[Executor] = None):
        self.generation = 0
        self._executor = executor
        self._periodic: Dict[str, PeriodicTask] = {}
        self._inflight: Set[asyncio.Task] = set()

    # ------------------------------ periodic ------------------------------ #
    def every(
        self,
        name: str,
        interval: float,
        fn: Callable[[], Any],
        scoped: bool = True,
        immediate: bool = False,
    ) -> PeriodicTask:
        """
        Start firing `fn` every `interval` seconds.

        Parameters
        ----------
        name : str
            Task name; an existing task with the same name is cancelled first.
        interval : float
            Cadence in seconds (> 0).
        fn : Callable[[], Any]
            Tick callback. Awaitables it returns are spawned, not awaited.
        scoped : bool, optional
            Bind the task to the current generation, by default True
        immediate : bool, optional
            Fire once right away instead of after the first interval.
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.cancel(name)

        periodic = PeriodicTask(
            name=name,
            interval=float(interval),
            fn=fn,
            generation=self.generation if scoped else None,
        )
        periodic.task = asyncio.get_running_loop().create_task(
            self._run(periodic, immediate), name=name
        )
        self._periodic[name] = periodic
        return periodic

    def cancel(self, name: str) -> bool:
        periodic = self._periodic.pop(name, None)
        if periodic is None:
            return False
        if periodic.task is not None:
            periodic.task.cancel()
        return True

    def is_running(self, name: str) -> bool:
        periodic = self._periodic.get(name)
        return periodic is not None and periodic.task is not None and not periodic.task.done()

    def is_current(self, generation: Optional[int]) -> bool:
        return generation is None or generation == self.generation

    def bump_generation(self) -> int:
        """Invalidate the current generation and cancel its periodic tasks."""
        self.generation += 1
        for name in [n for n, p in self._periodic.items() if p.generation is not None]:
            self.cancel(name)
        logger.debug("Scheduler generation is now %d", self.generation)
        return self.generation

    async def _run(self, periodic: PeriodicTask, immediate: bool) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time() if immediate else loop.time() + periodic.interval
        while True:
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            if not self.is_current(periodic.generation):
                break
            self._fire(periodic)

            next_at += periodic.interval
            # Missed ticks are dropped, not replayed.
            now = loop.time()
            while next_at < now:
                next_at += periodic.interval

    def _fire(self, periodic: PeriodicTask) -> None:
        try:
            result = periodic.fn()
        except Exception as e:
            logger.exception(f"Error in periodic task {periodic.name}: {e}")
            return
        if inspect.isawaitable(result):
            self._spawn(result, periodic.name)

    # ------------------------------ requests ------------------------------ #
    def submit(
        self,
        request: Awaitable[T],
        on_result: Optional[Callable[[T], None]] = None,
        scoped: bool = True,
        name: str = "request",
    ) -> "asyncio.Task[Optional[T]]":
        """
        Run `request` and hand its result to `on_result` if still current.

        The generation is captured at submission. If it changed by the time
        the request completes (the session stopped or restarted), the result
        is dropped. The request itself is never cancelled by a generation bump.
        """
        generation = self.generation if scoped else None

        async def _apply() -> Optional[T]:
            result = await request
            if not self.is_current(generation):
                logger.debug(
                    "Dropping stale %s result from generation %s", name, generation
                )
                return None
            if on_result is not None:
                on_result(result)
            return result

        return self._spawn(_apply(), name)

    def _spawn(self, awaitable: Awaitable[Any], name: str) -> asyncio.Task:
        task = asyncio.ensure_future(awaitable)
        self._inflight.add(task)
        task.add_done_callback(functools.partial(self._on_done, name))
        return task

    def _on_done(self, name: str, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Unhandled error in {name}: {exc!r}")

    async def drain(self) -> None:
        """Wait until every spawned tick/request has completed."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def run_blocking(
        self, fn: Callable[..., T], *args: Any, executor: Optional[Executor] = None
    ) -> T:
        """Run a blocking call in an executor and await its result.

        `executor` overrides the scheduler's executor for calls that must be
        serialized on a dedicated worker.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            executor or self._executor, functools.partial(fn, *args)
        )

    async def shutdown(self) -> None:
        """Cancel all periodic tasks and outstanding requests."""
        tasks = [p.task for p in self._periodic.values() if p.task is not None]
        self._periodic.clear()
        tasks.extend(self._inflight)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
