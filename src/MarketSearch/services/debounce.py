"""Request coalescing for interactive search fields.

A `RequestCoalescer` sits between a rapidly changing input (one call per
keystroke) and an expensive coroutine. Each `submit` supersedes the previous
one: the earlier timer is cancelled and only the newest intent reaches the
wrapped coroutine after the cool-down window.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Generic, TypeVar

from MarketSearch.utils.log import log

T = TypeVar("T")

DEFAULT_DELAY = 0.3


class RequestCoalescer(Generic[T]):
    """Single-flight debounce for one logical search field.

    Each submission bumps a generation counter. A timer only runs the wrapped
    coroutine when its generation is still the latest, and a finished run only
    resolves its future under the same condition. Futures of superseded
    submissions are never resolved; callers that need to stop waiting must
    race them against their own abandonment signal.

    Use one instance per search field. Instances share no state.
    """

    def __init__(self, func: Callable[..., Awaitable[T]], *, delay: float = DEFAULT_DELAY) -> None:
        """Initialize the coalescer.

        Args:
            func: Coroutine function executed for the surviving intent.
            delay: Cool-down window in seconds.
        """
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self._func = func
        self._delay = delay
        self._generation = 0
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def delay(self) -> float:
        """Cool-down window in seconds."""
        return self._delay

    @property
    def generation(self) -> int:
        """Number of submissions seen so far."""
        return self._generation

    @property
    def pending(self) -> bool:
        """Whether a timer is armed and has not fired yet."""
        return self._timer is not None

    def submit(self, *args: Any, **kwargs: Any) -> asyncio.Future[T]:
        """Arm a new intent, superseding any earlier one.

        Must be called from a running event loop.

        Args:
            *args: Positional arguments for the wrapped coroutine function.
            **kwargs: Keyword arguments for the wrapped coroutine function.

        Returns:
            Future resolved with the wrapped coroutine's result if this intent
            is still the latest when it completes.
        """
        loop = asyncio.get_running_loop()
        self._disarm()
        self._generation += 1
        generation = self._generation
        future: asyncio.Future[T] = loop.create_future()
        self._timer = loop.call_later(self._delay, self._fire, generation, future, args, kwargs)
        return future

    def cancel(self) -> None:
        """Disarm the pending timer and invalidate any in-flight run."""
        self._disarm()
        self._generation += 1

    async def drain(self) -> None:
        """Wait for runs that have already fired to finish."""
        if self._tasks:
            await asyncio.gather(*tuple(self._tasks), return_exceptions=True)

    def _disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(
        self,
        generation: int,
        future: asyncio.Future[T],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> None:
        if generation != self._generation:
            return
        self._timer = None
        task = asyncio.ensure_future(self._run(generation, future, args, kwargs))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(
        self,
        generation: int,
        future: asyncio.Future[T],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> None:
        try:
            result = await self._func(*args, **kwargs)
        except Exception as error:  # noqa: BLE001 - delivered to the awaiting caller
            if generation == self._generation and not future.done():
                future.set_exception(error)
            else:
                log.debug("Discarded failure of superseded intent %d: %s", generation, error)
            return

        if generation != self._generation:
            log.debug("Discarded result of superseded intent %d (latest %d)", generation, self._generation)
            return
        if not future.done():
            future.set_result(result)
