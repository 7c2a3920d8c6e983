"""Per-call deadlines and run-level cancellation.

Every blocking call made while testing an endpoint (token acquisition and
the API request) receives its own ``Deadline``. A deadline bounds the wall
clock time of that one call; it is never shared between stages or between
endpoints.

Cancellation of the whole run is signalled through a ``CancelToken``. A
deadline created with a token raises ``RunCancelled`` from ``check()`` once
the token is set, so an in-flight call stops at its next checkpoint.

httpx applies its timeouts per socket operation, not to the exchange as a
whole. ``Deadline.run`` provides the hard wall-clock bound.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Callable, Optional, TypeVar

import httpx

T = TypeVar("T")


class DeadlineExceeded(Exception):
    """Raised when a call runs past its deadline."""

    def __init__(self, seconds: float):
        super().__init__(f"deadline of {seconds:g}s exceeded")
        self.seconds = seconds


class RunCancelled(BaseException):
    """Raised when the run is cancelled.

    Derives from BaseException so that per-endpoint error handling, which
    records ordinary exceptions as stage failures, lets it through.
    """


class CancelToken:
    """Explicit cancellation signal shared by everything in one run."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RunCancelled("run cancelled")


class Deadline:
    """A wall-clock budget for a single blocking call.

    The clock starts when the deadline is created.

    Args:
        seconds: Budget in seconds, must be positive.
        cancel_token: Optional run-level cancellation token.
    """

    def __init__(self, seconds: float, cancel_token: Optional[CancelToken] = None):
        if seconds <= 0:
            raise ValueError("deadline must be positive")
        self.seconds = seconds
        self.cancel_token = cancel_token
        self._expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        """Seconds left before the deadline, never negative."""
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self._expires_at

    def check(self) -> None:
        """Raise if the run was cancelled or the deadline has passed.

        Raises:
            RunCancelled: If the cancel token is set.
            DeadlineExceeded: If the budget is spent.
        """
        if self.cancel_token is not None:
            self.cancel_token.raise_if_cancelled()
        if self.expired:
            raise DeadlineExceeded(self.seconds)

    def timeout(self) -> httpx.Timeout:
        """An httpx timeout bounded by the time remaining.

        httpx applies the value to each phase (connect, write, read, pool)
        separately; ``run`` bounds the call as a whole.
        """
        self.check()
        return httpx.Timeout(self.remaining())

    def bound(self, request: httpx.Request) -> None:
        """Cut the timeout of the request's next read down to the time left.

        httpx reads the ``timeout`` extension on every socket operation, so
        this takes effect between the chunks of a streamed response.
        """
        request.extensions["timeout"] = self.timeout().as_dict()

    def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call ``func`` in a worker thread and wait no longer than the time left.

        When the deadline passes first the worker is abandoned and
        ``DeadlineExceeded`` is raised at once. ``func`` should check the
        deadline itself so the worker stops soon after.

        Raises:
            DeadlineExceeded: If ``func`` has not returned in time.
            RunCancelled: If the cancel token is set before the call.
        """
        self.check()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="deadline")
        try:
            future = executor.submit(func, *args, **kwargs)
            try:
                return future.result(timeout=self.remaining())
            except FutureTimeout:
                raise DeadlineExceeded(self.seconds) from None
        finally:
            executor.shutdown(wait=False)
