"""Caller-defined custom metrics and scoped timing.

The analysis engine never interprets custom metric keys (except reading
``pageLoadTime`` for the page-load budget); the payload is copied into the
report as-is.

Example::

    metrics = CustomMetrics()
    with metrics.timer("checkout"):
        run_checkout_flow()
    metrics.add("pageLoadTime", 1840)
    report = analyzer.analyze(trace, custom_metrics=metrics.as_dict())
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from harperf._internal.types import MetricsPayload


class Timer:
    """Handle for one timed unit of work.

    Call ``start()`` and ``stop()`` explicitly, or use the handle as a
    context manager. The duration is recorded once, on stop, as
    ``timing_<name>``; if the ``with`` block raises it is recorded as
    ``timing_<name>_failed`` and the exception propagates.

    Attributes:
        name: Name of the timed unit.
        duration_ms: Recorded duration, None until stopped.
    """

    def __init__(
        self,
        name: str,
        sink: CustomMetrics,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.duration_ms: float | None = None
        self._sink = sink
        self._clock = clock
        self._started: float | None = None

    def start(self) -> Timer:
        """Start timing. Returns the handle for chaining."""
        if self._started is not None:
            msg = f"Timer {self.name!r} already started"
            raise RuntimeError(msg)
        self._started = self._clock()
        return self

    def stop(self, *, failed: bool = False) -> float:
        """Stop timing and record the duration.

        Args:
            failed: Record under the ``_failed`` key.

        Returns:
            Duration in milliseconds.

        Raises:
            RuntimeError: If the timer was never started or is already stopped.
        """
        if self._started is None or self.duration_ms is not None:
            msg = f"Timer {self.name!r} is not running"
            raise RuntimeError(msg)
        self.duration_ms = (self._clock() - self._started) * 1000
        suffix = "_failed" if failed else ""
        self._sink.add(f"timing_{self.name}{suffix}", self.duration_ms)
        return self.duration_ms

    def __enter__(self) -> Timer:
        return self.start()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        self.stop(failed=exc_type is not None)


class CustomMetrics(Mapping[str, Any]):
    """Opaque key-to-value mapping of caller metrics.

    Read-only ``Mapping`` access; values are set with ``add`` or recorded by
    timers.
    """

    def __init__(
        self,
        initial: Mapping[str, Any] | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._values: MetricsPayload = dict(initial or {})
        self._clock = clock

    def add(self, key: str, value: Any) -> None:
        """Set *key* to *value*, replacing any previous value."""
        self._values[key] = value

    def timer(self, name: str) -> Timer:
        """Return an unstarted timer that records into this mapping."""
        return Timer(name, self, clock=self._clock)

    def as_dict(self) -> MetricsPayload:
        """Return a shallow copy of the collected metrics."""
        return dict(self._values)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)
