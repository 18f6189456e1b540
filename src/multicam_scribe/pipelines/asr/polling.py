"""Bounded polling of long-running remote jobs."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from ...exceptions import PollingTimeoutError
from ...utils.logging import get_logger

LOGGER = get_logger(__name__)

__all__ = ["PollingPolicy"]

T = TypeVar("T")


@dataclass(slots=True)
class PollingPolicy:
    """Fixed-interval poll loop with a maximum number of attempts.

    ``sleep`` is injectable so tests can drive the loop without waiting.
    """

    interval_seconds: float = 3.0
    max_attempts: int = 300
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def wait_for(
        self,
        fetch: Callable[[], T],
        is_done: Callable[[T], bool],
        *,
        initial: T | None = None,
        description: str = "remote job",
        on_poll: Callable[[T, int], None] | None = None,
    ) -> T:
        """Call ``fetch`` until ``is_done`` accepts its result.

        ``initial`` is a state already known before polling starts (for example the
        response of a submit call); it is returned as-is when already finished.
        """
        if initial is not None and is_done(initial):
            return initial

        for attempt in range(1, self.max_attempts + 1):
            self.sleep(self.interval_seconds)
            state = fetch()
            if on_poll is not None:
                on_poll(state, attempt)
            if is_done(state):
                LOGGER.debug("%s finished after %s poll(s).", description, attempt)
                return state

        waited = self.interval_seconds * self.max_attempts
        raise PollingTimeoutError(
            f"{description} did not finish after {self.max_attempts} polls (~{waited:.0f}s)."
        )
