"""Bounded polling for UI state that settles asynchronously.

Every "wait for the App Store to catch up" in the package goes through
``wait_for``: the app finishing its launch, the Purchases page loading, and
the install completing.  The loop is a plain blocking sleep-and-recheck; one
automation session drives one UI at a time, so there is nothing to overlap.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import time
from typing import Callable, TypeVar

from macappstore.config import MacAppStoreConfigError

logger = logging.getLogger("macappstore.engine.poller")

T = TypeVar("T")


class WaitTimeout(Exception):
    """Raised when a predicate is still unsatisfied at the deadline."""

    def __init__(self, description: str, timeout: float, attempts: int) -> None:
        super().__init__(
            f"Timed out after {timeout:g}s ({attempts} attempts) waiting for {description}"
        )
        self.description = description
        self.timeout = timeout
        self.attempts = attempts


@dataclasses.dataclass(frozen=True)
class WaitSpec:
    """How often to poll and for how long.

    ``timeout >= interval >= 0`` must hold; anything else is a configuration
    mistake and is rejected at construction.
    """

    interval: float
    timeout: float

    def __post_init__(self) -> None:
        for name in ("interval", "timeout"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or math.isnan(value):
                raise MacAppStoreConfigError(f"Wait {name} must be a number, got {value!r}")
            if value < 0:
                raise MacAppStoreConfigError(f"Wait {name} must not be negative, got {value:g}")
        if self.timeout < self.interval:
            raise MacAppStoreConfigError(
                f"Wait timeout ({self.timeout:g}s) must not be shorter than "
                f"the poll interval ({self.interval:g}s)"
            )


def wait_for(
    predicate: Callable[[], T | None],
    interval: float,
    timeout: float,
    description: str = "condition",
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Evaluate *predicate* until it returns something truthy.

    The first evaluation happens immediately.  After each miss the loop
    sleeps *interval* seconds and tries again, until *timeout* seconds have
    elapsed, at which point ``WaitTimeout`` is raised.  A check that starts
    before the deadline but finishes after it still counts as a miss.  An
    attempt is only made if it would start before the deadline, so an
    always-false predicate is evaluated ``ceil(timeout / interval)`` times
    (once when ``timeout < interval`` or ``timeout == 0``) and the failure is
    raised no earlier than *timeout* seconds after the call.

    Returns the predicate's truthy result, so locators can be polled directly.
    """
    if interval < 0 or timeout < 0:
        raise MacAppStoreConfigError(
            f"Wait interval and timeout must not be negative (got {interval:g}, {timeout:g})"
        )

    start = clock()
    deadline = start + timeout
    attempts = 0

    while True:
        attempts += 1
        result = predicate()
        if result:
            logger.debug("%s satisfied after %d attempt(s)", description, attempts)
            return result

        now = clock()
        remaining = deadline - now
        if remaining <= 0:
            break
        if interval >= remaining:
            # No further attempt fits before the deadline; run out the clock.
            sleep(remaining)
            break

        logger.debug("Waiting for %s (attempt %d, %.1fs left)", description, attempts, remaining)
        sleep(interval)

    raise WaitTimeout(description, timeout, attempts)


def wait_with(spec: WaitSpec, predicate: Callable[[], T | None], description: str = "condition", **kwargs) -> T:
    """``wait_for`` driven by a validated ``WaitSpec``."""
    return wait_for(predicate, spec.interval, spec.timeout, description=description, **kwargs)
