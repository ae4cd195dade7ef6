"""Blocking wait for asynchronously provisioned entities.

The provider accepts a mutation immediately and applies it in the background,
reporting progress through a status field. ``StateWaiter`` polls a refresh
function until the status reaches a target value. It is generic over the
status vocabulary so it can be reused for any entity that reports progress
this way.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Callable, Collection, Generic, Hashable, Optional, Tuple, TypeVar

from . import metrics
from .errors import ProvisioningTimeoutError, UnexpectedStatusError

logger = logging.getLogger(__name__)

T = TypeVar("T")
S = TypeVar("S", bound=Hashable)

# (entity, status); entity is None while the provider cannot see it yet.
RefreshFunc = Callable[[], Tuple[Optional[T], Optional[S]]]

DEFAULT_MIN_INTERVAL = float(os.getenv("ACCELERATOR_POLL_MIN_INTERVAL_SECONDS", "2.0"))
DEFAULT_MAX_INTERVAL = float(os.getenv("ACCELERATOR_POLL_MAX_INTERVAL_SECONDS", "10.0"))


class StateWaiter(Generic[T, S]):
    """Poll ``refresh`` until its status is in ``target``.

    Args:
        refresh: Returns the current entity and its status
        pending: Statuses that mean "keep waiting"
        target: Statuses that end the wait successfully
        timeout: Seconds before giving up
        delay: Seconds to wait before the first observation
        min_interval: First interval between observations
        max_interval: Upper bound for the doubling interval
        resource_id: Identifier used in logs and errors
        clock: Monotonic clock, injectable for tests
        sleep: Sleep function, injectable for tests
    """

    def __init__(
        self,
        refresh: RefreshFunc,
        pending: Collection[S],
        target: Collection[S],
        timeout: float,
        delay: float = 0.0,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        max_interval: float = DEFAULT_MAX_INTERVAL,
        resource_id: str | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        if not target:
            raise ValueError("at least one target status is required")
        self.refresh = refresh
        self.pending = frozenset(pending)
        self.target = frozenset(target)
        self.timeout = timeout
        self.delay = delay
        self.min_interval = min_interval
        self.max_interval = max(max_interval, min_interval)
        self.resource_id = resource_id
        self.clock = clock
        self.sleep = sleep

    def _sleep_until(self, deadline: float, interval: float) -> None:
        remaining = deadline - self.clock()
        if remaining > 0:
            self.sleep(min(interval, remaining))

    def wait(self) -> T:
        """Block until a target status is observed.

        Returns:
            The entity observed with a target status

        Raises:
            ProvisioningTimeoutError: No target status before the deadline
            UnexpectedStatusError: A status outside pending and target
        """
        start = self.clock()
        deadline = start + self.timeout
        interval = self.min_interval
        last_status: S | None = None

        if self.delay > 0:
            self._sleep_until(deadline, self.delay)

        while True:
            entity, status = self.refresh()

            if entity is None:
                metrics.wait_attempts_total.labels(observation="absent").inc()
                logger.debug(f"Accelerator ({self.resource_id}) not visible yet, continuing to wait")
            else:
                last_status = status
                logger.debug(f"Accelerator ({self.resource_id}) status: {status}")
                if status in self.target:
                    metrics.wait_attempts_total.labels(observation="target").inc()
                    metrics.wait_duration_seconds.labels(result="success").observe(self.clock() - start)
                    return entity
                if status not in self.pending:
                    metrics.wait_attempts_total.labels(observation="unexpected").inc()
                    metrics.wait_duration_seconds.labels(result="unexpected").observe(self.clock() - start)
                    raise UnexpectedStatusError(self.resource_id, status, self.pending, self.target)
                metrics.wait_attempts_total.labels(observation="pending").inc()

            if self.clock() >= deadline:
                metrics.wait_duration_seconds.labels(result="timeout").observe(self.clock() - start)
                raise ProvisioningTimeoutError(self.resource_id, last_status, self.timeout)

            self._sleep_until(deadline, interval)
            interval = min(interval * 2, self.max_interval)


def wait_for_state(
    refresh: RefreshFunc,
    pending: Collection[S],
    target: Collection[S],
    timeout: float,
    **kwargs: object,
) -> T:
    """Shorthand for ``StateWaiter(...).wait()``."""
    return StateWaiter(refresh, pending, target, timeout, **kwargs).wait()  # type: ignore[arg-type]
