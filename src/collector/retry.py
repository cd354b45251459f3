"""
Retry / Backoff Controller

Wraps a single upstream operation with classified retries and exponential
backoff, and accounts for the cost of every attempt that actually executed.

Backoff schedule (defaults): 1s, 2s, 4s, capped at 10s. No delay before the
first attempt or after the last one.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional

from .errors import DataForSEOError, classify_error

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0

    @classmethod
    def from_engine_config(cls, config) -> "RetryConfig":
        return cls(
            max_retries=config.max_retries,
            base_delay=config.retry_base_delay,
            max_delay=config.retry_max_delay,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay after the given zero-based failed attempt."""
        return min(self.base_delay * (2 ** attempt), self.max_delay)


@dataclass
class CostEntry:
    """One executed upstream attempt."""
    endpoint: str
    cost: float
    succeeded: bool
    source: Optional[str] = None


@dataclass
class CostLedger:
    """
    Per-request record of every billed attempt.

    A child ledger tags its entries with a source name and forwards them to
    its parent, so the request total keeps counting even when the outer
    deadline cancels an adapter half-way.
    """
    source: Optional[str] = None
    parent: Optional["CostLedger"] = None
    entries: List[CostEntry] = field(default_factory=list)

    def child(self, source: str) -> "CostLedger":
        return CostLedger(source=source, parent=self)

    def record(self, endpoint: str, cost: float, succeeded: bool = True):
        self._append(CostEntry(
            endpoint=endpoint,
            cost=cost,
            succeeded=succeeded,
            source=self.source,
        ))

    def _append(self, entry: CostEntry):
        self.entries.append(entry)
        if self.parent is not None:
            self.parent._append(entry)

    @property
    def total(self) -> float:
        return sum(entry.cost for entry in self.entries)

    @property
    def attempts(self) -> int:
        return len(self.entries)


@dataclass
class RetryOutcome:
    """Successful result of a retried operation."""
    value: Any
    cost: float
    attempts: int


async def with_retry(
    operation: Callable[[], Awaitable[Any]],
    endpoint: str,
    config: Optional[RetryConfig] = None,
    ledger: Optional[CostLedger] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    cost_of: Optional[Callable[[Any], float]] = None,
) -> RetryOutcome:
    """
    Run an operation with classified retries and exponential backoff.

    Args:
        operation: Zero-argument coroutine factory performing one attempt
        endpoint: Endpoint name used for logging and error context
        config: Retry configuration (max_retries, base_delay, max_delay)
        ledger: Per-request cost ledger; every attempt is recorded in it
        sleep: Awaitable sleep used between attempts
        cost_of: Extracts the billed cost from a successful value

    Returns:
        RetryOutcome with the value, accumulated cost and attempt count

    Raises:
        DataForSEOError: The classified error of the last attempt, carrying
            the accumulated cost and the number of attempts made
    """
    config = config or RetryConfig()
    total_cost = 0.0
    max_attempts = config.max_retries + 1

    for attempt in range(max_attempts):
        try:
            value = await operation()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = classify_error(e, endpoint=endpoint)
            attempt_cost = error.cost or 0.0
            total_cost += attempt_cost
            if ledger is not None:
                ledger.record(endpoint, attempt_cost, succeeded=False)

            if not error.retryable or attempt + 1 >= max_attempts:
                error.cost = total_cost
                error.attempts = attempt + 1
                logger.error(
                    f"DataForSEO call failed on {endpoint}: {error.message}",
                    extra={
                        "endpoint": endpoint,
                        "status_code": error.status_code,
                        "retryable": error.retryable,
                        "attempts": attempt + 1,
                        "cost": total_cost,
                    },
                )
                if error is e:
                    raise
                raise error from e

            delay = config.delay_for(attempt)
            logger.warning(
                f"Request failed (attempt {attempt + 1}/{max_attempts}): {error.message}. "
                f"Retrying in {delay}s...",
                extra={
                    "endpoint": endpoint,
                    "status_code": error.status_code,
                    "attempt": attempt + 1,
                    "delay": delay,
                },
            )
            await sleep(delay)
            continue

        attempt_cost = float(cost_of(value)) if cost_of else 0.0
        total_cost += attempt_cost
        if ledger is not None:
            ledger.record(endpoint, attempt_cost, succeeded=True)
        return RetryOutcome(value=value, cost=total_cost, attempts=attempt + 1)

    # Only reached with a negative max_retries
    raise DataForSEOError(f"Retry loop exited without result for {endpoint}", endpoint=endpoint)
