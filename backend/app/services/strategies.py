"""
Ordered fallback chains.

A chain is a list of named strategies tried in order; the first success wins
and every failure is kept so the caller can log or report it.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Sequence, Tuple, TypeVar

from app.exceptions import StrategiesExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StrategyFailed(Exception):
    """Raised by a strategy that ran cleanly but has nothing to offer."""


@dataclass
class Strategy(Generic[T]):
    name: str
    run: Callable[[], Awaitable[T]]


@dataclass
class StrategyOutcome(Generic[T]):
    """Winning value plus the failures of every strategy tried before it."""
    value: T
    strategy: str
    failures: List[Tuple[str, Exception]] = field(default_factory=list)


async def run_strategies(
    subject: str,
    strategies: Sequence[Strategy[T]],
) -> StrategyOutcome[T]:
    """
    Run strategies in order until one succeeds.

    Args:
        subject: Human-readable description used in logs and errors
        strategies: Ordered strategies

    Raises:
        StrategiesExhausted: every strategy raised
    """
    failures: List[Tuple[str, Exception]] = []
    for strategy in strategies:
        try:
            value = await strategy.run()
        except Exception as e:
            logger.warning(f"Strategy '{strategy.name}' failed for {subject}: {e}")
            failures.append((strategy.name, e))
            continue

        if failures:
            logger.info(f"{subject}: fell back to '{strategy.name}'")
        return StrategyOutcome(value=value, strategy=strategy.name, failures=failures)

    raise StrategiesExhausted(subject, failures)
