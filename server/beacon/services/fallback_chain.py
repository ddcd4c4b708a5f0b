"""Ordered strategy runner used by the text extractor.

Each strategy is tried in turn. When it raises, its classifier decides whether
to retry it, fall through to the next strategy, or abort the whole chain.
When it returns, the result is kept if it is the best seen so far and the
chain stops as soon as a result is sufficient.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Verdict(str, Enum):
    RETRY = "retry"
    FALL_THROUGH = "fall_through"
    ABORT = "abort"


def always_fall_through(exc: Exception) -> Verdict:
    return Verdict.FALL_THROUGH


@dataclass
class Strategy(Generic[T]):
    name: str
    run: Callable[[bytes], T]
    classify: Callable[[Exception], Verdict] = always_fall_through
    on_retry: Optional[Callable[[], None]] = None
    max_retries: int = 1
    retry_delay: float = 0.0


@dataclass
class ChainResult(Generic[T]):
    value: Optional[T] = None
    method: Optional[str] = None
    sufficient: bool = False
    completed: list[str] = field(default_factory=list)
    errors: dict[str, Exception] = field(default_factory=dict)


class FallbackChain(Generic[T]):
    def __init__(
        self,
        strategies: list[Strategy[T]],
        is_sufficient: Callable[[T], bool],
        score: Callable[[T], int] = len,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.strategies = strategies
        self.is_sufficient = is_sufficient
        self.score = score
        self.sleep = sleep

    def run(self, payload: bytes) -> ChainResult[T]:
        result: ChainResult[T] = ChainResult()

        for strategy in self.strategies:
            value = self._attempt(strategy, payload, result)
            if value is None:
                continue

            result.completed.append(strategy.name)
            if result.value is None or self.score(value) > self.score(result.value):
                result.value = value
                result.method = strategy.name

            if self.is_sufficient(value):
                result.sufficient = True
                logger.debug(f"Strategy '{strategy.name}' produced a sufficient result")
                return result

            logger.info(f"Strategy '{strategy.name}' result insufficient, trying next")

        return result

    def _attempt(self, strategy: Strategy[T], payload: bytes, result: ChainResult[T]) -> Optional[T]:
        attempts = 0
        while True:
            try:
                return strategy.run(payload)
            except Exception as exc:
                verdict = strategy.classify(exc)
                if verdict is Verdict.ABORT:
                    raise
                if verdict is Verdict.RETRY and attempts < strategy.max_retries:
                    attempts += 1
                    logger.warning(
                        f"Strategy '{strategy.name}' failed ({exc}); "
                        f"retry {attempts}/{strategy.max_retries}"
                    )
                    if strategy.on_retry:
                        strategy.on_retry()
                    if strategy.retry_delay:
                        self.sleep(strategy.retry_delay)
                    continue

                logger.warning(f"Strategy '{strategy.name}' failed, falling through: {exc}")
                result.errors[strategy.name] = exc
                return None
