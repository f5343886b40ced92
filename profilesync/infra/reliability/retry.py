# =============================================================================
# File: profilesync/infra/reliability/retry.py
# Description: Exponential backoff with jitter. Used in-line by the
#              infrastructure clients and as a delay schedule by the sync worker
# =============================================================================

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from typing import Callable, Optional, TypeVar

from profilesync.config.reliability_config import RetryConfig

logger = logging.getLogger("profilesync.retry")

T = TypeVar('T')


# Jitter strategies
class JitterStrategy(ABC):
    """Base class for jitter strategies."""

    @abstractmethod
    def apply(self, base_delay: float) -> float:
        """Apply jitter to base delay."""
        pass


class FullJitter(JitterStrategy):
    """Full jitter: delay = random(0, base_delay)."""

    def apply(self, base_delay: float) -> float:
        return random.uniform(0, base_delay)


class EqualJitter(JitterStrategy):
    """Equal jitter: delay = base_delay/2 + random(0, base_delay/2)."""

    def apply(self, base_delay: float) -> float:
        half = base_delay / 2
        return half + random.uniform(0, half)


class CompatibleJitter(JitterStrategy):
    """Compatible jitter: +/-25% around the base delay."""

    def apply(self, base_delay: float) -> float:
        jitter_factor = 1.0 + random.uniform(-0.25, 0.25)
        return base_delay * jitter_factor


def get_jitter_strategy(jitter_type: str) -> JitterStrategy:
    """Get jitter strategy by name."""
    strategies = {
        'full': FullJitter(),
        'equal': EqualJitter(),
        'compatible': CompatibleJitter(),
    }
    return strategies.get(jitter_type, CompatibleJitter())


def calculate_delay_ms(retry_config: RetryConfig, attempt: int) -> float:
    """
    Delay before the attempt following `attempt` (1-based), jitter applied.

    Never exceeds max_delay_ms.
    """
    base_delay_ms = min(
        retry_config.initial_delay_ms * (retry_config.backoff_factor ** (max(attempt, 1) - 1)),
        retry_config.max_delay_ms
    )
    if not retry_config.jitter:
        return base_delay_ms
    return min(get_jitter_strategy(retry_config.jitter_type).apply(base_delay_ms), retry_config.max_delay_ms)


async def retry_async(
        func: Callable[..., T],
        *args,
        retry_config: Optional[RetryConfig] = None,
        context: str = "operation",
        **kwargs
) -> T:
    """Execute async function with retry logic."""
    if retry_config is None:
        retry_config = RetryConfig()

    last_exception: Optional[Exception] = None

    for attempt in range(1, retry_config.max_attempts + 1):
        try:
            return await func(*args, **kwargs)

        except Exception as e:
            last_exception = e

            if retry_config.retry_condition and not retry_config.retry_condition(e):
                logger.warning(
                    f"Retry condition not met for {context} after attempt {attempt}. Error: {e}"
                )
                raise

            if attempt >= retry_config.max_attempts:
                logger.warning(
                    f"Retry exhausted for {context} after {attempt} attempts. Last error: {e}"
                )
                raise

            delay_seconds = calculate_delay_ms(retry_config, attempt) / 1000

            logger.info(
                f"Retry attempt {attempt}/{retry_config.max_attempts} for {context} "
                f"after error: {e}. Waiting {delay_seconds:.2f}s before retry."
            )

            await asyncio.sleep(delay_seconds)

    if last_exception:
        raise last_exception
    raise RuntimeError("Unexpected retry failure")
