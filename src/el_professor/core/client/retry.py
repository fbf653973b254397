"""
Exponential backoff retry and timeout helpers for ElProfessor.

This module provides the retry executor used around every network-facing
call: Gemini generation requests and MCP server connection attempts.
Attempts run strictly one after another; the delay between them grows
exponentially, is capped, and is optionally perturbed by ±25% jitter.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, fields, replace
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar, Union

from .errors import OperationTimeoutError, RetryExhaustedError, is_retryable_error

logger = logging.getLogger(__name__)

T = TypeVar('T')

JITTER_RATIO = 0.25


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior. Delays are in milliseconds."""
    max_attempts: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 10000
    exponential_base: float = 2.0
    jitter: bool = True

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay_ms < 0:
            raise ValueError(f"base_delay_ms must be >= 0, got {self.base_delay_ms}")
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError(
                f"max_delay_ms ({self.max_delay_ms}) must be >= base_delay_ms ({self.base_delay_ms})"
            )
        if self.exponential_base < 1:
            raise ValueError(f"exponential_base must be >= 1, got {self.exponential_base}")

    def merge(self, overrides: Optional[Mapping[str, Any]] = None) -> "RetryConfig":
        """Return a copy with the given fields overridden."""
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown retry option(s): {', '.join(sorted(unknown))}")
        return replace(self, **overrides)


RetryOptions = Union[RetryConfig, Mapping[str, Any], None]


def resolve_retry_config(options: RetryOptions = None) -> RetryConfig:
    """Merge partial retry options over the defaults."""
    if isinstance(options, RetryConfig):
        return options
    return RetryConfig().merge(options)


class RetryExecutor:
    """
    Runs async operations with retries and deadlines.

    The retryability predicate, the logger, the sleep coroutine and the random
    source are injected so the executor can be driven deterministically.
    """

    def __init__(
        self,
        is_retryable: Callable[[BaseException], bool] = is_retryable_error,
        log: Optional[logging.Logger] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        uniform: Callable[[float, float], float] = random.uniform,
    ):
        self.is_retryable = is_retryable
        self.logger = log or logger
        self._sleep = sleep
        self._uniform = uniform

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        config: RetryOptions = None,
        context: Optional[str] = None
    ) -> T:
        """
        Execute an async operation, retrying transient failures with backoff.

        Args:
            operation: Zero-argument callable returning an awaitable
            config: RetryConfig, or a mapping of overrides merged over the defaults
            context: Label used only in log messages

        Returns:
            Result of the first successful attempt

        Raises:
            The non-retryable error as soon as it occurs, or the last error
            once every attempt has failed
        """
        config = resolve_retry_config(config)
        last_error: Optional[Exception] = None

        for attempt in range(1, config.max_attempts + 1):
            try:
                return await operation()
            except Exception as e:
                last_error = e

                if attempt == config.max_attempts:
                    break

                if not self.is_retryable(e):
                    self.logger.debug(f"Non-retryable error in {context}, failing immediately")
                    raise

                delay_ms = self.calculate_delay(attempt, config)
                self.logger.warning(
                    f"Attempt {attempt}/{config.max_attempts} failed in {context}, "
                    f"retrying in {delay_ms}ms: {e}",
                    extra={"attempt": attempt, "delay_ms": delay_ms, "error": str(e)}
                )
                await self._sleep(delay_ms / 1000.0)

        if last_error is not None:
            raise last_error
        raise RetryExhaustedError()

    def calculate_delay(self, attempt: int, config: RetryConfig) -> int:
        """
        Compute the backoff delay after a failed attempt.

        Args:
            attempt: 1-based index of the attempt that just failed
            config: Effective retry configuration

        Returns:
            Delay in whole milliseconds
        """
        delay = min(
            config.base_delay_ms * config.exponential_base ** (attempt - 1),
            config.max_delay_ms
        )

        if config.jitter:
            jitter_range = delay * JITTER_RATIO
            delay = max(0.0, delay + self._uniform(-jitter_range, jitter_range))

        return int(delay)

    async def execute_with_timeout(
        self,
        operation: Callable[[], Awaitable[T]],
        timeout_ms: int,
        context: Optional[str] = None
    ) -> T:
        """
        Execute an async operation with a hard deadline.

        The operation is cancelled when the deadline passes.

        Args:
            operation: Zero-argument callable returning an awaitable
            timeout_ms: Deadline in milliseconds, non-negative
            context: Label included in the timeout message

        Returns:
            Result of the operation

        Raises:
            OperationTimeoutError: If the deadline passes first
        """
        if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, int) or timeout_ms < 0:
            raise ValueError(f"timeout_ms must be a non-negative integer, got {timeout_ms!r}")

        deadline = asyncio.timeout(timeout_ms / 1000.0)
        try:
            async with deadline:
                return await operation()
        except TimeoutError as e:
            if deadline.expired():
                raise OperationTimeoutError(timeout_ms, context, original_error=e) from e
            raise


_default_executor = RetryExecutor()


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryOptions = None,
    context: Optional[str] = None
) -> T:
    """Convenience wrapper around the default executor's retry loop."""
    return await _default_executor.execute_with_retry(operation, config, context)


async def execute_with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout_ms: int,
    context: Optional[str] = None
) -> T:
    """Convenience wrapper around the default executor's deadline."""
    return await _default_executor.execute_with_timeout(operation, timeout_ms, context)
