"""Retry helpers with exponential backoff and jitter."""

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

import httpx

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]

_JITTER_RATIO = 0.2
_RETRYABLE_MARKERS = ("timeout", "Timeout", "network", "Network")

_logger = logging.getLogger(__name__)


def default_is_retryable(error: BaseException) -> bool:
    """Return True for transient network and timeout failures."""
    if isinstance(error, httpx.TransportError | ConnectionError | TimeoutError):
        return True
    message = str(error)
    return any(marker in message for marker in _RETRYABLE_MARKERS)


def default_is_retryable_response(response: httpx.Response) -> bool:
    """Return True for server errors (5xx) and rate limits (429)."""
    return response.status_code >= 500 or response.status_code == 429


@dataclass(frozen=True)
class RetryOptions:
    """Configuration for a single retry execution. Delays are milliseconds."""

    max_retries: int = 3
    initial_delay_ms: float = 1000
    max_delay_ms: float = 10000
    backoff_multiplier: float = 2
    jitter: bool = True
    is_retryable: Callable[[BaseException], bool] = field(
        default=default_is_retryable, compare=False
    )
    is_retryable_response: Callable[[httpx.Response], bool] = field(
        default=default_is_retryable_response, compare=False
    )
    error_message_prefix: str = "Retry failed"


@dataclass(frozen=True)
class RetryResult(Generic[T]):
    """Outcome of a retry execution."""

    success: bool
    attempts: int
    total_time_ms: float
    data: T | None = None
    error: BaseException | None = None


class RetryExhaustedError(Exception):
    """Raised when retryable responses persist after the last attempt."""

    def __init__(self, message: str, response: httpx.Response) -> None:
        super().__init__(message)
        self.response = response


class RetryPresets:
    """Named retry configurations."""

    quick = RetryOptions(
        max_retries=2, initial_delay_ms=1000, max_delay_ms=3000, backoff_multiplier=2
    )
    standard = RetryOptions(
        max_retries=3, initial_delay_ms=1000, max_delay_ms=10000, backoff_multiplier=2
    )
    aggressive = RetryOptions(
        max_retries=5, initial_delay_ms=500, max_delay_ms=15000, backoff_multiplier=2
    )
    conservative = RetryOptions(
        max_retries=2, initial_delay_ms=2000, max_delay_ms=8000, backoff_multiplier=2
    )


_PRESET_NAMES = ("quick", "standard", "aggressive", "conservative")


def get_retry_preset(name: str) -> RetryOptions:
    """Return a preset by name."""
    if name not in _PRESET_NAMES:
        raise ValueError(f"Unknown retry preset: {name}")
    return getattr(RetryPresets, name)


def calculate_delay(attempt: int, options: RetryOptions) -> float:
    """Return the backoff delay in milliseconds before the next attempt."""
    try:
        delay = min(
            options.initial_delay_ms * options.backoff_multiplier**attempt,
            options.max_delay_ms,
        )
    except OverflowError:
        delay = options.max_delay_ms
    if options.jitter:
        jitter = random.uniform(-_JITTER_RATIO, _JITTER_RATIO)  # noqa: S311
        return max(0.0, delay * (1 + jitter))
    return delay


async def retry(
    fn: Callable[[], Awaitable[T]],
    options: RetryOptions | None = None,
    *,
    sleep: Sleep = asyncio.sleep,
) -> RetryResult[T]:
    """Run ``fn`` with retries and return a result instead of raising.

    Errors rejected by ``options.is_retryable`` end the run immediately.
    """
    return await _execute(fn, options or RetryOptions(), None, sleep)


async def retry_response(
    fn: Callable[[], Awaitable[httpx.Response]],
    options: RetryOptions | None = None,
    *,
    sleep: Sleep = asyncio.sleep,
) -> RetryResult[httpx.Response]:
    """Run an HTTP-returning ``fn``, also retrying retryable responses.

    Unsuccessful responses that are not retryable are returned as a
    successful result so the caller can inspect the status.
    """
    resolved = options or RetryOptions()
    return await _execute(fn, resolved, resolved.is_retryable_response, sleep)


async def retry_fetch(
    client: httpx.AsyncClient,
    url: str,
    *,
    method: str = "GET",
    retry_options: RetryOptions | None = None,
    sleep: Sleep = asyncio.sleep,
    **request_kwargs: object,
) -> httpx.Response:
    """Send a request with retries, raising the last error on failure."""
    result = await retry_response(
        lambda: client.request(method, url, **request_kwargs),  # type: ignore[arg-type]
        retry_options,
        sleep=sleep,
    )
    if not result.success:
        raise result.error or RuntimeError("Fetch failed after retries")
    if result.data is None:
        raise RuntimeError("No response returned from fetch")
    return result.data


async def _execute(
    fn: Callable[[], Awaitable[T]],
    options: RetryOptions,
    response_check: Callable[[httpx.Response], bool] | None,
    sleep: Sleep,
) -> RetryResult[T]:
    started = time.monotonic()

    def elapsed_ms() -> float:
        return (time.monotonic() - started) * 1000

    attempt = 0
    while True:
        try:
            result = await fn()
        except Exception as exc:
            if not options.is_retryable(exc) or attempt >= options.max_retries:
                return RetryResult(
                    success=False,
                    error=exc,
                    attempts=attempt + 1,
                    total_time_ms=elapsed_ms(),
                )
            cause = f"error: {exc}"
        else:
            if (
                response_check is None
                or not isinstance(result, httpx.Response)
                or result.is_success
                or not response_check(result)
            ):
                return RetryResult(
                    success=True,
                    data=result,
                    attempts=attempt + 1,
                    total_time_ms=elapsed_ms(),
                )
            if attempt >= options.max_retries:
                message = (
                    f"{options.error_message_prefix} after {attempt + 1} attempts: "
                    f"{result.status_code} {result.reason_phrase}"
                )
                return RetryResult(
                    success=False,
                    error=RetryExhaustedError(message, response=result),
                    attempts=attempt + 1,
                    total_time_ms=elapsed_ms(),
                )
            cause = f"status: {result.status_code}"

        delay_ms = calculate_delay(attempt, options)
        _logger.info(
            "Retry attempt %s/%s after %.0fms (%s)",
            attempt + 1,
            options.max_retries,
            delay_ms,
            cause,
        )
        await sleep(delay_ms / 1000)
        attempt += 1
