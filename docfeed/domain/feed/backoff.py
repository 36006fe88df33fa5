"""Retry policies invoked by push clients on every failed delivery attempt.

A handler both decides and waits: when handle_exception() returns True it has
already slept, and the caller retries immediately. Returning False makes the
caller give up on the current item.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta
from functools import cache
from typing import Protocol

from docfeed.config import BackoffConfig

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ExceptionHandler(Protocol):
    """Decides whether a failed delivery is retried."""

    async def handle_exception(self, ex: Exception, ntries: int) -> bool:
        """Handle a failed attempt.

        Args:
            ex: The failure of the latest attempt.
            ntries: Number of failed attempts so far, starting at 1.

        Returns:
            True to retry (after this call has slept), False to give up.

        Raises:
            asyncio.CancelledError: If cancelled while sleeping.
        """
        ...


@dataclass(frozen=True)
class BackoffHandler:
    """Sleeps ``initial_sleep * ntries`` before each retry, up to max_tries retries."""

    max_tries: int
    initial_sleep: timedelta
    sleep: Sleep = asyncio.sleep

    async def handle_exception(self, ex: Exception, ntries: int) -> bool:
        if ntries > self.max_tries:
            logger.error(f"Giving up after {ntries} failed attempts: {ex}")
            return False
        delay = self.initial_sleep.total_seconds() * ntries
        logger.warning(f"Attempt {ntries} failed, retrying in {delay:.1f}s: {ex}")
        await self.sleep(delay)
        return True


@dataclass(frozen=True)
class ExponentialBackoffHandler:
    """Doubles the sleep on every retry, capped at max_sleep."""

    max_tries: int
    initial_sleep: timedelta
    max_sleep: timedelta = timedelta(minutes=5)
    sleep: Sleep = asyncio.sleep

    async def handle_exception(self, ex: Exception, ntries: int) -> bool:
        if ntries > self.max_tries:
            logger.error(f"Giving up after {ntries} failed attempts: {ex}")
            return False
        delay = min(
            self.initial_sleep.total_seconds() * 2 ** (ntries - 1),
            self.max_sleep.total_seconds(),
        )
        logger.warning(f"Attempt {ntries} failed, retrying in {delay:.1f}s: {ex}")
        await self.sleep(delay)
        return True


class NoRetryHandler:
    """Never retries."""

    async def handle_exception(self, ex: Exception, ntries: int) -> bool:
        logger.error(f"Delivery failed, not retrying: {ex}")
        return False


def backoff_handler(max_tries: int, initial_sleep: timedelta) -> ExceptionHandler:
    """Create a handler that sleeps longer after every failed attempt."""
    if max_tries < 0:
        raise ValueError("max_tries must not be negative")
    if initial_sleep < timedelta(0):
        raise ValueError("initial_sleep must not be negative")
    return BackoffHandler(max_tries=max_tries, initial_sleep=initial_sleep)


def handler_from_config(config: BackoffConfig) -> ExceptionHandler:
    return backoff_handler(config.max_tries, timedelta(seconds=config.initial_sleep_seconds))


@cache
def default_handler() -> ExceptionHandler:
    """The default handler: ``backoff_handler(12, timedelta(seconds=5))``.

    Free to change in the future. Push clients take their default handler as
    a constructor argument, so tests substitute one there instead of here.
    """
    return backoff_handler(12, timedelta(seconds=5))
