# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Exponential backoff retry executor for async operations."""

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

from ..models.enums import ErrorCategory
from ..models.errors import RetryPolicy
from .error_handling import classify_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_POLICY = RetryPolicy()

# Fraction of the computed delay added at most when jitter is enabled
JITTER_FRACTION = 0.25


def compute_delay_ms(policy: RetryPolicy, attempt: int) -> float:
    """Delay before the retry that follows the given 0-indexed attempt, at most ``max_delay_ms``."""
    delay = policy.delay_ms(attempt)
    if policy.jitter:
        delay += delay * JITTER_FRACTION * random.random()
    return min(delay, policy.max_delay_ms)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    category: ErrorCategory = ErrorCategory.INVENTORY,
    region: str | None = None,
) -> T:
    """
    Run an async operation, retrying retryable failures with backoff.

    The operation is attempted at most ``policy.max_retries + 1`` times.
    A failure classified as non-retryable propagates immediately. When every
    attempt fails, the last exception propagates unchanged.

    Args:
        operation: Zero-argument callable returning an awaitable
        policy: Backoff configuration (defaults to RetryPolicy())
        category: Category used to classify failures
        region: Region passed to the classifier for inventory failures

    Returns:
        The operation's result
    """
    policy = policy or DEFAULT_RETRY_POLICY
    attempts = policy.max_retries + 1

    for attempt in range(attempts):
        try:
            return await operation()
        except Exception as e:
            if attempt == attempts - 1:
                raise

            descriptor = classify_error(e, category, region=region)
            if not descriptor.retryable:
                logger.info(
                    f"Not retrying {descriptor.code.value} error"
                    f"{f' in {region}' if region else ''}: {descriptor.message}"
                )
                raise

            delay_ms = compute_delay_ms(policy, attempt)
            logger.warning(
                f"Attempt {attempt + 1}/{attempts} failed with {descriptor.code.value}"
                f"{f' in {region}' if region else ''}, retrying in {delay_ms:.0f}ms"
            )
            await asyncio.sleep(delay_ms / 1000)

    # Unreachable: the loop either returns or raises
    raise RuntimeError("with_retry exhausted without result")
