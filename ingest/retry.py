"""
Retry policies for calls to external services, built on tenacity

Two policies are used by the import pipeline:

* ``bounded_policy`` - fixed delay and a small number of retries for calls the
  pipeline cannot continue without (minting, storing, updating identifiers).
  When the retries are used up the last error is raised to the caller.
* ``polling_policy`` - exponential backoff without a retry limit but with an
  overall time budget, for waiting until a stored package can be read back.
  When the budget is used up ``GaveUp`` is raised.

Both read their numbers from Django settings (``INGEST_RETRY_POLICY`` and
``INGEST_POLLING_POLICY``) at call time.
"""

import logging
from typing import Callable, Optional, TypeVar

import requests
from django.conf import settings
from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
    wait_fixed,
)

from ingest.exceptions import GaveUp, ServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Errors treated as transient; anything else is raised immediately
TRANSIENT_ERRORS = (ServiceError, requests.RequestException)


def bounded_policy(
    delay: Optional[float] = None,
    max_retries: Optional[int] = None,
    retry_on: tuple = TRANSIENT_ERRORS,
) -> Retrying:
    """
    Fixed-delay policy with ``max_retries`` retries after the first attempt.
    The last exception is re-raised once the retries are exhausted.
    """
    config = settings.INGEST_RETRY_POLICY
    if delay is None:
        delay = config["DELAY"]
    if max_retries is None:
        max_retries = config["MAX_RETRIES"]

    return Retrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_fixed(delay),
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def polling_policy(
    min_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
    max_duration: Optional[float] = None,
) -> Retrying:
    """
    Exponential backoff between ``min_delay`` and ``max_delay`` seconds,
    retrying any exception until ``max_duration`` seconds have passed
    """
    config = settings.INGEST_POLLING_POLICY
    if min_delay is None:
        min_delay = config["MIN_DELAY"]
    if max_delay is None:
        max_delay = config["MAX_DELAY"]
    if max_duration is None:
        max_duration = config["MAX_DURATION"]

    return Retrying(
        stop=stop_after_delay(max_duration),
        wait=wait_exponential(multiplier=1, min=min_delay, max=max_delay),
        retry=retry_if_exception_type(Exception),
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        reraise=False,
    )


def call_with_retry(func: Callable[..., T], *args, policy=None, **kwargs) -> T:
    """
    Run ``func(*args, **kwargs)`` under ``policy`` (the bounded policy by
    default) and return its result. Raises the last error once the policy
    stops retrying.
    """
    if policy is None:
        policy = bounded_policy()
    return policy(func, *args, **kwargs)


def poll_until(func: Callable[..., T], *args, policy=None, **kwargs) -> T:
    """
    Call ``func`` until it returns without raising, using the polling policy.

    Raises:
        GaveUp: when the policy's time budget is used up. The last error is
            available as ``last_exception``.
    """
    if policy is None:
        policy = polling_policy()
    try:
        return policy(func, *args, **kwargs)
    except RetryError as exc:
        last_exception = exc.last_attempt.exception()
        raise GaveUp(
            f"Gave up after {exc.last_attempt.attempt_number} attempts: "
            f"{last_exception}",
            last_exception=last_exception,
        ) from last_exception
