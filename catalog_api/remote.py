import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from typing import Callable, TypeVar

import httpx
import requests
import urllib3

from .errors import ExternalServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_STATUS = {408, 429, 500, 502, 503, 504}

# network-level failures raised by the HTTP stacks under huggingface_hub and pinecone
TRANSIENT_ERRORS = (
    FuturesTimeout,
    TimeoutError,
    ConnectionError,
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    httpx.TransportError,
    urllib3.exceptions.HTTPError,
)

MAX_IN_FLIGHT = 8

# shared by every external call; a timed-out call keeps its worker until the
# client-side timeout fires, so at most MAX_IN_FLIGHT calls are ever running
_executor = ThreadPoolExecutor(max_workers=MAX_IN_FLIGHT, thread_name_prefix="external-call")


def _status_of(exc: BaseException):
    for attr in ("status_code", "status"):
        code = getattr(exc, attr, None)
        if isinstance(code, int):
            return code
    response = getattr(exc, "response", None)
    code = getattr(response, "status_code", None)
    return code if isinstance(code, int) else None


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, TRANSIENT_ERRORS):
        return True
    return _status_of(exc) in TRANSIENT_STATUS


class CallTimedOut(TimeoutError):
    pass


def _run_with_timeout(fn: Callable[[], T], timeout: float) -> T:
    future = _executor.submit(fn)
    try:
        return future.result(timeout=timeout)
    except FuturesTimeout:
        if future.done():
            raise  # the call itself raised a timeout
        future.cancel()  # only succeeds while still queued
        raise CallTimedOut(f"timed out after {timeout}s") from None


def call_external(
    fn: Callable[[], T],
    *,
    what: str,
    timeout: float = 10.0,
    retries: int = 2,
    backoff: float = 0.5,
) -> T:
    """
    Run one external call with a bounded timeout.
    Transient failures (timeouts, connection errors, 408/429/5xx) are retried
    up to `retries` extra times with exponential backoff; anything else, or the
    last failure, is raised as ExternalServiceError.

    Clients should also carry their own request timeout; this one is the backstop.
    """
    attempts = retries + 1
    for attempt in range(1, attempts + 1):
        try:
            return _run_with_timeout(fn, timeout)
        except ExternalServiceError:
            raise
        except Exception as e:
            reason = str(e) or e.__class__.__name__
            if attempt < attempts and is_transient(e):
                delay = backoff * (2 ** (attempt - 1))
                logger.warning(f"[RETRY {attempt}/{retries}] {what} failed ({reason}), retrying in {delay:.2f}s")
                time.sleep(delay)
                continue
            raise ExternalServiceError(f"{what} failed: {reason}") from e
    raise ExternalServiceError(f"{what} failed")
