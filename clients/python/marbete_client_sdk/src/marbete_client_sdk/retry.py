from __future__ import annotations

import logging
import time
from typing import Callable, Iterator, TypeVar

from .exceptions import IncompleteFetchError, RateLimitError, ServerError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

PageFetcher = Callable[[int, int], tuple[list, int | None]]


def is_transient(error: Exception) -> bool:
    return isinstance(error, (TransportError, ServerError, RateLimitError))


def call_with_retry(
    func: Callable[[], T],
    *,
    retries: int,
    backoff_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
    is_retryable: Callable[[Exception], bool] = is_transient,
    label: str = "request",
) -> T:
    """Run ``func`` with bounded retry and exponential backoff.

    Waits ``backoff_seconds * 2**attempt`` between attempts. Non-retryable
    errors and the last transient error propagate unchanged.
    """
    attempt = 0
    while True:
        try:
            return func()
        except Exception as exc:
            if not is_retryable(exc) or attempt >= retries:
                raise
            delay = backoff_seconds * (2**attempt)
            logger.warning(
                "retrying_after_transient_error",
                extra={"label": label, "attempt": attempt + 1, "delay_seconds": delay, "error": type(exc).__name__},
            )
            sleep(delay)
            attempt += 1


def fetch_in_chunks(
    fetch_page: PageFetcher,
    *,
    page_size: int,
    retries: int,
    backoff_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[list]:
    """Yield successive pages from ``fetch_page(page, page_size)``.

    ``fetch_page`` returns ``(rows, total)``; ``total`` may be ``None`` when
    the server does not report it. With a total, paging continues until that
    many rows have been seen, even if the server returns pages shorter than
    ``page_size``; an empty page before then raises ``IncompleteFetchError``.
    Without a total, iteration stops on a short page. Each page is retried
    on its own.
    """
    page = 1
    seen = 0
    while True:
        rows, total = call_with_retry(
            lambda: fetch_page(page, page_size),
            retries=retries,
            backoff_seconds=backoff_seconds,
            sleep=sleep,
            label=f"page {page}",
        )
        if rows:
            yield rows
        seen += len(rows)
        if total is None:
            if len(rows) < page_size:
                return
        elif seen >= total:
            return
        elif not rows:
            raise IncompleteFetchError(seen=seen, total=total)
        page += 1
