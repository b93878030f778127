import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from ideaforge.utils.logger import logger

T = TypeVar("T")


def call_with_retries(
    fn: Callable[[], T],
    *,
    retries: int,
    retry_on: Tuple[Type[Exception], ...],
    delay: float,
    sleep: Callable[[float], None] = time.sleep,
    should_retry: Optional[Callable[[Exception], bool]] = None,
) -> T:
    """
    Run ``fn``, retrying up to ``retries`` extra times on the given errors.

    The wait doubles after every failed attempt. ``should_retry`` receives the
    error before each retry so a caller can skip errors that are not worth
    repeating, or stop early (e.g. when its session closed).
    The last error is re-raised once the budget is spent.
    """
    attempt = 0
    while True:
        try:
            return fn()
        except retry_on as e:
            if attempt >= retries or (should_retry is not None and not should_retry(e)):
                raise
            wait = delay * (2 ** attempt)
            attempt += 1
            logger.warning(f"Attempt {attempt} failed with {type(e).__name__}: {e}. Retrying in {wait:.1f}s")
            sleep(wait)
