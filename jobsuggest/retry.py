"""Retry policy with exponential backoff, one instance per outbound client."""
from __future__ import annotations

import functools
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Tuple, Type

from jobsuggest.cancel import CancelToken
from jobsuggest.log import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_factor: float = 2.0
    jitter: bool = True
    retryable: Tuple[Type[BaseException], ...] = (Exception,)

    def delay_for(self, attempt: int) -> float:
        """Backoff before attempt ``attempt + 1`` (attempts are 1-based)."""
        delay = min(self.base_delay * (self.backoff_factor ** (attempt - 1)), self.max_delay)
        if self.jitter:
            delay *= 0.5 + random.random()
        return delay

    def call(
        self,
        fn: Callable[..., Any],
        *args: Any,
        cancel: CancelToken | None = None,
        **kwargs: Any,
    ) -> Any:
        """Run *fn* until it succeeds, raises a non-retryable error, or attempts run out.

        Backoff sleeps are interrupted by *cancel*.
        """
        name = getattr(fn, "__qualname__", repr(fn))
        for attempt in range(1, self.max_attempts + 1):
            if cancel is not None:
                cancel.raise_if_cancelled()
            try:
                return fn(*args, **kwargs)
            except self.retryable as exc:
                if attempt >= self.max_attempts:
                    log.error("%s failed after %d attempts: %s", name, attempt, exc)
                    raise
                delay = self.delay_for(attempt)
                log.warning(
                    "%s attempt %d/%d failed (%s), retrying in %.1fs",
                    name, attempt, self.max_attempts, exc, delay,
                )
                if cancel is not None:
                    cancel.sleep(delay)
                else:
                    time.sleep(delay)
        raise RuntimeError(f"{name}: retry policy allows no attempts")

    def __call__(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        """Decorator form: ``@RetryPolicy(max_attempts=2)``."""

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return self.call(fn, *args, **kwargs)

        return wrapper
