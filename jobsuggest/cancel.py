"""Request-scoped cancellation shared by every outbound call of one pipeline run."""
from __future__ import annotations

import threading
from typing import Callable

from jobsuggest.errors import PipelineCancelled
from jobsuggest.log import get_logger

log = get_logger(__name__)


class CancelToken:
    """Set once by the caller (e.g. on client disconnect); checked by workers.

    Callbacks registered with :meth:`on_cancel` run when the token fires, which
    is how in-flight HTTP responses get closed instead of being read to the end.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for cb in callbacks:
            try:
                cb()
            except Exception as exc:
                log.debug("Cancel callback %r raised: %s", cb, exc)

    def on_cancel(self, cb: Callable[[], None]) -> Callable[[], None]:
        """Register *cb*; returns a function that unregisters it."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(cb)

                def _remove() -> None:
                    with self._lock:
                        if cb in self._callbacks:
                            self._callbacks.remove(cb)

                return _remove
        cb()
        return lambda: None

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PipelineCancelled()

    def sleep(self, seconds: float) -> None:
        """Sleep up to *seconds*; raises :class:`PipelineCancelled` if woken by cancel."""
        if self._event.wait(seconds):
            raise PipelineCancelled()

