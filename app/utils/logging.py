"""Logging helpers shared by infrastructure adapters."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable


class RateLimitedLogger:
    """Emit a given kind of log record at most once per ``interval`` seconds.

    Records are grouped by a caller supplied ``key``; records for the same key
    arriving inside the interval are counted and the count is reported with the
    next record that gets through.
    """

    def __init__(
        self,
        logger: logging.Logger,
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._logger = logger
        self._interval = interval
        self._clock = clock
        self._last_emitted: dict[str, float] = {}
        self._suppressed: dict[str, int] = {}
        self._lock = threading.Lock()

    def log(self, level: int, key: str, msg: str, *args: Any) -> bool:
        """Log ``msg`` unless ``key`` was logged less than ``interval`` ago.

        Returns ``True`` when the record was emitted.
        """

        now = self._clock()
        with self._lock:
            last = self._last_emitted.get(key)
            if last is not None and now - last < self._interval:
                self._suppressed[key] = self._suppressed.get(key, 0) + 1
                return False
            self._last_emitted[key] = now
            suppressed = self._suppressed.pop(key, 0)

        if suppressed:
            msg = f"{msg} (%d similar messages suppressed)"
            args = (*args, suppressed)
        self._logger.log(level, msg, *args)
        return True

    def warning(self, key: str, msg: str, *args: Any) -> bool:
        return self.log(logging.WARNING, key, msg, *args)

    def error(self, key: str, msg: str, *args: Any) -> bool:
        return self.log(logging.ERROR, key, msg, *args)

    def reset(self, key: str | None = None) -> None:
        """Forget throttling state for ``key`` (or every key)."""

        with self._lock:
            if key is None:
                self._last_emitted.clear()
                self._suppressed.clear()
            else:
                self._last_emitted.pop(key, None)
                self._suppressed.pop(key, None)


def configure_logging(level: str) -> None:
    """Apply ``level`` to the root logger, installing a handler if none exists."""

    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(level.upper())


__all__ = ["RateLimitedLogger", "configure_logging"]
