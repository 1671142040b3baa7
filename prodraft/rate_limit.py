"""Rate limiting for the ProDraft API.

Two mechanisms live here:

``FixedWindowRateLimiter``
    The per-client gate in front of ``/api/generate``. Each client
    identifier gets a fixed window of ``limit`` requests that restarts
    ``window_seconds`` after the first request of the window. One instance
    is built at application start and handed to the router through
    ``app.state``.

``limiter``
    A ``slowapi`` limiter for the cheaper routes (export), keyed by the same
    client identifier.

Env vars
--------
RATE_LIMIT_REQUESTS, RATE_LIMIT_WINDOW_SECONDS, RATE_LIMIT_SWEEP_EVERY :
    Settings for the generate gate (see ``prodraft.config``).
RATE_LIMIT_EXPORT : str
    slowapi limit string for ``/api/export`` (e.g. ``"30/minute"``).
"""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from slowapi import Limiter

from prodraft.client_identity import client_id_from_request
from prodraft.config import (
    RATE_LIMIT_EXPORT,
    RATE_LIMIT_REQUESTS,
    RATE_LIMIT_SWEEP_EVERY,
    RATE_LIMIT_WINDOW_SECONDS,
)

log = logging.getLogger(__name__)


@dataclass
class RateWindowEntry:
    """Counting window for one client identifier."""
    count: int
    reset_time: float


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of a single admission check."""
    admitted: bool
    remaining: int
    reset_in: int


class FixedWindowRateLimiter:
    """In-memory fixed-window counter keyed by client identifier.

    Windows are not sliding: a burst straddling a window boundary can see
    up to twice ``limit`` admissions in a short span. Entries are only
    replaced lazily when a request arrives after their window, so state for
    clients that stop calling stays in memory unless ``sweep_every`` is set.

    Parameters
    ----------
    limit : int
        Requests admitted per identifier per window.
    window_seconds : float
        Window length.
    clock : callable
        Returns the current time in seconds. Defaults to ``time.monotonic``.
    sweep_every : int
        Drop expired entries every N calls to ``admit``; ``0`` disables it.
    """

    def __init__(
        self,
        limit: int = RATE_LIMIT_REQUESTS,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = RATE_LIMIT_SWEEP_EVERY,
    ):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self.sweep_every = max(0, sweep_every)
        self._clock = clock
        self._entries: Dict[str, RateWindowEntry] = {}
        self._lock = threading.Lock()
        self._calls = 0

    def __len__(self) -> int:
        return len(self._entries)

    def _current_entry(self, identifier: str, now: float) -> Optional[RateWindowEntry]:
        entry = self._entries.get(identifier)
        if entry is not None and now >= entry.reset_time:
            return None
        return entry

    def _reset_in(self, entry: RateWindowEntry, now: float) -> int:
        return max(0, math.ceil(entry.reset_time - now))

    def admit(self, identifier: str) -> AdmissionDecision:
        """Count one request for ``identifier`` and decide whether it may proceed.

        A rejected request leaves the stored count untouched.
        """
        with self._lock:
            now = self._clock()

            entry = self._current_entry(identifier, now)
            if entry is None:
                entry = RateWindowEntry(count=0, reset_time=now + self.window_seconds)
                self._entries[identifier] = entry

            remaining = max(0, self.limit - entry.count)
            reset_in = self._reset_in(entry, now)

            if entry.count >= self.limit:
                decision = AdmissionDecision(admitted=False, remaining=0, reset_in=reset_in)
            else:
                entry.count += 1
                decision = AdmissionDecision(admitted=True, remaining=remaining - 1, reset_in=reset_in)

            self._calls += 1
            if self.sweep_every and self._calls % self.sweep_every == 0:
                self._sweep(now)

        return decision

    def peek(self, identifier: str) -> AdmissionDecision:
        """Report what ``admit`` would see, without counting a request."""
        with self._lock:
            now = self._clock()
            entry = self._current_entry(identifier, now)
            if entry is None:
                return AdmissionDecision(
                    admitted=True,
                    remaining=self.limit,
                    reset_in=math.ceil(self.window_seconds),
                )
            return AdmissionDecision(
                admitted=entry.count < self.limit,
                remaining=max(0, self.limit - entry.count),
                reset_in=self._reset_in(entry, now),
            )

    def _sweep(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if now >= entry.reset_time]
        for key in expired:
            del self._entries[key]
        if expired:
            log.debug("rate limiter: swept %d expired window(s)", len(expired))
        return len(expired)

    def sweep_expired(self) -> int:
        """Drop entries whose window has elapsed; return how many were removed."""
        with self._lock:
            return self._sweep(self._clock())

    def reset(self) -> None:
        """Forget every window."""
        with self._lock:
            self._entries.clear()
            self._calls = 0


# Single slowapi limiter shared by the routers that use decorator limits
limiter = Limiter(key_func=client_id_from_request)

__all__ = [
    "AdmissionDecision",
    "FixedWindowRateLimiter",
    "RateWindowEntry",
    "limiter",
    "RATE_LIMIT_EXPORT",
]
