from __future__ import annotations

import threading


class RequestSequencer:
    """Hands out increasing tickets; only the most recently issued one is current.

    A fetch takes a ticket before it starts and applies its result only if the ticket is
    still current when it lands, so a slow earlier fetch never overwrites a later one.
    """

    def __init__(self) -> None:
        self._latest = 0
        self._lock = threading.Lock()

    def issue(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._latest

    @property
    def latest(self) -> int:
        return self._latest
