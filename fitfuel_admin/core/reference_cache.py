"""Memoized foreign-key resolution.

A ``ReferenceCache`` belongs to one dashboard session. Entries live until the owner
calls ``invalidate`` or ``clear``; a page refresh does not drop them.
"""
from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Dict, Optional, Tuple

from fitfuel_admin.data.interface import Document, Gateway
from fitfuel_admin.errors import GatewayError
from fitfuel_admin.logger import get_logger

logger = get_logger(__name__)

_Key = Tuple[str, str]


class _NotFound:
    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


class ReferenceCache:
    """Resolves ``(kind, key)`` references through the gateway, at most once per key.

    - A hit returns the cached document without touching the gateway.
    - A miss for a document that does not exist is cached as ``NOT_FOUND`` so that
      repeated references to the same missing key never re-query.
    - Concurrent callers asking for the same key share one in-flight fetch.
    - A gateway error yields ``None`` for that caller and is not cached.
    """

    def __init__(self, gateway: Gateway) -> None:
        self._gateway = gateway
        self._entries: Dict[_Key, object] = {}
        self._inflight: Dict[_Key, Future] = {}
        self._lock = threading.Lock()
        self.fetches = 0

    def resolve(self, kind: str, key: str) -> Optional[Document]:
        cache_key = (kind, key)
        with self._lock:
            if cache_key in self._entries:
                entry = self._entries[cache_key]
                return None if entry is NOT_FOUND else entry
            future = self._inflight.get(cache_key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[cache_key] = future
                self.fetches += 1

        if not owner:
            return future.result()

        value: Optional[Document] = None
        try:
            value = self._gateway.fetch_one(kind, key)
        except GatewayError as e:
            logger.warning(f"Could not resolve {kind}/{key}: {e}")
            with self._lock:
                self._inflight.pop(cache_key, None)
            future.set_result(None)
            return None
        except BaseException as e:
            with self._lock:
                self._inflight.pop(cache_key, None)
            future.set_exception(e)
            raise

        with self._lock:
            self._entries[cache_key] = value if value is not None else NOT_FOUND
            self._inflight.pop(cache_key, None)
        if value is None:
            logger.debug(f"Reference {kind}/{key} not found; caching miss")
        future.set_result(value)
        return value

    def peek(self, kind: str, key: str) -> object:
        """Cached entry (a document or ``NOT_FOUND``), or None if never resolved."""
        with self._lock:
            return self._entries.get((kind, key))

    def invalidate(self, kind: str, key: str) -> None:
        with self._lock:
            self._entries.pop((kind, key), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.debug("Reference cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, item: _Key) -> bool:
        with self._lock:
            return item in self._entries
