from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol

from .models import SortSpec

Document = Dict[str, Any]


# ---- Document store protocol ----

class Gateway(Protocol):
    """
    Backend-agnostic contract for the dashboard pages.

    - Documents are plain mappings keyed by camelCase field names and always carry a
      string ``id``.
    - Ordering is the only query capability; filtering happens in memory
      (see ``core.filter_sort``).
    - Implementations raise ``GatewayError`` on any read or write failure.
    """

    def fetch_all(self, collection: str, sort: Optional[SortSpec] = None) -> List[Document]:
        """Return every document of ``collection``, optionally ordered by one field."""
        ...

    def fetch_one(self, collection: str, record_id: str) -> Optional[Document]:
        """Return one document, or None when it does not exist."""
        ...

    def update(self, collection: str, record_id: str, patch: Mapping[str, Any]) -> None:
        """Field-level partial update of an existing document."""
        ...

    def insert(self, collection: str, document: Mapping[str, Any]) -> str:
        """Insert a document and return its newly assigned id."""
        ...

    def delete(self, collection: str, record_id: str) -> None:
        """Delete an existing document."""
        ...


# ---- Blob storage protocol ----

class BlobStore(Protocol):
    """Stores uploaded files (product images) and hands back a URL for them."""

    def store(self, data: bytes, path: str) -> str:
        ...

    def remove(self, path: str) -> None:
        """Delete a stored file; a missing file is not an error."""
        ...
