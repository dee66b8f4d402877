from __future__ import annotations

import json
import threading
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from fitfuel_admin.config import get_config
from fitfuel_admin.errors import GatewayError
from fitfuel_admin.logger import get_logger

from ..interface import Document, Gateway
from ..models import SortSpec

logger = get_logger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _sort_key(field: str, descending: bool):
    # None sorts last in both directions
    def key(doc: Document):
        value = doc.get(field)
        if isinstance(value, str):
            value = value.casefold()
        if descending:
            return (value is not None, value)
        return (value is None, value)
    return key


def _normalized(value: Mapping[str, Any], collection: str, operation: str) -> Document:
    # in-memory documents hold exactly what the file holds
    try:
        return json.loads(json.dumps(dict(value), default=_json_default))
    except TypeError as e:
        raise GatewayError(f"Cannot store value in '{collection}': {e}", operation=operation, collection=collection) from e


class JsonDocumentStore(Gateway):
    """
    JSON-file-backed document store.
    - One ``<collection>.json`` file per collection, holding a list of documents.
    - A collection is read from disk on first access and cached in memory; every write
      rewrites that collection's file.
    - Uploaded blobs land under ``<data_dir>/blobs`` and are addressed by file URL.
    """

    def __init__(self, data_dir: str | Path = None) -> None:
        if data_dir is None:
            config = get_config()
            data_dir = config.data_dir

        self.data_dir = Path(data_dir)

        # If the path is relative, make it relative to the repository root
        if not self.data_dir.is_absolute():
            current = Path.cwd()
            repo_root = None

            # Look up the directory tree for pyproject.toml
            for parent in [current] + list(current.parents):
                if (parent / "pyproject.toml").exists():
                    repo_root = parent
                    break

            self.data_dir = (repo_root or current) / self.data_dir

        self._collections: Dict[str, Dict[str, Document]] = {}
        self._lock = threading.RLock()

    # ---------- loading / persistence helpers ----------

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def _load(self, collection: str) -> Dict[str, Document]:
        if collection in self._collections:
            return self._collections[collection]

        path = self._path(collection)
        docs: Dict[str, Document] = {}
        if path.exists():
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                raise GatewayError(
                    f"Error reading {path}: {e}\n"
                    f"Please check that the file is valid JSON, or regenerate it with: fitfuel-seed",
                    operation="load",
                    collection=collection,
                ) from e
            for doc in raw:
                docs[str(doc["id"])] = dict(doc)
        else:
            logger.debug(f"No file for collection '{collection}' at {path}; starting empty")

        self._collections[collection] = docs
        return docs

    def _persist(self, collection: str) -> None:
        path = self._path(collection)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            payload = list(self._collections[collection].values())
            path.write_text(json.dumps(payload, indent=2, default=_json_default), encoding="utf-8")
        except (OSError, TypeError) as e:
            raise GatewayError(
                f"Error writing {path}: {e}",
                operation="persist",
                collection=collection,
            ) from e

    def _require(self, collection: str, record_id: str, operation: str) -> Dict[str, Document]:
        docs = self._load(collection)
        if record_id not in docs:
            raise GatewayError(
                f"No document '{record_id}' in '{collection}'",
                operation=operation,
                collection=collection,
                record_id=record_id,
            )
        return docs

    # ---------- gateway implementation ----------

    def fetch_all(self, collection: str, sort: Optional[SortSpec] = None) -> List[Document]:
        with self._lock:
            docs = [dict(d) for d in self._load(collection).values()]
        if sort is not None:
            field = sort.field
            descending = sort.direction == "desc"
            docs.sort(key=_sort_key(field, descending), reverse=descending)
        return docs

    def fetch_one(self, collection: str, record_id: str) -> Optional[Document]:
        with self._lock:
            doc = self._load(collection).get(record_id)
            return dict(doc) if doc is not None else None

    def update(self, collection: str, record_id: str, patch: Mapping[str, Any]) -> None:
        with self._lock:
            docs = self._require(collection, record_id, "update")
            patch = _normalized(patch, collection, "update")
            previous = dict(docs[record_id])
            docs[record_id].update(patch)
            try:
                self._persist(collection)
            except GatewayError:
                docs[record_id] = previous
                raise

    def insert(self, collection: str, document: Mapping[str, Any]) -> str:
        with self._lock:
            docs = self._load(collection)
            document = _normalized(document, collection, "insert")
            record_id = uuid.uuid4().hex
            docs[record_id] = {**document, "id": record_id}
            try:
                self._persist(collection)
            except GatewayError:
                del docs[record_id]
                raise
        return record_id

    def delete(self, collection: str, record_id: str) -> None:
        with self._lock:
            docs = self._require(collection, record_id, "delete")
            removed = docs.pop(record_id)
            try:
                self._persist(collection)
            except GatewayError:
                docs[record_id] = removed
                raise

    # ---------- blob storage ----------

    def store(self, data: bytes, path: str) -> str:
        target = self.data_dir / "blobs" / path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise GatewayError(f"Error storing blob {path}: {e}", operation="store", collection="blobs") from e
        return target.resolve().as_uri()

    def remove(self, path: str) -> None:
        target = self.data_dir / "blobs" / path
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            raise GatewayError(f"Error removing blob {path}: {e}", operation="remove", collection="blobs") from e
