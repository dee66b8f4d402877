"""Write-through mutations that keep local records and counters in step.

Every change goes to the gateway first. Local state is only patched once the gateway has
acknowledged it; a failed write leaves local state exactly as it was.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Type

from pydantic import BaseModel, Field

from fitfuel_admin.data.interface import Gateway
from fitfuel_admin.data.models import Record
from fitfuel_admin.errors import GatewayError, LocalValidationError, ScreenBusyError
from fitfuel_admin.logger import get_logger

from .aggregates import AggregateCounters, AggregateDefinition, patch as patch_counters, recompute

logger = get_logger(__name__)


class BulkResult(BaseModel):
    """Per-id outcome of a bulk operation."""
    succeeded: Set[str] = Field(default_factory=set, description="Ids the gateway acknowledged")
    failed: Set[str] = Field(default_factory=set, description="Ids the gateway rejected")
    errors: Dict[str, str] = Field(default_factory=dict, description="Error message per failed id")

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)

    def summary(self, action: str) -> str:
        text = f"{action} {len(self.succeeded)} record(s)"
        if self.failed:
            text += f"; {len(self.failed)} failed"
        return text


class CollectionState:
    """Records and counters of one screen, plus its busy flag."""

    def __init__(self, definition: AggregateDefinition, records: Iterable[Any] = ()) -> None:
        self.definition = definition
        self.records: List[Any] = list(records)
        self.counters: AggregateCounters = recompute(self.records, definition)
        self.busy: Optional[str] = None
        self.loading = 0

    # ---------- busy flag ----------

    @contextmanager
    def busy_scope(self, action: str):
        """Hold the screen for one mutation; a second action while held is rejected."""
        if self.busy is not None or self.loading:
            raise ScreenBusyError(
                f"Cannot {action} while '{self.busy or 'refresh'}' is still in progress"
            )
        self.busy = action
        try:
            yield
        finally:
            self.busy = None

    @contextmanager
    def loading_scope(self):
        """Mark a fetch in flight. Overlapping fetches are allowed; mutations are not."""
        if self.busy is not None:
            raise ScreenBusyError(f"Cannot refresh while '{self.busy}' is still in progress")
        self.loading += 1
        try:
            yield
        finally:
            self.loading -= 1

    # ---------- record access ----------

    def index_of(self, record_id: str) -> int:
        for i, record in enumerate(self.records):
            if record.id == record_id:
                return i
        return -1

    def get(self, record_id: str) -> Optional[Any]:
        i = self.index_of(record_id)
        return self.records[i] if i >= 0 else None

    # ---------- local updates ----------

    def replace_all(self, records: Iterable[Any]) -> None:
        self.records = list(records)
        self.recount()

    def recount(self) -> AggregateCounters:
        self.counters = recompute(self.records, self.definition)
        return self.counters

    def replace(self, record_id: str, record: Any) -> None:
        i = self.index_of(record_id)
        before = self.records[i]
        self.records[i] = record
        self.counters = patch_counters(self.counters, self.definition, before, record)

    def append(self, record: Any) -> None:
        self.records.append(record)
        self.counters = patch_counters(self.counters, self.definition, None, record)

    def remove(self, record_id: str) -> None:
        i = self.index_of(record_id)
        before = self.records.pop(i)
        self.counters = patch_counters(self.counters, self.definition, before, None)


class MutationCoordinator:
    """Applies single and bulk writes for one collection and reconciles local state.

    Args:
        gateway: Document store the writes go through.
        collection: Collection name in the gateway.
        model: Record model used to translate attribute names to document keys and to
            build newly inserted records.
        state: The screen state patched after each acknowledged write.
        clock: Source of ``updated_at``/``created_at`` stamps.
    """

    def __init__(
        self,
        gateway: Gateway,
        collection: str,
        model: Type[Record],
        state: CollectionState,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.gateway = gateway
        self.collection = collection
        self.model = model
        self.state = state
        self.clock = clock

    def _stamped(self, patch: Mapping[str, Any]) -> Dict[str, Any]:
        return {**dict(patch), "updated_at": self.clock()}

    def _existing(self, record_id: str) -> Any:
        record = self.state.get(record_id)
        if record is None:
            raise LocalValidationError(f"No {self.collection} record with id '{record_id}' is loaded")
        return record

    # ---------- single record ----------

    def apply(self, record_id: str, patch: Mapping[str, Any]) -> Any:
        """Update one record. Returns the merged local record; raises GatewayError on failure."""
        with self.state.busy_scope("update"):
            before = self._existing(record_id)
            stamped = self._stamped(patch)
            try:
                self.gateway.update(self.collection, record_id, self.model.document_patch(stamped))
            except GatewayError as e:
                logger.error(f"Update of {self.collection}/{record_id} failed: {e}")
                raise
            after = before.merged(stamped)
            self.state.replace(record_id, after)
            logger.debug(f"Updated {self.collection}/{record_id}: {sorted(patch)}")
            return after

    def insert(self, fields: Mapping[str, Any]) -> Any:
        """Insert a new record built from ``fields``. Returns the local record."""
        with self.state.busy_scope("insert"):
            now = self.clock()
            values = {"created_at": now, **dict(fields), "updated_at": now}
            document = self.model.document_patch(values)
            try:
                record_id = self.gateway.insert(self.collection, document)
            except GatewayError as e:
                logger.error(f"Insert into {self.collection} failed: {e}")
                raise
            record = self.model.model_validate({**values, "id": record_id})
            self.state.append(record)
            logger.info(f"Inserted {self.collection}/{record_id}")
            return record

    def delete(self, record_id: str) -> None:
        with self.state.busy_scope("delete"):
            self._existing(record_id)
            try:
                self.gateway.delete(self.collection, record_id)
            except GatewayError as e:
                logger.error(f"Delete of {self.collection}/{record_id} failed: {e}")
                raise
            self.state.remove(record_id)
            logger.info(f"Deleted {self.collection}/{record_id}")

    # ---------- bulk ----------

    def _fan_out(self, ids: Iterable[str], call: Callable[[str], None], action: str) -> BulkResult:
        result = BulkResult()
        seen: Set[str] = set()
        for record_id in ids:
            if record_id in seen:
                continue
            seen.add(record_id)
            if self.state.get(record_id) is None:
                result.failed.add(record_id)
                result.errors[record_id] = "not loaded"
                continue
            try:
                call(record_id)
            except GatewayError as e:
                result.failed.add(record_id)
                result.errors[record_id] = str(e)
            else:
                result.succeeded.add(record_id)
        if result.failed:
            logger.warning(
                f"Bulk {action} on {self.collection}: {len(result.succeeded)} succeeded, "
                f"{len(result.failed)} failed"
            )
        else:
            logger.info(f"Bulk {action} on {self.collection}: {len(result.succeeded)} succeeded")
        return result

    def apply_bulk(self, ids: Iterable[str], patch: Mapping[str, Any]) -> BulkResult:
        """Update every id independently; only acknowledged ids are patched locally.

        Counters are recomputed from the patched list rather than adjusted by the
        requested set, since any subset may have failed.
        """
        with self.state.busy_scope("bulk update"):
            stamped = self._stamped(patch)
            document = self.model.document_patch(stamped)
            result = self._fan_out(
                ids,
                lambda record_id: self.gateway.update(self.collection, record_id, document),
                "update",
            )
            self.state.records = [
                r.merged(stamped) if r.id in result.succeeded else r for r in self.state.records
            ]
            self.state.recount()
            return result

    def delete_bulk(self, ids: Iterable[str]) -> BulkResult:
        with self.state.busy_scope("bulk delete"):
            result = self._fan_out(
                ids,
                lambda record_id: self.gateway.delete(self.collection, record_id),
                "delete",
            )
            self.state.records = [r for r in self.state.records if r.id not in result.succeeded]
            self.state.recount()
            return result
