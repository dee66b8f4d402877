from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Type

from pydantic import ValidationError

from fitfuel_admin.data.interface import Gateway
from fitfuel_admin.data.models import FilterSet, Record, SortSpec
from fitfuel_admin.errors import GatewayError
from fitfuel_admin.logger import get_logger

from .aggregates import AggregateCounters, AggregateDefinition
from .filter_sort import apply
from .mutations import CollectionState, MutationCoordinator
from .projection import project
from .sequencing import RequestSequencer

logger = get_logger(__name__)


class CollectionView:
    """
    Local copy of one collection as a page sees it.

    Data flows gateway -> projection -> filter/sort, with counters kept alongside the full
    record list. Mutations go through ``self.mutations`` so the counters stay exact.

    Args:
        gateway: Document store to read and write through.
        collection: Collection name.
        model: Record model documents are parsed into.
        definition: Counters to maintain over the full record list.
        search_fields: Attributes the free-text search looks at.
        projector: Optional per-record join run after each fetch.
        sort: Sort requested from the gateway and re-applied locally.
        date_field: Attribute date-bucket filters apply to.
        max_workers: Projection concurrency (defaults to config).
    """

    def __init__(
        self,
        gateway: Gateway,
        collection: str,
        model: Type[Record],
        definition: AggregateDefinition,
        search_fields: Sequence[str],
        projector: Optional[Callable[[Any], Any]] = None,
        sort: Optional[SortSpec] = None,
        date_field: str = "created_at",
        max_workers: Optional[int] = None,
    ) -> None:
        self.gateway = gateway
        self.collection = collection
        self.model = model
        self.search_fields = tuple(search_fields)
        self.projector = projector
        self.sort = sort
        self.filters = FilterSet(date_field=date_field)
        self.max_workers = max_workers
        self.state = CollectionState(definition)
        self.mutations = MutationCoordinator(gateway, collection, model, self.state)
        self.sequencer = RequestSequencer()
        self.loaded = False
        self.rejected: List[str] = []

    @property
    def records(self) -> List[Any]:
        return self.state.records

    @property
    def counters(self) -> AggregateCounters:
        return self.state.counters

    @property
    def busy(self) -> bool:
        return self.state.busy is not None or self.state.loading > 0

    def refresh(self) -> bool:
        """Fetch and project the whole collection.

        Returns False when the result was discarded because a newer refresh was issued
        while this one was in flight. Raises GatewayError if the fetch fails, leaving the
        previous records in place.
        """
        ticket = self.sequencer.issue()
        with self.state.loading_scope():
            try:
                documents = self.gateway.fetch_all(self.collection, self._fetch_sort())
            except GatewayError as e:
                logger.error(f"Loading {self.collection} failed: {e}")
                raise
            records, rejected = self._parse(documents)
            if self.projector is not None:
                records = project(records, self.projector, self.max_workers)

        if not self.sequencer.is_current(ticket):
            logger.info(f"Discarding stale {self.collection} response (ticket {ticket} < {self.sequencer.latest})")
            return False
        self.rejected = rejected
        self.state.replace_all(records)
        self.loaded = True
        logger.debug(f"Loaded {len(records)} {self.collection} record(s)")
        return True

    def _parse(self, documents: Iterable[Any]) -> Tuple[List[Any], List[str]]:
        """Parse documents, setting aside the ones that do not fit the model."""
        records: List[Any] = []
        rejected: List[str] = []
        for document in documents:
            try:
                records.append(self.model.from_document(document))
            except ValidationError as e:
                record_id = str(document.get("id", "?"))
                rejected.append(record_id)
                logger.warning(f"Skipping malformed {self.collection}/{record_id}: {e.error_count()} invalid field(s)")
        return records, rejected

    def _fetch_sort(self) -> Optional[SortSpec]:
        if self.sort is None:
            return None
        return SortSpec(field=self.model.document_key(self.sort.field), direction=self.sort.direction)

    def set_filters(self, **changes: Any) -> FilterSet:
        self.filters = self.filters.model_copy(update=changes)
        return self.filters

    def clear_filters(self) -> FilterSet:
        self.filters = FilterSet(date_field=self.filters.date_field)
        return self.filters

    def toggle_sort(self, field: str) -> SortSpec:
        self.sort = self.sort.toggled(field) if self.sort else SortSpec(field=field)
        return self.sort

    def visible(self, now: Optional[datetime] = None) -> List[Any]:
        """Records passing the current filters, in the current sort order."""
        return apply(self.state.records, self.filters, self.sort, self.search_fields, now)
