from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

from fitfuel_admin.config import get_config

T = TypeVar("T")
P = TypeVar("P")


def project(
    records: Sequence[T],
    projector: Callable[[T], P],
    max_workers: Optional[int] = None,
) -> List[P]:
    """Run ``projector`` over all records concurrently, keeping input order.

    Returns only once every projection has settled, so callers never see a partial batch.
    """
    if not records:
        return []
    workers = max_workers or get_config().projection_workers
    with ThreadPoolExecutor(max_workers=max(1, min(workers, len(records)))) as pool:
        return list(pool.map(projector, records))
