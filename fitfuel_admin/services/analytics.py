from __future__ import annotations

from typing import Optional

import pandas as pd

from fitfuel_admin.core.aggregates import rate
from fitfuel_admin.core.filter_sort import local_naive
from fitfuel_admin.data.models import AbTestResult, NotificationAnalytics, NotificationRecord, Variant

from .formatting import chart_date_label

CHART_COLUMNS = ["date", "label", "sent", "opened", "interactions"]


def chart_frame(analytics: NotificationAnalytics) -> pd.DataFrame:
    """Per-day totals of targeted, opened and interacted notifications, oldest first."""
    rows = [
        {
            "date": local_naive(n.sent_at).date(),
            "sent": n.target_count,
            "opened": n.open_count,
            "interactions": n.interaction_count,
        }
        for n in analytics.notifications
        if n.sent_at is not None
    ]
    if not rows:
        return pd.DataFrame(columns=CHART_COLUMNS)
    daily = (
        pd.DataFrame(rows)
          .groupby("date", as_index=False)[["sent", "opened", "interactions"]]
          .sum()
          .sort_values("date")
          .reset_index(drop=True)
    )
    daily.insert(1, "label", [chart_date_label(d) for d in daily["date"]])
    return daily


def notification_open_rate(notification: NotificationRecord) -> float:
    return rate(notification.open_count, notification.sent_count)


def marked_winner(result: Optional[AbTestResult]) -> Optional[str]:
    """Id of the one variant to mark as winner, or None.

    Nothing is marked when the winner id is absent, matches no variant, or matches
    more than one.
    """
    if result is None or result.winner is None or result.winner.id is None:
        return None
    matching = [v for v in result.variants if v.id == result.winner.id]
    return result.winner.id if len(matching) == 1 else None


def is_winner(variant: Variant, result: Optional[AbTestResult]) -> bool:
    winner = marked_winner(result)
    return winner is not None and variant.id == winner
