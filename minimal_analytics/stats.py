"""
Aggregation over the stored page views.

There is no index or pre-aggregation: every call filters the full record
list. That is only viable because the store keeps at most MAX_PAGEVIEWS.
"""
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Iterable

from . import config
from .models import PageView, StatsSummary


def stats_cutoff(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=config.STATS_WINDOW_DAYS)


def local_day(ts: datetime) -> date:
    # calendar day as seen by the server, not the visitor
    return ts.astimezone().date()


def recent_views(records: Iterable[PageView], website_id: str, since: datetime) -> list[PageView]:
    return [pv for pv in records if pv.website_id == website_id and pv.timestamp > since]


def compute_stats(records: Iterable[PageView], website_id: str, since: datetime) -> StatsSummary:
    """
    Summary for one website over page views strictly newer than ``since``.

    Rankings are by descending count; equal counts keep the order in which
    the key was first seen.
    """
    views = recent_views(records, website_id, since)

    sessions = set()
    days = set()
    pages = Counter()
    browsers = Counter()
    for pv in views:
        sessions.add(pv.session_id)
        days.add(local_day(pv.timestamp))
        pages[pv.page_url] += 1
        browsers[pv.browser] += 1

    return StatsSummary(
        total_views=len(views),
        unique_sessions=len(sessions),
        days_with_traffic=len(days),
        # most_common() sorts stably, so ties stay in first-seen order
        top_pages=pages.most_common(config.TOP_PAGES_LIMIT),
        browsers=browsers.most_common(),
    )


def daily_views(records: Iterable[PageView], website_id: str, since: datetime) -> list[tuple[str, int]]:
    """
    Views per server-local day, ascending, for the dashboard sparkline.
    """
    per_day = Counter(local_day(pv.timestamp) for pv in recent_views(records, website_id, since))
    return [(day.isoformat(), per_day[day]) for day in sorted(per_day)]
