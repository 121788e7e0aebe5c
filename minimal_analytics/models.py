"""
Records persisted by the collector and the summary served from them.
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class Website:
    id: str
    domain: str = ""
    name: str = ""

    @classmethod
    def from_dict(cls, raw: dict) -> "Website":
        return cls(
            id=str(raw["id"]),
            domain=str(raw.get("domain") or ""),
            name=str(raw.get("name") or ""),
        )

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PageView:
    """
    A single accepted page view. Immutable once built; the store fills in
    ``id`` while it holds the write lock.
    """

    website_id: str
    session_id: str
    page_url: str
    page_title: str
    referrer: str
    ip_address: str
    user_agent: str
    browser: str
    timestamp: datetime
    id: str = ""

    @classmethod
    def from_dict(cls, raw: dict) -> "PageView":
        ts = datetime.fromisoformat(raw["timestamp"])
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return cls(
            id=str(raw.get("id") or ""),
            website_id=str(raw.get("website_id") or ""),
            session_id=str(raw.get("session_id") or ""),
            page_url=str(raw.get("page_url") or ""),
            page_title=str(raw.get("page_title") or ""),
            referrer=str(raw.get("referrer") or ""),
            ip_address=str(raw.get("ip_address") or ""),
            user_agent=str(raw.get("user_agent") or ""),
            browser=str(raw.get("browser") or "Other"),
            timestamp=ts,
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "website_id": self.website_id,
            "session_id": self.session_id,
            "page_url": self.page_url,
            "page_title": self.page_title,
            "referrer": self.referrer,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "browser": self.browser,
            "timestamp": self.timestamp.astimezone(timezone.utc).isoformat(),
        }


@dataclass
class StatsSummary:
    total_views: int = 0
    unique_sessions: int = 0
    days_with_traffic: int = 0
    top_pages: list[tuple[str, int]] = field(default_factory=list)
    browsers: list[tuple[str, int]] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "summary": {
                "total_views": self.total_views,
                "unique_sessions": self.unique_sessions,
                "days_with_traffic": self.days_with_traffic,
            },
            "top_pages": [{"page_url": url, "views": n} for url, n in self.top_pages],
            "browsers": [{"browser": name, "count": n} for name, n in self.browsers],
        }
