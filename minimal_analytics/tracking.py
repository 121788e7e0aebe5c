"""
Turning a raw beacon payload into a PageView record.
"""
import logging
import re
import secrets
import threading
import time
from datetime import datetime, timezone

from .errors import InvalidRequest, InvalidTrackingID
from .models import PageView

log = logging.getLogger(__name__)

# date-time production of RFC 3339 section 5.6; fromisoformat alone is laxer
RFC3339_RE = re.compile(
    r"(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})",
    re.ASCII,
)

PAYLOAD_FIELDS = (
    "tracking_id",
    "session_id",
    "page_url",
    "page_title",
    "referrer",
    "user_agent",
    "timestamp",
)


# -----------------------------------------------------------------------------
# Request metadata helpers
# -----------------------------------------------------------------------------
def classify_browser(ua: str) -> str:
    """
    Coarse browser family from a user-agent string. Order matters: Edge and
    Safari UAs also mention Chrome/Safari.
    """
    ua_lower = (ua or "").lower()

    if "chrome" in ua_lower and "edg" not in ua_lower:
        return "Chrome"
    if "firefox" in ua_lower:
        return "Firefox"
    if "safari" in ua_lower and "chrome" not in ua_lower:
        return "Safari"
    if "edg" in ua_lower:
        return "Edge"
    return "Other"


def strip_port(addr: str) -> str:
    """
    "1.2.3.4:5678" -> "1.2.3.4", "[::1]:80" -> "::1". Bare IPv6 is left alone.
    """
    if not addr:
        return ""
    if addr.startswith("["):
        end = addr.find("]")
        return addr[1:end] if end != -1 else addr
    if addr.count(":") == 1:
        return addr.split(":", 1)[0]
    return addr


def client_ip(headers, remote_addr: str | None) -> str:
    """
    Best-effort client address: X-Forwarded-For (first hop), then X-Real-IP,
    then the socket peer.
    """
    xff = headers.get("X-Forwarded-For", "")
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("X-Real-IP", "").strip()
    if real_ip:
        return real_ip
    return strip_port(remote_addr or "")


def parse_timestamp(raw, now: datetime | None = None) -> datetime:
    """
    Parse a client RFC 3339 timestamp. Anything unparsable, or lacking an
    offset, is replaced by the server clock; bad client clocks are not an
    error.
    """
    fallback = now or datetime.now(timezone.utc)
    if not isinstance(raw, str) or not raw:
        log.debug("missing timestamp, using server time")
        return fallback
    match = RFC3339_RE.fullmatch(raw)
    if not match:
        log.debug("timestamp %r is not RFC 3339, using server time", raw)
        return fallback
    day, clock, fraction, offset = match.groups()
    fraction = (fraction or "")[:6].ljust(6, "0")
    if offset in ("Z", "z"):
        offset = "+00:00"
    try:
        ts = datetime.fromisoformat(f"{day}T{clock}.{fraction}{offset}")
    except ValueError:
        log.debug("out of range timestamp %r, using server time", raw)
        return fallback
    return ts.astimezone(timezone.utc)


class IdGenerator:
    """
    Time-sortable unique ids: "<unix ns>_<random hex>". The nanosecond part
    never repeats within a process, even when the clock has not moved.
    """

    def __init__(self, clock=time.time_ns):
        self._clock = clock
        self._last = 0
        self._mutex = threading.Lock()

    def next_id(self) -> str:
        with self._mutex:
            now = self._clock()
            if now <= self._last:
                now = self._last + 1
            self._last = now
        return f"{now}_{secrets.token_hex(3)}"


# -----------------------------------------------------------------------------
# Record builder
# -----------------------------------------------------------------------------
def validate_payload(data) -> dict:
    if not isinstance(data, dict):
        raise InvalidRequest()
    payload = {}
    for name in PAYLOAD_FIELDS:
        value = data.get(name)
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise InvalidRequest(f"Invalid JSON: {name} must be a string")
        payload[name] = value
    return payload


def build_pageview(data, registry, remote_addr=None, headers=None, now=None) -> PageView:
    """
    Validate a beacon payload against the website registry and build the
    record to store. The id is left empty for the store to assign.
    """
    payload = validate_payload(data)

    if not registry.is_known(payload["tracking_id"]):
        log.debug("rejected unknown tracking id %r", payload["tracking_id"])
        raise InvalidTrackingID()

    return PageView(
        website_id=payload["tracking_id"],
        session_id=payload["session_id"],
        page_url=payload["page_url"],
        page_title=payload["page_title"],
        referrer=payload["referrer"],
        ip_address=client_ip(headers or {}, remote_addr),
        user_agent=payload["user_agent"],
        browser=classify_browser(payload["user_agent"]),
        timestamp=parse_timestamp(payload["timestamp"], now=now),
    )
