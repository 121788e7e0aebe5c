"""
Flat-file persistence: the website registry and the page view log.

Both live as JSON arrays in the data directory and are read and rewritten
wholesale. The page view file is capped at MAX_PAGEVIEWS entries; every
access goes through one ReadWriteLock owned by the store.
"""
import json
import logging
import os
import tempfile
import time
from dataclasses import replace
from pathlib import Path

from . import config
from .errors import StoreUnavailable
from .models import PageView, Website
from .rwlock import ReadWriteLock
from .tracking import IdGenerator

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Data dir bootstrap
# -----------------------------------------------------------------------------
def write_json(path: Path, data) -> None:
    """
    Replace ``path`` with ``data`` serialised as JSON. Readers see either the
    old file or the new one, never a partial write.
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)
            fh.flush()
            os.fsync(fh.fileno())
        # mkstemp creates 0600; data files are 0644
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def ensure_data_dir(data_dir) -> tuple[Path, Path]:
    """
    Create the data dir and seed missing files. Returns
    (websites_path, pageviews_path).
    """
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    websites_path = data_dir / config.WEBSITES_FILENAME
    pageviews_path = data_dir / config.PAGEVIEWS_FILENAME

    if not websites_path.exists():
        write_json(websites_path, [config.DEFAULT_WEBSITE])
        log.info("seeded %s with default website %r", websites_path, config.DEFAULT_WEBSITE["id"])
    if not pageviews_path.exists():
        write_json(pageviews_path, [])
        log.info("created empty %s", pageviews_path)

    return websites_path, pageviews_path


# -----------------------------------------------------------------------------
# Website registry
# -----------------------------------------------------------------------------
class WebsiteRegistry:
    """
    Read-only view of websites.json. Re-read on every call so edits to the
    file take effect without a restart.
    """

    def __init__(self, path):
        self.path = Path(path)

    def list_websites(self) -> list[Website]:
        try:
            with open(self.path, encoding="utf-8") as fh:
                raw = json.load(fh)
            if not isinstance(raw, list):
                raise ValueError("websites file must hold a JSON array")
            return [Website.from_dict(entry) for entry in raw]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            raise StoreUnavailable("Server error: could not read websites file") from exc

    def is_known(self, website_id: str) -> bool:
        return any(site.id == website_id for site in self.list_websites())

    def first(self) -> Website:
        websites = self.list_websites()
        if not websites:
            raise StoreUnavailable("Analytics not configured")
        return websites[0]


# -----------------------------------------------------------------------------
# Page view stores
# -----------------------------------------------------------------------------
class PageViewStore:
    """
    Storage interface for page views: append() one record, read_all() a
    snapshot. Implementations hold their own ReadWriteLock.
    """

    def __init__(self, max_records: int = config.MAX_PAGEVIEWS, ids: IdGenerator | None = None):
        if max_records < 1:
            raise ValueError("max_records must be positive")
        self.max_records = max_records
        self.lock = ReadWriteLock()
        self._ids = ids or IdGenerator()

    def append(self, record: PageView) -> PageView:
        raise NotImplementedError

    def read_all(self) -> list[PageView]:
        raise NotImplementedError

    def _stamp(self, record: PageView) -> PageView:
        # called with the write lock held
        return replace(record, id=self._ids.next_id())

    def _retain(self, items: list) -> list:
        if len(items) > self.max_records:
            return items[-self.max_records:]
        return items


class MemoryStore(PageViewStore):
    """In-process store, handy for tests and throwaway runs."""

    def __init__(self, records=None, **kwargs):
        super().__init__(**kwargs)
        self._records = list(records or [])

    def append(self, record: PageView) -> PageView:
        with self.lock.write_lock():
            record = self._stamp(record)
            self._records = self._retain(self._records + [record])
        return record

    def read_all(self) -> list[PageView]:
        with self.lock.read_lock():
            return list(self._records)


class JsonFileStore(PageViewStore):
    """
    pageviews.json as the whole database: every append rewrites the file.
    """

    def __init__(self, path, **kwargs):
        super().__init__(**kwargs)
        self.path = Path(path)

    def append(self, record: PageView) -> PageView:
        with self.lock.write_lock():
            entries = self._load_for_append()
            record = self._stamp(record)
            entries.append(record.as_dict())
            entries = self._retain(entries)
            try:
                write_json(self.path, entries)
            except OSError as exc:
                raise StoreUnavailable("Server error: could not save page view") from exc
        return record

    def read_all(self) -> list[PageView]:
        with self.lock.read_lock():
            try:
                with open(self.path, encoding="utf-8") as fh:
                    raw = json.load(fh)
            except FileNotFoundError:
                return []
            except (OSError, ValueError) as exc:
                raise StoreUnavailable("Server error: could not read page views") from exc

        if not isinstance(raw, list):
            raise StoreUnavailable("Server error: could not read page views")
        try:
            return [PageView.from_dict(entry) for entry in raw]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise StoreUnavailable("Server error: could not read page views") from exc

    def _load_for_append(self) -> list:
        """
        Prior state for an append. A missing or unreadable file counts as
        empty; an unreadable one is moved aside first so nothing is lost.
        """
        try:
            with open(self.path, encoding="utf-8") as fh:
                raw = json.load(fh)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as exc:
            self._quarantine(exc)
            return []

        if not isinstance(raw, list):
            self._quarantine(ValueError("page view file is not a JSON array"))
            return []
        return raw

    def _quarantine(self, reason: Exception) -> None:
        target = self._quarantine_target()
        try:
            os.replace(self.path, target)
        except OSError as exc:
            log.warning("page view file %s unreadable (%s) and could not be moved aside: %s",
                        self.path, reason, exc)
            return
        log.warning("page view file %s unreadable (%s); moved to %s, starting empty",
                    self.path, reason, target)

    def _quarantine_target(self) -> Path:
        # never reuse a name: an earlier quarantined copy must survive
        stem = f"{self.path.name}.corrupt-{time.time_ns()}"
        target = self.path.with_name(stem)
        n = 1
        while target.exists():
            target = self.path.with_name(f"{stem}-{n}")
            n += 1
        return target
