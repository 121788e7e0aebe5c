import json
import os
import stat
import threading

import pytest

from minimal_analytics.errors import StoreUnavailable
from minimal_analytics.models import PageView, Website
from minimal_analytics.store import JsonFileStore, MemoryStore, WebsiteRegistry, ensure_data_dir


def test_append_adds_exactly_one_record(tmp_path, make_view) -> None:
    store = JsonFileStore(tmp_path / "pageviews.json")
    assert store.read_all() == []

    stored = store.append(make_view(website_id="site-a"))

    records = store.read_all()
    assert len(records) == 1
    assert records[0].website_id == "site-a"
    assert records[0].id == stored.id
    assert stored.id


def test_records_round_trip_through_file(tmp_path, make_view) -> None:
    path = tmp_path / "pageviews.json"
    stored = JsonFileStore(path).append(make_view(page_url="/about", referrer="https://ref.example/"))

    reloaded = JsonFileStore(path).read_all()

    assert reloaded == [stored]
    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk[0]["page_url"] == "/about"
    assert on_disk[0]["timestamp"].endswith("+00:00")


def test_retention_keeps_newest_in_order(tmp_path, make_view) -> None:
    store = JsonFileStore(tmp_path / "pageviews.json", max_records=5)
    for i in range(8):
        store.append(make_view(page_url=f"/{i}"))

    assert [pv.page_url for pv in store.read_all()] == ["/3", "/4", "/5", "/6", "/7"]


def test_default_retention_is_ten_thousand(tmp_path, make_view) -> None:
    path = tmp_path / "pageviews.json"
    seed = [make_view(page_url=f"/{i}").as_dict() for i in range(10000)]
    path.write_text(json.dumps(seed), encoding="utf-8")
    store = JsonFileStore(path)

    store.append(make_view(page_url="/newest"))

    records = store.read_all()
    assert len(records) == 10000
    assert records[0].page_url == "/1"
    assert records[-1].page_url == "/newest"


def test_memory_store_retention(make_view) -> None:
    store = MemoryStore(max_records=3)
    for i in range(5):
        store.append(make_view(page_url=f"/{i}"))

    assert [pv.page_url for pv in store.read_all()] == ["/2", "/3", "/4"]


def test_read_all_fails_on_corrupt_file(tmp_path) -> None:
    path = tmp_path / "pageviews.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(StoreUnavailable):
        JsonFileStore(path).read_all()


def test_read_all_fails_on_bad_record(tmp_path) -> None:
    path = tmp_path / "pageviews.json"
    path.write_text(json.dumps([{"id": "1", "timestamp": "yesterday"}]), encoding="utf-8")

    with pytest.raises(StoreUnavailable):
        JsonFileStore(path).read_all()


def test_append_over_corrupt_file_starts_empty_and_keeps_old_file(tmp_path, make_view) -> None:
    path = tmp_path / "pageviews.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileStore(path)

    store.append(make_view())

    assert len(store.read_all()) == 1
    moved = list(tmp_path.glob("pageviews.json.corrupt-*"))
    assert len(moved) == 1
    assert moved[0].read_text(encoding="utf-8") == "{not json"


def test_concurrent_appends_are_not_lost(tmp_path, make_view) -> None:
    store = JsonFileStore(tmp_path / "pageviews.json")
    n = 40
    barrier = threading.Barrier(n)

    def worker(i):
        barrier.wait()
        store.append(make_view(session_id=f"s{i}"))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    records = store.read_all()
    assert len(records) == n
    assert len({pv.id for pv in records}) == n
    assert {pv.session_id for pv in records} == {f"s{i}" for i in range(n)}


def test_ids_sort_in_append_order(tmp_path, make_view) -> None:
    store = JsonFileStore(tmp_path / "pageviews.json")
    ids = [store.append(make_view()).id for _ in range(20)]

    stamps = [int(i.split("_")[0]) for i in ids]
    assert stamps == sorted(stamps)
    assert len(set(stamps)) == len(stamps)


def test_ensure_data_dir_seeds_defaults(tmp_path) -> None:
    websites_path, pageviews_path = ensure_data_dir(tmp_path / "data")

    assert json.loads(websites_path.read_text(encoding="utf-8")) == [
        {"id": "my-website", "domain": "localhost", "name": "My Website"}
    ]
    assert json.loads(pageviews_path.read_text(encoding="utf-8")) == []


def test_ensure_data_dir_keeps_existing_files(data_dir) -> None:
    websites_path, _ = ensure_data_dir(data_dir)

    ids = [w["id"] for w in json.loads(websites_path.read_text(encoding="utf-8"))]
    assert ids == ["site-a", "site-b"]


def test_registry_lookup(data_dir) -> None:
    registry = WebsiteRegistry(data_dir / "websites.json")

    assert [w.id for w in registry.list_websites()] == ["site-a", "site-b"]
    assert registry.is_known("site-b")
    assert not registry.is_known("SITE-B")
    assert not registry.is_known("")
    assert registry.first().name == "Site A"


def test_registry_missing_file(tmp_path) -> None:
    registry = WebsiteRegistry(tmp_path / "websites.json")

    with pytest.raises(StoreUnavailable):
        registry.is_known("site-a")


def test_registry_empty_has_no_first(tmp_path) -> None:
    path = tmp_path / "websites.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(StoreUnavailable):
        WebsiteRegistry(path).first()


def test_repeated_corruption_keeps_every_broken_copy(tmp_path, make_view, monkeypatch) -> None:
    path = tmp_path / "pageviews.json"
    store = JsonFileStore(path)
    # a frozen clock must not make the second move-aside overwrite the first
    monkeypatch.setattr("minimal_analytics.store.time.time_ns", lambda: 42)

    path.write_text("{first broken", encoding="utf-8")
    store.append(make_view())
    path.write_text("{second broken", encoding="utf-8")
    store.append(make_view())

    moved = sorted(p.read_text(encoding="utf-8") for p in tmp_path.glob("pageviews.json.corrupt-*"))
    assert moved == ["{first broken", "{second broken"]


def test_append_write_failure(tmp_path, make_view, monkeypatch) -> None:
    path = tmp_path / "pageviews.json"
    store = JsonFileStore(path)
    store.append(make_view(page_url="/kept"))

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", fail_replace)
    with pytest.raises(StoreUnavailable):
        store.append(make_view(page_url="/lost"))
    monkeypatch.undo()

    assert [pv.page_url for pv in store.read_all()] == ["/kept"]
    assert list(tmp_path.glob("*.tmp")) == []


def test_written_files_are_world_readable(tmp_path, make_view) -> None:
    websites_path, pageviews_path = ensure_data_dir(tmp_path / "data")
    JsonFileStore(pageviews_path).append(make_view())

    assert stat.S_IMODE(websites_path.stat().st_mode) == 0o644
    assert stat.S_IMODE(pageviews_path.stat().st_mode) == 0o644


def test_null_fields_load_as_empty_strings() -> None:
    pv = PageView.from_dict({
        "id": "1",
        "website_id": "site-a",
        "referrer": None,
        "page_title": None,
        "browser": None,
        "timestamp": "2026-10-01T10:00:00+00:00",
    })

    assert pv.referrer == ""
    assert pv.page_title == ""
    assert pv.browser == "Other"

    site = Website.from_dict({"id": "site-a", "domain": None, "name": None})
    assert (site.domain, site.name) == ("", "")
