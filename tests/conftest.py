import json
from datetime import datetime, timedelta, timezone

import pytest

from minimal_analytics.app import create_app
from minimal_analytics.models import PageView

WEBSITES = [
    {"id": "site-a", "domain": "a.example", "name": "Site A"},
    {"id": "site-b", "domain": "b.example", "name": "Site B"},
]

CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _make_view(website_id="site-a", page_url="/", browser="Chrome", session_id="s1",
               timestamp=None, **extra) -> PageView:
    fields = {
        "website_id": website_id,
        "session_id": session_id,
        "page_url": page_url,
        "page_title": "",
        "referrer": "",
        "ip_address": "127.0.0.1",
        "user_agent": "",
        "browser": browser,
        "timestamp": timestamp or datetime.now(timezone.utc) - timedelta(hours=1),
    }
    fields.update(extra)
    return PageView(**fields)


@pytest.fixture
def make_view():
    return _make_view


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "websites.json").write_text(json.dumps(WEBSITES), encoding="utf-8")
    return tmp_path


@pytest.fixture
def app(data_dir):
    app = create_app(data_dir=data_dir)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions["analytics"]["store"]


@pytest.fixture
def registry(app):
    return app.extensions["analytics"]["registry"]


@pytest.fixture
def beacon():
    def _beacon(**overrides) -> dict:
        payload = {
            "tracking_id": "site-a",
            "session_id": "sess-1",
            "page_url": "https://a.example/",
            "page_title": "Home",
            "referrer": "",
            "user_agent": CHROME_UA,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        payload.update(overrides)
        return payload

    return _beacon
