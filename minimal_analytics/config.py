import logging
import os

# -----------------------------------------------------------------------------
# Config
# -----------------------------------------------------------------------------
PORT = int(os.environ.get("PORT", "8080"))
DATA_DIR = os.environ.get("ANALYTICS_DATA_DIR", "./data")
LOG_LEVEL = os.environ.get("ANALYTICS_LOG_LEVEL", "INFO").upper()

WEBSITES_FILENAME = "websites.json"
PAGEVIEWS_FILENAME = "pageviews.json"

# retention: only the newest N page views are kept on disk
MAX_PAGEVIEWS = 10000

# stats always cover the trailing window, not configurable from outside
STATS_WINDOW_DAYS = 30
TOP_PAGES_LIMIT = 10

# seeded into websites.json on first start
DEFAULT_WEBSITE = {"id": "my-website", "domain": "localhost", "name": "My Website"}


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, level or LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
