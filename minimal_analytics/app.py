import logging

from flask import Blueprint, Flask, Response, current_app, jsonify, render_template_string, request
from jinja2 import TemplateError

from . import config
from .errors import AnalyticsError, InvalidRequest, StoreUnavailable, TemplateRenderError
from .pages import DASHBOARD_HTML, STYLE, TEST_PAGE_HTML, build_sparkline
from .script import render_tracking_script
from .stats import compute_stats, daily_views, stats_cutoff
from .store import JsonFileStore, PageViewStore, WebsiteRegistry, ensure_data_dir
from .tracking import build_pageview

log = logging.getLogger(__name__)

bp = Blueprint("analytics", __name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}

TRACK_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def create_app(store: PageViewStore | None = None,
               registry: WebsiteRegistry | None = None,
               data_dir=None) -> Flask:
    """
    Build the WSGI app. The store and registry are created once here and
    shared by every request; pass them in to run against other storage.
    """
    app = Flask(__name__)

    if store is None or registry is None:
        websites_path, pageviews_path = ensure_data_dir(data_dir or config.DATA_DIR)
        if registry is None:
            registry = WebsiteRegistry(websites_path)
        if store is None:
            store = JsonFileStore(pageviews_path)

    app.extensions["analytics"] = {"store": store, "registry": registry}
    app.register_blueprint(bp)
    return app


def get_store() -> PageViewStore:
    return current_app.extensions["analytics"]["store"]


def get_registry() -> WebsiteRegistry:
    return current_app.extensions["analytics"]["registry"]


def render_page(source: str, **context) -> str:
    try:
        return render_template_string(source, style=STYLE, **context)
    except TemplateError as exc:
        raise TemplateRenderError() from exc


def request_origin() -> str:
    return f"{request.scheme}://{request.host}"


# -----------------------------------------------------------------------------
# Hooks
# -----------------------------------------------------------------------------
@bp.app_errorhandler(AnalyticsError)
def handle_analytics_error(exc: AnalyticsError):
    if exc.status_code >= 500:
        log.error("%s %s failed: %s", request.method, request.path, exc.message, exc_info=exc)
    return Response(exc.message + "\n", status=exc.status_code, mimetype="text/plain")


@bp.after_app_request
def add_headers(resp):
    resp.headers.update(SECURITY_HEADERS)
    if request.path == "/track":
        resp.headers.update(TRACK_CORS_HEADERS)
    return resp


# -----------------------------------------------------------------------------
# Ingest
# -----------------------------------------------------------------------------
@bp.route("/track", methods=["POST", "OPTIONS"])
def track():
    """
    Beacon endpoint, fed by analytics.js:
      { "tracking_id": "my-website", "session_id": "...", "page_url": "...",
        "page_title": "...", "referrer": "", "user_agent": "...",
        "timestamp": "2026-10-18T12:00:00.000Z" }
    """
    if request.method == "OPTIONS":
        return ("", 200)

    # sendBeacon may not label the body as JSON
    data = request.get_json(force=True, silent=True)
    if data is None:
        raise InvalidRequest()

    record = build_pageview(
        data,
        get_registry(),
        remote_addr=request.remote_addr,
        headers=request.headers,
    )
    get_store().append(record)
    return jsonify({"success": True})


@bp.get("/analytics.js")
def analytics_script():
    website = get_registry().first()
    body = render_tracking_script(website.id, request_origin())
    return Response(body, mimetype="application/javascript")


# -----------------------------------------------------------------------------
# Reporting
# -----------------------------------------------------------------------------
@bp.get("/stats/<tracking_id>")
def stats(tracking_id):
    records = get_store().read_all()
    summary = compute_stats(records, tracking_id, stats_cutoff())
    return jsonify(summary.as_dict())


@bp.get("/")
def dashboard():
    websites = get_registry().list_websites()
    if not websites:
        raise StoreUnavailable("Analytics not configured")

    wanted = request.args.get("site")
    website = next((site for site in websites if site.id == wanted), websites[0])

    records = get_store().read_all()
    since = stats_cutoff()
    summary = compute_stats(records, website.id, since)
    spark = build_sparkline(daily_views(records, website.id, since))

    return render_page(
        DASHBOARD_HTML,
        website=website,
        websites=websites,
        stats=summary,
        window_days=config.STATS_WINDOW_DAYS,
        spark_svg=spark["svg"],
        spark_last=spark["last_count"],
        origin=request_origin(),
    )


@bp.get("/test")
def test_page():
    return render_page(TEST_PAGE_HTML, title="Analytics test page")


@bp.get("/test2")
def test_page2():
    return render_page(TEST_PAGE_HTML, title="Analytics test page 2")


# -----------------------------------------------------------------------------
# health
# -----------------------------------------------------------------------------
@bp.get("/healthz")
def healthz():
    return "ok", 200
