import logging

from . import config
from .app import create_app

log = logging.getLogger("minimal_analytics")


def main():
    config.configure_logging()
    app = create_app()

    log.info("analytics server starting on http://localhost:%s", config.PORT)
    log.info("dashboard: http://localhost:%s/", config.PORT)

    # Dev mode; production runs minimal_analytics.wsgi:app under gunicorn
    app.run(host="0.0.0.0", port=config.PORT, threaded=True)


if __name__ == "__main__":
    main()
