"""
gunicorn entry point:
  gunicorn --threads 8 -b 0.0.0.0:8080 minimal_analytics.wsgi:app
"""
from . import config
from .app import create_app

config.configure_logging()
app = create_app()
