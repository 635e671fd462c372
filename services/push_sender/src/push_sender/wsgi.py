"""WSGI entry point for gunicorn.

Usage:
    gunicorn push_sender.wsgi:app --bind 0.0.0.0:8000
"""
from push_sender.app import build_pipeline, create_app
from push_sender.config import PushSenderConfig

_config = PushSenderConfig()
app = create_app(build_pipeline(_config), _config)
