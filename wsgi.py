"""wsgi.py

Gunicorn entrypoint for NordChat.

Run (example):
  NORDCHAT_SOCKETIO_ASYNC=eventlet gunicorn -c gunicorn_conf.py wsgi:app

Notes:
- Room state lives in process memory, so run exactly one worker.
"""

from __future__ import annotations

import os

# ---- Ensure eventlet monkey_patch happens as early as possible ----
_async = (os.environ.get("NORDCHAT_SOCKETIO_ASYNC", "auto") or "auto").strip().lower()
if _async in {"auto", "eventlet"}:
    try:
        import eventlet  # type: ignore

        eventlet.monkey_patch()
    except ImportError:
        # Without eventlet NordChat falls back to threading.
        pass

from config import apply_env_overrides, load_settings, resolve_config_path
from main import configure_logging, install_thread_excepthook
from server_init import create_app


_settings_path = resolve_config_path()
_settings = load_settings(_settings_path)
apply_env_overrides(_settings)
configure_logging(_settings)
install_thread_excepthook(_settings)

# Create the Flask app + Socket.IO integration.
app, socketio = create_app(_settings, limiter=None, settings_file=_settings_path)

# Expose these for tooling / introspection.
app.config["NORDCHAT_GUNICORN"] = True
app.config["NORDCHAT_SETTINGS_PATH"] = str(_settings_path)
