"""gunicorn_conf.py

Default Gunicorn config for NordChat + Flask-SocketIO using Eventlet.

Environment variables:
  NORDCHAT_BIND=0.0.0.0:5000
  NORDCHAT_GUNICORN_LOGLEVEL=info
  NORDCHAT_GUNICORN_ACCESSLOG=-
  NORDCHAT_GUNICORN_ERRORLOG=-
  NORDCHAT_GUNICORN_TIMEOUT=60

Chat history, presence and the agent session are per-process, so the worker
count is fixed at one.
"""

from __future__ import annotations

import os

bind = os.environ.get("NORDCHAT_BIND") or "0.0.0.0:" + os.environ.get("PORT", "5000")
workers = 1
worker_class = "eventlet"

# WebSockets keep connections open; avoid overly low timeouts.
timeout = int(os.environ.get("NORDCHAT_GUNICORN_TIMEOUT", "60"))
keepalive = int(os.environ.get("NORDCHAT_GUNICORN_KEEPALIVE", "5"))

loglevel = os.environ.get("NORDCHAT_GUNICORN_LOGLEVEL", "info")
accesslog = os.environ.get("NORDCHAT_GUNICORN_ACCESSLOG", "-")
errorlog = os.environ.get("NORDCHAT_GUNICORN_ERRORLOG", "-")

# Important for Socket.IO upgrades through reverse proxies.
forwarded_allow_ips = os.environ.get("NORDCHAT_FORWARDED_ALLOW_IPS", "*")
