#!/usr/bin/env python3
"""
server_init.py
Builds and runs the NordChat Flask + Socket.IO application.
"""

from __future__ import annotations

import os
import logging

# Optional WebSocket support
# - Default: auto (use eventlet if available, otherwise fall back to threading/polling)
# - Override with: NORDCHAT_SOCKETIO_ASYNC=threading|eventlet
NORDCHAT_SOCKETIO_ASYNC = os.environ.get("NORDCHAT_SOCKETIO_ASYNC", "auto").strip().lower()
_EVENTLET_AVAILABLE = False
if NORDCHAT_SOCKETIO_ASYNC in {"auto", "eventlet"}:
    try:
        import eventlet  # type: ignore

        eventlet.monkey_patch()
        _EVENTLET_AVAILABLE = True
    except ImportError:
        _EVENTLET_AVAILABLE = False

from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from agent_gateway import AgentGateway
from constants import APP_VERSION, EV_ERROR
from errors import ChatError
from llm_bridge import LLMClient
from realtime.state import ChatState
from routes_main import register_main_routes
from secrets_policy import redact_secrets
from trivia import TriviaStore
from weather_bridge import WeatherService


def _log_startup_banner(settings: Dict[str, Any], settings_file: Optional[Path] | None) -> None:
    """Log a boot banner that makes 'wrong config' obvious."""
    cfg_path = Path(settings_file) if settings_file else None
    logging.info("==================== NordChat Boot ====================")
    logging.info("NordChat version: %s", APP_VERSION)
    logging.info(
        "Settings file: %s (exists=%s)",
        str(cfg_path) if cfg_path else "<none>",
        bool(cfg_path and cfg_path.exists()),
    )
    logging.info("Port: %s  Document root: %s", settings.get("port"), settings.get("document_root"))
    logging.info(
        "Weather: %s  AI assistant: %s (%s)",
        "OpenWeatherMap + wttr.in" if settings.get("weather_api_key") else "wttr.in only",
        "enabled" if settings.get("agent_enabled", True) else "disabled",
        settings.get("agent_api_url"),
    )
    logging.debug("Effective settings: %s", redact_secrets(settings))
    logging.info("========================================================")


def _normalize_cors_origins(val):
    if val is None:
        return None
    if isinstance(val, str):
        raw = val.strip()
        if not raw:
            return None
        if "," in raw:
            return [x.strip() for x in raw.split(",") if x.strip()] or None
        return raw
    if isinstance(val, (list, tuple, set)):
        return [str(x).strip() for x in val if str(x).strip()] or None
    return None


def build_state(settings: Dict[str, Any]) -> ChatState:
    """Create the room state and its outbound collaborators from settings."""
    agent = None
    if settings.get("agent_enabled", True):
        client = LLMClient(
            base_url=settings.get("agent_api_url"),
            timeout=float(settings.get("agent_timeout_seconds") or 30),
        )
        agent = AgentGateway(
            client,
            default_model=settings.get("agent_model"),
            history_limit=int(settings.get("agent_history_limit") or 20),
            allowed_models=settings.get("agent_allowed_models") or None,
        )
    weather = WeatherService(
        api_key=settings.get("weather_api_key"),
        timeout=float(settings.get("weather_timeout_seconds") or 8),
    )
    return ChatState(settings=settings, trivia=TriviaStore(), agent=agent, weather=weather)


def create_app(
    settings: Dict[str, Any],
    limiter: Optional[Limiter] | None = None,
    settings_file: Optional[Path] | None = None,
    state: Optional[ChatState] = None,
) -> tuple[Flask, SocketIO]:
    """Create and configure the Flask + Socket.IO application.

    This function does **not** start a server. It is safe to import from a
    Gunicorn `wsgi.py` module.
    """

    settings_file = Path(settings_file) if isinstance(settings_file, str) else settings_file

    # ───── Flask App Core ─────
    app = Flask(__name__, static_folder=None)
    app.config["NORDCHAT_SETTINGS_FILE"] = str(settings_file) if settings_file else None
    app.config["NORDCHAT_SETTINGS"] = settings

    # ------------------------------------------------------------------
    # Baseline security headers
    # ------------------------------------------------------------------
    @app.after_request
    def _add_security_headers(resp):
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault(
            "Referrer-Policy",
            str(settings.get("referrer_policy") or "strict-origin-when-cross-origin"),
        )
        resp.headers.setdefault("X-Frame-Options", str(settings.get("x_frame_options") or "DENY"))
        return resp

    # ------------------------------------------------------------------
    # CORS
    # ------------------------------------------------------------------
    cors_origins = _normalize_cors_origins(settings.get("cors_allowed_origins"))
    if cors_origins is not None:
        CORS(app, origins=cors_origins, methods=["GET", "POST"])

    storage_uri = settings.get("rate_limit_storage_uri") or "memory://"
    if limiter is None:
        limiter = Limiter(
            key_func=get_remote_address,
            default_limits=[str(settings.get("http_rate_limit") or "300 per minute")],
            storage_uri=storage_uri,
        )
    limiter.init_app(app)

    # ───── SocketIO Setup ─────
    async_mode = "threading"
    if NORDCHAT_SOCKETIO_ASYNC == "eventlet" and not _EVENTLET_AVAILABLE:
        logging.warning("[socketio] NORDCHAT_SOCKETIO_ASYNC=eventlet but eventlet is not installed; falling back to threading")
    if (NORDCHAT_SOCKETIO_ASYNC in {"auto", "eventlet"}) and _EVENTLET_AVAILABLE:
        async_mode = "eventlet"
    app.config["NORDCHAT_SOCKETIO_ASYNC_MODE"] = async_mode

    socketio = SocketIO(
        app,
        async_mode=async_mode,
        cors_allowed_origins=cors_origins,
        logger=False,
        engineio_logger=False,
        ping_interval=20,
        ping_timeout=15,
    )

    # Wraps the Socket.IO middleware too, so connection handshakes see the
    # proxy-reported peer address in REMOTE_ADDR.
    proxy_hops = int(settings.get("proxy_hops") or 0)
    if proxy_hops > 0:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=proxy_hops, x_proto=proxy_hops)
        logging.info("[proxy] trusting %d proxy hop(s) for client addresses", proxy_hops)

    if state is None:
        state = build_state(settings)
    app.config["NORDCHAT_STATE"] = state

    # ───── Global Socket.IO Error Handler ─────
    # Expected errors go back to the sender as an ``error`` event. Anything
    # else leaves the room state in an unknown condition, so the process exits
    # and the supervisor restarts it.
    @socketio.on_error_default  # applies to all namespaces
    def _socketio_default_error_handler(e):
        sid = getattr(request, "sid", None)
        if isinstance(e, ChatError):
            logging.info("Rejected event from sid=%s: %s", sid, e)
            if sid:
                socketio.emit(EV_ERROR, {"message": str(e)}, to=sid)
            return

        logging.critical("Unhandled Socket.IO handler error (sid=%s): %s", sid, e, exc_info=e)
        if settings.get("exit_on_unhandled_error", True):
            logging.shutdown()
            os._exit(1)

    # ───── Routes ─────
    register_main_routes(app, settings, limiter=limiter)

    from socket_handlers import register_socketio_handlers
    register_socketio_handlers(socketio, settings, state)

    _log_startup_banner(settings, settings_file)
    return app, socketio


def run_web_server(
    settings: Dict[str, Any],
    limiter: Optional[Limiter] | None = None,
    settings_file: Optional[Path] | None = None,
) -> None:
    """Bootstrap the Flask-SocketIO app, attach routes & handlers, then run it."""

    app, socketio = create_app(settings, limiter=limiter, settings_file=settings_file)

    # ───── Run Server (dev / single-process) ─────
    host = settings.get("host") or "0.0.0.0"
    port = int(settings.get("port") or 5000)
    debug = bool(settings.get("debug") or False)

    logging.info("🚀  Starting NordChat on http://%s:%s (debug=%s)", host, port, debug)
    logging.info("Health check available at: http://localhost:%s/health", port)

    # Reduce console spam from long-polling by filtering Werkzeug access logs for /socket.io.
    class _NordChatSocketIOAccessFilter(logging.Filter):
        def filter(self, record: logging.LogRecord) -> bool:  # type: ignore
            return "/socket.io/" not in record.getMessage()

    logging.getLogger("werkzeug").addFilter(_NordChatSocketIOAccessFilter())

    use_reloader = bool(debug and app.config.get("NORDCHAT_SOCKETIO_ASYNC_MODE") == "threading")
    socketio.run(
        app,
        host=host,
        port=port,
        debug=debug,
        use_reloader=use_reloader,
        log_output=False,
        allow_unsafe_werkzeug=True,
    )
