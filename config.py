#!/usr/bin/env python3
"""config.py

Settings for the NordChat server.

Settings are a plain dict loaded from an optional JSON file
(``server_config.json`` by default) layered over ``get_default_settings()``,
then overridden from the environment. Secrets such as the weather API key are
best supplied through the environment (``WEATHER_API_KEY``).
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from constants import (
    AGENT_HISTORY_LIMIT,
    CONFIG_FILE,
    DEFAULT_AGENT_API_URL,
    DEFAULT_AGENT_MODEL,
    DEFAULT_CORS_ORIGINS,
    MAX_MESSAGES,
    TRIVIA_TIMEOUT_SECONDS,
)
from secrets_policy import scrub_secrets


def get_default_settings() -> Dict[str, Any]:
    return {
        # Server
        "host": "0.0.0.0",
        "port": 5000,
        "debug": False,
        "document_root": "www",
        "cors_allowed_origins": list(DEFAULT_CORS_ORIGINS),
        # Number of reverse proxies in front of the app (0 = clients connect directly).
        "proxy_hops": 0,
        "exit_on_unhandled_error": True,

        # Logging
        "log_level": "INFO",
        "log_format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        "log_file_path": "logs/server.log",

        # HTTP hardening
        "http_rate_limit": "300 per minute",
        "rate_limit_storage_uri": "memory://",
        "referrer_policy": "strict-origin-when-cross-origin",
        "x_frame_options": "DENY",

        # Room
        "max_messages": MAX_MESSAGES,
        "max_message_length": 500,
        "max_username_length": 24,
        "max_question_length": 300,
        "max_city_length": 80,
        "extra_banned_words": [],
        "trivia_timeout_seconds": TRIVIA_TIMEOUT_SECONDS,

        # Weather
        "weather_api_key": "",
        "weather_timeout_seconds": 8,

        # AI assistant
        "agent_enabled": True,
        "agent_api_url": DEFAULT_AGENT_API_URL,
        "agent_model": DEFAULT_AGENT_MODEL,
        "agent_allowed_models": [],
        "agent_history_limit": AGENT_HISTORY_LIMIT,
        "agent_timeout_seconds": 30,
    }


def load_settings(path: Path) -> Dict[str, Any]:
    """Load settings from JSON over the defaults. Returns defaults if missing."""
    settings = get_default_settings()
    if not path.exists():
        return settings

    try:
        with path.open("r", encoding="utf-8") as fp:
            loaded = json.load(fp)
        if not isinstance(loaded, dict):
            raise ValueError("top-level JSON value must be an object")
    except (OSError, ValueError) as exc:
        print(f"⚠️  Could not parse {path} as JSON: {exc}")
        ts = datetime.now().strftime("%Y%m%d-%H%M%S")
        bad_path = path.with_suffix(path.suffix + f".bad-{ts}")
        try:
            path.rename(bad_path)
            print(f"⚠️  Backed up invalid settings file to: {bad_path}")
        except OSError as e2:
            print(f"⚠️  Could not back up invalid settings file: {e2}")
        print("⚠️  Falling back to defaults.")
        return settings

    settings.update(loaded)
    return settings


def save_settings(path: Path, settings: Dict[str, Any]) -> None:
    """Write settings back out, minus secrets."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fp:
        json.dump(scrub_secrets(settings), fp, indent=2)


def resolve_config_path(explicit: str | None = None) -> Path:
    return Path(explicit or os.environ.get("NORDCHAT_CONFIG") or CONFIG_FILE)


def apply_env_overrides(settings: Dict[str, Any]) -> None:
    """Apply env overrides for secrets and runtime deployment."""

    def _bool_env(*names: str) -> bool | None:
        for n in names:
            v = os.getenv(n)
            if v is None:
                continue
            v = v.strip().lower()
            if v in ("1", "true", "yes", "y", "on"):
                return True
            if v in ("0", "false", "no", "n", "off"):
                return False
        return None

    def _str_env(*names: str) -> str | None:
        for n in names:
            v = os.getenv(n)
            if v is not None and v.strip() != "":
                return v.strip()
        return None

    def _int_env(*names: str) -> int | None:
        v = _str_env(*names)
        if v is None:
            return None
        try:
            return int(v)
        except ValueError:
            return None

    port = _int_env("NORDCHAT_PORT", "PORT")
    if port:
        settings["port"] = port

    host = _str_env("NORDCHAT_HOST", "HOST")
    if host:
        settings["host"] = host

    weather_key = _str_env("WEATHER_API_KEY", "OPENWEATHER_API_KEY")
    if weather_key:
        settings["weather_api_key"] = weather_key

    log_level = _str_env("NORDCHAT_LOG_LEVEL")
    if log_level:
        settings["log_level"] = log_level.upper()

    cors = _str_env("NORDCHAT_CORS_ORIGINS")
    if cors:
        settings["cors_allowed_origins"] = [o.strip() for o in cors.split(",") if o.strip()]

    agent_url = _str_env("NORDCHAT_AGENT_API_URL")
    if agent_url:
        settings["agent_api_url"] = agent_url

    agent_model = _str_env("NORDCHAT_AGENT_MODEL")
    if agent_model:
        settings["agent_model"] = agent_model

    doc_root = _str_env("NORDCHAT_DOCUMENT_ROOT")
    if doc_root:
        settings["document_root"] = doc_root

    exit_on_error = _bool_env("NORDCHAT_EXIT_ON_ERROR")
    if exit_on_error is not None:
        settings["exit_on_unhandled_error"] = exit_on_error

    proxy_hops = _int_env("NORDCHAT_PROXY_HOPS")
    if proxy_hops is not None and proxy_hops >= 0:
        settings["proxy_hops"] = proxy_hops
