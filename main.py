#!/usr/bin/env python3
"""main.py

NordChat server entrypoint.

Settings come from ``server_config.json`` (or ``--config`` /
``NORDCHAT_CONFIG``) layered over the built-in defaults, then environment
overrides. The file is optional; a fresh checkout runs with defaults.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import threading

from config import apply_env_overrides, load_settings, resolve_config_path
from server_init import run_web_server


def configure_logging(settings: dict) -> None:
    """Configure file + stdout logging."""
    log_level_str = str(settings.get("log_level", "INFO")).upper()
    log_format = settings.get(
        "log_format",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    log_file_path = settings.get("log_file_path", "logs/server.log")

    log_level = getattr(logging, log_level_str, logging.INFO)
    if log_file_path:
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        logging.basicConfig(level=log_level, format=log_format, filename=log_file_path, filemode="a")
        stream = logging.StreamHandler(sys.stdout)
        stream.setFormatter(logging.Formatter(log_format))
        logging.getLogger().addHandler(stream)
    else:
        logging.basicConfig(level=log_level, format=log_format, stream=sys.stdout)
    logging.info("Logging configured (level=%s)", log_level_str)


def install_thread_excepthook(settings: dict) -> None:
    """Exit the process when a background thread (timer, bridge call) dies."""

    def _hook(args: threading.ExceptHookArgs) -> None:
        if issubclass(args.exc_type, SystemExit):
            return
        logging.critical(
            "Unhandled exception in thread %s",
            getattr(args.thread, "name", "?"),
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        if settings.get("exit_on_unhandled_error", True):
            logging.shutdown()
            os._exit(1)

    threading.excepthook = _hook


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="NordChat server")
    p.add_argument("--config", default=None, help="path to server config JSON")
    p.add_argument("--host", default=None, help="interface to bind (overrides config/env)")
    p.add_argument("--port", type=int, default=None, help="port to listen on (overrides config/env)")
    return p.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    settings_path = resolve_config_path(args.config)

    settings = load_settings(settings_path)
    apply_env_overrides(settings)
    if args.host:
        settings["host"] = args.host
    if args.port:
        settings["port"] = args.port

    configure_logging(settings)
    install_thread_excepthook(settings)

    www_folder = settings.get("document_root", "www")
    if not os.path.isdir(www_folder):
        logging.warning("Document root %s does not exist; only /health will answer", www_folder)

    run_web_server(settings, limiter=None, settings_file=settings_path)


if __name__ == "__main__":
    main()
