#!/usr/bin/env python3
"""routes_main.py

HTTP routes: the two chat pages, a health probe, and static assets served
from ``document_root``.
"""

from __future__ import annotations

import os

from flask import abort, jsonify, send_from_directory


def register_main_routes(app, settings, limiter=None):
    document_root = os.path.abspath(str(settings.get("document_root") or "www"))
    app.config["NORDCHAT_DOCUMENT_ROOT"] = document_root

    def _page(filename: str):
        if not os.path.isfile(os.path.join(document_root, filename)):
            abort(404)
        return send_from_directory(document_root, filename)

    @app.route("/")
    def index():
        return _page("index.html")

    @app.route("/room1")
    def room1():
        return _page("room1.html")

    @app.route("/health", methods=["GET"])
    def health_check():
        # Minimal health payload. Avoid leaking config.
        return jsonify({"status": "ok", "message": "Server is running"})

    if limiter is not None:
        limiter.exempt(health_check)

    @app.route("/<path:filename>")
    def static_asset(filename: str):
        # send_from_directory rejects paths that escape document_root.
        return send_from_directory(document_root, filename)
