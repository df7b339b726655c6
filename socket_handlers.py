#!/usr/bin/env python3
"""
socket_handlers.py

Socket.IO wiring for the NordChat room.

Builds the shared helper namespace (``ctx``) and hands it to the split handler
modules under realtime/. Handlers raise ``ChatError`` subclasses for anything
the sender should be told about; the default error handler installed by
server_init.py turns those into ``error`` events.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, Optional

from flask import request

from constants import EV_ERROR, EV_ONLINE_USERS
from moderation import ModerationChain
from realtime.broadcast import BroadcastRouter
from realtime.events import parse_event
from realtime.state import ChatState


def _client_address() -> str:
    """Transport peer address for the current Socket.IO request.

    Behind a reverse proxy, ``proxy_hops`` makes ProxyFix rewrite REMOTE_ADDR
    before this runs. Forwarding headers are never read here directly.
    """
    return request.remote_addr or "unknown"


def socketio_scheduler(socketio):
    """Timer implementation backed by the active Socket.IO async mode."""

    def schedule(delay: float, fn):
        def _run():
            socketio.sleep(delay)
            fn()

        return socketio.start_background_task(_run)

    return schedule


def register_socketio_handlers(socketio, settings: Dict[str, Any], state: ChatState) -> SimpleNamespace:
    """Registers all Socket.IO event handlers against ``state``."""

    router = BroadcastRouter(socketio, state)
    chain = ModerationChain()

    if state.scheduler is None:
        state.scheduler = socketio_scheduler(socketio)

    def _parse(name: str, data: Any):
        return parse_event(name, data, settings)

    def _sid() -> str:
        return request.sid

    def _address() -> str:
        return _client_address()

    def _name_of(sid: str, fallback: Optional[str] = None) -> Optional[str]:
        return state.sessions.name_of(sid) or fallback

    def _error(sid: str, message: str) -> None:
        router.send(sid, EV_ERROR, {"message": message})

    def _push_online_users() -> None:
        router.emit_all(EV_ONLINE_USERS, {"users": state.sessions.online_names()})

    # ───────────────────────────────────────────────────────────────────
    # Register split handler modules (see realtime/*.py)
    # ───────────────────────────────────────────────────────────────────
    ctx = SimpleNamespace(
        state=state,
        router=router,
        chain=chain,
        parse=_parse,
        sid=_sid,
        address=_address,
        name_of=_name_of,
        error=_error,
        push_online_users=_push_online_users,
    )
    from realtime import assistant, blocks, bots, chat

    chat.register(socketio, settings, ctx)
    bots.register(socketio, settings, ctx)
    assistant.register(socketio, settings, ctx)
    blocks.register(socketio, settings, ctx)
    return ctx
