"""Outbound fanout for the chat room.

All emits go through ``socketio.emit(..., to=sid)`` rather than the
request-bound ``flask_socketio.emit`` so the router also works from timer
callbacks, which run outside any Socket.IO request context.
"""

from __future__ import annotations

import logging
from typing import Any

from constants import EV_LOAD_MESSAGES, EV_MESSAGE
from moderation import Consumed, Deliver, Outcome, Redirect, Suppress
from realtime.state import ChatMessage, ChatState


class BroadcastRouter:
    def __init__(self, socketio, state: ChatState):
        self.socketio = socketio
        self.state = state

    # ── raw emits ───────────────────────────────────────────────────
    def send(self, sid: str, event: str, payload: Any) -> None:
        self.socketio.emit(event, payload, to=sid)

    def emit_all(self, event: str, payload: Any = None) -> None:
        if payload is None:
            self.socketio.emit(event)
        else:
            self.socketio.emit(event, payload)

    # ── chat messages ───────────────────────────────────────────────
    def broadcast(self, message: ChatMessage, filtered: bool = True) -> int:
        """Send ``message`` to every live connection; returns how many got it."""
        payload = message.to_dict()
        delivered = 0
        for sid in self.state.sessions.live_sids():
            if filtered and self.state.blocks.is_blocking(sid, message.address):
                continue
            self.send(sid, EV_MESSAGE, payload)
            delivered += 1
        return delivered

    def publish(self, message: ChatMessage, filtered: bool = True) -> None:
        self.state.log.append(message)
        self.broadcast(message, filtered=filtered)

    def notify(self, sid: str, message: ChatMessage) -> None:
        """Private notice to one connection. Not logged."""
        self.send(sid, EV_MESSAGE, message.to_dict())

    def resync(self, sid: str) -> None:
        blocked = self.state.blocks.blocked_by(sid)
        self.send(sid, EV_LOAD_MESSAGES, [m.to_dict() for m in self.state.log.snapshot(blocked)])

    # ── moderation outcomes ─────────────────────────────────────────
    def dispatch(self, sender_sid: str, outcome: Outcome) -> None:
        if isinstance(outcome, Deliver):
            self.publish(outcome.message)
        elif isinstance(outcome, Redirect):
            payload = outcome.message.to_dict()
            self.send(outcome.target_sid, EV_MESSAGE, payload)
            if outcome.target_sid != sender_sid:
                self.send(sender_sid, EV_MESSAGE, payload)
        elif isinstance(outcome, Suppress):
            if outcome.private:
                self.notify(sender_sid, outcome.notice)
            else:
                self.publish(outcome.notice, filtered=False)
        elif isinstance(outcome, Consumed):
            for notice in outcome.notices:
                self.publish(notice, filtered=False)
        else:
            logging.error("Unknown moderation outcome %r from %s", outcome, sender_sid)
