"""Socket.IO handlers: room membership and chat messages."""

import logging

from constants import (
    EV_CLEAR_MESSAGES,
    EV_JOIN,
    EV_LEAVE,
    EV_MESSAGE,
    EV_AGENT_DEACTIVATED,
    EV_USER_JOINED,
    EV_USER_LEFT,
)
from errors import ValidationError
from moderation import MessageContext
from realtime.state import system_message


def register(socketio, settings, ctx):
    """Register Socket.IO event handlers for this module."""
    state = ctx.state
    router = ctx.router

    @socketio.on("connect")
    def handle_connect(auth=None):
        sid = ctx.sid()
        address = ctx.address()
        state.sessions.connect(sid, address)
        logging.info("🔌 Connected: sid=%s address=%s", sid, address)

    @socketio.on(EV_JOIN)
    def handle_join(data=None):
        ev = ctx.parse(EV_JOIN, data)
        sid = ctx.sid()
        if state.sessions.get(sid) is None:
            state.sessions.connect(sid, ctx.address())

        holder = state.sessions.lookup(ev.username)
        previous = state.sessions.bind(sid, ev.username)
        if previous:
            router.emit_all(EV_USER_LEFT, previous)
        if holder and holder != sid:
            logging.info("%s taken over by sid=%s from sid=%s", ev.username, sid, holder)
            router.notify(holder, system_message(
                f"Your name {ev.username} is now used by another connection. Join again to keep chatting."
            ))
        logging.info("👋 %s joined (sid=%s)", ev.username, sid)

        router.emit_all(EV_USER_JOINED, ev.username)
        ctx.push_online_users()
        router.resync(sid)

    @socketio.on(EV_MESSAGE)
    def handle_message(data=None):
        ev = ctx.parse(EV_MESSAGE, data)
        sid = ctx.sid()
        conn = state.sessions.get(sid)
        username = (conn.name if conn else None) or ev.username
        if not username or state.sessions.lookup(username) not in (None, sid):
            raise ValidationError("Join the chat before sending messages")
        address = conn.address if conn else ctx.address()

        outcome = ctx.chain.evaluate(MessageContext(sid, username, address, ev.text, state))
        router.dispatch(sid, outcome)

    @socketio.on(EV_LEAVE)
    def handle_leave(data=None):
        ev = ctx.parse(EV_LEAVE, data)
        sid = ctx.sid()
        # Only the connection holding a name may release it.
        if not state.sessions.leave(sid, ev.username):
            return
        logging.info("%s left (sid=%s)", ev.username, sid)
        router.emit_all(EV_USER_LEFT, ev.username)
        ctx.push_online_users()

    @socketio.on(EV_CLEAR_MESSAGES)
    def handle_clear_messages(data=None):
        ctx.parse(EV_CLEAR_MESSAGES, data)
        state.log.clear()
        logging.info("Chat history cleared by %s", ctx.name_of(ctx.sid(), ctx.sid()))
        router.emit_all(EV_CLEAR_MESSAGES)

    @socketio.on("disconnect")
    def handle_disconnect(*args, **kwargs):
        sid = ctx.sid()
        conn, names = state.sessions.disconnect(sid)
        state.blocks.drop(sid)
        if conn is None:
            logging.debug("Disconnect from unknown SID: %s", sid)

        for name in names:
            router.emit_all(EV_USER_LEFT, name)
        if names:
            ctx.push_online_users()

        if state.agent is not None and state.agent.release(sid) is not None:
            router.emit_all(EV_AGENT_DEACTIVATED)
            router.publish(system_message("AI assistant deactivated (its owner left the chat)."), filtered=False)
