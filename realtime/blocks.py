"""Socket.IO handlers: per-connection address blocking."""

import logging

from constants import EV_BLOCK_USER, EV_BLOCKED_USERS_LIST, EV_GET_BLOCKED_USERS, EV_UNBLOCK_USER, EV_USER_BLOCKED, EV_USER_UNBLOCKED
from errors import ValidationError


def register(socketio, settings, ctx):
    """Register Socket.IO event handlers for this module."""
    state = ctx.state
    router = ctx.router

    @socketio.on(EV_BLOCK_USER)
    def handle_block_user(data=None):
        ev = ctx.parse(EV_BLOCK_USER, data)
        sid = ctx.sid()
        if ev.address == state.sessions.address_of(sid):
            raise ValidationError("You cannot block yourself")
        if state.blocks.block(sid, ev.address):
            logging.info("sid=%s blocked %s", sid, ev.address)
        router.send(sid, EV_USER_BLOCKED, {"address": ev.address})
        router.resync(sid)

    @socketio.on(EV_UNBLOCK_USER)
    def handle_unblock_user(data=None):
        ev = ctx.parse(EV_UNBLOCK_USER, data)
        sid = ctx.sid()
        if state.blocks.unblock(sid, ev.address):
            logging.info("sid=%s unblocked %s", sid, ev.address)
        router.send(sid, EV_USER_UNBLOCKED, {"address": ev.address})
        router.resync(sid)

    @socketio.on(EV_GET_BLOCKED_USERS)
    def handle_get_blocked_users(data=None):
        ctx.parse(EV_GET_BLOCKED_USERS, data)
        sid = ctx.sid()
        router.send(sid, EV_BLOCKED_USERS_LIST, {"addresses": sorted(state.blocks.blocked_by(sid))})
