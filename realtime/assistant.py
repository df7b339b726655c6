"""Socket.IO handlers: the shared AI assistant.

One connection supplies an API key and becomes the owner of the room's agent
session; everybody can ask it questions until the owner deactivates it or
disconnects.
"""

import logging

from agent_gateway import AgentNotActive
from constants import (
    AGENT_BOT_NAME,
    EV_AGENT_DEACTIVATED,
    EV_ASK_AGENT,
    EV_CLEAR_AGENT_MEMORY,
    EV_CREDENTIAL_REQUIRED,
    EV_CREDENTIAL_STATUS,
    EV_DEACTIVATE_AGENT,
    EV_SUBMIT_CREDENTIAL,
)
from errors import UNAUTHORIZED, UNREACHABLE, CollaboratorError, ValidationError
from moderation import CONTENT_STAGES, Deliver, MessageContext, ModerationChain
from realtime.state import system_message


_PROBE_FAILURES = {
    UNAUTHORIZED: "Invalid API key.",
    UNREACHABLE: "Could not reach the AI provider. Try again later.",
}


def register(socketio, settings, ctx):
    """Register Socket.IO event handlers for this module."""
    state = ctx.state
    router = ctx.router
    question_chain = ModerationChain(CONTENT_STAGES)

    def _agent():
        if state.agent is None:
            raise ValidationError("The AI assistant is not available on this server")
        return state.agent

    def _credential_required(sid):
        router.send(sid, EV_CREDENTIAL_REQUIRED, {"message": "No AI provider is active. Submit an API key first."})

    @socketio.on(EV_SUBMIT_CREDENTIAL)
    def handle_submit_credential(data=None):
        ev = ctx.parse(EV_SUBMIT_CREDENTIAL, data)
        agent = _agent()
        sid = ctx.sid()
        name = ctx.name_of(sid)
        try:
            session = agent.submit_credential(sid, name, ev.key, ev.model)
        except CollaboratorError as e:
            logging.warning("AI credential rejected (%s): %s", e.category, e)
            message = _PROBE_FAILURES.get(e.category, "Could not verify the API key with the AI provider.")
            router.send(sid, EV_CREDENTIAL_STATUS, {"success": False, "message": message, "isProvider": False})
            return

        notice = f"AI assistant activated by {name or 'a guest'} (model: {session.model})."
        for other in state.sessions.live_sids():
            router.send(other, EV_CREDENTIAL_STATUS, {"success": True, "message": notice, "isProvider": other == sid})
        router.publish(system_message(notice), filtered=False)

    @socketio.on(EV_DEACTIVATE_AGENT)
    def handle_deactivate_agent(data=None):
        ctx.parse(EV_DEACTIVATE_AGENT, data)
        sid = ctx.sid()
        _agent().deactivate(sid)
        router.emit_all(EV_AGENT_DEACTIVATED)
        router.publish(
            system_message(f"AI assistant deactivated by {ctx.name_of(sid, 'its owner')}."),
            filtered=False,
        )

    @socketio.on(EV_CLEAR_AGENT_MEMORY)
    def handle_clear_agent_memory(data=None):
        ctx.parse(EV_CLEAR_AGENT_MEMORY, data)
        sid = ctx.sid()
        _agent().clear_memory(sid)
        router.notify(sid, system_message("AI conversation memory cleared.", AGENT_BOT_NAME))

    @socketio.on(EV_ASK_AGENT)
    def handle_ask_agent(data=None):
        ev = ctx.parse(EV_ASK_AGENT, data)
        sid = ctx.sid()
        agent = state.agent
        if agent is None or not agent.active:
            _credential_required(sid)
            return

        asker = ctx.name_of(sid, ev.username) or "Anonymous"
        outcome = question_chain.evaluate(
            MessageContext(sid, asker, state.sessions.address_of(sid), ev.question, state)
        )
        if not isinstance(outcome, Deliver):
            router.dispatch(sid, outcome)
            return

        try:
            answer = agent.ask(ev.question, asker)
        except AgentNotActive:
            _credential_required(sid)
            return
        except CollaboratorError as e:
            logging.warning("AI request failed (%s): %s", e.category, e)
            router.notify(
                sid,
                system_message(f"⚠️ The AI assistant could not answer right now ({e.category}).", AGENT_BOT_NAME),
            )
            return

        router.publish(system_message(f"{asker} asked: {ev.question}\n\n{answer}", AGENT_BOT_NAME), filtered=False)
