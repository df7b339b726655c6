#!/usr/bin/env python3
"""moderation.py

The message moderation chain.

An inbound chat message runs through an ordered list of stages. Each stage is
a plain callable ``stage(ctx) -> Outcome | None``; ``None`` means "not mine,
keep going", anything else is terminal. Default order:

  1. direct messages (``@name text``), delivered unmoderated
  2. trivia answers
  3. AI moderation (only while an agent session is active)
  4. static banned-word filter, which also produces the final Deliver
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence, Tuple, Union

from agent_gateway import AgentNotActive
from constants import MODERATOR_NAME
from errors import CollaboratorError
from realtime.state import ChatMessage, ChatState, render_timestamp, system_message, user_message
from trivia import announce_reveal, announce_winner, announce_wrong_guess


# ──────────────────────────────────────────────────────────
# Outcomes
# ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Deliver:
    """Log the message and broadcast it to everyone not blocking the sender."""

    message: ChatMessage


@dataclass(frozen=True)
class Redirect:
    """Point-to-point delivery to ``target_sid`` plus an echo to the sender. Never logged."""

    target_sid: str
    message: ChatMessage


@dataclass(frozen=True)
class Suppress:
    """Drop the message. ``private`` notices go to the sender only and are not logged."""

    notice: ChatMessage
    private: bool = False


@dataclass(frozen=True)
class Consumed:
    """The text was taken by an interpreter; publish its announcements instead."""

    notices: Tuple[ChatMessage, ...]


Outcome = Union[Deliver, Redirect, Suppress, Consumed]


@dataclass(frozen=True)
class MessageContext:
    sid: str
    username: str
    address: Optional[str]
    text: str
    state: ChatState


Stage = Callable[[MessageContext], Optional[Outcome]]


# ──────────────────────────────────────────────────────────
# Banned words
# ──────────────────────────────────────────────────────────

BANNED_WORDS = frozenset({
    "asshole",
    "bastard",
    "bitch",
    "bullshit",
    "cunt",
    "dick",
    "dickhead",
    "dumbass",
    "fag",
    "faggot",
    "fuck",
    "fucker",
    "fucking",
    "jackass",
    "motherfucker",
    "nigga",
    "nigger",
    "pussy",
    "retard",
    "shit",
    "shitty",
    "slut",
    "whore",
})

_LEET_TRANSLATION = str.maketrans(
    {
        "@": "a",
        "$": "s",
        "0": "o",
        "1": "i",
        "3": "e",
        "4": "a",
        "5": "s",
        "7": "t",
        "!": "i",
    }
)

_WORD_PATTERN = re.compile(r"[a-zA-Z0-9@!$*]+")


def _normalize_token(token: str) -> str:
    translated = token.lower().translate(_LEET_TRANSLATION)
    return re.sub(r"[^a-z]", "", translated)


def contains_banned_word(text: str, extra: Iterable[str] = ()) -> bool:
    words = BANNED_WORDS | {w.strip().lower() for w in extra if w and w.strip()}
    for token in _WORD_PATTERN.findall(text or ""):
        if token.lower() in words or _normalize_token(token) in words:
            return True
    return False


# ──────────────────────────────────────────────────────────
# Stages
# ──────────────────────────────────────────────────────────

_DM_RE = re.compile(r"^@(\S+)\s+(.+)$", re.DOTALL)


def deliver(ctx: MessageContext) -> Deliver:
    return Deliver(user_message(ctx.username, ctx.text, ctx.address))


def direct_message_stage(ctx: MessageContext) -> Optional[Outcome]:
    m = _DM_RE.match(ctx.text)
    if not m:
        return None
    target_name, body = m.group(1), m.group(2).strip()

    target_sid = ctx.state.sessions.lookup(target_name)
    if target_sid is None:
        return Suppress(system_message(f"User {target_name} not found."), private=True)
    if ctx.state.blocks.is_blocking(target_sid, ctx.address):
        return Suppress(system_message(f"Your message to {target_name} was not delivered."), private=True)

    message = ChatMessage(
        username=ctx.username,
        text=body,
        timestamp=render_timestamp(),
        address=ctx.address,
        dm=True,
        to=target_name,
    )
    return Redirect(target_sid, message)


def trivia_stage(ctx: MessageContext) -> Optional[Outcome]:
    store = ctx.state.trivia
    if store is None:
        return None
    attempt = store.attempt(ctx.sid, ctx.text)
    if attempt is None:
        return None
    if attempt.correct:
        return Consumed((announce_winner(ctx.username, attempt.session),))

    notices = [announce_wrong_guess(ctx.username)]
    # Reveal early once every named connection has had its guess.
    live = ctx.state.sessions.named_sids()
    for session in attempt.attempted:
        if store.everyone_attempted(session.id, live) and store.reveal(session.id) is not None:
            notices.append(announce_reveal(session))
    return Consumed(tuple(notices))


def ai_moderation_stage(ctx: MessageContext) -> Optional[Outcome]:
    agent = ctx.state.agent
    if agent is None or not agent.active:
        return None
    try:
        verdict = agent.moderate(ctx.text)
    except (CollaboratorError, AgentNotActive) as e:
        logging.warning("AI moderation unavailable, using word filter: %s", e)
        return None
    if verdict.inappropriate:
        logging.info("AI moderation removed a message from %s: %s", ctx.username, verdict.reason)
        return Suppress(
            system_message(f"Removed a message from {ctx.username}: {verdict.reason}", MODERATOR_NAME)
        )
    return deliver(ctx)


def banned_word_stage(ctx: MessageContext) -> Optional[Outcome]:
    extra = ctx.state.settings.get("extra_banned_words") or ()
    if contains_banned_word(ctx.text, extra):
        logging.info("Banned word from %s suppressed", ctx.username)
        return Suppress(system_message(f"🚫 {ctx.username} tried to send a banned word.", MODERATOR_NAME))
    return deliver(ctx)


DEFAULT_STAGES: Tuple[Stage, ...] = (
    direct_message_stage,
    trivia_stage,
    ai_moderation_stage,
    banned_word_stage,
)

# Content checks only; used for questions sent to the agent.
CONTENT_STAGES: Tuple[Stage, ...] = (
    ai_moderation_stage,
    banned_word_stage,
)


class ModerationChain:
    def __init__(self, stages: Sequence[Stage] = DEFAULT_STAGES):
        self.stages = tuple(stages)

    def evaluate(self, ctx: MessageContext) -> Outcome:
        for stage in self.stages:
            outcome = stage(ctx)
            if outcome is not None:
                return outcome
        return deliver(ctx)
