#!/usr/bin/env python3
"""agent_gateway.py

The conversational agent shared by the whole room.

At most one ``AgentSession`` exists at a time. It is owned by the connection
that supplied the API credential and disappears when that connection
deactivates it or disconnects. While it exists it backs both the ``ask agent``
command and the AI step of the moderation chain.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from constants import AGENT_HISTORY_LIMIT
from errors import UNEXPECTED, AuthorizationError, ChatError, CollaboratorError, ValidationError
from llm_bridge import LLMClient


ASSISTANT_PROMPT = (
    "You are a friendly assistant taking part in a public group chat room. "
    "Several people may talk to you; each question is prefixed with the asker's name. "
    "Keep answers short (a few sentences) and suitable for all ages."
)

MODERATION_PROMPT = (
    "You are a content moderator for a public, all-ages chat room. "
    "Decide whether the user's message is appropriate to show to everyone. "
    "Harassment, hate speech, sexual content, threats and slurs are inappropriate; "
    "casual chat, jokes and mild frustration are fine. "
    "Respond with exactly one line: either APPROPRIATE or INAPPROPRIATE: <short reason>."
)


class AgentNotActive(ChatError):
    """Raised when the agent is used while no credential has been submitted."""

    pass


@dataclass(frozen=True)
class Verdict:
    inappropriate: bool
    reason: Optional[str] = None


def parse_verdict(reply: str) -> Verdict:
    """Parse the one-line moderation reply. Raises CollaboratorError if unrecognized."""
    line = (reply or "").strip().splitlines()[0].strip() if (reply or "").strip() else ""
    head = line.upper().lstrip("*` ")
    if head.startswith("INAPPROPRIATE"):
        _, _, reason = line.partition(":")
        return Verdict(True, reason.strip().strip("*` ") or "inappropriate content")
    if head.startswith("APPROPRIATE"):
        return Verdict(False)
    raise CollaboratorError(f"Unrecognized moderation verdict: {line[:80]!r}", UNEXPECTED, LLMClient.service)


@dataclass
class AgentSession:
    credential: str = field(repr=False)
    owner_sid: str
    owner_name: Optional[str]
    model: str
    history: deque = field(default_factory=lambda: deque(maxlen=AGENT_HISTORY_LIMIT))


class AgentGateway:
    def __init__(
        self,
        client: LLMClient,
        default_model: str,
        history_limit: int = AGENT_HISTORY_LIMIT,
        allowed_models: Optional[List[str]] = None,
    ):
        self.client = client
        self.default_model = default_model
        self.history_limit = max(2, int(history_limit))
        self.allowed_models = [m for m in (allowed_models or []) if m]
        self._session: Optional[AgentSession] = None
        self._lock = threading.Lock()

    # ── introspection ───────────────────────────────────────────────
    @property
    def active(self) -> bool:
        with self._lock:
            return self._session is not None

    @property
    def owner_sid(self) -> Optional[str]:
        with self._lock:
            return self._session.owner_sid if self._session else None

    @property
    def model(self) -> Optional[str]:
        with self._lock:
            return self._session.model if self._session else None

    def history(self) -> List[Dict[str, str]]:
        with self._lock:
            return list(self._session.history) if self._session else []

    def _current(self) -> AgentSession:
        with self._lock:
            if self._session is None:
                raise AgentNotActive("No AI provider is active. Submit an API key first.")
            return self._session

    def _resolve_model(self, model: str | None) -> str:
        model = (model or "").strip() or self.default_model
        if len(model) > 100:
            raise ValidationError("Model name too long")
        if self.allowed_models and model not in self.allowed_models:
            raise ValidationError(f"Unsupported model: {model}")
        return model

    # ── lifecycle ───────────────────────────────────────────────────
    def submit_credential(self, sid: str, name: str | None, key: str, model: str | None = None) -> AgentSession:
        """Validate ``key`` with a probe call and install the singleton session."""
        key = (key or "").strip()
        if not key:
            raise ValidationError("API key missing")
        model = self._resolve_model(model)

        with self._lock:
            if self._session is not None:
                raise ValidationError("An AI provider is already active")

        # Raises CollaboratorError; nothing is installed in that case.
        self.client.probe(key)

        with self._lock:
            # Another submitter may have won while the probe was in flight.
            if self._session is not None:
                raise ValidationError("An AI provider is already active")
            self._session = AgentSession(
                credential=key,
                owner_sid=sid,
                owner_name=name,
                model=model,
                history=deque(maxlen=self.history_limit),
            )
            logging.info("AI provider activated by %s (model=%s)", name or sid, model)
            return self._session

    def _require_owner(self, sid: str) -> AgentSession:
        with self._lock:
            if self._session is None:
                raise AuthorizationError("No AI provider is active")
            if self._session.owner_sid != sid:
                raise AuthorizationError("Only the user who activated the AI provider can do that")
            return self._session

    def deactivate(self, sid: str) -> AgentSession:
        self._require_owner(sid)
        with self._lock:
            session, self._session = self._session, None
        logging.info("AI provider deactivated by its owner")
        return session

    def clear_memory(self, sid: str) -> None:
        session = self._require_owner(sid)
        with self._lock:
            session.history.clear()

    def release(self, sid: str) -> Optional[AgentSession]:
        """Tear the session down if ``sid`` owns it (owner disconnected)."""
        with self._lock:
            if self._session is None or self._session.owner_sid != sid:
                return None
            session, self._session = self._session, None
        logging.info("AI provider released (owner disconnected)")
        return session

    # ── calls ───────────────────────────────────────────────────────
    def ask(self, question: str, asker: str) -> str:
        session = self._current()
        prompt = f"{asker}: {question}"
        messages = [{"role": "system", "content": ASSISTANT_PROMPT}]
        with self._lock:
            messages.extend(session.history)
        messages.append({"role": "user", "content": prompt})

        answer = self.client.chat(session.credential, session.model, messages)

        with self._lock:
            # Skip the history update if the session was torn down meanwhile.
            if self._session is session:
                session.history.append({"role": "user", "content": prompt})
                session.history.append({"role": "assistant", "content": answer})
        return answer

    def moderate(self, text: str) -> Verdict:
        session = self._current()
        messages = [
            {"role": "system", "content": MODERATION_PROMPT},
            {"role": "user", "content": text},
        ]
        reply = self.client.chat(session.credential, session.model, messages, temperature=0.0, max_tokens=60)
        return parse_verdict(reply)
