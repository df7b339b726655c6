"""Inbound Socket.IO event payloads.

Each inbound event name maps to a frozen dataclass; ``parse_event`` validates
the raw payload at the boundary and raises ``ValidationError`` with a message
suitable for showing to the sender. Handlers only ever see parsed events.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type

from constants import (
    EV_ASK_AGENT,
    EV_BLOCK_USER,
    EV_CLEAR_AGENT_MEMORY,
    EV_CLEAR_MESSAGES,
    EV_COUNTDOWN,
    EV_DEACTIVATE_AGENT,
    EV_EIGHT_BALL,
    EV_FLIP,
    EV_GET_BLOCKED_USERS,
    EV_JOIN,
    EV_JOKE,
    EV_LEAVE,
    EV_MESSAGE,
    EV_QUOTE,
    EV_RANDOM,
    EV_ROLL,
    EV_SUBMIT_CREDENTIAL,
    EV_TIME,
    EV_TRIVIA,
    EV_UNBLOCK_USER,
    EV_WEATHER,
)
from errors import ValidationError


_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")


def _payload(data: Any) -> Dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Malformed request")
    return data


def _text(data: Dict[str, Any], key: str, label: str, max_len: int, *, required: bool = True) -> str:
    raw = data.get(key)
    if raw is None:
        if required:
            raise ValidationError(f"{label} missing")
        return ""
    if not isinstance(raw, (str, int, float)) or isinstance(raw, bool):
        raise ValidationError(f"Invalid {label.lower()}")
    s = _CONTROL_RE.sub("", str(raw)).strip()
    if required and not s:
        raise ValidationError(f"{label} missing")
    if len(s) > max_len:
        raise ValidationError(f"{label} too long (max {max_len})")
    return s


def validate_username(raw: Any, max_len: int = 24) -> str:
    if not isinstance(raw, str):
        raise ValidationError("Username missing")
    name = raw.strip()
    if not name:
        raise ValidationError("Username missing")
    if len(name) > max_len:
        raise ValidationError(f"Username too long (max {max_len})")
    if any(c.isspace() for c in name) or _CONTROL_RE.search(name):
        raise ValidationError("Username cannot contain spaces")
    if name.startswith("@"):
        raise ValidationError("Username cannot start with @")
    return name


def _limit(settings: Dict[str, Any], key: str, default: int) -> int:
    try:
        return max(1, int(settings.get(key) or default))
    except (TypeError, ValueError):
        return default


class InboundEvent:
    """Base for parsed events. Subclasses implement ``parse``."""

    @classmethod
    def parse(cls, data: Dict[str, Any], settings: Dict[str, Any]) -> "InboundEvent":
        return cls()


@dataclass(frozen=True)
class Join(InboundEvent):
    username: str

    @classmethod
    def parse(cls, data, settings):
        return cls(validate_username(data.get("username"), _limit(settings, "max_username_length", 24)))


@dataclass(frozen=True)
class SendMessage(InboundEvent):
    text: str
    # Only used when the connection has not joined yet.
    username: Optional[str] = None

    @classmethod
    def parse(cls, data, settings):
        text = _text(data, "text", "Message", _limit(settings, "max_message_length", 500))
        username = data.get("username")
        if username is not None:
            username = validate_username(username, _limit(settings, "max_username_length", 24))
        return cls(text=text, username=username)


@dataclass(frozen=True)
class Leave(InboundEvent):
    username: str

    @classmethod
    def parse(cls, data, settings):
        return cls(validate_username(data.get("username"), _limit(settings, "max_username_length", 24)))


@dataclass(frozen=True)
class ClearMessages(InboundEvent):
    pass


@dataclass(frozen=True)
class EightBall(InboundEvent):
    question: str

    @classmethod
    def parse(cls, data, settings):
        return cls(_text(data, "question", "Question", _limit(settings, "max_question_length", 300)))


@dataclass(frozen=True)
class Joke(InboundEvent):
    pass


@dataclass(frozen=True)
class Flip(InboundEvent):
    pass


@dataclass(frozen=True)
class Roll(InboundEvent):
    # Raw requested side count; clamped by bot_commands.dice_sides.
    number: Any = None

    @classmethod
    def parse(cls, data, settings):
        return cls(data.get("number"))


@dataclass(frozen=True)
class Quote(InboundEvent):
    pass


@dataclass(frozen=True)
class Time(InboundEvent):
    pass


@dataclass(frozen=True)
class Weather(InboundEvent):
    city: str

    @classmethod
    def parse(cls, data, settings):
        return cls(_text(data, "city", "City", _limit(settings, "max_city_length", 80)))


@dataclass(frozen=True)
class Trivia(InboundEvent):
    pass


@dataclass(frozen=True)
class Countdown(InboundEvent):
    seconds: Any = None

    @classmethod
    def parse(cls, data, settings):
        return cls(data.get("seconds"))


@dataclass(frozen=True)
class RandomRange(InboundEvent):
    min: Any = None
    max: Any = None

    @classmethod
    def parse(cls, data, settings):
        return cls(data.get("min"), data.get("max"))


@dataclass(frozen=True)
class SubmitCredential(InboundEvent):
    key: str
    model: str = ""

    @classmethod
    def parse(cls, data, settings):
        key = _text(data, "key", "API key", 300)
        model = _text(data, "model", "Model", 100, required=False)
        return cls(key=key, model=model)


@dataclass(frozen=True)
class DeactivateAgent(InboundEvent):
    pass


@dataclass(frozen=True)
class AskAgent(InboundEvent):
    question: str
    username: Optional[str] = None

    @classmethod
    def parse(cls, data, settings):
        question = _text(data, "question", "Question", _limit(settings, "max_question_length", 300))
        username = data.get("username")
        if username is not None:
            username = validate_username(username, _limit(settings, "max_username_length", 24))
        return cls(question=question, username=username)


@dataclass(frozen=True)
class ClearAgentMemory(InboundEvent):
    pass


@dataclass(frozen=True)
class BlockUser(InboundEvent):
    address: str

    @classmethod
    def parse(cls, data, settings):
        return cls(_text(data, "targetAddress", "Address", 64))


@dataclass(frozen=True)
class UnblockUser(InboundEvent):
    address: str

    @classmethod
    def parse(cls, data, settings):
        return cls(_text(data, "targetAddress", "Address", 64))


@dataclass(frozen=True)
class GetBlockedUsers(InboundEvent):
    pass


EVENT_TYPES: Dict[str, Type[InboundEvent]] = {
    EV_JOIN: Join,
    EV_MESSAGE: SendMessage,
    EV_LEAVE: Leave,
    EV_CLEAR_MESSAGES: ClearMessages,
    EV_EIGHT_BALL: EightBall,
    EV_JOKE: Joke,
    EV_FLIP: Flip,
    EV_ROLL: Roll,
    EV_QUOTE: Quote,
    EV_TIME: Time,
    EV_WEATHER: Weather,
    EV_TRIVIA: Trivia,
    EV_COUNTDOWN: Countdown,
    EV_RANDOM: RandomRange,
    EV_SUBMIT_CREDENTIAL: SubmitCredential,
    EV_DEACTIVATE_AGENT: DeactivateAgent,
    EV_ASK_AGENT: AskAgent,
    EV_CLEAR_AGENT_MEMORY: ClearAgentMemory,
    EV_BLOCK_USER: BlockUser,
    EV_UNBLOCK_USER: UnblockUser,
    EV_GET_BLOCKED_USERS: GetBlockedUsers,
}


def parse_event(name: str, data: Any, settings: Dict[str, Any] | None = None) -> InboundEvent:
    """Validate a raw payload for event ``name``. Raises ValidationError."""
    cls = EVENT_TYPES.get(name)
    if cls is None:
        raise ValidationError(f"Unknown event: {name}")
    return cls.parse(_payload(data), settings or {})
