import pytest

from errors import ValidationError
from realtime.events import AskAgent, Join, RandomRange, Roll, SendMessage, parse_event, validate_username


def test_join_trims_username():
    assert parse_event("join", {"username": "  alice "}) == Join("alice")


@pytest.mark.parametrize(
    "raw,message",
    [
        (None, "Username missing"),
        ("", "Username missing"),
        (42, "Username missing"),
        ("a b", "Username cannot contain spaces"),
        ("@alice", "Username cannot start with @"),
        ("x" * 25, "Username too long (max 24)"),
    ],
)
def test_bad_usernames(raw, message):
    with pytest.raises(ValidationError, match=message.replace("(", r"\(").replace(")", r"\)")):
        validate_username(raw)


def test_message_limits_come_from_settings():
    settings = {"max_message_length": 5}
    assert parse_event("message", {"text": "hello"}, settings) == SendMessage("hello")
    with pytest.raises(ValidationError, match="too long"):
        parse_event("message", {"text": "hello!"}, settings)


def test_blank_message_rejected():
    with pytest.raises(ValidationError, match="Message missing"):
        parse_event("message", {"username": "alice", "text": "   "})


def test_control_characters_are_stripped():
    assert parse_event("message", {"text": "hi\x00 there\x07"}).text == "hi there"


def test_payload_must_be_an_object():
    with pytest.raises(ValidationError, match="Malformed"):
        parse_event("join", ["alice"])


def test_no_field_events_accept_missing_payload():
    assert parse_event("joke", None) is not None
    assert parse_event("get blocked users", {}) is not None


def test_numeric_commands_keep_raw_values():
    assert parse_event("roll", {"number": "20"}) == Roll("20")
    assert parse_event("random", {"min": 5}) == RandomRange(5, None)


def test_ask_agent_username_is_optional():
    assert parse_event("ask agent", {"question": "why?"}) == AskAgent("why?", None)


def test_unknown_event():
    with pytest.raises(ValidationError, match="Unknown event"):
        parse_event("teleport", {})
