import pytest

from agent_gateway import ASSISTANT_PROMPT, AgentGateway, AgentNotActive, parse_verdict
from errors import UNEXPECTED, AuthorizationError, CollaboratorError, ValidationError


@pytest.fixture
def gateway(llm):
    return AgentGateway(llm, default_model="test-model", history_limit=4)


def test_bad_credential_installs_nothing(gateway):
    with pytest.raises(CollaboratorError):
        gateway.submit_credential("s1", "alice", "nope")
    assert not gateway.active


def test_only_one_session_at_a_time(gateway):
    gateway.submit_credential("s1", "alice", "good-key")
    with pytest.raises(ValidationError):
        gateway.submit_credential("s2", "bob", "good-key")
    assert gateway.owner_sid == "s1"
    assert gateway.model == "test-model"


def test_empty_key_rejected(gateway):
    with pytest.raises(ValidationError):
        gateway.submit_credential("s1", "alice", "   ")


def test_allowed_models_are_enforced(llm):
    gateway = AgentGateway(llm, default_model="a", allowed_models=["a", "b"])
    with pytest.raises(ValidationError):
        gateway.submit_credential("s1", "alice", "good-key", "c")
    assert gateway.submit_credential("s1", "alice", "good-key", "b").model == "b"


def test_non_owner_cannot_deactivate_or_clear(gateway):
    gateway.submit_credential("s1", "alice", "good-key")
    gateway.ask("hi", "alice")

    with pytest.raises(AuthorizationError):
        gateway.deactivate("s2")
    with pytest.raises(AuthorizationError):
        gateway.clear_memory("s2")
    assert gateway.active
    assert len(gateway.history()) == 2

    gateway.deactivate("s1")
    assert not gateway.active
    with pytest.raises(AuthorizationError):
        gateway.deactivate("s1")


def test_ask_sends_prompt_history_and_asker(gateway, llm):
    gateway.submit_credential("s1", "alice", "good-key")
    assert gateway.ask("first?", "alice") == "Forty-two."
    gateway.ask("second?", "bob")

    messages = llm.calls[-1]["messages"]
    assert messages[0] == {"role": "system", "content": ASSISTANT_PROMPT}
    assert messages[1] == {"role": "user", "content": "alice: first?"}
    assert messages[-1] == {"role": "user", "content": "bob: second?"}
    assert llm.calls[-1]["key"] == "good-key"


def test_history_is_trimmed_to_limit(gateway):
    gateway.submit_credential("s1", "alice", "good-key")
    for i in range(5):
        gateway.ask(f"q{i}", "alice")

    history = gateway.history()
    assert len(history) == 4
    assert history[0]["content"] == "alice: q3"


def test_ask_without_session(gateway):
    with pytest.raises(AgentNotActive):
        gateway.ask("hello?", "alice")


def test_release_only_for_owner(gateway):
    gateway.submit_credential("s1", "alice", "good-key")
    assert gateway.release("s2") is None
    assert gateway.release("s1") is not None
    assert not gateway.active


def test_moderate_parses_verdict(gateway, llm):
    gateway.submit_credential("s1", "alice", "good-key")
    llm.verdict = "INAPPROPRIATE: threats"
    verdict = gateway.moderate("some text")
    assert verdict.inappropriate and verdict.reason == "threats"


@pytest.mark.parametrize(
    "reply,inappropriate,reason",
    [
        ("APPROPRIATE", False, None),
        ("appropriate.", False, None),
        ("**INAPPROPRIATE**: slur", True, "slur"),
        ("INAPPROPRIATE", True, "inappropriate content"),
    ],
)
def test_parse_verdict(reply, inappropriate, reason):
    verdict = parse_verdict(reply)
    assert verdict.inappropriate is inappropriate
    assert verdict.reason == reason


def test_parse_verdict_rejects_chatter():
    with pytest.raises(CollaboratorError) as info:
        parse_verdict("Sure! Let me think about that.")
    assert info.value.category == UNEXPECTED
