from realtime.state import BlockLists, ChatState, MessageLog, SessionRegistry, system_message, user_message


def test_message_log_evicts_oldest():
    log = MessageLog(capacity=3)
    for i in range(5):
        log.append(user_message("alice", f"m{i}", "10.0.0.1"))

    assert len(log) == 3
    assert [m.text for m in log.snapshot()] == ["m2", "m3", "m4"]


def test_snapshot_filters_blocked_addresses_but_keeps_system_messages():
    log = MessageLog(capacity=10)
    log.append(user_message("alice", "from alice", "10.0.0.1"))
    log.append(system_message("a bot says hi"))
    log.append(user_message("bob", "from bob", "10.0.0.2"))

    texts = [m.text for m in log.snapshot(blocked={"10.0.0.1"})]
    assert texts == ["a bot says hi", "from bob"]


def test_message_dict_shape():
    dm = user_message("alice", "psst", "10.0.0.1")
    d = dm.to_dict()
    assert set(d) == {"username", "text", "timestamp", "address"}

    bot = system_message("hello").to_dict()
    assert bot["system"] is True
    assert "address" not in bot


def test_registry_bind_replaces_previous_name():
    reg = SessionRegistry()
    reg.connect("s1", "10.0.0.1")

    assert reg.bind("s1", "alice") is None
    assert reg.bind("s1", "alicia") == "alice"
    assert reg.online_names() == ["alicia"]
    assert reg.lookup("alice") is None


def test_registry_duplicate_name_last_writer_wins():
    reg = SessionRegistry()
    reg.connect("s1", "10.0.0.1")
    reg.connect("s2", "10.0.0.2")
    reg.bind("s1", "sam")
    reg.bind("s2", "sam")

    assert reg.lookup("sam") == "s2"
    assert reg.name_of("s1") is None
    # s1 no longer owns the name and cannot release it.
    assert reg.leave("s1", "sam") is False
    assert reg.leave("s2", "sam") is True
    assert reg.online_names() == []


def test_registry_disconnect_returns_held_names():
    reg = SessionRegistry()
    reg.connect("s1", "10.0.0.1")
    reg.bind("s1", "alice")

    conn, names = reg.disconnect("s1")
    assert conn.address == "10.0.0.1"
    assert names == ["alice"]
    assert reg.disconnect("s1") == (None, [])


def test_block_lists():
    blocks = BlockLists()
    assert blocks.block("s1", "10.0.0.2") is True
    assert blocks.block("s1", "10.0.0.2") is False
    assert blocks.is_blocking("s1", "10.0.0.2")
    assert not blocks.is_blocking("s1", None)
    assert not blocks.is_blocking("s2", "10.0.0.2")

    assert blocks.unblock("s1", "10.0.0.2") is True
    assert blocks.unblock("s1", "10.0.0.2") is False
    assert "s1" not in blocks


def test_chat_state_uses_configured_capacity_and_scheduler():
    fired = []
    state = ChatState(settings={"max_messages": 5}, scheduler=lambda delay, fn: fired.append(delay))

    assert state.log.capacity == 5
    state.schedule(12, lambda: None)
    assert fired == [12]
