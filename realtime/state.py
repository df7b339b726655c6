"""Shared in-memory state for NordChat Socket.IO handlers.

Everything mutable lives on one ``ChatState`` created by ``create_app`` and
handed to every handler module, so there are no module-level registries.
Each store guards its own structure with a lock; locks are never held while
an outbound HTTP call is in flight.
"""

from __future__ import annotations

import random
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from constants import MAX_MESSAGES, SYSTEM_NAME, TIMESTAMP_FORMAT


def render_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class ChatMessage:
    username: str
    text: str
    timestamp: str
    # Sender's network address; None for system / bot output.
    address: Optional[str] = None
    dm: bool = False
    to: Optional[str] = None
    system: bool = False

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "username": self.username,
            "text": self.text,
            "timestamp": self.timestamp,
        }
        if self.address:
            out["address"] = self.address
        if self.dm:
            out["dm"] = True
            out["to"] = self.to
        if self.system:
            out["system"] = True
        return out


def user_message(username: str, text: str, address: str | None, *, now: datetime | None = None) -> ChatMessage:
    return ChatMessage(username=username, text=text, timestamp=render_timestamp(now), address=address)


def system_message(text: str, username: str = SYSTEM_NAME, *, now: datetime | None = None) -> ChatMessage:
    return ChatMessage(username=username, text=text, timestamp=render_timestamp(now), system=True)


class MessageLog:
    """Fixed-capacity chat history; the oldest message is evicted first."""

    def __init__(self, capacity: int = MAX_MESSAGES):
        self.capacity = max(1, int(capacity))
        self._items: deque[ChatMessage] = deque()
        self._lock = threading.Lock()

    def append(self, message: ChatMessage) -> None:
        with self._lock:
            self._items.append(message)
            while len(self._items) > self.capacity:
                self._items.popleft()

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def snapshot(self, blocked: Iterable[str] = ()) -> List[ChatMessage]:
        """Messages in arrival order, minus those sent from a blocked address."""
        blocked = frozenset(blocked)
        with self._lock:
            items = list(self._items)
        if not blocked:
            return items
        return [m for m in items if not (m.address and m.address in blocked)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


@dataclass
class Connection:
    sid: str
    address: str
    name: Optional[str] = None


class SessionRegistry:
    """Display name -> connection mapping plus per-connection metadata.

    Duplicate joins overwrite the name mapping (last writer wins); the
    connection that held the name is left unnamed until it joins again.
    """

    def __init__(self):
        self._connections: Dict[str, Connection] = {}
        self._online: Dict[str, str] = {}  # display name -> sid
        self._lock = threading.Lock()

    def connect(self, sid: str, address: str) -> Connection:
        conn = Connection(sid=sid, address=address)
        with self._lock:
            self._connections[sid] = conn
        return conn

    def bind(self, sid: str, name: str) -> Optional[str]:
        """Bind a display name to a connection. Returns the name it replaced, if any."""
        with self._lock:
            conn = self._connections.get(sid)
            if conn is None:
                return None
            previous = conn.name
            if previous and previous != name and self._online.get(previous) == sid:
                del self._online[previous]
            holder = self._connections.get(self._online.get(name, ""))
            if holder is not None and holder.sid != sid and holder.name == name:
                holder.name = None
            conn.name = name
            self._online[name] = sid
            return previous if previous != name else None

    def leave(self, sid: str, name: str) -> bool:
        """Drop ``name`` from the online map if it belongs to ``sid``."""
        with self._lock:
            if self._online.get(name) != sid:
                return False
            del self._online[name]
            conn = self._connections.get(sid)
            if conn is not None and conn.name == name:
                conn.name = None
            return True

    def disconnect(self, sid: str) -> tuple[Optional[Connection], List[str]]:
        """Forget a connection. Returns it and the display names it held."""
        with self._lock:
            conn = self._connections.pop(sid, None)
            names = [n for n, s in self._online.items() if s == sid]
            for n in names:
                del self._online[n]
        return conn, names

    def get(self, sid: str) -> Optional[Connection]:
        with self._lock:
            return self._connections.get(sid)

    def lookup(self, name: str) -> Optional[str]:
        with self._lock:
            return self._online.get(name)

    def name_of(self, sid: str) -> Optional[str]:
        conn = self.get(sid)
        return conn.name if conn else None

    def address_of(self, sid: str) -> Optional[str]:
        conn = self.get(sid)
        return conn.address if conn else None

    def online_names(self) -> List[str]:
        with self._lock:
            return sorted(self._online)

    def live_sids(self) -> List[str]:
        with self._lock:
            return list(self._connections)

    def named_sids(self) -> List[str]:
        with self._lock:
            return [sid for sid, c in self._connections.items() if c.name]


class BlockLists:
    """Per-connection sets of blocked peer addresses."""

    def __init__(self):
        self._blocks: Dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def block(self, sid: str, address: str) -> bool:
        with self._lock:
            s = self._blocks.setdefault(sid, set())
            if address in s:
                return False
            s.add(address)
            return True

    def unblock(self, sid: str, address: str) -> bool:
        with self._lock:
            s = self._blocks.get(sid)
            if not s or address not in s:
                return False
            s.discard(address)
            if not s:
                del self._blocks[sid]
            return True

    def blocked_by(self, sid: str) -> frozenset[str]:
        with self._lock:
            return frozenset(self._blocks.get(sid) or ())

    def is_blocking(self, sid: str, address: str | None) -> bool:
        if not address:
            return False
        with self._lock:
            return address in (self._blocks.get(sid) or ())

    def drop(self, sid: str) -> None:
        with self._lock:
            self._blocks.pop(sid, None)

    def __contains__(self, sid: str) -> bool:
        with self._lock:
            return sid in self._blocks


Scheduler = Callable[[float, Callable[[], None]], Any]


def _thread_scheduler(delay: float, fn: Callable[[], None]) -> threading.Timer:
    t = threading.Timer(delay, fn)
    t.daemon = True
    t.start()
    return t


@dataclass
class ChatState:
    """Everything the handlers share, owned by one app instance."""

    settings: Dict[str, Any]
    sessions: SessionRegistry = field(default_factory=SessionRegistry)
    blocks: BlockLists = field(default_factory=BlockLists)
    log: MessageLog = None  # type: ignore[assignment]
    trivia: Any = None
    agent: Any = None
    weather: Any = None
    rng: random.Random = field(default_factory=random.Random)
    scheduler: Optional[Scheduler] = None

    def __post_init__(self):
        if self.log is None:
            self.log = MessageLog(int(self.settings.get("max_messages", MAX_MESSAGES) or MAX_MESSAGES))

    def schedule(self, delay: float, fn: Callable[[], None]) -> Any:
        """Run ``fn`` once after ``delay`` seconds. Timers are never cancelled."""
        return (self.scheduler or _thread_scheduler)(delay, fn)
