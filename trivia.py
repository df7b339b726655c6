#!/usr/bin/env python3
"""trivia.py

Trivia session store.

Several questions may be outstanding at once. A session ends either when
somebody answers it or when its reveal timer fires; both paths pop the
session under the store lock, so whichever runs first wins and the other is
a no-op.

Answer matching is deliberately loose (see ``TriviaStore.attempt``): once a
question is outstanding, any message longer than two characters from a
connection that has not guessed yet is taken as a guess, even if it was
meant as ordinary chat.
"""

from __future__ import annotations

import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from constants import TRIVIA_BOT_NAME
from realtime.state import ChatMessage, system_message

TRIVIA_QUESTIONS: Tuple[Tuple[str, str], ...] = (
    ("What is the capital of Australia?", "Canberra"),
    ("What is the largest planet in our solar system?", "Jupiter"),
    ("How many continents are there on Earth?", "7"),
    ("What is the chemical symbol for gold?", "Au"),
    ("Who painted the Mona Lisa?", "Leonardo da Vinci"),
    ("What is the smallest prime number?", "2"),
    ("Which ocean is the largest?", "Pacific"),
    ("What gas do plants absorb from the atmosphere?", "Carbon dioxide"),
    ("How many legs does a spider have?", "8"),
    ("What is the hardest natural substance on Earth?", "Diamond"),
    ("In which country are the pyramids of Giza?", "Egypt"),
    ("What is the capital of Canada?", "Ottawa"),
    ("Which planet is known as the Red Planet?", "Mars"),
    ("What is the longest river in the world?", "Nile"),
    ("How many minutes are in a full day?", "1440"),
    ("What language has the most native speakers?", "Mandarin"),
    ("Who wrote 'Romeo and Juliet'?", "Shakespeare"),
    ("What is the freezing point of water in Fahrenheit?", "32"),
    ("What is the capital of Japan?", "Tokyo"),
    ("Which animal is known as the King of the Jungle?", "Lion"),
)


def normalize_answer(text: str) -> str:
    return (text or "").strip().lower()


@dataclass
class TriviaSession:
    id: str
    question: str
    answer: str
    asker_sid: str
    attempted: set[str] = field(default_factory=set)
    created_at: float = field(default_factory=time.time)

    @property
    def normalized_answer(self) -> str:
        return normalize_answer(self.answer)


@dataclass(frozen=True)
class TriviaAttempt:
    """Result of a guess that was consumed by the trivia matcher."""

    correct: bool
    guess: str
    # The resolved session on a win; the first compared session on a miss.
    session: TriviaSession
    # Sessions newly marked as attempted by this guess (empty on a win).
    attempted: Tuple[TriviaSession, ...] = ()


def is_match(guess: str, answer: str) -> bool:
    """The three acceptance rules: exact, answer inside guess, guess inside answer."""
    if guess == answer:
        return True
    if len(guess) > 2 and answer in guess:
        return True
    return guess in answer


class TriviaStore:
    def __init__(self, questions: Iterable[Tuple[str, str]] = TRIVIA_QUESTIONS, rng: random.Random | None = None):
        self._questions = tuple(questions)
        self._rng = rng or random.Random()
        self._sessions: dict[str, TriviaSession] = {}
        self._lock = threading.Lock()

    def start(self, asker_sid: str, question: str | None = None, answer: str | None = None) -> TriviaSession:
        """Open a new session. Picks a question that is not already outstanding."""
        with self._lock:
            if question is None or answer is None:
                open_questions = {s.question for s in self._sessions.values()}
                pool = [qa for qa in self._questions if qa[0] not in open_questions] or list(self._questions)
                question, answer = self._rng.choice(pool)
            session = TriviaSession(id=uuid.uuid4().hex, question=question, answer=answer, asker_sid=asker_sid)
            self._sessions[session.id] = session
            return session

    def attempt(self, sid: str, text: str) -> Optional[TriviaAttempt]:
        """Match a chat message against every outstanding session.

        Returns None when the message is not consumed (nothing outstanding,
        every session already guessed by ``sid``, or a short non-matching
        guess), so the caller keeps processing it as chat.
        """
        guess = normalize_answer(text)
        with self._lock:
            candidates = [s for s in self._sessions.values() if sid not in s.attempted]
            if not candidates:
                return None

            for session in candidates:
                if is_match(guess, session.normalized_answer):
                    del self._sessions[session.id]
                    return TriviaAttempt(correct=True, guess=guess, session=session)

            if len(guess) <= 2:
                return None

            for session in candidates:
                session.attempted.add(sid)
            return TriviaAttempt(correct=False, guess=guess, session=candidates[0], attempted=tuple(candidates))

    def reveal(self, session_id: str) -> Optional[TriviaSession]:
        """Remove a session if it still exists. Safe to call more than once."""
        with self._lock:
            return self._sessions.pop(session_id, None)

    def everyone_attempted(self, session_id: str, live_sids: Iterable[str]) -> bool:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return False
            live = set(live_sids)
            return bool(live) and live <= session.attempted

    def get(self, session_id: str) -> Optional[TriviaSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def outstanding(self) -> List[TriviaSession]:
        with self._lock:
            return list(self._sessions.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# ──────────────────────────────────────────────────────────
# Announcements (published to the whole room)
# ──────────────────────────────────────────────────────────

def announce_question(session: TriviaSession, timeout_seconds: int) -> ChatMessage:
    return system_message(
        f"❓ {session.question}\n\nType your answer in chat! ({timeout_seconds}s to answer)",
        TRIVIA_BOT_NAME,
    )


def announce_winner(username: str, session: TriviaSession) -> ChatMessage:
    return system_message(f"🏆 {username} got it! The answer was **{session.answer}**.", TRIVIA_BOT_NAME)


def announce_wrong_guess(username: str) -> ChatMessage:
    # Never echo the guess: it bypassed the word filter and block lists.
    return system_message(f"❌ {username}'s guess was not right.", TRIVIA_BOT_NAME)


def announce_reveal(session: TriviaSession) -> ChatMessage:
    return system_message(
        f"⌛ Nobody got it. The answer to \"{session.question}\" was **{session.answer}**.",
        TRIVIA_BOT_NAME,
    )
