#!/usr/bin/env python3
"""bot_commands.py

One-shot generators behind the room's bot commands.

Each function returns a single system ``ChatMessage``; the socket layer
(realtime/bots.py) appends it to the log and broadcasts it. Randomness comes
from an injectable ``random.Random`` so results are reproducible in tests.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Any, Tuple
from zoneinfo import ZoneInfo

from constants import (
    CLOCK_BOT_NAME,
    COIN_BOT_NAME,
    COUNTDOWN_BOT_NAME,
    COUNTDOWN_DEFAULT_SECONDS,
    COUNTDOWN_MAX_SECONDS,
    COUNTDOWN_MIN_SECONDS,
    DICE_BOT_NAME,
    DICE_DEFAULT_SIDES,
    DICE_MAX_SIDES,
    DICE_MIN_SIDES,
    EIGHT_BALL_NAME,
    JOKE_BOT_NAME,
    QUOTE_BOT_NAME,
    RANDOM_ABS_LIMIT,
    RANDOM_BOT_NAME,
    RANDOM_DEFAULT_MAX,
    RANDOM_DEFAULT_MIN,
    WEATHER_BOT_NAME,
    WORLD_CLOCK_ZONES,
)
from errors import NOT_FOUND, UNAUTHORIZED, UNAVAILABLE, UNREACHABLE, CollaboratorError, ValidationError
from realtime.state import ChatMessage, system_message
from weather_bridge import Forecast


EIGHT_BALL_RESPONSES = (
    "It is certain.",
    "It is decidedly so.",
    "Without a doubt.",
    "Yes definitely.",
    "You may rely on it.",
    "As I see it, yes.",
    "Most likely.",
    "Outlook good.",
    "Yes.",
    "Signs point to yes.",
    "Reply hazy, try again.",
    "Ask again later.",
    "Better not tell you now.",
    "Cannot predict now.",
    "Concentrate and ask again.",
    "Don't count on it.",
    "My reply is no.",
    "My sources say no.",
    "Outlook not so good.",
    "Very doubtful.",
)

JOKES = (
    "Why don't scientists trust atoms? Because they make up everything!",
    "I told my wife she was drawing her eyebrows too high. She looked surprised.",
    "Why did the scarecrow win an award? He was outstanding in his field.",
    "I'm reading a book about anti-gravity. It's impossible to put down.",
    "Why don't skeletons fight each other? They don't have the guts.",
    "What do you call fake spaghetti? An impasta.",
    "Why did the bicycle fall over? It was two tired.",
    "How does a penguin build its house? Igloos it together.",
    "Why can't you give Elsa a balloon? Because she will let it go.",
    "What do you call a bear with no teeth? A gummy bear.",
    "Why did the math book look sad? It had too many problems.",
    "I used to be a banker, but I lost interest.",
    "Why do programmers prefer dark mode? Because light attracts bugs.",
    "There are 10 kinds of people: those who understand binary and those who don't.",
    "Why was the computer cold? It left its Windows open.",
)

QUOTES = (
    ("The only way to do great work is to love what you do.", "Steve Jobs"),
    ("In the middle of difficulty lies opportunity.", "Albert Einstein"),
    ("It does not matter how slowly you go as long as you do not stop.", "Confucius"),
    ("Life is what happens when you're busy making other plans.", "John Lennon"),
    ("The future belongs to those who believe in the beauty of their dreams.", "Eleanor Roosevelt"),
    ("Simplicity is the ultimate sophistication.", "Leonardo da Vinci"),
    ("Whether you think you can or you think you can't, you're right.", "Henry Ford"),
    ("Talk is cheap. Show me the code.", "Linus Torvalds"),
    ("The best time to plant a tree was 20 years ago. The second best time is now.", "Chinese proverb"),
    ("Be yourself; everyone else is already taken.", "Oscar Wilde"),
    ("Stay hungry, stay foolish.", "Stewart Brand"),
    ("What we think, we become.", "Buddha"),
)


def _parse_int(value: Any, default: int) -> int:
    """Best-effort int parse; None / blank / junk -> default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return default


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(int(value), hi))


# ──────────────────────────────────────────────────────────
# Generators
# ──────────────────────────────────────────────────────────

def eight_ball(question: str, rng: random.Random) -> ChatMessage:
    answer = rng.choice(EIGHT_BALL_RESPONSES)
    return system_message(f'🔮 "{question}"\n\n{answer}', EIGHT_BALL_NAME)


def tell_joke(rng: random.Random) -> ChatMessage:
    return system_message(rng.choice(JOKES), JOKE_BOT_NAME)


def flip_coin(rng: random.Random) -> ChatMessage:
    side = rng.choice(("Heads", "Tails"))
    return system_message(f"The coin landed on **{side}**!", COIN_BOT_NAME)


def dice_sides(requested: Any) -> int:
    return clamp(_parse_int(requested, DICE_DEFAULT_SIDES), DICE_MIN_SIDES, DICE_MAX_SIDES)


def roll_die(requested: Any, rng: random.Random) -> Tuple[ChatMessage, int, int]:
    """Returns (message, clamped sides, result)."""
    sides = dice_sides(requested)
    result = rng.randint(1, sides)
    return system_message(f"Rolled a d{sides}: **{result}**", DICE_BOT_NAME), sides, result


def random_quote(rng: random.Random) -> ChatMessage:
    text, author = rng.choice(QUOTES)
    return system_message(f'"{text}"\n— {author}', QUOTE_BOT_NAME)


def world_clock(now: datetime | None = None) -> ChatMessage:
    now = now or datetime.now(timezone.utc)
    lines = []
    for label, zone in WORLD_CLOCK_ZONES:
        local = now.astimezone(ZoneInfo(zone))
        lines.append(f"{label}: {local.strftime('%a %I:%M %p')}")
    return system_message("\n".join(lines), CLOCK_BOT_NAME)


def random_bounds(lo: Any, hi: Any) -> Tuple[int, int]:
    lo_i = _parse_int(lo, RANDOM_DEFAULT_MIN)
    hi_i = _parse_int(hi, RANDOM_DEFAULT_MAX)
    if abs(lo_i) > RANDOM_ABS_LIMIT or abs(hi_i) > RANDOM_ABS_LIMIT:
        raise ValidationError(f"Range limits must be within ±{RANDOM_ABS_LIMIT:,}")
    if lo_i > hi_i:
        lo_i, hi_i = hi_i, lo_i
    return lo_i, hi_i


def random_in_range(lo: Any, hi: Any, rng: random.Random) -> Tuple[ChatMessage, int]:
    lo_i, hi_i = random_bounds(lo, hi)
    value = rng.randint(lo_i, hi_i)
    return system_message(f"Random number between {lo_i} and {hi_i}: **{value}**", RANDOM_BOT_NAME), value


def countdown_seconds(requested: Any) -> int:
    return clamp(_parse_int(requested, COUNTDOWN_DEFAULT_SECONDS), COUNTDOWN_MIN_SECONDS, COUNTDOWN_MAX_SECONDS)


def countdown_started(seconds: int, started_by: str | None) -> ChatMessage:
    who = f" by {started_by}" if started_by else ""
    return system_message(f"Countdown started{who}: {seconds} second{'s' if seconds != 1 else ''}...", COUNTDOWN_BOT_NAME)


def countdown_finished(seconds: int) -> ChatMessage:
    return system_message(f"⏰ Time's up! ({seconds}s countdown finished)", COUNTDOWN_BOT_NAME)


def weather_report(forecast: Forecast) -> ChatMessage:
    where = forecast.location + (f", {forecast.country}" if forecast.country else "")
    text = (
        f"Weather in {where}: {forecast.description}\n"
        f"🌡️ {forecast.temp_c:.1f}°C (feels like {forecast.feels_like_c:.1f}°C)\n"
        f"💧 Humidity {forecast.humidity}% · 💨 Wind {forecast.wind_kph:.1f} km/h"
    )
    return system_message(text, WEATHER_BOT_NAME)


_WEATHER_ERRORS = {
    NOT_FOUND: "Couldn't find a place called \"{city}\". Check the spelling and try again.",
    UNAUTHORIZED: "The weather service rejected our API key. Ask the admin to check it.",
    UNAVAILABLE: "The weather service is unavailable right now. Try again in a bit.",
    UNREACHABLE: "Couldn't reach the weather service (network problem).",
}


def weather_error(city: str, err: CollaboratorError) -> ChatMessage:
    template = _WEATHER_ERRORS.get(err.category, "Something went wrong fetching the weather for \"{city}\".")
    return system_message("⚠️ " + template.format(city=city), WEATHER_BOT_NAME)
