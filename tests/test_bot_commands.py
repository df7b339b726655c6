import random
from datetime import datetime, timezone

import pytest

from bot_commands import (
    EIGHT_BALL_RESPONSES,
    countdown_seconds,
    countdown_started,
    dice_sides,
    eight_ball,
    random_bounds,
    random_in_range,
    roll_die,
    weather_error,
    world_clock,
)
from constants import WORLD_CLOCK_ZONES
from errors import UNAUTHORIZED, UNEXPECTED, CollaboratorError, ValidationError


@pytest.mark.parametrize(
    "requested,sides",
    [(None, 6), ("", 6), ("abc", 6), (1, 2), (-10, 2), (20, 20), ("12", 12), (5000, 1000), (True, 6)],
)
def test_dice_sides_are_clamped(requested, sides):
    assert dice_sides(requested) == sides


def test_roll_result_is_within_sides():
    rng = random.Random(3)
    for _ in range(50):
        _msg, sides, result = roll_die(4, rng)
        assert sides == 4
        assert 1 <= result <= 4


@pytest.mark.parametrize("requested,seconds", [(None, 10), (0, 1), (45, 45), (999, 300), ("x", 10)])
def test_countdown_seconds_are_clamped(requested, seconds):
    assert countdown_seconds(requested) == seconds


def test_countdown_started_wording():
    assert countdown_started(1, None).text == "Countdown started: 1 second..."
    assert "by alice" in countdown_started(5, "alice").text


def test_eight_ball_quotes_question():
    msg = eight_ball("Will it snow?", random.Random(0))
    assert msg.text.startswith('🔮 "Will it snow?"')
    assert msg.text.split("\n\n")[1] in EIGHT_BALL_RESPONSES
    assert msg.system


def test_random_bounds_defaults_and_swap():
    assert random_bounds(None, None) == (1, 100)
    assert random_bounds(50, 10) == (10, 50)
    with pytest.raises(ValidationError):
        random_bounds(0, 2_000_000_000)


def test_random_in_range_stays_in_bounds():
    rng = random.Random(9)
    for _ in range(30):
        _msg, value = random_in_range(-3, 3, rng)
        assert -3 <= value <= 3


def test_world_clock_lists_every_zone():
    now = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
    lines = world_clock(now).text.splitlines()
    assert [line.split(":")[0] for line in lines] == [label for label, _ in WORLD_CLOCK_ZONES]
    assert "London: Mon 12:00 PM" in lines
    assert "Tokyo: Mon 09:00 PM" in lines


def test_weather_error_wording_per_category():
    unauthorized = weather_error("Oslo", CollaboratorError("HTTP 401", UNAUTHORIZED, "openweathermap"))
    assert "API key" in unauthorized.text
    unexpected = weather_error("Oslo", CollaboratorError("bad payload", UNEXPECTED, "wttr"))
    assert '"Oslo"' in unexpected.text
