"""Socket.IO handlers: bot commands.

Bot output is published to the log and to every connection, without
address-based block filtering.
"""

import logging

from bot_commands import (
    countdown_finished,
    countdown_seconds,
    countdown_started,
    eight_ball,
    flip_coin,
    random_in_range,
    random_quote,
    roll_die,
    tell_joke,
    weather_error,
    weather_report,
    world_clock,
)
from constants import (
    EV_COUNTDOWN,
    EV_EIGHT_BALL,
    EV_FLIP,
    EV_JOKE,
    EV_QUOTE,
    EV_RANDOM,
    EV_ROLL,
    EV_TIME,
    EV_TRIVIA,
    EV_WEATHER,
    TRIVIA_TIMEOUT_SECONDS,
)
from errors import CollaboratorError, ValidationError
from trivia import announce_question, announce_reveal


def register(socketio, settings, ctx):
    """Register Socket.IO event handlers for this module."""
    state = ctx.state
    router = ctx.router

    def _publish(message):
        router.publish(message, filtered=False)

    @socketio.on(EV_EIGHT_BALL)
    def handle_eight_ball(data=None):
        ev = ctx.parse(EV_EIGHT_BALL, data)
        _publish(eight_ball(ev.question, state.rng))

    @socketio.on(EV_JOKE)
    def handle_joke(data=None):
        ctx.parse(EV_JOKE, data)
        _publish(tell_joke(state.rng))

    @socketio.on(EV_FLIP)
    def handle_flip(data=None):
        ctx.parse(EV_FLIP, data)
        _publish(flip_coin(state.rng))

    @socketio.on(EV_ROLL)
    def handle_roll(data=None):
        ev = ctx.parse(EV_ROLL, data)
        message, _sides, _result = roll_die(ev.number, state.rng)
        _publish(message)

    @socketio.on(EV_QUOTE)
    def handle_quote(data=None):
        ctx.parse(EV_QUOTE, data)
        _publish(random_quote(state.rng))

    @socketio.on(EV_TIME)
    def handle_time(data=None):
        ctx.parse(EV_TIME, data)
        _publish(world_clock())

    @socketio.on(EV_RANDOM)
    def handle_random(data=None):
        ev = ctx.parse(EV_RANDOM, data)
        message, _value = random_in_range(ev.min, ev.max, state.rng)
        _publish(message)

    @socketio.on(EV_COUNTDOWN)
    def handle_countdown(data=None):
        ev = ctx.parse(EV_COUNTDOWN, data)
        seconds = countdown_seconds(ev.seconds)
        _publish(countdown_started(seconds, ctx.name_of(ctx.sid())))
        state.schedule(seconds, lambda: _publish(countdown_finished(seconds)))

    @socketio.on(EV_WEATHER)
    def handle_weather(data=None):
        ev = ctx.parse(EV_WEATHER, data)
        if state.weather is None:
            raise ValidationError("Weather lookups are disabled on this server")
        try:
            forecast = state.weather.fetch(ev.city)
        except CollaboratorError as e:
            logging.warning("Weather lookup for %r failed: %s (%s)", ev.city, e, e.category)
            _publish(weather_error(ev.city, e))
            return
        _publish(weather_report(forecast))

    @socketio.on(EV_TRIVIA)
    def handle_trivia(data=None):
        ctx.parse(EV_TRIVIA, data)
        if state.trivia is None:
            raise ValidationError("Trivia is disabled on this server")
        timeout = int(settings.get("trivia_timeout_seconds") or TRIVIA_TIMEOUT_SECONDS)
        session = state.trivia.start(ctx.sid())
        _publish(announce_question(session, timeout))

        def _reveal():
            # No-op when somebody already answered.
            if state.trivia.reveal(session.id) is not None:
                _publish(announce_reveal(session))

        state.schedule(timeout, _reveal)
