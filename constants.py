#!/usr/bin/env python3

from __future__ import annotations


# Application version (semantic-ish). Used for the boot banner + packaging.
APP_VERSION = "1.4.0"

# Optional JSON settings file (plaintext). Env vars override its values.
CONFIG_FILE = "server_config.json"

# Shared chat history
MAX_MESSAGES = 20

# Conversational agent
AGENT_HISTORY_LIMIT = 20
DEFAULT_AGENT_API_URL = "https://api.groq.com/openai/v1"
DEFAULT_AGENT_MODEL = "llama-3.1-8b-instant"

# Trivia sessions are revealed after this many seconds unless answered first.
TRIVIA_TIMEOUT_SECONDS = 60

# Command clamps
DICE_MIN_SIDES = 2
DICE_MAX_SIDES = 1000
DICE_DEFAULT_SIDES = 6
COUNTDOWN_MIN_SECONDS = 1
COUNTDOWN_MAX_SECONDS = 300
COUNTDOWN_DEFAULT_SECONDS = 10
RANDOM_DEFAULT_MIN = 1
RANDOM_DEFAULT_MAX = 100
RANDOM_ABS_LIMIT = 1_000_000_000

# Timestamp format rendered into every ChatMessage (e.g. "10/17/2026, 03:04:05 PM").
TIMESTAMP_FORMAT = "%m/%d/%Y, %I:%M:%S %p"

# Display names used for system / bot messages
SYSTEM_NAME = "System"
EIGHT_BALL_NAME = "🎱 8-Ball"
JOKE_BOT_NAME = "😂 Joke Bot"
COIN_BOT_NAME = "🪙 Coin Flip"
DICE_BOT_NAME = "🎲 Dice"
QUOTE_BOT_NAME = "💬 Quote Bot"
CLOCK_BOT_NAME = "🕒 World Clock"
RANDOM_BOT_NAME = "🔢 Random"
COUNTDOWN_BOT_NAME = "⏳ Countdown"
WEATHER_BOT_NAME = "🌤️ Weather"
TRIVIA_BOT_NAME = "🧠 Trivia"
AGENT_BOT_NAME = "🤖 AI"
MODERATOR_NAME = "🛡️ Moderator"

# Default CORS origins (the deployed front-ends)
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5000",
    "https://nord-chat.netlify.app",
    "https://micahswebsite.xyz",
    "http://micahswebsite.xyz",
]

# World clock snapshot: (label, IANA zone)
WORLD_CLOCK_ZONES = [
    ("New York", "America/New_York"),
    ("Los Angeles", "America/Los_Angeles"),
    ("London", "Europe/London"),
    ("Paris", "Europe/Paris"),
    ("Dubai", "Asia/Dubai"),
    ("Tokyo", "Asia/Tokyo"),
    ("Sydney", "Australia/Sydney"),
]


# ──────────────────────────────────────────────────────────
# Socket.IO event names (wire protocol shared with www/chat.js)
# ──────────────────────────────────────────────────────────

# inbound
EV_JOIN = "join"
EV_MESSAGE = "message"
EV_LEAVE = "leave"
EV_CLEAR_MESSAGES = "clear messages"
EV_EIGHT_BALL = "8ball"
EV_JOKE = "joke"
EV_FLIP = "flip"
EV_ROLL = "roll"
EV_QUOTE = "quote"
EV_TIME = "time"
EV_WEATHER = "weather"
EV_TRIVIA = "trivia"
EV_COUNTDOWN = "countdown"
EV_RANDOM = "random"
EV_SUBMIT_CREDENTIAL = "submit credential"
EV_DEACTIVATE_AGENT = "deactivate agent"
EV_ASK_AGENT = "ask agent"
EV_CLEAR_AGENT_MEMORY = "clear agent memory"
EV_BLOCK_USER = "block user"
EV_UNBLOCK_USER = "unblock user"
EV_GET_BLOCKED_USERS = "get blocked users"

# outbound
EV_USER_JOINED = "user joined"
EV_ONLINE_USERS = "online users update"
EV_LOAD_MESSAGES = "load messages"
EV_USER_LEFT = "user left"
EV_ERROR = "error"
EV_CREDENTIAL_STATUS = "credential status"
EV_AGENT_DEACTIVATED = "agent deactivated"
EV_CREDENTIAL_REQUIRED = "credential required"
EV_USER_BLOCKED = "user blocked"
EV_USER_UNBLOCKED = "user unblocked"
EV_BLOCKED_USERS_LIST = "blocked users list"
