from __future__ import annotations

# Channel ids (0 = not configured)
DEFAULT_TRIGGER_CHANNEL_ID = 0
DEFAULT_SPACE_CATEGORY_ID = 0

# Run polling
DEFAULT_POLL_INTERVAL_SECONDS = 1.0
DEFAULT_RUN_MAX_WAIT_SECONDS = 120.0

# Access windows
DEFAULT_SESSION_WINDOW_SECONDS = 600.0
DEFAULT_SPACE_LIFETIME_SECONDS = 600.0

# Backend overload cooldown
DEFAULT_RATE_LIMIT_PENALTY_SECONDS = 20.0
RATE_LIMIT_ERROR_CODE = "rate_limit_exceeded"

# Discord rejects messages of 2000+ characters
DEFAULT_REPLY_CHAR_LIMIT = 1999

DEFAULT_THREAD_REGISTRY_MAX = 10000

DEFAULT_DB_PATH = "ionet_history.db"

SPACE_CHANNEL_PREFIX = "private-"
CLOSE_TICKET_CONTROL_ID = "close_ticket"

SESSION_START_COMMAND = "create"
SPACE_CREATE_COMMAND = "createPrivateChannel"
