from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Callable


def _default_false(*args, **kwargs) -> bool:
    return False


@dataclass(frozen=True)
class CommandDeps:
    # Core/shared
    db_lock: Any = None
    db_conn: Any = None
    send_chunked: Callable | None = None
    notices: Any = None

    # Relay components
    session_manager: Any = None
    space_manager: Any = None
    thread_registry: Any = None
    rate_governor: Any = None
    recorder: Any = None

    # Store functions
    list_schema_migrations_sync: Callable | None = None

    # Windows (seconds)
    session_window_seconds: float = 600.0
    space_lifetime_seconds: float = 600.0


@dataclass(frozen=True)
class CommandGates:
    in_trigger_channel: Callable[[Any], bool] = _default_false
    trigger_channel_id: int = 0
    owner_user_ids: set[int] = field(default_factory=set)
    user_is_owner: Callable[[Any], bool] = _default_false
