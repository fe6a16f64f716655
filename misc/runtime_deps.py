from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class RuntimeDeps:
    # relay
    orchestrator: Any
    session_manager: Any
    space_manager: Any
    notices: Any

    # routing
    command_prefix: str
    shutdown_event: Any


@dataclass(frozen=True)
class RuntimeBootDeps:
    close_panel_factory: Callable
    close_control_id: str
    trigger_channel_id: int
