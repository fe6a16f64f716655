from __future__ import annotations

from misc.adhoc_modules.close_ticket_panel import build_close_ticket_panel
from misc.adhoc_modules.close_ticket_panel import on_control_activated
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.commands.commands_owner import register as register_owner
from misc.commands.commands_relay import register as register_relay
from misc.discord_gates import in_trigger_channel as channel_is_trigger
from misc.events_runtime import register_runtime_events
from misc.runtime_deps import RuntimeBootDeps
from misc.runtime_deps import RuntimeDeps


def make_close_panel_factory(*, space_manager, close_control_id: str):
    async def on_close(control_id: str, space_id: int, actor_id: int) -> bool:
        return await on_control_activated(
            control_id,
            space_id,
            actor_id,
            space_manager=space_manager,
            close_control_id=close_control_id,
        )

    def factory(control_id: str):
        return build_close_ticket_panel(control_id=control_id, on_close=on_close)

    return factory


def wire_bot_runtime(
    bot,
    *,
    trigger_channel_id: int,
    owner_user_ids: set[int],
    db_lock,
    db_conn,
    list_schema_migrations_sync,
    send_chunked,
    notices,
    orchestrator,
    session_manager,
    space_manager,
    thread_registry,
    rate_governor,
    recorder,
    close_panel_factory,
    close_control_id: str,
    session_window_seconds: float,
    space_lifetime_seconds: float,
    shutdown_event,
) -> None:
    def in_trigger_channel(ctx) -> bool:
        try:
            return channel_is_trigger(int(ctx.channel.id), trigger_channel_id)
        except Exception:
            return False

    def user_is_owner(user) -> bool:
        uid = int(getattr(user, "id", 0) or 0)
        return bool(uid) and uid in owner_user_ids

    command_deps = CommandDeps(
        db_lock=db_lock,
        db_conn=db_conn,
        send_chunked=send_chunked,
        notices=notices,
        session_manager=session_manager,
        space_manager=space_manager,
        thread_registry=thread_registry,
        rate_governor=rate_governor,
        recorder=recorder,
        list_schema_migrations_sync=list_schema_migrations_sync,
        session_window_seconds=session_window_seconds,
        space_lifetime_seconds=space_lifetime_seconds,
    )
    command_gates = CommandGates(
        in_trigger_channel=in_trigger_channel,
        trigger_channel_id=trigger_channel_id,
        owner_user_ids=owner_user_ids,
        user_is_owner=user_is_owner,
    )

    register_relay(
        bot,
        deps=command_deps,
        gates=command_gates,
    )

    register_owner(
        bot,
        deps=command_deps,
        gates=command_gates,
    )

    register_runtime_events(
        bot,
        deps=RuntimeDeps(
            orchestrator=orchestrator,
            session_manager=session_manager,
            space_manager=space_manager,
            notices=notices,
            command_prefix=bot.command_prefix if isinstance(bot.command_prefix, str) else "!",
            shutdown_event=shutdown_event,
        ),
        boot=RuntimeBootDeps(
            close_panel_factory=close_panel_factory,
            close_control_id=close_control_id,
            trigger_channel_id=trigger_channel_id,
        ),
    )
