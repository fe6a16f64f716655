import os
import asyncio
import signal
import discord
from discord.ext import commands
from openai import OpenAI
from config.defaults import CLOSE_TICKET_CONTROL_ID
from config.defaults import DEFAULT_DB_PATH
from config.defaults import DEFAULT_POLL_INTERVAL_SECONDS
from config.defaults import DEFAULT_RATE_LIMIT_PENALTY_SECONDS
from config.defaults import DEFAULT_REPLY_CHAR_LIMIT
from config.defaults import DEFAULT_RUN_MAX_WAIT_SECONDS
from config.defaults import DEFAULT_SESSION_WINDOW_SECONDS
from config.defaults import DEFAULT_SPACE_CATEGORY_ID
from config.defaults import DEFAULT_SPACE_LIFETIME_SECONDS
from config.defaults import DEFAULT_THREAD_REGISTRY_MAX
from config.defaults import DEFAULT_TRIGGER_CHANNEL_ID
from config.defaults import RATE_LIMIT_ERROR_CODE
from config.defaults import SPACE_CHANNEL_PREFIX
from config.env import env_float
from config.env import env_int
from config.env import parse_id_set
from config.notices import load_notices
from db.migrate import close_history_db
from db.migrate import list_schema_migrations_sync
from db.migrate import open_history_db
from history.recorder import InteractionRecorder
from misc.discord_platform import DiscordPlatform
from misc.discord_text import send_chunked
from misc.runtime_wiring import make_close_panel_factory
from misc.runtime_wiring import wire_bot_runtime
from relay.backend import AssistantsBackend
from relay.dispatch import DispatchOrchestrator
from relay.rate_governor import RateGovernor
from relay.run_driver import RunDriver
from relay.session_manager import SessionManager
from relay.spaces import EphemeralSpaceManager
from relay.thread_registry import ThreadRegistry

# =========================
# ENV
# =========================
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
ASSISTANT_ID = (os.getenv("ASSISTANT_ID") or "").strip()

if not DISCORD_TOKEN:
    raise RuntimeError("Missing DISCORD_TOKEN env var")
if not OPENAI_API_KEY:
    raise RuntimeError("Missing OPENAI_API_KEY env var")
if not ASSISTANT_ID:
    raise RuntimeError("Missing ASSISTANT_ID env var")

TRIGGER_CHANNEL_ID = env_int("IONET_TRIGGER_CHANNEL_ID", DEFAULT_TRIGGER_CHANNEL_ID)
SPACE_CATEGORY_ID = env_int("IONET_SPACE_CATEGORY_ID", DEFAULT_SPACE_CATEGORY_ID)
OWNER_USER_IDS = parse_id_set(os.getenv("IONET_OWNER_USER_IDS"))

POLL_INTERVAL_SECONDS = env_float("IONET_POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL_SECONDS)
RUN_MAX_WAIT_SECONDS = env_float("IONET_RUN_MAX_WAIT_SECONDS", DEFAULT_RUN_MAX_WAIT_SECONDS)
SESSION_WINDOW_SECONDS = env_float("IONET_SESSION_WINDOW_SECONDS", DEFAULT_SESSION_WINDOW_SECONDS)
SPACE_LIFETIME_SECONDS = env_float("IONET_SPACE_LIFETIME_SECONDS", DEFAULT_SPACE_LIFETIME_SECONDS)
RATE_LIMIT_PENALTY_SECONDS = env_float("IONET_RATE_LIMIT_PENALTY_SECONDS", DEFAULT_RATE_LIMIT_PENALTY_SECONDS)
REPLY_CHAR_LIMIT = env_int("IONET_REPLY_CHAR_LIMIT", DEFAULT_REPLY_CHAR_LIMIT)
THREAD_REGISTRY_MAX = env_int("IONET_THREAD_REGISTRY_MAX", DEFAULT_THREAD_REGISTRY_MAX)

print(
    f"[CFG] trigger_channel={TRIGGER_CHANNEL_ID} category={SPACE_CATEGORY_ID} "
    f"owners={len(OWNER_USER_IDS)} poll_s={POLL_INTERVAL_SECONDS} max_wait_s={RUN_MAX_WAIT_SECONDS} "
    f"session_s={SESSION_WINDOW_SECONDS} space_s={SPACE_LIFETIME_SECONDS} "
    f"penalty_s={RATE_LIMIT_PENALTY_SECONDS} reply_limit={REPLY_CHAR_LIMIT} "
    f"thread_registry_max={THREAD_REGISTRY_MAX}"
)

_RAW_NOTICES_PATH = os.getenv("IONET_NOTICES_PATH")
NOTICES_PATH = os.getenv(
    "IONET_NOTICES_PATH",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "config", "notices.yml"),
)
NOTICES, NOTICES_WARNING = load_notices(NOTICES_PATH)
NOTICES_SOURCE = "env_override" if _RAW_NOTICES_PATH is not None else "file"
if NOTICES_WARNING:
    NOTICES_SOURCE = "fallback"
print(f"[CFG] notices={NOTICES.version} source={NOTICES_SOURCE} path={NOTICES_PATH}")
if NOTICES_WARNING:
    print(f"[CFG] {NOTICES_WARNING}")

# =========================
# SQLITE (optional history)
# =========================
# Empty IONET_DB_PATH disables history; a configured DB that cannot open is fatal.
DB_PATH = os.getenv("IONET_DB_PATH", DEFAULT_DB_PATH).strip()
db_conn = None
recorder = None
db_lock = asyncio.Lock()
if DB_PATH:
    try:
        db_conn = open_history_db(DB_PATH)
    except Exception as e:
        raise RuntimeError(f"Could not open history database at {DB_PATH}: {e}") from e
    recorder = InteractionRecorder(db_lock=db_lock, db_conn=db_conn)
    print(f"[DB] Using DB_PATH={DB_PATH}")
else:
    print("[DB] history disabled (IONET_DB_PATH is empty)")

# =========================
# RELAY
# =========================
client = OpenAI(api_key=OPENAI_API_KEY)
backend = AssistantsBackend(client=client, assistant_id=ASSISTANT_ID)
thread_registry = ThreadRegistry(create_thread=backend.create_thread, max_entries=THREAD_REGISTRY_MAX)
rate_governor = RateGovernor()
run_driver = RunDriver(
    backend=backend,
    poll_interval_seconds=POLL_INTERVAL_SECONDS,
    max_wait_seconds=RUN_MAX_WAIT_SECONDS,
)
session_manager = SessionManager(window_seconds=SESSION_WINDOW_SECONDS)

platform = DiscordPlatform(category_id=SPACE_CATEGORY_ID, channel_prefix=SPACE_CHANNEL_PREFIX)
space_manager = EphemeralSpaceManager(
    platform=platform,
    recorder=recorder,
    lifetime_seconds=SPACE_LIFETIME_SECONDS,
    greeting=NOTICES.greeting,
    control_id=CLOSE_TICKET_CONTROL_ID,
)
close_panel_factory = make_close_panel_factory(
    space_manager=space_manager,
    close_control_id=CLOSE_TICKET_CONTROL_ID,
)
platform.panel_factory = close_panel_factory

orchestrator = DispatchOrchestrator(
    backend=backend,
    thread_registry=thread_registry,
    rate_governor=rate_governor,
    run_driver=run_driver,
    platform=platform,
    notices=NOTICES,
    recorder=recorder,
    assistant_id=ASSISTANT_ID,
    reply_char_limit=REPLY_CHAR_LIMIT,
    rate_limit_penalty_seconds=RATE_LIMIT_PENALTY_SECONDS,
    rate_limit_error_code=RATE_LIMIT_ERROR_CODE,
)
shutdown_event = asyncio.Event()

# =========================
# DISCORD BOT
# =========================
intents = discord.Intents.default()
intents.message_content = True
intents.dm_messages = True

# no built-in help: "!help ..." in a ticket or DM is a question for the assistant
bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

wire_bot_runtime(
    bot,
    trigger_channel_id=TRIGGER_CHANNEL_ID,
    owner_user_ids=OWNER_USER_IDS,
    db_lock=db_lock,
    db_conn=db_conn,
    list_schema_migrations_sync=list_schema_migrations_sync,
    send_chunked=send_chunked,
    notices=NOTICES,
    orchestrator=orchestrator,
    session_manager=session_manager,
    space_manager=space_manager,
    thread_registry=thread_registry,
    rate_governor=rate_governor,
    recorder=recorder,
    close_panel_factory=close_panel_factory,
    close_control_id=CLOSE_TICKET_CONTROL_ID,
    session_window_seconds=SESSION_WINDOW_SECONDS,
    space_lifetime_seconds=SPACE_LIFETIME_SECONDS,
    shutdown_event=shutdown_event,
)


async def main() -> None:
    loop = asyncio.get_running_loop()

    def request_close() -> None:
        if getattr(bot, "_close_task", None) is None:
            bot._close_task = asyncio.create_task(bot.close())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_close)
        except NotImplementedError:
            pass

    try:
        async with bot:
            await bot.start(DISCORD_TOKEN)
    finally:
        shutdown_event.set()
        await space_manager.shutdown()
        if db_conn is not None:
            await close_history_db(db_conn, db_lock)


asyncio.run(main())
