from __future__ import annotations

import asyncio
import unittest
from types import SimpleNamespace

from config.notices import Notices
from relay.session_manager import SessionManager

try:
    from misc.events_runtime import command_name
    from misc.events_runtime import register_runtime_events
    from misc.events_runtime import route_message
    from misc.runtime_deps import RuntimeBootDeps
    from misc.runtime_deps import RuntimeDeps
except ModuleNotFoundError:
    command_name = None
    register_runtime_events = None
    route_message = None
    RuntimeBootDeps = None
    RuntimeDeps = None


class _FakeOrchestrator:
    def __init__(self):
        self.calls: list[tuple[object, object]] = []

    async def dispatch(self, inbound, *, cancel_event=None):
        self.calls.append((inbound, cancel_event))
        return None


class _FakeSpaces:
    def __init__(self, active: dict[int, asyncio.Event] | None = None):
        self.active = dict(active or {})

    def is_active(self, space_id):
        return int(space_id) in self.active

    def closed_event(self, space_id):
        return self.active.get(int(space_id))


class _FakeAuthor:
    def __init__(self, user_id: int):
        self.id = user_id
        self.bot = False
        self.sent: list[str] = []

    async def send(self, text):
        self.sent.append(text)


def _message(*, author, channel_id: int, guild=None, content: str = "Hi"):
    return SimpleNamespace(
        author=author,
        channel=SimpleNamespace(id=channel_id),
        guild=guild,
        content=content,
    )


@unittest.skipIf(route_message is None, "discord.py not installed")
class RouteMessageTests(unittest.IsolatedAsyncioTestCase):
    def _deps(self, *, sessions=None, spaces=None):
        self.orchestrator = _FakeOrchestrator()
        self.shutdown_event = asyncio.Event()
        self.notices = Notices()
        return RuntimeDeps(
            orchestrator=self.orchestrator,
            session_manager=sessions or SessionManager(window_seconds=600),
            space_manager=spaces or _FakeSpaces(),
            notices=self.notices,
            command_prefix="!",
            shutdown_event=self.shutdown_event,
        )

    async def test_dm_without_session_gets_expiry_notice(self):
        deps = self._deps()
        author = _FakeAuthor(42)

        routed = await route_message(_message(author=author, channel_id=900), deps=deps)

        self.assertFalse(routed)
        self.assertEqual(author.sent, [self.notices.session_expired])
        self.assertEqual(self.orchestrator.calls, [])

    async def test_dm_inside_session_is_dispatched(self):
        sessions = SessionManager(window_seconds=600)
        sessions.start_session(42)
        deps = self._deps(sessions=sessions)
        author = _FakeAuthor(42)

        routed = await route_message(_message(author=author, channel_id=900, content="Hi"), deps=deps)

        self.assertTrue(routed)
        inbound, cancel_event = self.orchestrator.calls[0]
        self.assertEqual(inbound.conversation_id, "900")
        self.assertEqual(inbound.author_id, 42)
        self.assertEqual(inbound.text, "Hi")
        self.assertEqual(inbound.channel_kind, "dm")
        self.assertIs(cancel_event, self.shutdown_event)
        self.assertEqual(author.sent, [])

    async def test_dm_after_window_is_refused(self):
        clock = SimpleNamespace(now=1000.0)
        sessions = SessionManager(window_seconds=600, clock=lambda: clock.now)
        sessions.start_session(42)
        deps = self._deps(sessions=sessions)
        author = _FakeAuthor(42)

        clock.now = 1600.001
        routed = await route_message(_message(author=author, channel_id=900), deps=deps)

        self.assertFalse(routed)
        self.assertEqual(author.sent, [self.notices.session_expired])

    async def test_active_private_channel_is_dispatched(self):
        closed = asyncio.Event()
        deps = self._deps(spaces=_FakeSpaces({501: closed}))
        author = _FakeAuthor(42)

        routed = await route_message(
            _message(author=author, channel_id=501, guild=SimpleNamespace(id=1)),
            deps=deps,
        )

        self.assertTrue(routed)
        inbound, cancel_event = self.orchestrator.calls[0]
        self.assertEqual(inbound.conversation_id, "501")
        self.assertEqual(inbound.channel_kind, "text")
        self.assertIs(cancel_event, closed)

    async def test_other_guild_channels_are_ignored(self):
        deps = self._deps(spaces=_FakeSpaces({501: asyncio.Event()}))
        author = _FakeAuthor(42)

        routed = await route_message(
            _message(author=author, channel_id=777, guild=SimpleNamespace(id=1)),
            deps=deps,
        )

        self.assertFalse(routed)
        self.assertEqual(self.orchestrator.calls, [])
        self.assertEqual(author.sent, [])


class _FakeBot:
    def __init__(self, known_commands: set[str]):
        self.known_commands = set(known_commands)
        self.processed: list[object] = []

    def event(self, func):
        setattr(self, func.__name__, func)
        return func

    def get_command(self, name):
        return SimpleNamespace(name=name) if name in self.known_commands else None

    async def process_commands(self, message):
        self.processed.append(message)


@unittest.skipIf(route_message is None, "discord.py not installed")
class OnMessageCommandRoutingTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.orchestrator = _FakeOrchestrator()
        self.bot = _FakeBot({"create", "createPrivateChannel", "relaystatus"})
        register_runtime_events(
            self.bot,
            deps=RuntimeDeps(
                orchestrator=self.orchestrator,
                session_manager=SessionManager(window_seconds=600),
                space_manager=_FakeSpaces({501: asyncio.Event()}),
                notices=Notices(),
                command_prefix="!",
                shutdown_event=asyncio.Event(),
            ),
            boot=RuntimeBootDeps(
                close_panel_factory=lambda control_id: None,
                close_control_id="close_ticket",
                trigger_channel_id=123,
            ),
        )

    async def test_unknown_bang_text_in_ticket_is_relayed(self):
        message = _message(
            author=_FakeAuthor(42),
            channel_id=501,
            guild=SimpleNamespace(id=1),
            content="!what does io.net cost",
        )

        await self.bot.on_message(message)

        self.assertEqual(self.bot.processed, [])
        self.assertEqual(len(self.orchestrator.calls), 1)
        self.assertEqual(self.orchestrator.calls[0][0].text, "!what does io.net cost")

    async def test_help_text_in_ticket_is_relayed(self):
        message = _message(
            author=_FakeAuthor(42),
            channel_id=501,
            guild=SimpleNamespace(id=1),
            content="!help me pick a GPU",
        )

        await self.bot.on_message(message)

        self.assertEqual(self.bot.processed, [])
        self.assertEqual(len(self.orchestrator.calls), 1)

    async def test_registered_command_goes_to_command_handler(self):
        message = _message(
            author=_FakeAuthor(42),
            channel_id=501,
            guild=SimpleNamespace(id=1),
            content="!relaystatus",
        )

        await self.bot.on_message(message)

        self.assertEqual(self.bot.processed, [message])
        self.assertEqual(self.orchestrator.calls, [])

    async def test_bot_authors_are_dropped(self):
        author = _FakeAuthor(7)
        author.bot = True
        message = _message(author=author, channel_id=501, guild=SimpleNamespace(id=1), content="hi")

        await self.bot.on_message(message)

        self.assertEqual(self.bot.processed, [])
        self.assertEqual(self.orchestrator.calls, [])


@unittest.skipIf(command_name is None, "discord.py not installed")
class CommandNameTests(unittest.TestCase):
    def test_extracts_first_word_after_prefix(self):
        self.assertEqual(command_name("!create", "!"), "create")
        self.assertEqual(command_name("  !relayhistory 10", "!"), "relayhistory")

    def test_non_command_text(self):
        self.assertIsNone(command_name("hello", "!"))
        self.assertIsNone(command_name("!", "!"))
        self.assertIsNone(command_name("!   ", "!"))
        self.assertIsNone(command_name(None, "!"))


if __name__ == "__main__":
    unittest.main()
