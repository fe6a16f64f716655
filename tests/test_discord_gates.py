from __future__ import annotations

import unittest
from types import SimpleNamespace
from unittest import mock

try:
    from misc.discord_gates import classify_channel_kind
    from misc.discord_gates import in_trigger_channel
    from misc.discord_gates import message_is_relayable
except ModuleNotFoundError:
    classify_channel_kind = None
    in_trigger_channel = None
    message_is_relayable = None


@unittest.skipIf(message_is_relayable is None, "discord.py not installed")
class DiscordGatesTests(unittest.TestCase):
    def test_bot_authors_are_ignored(self):
        message = SimpleNamespace(author=SimpleNamespace(bot=True), content="hello")
        self.assertFalse(message_is_relayable(message))

    def test_blank_messages_are_ignored(self):
        message = SimpleNamespace(author=SimpleNamespace(bot=False), content="   ")
        self.assertFalse(message_is_relayable(message))

    def test_human_text_is_relayable(self):
        message = SimpleNamespace(author=SimpleNamespace(bot=False), content="hello")
        self.assertTrue(message_is_relayable(message))

    def test_trigger_channel_match(self):
        self.assertTrue(in_trigger_channel(123, 123))
        self.assertFalse(in_trigger_channel(999, 123))

    def test_unset_trigger_channel_matches_nothing(self):
        self.assertFalse(in_trigger_channel(123, 0))
        self.assertFalse(in_trigger_channel(None, 123))

    def test_channel_kind(self):
        dm = SimpleNamespace(guild=None, channel=SimpleNamespace(id=1))
        self.assertEqual(classify_channel_kind(dm), "dm")

        text = SimpleNamespace(guild=SimpleNamespace(id=1), channel=SimpleNamespace(id=2))
        self.assertEqual(classify_channel_kind(text), "text")

        class FakeThread:
            id = 3

        thread = SimpleNamespace(guild=SimpleNamespace(id=1), channel=FakeThread())
        with mock.patch("misc.discord_gates.discord.Thread", FakeThread):
            self.assertEqual(classify_channel_kind(thread), "thread")


if __name__ == "__main__":
    unittest.main()
