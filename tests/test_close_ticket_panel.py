from __future__ import annotations

import unittest
from types import SimpleNamespace

try:
    from misc.adhoc_modules.close_ticket_panel import build_close_ticket_panel
    from misc.adhoc_modules.close_ticket_panel import on_control_activated
except ModuleNotFoundError:
    build_close_ticket_panel = None
    on_control_activated = None


class _FakeSpaceManager:
    def __init__(self, result: bool = True):
        self.result = result
        self.closed: list[tuple[int, int]] = []

    async def close_by_user(self, space_id, actor_id=None):
        self.closed.append((space_id, actor_id))
        return self.result


class _FakeResponse:
    def __init__(self):
        self.deferred = False

    async def defer(self, **kwargs):
        self.deferred = True


class _FakeFollowup:
    def __init__(self):
        self.sent: list[str] = []

    async def send(self, text, **kwargs):
        self.sent.append(text)


def _interaction(channel_id: int = 501, user_id: int = 42):
    return SimpleNamespace(
        channel_id=channel_id,
        user=SimpleNamespace(id=user_id),
        response=_FakeResponse(),
        followup=_FakeFollowup(),
    )


@unittest.skipIf(on_control_activated is None, "discord.py not installed")
class CloseTicketControlTests(unittest.IsolatedAsyncioTestCase):
    async def test_close_control_closes_space(self):
        spaces = _FakeSpaceManager()
        closed = await on_control_activated("close_ticket", 501, 42, space_manager=spaces)
        self.assertTrue(closed)
        self.assertEqual(spaces.closed, [(501, 42)])

    async def test_unknown_control_is_ignored(self):
        spaces = _FakeSpaceManager()
        closed = await on_control_activated("something_else", 501, 42, space_manager=spaces)
        self.assertFalse(closed)
        self.assertEqual(spaces.closed, [])

    async def test_panel_button_routes_press(self):
        presses: list[tuple[str, int, int]] = []

        async def on_close(control_id, channel_id, user_id):
            presses.append((control_id, channel_id, user_id))
            return True

        view = build_close_ticket_panel(control_id="close_ticket", on_close=on_close)
        self.assertIsNone(view.timeout)
        button = view.children[0]
        self.assertEqual(button.custom_id, "close_ticket")

        interaction = _interaction()
        await button.callback(interaction)

        self.assertTrue(interaction.response.deferred)
        self.assertEqual(presses, [("close_ticket", 501, 42)])
        self.assertEqual(interaction.followup.sent, [])

    async def test_panel_reports_already_closed(self):
        async def on_close(control_id, channel_id, user_id):
            return False

        view = build_close_ticket_panel(control_id="close_ticket", on_close=on_close)
        interaction = _interaction()
        await view.children[0].callback(interaction)

        self.assertEqual(len(interaction.followup.sent), 1)


if __name__ == "__main__":
    unittest.main()
