from __future__ import annotations

import unittest

from relay.session_manager import SessionManager


class SessionManagerTests(unittest.TestCase):
    def test_unknown_user_is_not_admitted(self):
        sessions = SessionManager(window_seconds=600, clock=lambda: 0.0)
        self.assertFalse(sessions.is_admitted(42))

    def test_window_boundary(self):
        sessions = SessionManager(window_seconds=600, clock=lambda: 0.0)
        sessions.start_session(42, now=1000.0)

        self.assertTrue(sessions.is_admitted(42, now=1599.999))
        self.assertTrue(sessions.is_admitted(42, now=1600.0))
        self.assertFalse(sessions.is_admitted(42, now=1600.001))

    def test_expired_entry_is_dropped(self):
        sessions = SessionManager(window_seconds=600, clock=lambda: 0.0)
        sessions.start_session(42, now=1000.0)

        self.assertFalse(sessions.is_admitted(42, now=1700.0))
        self.assertIsNone(sessions.expiry_for(42))
        self.assertEqual(len(sessions), 0)

    def test_restart_extends_window(self):
        sessions = SessionManager(window_seconds=600, clock=lambda: 0.0)
        sessions.start_session(42, now=1000.0)
        sessions.start_session(42, now=1500.0)

        self.assertEqual(sessions.expiry_for(42), 2100.0)
        self.assertTrue(sessions.is_admitted(42, now=2000.0))

    def test_start_prunes_other_expired_sessions(self):
        sessions = SessionManager(window_seconds=600, clock=lambda: 0.0)
        sessions.start_session(1, now=0.0)
        sessions.start_session(2, now=1000.0)

        self.assertIsNone(sessions.expiry_for(1))
        self.assertEqual(len(sessions), 1)

    def test_sessions_are_per_user(self):
        sessions = SessionManager(window_seconds=600, clock=lambda: 0.0)
        sessions.start_session(1, now=0.0)
        self.assertTrue(sessions.is_admitted(1, now=10.0))
        self.assertFalse(sessions.is_admitted(2, now=10.0))


if __name__ == "__main__":
    unittest.main()
