from __future__ import annotations

import unittest
from types import SimpleNamespace

from relay.backend import AssistantsBackend
from relay.backend import BackendError


def _client(run):
    calls: list[dict] = []

    def retrieve(**kwargs):
        calls.append(kwargs)
        return run

    runs = SimpleNamespace(retrieve=retrieve)
    client = SimpleNamespace(beta=SimpleNamespace(threads=SimpleNamespace(runs=runs)))
    return client, calls


class AssistantsBackendStatusTests(unittest.IsolatedAsyncioTestCase):
    async def test_failed_run_carries_last_error_code(self):
        run = SimpleNamespace(
            status="failed",
            last_error=SimpleNamespace(code="rate_limit_exceeded"),
            incomplete_details=None,
        )
        client, calls = _client(run)
        backend = AssistantsBackend(client=client, assistant_id="asst_1")

        status = await backend.get_run_status("thread_1", "run_1")

        self.assertEqual(status.status, "failed")
        self.assertEqual(status.error_code, "rate_limit_exceeded")
        self.assertEqual(calls, [{"run_id": "run_1", "thread_id": "thread_1"}])

    async def test_incomplete_run_carries_reason(self):
        run = SimpleNamespace(
            status="incomplete",
            last_error=None,
            incomplete_details=SimpleNamespace(reason="max_prompt_tokens"),
        )
        client, _ = _client(run)
        backend = AssistantsBackend(client=client, assistant_id="asst_1")

        status = await backend.get_run_status("thread_1", "run_1")

        self.assertEqual(status.status, "incomplete")
        self.assertEqual(status.error_code, "max_prompt_tokens")

    async def test_in_progress_run_has_no_code(self):
        run = SimpleNamespace(status="in_progress", last_error=None, incomplete_details=None)
        client, _ = _client(run)
        backend = AssistantsBackend(client=client, assistant_id="asst_1")

        status = await backend.get_run_status("thread_1", "run_1")

        self.assertIsNone(status.error_code)

    async def test_sdk_errors_become_backend_errors(self):
        def retrieve(**kwargs):
            raise ConnectionError("reset by peer")

        client = SimpleNamespace(
            beta=SimpleNamespace(threads=SimpleNamespace(runs=SimpleNamespace(retrieve=retrieve)))
        )
        backend = AssistantsBackend(client=client, assistant_id="asst_1")

        with self.assertRaises(BackendError):
            await backend.get_run_status("thread_1", "run_1")


if __name__ == "__main__":
    unittest.main()
