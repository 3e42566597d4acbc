"""Tests for request_audit/tasks.py — BackgroundTasks."""

import threading

from request_audit.tasks import BackgroundTasks


class TestBackgroundTasks:
    def test_runs_callable_with_args(self):
        tasks = BackgroundTasks()
        results = []
        tasks.submit(results.append, 42)
        assert tasks.join(timeout=5)
        assert results == [42]
        assert tasks.active_count == 0

    def test_exception_is_logged_not_raised(self, caplog):
        tasks = BackgroundTasks()

        def explode():
            raise RuntimeError("boom")

        thread = tasks.submit(explode)
        assert tasks.join(timeout=5)
        assert not thread.is_alive()
        assert "Background task explode failed" in caplog.text

    def test_join_waits_for_nested_submissions(self):
        tasks = BackgroundTasks()
        done = threading.Event()

        def outer():
            tasks.submit(done.set)

        tasks.submit(outer)
        assert tasks.join(timeout=5)
        assert done.is_set()

    def test_join_times_out(self):
        tasks = BackgroundTasks()
        gate = threading.Event()
        tasks.submit(gate.wait, 5)
        try:
            assert tasks.join(timeout=0.05) is False
        finally:
            gate.set()
        assert tasks.join(timeout=5)

    def test_threads_are_daemons(self):
        tasks = BackgroundTasks()
        gate = threading.Event()
        thread = tasks.submit(gate.wait, 5)
        assert thread.daemon
        gate.set()
        tasks.join(timeout=5)
