"""Unit tests for WorkerDaemon."""

from unittest.mock import MagicMock, patch

import pytest
import redis

from flowline.worker_daemon import WorkerDaemon


@pytest.fixture
def engine():
    return MagicMock()


@pytest.fixture
def scheduler():
    return MagicMock()


@pytest.fixture
def daemon(engine, scheduler):
    return WorkerDaemon(engine, scheduler, poll_interval=0.01)


class TestWorkerDaemonInit:
    """Tests for WorkerDaemon initialization."""

    def test_requires_engine(self, scheduler):
        with pytest.raises(ValueError, match="engine is required"):
            WorkerDaemon(None, scheduler)

    def test_requires_scheduler(self, engine):
        with pytest.raises(ValueError, match="scheduler is required"):
            WorkerDaemon(engine, None)

    def test_requires_positive_interval(self, engine, scheduler):
        with pytest.raises(ValueError, match="poll_interval must be positive"):
            WorkerDaemon(engine, scheduler, poll_interval=0)


class TestProcessDue:
    """Tests for a single polling pass."""

    def test_resumes_claimed_instances(self, daemon, engine, scheduler):
        scheduler.claim_due.return_value = ["inst-1", "inst-2"]

        assert daemon.process_due() == 2
        engine.resume_instance.assert_any_call("inst-1")
        engine.resume_instance.assert_any_call("inst-2")

    def test_nothing_due(self, daemon, engine, scheduler):
        scheduler.claim_due.return_value = []
        assert daemon.process_due() == 0
        engine.resume_instance.assert_not_called()

    def test_one_failure_does_not_stop_batch(self, daemon, engine, scheduler):
        scheduler.claim_due.return_value = ["bad", "good"]
        engine.resume_instance.side_effect = [RuntimeError("boom"), None]

        assert daemon.process_due() == 1
        assert engine.resume_instance.call_count == 2


class TestRun:
    """Tests for the daemon loop."""

    def test_stops_when_signalled(self, daemon, scheduler):
        def claim(count):
            daemon.stop()
            return []

        scheduler.claim_due.side_effect = claim

        with patch("flowline.worker_daemon.time.sleep") as mock_sleep:
            daemon.run()

        assert not daemon.running
        mock_sleep.assert_called_once_with(0.01)

    def test_survives_redis_errors(self, daemon, scheduler):
        calls = []

        def claim(count):
            calls.append(count)
            if len(calls) == 1:
                raise redis.ConnectionError("lost")
            daemon.stop()
            return []

        scheduler.claim_due.side_effect = claim

        with patch("flowline.worker_daemon.time.sleep"):
            daemon.run()

        assert len(calls) == 2
