from contextlib import contextmanager

import pytest
import tenacity

from services.scheduler import JobScheduler, ScheduledJob, build_default_jobs
from utils.errors import ValidationError


@pytest.fixture
def session_factory(db):
    @contextmanager
    def factory():
        yield db
    return factory


def _scheduler(session_factory, *jobs):
    return JobScheduler(list(jobs), session_factory=session_factory, retry_wait=tenacity.wait_none())


class TestJobScheduler:

    def test_status_before_any_run(self, session_factory):
        scheduler = _scheduler(session_factory, ScheduledJob("noop", "does nothing", {"hour": 9, "minute": 0}, lambda db: 0))

        status = scheduler.status()["noop"]

        assert status["enabled"] is True
        assert status["running"] is False
        assert status["next_run_time"] is not None
        assert status["next_run_time"].hour == 9
        assert status["last_run_at"] is None
        assert status["last_success"] is None

    def test_run_job_records_result(self, session_factory, db):
        seen = []
        scheduler = _scheduler(session_factory, ScheduledJob("count", "", {"hour": 1}, lambda s: seen.append(s) or 7))

        result = scheduler.run_job("count")

        assert result["success"] is True
        assert result["result"] == 7
        assert seen == [db]
        status = scheduler.status()["count"]
        assert status["last_success"] is True
        assert status["last_result"] == 7
        assert status["last_run_at"] is not None

    def test_run_job_reports_failure(self, session_factory):
        def broken(db):
            raise RuntimeError("database unavailable")

        scheduler = _scheduler(session_factory, ScheduledJob("broken", "", {"hour": 1}, broken))

        result = scheduler.run_job("broken")

        assert result["success"] is False
        assert result["error"] == "database unavailable"
        assert scheduler.status()["broken"]["last_error"] == "database unavailable"

    def test_run_job_runs_once(self, session_factory):
        calls = []

        def broken(db):
            calls.append(1)
            raise RuntimeError("fail")

        scheduler = _scheduler(session_factory, ScheduledJob("broken", "", {"hour": 1}, broken))
        scheduler.run_job("broken")

        assert len(calls) == 1

    def test_unknown_job(self, session_factory):
        scheduler = _scheduler(session_factory)

        with pytest.raises(ValidationError):
            scheduler.run_job("does-not-exist")
        with pytest.raises(ValidationError):
            scheduler.set_enabled("does-not-exist", False)

    def test_disable_clears_next_run_time(self, session_factory):
        scheduler = _scheduler(session_factory, ScheduledJob("noop", "", {"hour": 9}, lambda db: 0))

        status = scheduler.set_enabled("noop", False)

        assert status["enabled"] is False
        assert status["next_run_time"] is None

        assert scheduler.set_enabled("noop", True)["next_run_time"] is not None

    def test_scheduled_fire_retries_until_success(self, session_factory):
        attempts = []

        def flaky(db):
            attempts.append(1)
            if len(attempts) < 3:
                raise RuntimeError("transient")
            return "ok"

        scheduler = _scheduler(session_factory, ScheduledJob("flaky", "", {"hour": 1}, flaky))

        scheduler._run_scheduled("flaky")

        assert len(attempts) == 3
        assert scheduler.status()["flaky"]["last_success"] is True
        assert scheduler.status()["flaky"]["last_result"] == "ok"

    def test_scheduled_fire_gives_up_after_three_attempts(self, session_factory):
        attempts = []

        def broken(db):
            attempts.append(1)
            raise RuntimeError("still down")

        scheduler = _scheduler(session_factory, ScheduledJob("broken", "", {"hour": 1}, broken))

        scheduler._run_scheduled("broken")

        assert len(attempts) == 3
        assert scheduler.status()["broken"]["last_success"] is False

    def test_disabled_job_skips_scheduled_fire(self, session_factory):
        calls = []
        scheduler = _scheduler(session_factory, ScheduledJob("noop", "", {"hour": 1}, lambda db: calls.append(1)))
        scheduler.set_enabled("noop", False)

        scheduler._run_scheduled("noop")

        assert calls == []
        assert scheduler.status()["noop"]["last_run_at"] is None

    def test_start_and_shutdown(self, session_factory):
        scheduler = _scheduler(
            session_factory,
            ScheduledJob("on", "", {"hour": 9}, lambda db: 0),
            ScheduledJob("off", "", {"hour": 10}, lambda db: 0, enabled=False),
        )
        scheduler.start()
        try:
            assert scheduler.running is True
            status = scheduler.status()
            assert status["on"]["next_run_time"] is not None
            assert status["off"]["next_run_time"] is None
        finally:
            scheduler.shutdown()

        assert scheduler.running is False


class TestDefaultJobs:

    def test_job_table(self):
        jobs = {job.name: job for job in build_default_jobs()}

        assert jobs["payment-reminder-5-days"].trigger_args == {"hour": 9, "minute": 0}
        assert jobs["payment-reminder-1-day"].trigger_args == {"hour": 18, "minute": 0}
        assert jobs["overdue-notifications"].trigger_args == {"hour": 10, "minute": 0}
        assert jobs["monthly-bill-generation"].trigger_args == {"day": 1, "hour": 8, "minute": 0}
        assert jobs["notification-cleanup"].trigger_args == {"day_of_week": "sun", "hour": 1, "minute": 0}

    def test_default_jobs_run_against_empty_database(self, session_factory):
        scheduler = _scheduler(session_factory, *build_default_jobs())

        for name in scheduler.jobs:
            result = scheduler.run_job(name)
            assert result["success"] is True, result["error"]
            assert result["result"] == 0
