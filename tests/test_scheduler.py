"""Unit tests for the twice-daily scheduler."""
import threading
import time
from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from sync.scheduler import TwiceDailyScheduler, next_run_time


@pytest.mark.parametrize('now, expected', [
    (datetime(2024, 8, 11, 6, 30), datetime(2024, 8, 11, 8, 0)),
    (datetime(2024, 8, 11, 8, 0), datetime(2024, 8, 11, 20, 0)),
    (datetime(2024, 8, 11, 13, 15), datetime(2024, 8, 11, 20, 0)),
    (datetime(2024, 8, 11, 20, 0), datetime(2024, 8, 12, 8, 0)),
    (datetime(2024, 8, 11, 23, 59), datetime(2024, 8, 12, 8, 0)),
    (datetime(2024, 12, 31, 21, 0), datetime(2025, 1, 1, 8, 0)),
])
def test_next_run_time(now, expected):
    """Test the next slot is strictly after now."""
    assert next_run_time(now) == expected


class TestTwiceDailyScheduler:
    """Test cases for TwiceDailyScheduler class."""

    def make_scheduler(self, job=None, now=datetime(2024, 8, 11, 13, 0)):
        backend = Mock()
        backend.running = False
        scheduler = TwiceDailyScheduler(
            job=job or Mock(),
            scheduler=backend,
            clock=lambda: now
        )
        return scheduler, backend

    def test_starts_idle(self):
        """Test no job is pending before start."""
        scheduler, backend = self.make_scheduler()

        assert not scheduler.armed
        backend.add_job.assert_not_called()

    def test_start_arms_single_job(self):
        """Test start arms one date job and starts the backend."""
        scheduler, backend = self.make_scheduler()

        scheduler.start()

        assert scheduler.armed
        assert scheduler.next_run == datetime(2024, 8, 11, 20, 0)
        backend.add_job.assert_called_once()
        kwargs = backend.add_job.call_args.kwargs
        assert kwargs['trigger'] == 'date'
        assert kwargs['run_date'] == datetime(2024, 8, 11, 20, 0)
        assert kwargs['id'] == TwiceDailyScheduler.JOB_ID
        assert kwargs['replace_existing'] is True
        backend.start.assert_called_once()

    def test_fire_runs_job_and_rearms(self):
        """Test firing runs the job then replaces the pending job."""
        job = Mock()
        scheduler, backend = self.make_scheduler(job=job)
        scheduler.arm()

        scheduler._fire()

        job.assert_called_once_with()
        assert backend.add_job.call_count == 2
        ids = {c.kwargs['id'] for c in backend.add_job.call_args_list}
        assert ids == {TwiceDailyScheduler.JOB_ID}
        assert scheduler.armed

    def test_fire_rearms_after_job_failure(self):
        """Test a failing job does not stop the schedule."""
        job = Mock(side_effect=RuntimeError('boom'))
        scheduler, backend = self.make_scheduler(job=job)

        scheduler._fire()

        job.assert_called_once()
        backend.add_job.assert_called_once()
        assert scheduler.armed

    def test_stop_returns_to_idle(self):
        """Test stop shuts the backend down and clears the pending run."""
        scheduler, backend = self.make_scheduler()
        scheduler.arm()
        backend.running = True

        scheduler.stop()

        backend.shutdown.assert_called_once_with(wait=False)
        assert not scheduler.armed

    def test_missed_event_rearms(self):
        """Test a dropped slot arms the next one."""
        scheduler, backend = self.make_scheduler()
        scheduler.arm()
        event = Mock(job_id=TwiceDailyScheduler.JOB_ID,
                     scheduled_run_time=datetime(2024, 8, 11, 8, 0))

        scheduler._on_missed(event)

        assert backend.add_job.call_count == 2
        assert scheduler.next_run == datetime(2024, 8, 11, 20, 0)

    def test_missed_event_for_other_job_is_ignored(self):
        """Test unrelated jobs do not rearm the sync job."""
        scheduler, backend = self.make_scheduler()

        scheduler._on_missed(Mock(job_id='other-job'))

        backend.add_job.assert_not_called()


def test_late_slot_still_runs_on_real_scheduler():
    """Test a slot hours in the past runs and the next slot is armed."""
    past = datetime.now() - timedelta(days=1)
    clock_values = [past.replace(hour=7, minute=0, second=0, microsecond=0)]
    ran = threading.Event()

    def clock():
        return clock_values.pop(0) if clock_values else datetime.now()

    scheduler = TwiceDailyScheduler(
        job=ran.set,
        scheduler=BackgroundScheduler(),
        clock=clock
    )
    scheduler.start()
    try:
        assert ran.wait(timeout=5)

        deadline = time.monotonic() + 5
        while time.monotonic() < deadline:
            if scheduler.next_run is not None and scheduler.next_run > datetime.now():
                break
            time.sleep(0.05)

        assert scheduler.armed
        assert scheduler.next_run > datetime.now()
        assert scheduler.scheduler.get_job(TwiceDailyScheduler.JOB_ID) is not None
    finally:
        scheduler.stop()
