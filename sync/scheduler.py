"""
Twice-daily scheduler for tournament synchronization.

Runs the sync job at 08:00 and 20:00 local time. Only one one-shot job is
ever pending; after it fires it is replaced by the job for the next slot.

Scheduler: APScheduler
"""
import logging
from datetime import datetime, time, timedelta
from typing import Callable, Optional, Sequence

from apscheduler.events import EVENT_JOB_MISSED
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler

logger = logging.getLogger(__name__)


RUN_TIMES = (time(8, 0), time(20, 0))


def next_run_time(now: datetime, run_times: Sequence[time] = RUN_TIMES) -> datetime:
    """
    Return the first run slot strictly after now.

    If every slot of today has passed, the first slot of tomorrow is used.

    Args:
        now: Current local datetime
        run_times: Daily wall-clock slots, in ascending order

    Returns:
        Datetime of the next run
    """
    for run_time in run_times:
        candidate = datetime.combine(now.date(), run_time, tzinfo=now.tzinfo)
        if candidate > now:
            return candidate

    tomorrow = now.date() + timedelta(days=1)
    return datetime.combine(tomorrow, run_times[0], tzinfo=now.tzinfo)


class TwiceDailyScheduler:
    """
    Runs a job at fixed daily times.

    States are idle (no pending job) and armed (exactly one pending job).
    """

    JOB_ID = 'tournament-sync'

    def __init__(
        self,
        job: Callable[[], object],
        scheduler: Optional[BaseScheduler] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Args:
            job: Callable run at every slot
            scheduler: APScheduler instance, a BlockingScheduler by default
            clock: Returns the current local datetime
        """
        self.job = job
        self.clock = clock
        self.scheduler = scheduler or BlockingScheduler(
            job_defaults={
                'coalesce': True,
                'max_instances': 1,
                'misfire_grace_time': None
            }
        )
        self.next_run: Optional[datetime] = None
        self.scheduler.add_listener(self._on_missed, EVENT_JOB_MISSED)

    @property
    def armed(self) -> bool:
        return self.next_run is not None

    def start(self) -> None:
        """Arm the first run and start the scheduler (blocks for BlockingScheduler)."""
        self.arm()
        self.scheduler.start()

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.next_run = None

    def arm(self) -> datetime:
        """Replace the pending job with one for the next slot."""
        now = self.clock()
        self.next_run = next_run_time(now)
        self.scheduler.add_job(
            self._fire,
            trigger='date',
            run_date=self.next_run,
            id=self.JOB_ID,
            replace_existing=True,
            coalesce=True,
            misfire_grace_time=None
        )

        hours_until = round((self.next_run - now).total_seconds() / 3600, 1)
        logger.info(
            f"Next scheduled run: {self.next_run.isoformat()} "
            f"(in {hours_until} hours)"
        )
        return self.next_run

    def _fire(self) -> None:
        self.next_run = None
        try:
            self.job()
        except Exception as e:
            logger.error(f"Scheduled sync failed: {e}", exc_info=True)
        finally:
            self.arm()

    def _on_missed(self, event) -> None:
        """A dropped slot must not leave the scheduler without a pending job."""
        if event.job_id != self.JOB_ID:
            return
        logger.warning(f"Scheduled run at {event.scheduled_run_time} was missed")
        self.next_run = None
        self.arm()
