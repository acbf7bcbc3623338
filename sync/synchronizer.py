"""Synchronize start.gg tournaments into destination calendars."""
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from processor.event_mapper import EventMapper
from processor.models import ClearResult, ItemFailure, SyncResult, TournamentRecord
from storage.discord_calendar import DeleteError, DiscordCalendar
from sync.duplicate_index import DuplicateIndex

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EventSynchronizer:
    """Creates missing tournament events in a calendar and clears calendars."""

    MAX_EVENTS = 100

    def __init__(
        self,
        mapper: Optional[EventMapper] = None,
        max_events: int = MAX_EVENTS,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Initialize the synchronizer.

        Args:
            mapper: Mapper from tournaments to calendar events
            max_events: Maximum number of tournaments considered per run
            clock: Returns the current aware datetime
        """
        self.mapper = mapper or EventMapper()
        self.max_events = max_events
        self.clock = clock

    def sync_calendar(
        self,
        calendar: DiscordCalendar,
        tournaments: Optional[List[TournamentRecord]]
    ) -> SyncResult:
        """
        Create an event for every upcoming tournament not yet in the calendar.

        Existing events are read once and indexed by name. Tournaments that
        already ended are left out, tournaments whose name is indexed are
        counted as skipped, and every created name is indexed right away so
        a run never creates the same name twice. A failed creation is
        recorded and the run moves on to the next tournament.

        Another writer may add the same name to the calendar while a run is
        in progress; that event is not seen until the next run.

        Args:
            calendar: Destination calendar
            tournaments: Tournament records in source order

        Returns:
            SyncResult with created/skipped counts and per-item failures

        Raises:
            CalendarError: If the existing events cannot be read
        """
        result = SyncResult()

        if not tournaments:
            logger.warning(f"No tournaments found for calendar '{calendar.name}'")
            return result

        existing_events = calendar.list_events()
        index = DuplicateIndex.build(existing_events)
        logger.info(
            f"Found {len(existing_events)} existing events, "
            f"indexed {len(index)} event names in calendar '{calendar.name}'"
        )

        now = self.clock()
        for tournament in tournaments[:self.max_events]:
            try:
                descriptor = self.mapper.map_tournament(tournament)

                if descriptor.scheduled_end_time <= now:
                    continue

                if index.contains(tournament.name):
                    logger.info(f"Skipping duplicate tournament: '{tournament.name}'")
                    result.skipped += 1
                    continue

                created = calendar.create_event(descriptor)
                index.insert(created.name)
                result.created += 1
                logger.info(
                    f"Created tournament event '{created.name}' "
                    f"in calendar '{calendar.name}'"
                )
            except Exception as e:
                logger.error(
                    f"Error creating event for tournament '{tournament.name}': {e}"
                )
                result.failures.append(ItemFailure(name=tournament.name, error=str(e)))

        logger.info(
            f"Sync complete for calendar '{calendar.name}': "
            f"{result.created} created, {result.skipped} skipped, "
            f"{len(result.failures)} failed"
        )
        return result

    def clear_calendar(self, calendar: DiscordCalendar) -> ClearResult:
        """
        Delete every event in the calendar.

        Args:
            calendar: Destination calendar

        Returns:
            ClearResult with deleted count and per-item failures

        Raises:
            CalendarError: If the existing events cannot be read
        """
        logger.info(f"Clearing all events from calendar '{calendar.name}'")
        result = ClearResult()

        events = calendar.list_events()
        if not events:
            logger.info(f"No events found in calendar '{calendar.name}'")
            return result

        for event in events:
            try:
                calendar.delete_event(event.id)
                result.deleted += 1
                logger.info(f"Deleted event: '{event.name}'")
            except DeleteError as e:
                logger.error(f"Failed to delete event '{event.name}': {e}")
                result.failures.append(ItemFailure(name=event.name, error=str(e)))

        logger.info(
            f"Deleted {result.deleted} events from calendar '{calendar.name}'"
        )
        return result
