"""Discord bot that adds start.gg tournaments to server event calendars."""
import argparse
import json
import logging
import sys
import time
from typing import Any, Dict, List, Optional

from config import ConfigurationError, Settings, load_settings, parse_videogame_ids
from processor.event_mapper import EventMapper
from processor.models import CalendarEventDescriptor
from startgg.tournament_client import StartGGClient
from storage.discord_calendar import CalendarError
from sync.context import BotContext
from sync.scheduler import TwiceDailyScheduler
from sync.synchronizer import EventSynchronizer

logger = logging.getLogger(__name__)


# Attributes every LogRecord carries; anything else came in through extra=
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {
    'message', 'asctime'
}


class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def refresh_calendars(context: BotContext) -> List[str]:
    """
    Pick up servers joined or left since the last run.

    If the guild list cannot be read the last known calendars are used.

    Returns:
        Errors to report in the run summary
    """
    try:
        context.refresh_calendars()
    except CalendarError as e:
        logger.error(f"Using last known servers, guild refresh failed: {e}")
        return [str(e)]
    return []


def run_sync_task(
    context: BotContext,
    synchronizer: EventSynchronizer,
    country_code: str,
    videogame_ids: List[int]
) -> Dict[str, Any]:
    """
    Fetch tournaments once and sync them into every calendar in turn.

    Args:
        context: Opened bot context
        synchronizer: Synchronizer used for each calendar
        country_code: Country filter for the tournament query
        videogame_ids: Videogame filter for the tournament query

    Returns:
        Summary statistics of the run
    """
    start_time = time.time()
    errors = refresh_calendars(context)
    summary: Dict[str, Any] = {
        'calendars': len(context.calendars),
        'tournaments_fetched': 0,
        'events_created': 0,
        'events_skipped': 0,
        'errors': errors
    }

    if not context.calendars:
        logger.warning("Bot is not in any servers, nothing to sync")
        return summary

    tournaments = context.source.fetch_tournaments(
        country_code,
        videogame_ids,
        per_page=StartGGClient.MAX_PER_PAGE
    )
    if tournaments is None:
        logger.warning("No valid tournament data received, skipping this cycle")
        summary['errors'].append('Tournament data unavailable')
        return summary

    summary['tournaments_fetched'] = len(tournaments)

    for calendar in context.calendars:
        try:
            result = synchronizer.sync_calendar(calendar, tournaments)
        except CalendarError as e:
            logger.error(f"Skipping calendar '{calendar.name}': {e}")
            summary['errors'].append(str(e))
            continue

        summary['events_created'] += result.created
        summary['events_skipped'] += result.skipped
        summary['errors'].extend(
            f"{failure.name}: {failure.error}" for failure in result.failures
        )

    summary['duration_seconds'] = round(time.time() - start_time, 2)
    logger.info(
        f"Completed sync task for {len(context.calendars)} server(s)",
        extra={
            'events_created': summary['events_created'],
            'events_skipped': summary['events_skipped'],
            'events_failed': len(summary['errors'])
        }
    )
    return summary


def run_clear_task(
    context: BotContext,
    synchronizer: EventSynchronizer
) -> Dict[str, Any]:
    """
    Delete every event from every calendar.

    Returns:
        Summary statistics of the run
    """
    errors = refresh_calendars(context)
    summary: Dict[str, Any] = {
        'calendars': len(context.calendars),
        'events_deleted': 0,
        'errors': errors
    }

    if not context.calendars:
        logger.warning("Bot is not in any servers, nothing to clear")
        return summary

    for calendar in context.calendars:
        try:
            result = synchronizer.clear_calendar(calendar)
        except CalendarError as e:
            logger.error(f"Error clearing events from '{calendar.name}': {e}")
            summary['errors'].append(str(e))
            continue

        summary['events_deleted'] += result.deleted
        summary['errors'].extend(
            f"{failure.name}: {failure.error}" for failure in result.failures
        )

    logger.info(
        f"Completed clear events task. Deleted {summary['events_deleted']} "
        f"total events from {len(context.calendars)} server(s)",
        extra={'events_failed': len(summary['errors'])}
    )
    return summary


def run_api_preview(
    source: StartGGClient,
    mapper: EventMapper,
    country_code: str,
    videogame_ids: List[int]
) -> Optional[List[CalendarEventDescriptor]]:
    """
    Fetch tournaments and log the events they would produce.

    Returns:
        Preview descriptors, or None if no data is available
    """
    tournaments = source.fetch_tournaments(country_code, videogame_ids)
    if tournaments is None:
        return None

    previews = mapper.preview_events(tournaments)
    for preview in previews:
        logger.info(
            f"Event preview: {preview.name}",
            extra={
                'description': preview.description,
                'start': preview.scheduled_start_time.isoformat(),
                'end': preview.scheduled_end_time.isoformat(),
                'location': preview.location,
                'url': preview.url
            }
        )
    return previews


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Add start.gg tournaments to Discord server event calendars."
    )
    modes = parser.add_mutually_exclusive_group()
    modes.add_argument('--test', '-t', action='store_true',
                       help="Log in, preview API data and exit")
    modes.add_argument('--trigger', '--manual', action='store_true',
                       help="Create events once and exit")
    modes.add_argument('--clear', '--clear-events', action='store_true',
                       help="Delete all events and exit")
    modes.add_argument('--api-only', '-a', action='store_true',
                       help="Preview API data without logging in to Discord")
    parser.add_argument('--country', help="Country code override, e.g. DE")
    parser.add_argument('--games', type=parse_videogame_ids,
                        help="Comma separated videogame id override, e.g. 1,1386")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    """
    Run the bot in the mode selected on the command line.

    Without a mode flag the bot syncs once, then keeps syncing at 08:00
    and 20:00 until interrupted.

    Returns:
        Process exit code
    """
    args = parse_args(argv)
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    country_code = args.country or settings.country_code
    videogame_ids = args.games or settings.videogame_ids
    mapper = EventMapper()
    synchronizer = EventSynchronizer(mapper=mapper, max_events=settings.max_events)

    if args.api_only:
        logger.info("Running API test without Discord bot")
        source = StartGGClient(settings.startgg_token, timeout=settings.timeout_seconds)
        try:
            run_api_preview(source, mapper, country_code, videogame_ids)
        finally:
            source.close()
        logger.info("API test completed")
        return 0

    context = BotContext(settings)
    try:
        context.open()

        if args.test:
            logger.info("Running in test mode, API preview only")
            run_api_preview(context.source, mapper, country_code, videogame_ids)
            return 0

        if args.trigger:
            logger.info("Manual trigger mode, creating events now")
            run_sync_task(context, synchronizer, country_code, videogame_ids)
            return 0

        if args.clear:
            logger.info("Clear events mode, deleting all events now")
            run_clear_task(context, synchronizer)
            return 0

        run_sync_task(context, synchronizer, country_code, videogame_ids)
        scheduler = TwiceDailyScheduler(
            job=lambda: run_sync_task(context, synchronizer, country_code, videogame_ids)
        )
        try:
            scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler stopped")
            scheduler.stop()
        return 0

    except (ConfigurationError, CalendarError) as e:
        logger.error(f"Bot startup failed: {e}", extra={'error_type': type(e).__name__})
        return 1
    finally:
        context.close()


if __name__ == '__main__':
    sys.exit(main())
