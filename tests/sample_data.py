"""Sample tournaments and an in-memory calendar for tests."""
from datetime import datetime, timedelta, timezone
from itertools import count

from processor.models import ScheduledEvent, StreamRef, TournamentEvent, TournamentRecord
from storage.discord_calendar import CreateError, DeleteError


NOW = datetime(2024, 8, 11, 12, 0, tzinfo=timezone.utc)


def make_tournament(name='Cup A', start=None, end=None, **kwargs) -> TournamentRecord:
    """Build a TournamentRecord; times default to tomorrow relative to NOW."""
    start = start or NOW + timedelta(days=1)
    end = end or start + timedelta(hours=10)
    fields = dict(
        id=123456,
        name=name,
        slug='tournament/cup-a',
        start_at=int(start.timestamp()),
        end_at=int(end.timestamp()),
        country_code='DE',
        city='Berlin',
        addr_state='Berlin',
        num_attendees=300,
        venue_name='Messe Berlin',
        venue_address='Messe Berlin, Messedamm 22',
        timezone='Europe/Berlin',
        events=(
            TournamentEvent(id=1, name='Street Fighter 6', num_entrants=150,
                            videogame_name='Street Fighter 6'),
            TournamentEvent(id=2, name='Tekken 8', num_entrants=120,
                            videogame_name='Tekken 8'),
        ),
        streams=(StreamRef(stream_source='TWITCH', stream_name='berlinfgc'),)
    )
    fields.update(kwargs)
    return TournamentRecord(**fields)


class InMemoryCalendar:
    """Destination calendar double with injectable failures."""

    def __init__(self, name='Test Server', event_names=(), fail_create=(), fail_delete=()):
        self.name = name
        self._ids = count(1)
        self.events = {}
        self.fail_create = set(fail_create)
        self.fail_delete = set(fail_delete)
        self.created = []
        self.list_calls = 0
        for event_name in event_names:
            self._add(event_name)

    def _add(self, name):
        event = ScheduledEvent(id=str(next(self._ids)), name=name)
        self.events[event.id] = event
        return event

    def list_events(self):
        self.list_calls += 1
        return list(self.events.values())

    def create_event(self, descriptor):
        if descriptor.name in self.fail_create:
            raise CreateError(f"Discord rejected event '{descriptor.name}'")
        self.created.append(descriptor)
        return self._add(descriptor.name)

    def delete_event(self, event_id):
        event = self.events[event_id]
        if event.name in self.fail_delete:
            raise DeleteError(f"Failed to delete event {event_id}")
        del self.events[event_id]
