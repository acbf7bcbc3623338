"""Data models for tournament and calendar event processing."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class TournamentEvent:
    """Sub-event (bracket) of a tournament."""
    id: Optional[int]
    name: str
    num_entrants: Optional[int] = None
    videogame_name: Optional[str] = None


@dataclass(frozen=True)
class StreamRef:
    """Stream attached to a tournament."""
    stream_source: Optional[str]
    stream_name: Optional[str]


@dataclass(frozen=True)
class TournamentRecord:
    """Tournament as returned by the start.gg API."""
    id: int
    name: str
    slug: str
    start_at: int
    end_at: int
    country_code: Optional[str] = None
    city: Optional[str] = None
    addr_state: Optional[str] = None
    num_attendees: Optional[int] = None
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    timezone: Optional[str] = None
    events: Tuple[TournamentEvent, ...] = ()
    streams: Tuple[StreamRef, ...] = ()


@dataclass(frozen=True)
class CalendarEventDescriptor:
    """Calendar-ready representation of one tournament."""
    name: str
    description: str
    scheduled_start_time: datetime
    scheduled_end_time: datetime
    location: str
    url: str


@dataclass(frozen=True)
class ScheduledEvent:
    """Event currently stored in a destination calendar."""
    id: str
    name: str


@dataclass
class ItemFailure:
    """Create or delete that failed for a single event."""
    name: str
    error: str


@dataclass
class SyncResult:
    """Result of a sync operation against one calendar."""
    created: int = 0
    skipped: int = 0
    failures: List[ItemFailure] = field(default_factory=list)


@dataclass
class ClearResult:
    """Result of a clear operation against one calendar."""
    deleted: int = 0
    failures: List[ItemFailure] = field(default_factory=list)
