"""Event mapper for turning start.gg tournaments into calendar events."""
import logging
from datetime import datetime, timezone
from typing import List

from processor.models import CalendarEventDescriptor, TournamentRecord

logger = logging.getLogger(__name__)


class EventMapper:
    """Mapper from TournamentRecord to CalendarEventDescriptor."""

    TOURNAMENT_BASE_URL = "https://start.gg"
    STREAM_SOURCE = "TWITCH"
    STREAM_BASE_URL = "https://www.twitch.tv"
    UNKNOWN = "TBD"

    def map_tournament(self, tournament: TournamentRecord) -> CalendarEventDescriptor:
        """
        Build the calendar event for a tournament.

        The tournament name is used verbatim since it is the key for
        duplicate detection in the destination calendar.

        Args:
            tournament: Tournament record from the source API

        Returns:
            CalendarEventDescriptor for the tournament
        """
        return CalendarEventDescriptor(
            name=tournament.name,
            description=self.build_description(tournament),
            scheduled_start_time=self.to_datetime(tournament.start_at),
            scheduled_end_time=self.to_datetime(tournament.end_at),
            location=self.build_location(tournament),
            url=self.tournament_url(tournament)
        )

    def build_description(self, tournament: TournamentRecord) -> str:
        """
        Compose the event description.

        Sections: event page link, games, venue and Twitch streams. Empty
        sections are left out.

        Args:
            tournament: Tournament record

        Returns:
            Description text
        """
        description = f"🔗 Event Page: {self.tournament_url(tournament)}\n\n"

        games = [event.name for event in tournament.events if event.name]
        if games:
            description += f"🎮 Games: {', '.join(games)}\n"

        if tournament.venue_name:
            description += f"📍 Venue: {tournament.venue_name}\n"

        stream_links = [
            f"{self.STREAM_BASE_URL}/{stream.stream_name}"
            for stream in tournament.streams
            if stream.stream_source == self.STREAM_SOURCE and stream.stream_name
        ]
        if stream_links:
            label = "Streams" if len(stream_links) > 1 else "Stream"
            description += f"📺 {label}: {', '.join(stream_links)}"

        return description

    def build_location(self, tournament: TournamentRecord) -> str:
        """Venue address, falling back to "{city}, {state}", then "TBD"."""
        if tournament.venue_address:
            return tournament.venue_address
        return self.city_and_state(tournament) or self.UNKNOWN

    @staticmethod
    def city_and_state(tournament: TournamentRecord) -> str:
        return ", ".join(part for part in (tournament.city, tournament.addr_state) if part)

    def tournament_url(self, tournament: TournamentRecord) -> str:
        return f"{self.TOURNAMENT_BASE_URL}/{tournament.slug}"

    @staticmethod
    def to_datetime(timestamp: int) -> datetime:
        """Convert Unix seconds to an aware UTC datetime."""
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)

    def preview_events(
        self,
        tournaments: List[TournamentRecord]
    ) -> List[CalendarEventDescriptor]:
        """
        Build one preview event per tournament sub-event.

        Used by the API-only and test modes to show what the API returns
        without writing to any calendar.

        Args:
            tournaments: Tournament records from the source API

        Returns:
            List of preview descriptors named "{tournament} - {game}"
        """
        previews = []

        for tournament in tournaments:
            base = self.map_tournament(tournament)
            for event in tournament.events:
                game = event.videogame_name or event.name
                entrants = event.num_entrants if event.num_entrants else self.UNKNOWN
                description = (
                    f"🏆 Tournament: {tournament.name}\n"
                    f"🎮 Game: {game}\n"
                    f"👥 Entrants: {entrants}\n"
                    f"🌍 Country: {tournament.country_code or self.UNKNOWN}\n"
                    f"🏙️ Location: {self.city_and_state(tournament) or self.UNKNOWN}\n"
                    f"📍 Venue: {tournament.venue_name or tournament.venue_address or self.UNKNOWN}\n"
                    f"🕐 Timezone: {tournament.timezone or self.UNKNOWN}"
                )
                previews.append(CalendarEventDescriptor(
                    name=f"{tournament.name} - {game}",
                    description=description,
                    scheduled_start_time=base.scheduled_start_time,
                    scheduled_end_time=base.scheduled_end_time,
                    location=base.location,
                    url=base.url
                ))

        logger.info(
            f"Built {len(previews)} preview events from "
            f"{len(tournaments)} tournaments"
        )
        return previews
