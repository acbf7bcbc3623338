"""Discord guild scheduled-event calendar operations."""
import logging
from typing import List

import requests

from processor.models import CalendarEventDescriptor, ScheduledEvent

logger = logging.getLogger(__name__)


API_BASE_URL = "https://discord.com/api/v10"


class CalendarError(Exception):
    """Reading a destination calendar failed."""


class CreateError(CalendarError):
    """Creating a single event failed."""


class DeleteError(CalendarError):
    """Deleting a single event failed."""


def create_session(token: str) -> requests.Session:
    """
    Build an HTTP session authenticated as a Discord bot.

    Args:
        token: Discord bot token

    Returns:
        requests.Session carrying the bot authorization header
    """
    session = requests.Session()
    session.headers.update({
        'Authorization': f"Bot {token}",
        'User-Agent': "DiscordBot (https://start.gg, 1.0)"
    })
    return session


GUILDS_PAGE_SIZE = 200


def list_guilds(session: requests.Session, timeout: int = 30) -> List[dict]:
    """
    List the guilds the bot is a member of.

    Pages through the guild list with the "after" cursor until a short page
    is returned.

    Returns:
        List of {'id': str, 'name': str} dicts

    Raises:
        CalendarError: If the guild list cannot be read or is malformed
    """
    guilds = []
    params = {'limit': GUILDS_PAGE_SIZE}

    while True:
        try:
            response = session.get(
                f"{API_BASE_URL}/users/@me/guilds",
                params=params,
                timeout=timeout
            )
            response.raise_for_status()
            items = response.json()
            if not isinstance(items, list):
                raise ValueError(f"expected a list, got {type(items).__name__}")
            page = [
                {'id': str(item['id']), 'name': item.get('name') or str(item['id'])}
                for item in items
            ]
        except (requests.RequestException, ValueError, KeyError, TypeError, AttributeError) as e:
            raise CalendarError(f"Failed to list guilds: {e}") from e

        guilds.extend(page)
        if len(page) < GUILDS_PAGE_SIZE:
            return guilds
        params = {'limit': GUILDS_PAGE_SIZE, 'after': page[-1]['id']}


class DiscordCalendar:
    """Scheduled-event calendar of a single Discord guild."""

    MAX_DESCRIPTION_LENGTH = 1000
    MAX_LOCATION_LENGTH = 100
    PRIVACY_LEVEL_GUILD_ONLY = 2
    ENTITY_TYPE_EXTERNAL = 3

    def __init__(
        self,
        session: requests.Session,
        guild_id: str,
        guild_name: str,
        timeout: int = 30
    ):
        """
        Initialize the calendar for a guild.

        Args:
            session: Authenticated Discord HTTP session
            guild_id: Discord guild id
            guild_name: Guild name, used for logging
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.session = session
        self.guild_id = guild_id
        self.name = guild_name
        self.timeout = timeout
        self.events_url = f"{API_BASE_URL}/guilds/{guild_id}/scheduled-events"

    def __repr__(self) -> str:
        return f"DiscordCalendar(guild_id={self.guild_id!r}, name={self.name!r})"

    def list_events(self) -> List[ScheduledEvent]:
        """
        Retrieve all scheduled events of the guild.

        Returns:
            List of ScheduledEvent objects

        Raises:
            CalendarError: If the events cannot be read
        """
        try:
            response = self.session.get(self.events_url, timeout=self.timeout)
            response.raise_for_status()
            events = [
                ScheduledEvent(id=str(item['id']), name=item['name'])
                for item in response.json()
            ]
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            raise CalendarError(
                f"Failed to list events for guild '{self.name}': {e}"
            ) from e

        logger.debug(f"Retrieved {len(events)} events from guild '{self.name}'")
        return events

    def create_event(self, descriptor: CalendarEventDescriptor) -> ScheduledEvent:
        """
        Create an external scheduled event.

        Args:
            descriptor: Event to create

        Returns:
            The created ScheduledEvent

        Raises:
            CreateError: If Discord rejects the event or the request fails
        """
        payload = self._descriptor_to_payload(descriptor)

        try:
            response = self.session.post(
                self.events_url,
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
            item = response.json()
            return ScheduledEvent(id=str(item['id']), name=item['name'])
        except requests.HTTPError as e:
            raise CreateError(
                f"Discord rejected event '{descriptor.name}': "
                f"{e.response.status_code} {e.response.text}"
            ) from e
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            raise CreateError(f"Failed to create event '{descriptor.name}': {e}") from e

    def delete_event(self, event_id: str) -> None:
        """
        Delete a scheduled event.

        Raises:
            DeleteError: If the event cannot be deleted
        """
        try:
            response = self.session.delete(
                f"{self.events_url}/{event_id}",
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise DeleteError(f"Failed to delete event {event_id}: {e}") from e

    def _descriptor_to_payload(self, descriptor: CalendarEventDescriptor) -> dict:
        """
        Convert a CalendarEventDescriptor to a Discord request body.

        Description and location are truncated to Discord's limits. The name
        is sent unchanged so it keeps matching the tournament name.
        """
        return {
            'name': descriptor.name,
            'description': descriptor.description[:self.MAX_DESCRIPTION_LENGTH],
            'scheduled_start_time': descriptor.scheduled_start_time.isoformat(),
            'scheduled_end_time': descriptor.scheduled_end_time.isoformat(),
            'privacy_level': self.PRIVACY_LEVEL_GUILD_ONLY,
            'entity_type': self.ENTITY_TYPE_EXTERNAL,
            'entity_metadata': {
                'location': descriptor.location[:self.MAX_LOCATION_LENGTH]
            }
        }
