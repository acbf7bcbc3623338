"""Runtime context holding clients and destination calendars."""
import logging
from typing import List, Optional

import requests

from config import ConfigurationError, Settings
from startgg.tournament_client import StartGGClient
from storage.discord_calendar import (
    CalendarError,
    DiscordCalendar,
    create_session,
    list_guilds,
)

logger = logging.getLogger(__name__)


class BotContext:
    """
    Owns the HTTP sessions and the calendars served by one bot process.

    Nothing is connected until open() is called; close() releases every
    session. Also usable as a context manager.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.source = StartGGClient(
            token=settings.startgg_token,
            timeout=settings.timeout_seconds
        )
        self.discord_session: Optional[requests.Session] = None
        self.calendars: List[DiscordCalendar] = []

    def open(self) -> 'BotContext':
        """
        Connect to Discord and discover one calendar per guild.

        Raises:
            ConfigurationError: If no Discord token is configured
            CalendarError: If the guild list cannot be read
        """
        if not self.settings.discord_token:
            raise ConfigurationError("DISCORD_TOKEN is not set")

        self.discord_session = create_session(self.settings.discord_token)
        self.refresh_calendars()
        return self

    def refresh_calendars(self) -> List[DiscordCalendar]:
        """
        Re-read the guild list so joined and left servers are picked up.

        The previous calendars are kept if the guild list cannot be read.

        Raises:
            CalendarError: If the guild list cannot be read
        """
        if self.discord_session is None:
            raise CalendarError("Discord session is not open")

        guilds = list_guilds(self.discord_session, timeout=self.settings.timeout_seconds)

        self.calendars = [
            DiscordCalendar(
                session=self.discord_session,
                guild_id=guild['id'],
                guild_name=guild['name'],
                timeout=self.settings.timeout_seconds
            )
            for guild in guilds
        ]

        logger.info(f"Bot is connected to {len(self.calendars)} server(s)")
        for calendar in self.calendars:
            logger.info(f"Server: {calendar.name} (ID: {calendar.guild_id})")

        return self.calendars

    def close(self) -> None:
        self.source.close()
        if self.discord_session is not None:
            self.discord_session.close()
            self.discord_session = None
        self.calendars = []

    def __enter__(self) -> 'BotContext':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
