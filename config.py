"""Configuration loaded from the process environment."""
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import load_dotenv


DEFAULT_COUNTRY_CODE = 'DE'
DEFAULT_VIDEOGAME_IDS = '1'


class ConfigurationError(Exception):
    """Required configuration is missing."""


@dataclass
class Settings:
    """Settings for one bot process."""
    discord_token: Optional[str]
    startgg_token: Optional[str]
    country_code: str = DEFAULT_COUNTRY_CODE
    videogame_ids: List[int] = field(default_factory=lambda: [1])
    log_level: str = 'INFO'
    timeout_seconds: int = 30
    max_events: int = 100


def parse_videogame_ids(value: str) -> List[int]:
    """
    Parse a comma separated list of videogame ids.

    Raises:
        ValueError: If an entry is not an integer
    """
    return [int(part.strip()) for part in value.split(',') if part.strip()]


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Read settings from environment variables.

    A .env file in the working directory is loaded first when reading the
    real process environment.

    Args:
        environ: Mapping to read instead of os.environ

    Returns:
        Settings object
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    return Settings(
        discord_token=environ.get('DISCORD_TOKEN') or None,
        startgg_token=environ.get('START_GG_TOKEN') or None,
        country_code=environ.get('COUNTRY_CODE', DEFAULT_COUNTRY_CODE),
        videogame_ids=parse_videogame_ids(
            environ.get('VIDEOGAME_IDS', DEFAULT_VIDEOGAME_IDS)
        ),
        log_level=environ.get('LOG_LEVEL', 'INFO'),
        timeout_seconds=int(environ.get('TIMEOUT_SECONDS', '30')),
        max_events=int(environ.get('MAX_EVENTS', '100'))
    )
