"""start.gg GraphQL client for tournament listings."""
import logging
from typing import Any, List, Optional

import requests

from processor.models import StreamRef, TournamentEvent, TournamentRecord

logger = logging.getLogger(__name__)


TOURNAMENTS_QUERY = """
query TournamentsByCountry($cCode: String!, $perPage: Int!, $videogameIds: [ID!]) {
  tournaments(query: {
    perPage: $perPage
    filter: {
      countryCode: $cCode
      videogameIds: $videogameIds
    }
  }) {
    nodes {
      id
      name
      slug
      countryCode
      startAt
      endAt
      numAttendees
      venueAddress
      venueName
      city
      addrState
      timezone
      events {
        id
        name
        numEntrants
        videogame {
          id
          name
          displayName
        }
      }
      streams {
        streamName
        streamSource
      }
    }
  }
}
"""


class StartGGClient:
    """Client for the start.gg tournament API."""

    API_URL = "https://api.start.gg/gql/alpha"
    MAX_PER_PAGE = 100

    def __init__(self, token: Optional[str], timeout: int = 30):
        """
        Initialize the API client.

        Args:
            token: start.gg API token, may be None
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.token = token
        self.timeout = timeout
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()

    def fetch_tournaments(
        self,
        country_code: str,
        videogame_ids: List[int],
        per_page: int = MAX_PER_PAGE
    ) -> Optional[List[TournamentRecord]]:
        """
        Fetch upcoming tournaments for a country and set of videogames.

        Any failure (missing token, transport error, GraphQL errors or a
        malformed response) is logged and reported as None.

        Args:
            country_code: ISO country code, e.g. "DE"
            videogame_ids: start.gg videogame ids to filter by
            per_page: Maximum number of tournaments, capped at 100

        Returns:
            List of TournamentRecord objects, or None if no data is available
        """
        if not self.token:
            logger.warning("No START_GG_TOKEN configured, skipping tournament fetch")
            return None

        if not videogame_ids:
            logger.warning("No videogame ids given, skipping tournament fetch")
            return None

        per_page = max(1, min(per_page, self.MAX_PER_PAGE))
        variables = {
            'cCode': country_code.upper(),
            'perPage': per_page,
            'videogameIds': list(videogame_ids)
        }

        logger.info(
            f"Fetching up to {per_page} tournaments for country {variables['cCode']}, "
            f"videogame ids {', '.join(str(i) for i in videogame_ids)}"
        )

        try:
            payload = self._post_query(TOURNAMENTS_QUERY, variables)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching tournament data: {e}")
            return None

        nodes = self._extract_nodes(payload)
        if nodes is None:
            logger.error("Invalid response structure from start.gg API")
            return None

        tournaments = self._parse_tournaments(nodes)
        logger.info(f"Successfully fetched {len(tournaments)} tournaments")
        return tournaments

    def _post_query(self, query: str, variables: dict) -> Any:
        """
        Send a GraphQL query.

        Raises:
            requests.RequestException: On transport failure or HTTP error status
            ValueError: On a non-JSON body or a GraphQL error response
        """
        response = self.session.post(
            self.API_URL,
            json={'query': query, 'variables': variables},
            headers={'Authorization': f"Bearer {self.token}"},
            timeout=self.timeout
        )
        response.raise_for_status()

        data = response.json()
        if isinstance(data, dict) and data.get('errors'):
            raise ValueError(f"GraphQL query returned errors: {data['errors']}")

        return data

    def _extract_nodes(self, payload: Any) -> Optional[list]:
        """Return data.tournaments.nodes if the envelope has that shape."""
        if not isinstance(payload, dict):
            return None
        data = payload.get('data')
        if not isinstance(data, dict):
            return None
        tournaments = data.get('tournaments')
        if not isinstance(tournaments, dict):
            return None
        nodes = tournaments.get('nodes')
        if not isinstance(nodes, list):
            return None
        return nodes

    def _parse_tournaments(self, nodes: list) -> List[TournamentRecord]:
        tournaments = []

        for node in nodes:
            try:
                tournament = self._parse_tournament(node)
                if tournament:
                    tournaments.append(tournament)
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning(f"Failed to parse tournament node: {e}")
                continue

        return tournaments

    def _parse_tournament(self, node: dict) -> Optional[TournamentRecord]:
        """
        Parse a single tournament node.

        Args:
            node: Tournament node from the GraphQL response

        Returns:
            TournamentRecord or None if required fields are missing
        """
        required = ('id', 'name', 'startAt', 'endAt')
        missing = [key for key in required if node.get(key) is None]
        if missing:
            logger.warning(
                f"Tournament '{node.get('name')}' missing required fields: "
                f"{', '.join(missing)}"
            )
            return None

        events = tuple(
            TournamentEvent(
                id=event.get('id'),
                name=event.get('name') or '',
                num_entrants=event.get('numEntrants'),
                videogame_name=(event.get('videogame') or {}).get('displayName')
            )
            for event in node.get('events') or []
        )
        streams = tuple(
            StreamRef(
                stream_source=stream.get('streamSource'),
                stream_name=stream.get('streamName')
            )
            for stream in node.get('streams') or []
        )

        return TournamentRecord(
            id=int(node['id']),
            name=node['name'],
            slug=node.get('slug') or '',
            start_at=int(node['startAt']),
            end_at=int(node['endAt']),
            country_code=node.get('countryCode'),
            city=node.get('city'),
            addr_state=node.get('addrState'),
            num_attendees=node.get('numAttendees'),
            venue_name=node.get('venueName'),
            venue_address=node.get('venueAddress'),
            timezone=node.get('timezone'),
            events=events,
            streams=streams
        )
