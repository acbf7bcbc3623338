"""Name index of events already present in a destination calendar."""
from typing import Iterable, Set

from processor.models import ScheduledEvent


class DuplicateIndex:
    """Set of event names, built once per sync run and only grown."""

    def __init__(self, names: Iterable[str] = ()):
        self._names: Set[str] = set(names)

    @classmethod
    def build(cls, existing_events: Iterable[ScheduledEvent]) -> 'DuplicateIndex':
        """Index the names of the events currently in a calendar."""
        return cls(event.name for event in existing_events)

    def contains(self, name: str) -> bool:
        return name in self._names

    def insert(self, name: str) -> None:
        self._names.add(name)

    def __contains__(self, name: str) -> bool:
        return self.contains(name)

    def __len__(self) -> int:
        return len(self._names)
