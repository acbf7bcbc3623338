"""Shared fixtures for tournament sync tests."""
import pytest

from sample_data import InMemoryCalendar, make_tournament


@pytest.fixture
def calendar():
    return InMemoryCalendar()


@pytest.fixture
def tournament():
    return make_tournament()
