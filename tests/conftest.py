"""Pytest fixtures for Steam Tycoon."""

import logging
import random

import pytest

from helpers import build_test_map, make_engine
from steamtycoon.models.map_descriptor import tutorial_map

# Suppress engine logging for cleaner test output
logging.basicConfig(level=logging.WARNING, format="%(message)s")


@pytest.fixture
def rng():
    return random.Random(1889)


@pytest.fixture
def test_map():
    return build_test_map()


@pytest.fixture
def engine():
    """Two-player engine on the test map, sitting in IssueShares."""
    return make_engine()


@pytest.fixture
def tutorial_engine():
    """Two-player engine on the tutorial map."""
    return make_engine(descriptor=tutorial_map())
