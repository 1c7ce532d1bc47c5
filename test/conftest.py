"""
Shared fixtures: bundled definitions and a few canned starting positions.
"""

import pytest

from veche.engine.utils import create_initial_game_state, get_default_definitions

from helpers import set_money


@pytest.fixture
def defs():
    return get_default_definitions()


@pytest.fixture
def state(defs):
    """Turn 1, resources phase, nobody has money."""
    return create_initial_game_state(defs)


@pytest.fixture
def construction_state(state):
    state.phase = "construction"
    return set_money(state, 10, 10, 10)


@pytest.fixture
def veche_state(state):
    state.phase = "veche"
    return set_money(state, 10, 10, 10)


@pytest.fixture
def events_state(state):
    state.phase = "events"
    return set_money(state, 10, 10, 10)
