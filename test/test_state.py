"""
GameState construction, copying and (de)serialization.
"""

import pytest

from veche.engine import PHASES
from veche.engine.state import (
    ActiveEffect,
    ConstructionActions,
    GameState,
    PLANNING,
    Proposal,
    with_slot,
)
from veche.engine.utils import create_region_buildings


def test_initial_state(state, defs):
    assert state.turn == 1
    assert state.phase == PHASES[0]
    assert [p.faction for p in state.players] == ["Nobles", "Merchants", "Commoners"]
    assert all(p.money == 0 for p in state.players)
    assert "order_lands" not in state.regions
    assert len(state.regions) == 7
    assert state.regions["bearhill"].controller == "order"
    assert state.regions["pskov"].fortress is True
    assert state.selected_region == "pskov"
    assert not state.attack.is_open and not state.fortress.is_open


def test_capital_only_buildings_only_in_capital(defs):
    assert "merchant_mansion" in create_region_buildings("pskov", defs)
    assert "merchant_mansion" not in create_region_buildings("ostrov", defs)
    assert "noble_manor" in create_region_buildings("ostrov", defs)


def test_copy_is_independent(state):
    clone = state.copy()
    clone.players[0].money = 5
    clone.regions["ostrov"].buildings["noble_manor"] = 1
    assert state.players[0].money == 0
    assert state.regions["ostrov"].buildings["noble_manor"] == 0


def test_with_slot():
    votes = (None, None, None)
    assert with_slot(votes, 1, True) == (None, True, None)
    assert votes == (None, None, None)
    with pytest.raises(IndexError):
        with_slot(votes, 3, True)


def test_json_round_trip(state):
    state.phase = "veche"
    state.players[1].money = 3.5
    state.players[2].weapons = 2
    state.attack = Proposal(planning=PLANNING, target="bearhill", votes=(True, None, False))
    state.active_effects.append(ActiveEffect("strength", "all", -5, 2, "Heresy weakens unity"))
    state.construction_actions = (ConstructionActions(improvement=True), ConstructionActions(), ConstructionActions())

    restored = GameState.from_json(state.to_json())

    assert restored.to_dict() == state.to_dict()
    assert restored.attack.votes == (True, None, False)
    assert restored.attack.participants() == [0]


def test_wire_format_keys(state):
    data = state.to_dict()
    for key in ("attack_planning", "attack_target", "attack_votes",
                "fortress_planning", "fortress_target", "fortress_votes",
                "event_votes", "construction_actions", "debug_event_index"):
        assert key in data
    assert data["attack_votes"] == [None, None, None]


def test_from_dict_tolerates_missing_and_bad_fields():
    restored = GameState.from_dict({
        "phase": "lunch",
        "turn": "x",
        "current_player": 7,
        "attack_votes": ["true", None],
        "active_effects": [{"type": "income", "value": 0.5, "turns_remaining": 0}],
    })
    assert restored.phase == "resources"
    assert restored.turn == 1
    assert restored.current_player == 0
    assert restored.attack.votes == (True, None, None)
    assert restored.active_effects == []
    assert len(restored.construction_actions) == 3


def test_save_and_load(tmp_path, state):
    path = tmp_path / "game.json"
    state.players[0].money = 4
    state.save(str(path))
    assert GameState.load(str(path)).players[0].money == 4
