"""
Phase controller: income, per-phase resets, event draw and the closed four-phase cycle.
"""

from veche.engine import MAX_TURNS, PHASES
from veche.engine.actions import RandomValues, next_phase as next_phase_action
from veche.engine.effects import income_change, strength_penalty
from veche.engine.phases import calculate_income, next_phase
from veche.engine.reducer import apply_action
from veche.engine.state import ConstructionActions, PLANNING, Proposal


def test_income_formula(state):
    # 6 republic regions, no buildings
    assert calculate_income(state, state.players[0]) == 2.0
    state.players[0].improvements = 2
    assert calculate_income(state, state.players[0]) == 2.5
    state.regions["gdov"].controller = "order"
    assert calculate_income(state, state.players[0]) == 2.25


def test_income_modifier(state):
    state.active_effects.append(income_change("all", 0.5, 5))
    assert calculate_income(state, state.players[1]) == 3.0
    state.active_effects.append(income_change("Merchants", -1.5, 2))
    assert calculate_income(state, state.players[1]) == 0


def test_leaving_resources_pays_income(state, defs):
    state, outcome = next_phase(state, defs)
    assert state.phase == "construction"
    assert [p.money for p in state.players] == [2.0, 2.0, 2.0]
    assert outcome.payload == {"old_phase": "resources", "new_phase": "construction", "turn": 1}


def test_leaving_construction_resets_turn_order(construction_state, defs):
    construction_state.current_player = 2
    construction_state.selected_region = "ostrov"
    construction_state.construction_actions = (ConstructionActions(True, True),) * 3

    state, _ = next_phase(construction_state, defs, deterministic=True)

    assert state.phase == "events"
    assert state.current_player == 0
    assert state.selected_region == "pskov"
    assert all(ca == ConstructionActions() for ca in state.construction_actions)


def test_entering_events_draws_deterministically(construction_state, defs):
    state, outcome = next_phase(construction_state, defs, deterministic=True)
    assert state.current_event == defs.deck[0].id
    assert state.debug_event_index == 1
    assert state.event_votes == (None, None, None)
    assert state.event_resolved is False
    assert outcome.payload["event_drawn"] == defs.deck[0].id


def test_entering_events_draws_with_roll(construction_state, defs):
    state, _ = next_phase(construction_state, defs, random_values=RandomValues(event_roll=0.999))
    assert state.current_event == defs.deck[-1].id
    assert state.debug_event_index == 0


def test_leaving_events_clears_event(events_state, defs):
    events_state.current_event = "heresy"
    events_state.event_votes = ("x", None, None)
    events_state.event_resolved = True
    events_state.last_event_result = "Heresy spreads!"

    state, _ = next_phase(events_state, defs)

    assert state.phase == "veche"
    assert state.current_event is None
    assert state.event_votes == (None, None, None)
    assert state.event_resolved is False
    assert state.last_event_result is None


def test_leaving_veche_drops_open_proposals(veche_state, defs):
    veche_state.attack = Proposal(planning=PLANNING, target="bearhill", votes=(True, True, None))

    state, outcome = next_phase(veche_state, defs)

    assert state.phase == "resources"
    assert state.turn == 2
    assert state.attack == Proposal()
    assert [p.money for p in state.players] == [10, 10, 10]
    assert outcome.payload["turn"] == 2


def test_wraparound_decays_effects(veche_state, defs):
    veche_state.active_effects = [
        strength_penalty("all", 5, 1),
        strength_penalty("Nobles", 15, 3),
    ]
    state, _ = next_phase(veche_state, defs)
    assert len(state.active_effects) == 1
    assert state.active_effects[0].turns_remaining == 2


def test_phase_cycle_is_closed(state, defs):
    start_phase, start_turn = state.phase, state.turn
    for _ in range(len(PHASES)):
        result = apply_action(state, next_phase_action(), defs=defs, deterministic=True)
        assert result.ok
        state = result.new_state

    assert state.phase == start_phase
    assert state.turn == start_turn + 1
    assert [p.money for p in state.players] == [2.0, 2.0, 2.0]
    assert state.current_event is None
    assert state.current_player == 0
    assert not state.game_over


def test_match_ends_after_turn_limit(state, defs):
    state.turn = MAX_TURNS
    for _ in range(len(PHASES) - 1):
        result = apply_action(state, next_phase_action(), defs=defs, deterministic=True)
        state = result.new_state
    assert not state.game_over

    result = apply_action(state, next_phase_action(), defs=defs, deterministic=True)
    assert result.ok
    state = result.new_state
    assert state.turn == MAX_TURNS + 1
    assert state.game_over
    assert state.last_event_result == f"Turn {MAX_TURNS} is over. The veche counts its victory points."

    blocked = apply_action(state, next_phase_action(), defs=defs, deterministic=True)
    assert blocked.error == "game_over"
    assert blocked.new_state is state
