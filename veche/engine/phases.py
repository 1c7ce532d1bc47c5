"""
Phase controller.
Phase order: resources -> construction -> events -> veche -> (resources, next turn)

Every transition applies exactly the exit effects of the phase being left and the entry
effects of the phase being entered:
- leaving resources: income is paid to every player
- leaving construction: construction turn order and per-turn flags reset
- entering events: event slot reset, next event drawn
- leaving events: event slot, votes and result text cleared
- leaving veche: open proposals are dropped (free)
- entering resources (wraparound): turn + 1, active effects decay; passing the
  turn limit ends the match
"""

from veche.engine import (
    BASE_INCOME,
    INCOME_PER_IMPROVEMENT,
    INCOME_PER_REGION,
    MAX_TURNS,
    PHASES,
)
from veche.engine.actions import RandomValues
from veche.engine.definitions import GameDefinitions
from veche.engine.effects import decay, income_modifier
from veche.engine.event_deck import draw_event
from veche.engine.regions import count_republic_regions
from veche.engine.results import ActionOutcome, phase_changed
from veche.engine.state import EMPTY_VOTES, GameState, Player, Proposal, default_construction_actions


def calculate_income(state: GameState, player: Player) -> float:
    """(0.5 + 0.25 per republic region + 0.25 per own improvement) x income modifier."""
    base = (
        BASE_INCOME
        + INCOME_PER_REGION * count_republic_regions(state.regions)
        + INCOME_PER_IMPROVEMENT * player.improvements
    )
    return base * income_modifier(state.active_effects, player.faction)


def _pay_income(state: GameState) -> dict[str, float]:
    # All incomes are computed from the pre-payment state
    incomes = [calculate_income(state, p) for p in state.players]
    for player, income in zip(state.players, incomes):
        player.money = max(0, player.money + income)
    return {p.faction: income for p, income in zip(state.players, incomes)}


def _reset_construction(state: GameState, defs: GameDefinitions) -> None:
    state.current_player = 0
    state.selected_region = defs.capital()
    state.construction_actions = default_construction_actions()


def _clear_event(state: GameState) -> None:
    state.current_event = None
    state.event_votes = EMPTY_VOTES
    state.event_resolved = False
    state.event_image_revealed = False


def _enter_events(
    state: GameState,
    defs: GameDefinitions,
    deterministic: bool,
    random_values: RandomValues,
) -> str | None:
    _clear_event(state)
    if not defs.deck:
        return None
    event, next_index = draw_event(
        defs.deck,
        deterministic=deterministic,
        index=state.debug_event_index,
        roll=random_values.event_roll,
    )
    state.current_event = event.id
    state.debug_event_index = next_index
    return event.id


def next_phase(
    state: GameState,
    defs: GameDefinitions,
    deterministic: bool = False,
    random_values: RandomValues | None = None,
) -> tuple[GameState, ActionOutcome]:
    """
    Advance to the next phase. Edits and returns `state`, which must be a fresh copy.
    """
    random_values = random_values or RandomValues()
    old_phase = state.phase
    current_idx = PHASES.index(old_phase) if old_phase in PHASES else 0
    is_last_phase = current_idx == len(PHASES) - 1
    new_phase = PHASES[0] if is_last_phase else PHASES[current_idx + 1]
    drawn = None

    if old_phase == "resources":
        _pay_income(state)

    if old_phase == "construction":
        _reset_construction(state, defs)

    if old_phase == "events":
        _clear_event(state)
        state.last_event_result = None

    if old_phase == "veche":
        state.attack = Proposal()
        state.fortress = Proposal()

    if new_phase == "events":
        drawn = _enter_events(state, defs, deterministic, random_values)

    if is_last_phase:
        state.active_effects = decay(state.active_effects)
        state.turn += 1
        if state.turn > MAX_TURNS:
            state.game_over = True
            state.last_event_result = f"Turn {MAX_TURNS} is over. The veche counts its victory points."

    state.phase = new_phase
    return state, phase_changed(old_phase, new_phase, state.turn, drawn)
