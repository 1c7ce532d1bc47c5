"""
Main game reducer.
Applies actions to state, enforcing rules and producing new state.
Returns an ActionResult: the new state plus an outcome describing what happened, or the
unchanged input state plus a categorical error.
"""

from dataclasses import replace
from typing import Iterable

from veche import config
from veche.engine import EQUIPMENT_COST, REPUBLIC
from veche.engine.actions import (
    BUILD_BUILDING,
    BUY_EQUIPMENT,
    CANCEL_ATTACK,
    CANCEL_FORTRESS,
    EQUIPMENT_ITEMS,
    EXECUTE_ATTACK,
    EXECUTE_FORTRESS,
    INITIATE_ATTACK,
    INITIATE_FORTRESS,
    NEXT_PHASE,
    NEXT_PLAYER,
    RESET_GAME,
    RESOLVE_EVENT,
    REVEAL_EVENT,
    SELECT_REGION,
    VOTE_ATTACK,
    VOTE_EVENT,
    VOTE_FORTRESS,
    Action,
    RandomValues,
)
from veche.engine.definitions import GameDefinitions
from veche.engine.event_resolution import DEFEND_VOTE, ORDER_ATTACK, VOTING, resolve_event
from veche.engine.phases import next_phase
from veche.engine.queries import validate_action
from veche.engine.regions import format_region_name
from veche.engine.results import (
    DUPLICATE_ACTION,
    INSUFFICIENT_FUNDS,
    INVALID_BUILDING,
    INVALID_TARGET,
    MISSING_REQUIRED_FIELD,
    PHASE_MISMATCH,
    TURN_VIOLATION,
    UNKNOWN_ACTION,
    ActionOutcome,
    ActionRejected,
    ActionResult,
    building_built,
    equipment_bought,
    event_resolved,
    event_revealed,
    game_reset,
    player_changed,
    region_selected,
    rejected,
    vote_cast,
)
from veche.engine.state import GameState, with_slot
from veche.engine.utils import create_initial_game_state, get_default_definitions
from veche.engine import voting
from veche.engine.voting import ATTACK, FORTRESS


def apply_action(
    state: GameState,
    action: Action,
    player_id: int | None = None,
    random_values: RandomValues | None = None,
    defs: GameDefinitions | None = None,
    deterministic: bool | None = None,
) -> ActionResult:
    """
    Apply a single action to the current state.

    Args:
        state: Current game state (never modified)
        action: Action to apply
        player_id: Acting player index 0..2, or None for a trusted caller
        random_values: Externally drawn samples; missing ones fall back to local draws
        defs: Static definitions. Defaults to the bundled data tables.
        deterministic: Sequential event draws. Defaults to config.DETERMINISTIC_EVENTS.

    Returns:
        ActionResult. On error, new_state is `state` itself.
    """
    if defs is None:
        defs = get_default_definitions()
    if deterministic is None:
        deterministic = config.DETERMINISTIC_EVENTS
    random_values = random_values or RandomValues()

    validation = validate_action(state, action, player_id)
    if not validation.valid:
        return rejected(state, validation.error, validation.message)

    new_state = state.copy()

    try:
        if action.type == NEXT_PHASE:
            new_state, outcome = next_phase(new_state, defs, deterministic, random_values)

        elif action.type == NEXT_PLAYER:
            outcome = _handle_next_player(new_state, player_id)

        elif action.type == SELECT_REGION:
            outcome = _handle_select_region(new_state, action, player_id, defs)

        elif action.type == BUILD_BUILDING:
            outcome = _handle_build_building(new_state, action, player_id, defs)

        elif action.type == BUY_EQUIPMENT:
            outcome = _handle_buy_equipment(new_state, action, player_id)

        elif action.type == VOTE_EVENT:
            outcome = _handle_vote_event(new_state, action, player_id, defs)

        elif action.type == REVEAL_EVENT:
            outcome = _handle_reveal_event(new_state)

        elif action.type == RESOLVE_EVENT:
            outcome = _handle_resolve_event(new_state, defs, random_values)

        elif action.type == INITIATE_ATTACK:
            outcome = _handle_initiate(new_state, action, ATTACK, defs)

        elif action.type == VOTE_ATTACK:
            outcome = voting.vote(new_state, ATTACK, player_id, _commit(action))

        elif action.type == EXECUTE_ATTACK:
            outcome = voting.execute(new_state, ATTACK, random_values, defs)

        elif action.type == CANCEL_ATTACK:
            outcome = voting.cancel(new_state, ATTACK)

        elif action.type == INITIATE_FORTRESS:
            outcome = _handle_initiate(new_state, action, FORTRESS, defs)

        elif action.type == VOTE_FORTRESS:
            outcome = voting.vote(new_state, FORTRESS, player_id, _commit(action))

        elif action.type == EXECUTE_FORTRESS:
            outcome = voting.execute(new_state, FORTRESS, random_values, defs)

        elif action.type == CANCEL_FORTRESS:
            outcome = voting.cancel(new_state, FORTRESS)

        elif action.type == RESET_GAME:
            new_state = create_initial_game_state(defs)
            outcome = game_reset()

        else:
            return rejected(state, UNKNOWN_ACTION, f"Unknown action type: {action.type}")

    except ActionRejected as e:
        return rejected(state, e.error, e.message)

    return ActionResult(new_state=new_state, result=outcome)


def _commit(action: Action) -> bool:
    """Funding votes arrive as booleans or as "true"/"false" strings from the wire."""
    vote = action.payload.get("vote")
    if isinstance(vote, str):
        return vote.lower() == "true"
    return bool(vote)


def _require(action: Action, key: str, what: str):
    value = action.payload.get(key)
    if value is None or value == "":
        raise ActionRejected(MISSING_REQUIRED_FIELD, f"{what} required")
    return value


def _require_phase(state: GameState, phase: str, action_type: str) -> None:
    if state.phase != phase:
        raise ActionRejected(PHASE_MISMATCH, f"Cannot {action_type} during {state.phase} phase")


def _require_turn(state: GameState, player_id: int | None) -> None:
    if player_id is not None and player_id != state.current_player:
        raise ActionRejected(
            TURN_VIOLATION,
            f"Not player {player_id}'s turn. Current player: {state.current_player}",
        )


# ===== Construction =====

def _handle_next_player(state: GameState, player_id: int | None) -> ActionOutcome:
    """Pass the construction turn on (wraps after the last player)."""
    _require_phase(state, "construction", NEXT_PLAYER)
    _require_turn(state, player_id)
    old_player = state.current_player
    state.current_player = (old_player + 1) % len(state.players)
    return player_changed(old_player, state.current_player)


def _handle_select_region(
    state: GameState,
    action: Action,
    player_id: int | None,
    defs: GameDefinitions,
) -> ActionOutcome:
    _require_phase(state, "construction", SELECT_REGION)
    _require_turn(state, player_id)
    region_id = _require(action, "region_name", "Region name")
    region = state.regions.get(region_id)
    if region is None:
        raise ActionRejected(INVALID_TARGET, f"Unknown region: {region_id}")
    if region.controller != REPUBLIC:
        raise ActionRejected(INVALID_TARGET, f"{format_region_name(region_id, defs)} is held by the Order")
    state.selected_region = region_id
    return region_selected(region_id)


def _handle_build_building(
    state: GameState,
    action: Action,
    player_id: int | None,
    defs: GameDefinitions,
) -> ActionOutcome:
    """
    Build one building in the selected region for the current player.
    The building must belong to the player's faction; capital-only buildings need the
    capital; each type is capped per region (merchant buildings stack).
    """
    index = state.current_player if player_id is None else player_id
    player = state.players[index]
    building_type = _require(action, "building_type", "Building type")

    building_def = defs.buildings.get(building_type)
    if building_def is None:
        raise ActionRejected(INVALID_BUILDING, f"Unknown building: {building_type}")
    if building_def.faction != player.faction:
        raise ActionRejected(
            INVALID_BUILDING,
            f"{building_def.display_name} belongs to {building_def.faction}, not {player.faction}",
        )

    region_id = state.selected_region
    region = state.regions.get(region_id)
    if region is None or region.controller != REPUBLIC:
        raise ActionRejected(INVALID_TARGET, f"Cannot build in {format_region_name(region_id, defs)}")
    if building_def.pskov_only and region_id != defs.capital():
        raise ActionRejected(
            INVALID_BUILDING,
            f"{building_def.display_name} can only be built in {format_region_name(defs.capital(), defs)}",
        )
    count = region.buildings.get(building_type, 0)
    if count >= building_def.max_per_region:
        raise ActionRejected(
            INVALID_BUILDING,
            f"{format_region_name(region_id, defs)} already has the maximum of {building_def.display_name}",
        )
    if player.money < building_def.cost:
        raise ActionRejected(INSUFFICIENT_FUNDS, f"Insufficient money: need {building_def.cost}, have {player.money}")

    player.money -= building_def.cost
    player.improvements += 1
    region.buildings[building_type] = count + 1
    state.construction_actions = with_slot(
        state.construction_actions,
        index,
        replace(state.construction_actions[index], improvement=True),
    )
    return building_built(index, region_id, building_type, building_def.cost)


def _handle_buy_equipment(state: GameState, action: Action, player_id: int | None) -> ActionOutcome:
    """Buy one unit of weapons or armor. Phase, turn, money and the per-turn flag are already validated."""
    index = state.current_player if player_id is None else player_id
    item = _require(action, "item", "Item")
    if item not in EQUIPMENT_ITEMS:
        raise ActionRejected(MISSING_REQUIRED_FIELD, f"Item must be one of {', '.join(EQUIPMENT_ITEMS)}")

    player = state.players[index]
    player.money -= EQUIPMENT_COST
    setattr(player, item, getattr(player, item) + 1)
    state.construction_actions = with_slot(
        state.construction_actions,
        index,
        replace(state.construction_actions[index], equipment=True),
    )
    return equipment_bought(index, item, EQUIPMENT_COST)


# ===== Events =====

def _current_event(state: GameState, defs: GameDefinitions):
    if state.current_event is None:
        return None
    return defs.events.get(state.current_event)


def _handle_vote_event(
    state: GameState,
    action: Action,
    player_id: int,
    defs: GameDefinitions,
) -> ActionOutcome:
    """
    Record a vote on the current event.
    Voting events take an option id; Order attacks take "true" (fund the defense) or "false".
    """
    event = _current_event(state, defs)
    if event is None:
        raise ActionRejected(PHASE_MISMATCH, "No event to vote on")
    if state.event_resolved:
        raise ActionRejected(DUPLICATE_ACTION, "Event already resolved")

    vote = action.payload["vote"]
    if event.type == ORDER_ATTACK:
        vote = DEFEND_VOTE if _commit(action) else "false"
    elif event.type == VOTING:
        if vote not in event.option_ids():
            raise ActionRejected(INVALID_TARGET, f"{vote} is not an option of {event.name}")
    else:
        raise ActionRejected(PHASE_MISMATCH, f"{event.name} takes no votes")

    state.event_votes = with_slot(state.event_votes, player_id, vote)
    return vote_cast(player_id, vote)


def _handle_reveal_event(state: GameState) -> ActionOutcome:
    _require_phase(state, "events", REVEAL_EVENT)
    if state.current_event is None:
        raise ActionRejected(PHASE_MISMATCH, "No event to reveal")
    state.event_image_revealed = True
    return event_revealed(state.current_event)


def _handle_resolve_event(
    state: GameState,
    defs: GameDefinitions,
    random_values: RandomValues,
) -> ActionOutcome:
    _require_phase(state, "events", RESOLVE_EVENT)
    if state.current_event is None:
        raise ActionRejected(MISSING_REQUIRED_FIELD, "No event to resolve")
    if state.event_resolved:
        raise ActionRejected(DUPLICATE_ACTION, "Event already resolved")
    event = _current_event(state, defs)
    if event is None:
        raise ActionRejected(MISSING_REQUIRED_FIELD, f"Unknown event: {state.current_event}")

    resolution = resolve_event(state, event, defs, random_values)
    return event_resolved(
        event.id,
        resolution.winning_option,
        state.last_event_result,
        resolution.chained_event,
    )


# ===== Veche =====

def _handle_initiate(state: GameState, action: Action, kind, defs: GameDefinitions) -> ActionOutcome:
    _require_phase(state, "veche", action.type)
    target = _require(action, "target_region", "Target region")
    return voting.initiate(state, kind, target, defs)


# ===== Replay =====

def replay_from_actions(
    initial_state: GameState,
    log: Iterable,
    defs: GameDefinitions | None = None,
    deterministic: bool = False,
) -> tuple[GameState, list[ActionOutcome]]:
    """
    Replay a series of actions from an initial state.
    Event sourcing: state is derived from the action log plus the recorded random values.

    Args:
        initial_state: Starting game state
        log: (action, player_id, random_values) triples; a bare Action means
            (action, None, None)
        defs: Static definitions
        deterministic: Sequential event draws

    Returns:
        Tuple of (final_state, outcomes) after all actions applied

    Raises:
        ValueError: if an entry of the log is rejected
    """
    current_state = initial_state.copy()
    outcomes: list[ActionOutcome] = []

    for step, entry in enumerate(log):
        if isinstance(entry, Action):
            action, player_id, random_values = entry, None, None
        else:
            action, player_id, random_values = entry
        result = apply_action(
            current_state,
            action,
            player_id,
            random_values,
            defs,
            deterministic,
        )
        if not result.ok:
            raise ValueError(f"Replay step {step} ({action.type}) rejected: {result.error}: {result.message}")
        current_state = result.new_state
        outcomes.append(result.result)

    return current_state, outcomes
