"""
Heuristic decisions for seats without a human player.
Each decide_* function only reads the state and returns what that seat would submit;
the caller feeds it through apply_action like any other player's action.
"""

from veche.engine import (
    BUILDING_COST,
    DEFENSE_POOL_COST,
    EQUIPMENT_COST,
    PLAYER_COUNT,
    PROPOSAL_POOL_COST,
)
from veche.engine.actions import (
    Action,
    build_building,
    buy_equipment,
    initiate_attack,
    select_region,
    vote_attack,
    vote_event,
    vote_fortress,
)
from veche.engine.combat import order_defense_strength, player_strength
from veche.engine.definitions import EventDefinition, GameDefinitions
from veche.engine.event_resolution import DEFEND_VOTE, ORDER_ATTACK, VOTING
from veche.engine.queries import get_buildable_buildings
from veche.engine.regions import get_valid_republic_attack_targets
from veche.engine.state import GameState, Player

# A seat's share when everyone chips in
PROPOSAL_SHARE = PROPOSAL_POOL_COST / PLAYER_COUNT
DEFENSE_SHARE = DEFENSE_POOL_COST / PLAYER_COUNT

# Below this a seat only picks options that cost nothing
FREE_OPTION_THRESHOLD = 2

# Option picked by a seat that can spare the money
PREFERRED_OPTIONS = {
    "drought": "buy_food",
    "plague": "fund_isolation",
    "embassy": "luxurious",
    "izhorian_delegation": "accept",
}


def _republic_strength(state: GameState, defs: GameDefinitions) -> float:
    return sum(player_strength(p, state.active_effects, defs) for p in state.players)


# ===== Construction =====

def _best_building(state: GameState, player_index: int, defs: GameDefinitions) -> tuple[str, str] | None:
    """First free slot for the player's faction, walking the regions in map order."""
    for region_id in state.regions:
        buildable = get_buildable_buildings(state, defs, player_index, region_id)
        if buildable:
            return region_id, buildable[0]
    return None


def decide_construction(state: GameState, player_index: int, defs: GameDefinitions) -> list[Action]:
    """
    Construction turn for one seat: build if 2 can be spared, then buy one piece of
    equipment with what is left (weapons unless they already outnumber armor).
    Returns an empty list when there is nothing to do; passing the turn is up to the caller.
    """
    player = state.players[player_index]
    done = state.construction_actions[player_index]
    money = player.money
    actions = []

    if not done.improvement and money >= BUILDING_COST:
        choice = _best_building(state, player_index, defs)
        if choice is not None:
            region_id, building_type = choice
            if region_id != state.selected_region:
                actions.append(select_region(region_id))
            actions.append(build_building(building_type))
            money -= defs.buildings[building_type].cost

    if not done.equipment and money >= EQUIPMENT_COST:
        actions.append(buy_equipment("weapons" if player.weapons <= player.armor else "armor"))

    return actions


# ===== Events =====

def _choose_option(event: EventDefinition, player: Player) -> str | None:
    options = event.option_ids()

    if event.id == "boyars_take_bribes":
        # Nobles won't investigate themselves
        return "ignore" if player.faction == "Nobles" else "investigate"
    if event.id == "merchants_robbed":
        return "trade_risk"

    if player.money < FREE_OPTION_THRESHOLD:
        free = [o.id for o in event.options if not o.cost_text]
        if free:
            return free[0]

    if event.id == "relics_found":
        choice = "build_temple" if player.money >= 3 else "deception"
    else:
        choice = PREFERRED_OPTIONS.get(event.id)
    if choice in options:
        return choice
    return event.default_option or (options[0] if options else None)


def decide_event_vote(state: GameState, player_index: int, defs: GameDefinitions) -> Action | None:
    """
    Vote on the current event, or None when this seat has nothing to vote on.
    Order attacks are defended whenever the seat can pay an even share.
    """
    if state.current_event is None or state.event_resolved:
        return None
    if state.event_votes[player_index] is not None:
        return None
    event = defs.events.get(state.current_event)
    if event is None:
        return None

    player = state.players[player_index]
    if event.type == ORDER_ATTACK:
        return vote_event(DEFEND_VOTE if player.money >= DEFENSE_SHARE else "false")
    if event.type == VOTING:
        option = _choose_option(event, player)
        return vote_event(option) if option is not None else None
    return None


# ===== Veche =====

def decide_attack_proposal(state: GameState, defs: GameDefinitions) -> Action | None:
    """Propose an attack on the weakest reachable Order region the whole republic could beat."""
    if state.phase != "veche":
        return None
    if state.proposal("attack").is_open or state.proposal("fortress").is_open:
        return None

    strength = _republic_strength(state, defs)
    targets = [
        t for t in get_valid_republic_attack_targets(state.regions, defs)
        if strength > order_defense_strength(state, t)
    ]
    if not targets:
        return None
    return initiate_attack(min(targets, key=lambda t: order_defense_strength(state, t)))


def decide_attack_vote(state: GameState, player_index: int, defs: GameDefinitions) -> Action | None:
    """Join the open attack if the seat can pay an even share and all three together outmatch the defenders."""
    proposal = state.proposal("attack")
    if not proposal.is_open or proposal.votes[player_index] is not None:
        return None
    if state.players[player_index].money < PROPOSAL_SHARE:
        return vote_attack(False)
    return vote_attack(_republic_strength(state, defs) > order_defense_strength(state, proposal.target))


def decide_fortress_vote(state: GameState, player_index: int) -> Action | None:
    """Fortresses are always worth it when the seat can pay an even share."""
    proposal = state.proposal("fortress")
    if not proposal.is_open or proposal.votes[player_index] is not None:
        return None
    return vote_fortress(state.players[player_index].money >= PROPOSAL_SHARE)


def suggest_actions(state: GameState, player_index: int, defs: GameDefinitions) -> list[Action]:
    """Everything the heuristics would submit from this seat in the current phase."""
    if state.game_over:
        return []

    if state.phase == "construction":
        if state.current_player != player_index:
            return []
        return decide_construction(state, player_index, defs)

    action = None
    if state.phase == "events":
        action = decide_event_vote(state, player_index, defs)
    elif state.phase == "veche":
        action = (
            decide_attack_vote(state, player_index, defs)
            or decide_fortress_vote(state, player_index)
            or decide_attack_proposal(state, defs)
        )
    return [action] if action is not None else []
