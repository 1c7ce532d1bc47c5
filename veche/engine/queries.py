"""
Validation and query functions.
validate_action is the gatekeeper run before any mutation; the get_* helpers tell a
client what it can do without touching state.
"""

from dataclasses import dataclass
from typing import Any

from veche.engine import BUILDING_COST, EQUIPMENT_COST, MAX_TURNS, PLAYER_COUNT, REPUBLIC
from veche.engine.actions import (
    BUILD_BUILDING,
    BUY_EQUIPMENT,
    RESET_GAME,
    VOTE_ATTACK,
    VOTE_EVENT,
    VOTE_FORTRESS,
    Action,
)
from veche.engine.combat import player_strength
from veche.engine.definitions import GameDefinitions
from veche.engine.phases import calculate_income
from veche.engine.regions import get_valid_order_attack_targets, get_valid_republic_attack_targets
from veche.engine.results import (
    DUPLICATE_ACTION,
    GAME_OVER,
    INSUFFICIENT_FUNDS,
    MISSING_REQUIRED_FIELD,
    PHASE_MISMATCH,
    TURN_VIOLATION,
    UNKNOWN_PLAYER,
)
from veche.engine.state import GameState, Player


@dataclass
class ValidationResult:
    """Result of action validation. error is the category, message the human text."""
    valid: bool
    error: str | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "error": self.error, "message": self.message}


def _invalid(error: str, message: str) -> ValidationResult:
    return ValidationResult(False, error, message)


# ===== Action Validation =====

def validate_action(state: GameState, action: Action, player_id: int | None) -> ValidationResult:
    """
    Validate an action without applying it.

    player_id None means a trusted caller (local play, replays): turn ownership is not
    checked and construction actions act for the current player.
    """
    if state.game_over and action.type != RESET_GAME:
        return _invalid(GAME_OVER, "The match is over. Only a reset can start a new one.")

    if player_id is not None and not 0 <= player_id < PLAYER_COUNT:
        return _invalid(UNKNOWN_PLAYER, f"Unknown player: {player_id}")

    if action.type == BUILD_BUILDING:
        return _validate_construction(state, player_id, BUILDING_COST, "improvement")
    elif action.type == BUY_EQUIPMENT:
        return _validate_construction(state, player_id, EQUIPMENT_COST, "equipment")
    elif action.type == VOTE_EVENT:
        return _validate_event_vote(state, action, player_id)
    elif action.type == VOTE_ATTACK:
        return _validate_proposal_vote(state, action, player_id, "attack")
    elif action.type == VOTE_FORTRESS:
        return _validate_proposal_vote(state, action, player_id, "fortress")

    return ValidationResult(True)


def _validate_construction(state: GameState, player_id: int | None, cost: float, flag: str) -> ValidationResult:
    """Build/buy: construction phase, acting player's turn, enough money, once per turn."""
    if state.phase != "construction":
        return _invalid(PHASE_MISMATCH, f"Cannot build or buy during {state.phase} phase")

    if player_id is not None and player_id != state.current_player:
        return _invalid(
            TURN_VIOLATION,
            f"Not player {player_id}'s turn. Current player: {state.current_player}",
        )

    acting = state.current_player if player_id is None else player_id
    player = state.players[acting]
    if player.money < cost:
        return _invalid(INSUFFICIENT_FUNDS, f"Insufficient money: need {cost}, have {player.money}")

    if getattr(state.construction_actions[acting], flag):
        what = "built" if flag == "improvement" else "bought equipment"
        return _invalid(DUPLICATE_ACTION, f"Already {what} this turn")

    return ValidationResult(True)


def _validate_event_vote(state: GameState, action: Action, player_id: int | None) -> ValidationResult:
    if state.phase != "events":
        return _invalid(PHASE_MISMATCH, f"Cannot vote on events during {state.phase} phase")
    if player_id is None:
        return _invalid(MISSING_REQUIRED_FIELD, "Player ID required to vote")
    if action.payload.get("vote") in (None, ""):
        return _invalid(MISSING_REQUIRED_FIELD, "Vote option required")
    if state.event_votes[player_id] is not None:
        return _invalid(DUPLICATE_ACTION, "Already voted")
    return ValidationResult(True)


def _validate_proposal_vote(state: GameState, action: Action, player_id: int | None, kind: str) -> ValidationResult:
    proposal = state.proposal(kind)
    if not proposal.is_open:
        return _invalid(PHASE_MISMATCH, f"Not planning {kind}")
    if player_id is None:
        return _invalid(MISSING_REQUIRED_FIELD, "Player ID required to vote")
    if action.payload.get("vote") is None:
        return _invalid(MISSING_REQUIRED_FIELD, "Vote required")
    if proposal.votes[player_id] is not None:
        return _invalid(DUPLICATE_ACTION, "Already voted")
    return ValidationResult(True)


# ===== Query Functions =====

PHASE_ACTIONS = {
    "resources": ["NEXT_PHASE"],
    "construction": ["SELECT_REGION", "BUILD_BUILDING", "BUY_EQUIPMENT", "NEXT_PLAYER", "NEXT_PHASE"],
    "events": ["REVEAL_EVENT", "VOTE_EVENT", "RESOLVE_EVENT", "NEXT_PHASE"],
    "veche": ["INITIATE_ATTACK", "INITIATE_FORTRESS", "NEXT_PHASE"],
}


def get_available_action_types(state: GameState) -> list[str]:
    """Action types that make sense right now (RESET_GAME is always available)."""
    if state.game_over:
        return [RESET_GAME]

    allowed = list(PHASE_ACTIONS.get(state.phase, []))
    if state.phase == "events" and state.event_resolved:
        allowed = [a for a in allowed if a not in ("VOTE_EVENT", "RESOLVE_EVENT")]
    if state.phase == "veche":
        for kind in ("attack", "fortress"):
            if state.proposal(kind).is_open:
                suffix = kind.upper()
                allowed = [a for a in allowed if not a.startswith("INITIATE_")]
                allowed.extend([f"VOTE_{suffix}", f"EXECUTE_{suffix}", f"CANCEL_{suffix}"])
    allowed.append(RESET_GAME)
    return allowed


def get_attack_targets(state: GameState, defs: GameDefinitions) -> list[str]:
    return get_valid_republic_attack_targets(state.regions, defs)


def get_threatened_regions(state: GameState, defs: GameDefinitions) -> list[str]:
    return get_valid_order_attack_targets(state.regions, defs)


def get_fortress_targets(state: GameState) -> list[str]:
    return [
        rid for rid, r in state.regions.items()
        if r.controller == REPUBLIC and not r.fortress
    ]


def get_buildable_buildings(
    state: GameState,
    defs: GameDefinitions,
    player_index: int | None = None,
    region_id: str | None = None,
) -> list[str]:
    """Building types the player could put in a region (default: the selected one) right now."""
    if player_index is None:
        player_index = state.current_player
    if region_id is None:
        region_id = state.selected_region
    faction = state.players[player_index].faction
    region = state.regions.get(region_id)
    if region is None or region.controller != REPUBLIC:
        return []

    result = []
    for bid, bdef in defs.buildings.items():
        if bdef.faction != faction:
            continue
        if bdef.pskov_only and region_id != defs.capital():
            continue
        if region.buildings.get(bid, 0) >= bdef.max_per_region:
            continue
        result.append(bid)
    return result


def get_faction_stats(state: GameState, defs: GameDefinitions) -> list[dict[str, Any]]:
    """Per-player money, strength and projected income, in player order."""
    return [
        {
            "faction": p.faction,
            "money": p.money,
            "strength": player_strength(p, state.active_effects, defs),
            "income": calculate_income(state, p),
            "weapons": p.weapons,
            "armor": p.armor,
            "improvements": p.improvements,
        }
        for p in state.players
    ]


# ===== Game Result =====

def calculate_victory_points(player: Player) -> int:
    """One victory point per standing improvement."""
    return player.improvements


def get_game_result(state: GameState) -> dict[str, Any] | None:
    """
    Final standings, or None while the match is still running.

    The match is decided once the turn limit has passed or Pskov has fallen. Players are
    ranked by victory points, then by money; full ties keep seat order.
    """
    if state.turn <= MAX_TURNS and not state.game_over:
        return None

    scores = [
        {
            "index": i,
            "faction": p.faction,
            "victory_points": calculate_victory_points(p),
            "money": p.money,
        }
        for i, p in enumerate(state.players)
    ]
    rankings = sorted(scores, key=lambda s: (-s["victory_points"], -s["money"]))
    return {
        "winner": rankings[0],
        "rankings": rankings,
        "reason": "turn_limit" if state.turn > MAX_TURNS else "pskov_fallen",
        "game_over": state.game_over,
    }


def get_game_summary(state: GameState, defs: GameDefinitions) -> dict[str, Any]:
    """Summary of the current game state for UI display."""
    controlled = sum(1 for r in state.regions.values() if r.controller == REPUBLIC)
    return {
        "turn": state.turn,
        "max_turns": MAX_TURNS,
        "phase": state.phase,
        "current_player": state.current_player,
        "current_event": state.current_event,
        "republic_regions": controlled,
        "order_regions": len(state.regions) - controlled,
        "game_over": state.game_over,
        "factions": get_faction_stats(state, defs),
        "attack_targets": get_attack_targets(state, defs),
        "threatened_regions": get_threatened_regions(state, defs),
        "fortress_targets": get_fortress_targets(state),
        "available_actions": get_available_action_types(state),
        "result": get_game_result(state),
    }
