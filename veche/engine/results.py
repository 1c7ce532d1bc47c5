"""
Action results for broadcast and logging.
An ActionOutcome describes what happened; an ActionResult wraps it with the new state
or a categorical error.
"""

from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from veche.engine.state import GameState


# ===== Error Categories =====

PHASE_MISMATCH = "phase_mismatch"
TURN_VIOLATION = "turn_violation"
INSUFFICIENT_FUNDS = "insufficient_funds"
DUPLICATE_ACTION = "duplicate_action"
MISSING_REQUIRED_FIELD = "missing_required_field"
UNKNOWN_ACTION = "unknown_action"
INVALID_TARGET = "invalid_target"
INVALID_BUILDING = "invalid_building"
UNKNOWN_PLAYER = "unknown_player"
GAME_OVER = "game_over"


# ===== Outcome Type Constants =====

# Phase/turn
PHASE_CHANGED = "phase_changed"
PLAYER_CHANGED = "player_changed"

# Construction
REGION_SELECTED = "region_selected"
BUILDING_BUILT = "building_built"
EQUIPMENT_BOUGHT = "equipment_bought"

# Events
VOTE_CAST = "vote_cast"
EVENT_REVEALED = "event_revealed"
EVENT_RESOLVED = "event_resolved"

# Veche
ATTACK_INITIATED = "attack_initiated"
ATTACK_VOTE_CAST = "attack_vote_cast"
ATTACK_EXECUTED = "attack_executed"
ATTACK_CANCELLED = "attack_cancelled"
FORTRESS_INITIATED = "fortress_initiated"
FORTRESS_VOTE_CAST = "fortress_vote_cast"
FORTRESS_BUILT = "fortress_built"
FORTRESS_CANCELLED = "fortress_cancelled"

# Game control
GAME_RESET = "game_reset"

# Cancellation reasons (not errors)
NO_PARTICIPANTS = "no_participants"
REASON_INSUFFICIENT_FUNDS = "insufficient_funds"


class ActionRejected(ValueError):
    """Raised inside handlers for a rule violation; apply_action turns it into an error result."""

    def __init__(self, error: str, message: str):
        super().__init__(message)
        self.error = error
        self.message = message


@dataclass
class ActionOutcome:
    """Base outcome class. All outcomes have a type and payload."""
    type: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}


@dataclass
class ActionResult:
    """
    What apply_action returns.
    On error, new_state is the unchanged input state and result is None.
    """
    new_state: "GameState"
    error: str | None = None
    message: str | None = None  # human-readable detail for error
    result: ActionOutcome | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"state": self.new_state.to_dict()}
        if self.error is not None:
            out["error"] = self.error
            out["message"] = self.message
        if self.result is not None:
            out["result"] = self.result.to_dict()
        return out


def rejected(state: "GameState", error: str, message: str) -> ActionResult:
    return ActionResult(new_state=state, error=error, message=message)


# ===== Outcome Factory Functions =====

def phase_changed(old_phase: str, new_phase: str, turn: int, event_id: str | None = None) -> ActionOutcome:
    payload: dict[str, Any] = {
        "old_phase": old_phase,
        "new_phase": new_phase,
        "turn": turn,
    }
    if event_id is not None:
        payload["event_drawn"] = event_id
    return ActionOutcome(PHASE_CHANGED, payload)


def player_changed(old_player: int, new_player: int) -> ActionOutcome:
    return ActionOutcome(PLAYER_CHANGED, {
        "old_player": old_player,
        "new_player": new_player,
    })


def region_selected(region: str) -> ActionOutcome:
    return ActionOutcome(REGION_SELECTED, {"region": region})


def building_built(player: int, region: str, building_type: str, cost: float) -> ActionOutcome:
    return ActionOutcome(BUILDING_BUILT, {
        "player": player,
        "region": region,
        "building_type": building_type,
        "cost": cost,
    })


def equipment_bought(player: int, item: str, cost: float) -> ActionOutcome:
    return ActionOutcome(EQUIPMENT_BOUGHT, {
        "player": player,
        "item": item,
        "cost": cost,
    })


def vote_cast(player: int, vote: str) -> ActionOutcome:
    return ActionOutcome(VOTE_CAST, {"player": player, "vote": vote})


def event_revealed(event_id: str | None) -> ActionOutcome:
    return ActionOutcome(EVENT_REVEALED, {"event": event_id})


def event_resolved(event_id: str, winning_option: str | None, message: str | None, chained_event: str | None = None) -> ActionOutcome:
    """
    Emitted after RESOLVE_EVENT.
    chained_event is set when the outcome triggered a follow-up event
    (which is now the current, unresolved event).
    """
    payload: dict[str, Any] = {
        "event": event_id,
        "winning_option": winning_option,
        "message": message,
    }
    if chained_event is not None:
        payload["chained_event"] = chained_event
    return ActionOutcome(EVENT_RESOLVED, payload)


def proposal_initiated(kind: str, target: str) -> ActionOutcome:
    return ActionOutcome(f"{kind}_initiated", {"target": target})


def proposal_vote_cast(kind: str, player: int, vote: bool) -> ActionOutcome:
    return ActionOutcome(f"{kind}_vote_cast", {"player": player, "vote": vote})


def proposal_cancelled(kind: str, reason: str | None = None) -> ActionOutcome:
    """reason is None for a voluntary cancel, otherwise no_participants / insufficient_funds."""
    payload: dict[str, Any] = {}
    if reason is not None:
        payload["reason"] = reason
    return ActionOutcome(f"{kind}_cancelled", payload)


def attack_executed(
    target: str,
    success: bool,
    participants: list[int],
    cost_per_participant: float,
    attacker_strength: int,
    defender_strength: int,
    chance_percent: int,
    roll: float,
) -> ActionOutcome:
    return ActionOutcome(ATTACK_EXECUTED, {
        "target": target,
        "success": success,
        "participants": participants,
        "cost_per_participant": cost_per_participant,
        "attacker_strength": attacker_strength,
        "defender_strength": defender_strength,
        "chance_percent": chance_percent,
        "roll": roll,
    })


def fortress_built(region: str, participants: list[int], cost_per_participant: float) -> ActionOutcome:
    return ActionOutcome(FORTRESS_BUILT, {
        "region": region,
        "participants": participants,
        "cost_per_participant": cost_per_participant,
    })


def game_reset() -> ActionOutcome:
    return ActionOutcome(GAME_RESET, {})
