"""
Action definitions for the game.
Actions are immutable, deterministic instructions. The acting player and the random
values travel next to the action, not inside it.
"""

from dataclasses import dataclass, field
from typing import Any

# Phase control
NEXT_PHASE = "NEXT_PHASE"
NEXT_PLAYER = "NEXT_PLAYER"

# Construction phase
SELECT_REGION = "SELECT_REGION"
BUILD_BUILDING = "BUILD_BUILDING"
BUY_EQUIPMENT = "BUY_EQUIPMENT"

# Events phase
VOTE_EVENT = "VOTE_EVENT"
REVEAL_EVENT = "REVEAL_EVENT"
RESOLVE_EVENT = "RESOLVE_EVENT"

# Veche phase - attack
INITIATE_ATTACK = "INITIATE_ATTACK"
VOTE_ATTACK = "VOTE_ATTACK"
EXECUTE_ATTACK = "EXECUTE_ATTACK"
CANCEL_ATTACK = "CANCEL_ATTACK"

# Veche phase - fortress
INITIATE_FORTRESS = "INITIATE_FORTRESS"
VOTE_FORTRESS = "VOTE_FORTRESS"
EXECUTE_FORTRESS = "EXECUTE_FORTRESS"
CANCEL_FORTRESS = "CANCEL_FORTRESS"

# Game control
RESET_GAME = "RESET_GAME"

EQUIPMENT_ITEMS = ("weapons", "armor")


@dataclass(frozen=True)
class Action:
    """Base action class. All actions have a type and payload."""
    type: str  # e.g., "NEXT_PHASE", "BUILD_BUILDING", "VOTE_ATTACK"
    payload: dict[str, Any] = field(default_factory=dict)  # Action-specific data

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, **self.payload}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Action":
        """Build from the flat wire envelope: {type, region_name?, building_type?, item?, vote?, target_region?}."""
        data = dict(data or {})
        action_type = str(data.pop("type", "") or "")
        return cls(type=action_type, payload={k: v for k, v in data.items() if v is not None})


@dataclass(frozen=True)
class RandomValues:
    """
    Externally supplied samples in [0, 1). A missing value means the engine
    falls back to a local random draw for that decision.
    """
    battle_roll: float | None = None
    event_roll: float | None = None
    target_roll: float | None = None

    def to_dict(self) -> dict[str, float | None]:
        return {
            "battle_roll": self.battle_roll,
            "event_roll": self.event_roll,
            "target_roll": self.target_roll,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "RandomValues":
        data = data or {}
        return cls(
            battle_roll=data.get("battle_roll"),
            event_roll=data.get("event_roll"),
            target_roll=data.get("target_roll"),
        )


def next_phase() -> Action:
    """Advance to the next phase (wrapping to resources ends the round)."""
    return Action(type=NEXT_PHASE)


def next_player() -> Action:
    """Pass the construction turn to the next player."""
    return Action(type=NEXT_PLAYER)


def select_region(region_name: str) -> Action:
    """Choose the region the current player will build in."""
    return Action(type=SELECT_REGION, payload={"region_name": region_name})


def build_building(building_type: str) -> Action:
    """
    Build one building in the selected region. Costs 2.
    Example: build_building("noble_manor")
    """
    return Action(type=BUILD_BUILDING, payload={"building_type": building_type})


def buy_equipment(item: str) -> Action:
    """Buy one unit of weapons or armor. Costs 1; each adds +5 strength."""
    return Action(type=BUY_EQUIPMENT, payload={"item": item})


def vote_event(option_id: str) -> Action:
    """
    Vote on the current event.
    For voting events the vote is an option id (e.g. "rob_foreign");
    for Order attacks it is "true" (help fund the defense) or "false".
    """
    return Action(type=VOTE_EVENT, payload={"vote": option_id})


def reveal_event() -> Action:
    return Action(type=REVEAL_EVENT)


def resolve_event() -> Action:
    """Resolve the current event using the votes cast so far."""
    return Action(type=RESOLVE_EVENT)


def initiate_attack(target_region: str) -> Action:
    """Open an attack vote against an Order-held region."""
    return Action(type=INITIATE_ATTACK, payload={"target_region": target_region})


def vote_attack(commit: bool) -> Action:
    """Commit (True) or decline (False) funding for the open attack."""
    return Action(type=VOTE_ATTACK, payload={"vote": commit})


def execute_attack() -> Action:
    return Action(type=EXECUTE_ATTACK)


def cancel_attack() -> Action:
    return Action(type=CANCEL_ATTACK)


def initiate_fortress(target_region: str) -> Action:
    """Open a fortress construction vote for a republic region."""
    return Action(type=INITIATE_FORTRESS, payload={"target_region": target_region})


def vote_fortress(commit: bool) -> Action:
    return Action(type=VOTE_FORTRESS, payload={"vote": commit})


def execute_fortress() -> Action:
    return Action(type=EXECUTE_FORTRESS)


def cancel_fortress() -> Action:
    return Action(type=CANCEL_FORTRESS)


def reset_game() -> Action:
    return Action(type=RESET_GAME)
