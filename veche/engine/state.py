"""
Game state representation.
All state is immutable from the caller's point of view; transitions return new state copies.
Includes JSON serialization for save/load functionality.
"""

import json
from dataclasses import dataclass, field
from copy import deepcopy
from typing import Any, Optional

from veche.engine import PHASES, PLAYER_COUNT

# Fixed per-player arrays, indexed by player 0..2
Votes = tuple[Optional[bool], Optional[bool], Optional[bool]]
EventVotes = tuple[Optional[str], Optional[str], Optional[str]]

EMPTY_VOTES = (None, None, None)

PLANNING = "planning"


def with_slot(values: tuple, index: int, value: Any) -> tuple:
    """Return a copy of a fixed per-player tuple with one slot replaced."""
    if not 0 <= index < PLAYER_COUNT:
        raise IndexError(f"Player index out of range: {index}")
    return values[:index] + (value,) + values[index + 1:]


def _fixed_tuple(value: Any, parse=lambda v: v) -> tuple:
    """Coerce a stored list into a 3-slot tuple (missing slots become None)."""
    if not isinstance(value, (list, tuple)):
        value = []
    items = [parse(v) if v is not None else None for v in list(value)[:PLAYER_COUNT]]
    items.extend([None] * (PLAYER_COUNT - len(items)))
    return tuple(items)


def _bool_vote(v: Any) -> bool | None:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return v.lower() == "true"
    return bool(v)


def _num(v: Any, default: float = 0) -> float:
    try:
        return float(v) if v is not None else default
    except (TypeError, ValueError):
        return default


def _int(v: Any, default: int = 0) -> int:
    try:
        return int(v) if v is not None else default
    except (TypeError, ValueError):
        return default


@dataclass
class Player:
    """One of the three factions of the republic."""
    faction: str
    money: float = 0
    weapons: int = 0
    armor: int = 0
    improvements: int = 0  # buildings owned, each adds income

    def to_dict(self) -> dict[str, Any]:
        return {
            "faction": self.faction,
            "money": self.money,
            "weapons": self.weapons,
            "armor": self.armor,
            "improvements": self.improvements,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Player":
        if not isinstance(data, dict):
            data = {}
        return cls(
            faction=str(data.get("faction") or ""),
            money=max(0, _num(data.get("money"))),
            weapons=max(0, _int(data.get("weapons"))),
            armor=max(0, _int(data.get("armor"))),
            improvements=max(0, _int(data.get("improvements"))),
        )


@dataclass
class Region:
    """State of a single region."""
    controller: str  # "republic" or "order"
    fortress: bool = False
    buildings: dict[str, int] = field(default_factory=dict)  # building_id -> count

    def to_dict(self) -> dict[str, Any]:
        return {
            "controller": self.controller,
            "fortress": self.fortress,
            "buildings": dict(self.buildings),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Region":
        if not isinstance(data, dict):
            data = {}
        controller = data.get("controller")
        if controller not in ("republic", "order"):
            controller = "republic"
        buildings = data.get("buildings") or {}
        if not isinstance(buildings, dict):
            buildings = {}
        return cls(
            controller=controller,
            fortress=bool(data.get("fortress", False)),
            buildings={str(k): max(0, _int(v)) for k, v in buildings.items()},
        )


@dataclass
class ActiveEffect:
    """A time-boxed modifier to income or strength."""
    type: str  # "income" (multiplier delta) or "strength" (flat delta)
    target: str  # faction id or "all"
    value: float
    turns_remaining: int  # decremented once per full round
    description: str = ""

    def applies_to(self, faction: str) -> bool:
        return self.target == "all" or self.target == faction

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "target": self.target,
            "value": self.value,
            "turns_remaining": self.turns_remaining,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActiveEffect":
        if not isinstance(data, dict):
            data = {}
        return cls(
            type=str(data.get("type") or ""),
            target=str(data.get("target") or "all"),
            value=_num(data.get("value")),
            turns_remaining=_int(data.get("turns_remaining"), 0),
            description=str(data.get("description") or ""),
        )


@dataclass(frozen=True)
class ConstructionActions:
    """What a player has already done in the current construction phase."""
    improvement: bool = False
    equipment: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {"improvement": self.improvement, "equipment": self.equipment}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConstructionActions":
        if not isinstance(data, dict):
            data = {}
        return cls(
            improvement=bool(data.get("improvement", False)),
            equipment=bool(data.get("equipment", False)),
        )


@dataclass
class Proposal:
    """
    An open (or idle) funding vote: attack on a region, or fortress construction.
    planning is "planning" while the window is open and None otherwise.
    """
    planning: str | None = None
    target: str | None = None
    votes: Votes = EMPTY_VOTES

    @property
    def is_open(self) -> bool:
        return self.planning == PLANNING

    def participants(self) -> list[int]:
        return [i for i, v in enumerate(self.votes) if v is True]

    def to_dict(self, prefix: str) -> dict[str, Any]:
        return {
            f"{prefix}_planning": self.planning,
            f"{prefix}_target": self.target,
            f"{prefix}_votes": list(self.votes),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], prefix: str) -> "Proposal":
        planning = data.get(f"{prefix}_planning")
        target = data.get(f"{prefix}_target")
        return cls(
            planning=PLANNING if planning == PLANNING else None,
            target=str(target) if target else None,
            votes=_fixed_tuple(data.get(f"{prefix}_votes"), _bool_vote),
        )


def default_construction_actions() -> tuple[ConstructionActions, ...]:
    return tuple(ConstructionActions() for _ in range(PLAYER_COUNT))


@dataclass
class GameState:
    """Complete game state."""
    turn: int
    phase: str  # "resources", "construction", "events", "veche"
    players: list[Player]  # fixed: Nobles, Merchants, Commoners
    regions: dict[str, Region]  # region_id -> Region
    current_player: int = 0  # whose construction turn it is
    selected_region: str = "pskov"
    construction_actions: tuple[ConstructionActions, ...] = field(
        default_factory=default_construction_actions)
    active_effects: list[ActiveEffect] = field(default_factory=list)
    # Event phase
    current_event: str | None = None  # event id in the injected catalog
    event_votes: EventVotes = EMPTY_VOTES
    event_resolved: bool = False
    event_image_revealed: bool = False
    last_event_result: str | None = None
    debug_event_index: int = 0  # only meaningful in deterministic mode
    # Veche phase proposals
    attack: Proposal = field(default_factory=Proposal)
    fortress: Proposal = field(default_factory=Proposal)
    # Set when the capital falls
    game_over: bool = False

    def copy(self) -> "GameState":
        """Return a deep copy of this game state."""
        return deepcopy(self)

    def proposal(self, kind: str) -> Proposal:
        if kind == "attack":
            return self.attack
        if kind == "fortress":
            return self.fortress
        raise ValueError(f"Unknown proposal kind: {kind}")

    def set_proposal(self, kind: str, proposal: Proposal) -> None:
        if kind == "attack":
            self.attack = proposal
        elif kind == "fortress":
            self.fortress = proposal
        else:
            raise ValueError(f"Unknown proposal kind: {kind}")

    def total_money(self) -> float:
        return sum(p.money for p in self.players)

    # ===== Serialization Methods =====

    def to_dict(self) -> dict[str, Any]:
        """Convert GameState to a dictionary for JSON serialization."""
        out = {
            "turn": self.turn,
            "phase": self.phase,
            "current_player": self.current_player,
            "selected_region": self.selected_region,
            "players": [p.to_dict() for p in self.players],
            "regions": {rid: r.to_dict() for rid, r in self.regions.items()},
            "construction_actions": [ca.to_dict() for ca in self.construction_actions],
            "active_effects": [e.to_dict() for e in self.active_effects],
            "current_event": self.current_event,
            "event_votes": list(self.event_votes),
            "event_resolved": self.event_resolved,
            "event_image_revealed": self.event_image_revealed,
            "last_event_result": self.last_event_result,
            "debug_event_index": self.debug_event_index,
            "game_over": self.game_over,
        }
        out.update(self.attack.to_dict("attack"))
        out.update(self.fortress.to_dict("fortress"))
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameState":
        """Create GameState from a dictionary (handles missing/None for backwards compat)."""
        if not isinstance(data, dict):
            data = {}
        players_raw = data.get("players") or []
        if not isinstance(players_raw, list):
            players_raw = []
        regions_raw = data.get("regions") or {}
        if not isinstance(regions_raw, dict):
            regions_raw = {}
        ca_raw = data.get("construction_actions") or []
        if not isinstance(ca_raw, list):
            ca_raw = []
        ca = [ConstructionActions.from_dict(c) for c in ca_raw[:PLAYER_COUNT]]
        ca.extend(ConstructionActions() for _ in range(PLAYER_COUNT - len(ca)))
        effects_raw = data.get("active_effects") or []
        if not isinstance(effects_raw, list):
            effects_raw = []
        phase = data.get("phase")
        current_player = _int(data.get("current_player"), 0)
        return cls(
            turn=max(1, _int(data.get("turn"), 1)),
            phase=phase if phase in PHASES else PHASES[0],
            current_player=current_player if 0 <= current_player < PLAYER_COUNT else 0,
            selected_region=str(data.get("selected_region") or "pskov"),
            players=[Player.from_dict(p) for p in players_raw if isinstance(p, dict)],
            regions={
                str(rid): Region.from_dict(r)
                for rid, r in regions_raw.items()
                if isinstance(r, dict)
            },
            construction_actions=tuple(ca),
            active_effects=[
                e for e in (ActiveEffect.from_dict(x) for x in effects_raw if isinstance(x, dict))
                if e.turns_remaining > 0
            ],
            current_event=data.get("current_event") if isinstance(data.get("current_event"), str) else None,
            event_votes=_fixed_tuple(data.get("event_votes"), str),
            event_resolved=bool(data.get("event_resolved", False)),
            event_image_revealed=bool(data.get("event_image_revealed", False)),
            last_event_result=data.get("last_event_result") if isinstance(data.get("last_event_result"), str) else None,
            debug_event_index=max(0, _int(data.get("debug_event_index"), 0)),
            attack=Proposal.from_dict(data, "attack"),
            fortress=Proposal.from_dict(data, "fortress"),
            game_over=bool(data.get("game_over", False)),
        )

    def to_json(self, indent: int = 2) -> str:
        """Serialize GameState to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "GameState":
        """Deserialize GameState from a JSON string."""
        return cls.from_dict(json.loads(json_str))

    def save(self, filepath: str) -> None:
        """Save GameState to a JSON file."""
        with open(filepath, "w") as f:
            f.write(self.to_json())

    @classmethod
    def load(cls, filepath: str) -> "GameState":
        """Load GameState from a JSON file."""
        with open(filepath, "r") as f:
            return cls.from_json(f.read())
