"""
Static definitions for regions, factions, buildings, and events.
All static data lives under veche/data/: regions.json, factions.json, buildings.json, events.json.
Definitions are read-only reference data; the reducer receives them as a GameDefinitions bundle.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


def _default_data_dir() -> Path:
    """Single place for default: veche.config.DEFAULT_DATA_DIR."""
    from veche.config import DEFAULT_DATA_DIR
    return DEFAULT_DATA_DIR


@dataclass(frozen=True)
class RegionDefinition:
    """Defines immutable properties of a map region."""
    id: str
    display_name: str
    adjacent: tuple[str, ...]  # IDs of adjacent regions
    controller: str  # starting controller: "republic" or "order"
    fortress: bool = False  # starts with a fortress
    is_capital: bool = False
    # False for the Order's home territory: on the map for adjacency only, never in GameState.regions
    playable: bool = True


@dataclass(frozen=True)
class FactionDefinition:
    """Defines immutable properties of a player faction."""
    id: str  # "Nobles", "Merchants", "Commoners"
    display_name: str
    base_strength: int


@dataclass(frozen=True)
class BuildingDefinition:
    """Defines a building type a faction can raise during construction."""
    id: str
    display_name: str
    cost: int
    faction: str
    max_per_region: int = 1
    pskov_only: bool = False


@dataclass(frozen=True)
class EventOption:
    id: str
    name: str
    cost_text: Optional[str] = None
    effect_text: Optional[str] = None


@dataclass(frozen=True)
class EventDefinition:
    """A catalog event. Looked up by id, never mutated."""
    id: str
    name: str
    type: str  # "voting", "order_attack", "immediate"
    description: str
    options: tuple[EventOption, ...] = ()
    default_option: Optional[str] = None
    order_strength: Optional[int] = None  # order_attack events only
    question: Optional[str] = None
    # False for events only reachable as a consequence of another event
    drawable: bool = True

    def option_ids(self) -> list[str]:
        return [o.id for o in self.options]


@dataclass(frozen=True)
class GameDefinitions:
    """Everything static the reducer reads. Built once by the initialization path and injected."""
    regions: dict[str, RegionDefinition]
    factions: dict[str, FactionDefinition]
    buildings: dict[str, BuildingDefinition]
    events: dict[str, EventDefinition]
    # Drawable events, in catalog order (deterministic draws index into this)
    deck: tuple[EventDefinition, ...] = field(default_factory=tuple)

    def playable_regions(self) -> list[str]:
        return [rid for rid, r in self.regions.items() if r.playable]

    def capital(self) -> str:
        for rid, r in self.regions.items():
            if r.is_capital:
                return rid
        raise ValueError("No capital region defined")

    def faction_order(self) -> list[str]:
        """Faction ids in player-index order."""
        return list(self.factions.keys())


def _load_json(path: Path):
    with open(path, "r") as f:
        return json.load(f)


def parse_regions(data: dict) -> dict[str, RegionDefinition]:
    regions = {}
    for region_id, r in data.items():
        controller = r.get("controller", "republic")
        if controller not in ("republic", "order"):
            raise ValueError(f"Region {region_id}: unknown controller {controller!r}")
        regions[region_id] = RegionDefinition(
            id=region_id,
            display_name=r.get("display_name", region_id),
            adjacent=tuple(r.get("adjacent", [])),
            controller=controller,
            fortress=bool(r.get("fortress", False)),
            is_capital=bool(r.get("is_capital", False)),
            playable=bool(r.get("playable", True)),
        )
    for region_id, r in regions.items():
        for adj in r.adjacent:
            if adj not in regions:
                raise ValueError(f"Region {region_id} is adjacent to unknown region {adj}")
    return regions


def parse_factions(data: list) -> dict[str, FactionDefinition]:
    return {
        f["id"]: FactionDefinition(
            id=f["id"],
            display_name=f.get("display_name", f["id"]),
            base_strength=int(f.get("base_strength", 0)),
        )
        for f in data
    }


def parse_buildings(data: dict) -> dict[str, BuildingDefinition]:
    return {
        building_id: BuildingDefinition(
            id=building_id,
            display_name=b["display_name"],
            cost=int(b["cost"]),
            faction=b["faction"],
            max_per_region=int(b.get("max_per_region", 1)),
            pskov_only=bool(b.get("pskov_only", False)),
        )
        for building_id, b in data.items()
    }


def parse_events(data: list) -> list[EventDefinition]:
    events = []
    for e in data:
        if e["type"] not in ("voting", "order_attack", "immediate"):
            raise ValueError(f"Event {e['id']}: unknown type {e['type']!r}")
        events.append(EventDefinition(
            id=e["id"],
            name=e["name"],
            type=e["type"],
            description=e.get("description", ""),
            options=tuple(
                EventOption(
                    id=o["id"],
                    name=o["name"],
                    cost_text=o.get("cost_text"),
                    effect_text=o.get("effect_text"),
                )
                for o in e.get("options", [])
            ),
            default_option=e.get("default_option"),
            order_strength=e.get("order_strength"),
            question=e.get("question"),
            drawable=e.get("drawable", True),
        ))
    return events


def load_static_definitions(data_dir: Path | str | None = None) -> GameDefinitions:
    """
    Load static definitions (regions, factions, buildings, events).

    Args:
        data_dir: Directory containing the 4 JSON files. Defaults to veche/data.

    Returns: GameDefinitions bundle
    """
    data_dir = Path(data_dir) if data_dir is not None else _default_data_dir()

    regions = parse_regions(_load_json(data_dir / "regions.json"))
    factions = parse_factions(_load_json(data_dir / "factions.json"))
    buildings = parse_buildings(_load_json(data_dir / "buildings.json"))
    events = parse_events(_load_json(data_dir / "events.json"))

    for building in buildings.values():
        if building.faction not in factions:
            raise ValueError(f"Building {building.id} belongs to unknown faction {building.faction}")

    return GameDefinitions(
        regions=regions,
        factions=factions,
        buildings=buildings,
        events={e.id: e for e in events},
        deck=tuple(e for e in events if e.drawable),
    )
