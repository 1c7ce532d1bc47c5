"""
Utility functions for the game engine.
"""

from veche.engine import PHASES, PLAYER_COUNT
from veche.engine.definitions import GameDefinitions, load_static_definitions
from veche.engine.state import ConstructionActions, GameState, Player, Region, default_construction_actions


_default_definitions: GameDefinitions | None = None


def get_default_definitions() -> GameDefinitions:
    """Load the bundled static tables once per process."""
    global _default_definitions
    if _default_definitions is None:
        _default_definitions = load_static_definitions()
    return _default_definitions


def create_initial_construction_actions() -> tuple[ConstructionActions, ...]:
    """Nobody has built or bought anything yet: one fresh flag pair per player."""
    return default_construction_actions()


def create_region_buildings(region_id: str, defs: GameDefinitions) -> dict[str, int]:
    """Zeroed building slots a region can hold (capital-only types only in the capital)."""
    return {
        bid: 0
        for bid, bdef in defs.buildings.items()
        if not bdef.pskov_only or region_id == defs.capital()
    }


def create_initial_game_state(defs: GameDefinitions | None = None) -> GameState:
    """
    Canonical starting state: turn 1, resources phase, three penniless factions in
    player order, every playable region with its starting controller and fortress.

    Args:
        defs: Static definitions. Defaults to the bundled data tables.
    """
    if defs is None:
        defs = get_default_definitions()

    players = [Player(faction=faction_id) for faction_id in defs.faction_order()]
    if len(players) != PLAYER_COUNT:
        raise ValueError(f"Exactly {PLAYER_COUNT} factions required, got {len(players)}")

    regions = {}
    for region_id in defs.playable_regions():
        region_def = defs.regions[region_id]
        regions[region_id] = Region(
            controller=region_def.controller,
            fortress=region_def.fortress,
            buildings=create_region_buildings(region_id, defs),
        )

    return GameState(
        turn=1,
        phase=PHASES[0],
        players=players,
        regions=regions,
        current_player=0,
        selected_region=defs.capital(),
        construction_actions=create_initial_construction_actions(),
    )


def print_game_state(state: GameState, defs: GameDefinitions | None = None):
    """
    Pretty-print the current game state.

    Args:
        state: Current game state
        defs: Definitions for display names (optional)
    """
    print(f"\n{'='*60}")
    print(f"Turn {state.turn} | Phase: {state.phase} | Player: {state.current_player}")
    print(f"{'='*60}")

    for region_id, region in state.regions.items():
        name = defs.regions[region_id].display_name if defs and region_id in defs.regions else region_id
        fortress = " [fortress]" if region.fortress else ""
        print(f"\n{name} ({region.controller}){fortress}")
        built = {b: n for b, n in region.buildings.items() if n > 0}
        if built:
            for building_id, count in sorted(built.items()):
                print(f"  - {building_id}: {count}")
        else:
            print("  - No buildings")

    print(f"\n{'Players':.<40}")
    for i, p in enumerate(state.players):
        print(f"  {i} {p.faction}: money {p.money:g}, weapons {p.weapons}, "
              f"armor {p.armor}, improvements {p.improvements}")

    if state.active_effects:
        print(f"\n{'Effects':.<40}")
        for e in state.active_effects:
            print(f"  {e.description or e.type} ({e.target}, {e.value:+g}, {e.turns_remaining} turns)")

    if state.current_event:
        print(f"\nEvent: {state.current_event} (resolved: {state.event_resolved})")
    if state.last_event_result:
        print(f"\n{state.last_event_result}")
    print()
