"""
Map queries over the static adjacency table.
Which regions each side can strike depends on who currently controls what.
"""

from veche.engine import ORDER, REPUBLIC
from veche.engine.definitions import GameDefinitions
from veche.engine.state import Region


def format_region_name(region_id: str, defs: GameDefinitions | None = None) -> str:
    """Display name for result messages ("bearhill" -> "Bear Hill")."""
    if defs is not None and region_id in defs.regions:
        return defs.regions[region_id].display_name
    return region_id[:1].upper() + region_id[1:]


def count_republic_regions(regions: dict[str, Region]) -> int:
    return sum(1 for r in regions.values() if r.controller == REPUBLIC)


def _controlled_by(regions: dict[str, Region], side: str, defs: GameDefinitions) -> list[str]:
    controlled = [rid for rid, r in regions.items() if r.controller == side]
    if side == ORDER:
        # Non-playable map nodes (the Order's home territory) are permanently Order-held
        controlled.extend(
            rid for rid, rdef in defs.regions.items()
            if not rdef.playable and rdef.controller == ORDER
        )
    return controlled


def _adjacent_targets(
    regions: dict[str, Region],
    defs: GameDefinitions,
    from_side: str,
    target_side: str,
) -> list[str]:
    """Regions held by target_side that touch any region held by from_side (map order)."""
    sources = set(_controlled_by(regions, from_side, defs))
    targets = []
    for rid, rdef in defs.regions.items():
        region = regions.get(rid)
        if region is None or region.controller != target_side:
            continue
        if any(adj in sources for adj in rdef.adjacent):
            targets.append(rid)
    return targets


def get_valid_republic_attack_targets(regions: dict[str, Region], defs: GameDefinitions) -> list[str]:
    """Order-held regions adjacent to republic territory. The Order's home is never a target."""
    return _adjacent_targets(regions, defs, REPUBLIC, ORDER)


def get_valid_order_attack_targets(regions: dict[str, Region], defs: GameDefinitions) -> list[str]:
    """Republic regions adjacent to Order territory (including the Order's home)."""
    return _adjacent_targets(regions, defs, ORDER, REPUBLIC)
