"""
Combat resolution system.
A battle is a single roll: the strength difference between the republic's side and the
Order picks a win chance from a fixed step table, and one sample in [0, 1) decides it.
The sample is supplied by the caller for reproducibility; a local draw is the fallback.

Functions that take a GameState edit it in place; the reducer only passes fresh copies.
"""

import random
from dataclasses import dataclass

from veche.engine import (
    EQUIPMENT_STRENGTH_BONUS,
    FORTRESS_DEFENSE_BONUS,
    ORDER,
    ORDER_BASE_STRENGTH,
    REPUBLIC,
)
from veche.engine.definitions import GameDefinitions
from veche.engine.effects import strength_modifier
from veche.engine.regions import format_region_name
from veche.engine.state import GameState, Player, ActiveEffect

# (minimum strength difference, win chance %), checked top to bottom
VICTORY_CHANCE_TABLE = (
    (20, 95),
    (15, 85),
    (10, 70),
    (5, 60),
    (0, 50),
    (-5, 40),
    (-10, 30),
    (-15, 15),
)
MIN_VICTORY_CHANCE = 5


@dataclass(frozen=True)
class BattleRoll:
    success: bool
    roll: float  # sample scaled to [0, 100)
    chance_percent: int


def fmt_amount(value: float) -> str:
    """Render strengths and money without a trailing .0 for whole numbers."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def player_strength(player: Player, effects: list[ActiveEffect], defs: GameDefinitions) -> float:
    """Faction base + 5 per weapon and armor + strength effects, never below 0."""
    faction_def = defs.factions.get(player.faction)
    strength = faction_def.base_strength if faction_def else 0
    strength += player.weapons * EQUIPMENT_STRENGTH_BONUS
    strength += player.armor * EQUIPMENT_STRENGTH_BONUS
    strength += strength_modifier(effects, player.faction)
    return max(0, strength)


def total_strength(
    players: list[Player],
    indices: list[int],
    effects: list[ActiveEffect],
    defs: GameDefinitions,
) -> float:
    return sum(player_strength(players[i], effects, defs) for i in indices)


def order_defense_strength(state: GameState, region_id: str) -> int:
    """The Order holds a region with fixed strength 100, +10 behind a fortress."""
    region = state.regions.get(region_id)
    bonus = FORTRESS_DEFENSE_BONUS if region is not None and region.fortress else 0
    return ORDER_BASE_STRENGTH + bonus


def victory_chance(strength_diff: float) -> int:
    """Monotonic step table from strength difference to win chance in percent."""
    for threshold, chance in VICTORY_CHANCE_TABLE:
        if strength_diff >= threshold:
            return chance
    return MIN_VICTORY_CHANCE


def roll_for_victory(strength_diff: float, sample: float | None = None) -> BattleRoll:
    """
    Victory iff sample * 100 < chance.
    sample=0.0 always wins; sample>=0.95 always loses (top chance is 95%).
    """
    chance = victory_chance(strength_diff)
    if sample is None:
        sample = random.random()
    roll = sample * 100
    return BattleRoll(success=roll < chance, roll=roll, chance_percent=chance)


def resolve_attack(
    state: GameState,
    target: str,
    attackers: list[int],
    sample: float | None,
    defs: GameDefinitions,
) -> tuple[BattleRoll, float, int]:
    """
    Republic attack on an Order-held region. Funding is already paid.
    On victory the region flips to the republic.
    Returns (roll, attacker_strength, defender_strength); sets state.last_event_result.
    """
    defender_strength = order_defense_strength(state, target)
    attacker_strength = total_strength(state.players, attackers, state.active_effects, defs)
    result = roll_for_victory(attacker_strength - defender_strength, sample)
    name = format_region_name(target, defs)
    stats = (
        f"({result.chance_percent}% chance, Strength: "
        f"{fmt_amount(attacker_strength)} vs {fmt_amount(defender_strength)})"
    )

    if result.success:
        state.regions[target].controller = REPUBLIC
        state.last_event_result = f"VICTORY! {name} recaptured from the Order! {stats}"
    else:
        state.last_event_result = f"DEFEAT! Attack on {name} failed! {stats}"

    return result, attacker_strength, defender_strength


def _building_owner(building_type: str, defs: GameDefinitions) -> str | None:
    building_def = defs.buildings.get(building_type)
    return building_def.faction if building_def else None


def _lose_improvements(state: GameState, faction: str | None, count: int) -> None:
    if faction is None or count <= 0:
        return
    for player in state.players:
        if player.faction == faction:
            player.improvements = max(0, player.improvements - count)


def surrender_region(state: GameState, region_id: str, defs: GameDefinitions) -> str:
    """
    Hand a region to the Order; all its buildings are destroyed (fortress stays).
    Losing the capital ends the game.
    Returns the narrative message (also stored in last_event_result).
    """
    if region_id == defs.capital():
        state.game_over = True
        message = "GAME OVER: Pskov has fallen to the Teutonic Order!"
        state.last_event_result = message
        return message

    region = state.regions[region_id]
    region.controller = ORDER
    for building_type, count in region.buildings.items():
        if count > 0:
            _lose_improvements(state, _building_owner(building_type, defs), count)
    region.buildings = {b: 0 for b in region.buildings}

    message = f"{format_region_name(region_id, defs)} surrendered to the Order! All buildings destroyed."
    state.last_event_result = message
    return message


def destroy_random_buildings(
    state: GameState,
    region_id: str,
    count: int,
    rng: random.Random,
    defs: GameDefinitions,
) -> list[str]:
    """
    Destroy up to `count` buildings of distinct types in a region.
    Merchant buildings (stackable) lose one; others are cleared.
    Returns display names of what was destroyed.
    """
    region = state.regions[region_id]
    available = [b for b, n in region.buildings.items() if n > 0]
    destroyed = []

    for _ in range(min(count, len(available))):
        building_type = available.pop(rng.randrange(len(available)))
        building_def = defs.buildings.get(building_type)
        if building_def is not None and building_def.max_per_region > 1:
            region.buildings[building_type] -= 1
            lost = 1
        else:
            lost = region.buildings[building_type]
            region.buildings[building_type] = 0
        _lose_improvements(state, _building_owner(building_type, defs), lost)
        destroyed.append(building_def.display_name if building_def else building_type)

    return destroyed


def defend_region(
    state: GameState,
    order_strength: int,
    target: str,
    defenders: list[int],
    sample: float | None,
    defs: GameDefinitions,
) -> BattleRoll:
    """
    Order attack on a republic region. Defenders' funding is already paid.
    A fortress adds +10 to the defenders. Defeat surrenders the region.
    """
    defender_strength = total_strength(state.players, defenders, state.active_effects, defs)
    if state.regions[target].fortress:
        defender_strength += FORTRESS_DEFENSE_BONUS

    result = roll_for_victory(defender_strength - order_strength, sample)
    name = format_region_name(target, defs)
    stats = (
        f"({result.chance_percent}% chance, Strength: "
        f"{fmt_amount(defender_strength)} vs {fmt_amount(order_strength)})"
    )

    if result.success:
        state.last_event_result = f"VICTORY! {name} successfully defended! {stats}"
    else:
        surrender_message = surrender_region(state, target, defs)
        state.last_event_result = f"DEFEAT! {name} lost to the Order! {stats} {surrender_message}"

    return result
