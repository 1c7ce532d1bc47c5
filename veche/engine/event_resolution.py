"""
Event resolution.
Applies the outcome of the current event to a fresh state copy.

- immediate: fixed effect, no votes
- voting: an option needs 2+ votes to win, otherwise the event's default option applies
- order_attack: players who voted "true" split the defense pool; unfunded defense
  surrenders the target region

Coin flips use random_values.event_roll (< 0.5 is the unlucky side), building
destruction is seeded from it, and the Order's target is picked with target_roll.
"""

import random
from collections import Counter
from dataclasses import dataclass

from veche.engine import DEFENSE_POOL_COST
from veche.engine.actions import RandomValues
from veche.engine.combat import defend_region, destroy_random_buildings, fmt_amount, surrender_region
from veche.engine.definitions import EventDefinition, GameDefinitions
from veche.engine.effects import income_change, strength_bonus, strength_penalty
from veche.engine.regions import get_valid_order_attack_targets
from veche.engine.state import EMPTY_VOTES, GameState

IMMEDIATE = "immediate"
VOTING = "voting"
ORDER_ATTACK = "order_attack"

DEFEND_VOTE = "true"
ROB_FOREIGN_RETALIATION = "order_attack_rob_foreign"
EMBASSY_COST = 2


@dataclass
class EventResolution:
    """What resolving an event produced, besides the state edits."""
    winning_option: str | None = None
    chained_event: str | None = None


def _event_roll(random_values: RandomValues) -> float:
    if random_values.event_roll is None:
        return random.random()
    return random_values.event_roll


def _rng(random_values: RandomValues) -> random.Random:
    return random.Random(random_values.event_roll)


def _all_can_afford(state: GameState, amount: float, indices=None) -> bool:
    if indices is None:
        indices = range(len(state.players))
    return all(state.players[i].money >= amount for i in indices)


def _charge(state: GameState, amount: float, indices=None) -> None:
    if indices is None:
        indices = range(len(state.players))
    for i in indices:
        state.players[i].money -= amount


def _pay_all(state: GameState, amount: float) -> None:
    for player in state.players:
        player.money += amount


def _charge_faction(state: GameState, faction: str, amount: float) -> None:
    for player in state.players:
        if player.faction == faction:
            player.money = max(0, player.money - amount)


# ===== Immediate events =====

def _resolve_immediate(state: GameState, event: EventDefinition, defs: GameDefinitions, random_values: RandomValues) -> None:
    if event.id == "good_harvest":
        _pay_all(state, 2)
        state.last_event_result = "Good harvest! All factions gain 2."
    elif event.id in ("fire", "city_fire"):
        count = 1 if event.id == "fire" else 2
        destroyed = destroy_random_buildings(state, defs.capital(), count, _rng(random_values), defs)
        prefix = "Fire in the merchant quarter! Building destroyed" if count == 1 else "City fire! Buildings destroyed"
        state.last_event_result = f"{prefix}: {', '.join(destroyed) or 'None'}"
    elif event.id == "heresy":
        state.active_effects.append(strength_penalty("all", 5, 2, "Heresy weakens unity"))
        state.last_event_result = "Heresy spreads! All factions lose 5 strength for 2 turns."
    else:
        state.last_event_result = f"{event.name} occurred."


# ===== Voting events =====

def winning_option(event: EventDefinition, votes) -> str | None:
    """The option with at least 2 votes, else the event's default option."""
    counts = Counter(v for v in votes if v is not None)
    for option, count in counts.most_common():
        if count >= 2:
            return option
    return event.default_option


def _merchants_robbed(state, option, defs, random_values) -> str | None:
    if option == "rob_foreign":
        if _event_roll(random_values) < 0.5 and ROB_FOREIGN_RETALIATION in defs.events:
            state.last_event_result = "The robbery was discovered! The Order retaliates! Prepare for attack!"
            return ROB_FOREIGN_RETALIATION
        state.last_event_result = "The robbery went unnoticed."
    elif option == "demand_compensation":
        _charge_faction(state, "Merchants", 1)
        if _event_roll(random_values) < 0.5:
            state.active_effects.append(strength_penalty("Merchants", 10, 3, "Merchant trading weakness"))
            state.last_event_result = "Compensation demand failed! Merchants weakened for 3 turns."
        else:
            state.last_event_result = "Compensation received successfully."
    elif option == "trade_risk":
        state.active_effects.append(strength_penalty("Merchants", 10, 3, "Trade route disruption"))
        state.last_event_result = "Trade routes disrupted! Merchants weakened for 3 turns."
    return None


def _boyars_take_bribes(state, option, defs, random_values) -> None:
    if option == "investigate":
        _charge_faction(state, "Nobles", 2)
        state.active_effects.append(strength_penalty("Nobles", 15, 3, "Noble corruption investigation penalty"))
        state.last_event_result = "Nobles punished for corruption! -2 money and -15 strength for 3 turns."
    elif option == "ignore":
        if _event_roll(random_values) < 0.5:
            destroyed = destroy_random_buildings(state, defs.capital(), 2, _rng(random_values), defs)
            state.active_effects.append(strength_penalty("all", 7, 2, "Uprising strength penalty"))
            state.last_event_result = f"UPRISING! Buildings destroyed: {', '.join(destroyed) or 'None'}"
        else:
            state.last_event_result = "Corruption ignored. The people grumble but no uprising occurs."


def _embassy(state, option, votes) -> None:
    if option not in ("modest", "luxurious"):
        state.last_event_result = "Embassy refused."
        return
    payers = [i for i, v in enumerate(votes) if v == option]
    if not payers:
        state.last_event_result = "Embassy refused."
        return
    share = EMBASSY_COST / len(payers)
    if not _all_can_afford(state, share, payers):
        state.last_event_result = "Embassy refused - cannot afford."
        return
    _charge(state, share, payers)
    bonus = 1.0 if option == "luxurious" else 0.5
    percent = int(bonus * 100)
    state.active_effects.append(income_change("all", bonus, 5, f"Embassy income bonus (+{percent}%)"))
    state.last_event_result = f"Embassy built! All factions gain +{percent}% income for 5 turns."


def _relics_found(state, option) -> None:
    if option == "build_temple" and _all_can_afford(state, 2):
        _charge(state, 2)
        state.active_effects.append(strength_bonus("all", 10, 5, "Holy relics blessing"))
        state.last_event_result = "Temple built! All factions gain +10 strength for 5 turns."
        return
    state.active_effects.append(strength_penalty("all", 5, 3, "Deception"))
    if option == "build_temple":
        state.last_event_result = "Cannot afford temple! Deception weakens all for 3 turns."
    else:
        state.last_event_result = "It's all deception! All factions lose 5 strength for 3 turns."


def _izhorian_delegation(state, option) -> None:
    if option == "accept":
        _pay_all(state, 3)
        state.active_effects.append(strength_penalty("all", 5, 3, "Izhorian delegation risk"))
        state.last_event_result = "Izhorians accepted! All gain 3, then -5 strength for 3 turns."
    elif option == "rob":
        _pay_all(state, 3)
        state.active_effects.append(strength_penalty("all", 5, 6, "Robbing Izhorians - reputation damaged"))
        state.last_event_result = "Izhorians robbed! All gain 3, then -5 strength for 6 turns."
    else:
        state.last_event_result = "Izhorians sent away. No effect."


def _drought(state, option) -> None:
    if option == "buy_food" and _all_can_afford(state, 1):
        _charge(state, 1)
        state.last_event_result = "Food purchased! All lose 1 but avoid drought penalties."
        return
    state.active_effects.append(strength_penalty("all", 10, 3, "Drought"))
    state.last_event_result = "No food purchased! All factions lose 10 strength for 3 turns."


def _plague(state, option) -> None:
    if option == "fund_isolation" and _all_can_afford(state, 2):
        _charge(state, 2)
        state.active_effects.append(strength_penalty("all", 10, 2, "Plague isolation"))
        state.last_event_result = "Isolation funded! All lose 2 and 10 strength for 2 turns."
        return
    state.active_effects.append(strength_penalty("all", 25, 2, "Plague spreads unchecked"))
    state.last_event_result = "Plague spreads unchecked! All factions lose 25 strength for 2 turns."


def _resolve_voting(state: GameState, event: EventDefinition, defs: GameDefinitions, random_values: RandomValues) -> EventResolution:
    votes = state.event_votes
    option = winning_option(event, votes)
    chained = None

    if event.id == "merchants_robbed":
        chained = _merchants_robbed(state, option, defs, random_values)
    elif event.id == "boyars_take_bribes":
        _boyars_take_bribes(state, option, defs, random_values)
    elif event.id == "embassy":
        _embassy(state, option, votes)
    elif event.id == "relics_found":
        _relics_found(state, option)
    elif event.id == "izhorian_delegation":
        _izhorian_delegation(state, option)
    elif event.id == "drought":
        _drought(state, option)
    elif event.id == "plague":
        _plague(state, option)
    else:
        state.last_event_result = f"Option chosen: {option}"

    return EventResolution(winning_option=option, chained_event=chained)


# ===== Order attacks =====

def choose_order_target(state: GameState, defs: GameDefinitions, target_roll: float | None = None) -> str | None:
    """
    Pick the region the Order strikes. The capital is only attacked when no other
    republic region borders Order land. None if there is nothing to attack.
    """
    capital = defs.capital()
    targets = get_valid_order_attack_targets(state.regions, defs)
    outer = [t for t in targets if t != capital]
    if outer:
        if target_roll is None:
            target_roll = random.random()
        return outer[min(int(target_roll * len(outer)), len(outer) - 1)]
    if capital in targets:
        return capital
    return None


def _resolve_order_attack(state: GameState, event: EventDefinition, defs: GameDefinitions, random_values: RandomValues) -> EventResolution:
    target = choose_order_target(state, defs, random_values.target_roll)
    if target is None:
        state.last_event_result = "The Teutonic Order could not find a valid target to attack."
        return EventResolution()

    defenders = [i for i, v in enumerate(state.event_votes) if v == DEFEND_VOTE]
    if not defenders:
        surrender_region(state, target, defs)
        return EventResolution(winning_option="false")

    share = DEFENSE_POOL_COST / len(defenders)
    if not _all_can_afford(state, share, defenders):
        message = surrender_region(state, target, defs)
        state.last_event_result = (
            f"Defense unfunded ({fmt_amount(share)} each needed)! {message}"
        )
        return EventResolution(winning_option=DEFEND_VOTE)

    _charge(state, share, defenders)
    defend_region(
        state,
        event.order_strength or 100,
        target,
        defenders,
        random_values.battle_roll,
        defs,
    )
    return EventResolution(winning_option=DEFEND_VOTE)


def resolve_event(
    state: GameState,
    event: EventDefinition,
    defs: GameDefinitions,
    random_values: RandomValues | None = None,
) -> EventResolution:
    """
    Resolve `event` against `state` (a fresh copy, edited in place).

    Marks the event resolved, unless the outcome chained into a follow-up event:
    then the follow-up becomes the current event, unresolved and hidden, with votes reset.
    """
    random_values = random_values or RandomValues()

    if event.type == IMMEDIATE:
        _resolve_immediate(state, event, defs, random_values)
        resolution = EventResolution()
    elif event.type == VOTING:
        resolution = _resolve_voting(state, event, defs, random_values)
    elif event.type == ORDER_ATTACK:
        resolution = _resolve_order_attack(state, event, defs, random_values)
    else:
        state.last_event_result = f"Event type {event.type} not implemented."
        resolution = EventResolution()

    if resolution.chained_event is not None:
        state.current_event = resolution.chained_event
        state.event_votes = EMPTY_VOTES
        state.event_resolved = False
        state.event_image_revealed = False
    else:
        state.event_resolved = True
    return resolution
