"""
Event resolution: immediate events, majority voting with defaults, Order attacks and chained events.
"""

from veche.engine.actions import RandomValues
from veche.engine.event_resolution import (
    ROB_FOREIGN_RETALIATION,
    choose_order_target,
    resolve_event,
    winning_option,
)
from veche.engine.phases import calculate_income

from helpers import set_money


def resolve(state, defs, event_id, votes=(None, None, None), **rolls):
    state.current_event = event_id
    state.event_votes = tuple(votes)
    resolution = resolve_event(state, defs.events[event_id], defs, RandomValues(**rolls))
    return resolution


# ===== Immediate =====

def test_good_harvest(events_state, defs):
    resolve(events_state, defs, "good_harvest")
    assert [p.money for p in events_state.players] == [12, 12, 12]
    assert events_state.event_resolved
    assert events_state.last_event_result == "Good harvest! All factions gain 2."


def test_heresy(events_state, defs):
    resolve(events_state, defs, "heresy")
    (effect,) = events_state.active_effects
    assert (effect.type, effect.target, effect.value, effect.turns_remaining) == ("strength", "all", -5, 2)


def test_city_fire_destroys_two_building_types(events_state, defs):
    pskov = events_state.regions["pskov"]
    pskov.buildings.update({"noble_manor": 1, "commoner_huts": 1, "merchant_church": 2})
    events_state.players[0].improvements = 1
    events_state.players[1].improvements = 2
    events_state.players[2].improvements = 1

    resolve(events_state, defs, "city_fire", event_roll=0.3)

    assert sum(pskov.buildings.values()) in (1, 2)
    assert sum(p.improvements for p in events_state.players) == sum(pskov.buildings.values())
    assert events_state.last_event_result.startswith("City fire! Buildings destroyed: ")


def test_fire_with_empty_city(events_state, defs):
    resolve(events_state, defs, "fire", event_roll=0.3)
    assert events_state.last_event_result == "Fire in the merchant quarter! Building destroyed: None"


# ===== Voting =====

def test_winning_option_needs_two_votes(defs):
    event = defs.events["merchants_robbed"]
    assert winning_option(event, ("rob_foreign", "rob_foreign", None)) == "rob_foreign"
    assert winning_option(event, ("rob_foreign", "demand_compensation", "trade_risk")) == "trade_risk"
    assert winning_option(event, (None, None, None)) == "trade_risk"
    assert winning_option(event, ("demand_compensation",) * 3) == "demand_compensation"


def test_default_option_applies(events_state, defs):
    resolution = resolve(events_state, defs, "merchants_robbed", ("rob_foreign", None, None))
    assert resolution.winning_option == "trade_risk"
    assert events_state.active_effects[0].target == "Merchants"
    assert events_state.active_effects[0].value == -10


def test_rob_foreign_chains_into_order_attack(events_state, defs):
    events_state.event_image_revealed = True
    resolution = resolve(
        events_state, defs, "merchants_robbed", ("rob_foreign", "rob_foreign", None), event_roll=0.2
    )
    assert resolution.chained_event == ROB_FOREIGN_RETALIATION
    assert events_state.current_event == ROB_FOREIGN_RETALIATION
    assert events_state.event_votes == (None, None, None)
    assert events_state.event_resolved is False
    assert events_state.event_image_revealed is False


def test_rob_foreign_unnoticed(events_state, defs):
    resolution = resolve(
        events_state, defs, "merchants_robbed", ("rob_foreign", "rob_foreign", None), event_roll=0.7
    )
    assert resolution.chained_event is None
    assert events_state.event_resolved
    assert events_state.last_event_result == "The robbery went unnoticed."


def test_demand_compensation(events_state, defs):
    votes = ("demand_compensation",) * 2 + (None,)
    resolve(events_state, defs, "merchants_robbed", votes, event_roll=0.9)
    assert events_state.players[1].money == 9
    assert events_state.active_effects == []


def test_investigate_bribes(events_state, defs):
    set_money(events_state, 1, 10, 10)
    resolve(events_state, defs, "boyars_take_bribes", ("investigate", "investigate", None))
    assert events_state.players[0].money == 0
    assert events_state.active_effects[0].value == -15
    assert events_state.active_effects[0].turns_remaining == 3


def test_ignored_bribes_uprising(events_state, defs):
    resolve(events_state, defs, "boyars_take_bribes", event_roll=0.1)
    assert events_state.last_event_result.startswith("UPRISING!")
    assert events_state.active_effects[0].value == -7


def test_embassy_split_among_supporters(events_state, defs):
    set_money(events_state, 1, 1, 0)
    resolve(events_state, defs, "embassy", ("luxurious", "luxurious", None))
    assert [p.money for p in events_state.players] == [0, 0, 0]
    assert events_state.last_event_result == "Embassy built! All factions gain +100% income for 5 turns."
    assert calculate_income(events_state, events_state.players[2]) == 4.0


def test_embassy_unaffordable(events_state, defs):
    set_money(events_state, 0.5, 5, 5)
    resolve(events_state, defs, "embassy", ("modest", "modest", None))
    assert [p.money for p in events_state.players] == [0.5, 5, 5]
    assert events_state.active_effects == []


def test_relics_temple(events_state, defs):
    resolve(events_state, defs, "relics_found", ("build_temple",) * 3)
    assert [p.money for p in events_state.players] == [8, 8, 8]
    assert events_state.active_effects[0].value == 10


def test_drought_all_or_nothing(events_state, defs):
    set_money(events_state, 5, 0.5, 5)
    resolve(events_state, defs, "drought", ("buy_food",) * 3)
    assert [p.money for p in events_state.players] == [5, 0.5, 5]
    assert events_state.active_effects[0].value == -10


def test_plague_isolation(events_state, defs):
    resolve(events_state, defs, "plague", ("fund_isolation", "fund_isolation", "no_isolation"))
    assert [p.money for p in events_state.players] == [8, 8, 8]
    assert events_state.active_effects[0].value == -10
    assert events_state.active_effects[0].turns_remaining == 2


def test_izhorian_rob(events_state, defs):
    resolve(events_state, defs, "izhorian_delegation", ("rob", "rob", "accept"))
    assert [p.money for p in events_state.players] == [13, 13, 13]
    assert events_state.active_effects[0].turns_remaining == 6


# ===== Order attacks =====

def test_order_target_choice(state, defs):
    assert choose_order_target(state, defs, 0.0) == "gdov"
    assert choose_order_target(state, defs, 0.99) == "pechory"
    for region_id in state.regions:
        if region_id != "pskov":
            state.regions[region_id].controller = "order"
    assert choose_order_target(state, defs, 0.5) == "pskov"


def test_undefended_attack_surrenders(events_state, defs):
    events_state.regions["gdov"].buildings["noble_manor"] = 1
    events_state.players[0].improvements = 1

    resolve(events_state, defs, "order_attack_100", ("false", "false", None), target_roll=0.0)

    assert events_state.regions["gdov"].controller == "order"
    assert events_state.regions["gdov"].buildings["noble_manor"] == 0
    assert events_state.players[0].improvements == 0
    assert events_state.event_resolved


def test_unfunded_defense_surrenders(events_state, defs):
    set_money(events_state, 1, 10, 10)
    resolve(events_state, defs, "order_attack_90", ("true", None, None), target_roll=0.0, battle_roll=0.0)
    assert events_state.players[0].money == 1
    assert events_state.regions["gdov"].controller == "order"
    assert events_state.last_event_result.startswith("Defense unfunded (3 each needed)!")


def test_funded_defense(events_state, defs):
    resolve(events_state, defs, "order_attack_90", ("true",) * 3, target_roll=0.99, battle_roll=0.0)
    assert [p.money for p in events_state.players] == [9, 9, 9]
    assert events_state.regions["pechory"].controller == "republic"
    assert events_state.last_event_result.startswith("VICTORY! Pechory successfully defended!")


def test_losing_the_capital_ends_the_game(events_state, defs):
    for region_id in events_state.regions:
        if region_id != "pskov":
            events_state.regions[region_id].controller = "order"
    resolve(events_state, defs, "order_attack_110")
    assert events_state.game_over
