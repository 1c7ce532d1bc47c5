"""
Effects ledger and event deck.
"""

import pytest

from veche.engine.effects import (
    create_effect,
    decay,
    effects_for_faction,
    has_penalty_effects,
    income_change,
    income_modifier,
    strength_bonus,
    strength_modifier,
    strength_penalty,
)
from veche.engine.event_deck import draw_event


def test_modifiers_sum_matching_effects():
    effects = [
        strength_penalty("all", 5, 2),
        strength_penalty("Nobles", 15, 3),
        strength_bonus("Merchants", 10, 5),
        income_change("all", 0.5, 5),
    ]
    assert strength_modifier(effects, "Nobles") == -20
    assert strength_modifier(effects, "Merchants") == 5
    assert strength_modifier(effects, "Commoners") == -5
    assert income_modifier(effects, "Commoners") == 1.5
    assert income_modifier([], "Commoners") == 1.0
    assert len(effects_for_faction(effects, "Merchants")) == 3
    assert has_penalty_effects(effects, "Commoners")
    assert not has_penalty_effects([strength_bonus("all", 10, 5)], "Commoners")


def test_penalty_and_bonus_signs():
    assert strength_penalty("all", 5, 2).value == -5
    assert strength_penalty("all", -5, 2).value == -5
    assert strength_bonus("all", -10, 2).value == 10


def test_create_effect_rejects_bad_input():
    with pytest.raises(ValueError):
        create_effect("morale", "all", 1, 2)
    with pytest.raises(ValueError):
        create_effect("strength", "all", 1, 0)


def test_decay_drops_expired_and_keeps_input():
    effects = [strength_penalty("all", 5, 1), income_change("all", 0.5, 3)]
    remaining = decay(effects)
    assert [e.turns_remaining for e in remaining] == [2]
    assert remaining[0].type == "income"
    assert [e.turns_remaining for e in effects] == [1, 3]


def test_deterministic_draw_walks_deck(defs):
    deck = defs.deck
    event, index = draw_event(deck, deterministic=True, index=0)
    assert event is deck[0] and index == 1
    event, index = draw_event(deck, deterministic=True, index=len(deck) - 1)
    assert event is deck[-1] and index == 0


def test_random_draw_uses_roll(defs):
    deck = defs.deck
    assert draw_event(deck, roll=0.0, index=4) == (deck[0], 4)
    assert draw_event(deck, roll=0.9999)[0] is deck[-1]
    event, _ = draw_event(deck)
    assert event in deck


def test_empty_deck():
    with pytest.raises(ValueError):
        draw_event(())


def test_follow_up_events_are_not_drawable(defs):
    assert "order_attack_rob_foreign" in defs.events
    assert all(e.id != "order_attack_rob_foreign" for e in defs.deck)
