"""
Active effects: time-boxed modifiers consulted by income and strength calculations.

Effect types:
- "strength": flat delta added to a faction's strength (negative for penalties)
- "income": delta added to the income multiplier (e.g. -0.5 halves income)
Target is a faction id or "all".
"""

from veche.engine.state import ActiveEffect

STRENGTH = "strength"
INCOME = "income"


def create_effect(
    type: str,
    target: str,
    value: float,
    turns: int,
    description: str = "",
) -> ActiveEffect:
    if type not in (STRENGTH, INCOME):
        raise ValueError(f"Unknown effect type: {type}")
    if turns <= 0:
        raise ValueError(f"Effect must last at least one turn, got {turns}")
    return ActiveEffect(
        type=type,
        target=target,
        value=value,
        turns_remaining=turns,
        description=description,
    )


def strength_bonus(target: str, value: int, turns: int, description: str = "") -> ActiveEffect:
    return create_effect(STRENGTH, target, abs(value), turns, description)


def strength_penalty(target: str, value: int, turns: int, description: str = "") -> ActiveEffect:
    return create_effect(STRENGTH, target, -abs(value), turns, description)


def income_change(target: str, delta: float, turns: int, description: str = "") -> ActiveEffect:
    return create_effect(INCOME, target, delta, turns, description)


def strength_modifier(effects: list[ActiveEffect], faction: str) -> float:
    """Sum of strength effects targeting this faction or "all"."""
    return sum(e.value for e in effects if e.type == STRENGTH and e.applies_to(faction))


def income_modifier(effects: list[ActiveEffect], faction: str) -> float:
    """1 + sum of income effects targeting this faction or "all"."""
    return 1.0 + sum(e.value for e in effects if e.type == INCOME and e.applies_to(faction))


def effects_for_faction(effects: list[ActiveEffect], faction: str) -> list[ActiveEffect]:
    return [e for e in effects if e.applies_to(faction)]


def has_penalty_effects(effects: list[ActiveEffect], faction: str) -> bool:
    return any(e.value < 0 and e.applies_to(faction) for e in effects)


def decay(effects: list[ActiveEffect]) -> list[ActiveEffect]:
    """
    End-of-round update: every effect loses one turn; expired ones are dropped.
    Returns a new list; the input effects are not modified.
    """
    remaining = []
    for e in effects:
        turns = e.turns_remaining - 1
        if turns > 0:
            remaining.append(ActiveEffect(
                type=e.type,
                target=e.target,
                value=e.value,
                turns_remaining=turns,
                description=e.description,
            ))
    return remaining
