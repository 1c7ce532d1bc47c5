"""
Event drawing.
Deterministic mode walks the deck in catalog order (for tests and replays);
otherwise one uniform pick per draw.
"""

import random

from veche.engine.definitions import EventDefinition


def draw_event(
    deck: tuple[EventDefinition, ...] | list[EventDefinition],
    deterministic: bool = False,
    index: int = 0,
    roll: float | None = None,
) -> tuple[EventDefinition, int]:
    """
    Draw the next event from the deck.

    Args:
        deck: Drawable events in catalog order
        deterministic: Sequential selection instead of random
        index: Current position for sequential selection
        roll: Sample in [0, 1) for random selection; local draw if None

    Returns:
        (event, next_index). In random mode next_index == index.
    """
    if not deck:
        raise ValueError("Cannot draw from an empty event deck")
    size = len(deck)

    if deterministic:
        position = index % size
        return deck[position], (position + 1) % size

    if roll is None:
        roll = random.random()
    position = min(int(roll * size), size - 1)
    return deck[position], index
