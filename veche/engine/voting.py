"""
Veche proposals: propose -> collect per-player funding votes -> execute or cancel.
Attack and fortress construction run on the same machine, parameterised by ProposalKind.

Funding is all-or-nothing: the pool is split evenly among the players who voted True,
and if any of them cannot pay their share nobody pays anything.
Cancellation is always free.

Functions take a fresh state copy and edit it in place.
"""

from dataclasses import dataclass
from typing import Callable

from veche.engine import ORDER, PROPOSAL_POOL_COST, REPUBLIC
from veche.engine.actions import RandomValues
from veche.engine.combat import fmt_amount, resolve_attack
from veche.engine.definitions import GameDefinitions
from veche.engine.regions import format_region_name, get_valid_republic_attack_targets
from veche.engine.results import (
    DUPLICATE_ACTION,
    INVALID_TARGET,
    NO_PARTICIPANTS,
    PHASE_MISMATCH,
    REASON_INSUFFICIENT_FUNDS,
    ActionOutcome,
    ActionRejected,
    attack_executed,
    fortress_built,
    proposal_cancelled,
    proposal_initiated,
    proposal_vote_cast,
)
from veche.engine.state import EMPTY_VOTES, PLANNING, GameState, Proposal, with_slot


@dataclass(frozen=True)
class ProposalKind:
    """
    One kind of veche proposal.

    check_target(state, target, defs) returns an error message or None.
    effect(state, target, participants, share, random_values, defs) applies the
    funded outcome and returns the outcome record.
    """
    name: str
    pool_cost: float
    check_target: Callable
    effect: Callable
    no_funding_message: str
    short_funding_message: str


# ===== Attack =====

def _check_attack_target(state: GameState, target: str, defs: GameDefinitions) -> str | None:
    region = state.regions.get(target)
    if region is None:
        return f"Unknown region: {target}"
    if region.controller != ORDER:
        return f"{format_region_name(target, defs)} is not held by the Order"
    if target not in get_valid_republic_attack_targets(state.regions, defs):
        return f"{format_region_name(target, defs)} does not border republic territory"
    return None


def _attack_effect(
    state: GameState,
    target: str,
    participants: list[int],
    share: float,
    random_values: RandomValues,
    defs: GameDefinitions,
) -> ActionOutcome:
    roll, attacker_strength, defender_strength = resolve_attack(
        state, target, participants, random_values.battle_roll, defs
    )
    return attack_executed(
        target=target,
        success=roll.success,
        participants=participants,
        cost_per_participant=share,
        attacker_strength=attacker_strength,
        defender_strength=defender_strength,
        chance_percent=roll.chance_percent,
        roll=roll.roll,
    )


# ===== Fortress =====

def _check_fortress_target(state: GameState, target: str, defs: GameDefinitions) -> str | None:
    region = state.regions.get(target)
    if region is None:
        return f"Unknown region: {target}"
    if region.controller != REPUBLIC:
        return f"{format_region_name(target, defs)} is not held by the republic"
    if region.fortress:
        return f"{format_region_name(target, defs)} already has a fortress"
    return None


def _fortress_effect(
    state: GameState,
    target: str,
    participants: list[int],
    share: float,
    random_values: RandomValues,
    defs: GameDefinitions,
) -> ActionOutcome:
    state.regions[target].fortress = True
    state.last_event_result = f"Fortress built in {format_region_name(target, defs)}! (+10 defense bonus)"
    return fortress_built(target, participants, share)


ATTACK = ProposalKind(
    name="attack",
    pool_cost=PROPOSAL_POOL_COST,
    check_target=_check_attack_target,
    effect=_attack_effect,
    no_funding_message="Attack cancelled - no participants!",
    short_funding_message="Attack cancelled - not enough funding!",
)

FORTRESS = ProposalKind(
    name="fortress",
    pool_cost=PROPOSAL_POOL_COST,
    check_target=_check_fortress_target,
    effect=_fortress_effect,
    no_funding_message="Fortress construction cancelled - no funding!",
    short_funding_message="Fortress construction cancelled - insufficient funding!",
)

PROPOSAL_KINDS = {ATTACK.name: ATTACK, FORTRESS.name: FORTRESS}


def open_proposals(state: GameState) -> list[str]:
    return [name for name in PROPOSAL_KINDS if state.proposal(name).is_open]


# ===== State machine =====

def initiate(state: GameState, kind: ProposalKind, target: str, defs: GameDefinitions) -> ActionOutcome:
    """
    Open a funding window for `target`.
    Raises ActionRejected if any proposal is already open or the target is not eligible.
    """
    already_open = open_proposals(state)
    if already_open:
        raise ActionRejected(
            DUPLICATE_ACTION,
            f"A {already_open[0]} proposal is already open; execute or cancel it first",
        )
    problem = kind.check_target(state, target, defs)
    if problem is not None:
        raise ActionRejected(INVALID_TARGET, problem)

    state.set_proposal(kind.name, Proposal(planning=PLANNING, target=target, votes=EMPTY_VOTES))
    return proposal_initiated(kind.name, target)


def vote(state: GameState, kind: ProposalKind, player_index: int, commit: bool) -> ActionOutcome:
    """Record one player's funding decision. Replays are rejected by the validator."""
    proposal = state.proposal(kind.name)
    state.set_proposal(kind.name, Proposal(
        planning=proposal.planning,
        target=proposal.target,
        votes=with_slot(proposal.votes, player_index, commit),
    ))
    return proposal_vote_cast(kind.name, player_index, commit)


def cancel(state: GameState, kind: ProposalKind) -> ActionOutcome:
    """Close the window unconditionally. No money moves."""
    state.set_proposal(kind.name, Proposal())
    return proposal_cancelled(kind.name)


def execute(
    state: GameState,
    kind: ProposalKind,
    random_values: RandomValues,
    defs: GameDefinitions,
) -> ActionOutcome:
    """
    Resolve the open proposal.

    - no participants: cancelled, reason no_participants
    - any participant short of pool / participants: cancelled, reason insufficient_funds,
      nobody is charged
    - otherwise each participant pays exactly the share and the kind's effect applies
    The proposal is closed in every case.
    """
    proposal = state.proposal(kind.name)
    if not proposal.is_open or proposal.target is None:
        raise ActionRejected(PHASE_MISMATCH, f"No {kind.name} proposal is open")

    target = proposal.target
    participants = proposal.participants()
    state.set_proposal(kind.name, Proposal())

    if not participants:
        state.last_event_result = kind.no_funding_message
        return proposal_cancelled(kind.name, NO_PARTICIPANTS)

    share = kind.pool_cost / len(participants)
    short = [i for i in participants if state.players[i].money < share]
    if short:
        names = ", ".join(state.players[i].faction for i in short)
        state.last_event_result = (
            f"{kind.short_funding_message} ({names} cannot pay {fmt_amount(share)})"
        )
        outcome = proposal_cancelled(kind.name, REASON_INSUFFICIENT_FUNDS)
        outcome.payload["short"] = short
        return outcome

    for i in participants:
        state.players[i].money -= share

    return kind.effect(state, target, participants, share, random_values, defs)
