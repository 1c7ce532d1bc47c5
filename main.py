"""
Main entry point for the Veche game engine.
Demonstrates core functionality with a few simulated scenarios.
"""

from veche.engine.actions import (
    RandomValues,
    build_building,
    buy_equipment,
    execute_attack,
    initiate_attack,
    initiate_fortress,
    execute_fortress,
    next_phase,
    next_player,
    resolve_event,
    select_region,
    vote_attack,
    vote_event,
    vote_fortress,
)
from veche.engine.ai import suggest_actions
from veche.engine.reducer import apply_action, replay_from_actions
from veche.engine.utils import (
    create_initial_game_state,
    get_default_definitions,
    print_game_state,
)


def step(state, action, player_id=None, random_values=None, defs=None):
    """Apply one action, print the outcome, and return the new state (unchanged on error)."""
    result = apply_action(state, action, player_id, random_values, defs, deterministic=True)
    if result.ok:
        print(f"✓ {action.type}: {result.result.type} {result.result.payload}")
    else:
        print(f"✗ {action.type}: {result.error} - {result.message}")
    return result.new_state


def main():
    print("Veche - Pskov Republic vs. the Teutonic Order - Game Engine")
    print("=" * 60)

    defs = get_default_definitions()
    state = create_initial_game_state(defs)

    print("\n[INITIAL STATE]")
    print_game_state(state, defs)

    # ===== SCENARIO 1: Income and construction =====
    print("\n[SCENARIO 1: Income + Construction]")
    state = step(state, next_phase(), defs=defs)
    print(f"Money after income: {[p.money for p in state.players]}")

    state = step(state, select_region("izborsk"), 0, defs=defs)
    state = step(state, build_building("noble_manor"), 0, defs=defs)
    state = step(state, build_building("noble_monastery"), 0, defs=defs)  # out of money
    state = step(state, next_player(), 0, defs=defs)
    state = step(state, buy_equipment("weapons"), 1, defs=defs)
    state = step(state, next_player(), 1, defs=defs)
    state = step(state, buy_equipment("armor"), 1, defs=defs)  # not Merchants' turn any more
    state = step(state, buy_equipment("armor"), 2, defs=defs)

    # ===== SCENARIO 2: Event vote =====
    print("\n[SCENARIO 2: Event Vote]")
    state = step(state, next_phase(), defs=defs)
    print(f"Event drawn: {state.current_event}")
    state = step(state, vote_event("demand_compensation"), 0, defs=defs)
    state = step(state, vote_event("demand_compensation"), 1, defs=defs)
    state = step(state, vote_event("demand_compensation"), 1, defs=defs)  # replayed vote
    state = step(state, resolve_event(), random_values=RandomValues(event_roll=0.8), defs=defs)
    print(f"Result: {state.last_event_result}")

    # ===== SCENARIO 3: Veche attack =====
    print("\n[SCENARIO 3: Veche Attack on Bear Hill]")
    state = step(state, next_phase(), defs=defs)
    # Demo top-up goes on a copy; the reducer's output stays intact
    state = state.copy()
    for player in state.players:
        player.money += 4
    state = step(state, initiate_attack("bearhill"), 0, defs=defs)
    state = step(state, initiate_fortress("ostrov"), 1, defs=defs)  # one proposal at a time
    for i in range(3):
        state = step(state, vote_attack(True), i, defs=defs)
    state = step(state, execute_attack(), random_values=RandomValues(battle_roll=0.02), defs=defs)
    print(f"Result: {state.last_event_result}")

    # ===== SCENARIO 4: Fortress =====
    print("\n[SCENARIO 4: Fortress in Gdov]")
    state = step(state, initiate_fortress("gdov"), 2, defs=defs)
    state = step(state, vote_fortress(True), 0, defs=defs)
    state = step(state, vote_fortress(False), 1, defs=defs)
    state = step(state, vote_fortress(True), 2, defs=defs)
    state = step(state, execute_fortress(), defs=defs)
    print(f"Result: {state.last_event_result}")

    state = step(state, next_phase(), defs=defs)
    print_game_state(state, defs)

    # ===== SCENARIO 5: Replay =====
    print("\n[SCENARIO 5: Replay From Action Log]")
    log = [
        (next_phase(), None, None),
        (buy_equipment("weapons"), 0, None),
        (next_phase(), None, None),
        (vote_event("trade_risk"), 0, None),
        (vote_event("trade_risk"), 2, None),
        (resolve_event(), None, RandomValues(event_roll=0.3)),
    ]
    replayed, outcomes = replay_from_actions(create_initial_game_state(defs), log, defs, deterministic=True)
    print(f"Replayed {len(outcomes)} actions: {[o.type for o in outcomes]}")
    print(f"Result: {replayed.last_event_result}")

    # ===== SCENARIO 6: Heuristic seats =====
    print("\n[SCENARIO 6: Heuristics Fill Every Seat for One Round]")
    state = step(create_initial_game_state(defs), next_phase(), defs=defs)
    for seat in range(3):
        for action in suggest_actions(state, seat, defs):
            state = step(state, action, seat, defs=defs)
        if seat < 2:
            state = step(state, next_player(), seat, defs=defs)
    state = step(state, next_phase(), defs=defs)
    for seat in range(3):
        for action in suggest_actions(state, seat, defs):
            state = step(state, action, seat, defs=defs)
    state = step(state, resolve_event(), random_values=RandomValues(event_roll=0.6), defs=defs)
    print(f"Result: {state.last_event_result}")

    # ===== Summary =====
    print("\n" + "=" * 60)
    print("✓ Demonstrated:")
    print("  • Income on leaving the resources phase")
    print("  • Turn-ordered construction with once-per-turn limits")
    print("  • Event voting with replay protection")
    print("  • All-or-nothing veche funding for attacks and fortresses")
    print("  • Deterministic replay from an action log")
    print("  • Heuristic decisions for seats without a player")
    print("=" * 60)


if __name__ == "__main__":
    main()
