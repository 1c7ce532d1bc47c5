"""
Small state builders shared by the tests.
"""


def set_money(state, *amounts):
    for player, amount in zip(state.players, amounts):
        player.money = amount
    return state
