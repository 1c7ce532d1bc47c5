"""
Veche - server-authoritative engine for a 3-player Pskov Republic strategy game.
"""
