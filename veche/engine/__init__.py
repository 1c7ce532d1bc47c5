"""
Veche Turn-Based Strategy Game Engine
Pure reducer core without web framework, database, or UI
"""

PHASES = ("resources", "construction", "events", "veche")

FACTIONS = ("Nobles", "Merchants", "Commoners")
PLAYER_COUNT = 3

REPUBLIC = "republic"
ORDER = "order"

# The match ends once this many full rounds have been played
MAX_TURNS = 20

# Combat
EQUIPMENT_STRENGTH_BONUS = 5
FORTRESS_DEFENSE_BONUS = 10
ORDER_BASE_STRENGTH = 100

# Costs
BUILDING_COST = 2
EQUIPMENT_COST = 1
PROPOSAL_POOL_COST = 6  # split among everyone who votes to fund an attack/fortress
DEFENSE_POOL_COST = 3  # split among defenders of an Order attack event

# Income: BASE + per republic region + per own improvement, times effect modifier
BASE_INCOME = 0.5
INCOME_PER_REGION = 0.25
INCOME_PER_IMPROVEMENT = 0.25
