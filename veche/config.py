"""
Single place for default game/server configuration.
Values can be overridden with environment variables where noted.
"""
import os
from pathlib import Path

# Static tables (regions, factions, buildings, events) live here.
DEFAULT_DATA_DIR = Path(__file__).parent / "data"

# Sequential (replayable) event drawing instead of random. VECHE_DETERMINISTIC_EVENTS=1 to enable.
DETERMINISTIC_EVENTS = os.environ.get("VECHE_DETERMINISTIC_EVENTS", "0") == "1"

CORS_ORIGINS = ["http://localhost:5173", "http://localhost:5174", "http://localhost:3000"]
