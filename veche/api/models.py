"""
SQLAlchemy model for game rooms.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text

from .database import Base


class Game(Base):
    __tablename__ = "games"

    room_code = Column(String(16), primary_key=True)  # "PSKOV-XXXX"
    created_at = Column(DateTime, default=datetime.utcnow)
    status = Column(String(32), nullable=False, default="lobby")  # lobby | active | finished
    game_state = Column(Text, nullable=True)  # JSON string of full game state; null while in lobby
    seats = Column(Text, nullable=False)  # JSON array of 3 x ({ "name": str, "ready": bool } | null), index = faction
    action_log = Column(Text, nullable=False, default="[]")  # JSON array of { "action", "player_id", "random_values" }
