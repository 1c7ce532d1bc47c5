#!/usr/bin/env python3
"""
Delete a room (lobby or game) by its code, e.g. an abandoned match.
Usage: python scripts/delete_room.py <room_code>
From repo root with PYTHONPATH=. or after pip install -e .
"""
import sys
import os

# Allow running from repo root without installing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from veche.api.database import SessionLocal
from veche.api.models import Game


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python scripts/delete_room.py <room_code>", file=sys.stderr)
        sys.exit(1)
    room_code = sys.argv[1].strip().upper()
    if not room_code:
        print("Error: provide a room code.", file=sys.stderr)
        sys.exit(1)

    db = SessionLocal()
    try:
        room = db.query(Game).filter(Game.room_code == room_code).first()
        if not room:
            print(f"No room found with code: {room_code!r}")
            return
        status = room.status
        db.delete(room)
        db.commit()
        print(f"Deleted room {room_code} ({status}).")
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
