"""
Seat tokens.
Joining a room hands out a signed JWT naming the room and the seat (player index).
Every mutating request carries it in the X-Seat-Token header.
"""

import os
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from jose import JWTError, jwt

from veche.engine import PLAYER_COUNT

# Player names: letters, digits, underscore, space and dash, 1-32 chars
PLAYER_NAME_PATTERN = re.compile(r"^[\w \-]{1,32}$")

SECRET_KEY = os.environ.get("JWT_SECRET", "change-me-in-production-use-env")
ALGORITHM = "HS256"
SEAT_TOKEN_EXPIRE_DAYS = 7

seat_header = APIKeyHeader(name="X-Seat-Token", auto_error=False)


@dataclass(frozen=True)
class Seat:
    """The seat a request acts for."""
    room_code: str
    index: int


def create_seat_token(room_code: str, seat: int) -> str:
    expire = datetime.utcnow() + timedelta(days=SEAT_TOKEN_EXPIRE_DAYS)
    payload = {"sub": room_code, "seat": seat, "exp": expire}
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_seat_token(token: str) -> Seat | None:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    room_code = payload.get("sub")
    seat = payload.get("seat")
    if not isinstance(room_code, str) or not isinstance(seat, int) or not 0 <= seat < PLAYER_COUNT:
        return None
    return Seat(room_code, seat)


def validate_player_name(name: str) -> bool:
    return bool(PLAYER_NAME_PATTERN.match(name))


def get_current_seat(token: str | None = Depends(seat_header)) -> Seat:
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Seat-Token header",
        )
    seat = decode_seat_token(token)
    if seat is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired seat token",
        )
    return seat


def require_seat_in_room(seat: Seat, room_code: str) -> None:
    """A token only acts in the room that issued it."""
    if seat.room_code != room_code:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Seat token belongs to another room",
        )
