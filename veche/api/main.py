"""
FastAPI backend for Veche.
Rooms, seats and the authoritative game state; every action goes through the engine reducer.
"""

import json
import random
import secrets
import string
import threading
from dataclasses import asdict
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .auth import (
    Seat,
    create_seat_token,
    get_current_seat,
    require_seat_in_room,
    validate_player_name,
)
from .database import get_db, init_db
from .models import Game as GameModel

from veche.config import CORS_ORIGINS, DETERMINISTIC_EVENTS
from veche.engine import PLAYER_COUNT
from veche.engine.actions import Action, RandomValues, reset_game
from veche.engine.ai import suggest_actions
from veche.engine.definitions import load_static_definitions
from veche.engine.queries import get_game_summary, validate_action
from veche.engine.reducer import apply_action
from veche.engine.state import GameState
from veche.engine.utils import create_initial_game_state

app = FastAPI(
    title="Veche API",
    description="Backend API for Veche - the Pskov Republic against the Teutonic Order",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log method and path so 500s can be traced to the failing endpoint."""
    method = getattr(request, "method", "?")
    url = getattr(request, "url", None)
    path = url.path if url else "?"
    try:
        response = await call_next(request)
        if response.status_code >= 500:
            print(f"[500] {method} {path}", flush=True)
        return response
    except Exception:
        print(f"[500] {method} {path} (exception)", flush=True)
        raise


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):
    """Return 500 with CORS headers and full traceback so the frontend can read the error."""
    import traceback
    tb = traceback.format_exc()
    traceback.print_exc()
    origin = request.headers.get("origin")
    allow_origin = origin if origin in CORS_ORIGINS else CORS_ORIGINS[0]
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc), "traceback": tb},
        headers={
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Credentials": "true",
        },
    )


definitions = load_static_definitions()

# One mutation in flight per room
_room_locks: dict[str, threading.Lock] = {}
_room_locks_guard = threading.Lock()

ROOM_CODE_PREFIX = "PSKOV-"
ROOM_CODE_CHARS = string.ascii_uppercase + string.digits
ROOM_CODE_LENGTH = 4


# ===== Pydantic Models =====

class JoinRoomRequest(BaseModel):
    player_name: str
    faction: int  # seat index: 0 = Nobles, 1 = Merchants, 2 = Commoners


class ActionRequest(BaseModel):
    type: str
    region_name: str | None = None
    building_type: str | None = None
    item: str | None = None
    vote: str | bool | None = None
    target_region: str | None = None


# ===== Helper Functions =====

def room_lock(room_code: str) -> threading.Lock:
    with _room_locks_guard:
        lock = _room_locks.get(room_code)
        if lock is None:
            lock = threading.Lock()
            _room_locks[room_code] = lock
        return lock


def generate_room_code(db: Session) -> str:
    """Generate a unique room code like PSKOV-A3X7."""
    for _ in range(20):
        code = ROOM_CODE_PREFIX + "".join(secrets.choice(ROOM_CODE_CHARS) for _ in range(ROOM_CODE_LENGTH))
        if db.query(GameModel).filter(GameModel.room_code == code).first() is None:
            return code
    raise HTTPException(status_code=500, detail="Could not generate unique room code")


def get_room(room_code: str, db: Session) -> GameModel:
    row = db.query(GameModel).filter(GameModel.room_code == room_code.upper()).first()
    if not row:
        raise HTTPException(status_code=404, detail=f"Room {room_code} not found")
    return row


def load_seats(row: GameModel) -> list[dict | None]:
    seats = json.loads(row.seats) if row.seats else []
    if not isinstance(seats, list):
        seats = []
    seats = seats[:PLAYER_COUNT]
    seats.extend([None] * (PLAYER_COUNT - len(seats)))
    return seats


def get_game(row: GameModel) -> GameState:
    """Game state stored on the room; 400 while the room is still in the lobby."""
    if row.game_state is None:
        raise HTTPException(status_code=400, detail="Game has not started")
    try:
        raw = json.loads(row.game_state)
    except ValueError:
        raise HTTPException(status_code=500, detail=f"Corrupt game state in room {row.room_code}")
    return GameState.from_dict(raw)


def save_game(row: GameModel, state: GameState, db: Session, log_entry: dict | None = None) -> None:
    """Persist game state (and append to the action log)."""
    row.game_state = json.dumps(state.to_dict())
    row.status = "finished" if state.game_over else "active"
    if log_entry is not None:
        log = json.loads(row.action_log or "[]")
        log.append(log_entry)
        row.action_log = json.dumps(log)
    db.commit()


def draw_random_values() -> RandomValues:
    """All randomness is drawn here, never by clients."""
    return RandomValues(
        battle_roll=random.random(),
        event_roll=random.random(),
        target_roll=random.random(),
    )


def room_info(row: GameModel) -> dict[str, Any]:
    seats = load_seats(row)
    factions = definitions.faction_order()
    return {
        "room_code": row.room_code,
        "status": row.status,
        "game_started": row.game_state is not None,
        "player_count": sum(1 for s in seats if s is not None),
        "seats": [
            None if s is None else {"name": s.get("name"), "faction": factions[i], "ready": bool(s.get("ready"))}
            for i, s in enumerate(seats)
        ],
    }


def state_for_response(state: GameState) -> dict[str, Any]:
    """State dict plus computed summary (strengths, incomes, targets) for the UI."""
    out = state.to_dict()
    out["summary"] = get_game_summary(state, definitions)
    return out


def _require_seated(row: GameModel, seat: Seat) -> None:
    require_seat_in_room(seat, row.room_code)
    if load_seats(row)[seat.index] is None:
        raise HTTPException(status_code=403, detail="Seat is no longer held")


def _apply(row: GameModel, state: GameState, action: Action, seat: Seat, db: Session) -> dict[str, Any]:
    random_values = draw_random_values()
    result = apply_action(
        state,
        action,
        seat.index,
        random_values,
        definitions,
        DETERMINISTIC_EVENTS,
    )
    if not result.ok:
        raise HTTPException(status_code=400, detail={"error": result.error, "message": result.message})
    save_game(row, result.new_state, db, {
        "action": action.to_dict(),
        "player_id": seat.index,
        "random_values": random_values.to_dict(),
    })
    return {
        "state": state_for_response(result.new_state),
        "result": result.result.to_dict() if result.result else None,
    }


@app.on_event("startup")
def on_startup():
    init_db()


# ===== API Endpoints =====

@app.get("/")
def root():
    return {"message": "Veche API", "version": "1.0.0"}


def _safe_asdict_map(defs_dict):
    """Serialize a definitions dict to JSON-serializable form; return {} on any error."""
    try:
        return {k: asdict(v) for k, v in (defs_dict or {}).items()}
    except (TypeError, ValueError):
        return {}


@app.get("/definitions")
def get_definitions():
    """Static game tables: regions, factions, buildings, events."""
    return {
        "regions": _safe_asdict_map(definitions.regions),
        "factions": _safe_asdict_map(definitions.factions),
        "buildings": _safe_asdict_map(definitions.buildings),
        "events": _safe_asdict_map(definitions.events),
    }


# ----- Rooms -----

@app.post("/rooms")
def create_room(db: Session = Depends(get_db)):
    """Create an empty room. Returns the room code players join with."""
    code = generate_room_code(db)
    row = GameModel(
        room_code=code,
        status="lobby",
        game_state=None,
        seats=json.dumps([None] * PLAYER_COUNT),
        action_log="[]",
    )
    db.add(row)
    db.commit()
    return {"room_code": code}


@app.get("/rooms/{room_code}")
def get_room_info(room_code: str, db: Session = Depends(get_db)):
    return room_info(get_room(room_code, db))


@app.post("/rooms/{room_code}/join")
def join_room(room_code: str, request: JoinRoomRequest, db: Session = Depends(get_db)):
    """Take a faction seat. Returns the seat token for X-Seat-Token."""
    if not validate_player_name(request.player_name):
        raise HTTPException(status_code=400, detail="Player name must be 1-32 letters, digits, spaces, - or _")
    if not 0 <= request.faction < PLAYER_COUNT:
        raise HTTPException(status_code=400, detail=f"Faction must be 0..{PLAYER_COUNT - 1}")

    with room_lock(room_code.upper()):
        row = get_room(room_code, db)
        if row.game_state is not None:
            raise HTTPException(status_code=400, detail="Game already started")
        seats = load_seats(row)
        if seats[request.faction] is not None:
            raise HTTPException(status_code=400, detail="Faction already taken")
        seats[request.faction] = {"name": request.player_name, "ready": False}
        row.seats = json.dumps(seats)
        db.commit()

    return {
        "room_code": row.room_code,
        "seat": request.faction,
        "token": create_seat_token(row.room_code, request.faction),
        "room": room_info(row),
    }


@app.post("/rooms/{room_code}/leave")
def leave_room(room_code: str, seat: Seat = Depends(get_current_seat), db: Session = Depends(get_db)):
    """Give up a seat while the room is still in the lobby."""
    with room_lock(room_code.upper()):
        row = get_room(room_code, db)
        _require_seated(row, seat)
        if row.game_state is not None:
            raise HTTPException(status_code=400, detail="Game already started")
        seats = load_seats(row)
        seats[seat.index] = None
        row.seats = json.dumps(seats)
        db.commit()
    return room_info(row)


@app.post("/rooms/{room_code}/ready")
def toggle_ready(room_code: str, seat: Seat = Depends(get_current_seat), db: Session = Depends(get_db)):
    """Toggle ready. The game starts once all three seats are taken and ready."""
    with room_lock(room_code.upper()):
        row = get_room(room_code, db)
        _require_seated(row, seat)
        if row.game_state is not None:
            raise HTTPException(status_code=400, detail="Game already started")
        seats = load_seats(row)
        seats[seat.index]["ready"] = not seats[seat.index].get("ready", False)
        row.seats = json.dumps(seats)

        if all(s is not None and s.get("ready") for s in seats):
            state = create_initial_game_state(definitions)
            save_game(row, state, db)
        else:
            db.commit()

    out = room_info(row)
    if row.game_state is not None:
        out["state"] = state_for_response(get_game(row))
    return out


# ----- Game -----

@app.get("/rooms/{room_code}/state")
def get_game_state(room_code: str, db: Session = Depends(get_db)):
    row = get_room(room_code, db)
    return {
        "room_code": row.room_code,
        "state": state_for_response(get_game(row)),
    }


@app.get("/rooms/{room_code}/log")
def get_action_log(room_code: str, db: Session = Depends(get_db)):
    """Accepted actions with their acting seat and random values, in order (replayable)."""
    row = get_room(room_code, db)
    return {"room_code": row.room_code, "log": json.loads(row.action_log or "[]")}


@app.post("/rooms/{room_code}/actions")
def post_action(
    room_code: str,
    request: ActionRequest,
    seat: Seat = Depends(get_current_seat),
    db: Session = Depends(get_db),
):
    """Apply one action for the token's seat. Engine errors come back as 400 with the category."""
    with room_lock(room_code.upper()):
        row = get_room(room_code, db)
        _require_seated(row, seat)
        state = get_game(row)
        action = Action.from_dict(request.model_dump())
        return _apply(row, state, action, seat, db)


@app.post("/rooms/{room_code}/actions/validate")
def validate_room_action(
    room_code: str,
    request: ActionRequest,
    seat: Seat = Depends(get_current_seat),
    db: Session = Depends(get_db),
):
    """
    Dry run of the engine validator for the token's seat. Nothing is applied or logged.
    Rules checked inside the handlers (targets, building types) only surface on a real submit.
    """
    row = get_room(room_code, db)
    _require_seated(row, seat)
    action = Action.from_dict(request.model_dump())
    return validate_action(get_game(row), action, seat.index).to_dict()


@app.get("/rooms/{room_code}/suggestions")
def get_suggestions(room_code: str, seat: Seat = Depends(get_current_seat), db: Session = Depends(get_db)):
    """What the built-in heuristics would submit from this seat right now."""
    row = get_room(room_code, db)
    _require_seated(row, seat)
    state = get_game(row)
    return {
        "room_code": row.room_code,
        "actions": [a.to_dict() for a in suggest_actions(state, seat.index, definitions)],
    }


@app.post("/rooms/{room_code}/reset")
def reset_room_game(room_code: str, seat: Seat = Depends(get_current_seat), db: Session = Depends(get_db)):
    """Start the match over from the initial state."""
    with room_lock(room_code.upper()):
        row = get_room(room_code, db)
        _require_seated(row, seat)
        state = get_game(row)
        return _apply(row, state, reset_game(), seat, db)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
