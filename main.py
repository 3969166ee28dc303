import logging
import random
from typing import Callable, Optional, TypeVar

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

import engine
from config import get_config
from database import RoomStore, get_store
from errors import GameError, RoomNotFound
from sanitizer import sanitize_state
from schemas import GameRoom, PublicGameState

config = get_config()

logging.basicConfig(
    level=config.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="UNO backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_rng = random.Random(config.shuffle_seed) if config.shuffle_seed is not None else random.SystemRandom()

T = TypeVar("T")


def get_rng() -> random.Random:
    return _rng


# ------------------ Request models ------------------
class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NameRequest(RequestModel):
    name: Optional[str] = None


class PlayerRequest(RequestModel):
    player_id: str


class PlayCardRequest(RequestModel):
    player_id: str
    card_id: str
    chosen_color: Optional[str] = None


# ------------------ Error mapping ------------------
@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(RoomNotFound)
async def room_not_found_handler(request: Request, exc: RoomNotFound):
    return JSONResponse(status_code=404, content={"detail": "Room not found"})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    msg = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"detail": msg})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def mutate_room(store: RoomStore, room_id: str, op: Callable[[GameRoom], T]) -> T:
    # get -> mutate -> save under the room lock; a raised error skips the save
    with store.lock(room_id):
        room = store.get(room_id)
        result = op(room)
        store.save(room)
    return result


# ------------------ Routes ------------------
@app.get("/")
def root():
    return {"message": "UNO backend ready"}


@app.get("/test")
def store_check(store: RoomStore = Depends(get_store)):
    return {"backend": "ok", "store": store.backend}


@app.post("/api/rooms")
def create_room(payload: NameRequest, store: RoomStore = Depends(get_store)):
    store.purge_idle(config.room_idle_ttl_seconds)
    room, host_id = engine.create_room(payload.name)
    with store.lock(room.id):
        store.save(room)
    return {"roomId": room.id, "playerId": host_id}


@app.post("/api/rooms/{room_id}/join")
def join_room(room_id: str, payload: NameRequest, store: RoomStore = Depends(get_store)):
    player_id = mutate_room(
        store, room_id, lambda room: engine.join_room(room, payload.name, max_players=config.max_players)
    )
    return {"roomId": room_id, "playerId": player_id}


@app.post("/api/rooms/{room_id}/start")
def start_game(
    room_id: str,
    payload: PlayerRequest,
    store: RoomStore = Depends(get_store),
    rng: random.Random = Depends(get_rng),
):
    mutate_room(store, room_id, lambda room: engine.start_game(room, payload.player_id, rng))
    return {"ok": True}


@app.post("/api/rooms/{room_id}/play")
def play_card(room_id: str, payload: PlayCardRequest, store: RoomStore = Depends(get_store)):
    mutate_room(
        store,
        room_id,
        lambda room: engine.play_card(room, payload.player_id, payload.card_id, payload.chosen_color),
    )
    return {"ok": True}


@app.post("/api/rooms/{room_id}/draw")
def draw_card(
    room_id: str,
    payload: PlayerRequest,
    store: RoomStore = Depends(get_store),
    rng: random.Random = Depends(get_rng),
):
    mutate_room(store, room_id, lambda room: engine.draw_card(room, payload.player_id, rng))
    return {"ok": True}


@app.post("/api/rooms/{room_id}/uno")
def declare_uno(room_id: str, payload: PlayerRequest, store: RoomStore = Depends(get_store)):
    mutate_room(store, room_id, lambda room: engine.declare_uno(room, payload.player_id))
    return {"ok": True}


@app.get("/api/rooms/{room_id}/state", response_model=PublicGameState)
def get_state(
    room_id: str,
    response: Response,
    player_id: str = Query(..., alias="playerId"),
    store: RoomStore = Depends(get_store),
):
    # store.get returns a private snapshot, so no lock is needed to read it
    room = store.get(room_id)
    response.headers["Cache-Control"] = "no-store"
    return sanitize_state(room, player_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.port)
