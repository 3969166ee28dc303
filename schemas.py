"""
Room schemas

UNO multiplayer game state as Pydantic models. A GameRoom is the unit of
consistency: the store loads one, the engine mutates it, the store saves it.
Public (client-facing) models serialize with camelCase aliases.
"""

import time
from collections import Counter
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from errors import InvariantViolation

Color = Literal["red", "blue", "green", "yellow", "black"]
PlayableColor = Literal["red", "blue", "green", "yellow"]
Value = Literal[
    "0", "1", "2", "3", "4", "5", "6", "7", "8", "9",
    "skip", "reverse", "draw-two", "wild", "wild-draw-four"
]
PendingAction = Literal["draw-two", "wild-draw-four"]
Stage = Literal["lobby", "playing", "finished"]
ActionType = Literal["start", "play", "draw", "resolve-draw", "uno"]

COLORS = ["red", "blue", "green", "yellow"]
WILD_VALUES = ("wild", "wild-draw-four")
DECK_SIZE = 108
HAND_SIZE = 7


def now_ms() -> int:
    return int(time.time() * 1000)


class PublicModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Card(BaseModel):
    id: str
    color: Color
    value: Value

    @model_validator(mode="after")
    def _black_only_for_wilds(self) -> "Card":
        if (self.color == "black") != (self.value in WILD_VALUES):
            raise ValueError(f"{self.value} card cannot be {self.color}")
        return self

    @property
    def is_wild(self) -> bool:
        return self.value in WILD_VALUES


class Player(BaseModel):
    id: str = Field(..., description="Unique ID for the player in a room")
    name: str
    hand: List[Card] = []
    has_called_uno: bool = False

    def find_card(self, card_id: str) -> Optional[Card]:
        return next((c for c in self.hand if c.id == card_id), None)


class LastAction(PublicModel):
    type: ActionType
    player_id: str
    payload: Optional[Dict[str, Any]] = None
    timestamp: int = Field(default_factory=now_ms)


class GameRoom(BaseModel):
    id: str
    players: List[Player] = []
    draw_pile: List[Card] = []  # last element is the next draw
    discard_pile: List[Card] = []  # last element is the active card
    current_player_index: int = 0
    direction: Literal[1, -1] = 1  # 1 clockwise, -1 counterclockwise
    current_color: Optional[PlayableColor] = None
    pending_draw_count: int = 0
    pending_action: Optional[PendingAction] = None
    stage: Stage = "lobby"
    host_id: str
    winner_id: Optional[str] = None
    last_action: Optional[LastAction] = None
    created_at: float = Field(default_factory=time.time)
    updated_at: float = Field(default_factory=time.time)

    @property
    def discard_top(self) -> Optional[Card]:
        return self.discard_pile[-1] if self.discard_pile else None

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    def find_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def is_host(self, player_id: str) -> bool:
        return player_id == self.host_id

    def touch(self) -> None:
        self.updated_at = time.time()

    def check_invariants(self) -> None:
        """Raise InvariantViolation if the room is in a state no rule can produce."""
        zones = list(self.draw_pile) + list(self.discard_pile)
        for p in self.players:
            zones.extend(p.hand)

        dupes = [cid for cid, n in Counter(c.id for c in zones).items() if n > 1]
        if dupes:
            raise InvariantViolation(f"duplicate card ids: {dupes}")

        if self.stage != "lobby" and len(zones) != DECK_SIZE:
            raise InvariantViolation(f"card count is {len(zones)}, expected {DECK_SIZE}")

        if self.stage == "playing":
            if not 0 <= self.current_player_index < len(self.players):
                raise InvariantViolation(f"current_player_index {self.current_player_index} out of range")
            top = self.discard_top
            if top is None or self.current_color is None:
                raise InvariantViolation("discard top has no resolved color")

        if (self.pending_draw_count > 0) != (self.pending_action is not None):
            raise InvariantViolation(
                f"pending_draw_count={self.pending_draw_count} with pending_action={self.pending_action}"
            )

        for p in self.players:
            if p.has_called_uno and len(p.hand) != 1:
                raise InvariantViolation(f"player {p.id} called UNO holding {len(p.hand)} cards")


# ------------------ Public view ------------------

class PublicPlayer(PublicModel):
    id: str
    name: str
    card_count: int
    has_called_uno: bool
    is_self: bool
    is_host: bool


class PublicGameState(PublicModel):
    room_id: str
    players: List[PublicPlayer]
    hand: List[Card]
    discard_top: Optional[Card] = None
    deck_count: int
    stage: Stage
    current_player_id: Optional[str] = None
    direction: int
    current_color: Optional[PlayableColor] = None
    pending_draw_count: int
    pending_action: Optional[PendingAction] = None
    host_id: str
    winner_id: Optional[str] = None
    last_action: Optional[LastAction] = None
