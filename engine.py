"""
UNO turn controller

The only code that mutates a GameRoom. Every operation checks all of its
preconditions before touching the room, so a raised GameError always leaves
the room exactly as it was. Successful operations finish with
room.check_invariants().
"""

import logging
import os
import random
import re
import uuid
from typing import Optional, Tuple

from deck import draw_cards, new_shuffled_deck, seed_discard
from errors import (
    CardNotInHand,
    IllegalPlay,
    InvalidState,
    NotEnoughPlayers,
    NotYourTurn,
    Unauthorized,
    ValidationError,
)
from schemas import COLORS, HAND_SIZE, Card, GameRoom, LastAction, Player

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2
PENALTIES = {"draw-two": 2, "wild-draw-four": 4}


# ------------------ Helper functions ------------------

def next_index(players_len: int, idx: int, direction: int, steps: int = 1) -> int:
    return (idx + direction * steps) % players_len


def new_player_id(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")[:16] or "player"
    return f"{slug}-{os.urandom(4).hex()}"


def _clean_name(name: Optional[str]) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required")
    return name.strip()


def can_play(room: GameRoom, card: Card) -> bool:
    if room.pending_draw_count > 0:
        return card.value == room.pending_action
    if card.color == "black":
        return True
    top = room.discard_top
    return card.color == room.current_color or (top is not None and card.value == top.value)


def _require_turn(room: GameRoom, player_id: str) -> Player:
    if room.stage != "playing":
        raise InvalidState("Game is not in progress")
    player = room.current_player
    if player.id != player_id:
        raise NotYourTurn("Not your turn")
    return player


def _finish(room: GameRoom, action: LastAction) -> None:
    room.last_action = action
    room.touch()
    room.check_invariants()


# ------------------ Room lifecycle ------------------

def create_room(name: str) -> Tuple[GameRoom, str]:
    name = _clean_name(name)
    host = Player(id=new_player_id(name), name=name)
    room = GameRoom(id=str(uuid.uuid4()), players=[host], host_id=host.id)
    room.check_invariants()
    logger.info("room %s created by %s", room.id, host.id)
    return room, host.id


def join_room(room: GameRoom, name: str, max_players: Optional[int] = None) -> str:
    """Adds a player to the lobby. `max_players` is the caller's ceiling; None means unlimited."""
    name = _clean_name(name)
    if room.stage != "lobby":
        raise InvalidState("Game already started")
    if max_players is not None and len(room.players) >= max_players:
        raise InvalidState(f"Room is full ({max_players} players)")
    player = Player(id=new_player_id(name), name=name)
    room.players.append(player)
    room.touch()
    room.check_invariants()
    logger.info("room %s: %s joined (%d players)", room.id, player.id, len(room.players))
    return player.id


def start_game(room: GameRoom, player_id: str, rng: Optional[random.Random] = None) -> None:
    if not room.is_host(player_id):
        raise Unauthorized("Only the host can start the game")
    if room.stage != "lobby":
        raise InvalidState("Game already started")
    if len(room.players) < MIN_PLAYERS:
        raise NotEnoughPlayers(f"At least {MIN_PLAYERS} players are required")

    room.draw_pile = new_shuffled_deck(rng)
    room.discard_pile = []
    for p in room.players:
        p.hand = []
        p.has_called_uno = False
    # deal one card at a time in turn order
    for _ in range(HAND_SIZE):
        for p in room.players:
            p.hand.append(room.draw_pile.pop())

    top = seed_discard(room, rng)
    room.current_color = top.color
    room.current_player_index = 0
    room.direction = 1
    room.pending_draw_count = 0
    room.pending_action = None
    room.winner_id = None
    room.stage = "playing"
    _finish(room, LastAction(type="start", player_id=player_id))
    logger.info("room %s: game started with %d players, opening card %s", room.id, len(room.players), top.id)


# ------------------ Turn controller ------------------

def play_card(room: GameRoom, player_id: str, card_id: str, chosen_color: Optional[str] = None) -> None:
    player = _require_turn(room, player_id)
    card = player.find_card(card_id)
    if card is None:
        raise CardNotInHand("Card not in hand")

    if not can_play(room, card):
        if room.pending_draw_count > 0:
            raise IllegalPlay(
                f"You must stack a {room.pending_action} or draw {room.pending_draw_count} cards first"
            )
        raise IllegalPlay("Card cannot be played")

    if card.is_wild and chosen_color not in COLORS:
        raise ValidationError("Choose a valid color for wild")

    # play
    player.hand = [c for c in player.hand if c.id != card.id]
    player.has_called_uno = False
    room.discard_pile.append(card)
    room.current_color = chosen_color if card.is_wild else card.color

    step = 1
    if card.value == "skip":
        step = 2
    elif card.value == "reverse":
        room.direction = -room.direction
        if len(room.players) == 2:
            step = 2  # acts like skip in 2-player
    elif card.value in PENALTIES:
        room.pending_draw_count += PENALTIES[card.value]
        room.pending_action = card.value

    action = LastAction(type="play", player_id=player.id, payload={"card": card.model_dump()})

    # check win
    if not player.hand:
        room.stage = "finished"
        room.winner_id = player.id
        logger.info("room %s: %s won", room.id, player.id)
    else:
        room.current_player_index = next_index(
            len(room.players), room.current_player_index, room.direction, step
        )
    _finish(room, action)


def draw_card(room: GameRoom, player_id: str, rng: Optional[random.Random] = None) -> None:
    player = _require_turn(room, player_id)

    if room.pending_draw_count > 0:
        wanted, action_type = room.pending_draw_count, "resolve-draw"
    else:
        wanted, action_type = 1, "draw"

    drawn = draw_cards(room, wanted, rng)
    if len(drawn) < wanted:
        logger.warning("room %s: %s wanted %d cards, only %d left", room.id, player.id, wanted, len(drawn))
    player.hand.extend(drawn)
    player.has_called_uno = False
    room.pending_draw_count = 0
    room.pending_action = None
    room.current_player_index = next_index(len(room.players), room.current_player_index, room.direction)
    _finish(room, LastAction(type=action_type, player_id=player.id, payload={"count": len(drawn)}))


def declare_uno(room: GameRoom, player_id: str) -> None:
    if room.stage != "playing":
        raise InvalidState("Game is not in progress")
    player = room.find_player(player_id)
    if player is None:
        raise InvalidState("Player is not in this room")
    if len(player.hand) != 1:
        raise IllegalPlay("You can only call UNO with one card left")
    player.has_called_uno = True
    _finish(room, LastAction(type="uno", player_id=player.id))
