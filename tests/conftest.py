"""
Pytest configuration and shared fixtures for the UNO backend.
"""

import os
import random
import sys

import pytest

# Add the project root to path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from deck import build_deck  # noqa: E402
from schemas import GameRoom, Player  # noqa: E402


def rig_room(hands, top_id, draw_ids=(), current_color=None, index=0, direction=1, room_id="room"):
    """Builds a playing room with chosen hands and discard top.

    Every card not placed explicitly goes into the draw pile, so all 108
    cards are accounted for. `draw_ids[-1]` is the next card drawn.
    Players are named p0, p1, ... and p0 is the host.
    """
    deck = {c.id: c for c in build_deck()}
    players = [
        Player(id=f"p{i}", name=f"P{i}", hand=[deck.pop(cid) for cid in ids])
        for i, ids in enumerate(hands)
    ]
    top = deck.pop(top_id)
    on_top = [deck.pop(cid) for cid in draw_ids]
    room = GameRoom(
        id=room_id,
        players=players,
        host_id="p0",
        draw_pile=list(deck.values()) + on_top,
        discard_pile=[top],
        current_player_index=index,
        direction=direction,
        current_color=current_color or top.color,
        stage="playing",
    )
    room.check_invariants()
    return room


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def rig():
    return rig_room
