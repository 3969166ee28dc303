import logging
import random
from typing import List, Optional

from schemas import COLORS, Card, GameRoom

logger = logging.getLogger(__name__)

NUMBER_VALUES = ["1", "2", "3", "4", "5", "6", "7", "8", "9"]
ACTION_VALUES = ["skip", "reverse", "draw-two"]


def build_deck() -> List[Card]:
    """Builds the unshuffled 108-card deck. Card ids are unique per physical card."""
    deck: List[Card] = []
    # one 0 per color, two each of 1-9 and of every action
    for color in COLORS:
        deck.append(Card(id=f"{color}-0-0", color=color, value="0"))
        for v in NUMBER_VALUES + ACTION_VALUES:
            for n in range(2):
                deck.append(Card(id=f"{color}-{v}-{n}", color=color, value=v))
    # wilds
    for v in ("wild", "wild-draw-four"):
        for n in range(4):
            deck.append(Card(id=f"black-{v}-{n}", color="black", value=v))
    return deck


def shuffle(cards: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """Shuffles in place and returns the same list."""
    (rng or random.SystemRandom()).shuffle(cards)
    return cards


def new_shuffled_deck(rng: Optional[random.Random] = None) -> List[Card]:
    return shuffle(build_deck(), rng)


def refill_draw_pile(room: GameRoom, rng: Optional[random.Random] = None) -> int:
    """Moves every discard except the top card into the draw pile and reshuffles.

    Returns the number of cards moved; 0 means there is nothing left to draw.
    """
    if len(room.discard_pile) <= 1:
        logger.warning("room %s: no cards left to reshuffle into the draw pile", room.id)
        return 0
    top = room.discard_pile[-1]
    pile = room.discard_pile[:-1]
    shuffle(pile, rng)
    room.draw_pile = pile + room.draw_pile
    room.discard_pile = [top]
    logger.debug("room %s: reshuffled %d discards into the draw pile", room.id, len(pile))
    return len(pile)


def draw_cards(room: GameRoom, count: int, rng: Optional[random.Random] = None) -> List[Card]:
    """Pops up to `count` cards off the draw pile, reshuffling the discards when it runs dry."""
    drawn: List[Card] = []
    for _ in range(count):
        if not room.draw_pile and not refill_draw_pile(room, rng):
            break
        drawn.append(room.draw_pile.pop())
    return drawn


def seed_discard(room: GameRoom, rng: Optional[random.Random] = None) -> Card:
    """Flips the opening discard. Wilds go back into the deck until a colored card shows."""
    top = room.draw_pile.pop()
    while top.is_wild:
        room.draw_pile.append(top)
        shuffle(room.draw_pile, rng)
        top = room.draw_pile.pop()
    room.discard_pile.append(top)
    return top
