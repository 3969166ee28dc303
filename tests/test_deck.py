import random
from collections import Counter

from deck import build_deck, draw_cards, new_shuffled_deck, refill_draw_pile, seed_discard
from schemas import DECK_SIZE


def test_deck_has_108_unique_cards():
    deck = build_deck()
    assert len(deck) == DECK_SIZE
    assert len({c.id for c in deck}) == DECK_SIZE


def test_deck_composition_per_color():
    deck = build_deck()
    for color in ("red", "blue", "green", "yellow"):
        values = Counter(c.value for c in deck if c.color == color)
        assert sum(values.values()) == 25
        assert values["0"] == 1
        for v in "123456789":
            assert values[v] == 2
        for v in ("skip", "reverse", "draw-two"):
            assert values[v] == 2

    black = Counter(c.value for c in deck if c.color == "black")
    assert black == {"wild": 4, "wild-draw-four": 4}


def test_shuffle_is_reproducible_with_seeded_rng():
    a = [c.id for c in new_shuffled_deck(random.Random(42))]
    b = [c.id for c in new_shuffled_deck(random.Random(42))]
    c = [c.id for c in new_shuffled_deck(random.Random(43))]
    assert a == b
    assert a != c
    assert sorted(a) == sorted(x.id for x in build_deck())


def test_refill_keeps_top_discard(rig, rng):
    room = rig([["red-1-0"], ["blue-1-0"]], "green-7-0")
    # bury the whole draw pile under the discard top
    room.discard_pile = room.draw_pile + room.discard_pile
    room.draw_pile = []

    moved = refill_draw_pile(room, rng)

    assert moved == DECK_SIZE - 3
    assert [c.id for c in room.discard_pile] == ["green-7-0"]
    assert len(room.draw_pile) == moved
    room.check_invariants()


def test_refill_with_single_discard_moves_nothing(rig, rng):
    room = rig([["red-1-0"], ["blue-1-0"]], "green-7-0")
    room.draw_pile = []
    assert refill_draw_pile(room, rng) == 0
    assert [c.id for c in room.discard_pile] == ["green-7-0"]


def test_draw_cards_stops_when_nothing_is_left(rig, rng):
    room = rig([["red-1-0"], ["blue-1-0"]], "green-7-0")
    all_but_two = room.draw_pile[2:]
    room.draw_pile = room.draw_pile[:2]
    room.players[1].hand.extend(all_but_two)

    drawn = draw_cards(room, 4, rng)

    assert len(drawn) == 2
    assert room.draw_pile == []


def test_seed_discard_puts_wilds_back(rig, rng):
    room = rig([[], []], "green-7-0")
    room.discard_pile = []
    room.draw_pile = [room.draw_pile[0]]
    first = room.draw_pile[0]
    wild = next(c for c in build_deck() if c.id == "black-wild-0")
    room.draw_pile.append(wild)

    top = seed_discard(room, rng)

    assert top.id == first.id
    assert room.discard_pile == [first]
    assert [c.id for c in room.draw_pile] == ["black-wild-0"]
