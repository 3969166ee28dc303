"""
Game errors

Every rule or precondition violation the engine detects is raised as a
subclass of GameError so the HTTP layer can map it to a 400 response.
RoomNotFound and InvariantViolation sit outside that hierarchy on purpose:
the first is a store lookup failure (404), the second a logic defect (500).
"""


class GameError(Exception):
    """Base class for recoverable rule violations."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GameError):
    pass


class InvalidState(GameError):
    pass


class Unauthorized(GameError):
    pass


class NotYourTurn(GameError):
    pass


class CardNotInHand(GameError):
    pass


class IllegalPlay(GameError):
    pass


class NotFound(GameError):
    pass


class NotEnoughPlayers(GameError):
    pass


class RoomNotFound(Exception):
    def __init__(self, room_id: str):
        super().__init__(f"Room {room_id} not found")
        self.room_id = room_id


class InvariantViolation(Exception):
    """Room state broke one of its invariants. Never shown to clients."""
