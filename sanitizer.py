from errors import NotFound
from schemas import GameRoom, PublicGameState, PublicPlayer


def sanitize_state(room: GameRoom, viewer_id: str) -> PublicGameState:
    """Projects the room into what `viewer_id` may see.

    Other players' hands and the draw pile are reduced to counts; only the
    viewer's own hand and the discard top are returned as cards. Read-only.
    """
    viewer = room.find_player(viewer_id)
    if viewer is None:
        raise NotFound("Player not found in room")

    current_player_id = room.current_player.id if room.stage == "playing" else None
    top = room.discard_top

    return PublicGameState(
        room_id=room.id,
        players=[
            PublicPlayer(
                id=p.id,
                name=p.name,
                card_count=len(p.hand),
                has_called_uno=p.has_called_uno,
                is_self=p.id == viewer.id,
                is_host=room.is_host(p.id),
            )
            for p in room.players
        ],
        hand=[c.model_copy() for c in viewer.hand],
        discard_top=top.model_copy() if top else None,
        deck_count=len(room.draw_pile),
        stage=room.stage,
        current_player_id=current_player_id,
        direction=room.direction,
        current_color=room.current_color,
        pending_draw_count=room.pending_draw_count,
        pending_action=room.pending_action,
        host_id=room.host_id,
        winner_id=room.winner_id,
        last_action=room.last_action.model_copy(deep=True) if room.last_action else None,
    )
