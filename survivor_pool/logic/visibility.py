# survivor_pool/logic/visibility.py
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Mapping

from .. import schemas
from ..services.schedule import Game
from .results import resolve_effective_result, slot_of

__all__ = ["is_pick_visible", "visible_picks"]


def is_pick_visible(
    week: int,
    target_week: int,
    viewer_is_owner: bool,
    game: Game | None,
    now: datetime,
) -> bool:
    if week > target_week:
        return False
    if viewer_is_owner:
        return True
    # Someone else's pick is never shown before its game kicks off.
    if game is not None and not game.has_started(now):
        return False
    if week < target_week:
        return True
    # Current week with an unknown game (bye, feed down) stays hidden.
    return game is not None


def visible_picks(
    member_picks: Iterable,
    week: int,
    target_week: int,
    viewer_is_owner: bool,
    games: Mapping[str, Game],
    now: datetime,
) -> List[schemas.PickCell]:
    """
    Render one member's picks for one week as seen by a given viewer.
    Hidden picks become placeholders that keep only their slot number, so
    "picked but hidden" stays distinguishable from "no pick".
    Weeks after target_week yield nothing.
    """
    if week > target_week:
        return []

    cells: List[schemas.PickCell] = []
    for p in member_picks:
        game = games.get(p.team_id)
        if not is_pick_visible(week, target_week, viewer_is_owner, game, now):
            cells.append(schemas.PickCell(pick_number=slot_of(p), hidden=True))
            continue
        cells.append(
            schemas.PickCell(
                pick_number=slot_of(p),
                hidden=False,
                team_id=p.team_id,
                team_name=game.team_name(p.team_id) if game else None,
                result=p.result,
                effective_result=resolve_effective_result(p.result, p.team_id, game),
                game_status=game.status if game else None,
            )
        )
    return cells
