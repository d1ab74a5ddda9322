# survivor_pool/services/reconcile.py
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Tuple

from sqlalchemy import case, update
from sqlalchemy.orm import Session

from .. import models
from ..errors import UpstreamUnavailable
from ..logic.results import resolve_effective_result
from .schedule import Game, ScheduleSource, load_week_schedule

logger = logging.getLogger("survivor_pool.reconcile")

__all__ = ["reconcile_pending_picks", "run_reconcile_job"]


def _game_for(pick, games: Dict[str, Game]) -> Game | None:
    game = games.get(pick.team_id)
    if game is None and pick.game_id:
        game = next((g for g in games.values() if g.game_id == pick.game_id), None)
    return game


def _graduate(db: Session, pick_id: int, member_id: int, max_strikes: int, result: models.PickResult) -> bool:
    """
    Move one pick out of pending, and on a loss bump the member's strikes,
    in a single transaction. The WHERE result='pending' guard makes a
    second (or concurrent) pass a no-op for the same pick.
    """
    moved = db.execute(
        update(models.Pick)
        .where(models.Pick.id == pick_id, models.Pick.result == models.PickResult.PENDING)
        .values(result=result)
        .execution_options(synchronize_session=False)
    )
    if moved.rowcount != 1:
        db.rollback()
        return False

    if result == models.PickResult.LOSS:
        db.execute(
            update(models.LeagueMember)
            .where(models.LeagueMember.id == member_id)
            .values(
                strikes=models.LeagueMember.strikes + 1,
                status=case(
                    (models.LeagueMember.strikes + 1 >= max_strikes, models.MemberStatus.ELIMINATED.value),
                    else_=models.LeagueMember.status,
                ),
            )
            .execution_options(synchronize_session=False)
        )
    db.commit()
    return True


def reconcile_pending_picks(db: Session, source: ScheduleSource) -> int:
    """
    Persist results for every pending pick whose game is final, across all
    leagues. Returns how many picks were updated. Re-running with no new
    scores updates nothing.
    """
    rows: List[Tuple[int, int, int, str, str | None, int, int]] = (
        db.query(
            models.Pick.id,
            models.Pick.member_id,
            models.Pick.week,
            models.Pick.team_id,
            models.Pick.game_id,
            models.League.season,
            models.League.max_strikes,
        )
        .join(models.League, models.League.id == models.Pick.league_id)
        .filter(models.Pick.result == models.PickResult.PENDING)
        .order_by(models.Pick.id.asc())
        .all()
    )
    if not rows:
        return 0

    groups: Dict[Tuple[int, int], list] = defaultdict(list)
    for row in rows:
        groups[(row.season, row.week)].append(row)

    updated = 0
    for (season, week), picks in sorted(groups.items()):
        try:
            games = load_week_schedule(source, season, week, strict=True)
        except UpstreamUnavailable as exc:
            logger.warning("reconcile skipped season=%s week=%s: %s", season, week, exc.message)
            continue

        for row in picks:
            game = _game_for(row, games)
            result = resolve_effective_result(models.PickResult.PENDING, row.team_id, game)
            if result == models.PickResult.PENDING:
                continue
            if _graduate(db, row.id, row.member_id, row.max_strikes, result):
                updated += 1

    logger.info("reconcile done pending=%s updated=%s", len(rows), updated)
    return updated


def run_reconcile_job(session_factory, source_factory) -> int:
    """Scheduler entry point: own session, never lets an error kill the job."""
    db = session_factory()
    try:
        return reconcile_pending_picks(db, source_factory())
    except Exception:
        logger.exception("reconcile job failed")
        db.rollback()
        return 0
    finally:
        db.close()
