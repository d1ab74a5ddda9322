# tests/test_visibility_and_sort.py
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from survivor_pool.logic.standings import build_standings, sort_standings
from survivor_pool.logic.visibility import is_pick_visible, visible_picks
from survivor_pool.models import MemberStatus, PickResult
from survivor_pool.services.schedule import Game, GameState

NOW = datetime(2025, 10, 5, 17, 0, tzinfo=timezone.utc)


def _game(home, away, kickoff, status=GameState.SCHEDULED, home_score=None, away_score=None):
    return Game(
        game_id=f"g{home}{away}",
        home_team_id=home,
        away_team_id=away,
        home_team_name=f"Team {home}",
        away_team_name=f"Team {away}",
        status=status,
        kickoff=kickoff,
        home_score=home_score,
        away_score=away_score,
    )


def _pick(member_id, week, team, pick_number=1, result=PickResult.PENDING):
    return SimpleNamespace(member_id=member_id, week=week, team_id=team, pick_number=pick_number, result=result)


def _member(mid, name, strikes=0):
    return SimpleNamespace(
        id=mid,
        user_id=100 + mid,
        display_name=name,
        strikes=strikes,
        status=MemberStatus.ACTIVE,
        has_paid=False,
        picks=[],
    )


def test_current_week_pick_hidden_until_kickoff():
    future = _game("1", "2", NOW + timedelta(hours=3))
    started = _game("1", "2", NOW - timedelta(minutes=1))
    assert is_pick_visible(5, 5, False, future, NOW) is False
    assert is_pick_visible(5, 5, False, started, NOW) is True
    assert is_pick_visible(5, 5, True, future, NOW) is True


def test_past_weeks_visible_once_started_and_future_weeks_never():
    future = _game("1", "2", NOW + timedelta(days=1))
    final = _game("1", "2", NOW - timedelta(days=6), status=GameState.FINAL, home_score=20, away_score=3)
    assert is_pick_visible(4, 5, False, final, NOW) is True
    assert is_pick_visible(4, 5, False, None, NOW) is True
    assert is_pick_visible(6, 5, True, future, NOW) is False


def test_unstarted_game_hidden_from_others_in_any_week():
    future = _game("1", "2", NOW + timedelta(days=1))
    assert is_pick_visible(4, 5, False, future, NOW) is False
    assert is_pick_visible(4, 6, False, future, NOW) is False
    assert is_pick_visible(4, 6, True, future, NOW) is True


def test_unknown_game_in_current_week_stays_hidden():
    assert is_pick_visible(5, 5, False, None, NOW) is False


def test_hidden_picks_keep_slot_placeholders():
    games = {
        "1": _game("1", "2", NOW + timedelta(hours=1)),
        "3": _game("3", "4", NOW - timedelta(hours=1), status=GameState.IN_PROGRESS),
    }
    picks = [_pick(1, 5, "1", 1), _pick(1, 5, "3", 2)]
    cells = visible_picks(picks, 5, 5, False, games, NOW)
    assert [c.pick_number for c in cells] == [1, 2]
    assert cells[0].hidden is True and cells[0].team_id is None
    assert cells[1].hidden is False and cells[1].team_id == "3"
    assert visible_picks(picks, 6, 5, True, games, NOW) == []


def test_sort_by_effective_strikes_then_name_casefold():
    league = SimpleNamespace(start_week=1, max_strikes=3)
    lost = {"1": _game("1", "2", NOW - timedelta(hours=4), GameState.FINAL, 3, 10)}
    a = _member(1, "zed")
    b = _member(2, "Amy", strikes=1)
    c = _member(3, "bob")
    picks = {1: [_pick(1, 1, "1")]}  # zed has an effective loss
    ordered = sort_standings([a, b, c], league, 1, {1: lost}, picks)
    assert [m.display_name for m in ordered] == ["bob", "Amy", "zed"]


def test_sort_is_stable_for_identical_keys():
    league = SimpleNamespace(start_week=1, max_strikes=1)
    twins = [_member(i, "Sam") for i in (7, 3, 5)]
    first = sort_standings(twins, league, 1, {}, {})
    second = sort_standings(twins, league, 1, {}, {})
    assert [m.id for m in first] == [m.id for m in second] == [7, 3, 5]


def test_build_standings_marks_picked_and_empty_weeks():
    league = SimpleNamespace(start_week=1, max_strikes=1, double_pick_weeks=[2])
    members = [_member(2, "Bea"), _member(1, "Al")]
    games = {2: {"1": _game("1", "2", NOW + timedelta(hours=2))}}
    picks = [_pick(1, 2, "1")]
    rows = build_standings(league, members, picks, games, 2, viewer_user_id=102, now=NOW)

    assert [r.display_name for r in rows] == ["Al", "Bea"]
    al = rows[0]
    assert [w.status for w in al.weeks] == ["no_pick", "picked"]
    assert al.weeks[1].is_double_pick is True
    assert al.weeks[1].picks[0].hidden is True
    assert rows[1].is_me is True
