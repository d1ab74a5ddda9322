# tests/conftest.py
import itertools
import os
from datetime import timedelta

# --- Test mode: in-memory app DB, cheap bcrypt, no background scheduler ---
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

# Make sure models are imported so Base has all tables
from survivor_pool import models  # noqa: E402,F401
from survivor_pool.db import Base, get_db  # noqa: E402
from survivor_pool.errors import UpstreamUnavailable  # noqa: E402
from survivor_pool.main import app  # noqa: E402
from survivor_pool.services.schedule import Game, GameState, SeasonInfo, get_schedule_source  # noqa: E402
from survivor_pool.services.time_rules import utcnow  # noqa: E402
from survivor_pool.services.weeks import to_espn_week  # noqa: E402
from survivor_pool.utils.idempotency import clear_idempotency_cache  # noqa: E402

# Single in-memory DB shared across the whole process
TEST_DATABASE_URL = "sqlite+pysqlite://"

# Every test gets its own season so reconcile (which scans all leagues)
# never touches another test's picks.
_seasons = itertools.count(3000)


class FakeScheduleSource:
    """
    Stands in for ESPN. Games are registered per app week; `down` makes
    every call fail like an unreachable upstream.
    """

    def __init__(self, season: int, week: int = 1):
        self.season = season
        self.week = week
        self.down = False
        self.calls = 0
        self._games: dict[tuple[int, int, int], list[Game]] = {}

    # --- ScheduleSource protocol ---
    def get_week_games(self, season, week, season_type):
        self.calls += 1
        if self.down:
            raise UpstreamUnavailable("Schedule source unavailable: test outage")
        return list(self._games.get((season, week, season_type), []))

    def get_current_season(self):
        return SeasonInfo(season=self.season, week=self.week, display_name=f"Week {self.week}")

    # --- helpers ---
    def add_game(
        self,
        week,
        home,
        away,
        *,
        status=GameState.SCHEDULED,
        home_score=None,
        away_score=None,
        kickoff=None,
        starts_in=timedelta(days=2),
        game_id=None,
    ) -> Game:
        espn_week, season_type = to_espn_week(week)
        game = Game(
            game_id=game_id or f"g-{week}-{home}-{away}",
            home_team_id=str(home),
            away_team_id=str(away),
            home_team_name=f"Team {home}",
            away_team_name=f"Team {away}",
            home_abbreviation=f"T{home}",
            away_abbreviation=f"T{away}",
            status=status,
            kickoff=kickoff if kickoff is not None else utcnow() + starts_in,
            home_score=home_score,
            away_score=away_score,
        )
        self._games.setdefault((self.season, espn_week, season_type), []).append(game)
        return game

    def finish(self, week, home, home_score, away_score):
        """Mark an existing game final with the given score."""
        espn_week, season_type = to_espn_week(week)
        games = self._games[(self.season, espn_week, season_type)]
        for i, g in enumerate(games):
            if g.home_team_id == str(home):
                games[i] = g.model_copy(
                    update={
                        "status": GameState.FINAL,
                        "home_score": home_score,
                        "away_score": away_score,
                        "kickoff": utcnow() - timedelta(hours=4),
                    }
                )
                return games[i]
        raise KeyError(home)

    def kick_off(self, week, home):
        espn_week, season_type = to_espn_week(week)
        games = self._games[(self.season, espn_week, season_type)]
        for i, g in enumerate(games):
            if g.home_team_id == str(home):
                games[i] = g.model_copy(
                    update={"status": GameState.IN_PROGRESS, "kickoff": utcnow() - timedelta(minutes=5)}
                )
                return games[i]
        raise KeyError(home)


@pytest.fixture(scope="session")
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # <<< key: share the same memory DB
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def schedule():
    return FakeScheduleSource(season=next(_seasons))


@pytest.fixture()
def client(db_session, schedule):
    # Override app dependencies: shared in-memory session + fake schedule
    def _get_db_override():
        yield db_session

    app.dependency_overrides[get_db] = _get_db_override
    app.dependency_overrides[get_schedule_source] = lambda: schedule
    clear_idempotency_cache()

    from starlette.testclient import TestClient

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# ---------------- API helpers ----------------


def as_user(user_id: int) -> dict:
    return {"X-User-Id": str(user_id)}


@pytest.fixture()
def make_user(client):
    def _make(name: str = "Player") -> int:
        r = client.post("/users/", json={"display_name": name})
        assert r.status_code == 200, r.text
        return r.json()["id"]

    return _make


@pytest.fixture()
def make_league(client):
    def _make(commissioner_id: int, **overrides) -> dict:
        body = {"name": "Sunday Survivors", "password": "hunter2", "max_strikes": 1, "start_week": 1}
        body.update(overrides)
        r = client.post("/leagues/", json=body, headers=as_user(commissioner_id))
        assert r.status_code == 200, r.text
        return r.json()

    return _make


@pytest.fixture()
def join(client):
    def _join(league: dict, user_id: int, password: str = "hunter2") -> dict:
        r = client.post(f"/leagues/{league['id']}/join", json={"password": password}, headers=as_user(user_id))
        assert r.status_code == 200, r.text
        return r.json()

    return _join
