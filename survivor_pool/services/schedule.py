# survivor_pool/services/schedule.py
from __future__ import annotations

import enum
import logging
import threading
import time
from datetime import datetime
from typing import Any, Dict, List, Protocol

import requests
from pydantic import BaseModel

from .. import config
from ..errors import UpstreamUnavailable
from ..utils.num import to_int
from .time_rules import as_aware, parse_kickoff, utcnow
from .weeks import SEASON_TYPE_REGULAR, to_app_week, to_espn_week

logger = logging.getLogger("survivor_pool.schedule")

__all__ = [
    "GameState",
    "Game",
    "SeasonInfo",
    "ScheduleSource",
    "EspnScheduleSource",
    "games_by_team",
    "load_week_schedule",
    "get_schedule_source",
]

# Placeholder abbreviations ESPN uses before playoff matchups are set
TBD_ABBREVIATIONS = {"TBD", "AFC", "NFC"}


class GameState(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINAL = "final"


class Game(BaseModel):
    game_id: str
    home_team_id: str
    away_team_id: str
    home_team_name: str | None = None
    away_team_name: str | None = None
    home_abbreviation: str | None = None
    away_abbreviation: str | None = None
    status: GameState = GameState.SCHEDULED
    kickoff: datetime | None = None
    home_score: int | None = None
    away_score: int | None = None

    def involves(self, team_id: str) -> bool:
        return str(team_id) in (self.home_team_id, self.away_team_id)

    def is_home(self, team_id: str) -> bool:
        return str(team_id) == self.home_team_id

    def opponent_of(self, team_id: str) -> str:
        return self.away_team_id if self.is_home(team_id) else self.home_team_id

    def team_name(self, team_id: str) -> str | None:
        return self.home_team_name if self.is_home(team_id) else self.away_team_name

    def score_for(self, team_id: str) -> int:
        score = self.home_score if self.is_home(team_id) else self.away_score
        return score or 0

    def is_tbd(self) -> bool:
        if not self.home_team_id or not self.away_team_id:
            return True
        if self.home_team_id.startswith("-") or self.away_team_id.startswith("-"):
            return True
        return bool({self.home_abbreviation, self.away_abbreviation} & TBD_ABBREVIATIONS)

    def has_started(self, now: datetime | None = None) -> bool:
        if self.status != GameState.SCHEDULED:
            return True
        if self.kickoff is None:
            return False
        return self.kickoff <= as_aware(now or utcnow())


class SeasonInfo(BaseModel):
    season: int
    season_type: int = SEASON_TYPE_REGULAR
    week: int = 1  # app week numbering
    display_name: str = ""


class ScheduleSource(Protocol):
    def get_week_games(self, season: int, week: int, season_type: int) -> List[Game]: ...

    def get_current_season(self) -> SeasonInfo: ...


# ---------------------------------------------------------------------------
# ESPN adapter
# ---------------------------------------------------------------------------


def _map_status(name: str | None) -> GameState:
    if not name or name == "STATUS_SCHEDULED":
        return GameState.SCHEDULED
    if name.startswith("STATUS_FINAL"):
        return GameState.FINAL
    return GameState.IN_PROGRESS


def _parse_event(event: dict[str, Any]) -> Game | None:
    competition = (event.get("competitions") or [{}])[0]
    competitors = competition.get("competitors") or []
    home = next((c for c in competitors if c.get("homeAway") == "home"), None)
    away = next((c for c in competitors if c.get("homeAway") == "away"), None)
    if home is None or away is None:
        return None

    def _team(c: dict[str, Any]) -> dict[str, Any]:
        return c.get("team") or {}

    status = _map_status(((competition.get("status") or {}).get("type") or {}).get("name"))
    has_score = status != GameState.SCHEDULED
    return Game(
        game_id=str(event.get("id")),
        home_team_id=str(_team(home).get("id") or ""),
        away_team_id=str(_team(away).get("id") or ""),
        home_team_name=_team(home).get("displayName") or _team(home).get("name"),
        away_team_name=_team(away).get("displayName") or _team(away).get("name"),
        home_abbreviation=_team(home).get("abbreviation"),
        away_abbreviation=_team(away).get("abbreviation"),
        status=status,
        kickoff=parse_kickoff(event.get("date")),
        home_score=to_int(home.get("score")) if has_score else None,
        away_score=to_int(away.get("score")) if has_score else None,
    )


class EspnScheduleSource:
    """
    Scoreboard client with a per-URL TTL cache. When ESPN fails, the last
    good payload for that URL is served regardless of age; with nothing
    cached the failure surfaces as UpstreamUnavailable.
    """

    def __init__(
        self,
        base_url: str = config.ESPN_API_BASE,
        ttl_seconds: int = config.SCHEDULE_CACHE_TTL_SECONDS,
        timeout: float = config.ESPN_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.ttl_seconds = ttl_seconds
        self.timeout = timeout
        self.session = session or requests.Session()
        self._cache: Dict[str, tuple[float, dict]] = {}
        self._lock = threading.Lock()

    def _fetch(self, url: str) -> dict:
        with self._lock:
            cached = self._cache.get(url)
        if cached and time.monotonic() - cached[0] < self.ttl_seconds:
            return cached[1]

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            if cached:
                logger.warning("espn fetch failed, serving stale cache url=%s err=%s", url, exc)
                return cached[1]
            raise UpstreamUnavailable(f"Schedule source unavailable: {exc}") from exc

        with self._lock:
            self._cache[url] = (time.monotonic(), data)
        return data

    def get_week_games(self, season: int, week: int, season_type: int = SEASON_TYPE_REGULAR) -> List[Game]:
        url = f"{self.base_url}/scoreboard?seasontype={season_type}&week={week}&dates={season}"
        data = self._fetch(url)
        games: List[Game] = []
        for event in data.get("events") or []:
            game = _parse_event(event)
            if game is not None:
                games.append(game)
        return games

    def get_current_season(self) -> SeasonInfo:
        try:
            data = self._fetch(f"{self.base_url}/scoreboard")
        except UpstreamUnavailable:
            now = utcnow()
            year = now.year if now.month >= 9 else now.year - 1
            logger.warning("current season unavailable, assuming %s week 1", year)
            return SeasonInfo(season=year, season_type=SEASON_TYPE_REGULAR, week=1)

        season = data.get("season") or {}
        season_type = int(season.get("type") or SEASON_TYPE_REGULAR)
        espn_week = int((data.get("week") or {}).get("number") or 1)
        week = to_app_week(espn_week, season_type)
        return SeasonInfo(
            season=int(season.get("year") or utcnow().year),
            season_type=season_type,
            week=week,
            display_name=f"Week {week}",
        )


# ---------------------------------------------------------------------------
# Helpers shared by read and write paths
# ---------------------------------------------------------------------------


def games_by_team(games: List[Game]) -> Dict[str, Game]:
    out: Dict[str, Game] = {}
    for g in games:
        if g.home_team_id:
            out[g.home_team_id] = g
        if g.away_team_id:
            out[g.away_team_id] = g
    return out


def load_week_schedule(
    source: ScheduleSource, season: int, week: int, *, strict: bool
) -> Dict[str, Game]:
    """
    Games for an app week keyed by team id.
    strict=False (read paths) degrades to {} when the source is down, so
    affected picks simply read as pending. strict=True (write paths) lets
    UpstreamUnavailable propagate.
    """
    espn_week, season_type = to_espn_week(week)
    try:
        return games_by_team(source.get_week_games(season, espn_week, season_type))
    except UpstreamUnavailable:
        if strict:
            raise
        logger.warning("schedule unavailable season=%s week=%s; treating as pending", season, week)
        return {}


_default_source: EspnScheduleSource | None = None


def get_schedule_source() -> ScheduleSource:
    """Dependency for FastAPI routes; one shared client so the cache is shared."""
    global _default_source
    if _default_source is None:
        _default_source = EspnScheduleSource()
    return _default_source
