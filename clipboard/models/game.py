from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .team import Team

GAME_STATUSES = ("scheduled", "live", "final", "post")
FINISHED_STATUSES = ("final", "post")


def map_espn_status(status_type):
    """Translate an ESPN ``status.type`` object into one of ``GAME_STATUSES``.

    Missing or unrecognised states are treated as not started.
    """
    state = (status_type or {}).get("state")
    if state == "pre":
        return "scheduled"
    if state == "in":
        return "live"
    if state == "post":
        return "final" if status_type.get("completed", True) else "post"
    return "scheduled"


def _to_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _split_competitors(competition):
    competitors = competition.get("competitors", []) or []
    home = next((c for c in competitors if c.get("homeAway") == "home"), {"team": {}})
    away = next((c for c in competitors if c.get("homeAway") == "away"), {"team": {}})
    return home, away


def _favorite_from_odds(odds_list, home_abbr, away_abbr):
    """Work out which side is favoured from an ESPN odds/pickcenter list"""
    for odds in odds_list or []:
        if (odds.get("homeTeamOdds") or {}).get("favorite"):
            return "home"
        if (odds.get("awayTeamOdds") or {}).get("favorite"):
            return "away"

        # "KC -3.5" style line
        details = (odds.get("details") or "").split(" ")[0].upper()
        if details and details == home_abbr:
            return "home"
        if details and details == away_abbr:
            return "away"
    return None


@dataclass
class Situation:
    """In-progress game sub-state refreshed more often than the full game"""

    quarter: int = 0
    down: Optional[int] = None
    distance: Optional[int] = None
    field_position: str = ""
    possession: Optional[str] = None
    down_distance_text: str = ""
    last_play: Optional[str] = None

    @classmethod
    def from_espn(cls, situation, quarter=0):
        if not situation:
            return None

        last_play = situation.get("lastPlay") or {}
        return cls(
            quarter=quarter,
            down=situation.get("down"),
            distance=situation.get("distance"),
            field_position=situation.get("possessionText")
            or situation.get("yardLineText")
            or "",
            possession=situation.get("possession"),
            down_distance_text=situation.get("downDistanceText")
            or situation.get("shortDownDistanceText")
            or "",
            last_play=last_play.get("text"),
        )

    @classmethod
    def from_dict(cls, data):
        if not data:
            return None
        return cls(
            quarter=data.get("quarter", 0),
            down=data.get("down"),
            distance=data.get("distance"),
            field_position=data.get("fieldPosition", ""),
            possession=data.get("possession"),
            down_distance_text=data.get("downDistanceText", ""),
            last_play=data.get("lastPlay"),
        )

    def to_dict(self):
        return {
            "quarter": self.quarter,
            "down": self.down,
            "distance": self.distance,
            "fieldPosition": self.field_position,
            "possession": self.possession,
            "downDistanceText": self.down_distance_text,
            "lastPlay": self.last_play,
        }


@dataclass
class Game:
    id: str
    date: str
    home_team: Team
    away_team: Team
    status: str = "scheduled"
    home_score: int = 0
    away_score: int = 0
    quarter: int = 0
    clock: str = ""
    venue: str = ""
    start_time: str = ""
    favorite_team: Optional[str] = None
    situation: Optional[Situation] = None
    last_updated: Optional[str] = None

    def __repr__(self):
        return f"<Game {self.id} {self.away_team.abbreviation} @ {self.home_team.abbreviation}>"

    @property
    def is_live(self):
        return self.status == "live"

    @property
    def is_finished(self):
        return self.status in FINISHED_STATUSES

    @classmethod
    def from_scoreboard_event(cls, event):
        """Build a game from a scoreboard ``events[]`` entry"""
        competition = (event.get("competitions") or [{}])[0]
        home, away = _split_competitors(competition)
        home_team = Team.from_espn(home.get("team", {}))
        away_team = Team.from_espn(away.get("team", {}))
        status = event.get("status") or competition.get("status") or {}
        quarter = status.get("period", 0) or 0

        return cls(
            id=str(event.get("id", "")),
            date=event.get("date", ""),
            home_team=home_team,
            away_team=away_team,
            status=map_espn_status(status.get("type")),
            home_score=_to_int(home.get("score")),
            away_score=_to_int(away.get("score")),
            quarter=quarter,
            clock=status.get("displayClock", ""),
            venue=(competition.get("venue") or {}).get("fullName", ""),
            start_time=event.get("date", ""),
            favorite_team=_favorite_from_odds(
                competition.get("odds"), home_team.abbreviation, away_team.abbreviation
            ),
            situation=Situation.from_espn(competition.get("situation"), quarter),
        )

    @classmethod
    def from_summary(cls, data):
        """Build a game from a ``summary?event=`` response, or None without a header"""
        header = data.get("header")
        if not header:
            return None

        competition = (header.get("competitions") or [{}])[0]
        home, away = _split_competitors(competition)
        home_team = Team.from_espn(home.get("team", {}))
        away_team = Team.from_espn(away.get("team", {}))
        status = competition.get("status") or header.get("status") or {}
        quarter = status.get("period", 0) or 0
        date = competition.get("date") or header.get("date", "")

        return cls(
            id=str(header.get("id", "")),
            date=date,
            home_team=home_team,
            away_team=away_team,
            status=map_espn_status(status.get("type")),
            home_score=_to_int(home.get("score")),
            away_score=_to_int(away.get("score")),
            quarter=quarter,
            clock=status.get("displayClock", ""),
            venue=((data.get("gameInfo") or {}).get("venue") or {}).get("fullName", ""),
            start_time=date,
            favorite_team=_favorite_from_odds(
                data.get("pickcenter") or competition.get("odds"),
                home_team.abbreviation,
                away_team.abbreviation,
            ),
            situation=Situation.from_espn(data.get("situation"), quarter),
            last_updated=datetime.now(timezone.utc).isoformat(),
        )

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data.get("id", "")),
            date=data.get("date", ""),
            home_team=Team.from_dict(data.get("homeTeam") or {}),
            away_team=Team.from_dict(data.get("awayTeam") or {}),
            status=data.get("status", "scheduled"),
            home_score=_to_int(data.get("homeScore")),
            away_score=_to_int(data.get("awayScore")),
            quarter=data.get("quarter", 0),
            clock=data.get("clock", ""),
            venue=data.get("venue", ""),
            start_time=data.get("startTime", ""),
            favorite_team=data.get("favoriteTeam"),
            situation=Situation.from_dict(data.get("situation")),
            last_updated=data.get("lastUpdated"),
        )

    def to_dict(self):
        """Convert game to dictionary for API responses"""
        return {
            "id": self.id,
            "date": self.date,
            "homeTeam": self.home_team.to_dict(),
            "awayTeam": self.away_team.to_dict(),
            "homeScore": self.home_score,
            "awayScore": self.away_score,
            "status": self.status,
            "quarter": self.quarter,
            "clock": self.clock,
            "venue": self.venue,
            "startTime": self.start_time,
            "favoriteTeam": self.favorite_team,
            "situation": self.situation.to_dict() if self.situation else None,
            "lastUpdated": self.last_updated,
        }
