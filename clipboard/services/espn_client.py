import logging

import requests

from clipboard.errors import SportsApiError
from clipboard.models.game import Game, Situation
from clipboard.models.team import Team
from clipboard.models.week import SEASON_TYPES, NflWeek, parse_espn_datetime

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://site.api.espn.com/apis/site/v2/sports/football/nfl"


class EspnClient:
    """
    Read-only client for the ESPN NFL site API.

    Requests are made once; failures raise SportsApiError and it is up to
    the caller whether to surface or swallow them.
    """

    def __init__(self, api_base_url=None, timeout=15, session=None):
        self.api_base_url = (api_base_url or DEFAULT_API_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "Jims-Clipboard/1.0"})

    def _make_api_request(self, url, params=None):
        """GET a JSON document from ESPN"""
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()

        except requests.exceptions.Timeout as e:
            logger.warning(f"Request timeout for {url}")
            raise SportsApiError(f"Timed out fetching {url}") from e
        except requests.exceptions.ConnectionError as e:
            logger.warning(f"Connection error for {url}")
            raise SportsApiError(f"Could not connect to {url}") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            logger.error(f"HTTP error {status}: {url}")
            raise SportsApiError(f"ESPN returned HTTP {status}") from e
        except ValueError as e:
            logger.error(f"Invalid JSON from {url}: {e}")
            raise SportsApiError("ESPN returned invalid JSON") from e

    def _summary(self, game_id):
        return self._make_api_request(
            f"{self.api_base_url}/summary", params={"event": game_id}
        )

    # Teams

    def get_teams(self):
        """All teams with colours and logo variants"""
        data = self._make_api_request(f"{self.api_base_url}/teams")

        teams = []
        for team_data in (
            data.get("sports", [{}])[0].get("leagues", [{}])[0].get("teams", [])
        ):
            teams.append(Team.from_espn(team_data.get("team", {})))
        return teams

    def get_standings(self):
        """Conference and record per team abbreviation"""
        url = self.api_base_url.replace("/apis/site/v2/", "/apis/v2/") + "/standings"
        data = self._make_api_request(url)

        standings = {}
        for conference in data.get("children", []):
            conference_abbr = conference.get("abbreviation", "")
            for entry in conference.get("standings", {}).get("entries", []):
                abbreviation = entry.get("team", {}).get("abbreviation", "").upper()
                stats = {s.get("name"): s.get("value") for s in entry.get("stats", [])}
                standings[abbreviation] = {
                    "conference": conference_abbr,
                    "wins": int(stats.get("wins") or 0),
                    "losses": int(stats.get("losses") or 0),
                    "ties": int(stats.get("ties") or 0),
                }
        return standings

    def get_teams_with_standings(self):
        """Teams enriched with conference and record; standings failures are tolerated"""
        teams = self.get_teams()
        try:
            standings = self.get_standings()
        except SportsApiError as e:
            logger.warning(f"Standings unavailable, returning teams without records: {e}")
            return teams

        for team in teams:
            record = standings.get(team.abbreviation)
            if record:
                team.conference = record["conference"]
                team.wins = record["wins"]
                team.losses = record["losses"]
                team.ties = record["ties"]
        return teams

    # Games

    def get_scoreboard(self, dates=None, week=None, season_type=None, season=None):
        params = {}
        if dates:
            params["dates"] = dates
        if week is not None:
            params["week"] = week
        if season_type is not None:
            params["seasontype"] = season_type
        if season is not None:
            params["season"] = season
        return self._make_api_request(f"{self.api_base_url}/scoreboard", params=params)

    def _games_from_scoreboard(self, data):
        games = []
        for event in data.get("events", []):
            if not event.get("competitions"):
                continue
            games.append(Game.from_scoreboard_event(event))
        return games

    def get_todays_games(self):
        return self._games_from_scoreboard(self.get_scoreboard())

    def get_games_for_date_range(self, start_date, end_date):
        """Games between two dates (inclusive) in a single ranged scoreboard call"""
        dates = f"{start_date:%Y%m%d}-{end_date:%Y%m%d}"
        return self._games_from_scoreboard(self.get_scoreboard(dates=dates))

    def get_live_games(self):
        """Coarse scoreboard entries for games currently in progress"""
        return [game for game in self.get_todays_games() if game.is_live]

    def get_live_game_details(self, game_id):
        """Full game state including the current situation, or None if unknown"""
        return Game.from_summary(self._summary(game_id))

    def get_game_situation(self, game_id):
        """Only the live situation sub-resource, or None when not in progress"""
        data = self._summary(game_id)
        if not data.get("situation"):
            return None

        competition = ((data.get("header") or {}).get("competitions") or [{}])[0]
        quarter = (competition.get("status") or {}).get("period", 0) or 0
        return Situation.from_espn(data["situation"], quarter)

    # Calendar

    def get_current_week(self):
        """The week the scoreboard currently points at, or None in the off-season"""
        data = self.get_scoreboard()
        season = data.get("season") or {}
        week = data.get("week") or {}
        week_type = SEASON_TYPES.get(season.get("type"), "regular")

        if week_type == "offseason" or not week.get("number"):
            return None

        start_date = parse_espn_datetime(week.get("startDate"))
        end_date = parse_espn_datetime(week.get("endDate"))
        if start_date is None or end_date is None:
            # Older payloads carry the range only in the calendar
            for candidate in self._calendar_weeks(data, season.get("year")):
                if candidate.week_type == week_type and candidate.week == week["number"]:
                    return candidate
            return None

        return NflWeek(
            season=season.get("year"),
            week=week["number"],
            week_type=week_type,
            start_date=start_date,
            end_date=end_date,
            label=week.get("text"),
        )

    def get_all_available_weeks(self, season):
        """Every calendar week (preseason, regular, postseason) for a season"""
        data = self.get_scoreboard(dates=str(season))
        return self._calendar_weeks(data, season)

    def _calendar_weeks(self, data, season):
        weeks = []
        leagues = data.get("leagues") or [{}]
        for section in leagues[0].get("calendar", []):
            if not isinstance(section, dict):
                continue
            week_type = SEASON_TYPES.get(int(section.get("value", 0) or 0))
            if week_type is None or week_type == "offseason":
                continue

            for entry in section.get("entries", []):
                weeks.append(
                    NflWeek(
                        season=int(season),
                        week=int(entry.get("value", 0)),
                        week_type=week_type,
                        start_date=parse_espn_datetime(entry.get("startDate")),
                        end_date=parse_espn_datetime(entry.get("endDate")),
                        label=entry.get("label"),
                    )
                )
        return weeks
