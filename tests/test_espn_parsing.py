from datetime import date, datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from clipboard.errors import SportsApiError
from clipboard.models.game import Game, map_espn_status
from clipboard.models.pick import get_week_key, picks_from_document
from clipboard.models.team import Team, extract_logo_variations
from clipboard.models.week import parse_espn_datetime
from clipboard.services.espn_client import EspnClient

KC = {
    "id": "12",
    "location": "Kansas City",
    "name": "Chiefs",
    "abbreviation": "KC",
    "color": "e31837",
    "alternateColor": "ffb612",
    "logos": [
        {"href": "https://a.espncdn.com/kc.png", "rel": ["full", "default"]},
        {"href": "https://a.espncdn.com/kc-dark.png", "rel": ["full", "dark"]},
        {"href": "https://a.espncdn.com/kc-sb.png", "rel": ["full", "scoreboard"]},
        {"href": "https://a.espncdn.com/kc-dsb.png", "rel": ["full", "scoreboard", "dark"]},
    ],
}
BUF = {"id": "2", "location": "Buffalo", "name": "Bills", "abbreviation": "BUF", "color": "00338d"}


def scoreboard_event(state="in", completed=False, odds=None, situation=None):
    return {
        "id": "401772",
        "date": "2025-09-07T20:25Z",
        "status": {
            "period": 3,
            "displayClock": "4:12",
            "type": {"state": state, "completed": completed},
        },
        "competitions": [
            {
                "venue": {"fullName": "Arrowhead Stadium"},
                "competitors": [
                    {"homeAway": "home", "score": "17", "team": KC},
                    {"homeAway": "away", "score": "10", "team": BUF},
                ],
                "odds": odds or [],
                "situation": situation,
            }
        ],
    }


def fake_session(payload=None, error=None):
    session = MagicMock()
    response = MagicMock()
    response.json.return_value = payload
    if error is not None:
        session.get.side_effect = error
    session.get.return_value = response
    return session


@pytest.mark.parametrize(
    "status_type,expected",
    [
        ({"state": "pre"}, "scheduled"),
        ({"state": "in"}, "live"),
        ({"state": "post", "completed": True}, "final"),
        ({"state": "post", "completed": False}, "post"),
        (None, "scheduled"),
        ({"state": "delayed"}, "scheduled"),
    ],
)
def test_map_espn_status(status_type, expected):
    assert map_espn_status(status_type) == expected


def test_logo_variations_by_rel():
    assert extract_logo_variations(KC["logos"]) == {
        "default": "https://a.espncdn.com/kc.png",
        "dark": "https://a.espncdn.com/kc-dark.png",
        "scoreboard": "https://a.espncdn.com/kc-sb.png",
        "darkScoreboard": "https://a.espncdn.com/kc-dsb.png",
    }


def test_team_from_espn_single_logo():
    team = Team.from_espn({**BUF, "logo": "https://a.espncdn.com/buf.png"})
    assert team.logos == {"default": "https://a.espncdn.com/buf.png"}
    assert team.full_name == "Buffalo Bills"
    assert team.logo_url("dark") == "https://a.espncdn.com/buf.png"


def test_game_from_scoreboard_event():
    game = Game.from_scoreboard_event(
        scoreboard_event(
            odds=[{"details": "KC -3.5"}],
            situation={"down": 2, "distance": 7, "possessionText": "KC 45", "lastPlay": {"text": "Run for 3"}},
        )
    )

    assert game.id == "401772"
    assert game.is_live
    assert (game.home_team.abbreviation, game.away_team.abbreviation) == ("KC", "BUF")
    assert (game.home_score, game.away_score) == (17, 10)
    assert game.quarter == 3
    assert game.favorite_team == "home"
    assert game.situation.field_position == "KC 45"
    assert game.situation.last_play == "Run for 3"


def test_finished_game_status():
    game = Game.from_scoreboard_event(scoreboard_event(state="post", completed=True))
    assert game.is_finished
    assert game.status == "final"


def test_favorite_flag_wins_over_details():
    event = scoreboard_event(odds=[{"details": "KC -3.5", "awayTeamOdds": {"favorite": True}}])
    assert Game.from_scoreboard_event(event).favorite_team == "away"


def test_game_from_summary():
    event = scoreboard_event()
    summary = {
        "header": {"id": "401772", "competitions": event["competitions"]},
        "pickcenter": [{"homeTeamOdds": {"favorite": True}}],
        "situation": {"down": 1, "distance": 10},
    }
    summary["header"]["competitions"][0]["status"] = event["status"]

    game = Game.from_summary(summary)

    assert game.status == "live"
    assert game.favorite_team == "home"
    assert game.situation.down == 1
    assert game.last_updated is not None
    assert Game.from_summary({}) is None


def test_game_dict_roundtrip_keeps_situation():
    game = Game.from_scoreboard_event(scoreboard_event(situation={"down": 4}))
    assert Game.from_dict(game.to_dict()) == game


@pytest.mark.parametrize(
    "week_type,week,label,expected",
    [
        ("regular", 5, None, "week-5"),
        ("preseason", 2, None, "preseason-2"),
        ("postseason", 1, "Wild Card", "wild-card"),
        ("postseason", 5, None, "week-5"),
    ],
)
def test_week_key(week_type, week, label, expected):
    assert get_week_key(week_type, week, label) == expected


def test_parse_espn_datetime():
    assert parse_espn_datetime("2025-09-04T07:00Z") == datetime(2025, 9, 4, 7, tzinfo=timezone.utc)
    assert parse_espn_datetime(None) is None


def test_picks_from_document_skips_junk():
    picks = picks_from_document(
        {"1": {"pickedTeam": "home"}, "2": {"pickedTeam": "KC"}, "3": "home", "4": {"pickedTeam": "away"}}
    )
    assert sorted(picks) == ["1", "4"]


# Client


def test_current_week_from_scoreboard():
    session = fake_session(
        {
            "season": {"year": 2025, "type": 2},
            "week": {"number": 3, "startDate": "2025-09-16T07:00Z", "endDate": "2025-09-23T06:59Z"},
        }
    )

    week = EspnClient(session=session).get_current_week()

    assert week.week_id == "2025_week-3"
    assert week.start_date == datetime(2025, 9, 16, 7, tzinfo=timezone.utc)


def test_current_week_offseason_is_none():
    session = fake_session({"season": {"year": 2025, "type": 4}, "week": {"number": 1}})
    assert EspnClient(session=session).get_current_week() is None


def test_current_week_falls_back_to_calendar():
    session = fake_session(
        {
            "season": {"year": 2025, "type": 3},
            "week": {"number": 1},
            "leagues": [
                {
                    "calendar": [
                        {
                            "value": "3",
                            "entries": [
                                {
                                    "label": "Wild Card",
                                    "value": "1",
                                    "startDate": "2026-01-07T08:00Z",
                                    "endDate": "2026-01-14T07:59Z",
                                }
                            ],
                        }
                    ]
                }
            ],
        }
    )

    week = EspnClient(session=session).get_current_week()

    assert week.week_id == "2025_wild-card"
    assert week.week_type == "postseason"


def test_date_range_uses_one_scoreboard_call():
    session = fake_session({"events": [scoreboard_event(), {"id": "no-competitions"}]})
    client = EspnClient(api_base_url="https://espn.test/nfl/", session=session)

    games = client.get_games_for_date_range(date(2025, 9, 16), date(2025, 9, 22))

    assert len(games) == 1
    session.get.assert_called_once_with(
        "https://espn.test/nfl/scoreboard", params={"dates": "20250916-20250922"}, timeout=15
    )


def test_request_failures_raise_sports_api_error():
    session = fake_session(error=requests.exceptions.Timeout())
    with pytest.raises(SportsApiError):
        EspnClient(session=session).get_teams()


def test_invalid_json_raises_sports_api_error():
    session = fake_session()
    session.get.return_value.json.side_effect = ValueError("no json")
    with pytest.raises(SportsApiError):
        EspnClient(session=session).get_live_games()


def test_teams_survive_missing_standings():
    session = MagicMock()
    teams = MagicMock()
    teams.json.return_value = {"sports": [{"leagues": [{"teams": [{"team": KC}]}]}]}
    session.get.side_effect = [teams, requests.exceptions.ConnectionError()]

    result = EspnClient(session=session).get_teams_with_standings()

    assert [t.abbreviation for t in result] == ["KC"]
    assert result[0].wins is None
