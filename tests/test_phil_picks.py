from clipboard.errors import SportsApiError
from clipboard.models.user import PHIL_USER
from clipboard.services.phil_picks import (
    generate_and_store_phil_picks,
    generate_phil_picks,
    run_two_pass_generation,
)
from tests.factories import make_game, make_week

PHIL = PHIL_USER["id"]


def test_phil_follows_the_favorite():
    games = [
        make_game("1", status="scheduled", favorite_team="away"),
        make_game("2", status="scheduled", favorite_team="home"),
        make_game("3", status="scheduled"),
    ]

    picks = generate_phil_picks(games)

    assert {gid: p["pickedTeam"] for gid, p in picks.items()} == {
        "1": "away",
        "2": "home",
        "3": "home",
    }


def test_existing_picks_are_never_overwritten(store):
    store.set(f"users/{PHIL}/picks/2025_week-3", {"1": {"pickedTeam": "away"}})

    created = generate_and_store_phil_picks(
        store, [make_game("1", favorite_team="home")], "2025_week-3"
    )

    assert created is False
    assert store.get(f"users/{PHIL}/picks/2025_week-3") == {"1": {"pickedTeam": "away"}}


def test_two_passes_cover_current_and_previous_week(store, espn):
    espn.get_games_for_date_range.return_value = [make_game("1", favorite_team="away")]
    week = make_week(week=3)

    results = run_two_pass_generation(store, espn, week)

    assert results["pass1"]["weekKey"] == "2025_week-3"
    assert results["pass2"]["weekKey"] == "2025_week-2"
    assert results["pass1"]["created"] and results["pass2"]["created"]
    assert store.get(f"users/{PHIL}")["displayName"] == "Phil"
    picks = store.get(f"users/{PHIL}/picks/2025_week-2")
    assert picks["1"]["pickedTeam"] == "away"
    assert "pickedAt" in picks["1"]

    start, end = espn.get_games_for_date_range.call_args_list[1].args
    assert (week.start_date - start).days == 7
    assert (week.end_date - end).days == 7


def test_second_pass_runs_after_first_fails(store, espn):
    espn.get_games_for_date_range.side_effect = [
        SportsApiError("ESPN returned HTTP 500"),
        [make_game("1")],
    ]

    results = run_two_pass_generation(store, espn, make_week(week=3))

    assert results["pass1"]["success"] is False
    assert results["pass1"]["error"] == "ESPN returned HTTP 500"
    assert results["pass2"]["success"] is True


def test_week_without_games_is_skipped(store, espn):
    espn.get_games_for_date_range.return_value = []

    results = run_two_pass_generation(store, espn, make_week(week=1))

    assert results["pass1"]["success"] is False
    assert results["pass1"]["gamesCount"] == 0
    assert store.list_documents(f"users/{PHIL}/picks") == []
