from unittest.mock import MagicMock

import pytest

from clipboard.errors import SportsApiError
from clipboard.services.espn_client import EspnClient
from clipboard.services.live_game_poller import (
    LiveGamePoller,
    LivePollerRegistry,
    fetch_live_games_with_details,
)
from tests.factories import make_game, make_situation


@pytest.fixture
def espn_client():
    return MagicMock(spec=EspnClient)


@pytest.fixture
def published():
    return []


def make_poller(espn_client, scheduler, published, game_id="401", **kwargs):
    return LiveGamePoller(
        game_id,
        espn_client,
        scheduler,
        on_snapshot=lambda gid, snapshot: published.append((gid, snapshot)),
        **kwargs,
    )


def job_id(poller, kind):
    return next(j for j in poller.job_ids if j.endswith(f"_{kind}_{poller._token}"))


def test_live_game_schedules_both_refresh_jobs(espn_client, scheduler, published):
    espn_client.get_live_game_details.return_value = make_game(
        status="live", home_score=7, situation=make_situation()
    )
    poller = make_poller(espn_client, scheduler, published)

    poller.activate()

    assert poller.is_active
    assert poller.job_ids == set(scheduler.jobs)
    assert len(scheduler.jobs) == 2
    snapshot = poller.snapshot()
    assert snapshot["isLive"]
    assert snapshot["loading"] is False
    assert snapshot["game"]["homeScore"] == 7
    assert snapshot["situation"]["down"] == 1
    assert published == [("401", snapshot)]


def test_job_ids_are_unique_per_poller(espn_client, scheduler, published):
    espn_client.get_live_game_details.return_value = make_game(status="live")
    first = make_poller(espn_client, scheduler, published)
    second = make_poller(espn_client, scheduler, published)

    first.activate()
    second.activate()

    assert len(scheduler.jobs) == 4
    assert all(j.startswith("live_game_401_") for j in scheduler.jobs)


def test_manual_mode_only_schedules_full_refresh(espn_client, scheduler, published):
    espn_client.get_live_game_details.return_value = make_game(status="live")
    poller = make_poller(espn_client, scheduler, published, auto_refresh=False)

    poller.activate()

    assert len(scheduler.jobs) == 1
    assert "_full_" in next(iter(scheduler.jobs))


def test_finished_game_is_fetched_once(espn_client, scheduler, published):
    espn_client.get_live_game_details.return_value = make_game(
        status="final", home_score=24, away_score=20
    )
    poller = make_poller(espn_client, scheduler, published)

    poller.activate()

    assert scheduler.jobs == {}
    assert poller.snapshot()["isLive"] is False
    assert poller.snapshot()["game"]["status"] == "final"


def test_unknown_game_sets_error(espn_client, scheduler, published):
    espn_client.get_live_game_details.return_value = None
    poller = make_poller(espn_client, scheduler, published, game_id="999")

    poller.activate()

    assert poller.snapshot()["error"] == "Game 999 not found"
    assert poller.snapshot()["game"] is None
    assert scheduler.jobs == {}


def test_fetch_failure_keeps_previous_game(espn_client, scheduler, published):
    espn_client.get_live_game_details.return_value = make_game(status="live", home_score=3)
    poller = make_poller(espn_client, scheduler, published)
    poller.activate()

    espn_client.get_live_game_details.side_effect = SportsApiError("ESPN returned HTTP 503")
    scheduler.run(job_id(poller, "full"))

    snapshot = poller.snapshot()
    assert snapshot["error"] == "ESPN returned HTTP 503"
    assert snapshot["game"]["homeScore"] == 3
    assert snapshot["loading"] is False


def test_situation_refresh_updates_only_situation(espn_client, scheduler, published):
    espn_client.get_live_game_details.return_value = make_game(
        status="live", situation=make_situation(down=1)
    )
    poller = make_poller(espn_client, scheduler, published)
    poller.activate()

    espn_client.get_game_situation.return_value = make_situation(down=3, distance=2)
    scheduler.run(job_id(poller, "situation"))

    snapshot = poller.snapshot()
    assert snapshot["situation"]["down"] == 3
    assert snapshot["game"]["situation"]["down"] == 3
    assert espn_client.get_live_game_details.call_count == 1
    assert len(published) == 2


def test_situation_refresh_errors_are_quiet(espn_client, scheduler, published):
    espn_client.get_live_game_details.return_value = make_game(status="live")
    poller = make_poller(espn_client, scheduler, published)
    poller.activate()

    espn_client.get_game_situation.side_effect = SportsApiError("timeout")
    scheduler.run(job_id(poller, "situation"))

    assert poller.snapshot()["error"] is None
    assert len(published) == 1


def test_game_ending_removes_jobs(espn_client, scheduler, published):
    espn_client.get_live_game_details.return_value = make_game(status="live")
    poller = make_poller(espn_client, scheduler, published)
    poller.activate()

    espn_client.get_live_game_details.return_value = make_game(
        status="final", home_score=21, away_score=14
    )
    scheduler.run(job_id(poller, "full"))

    assert scheduler.jobs == {}
    assert poller.job_ids == set()
    assert published[-1][1]["game"]["status"] == "final"


def test_deactivate_drops_late_responses(espn_client, scheduler, published):
    espn_client.get_live_game_details.return_value = make_game(status="live", home_score=0)
    poller = make_poller(espn_client, scheduler, published)
    poller.activate()
    func, args, _ = scheduler.jobs[job_id(poller, "full")]

    poller.deactivate()
    espn_client.get_live_game_details.return_value = make_game(status="live", home_score=14)
    func(*args)

    assert scheduler.jobs == {}
    assert poller.snapshot()["game"]["homeScore"] == 0
    assert len(published) == 1


def test_change_game_ignores_old_generation(espn_client, scheduler, published):
    games = {"401": make_game("401", status="live"), "402": make_game("402", status="live")}
    espn_client.get_live_game_details.side_effect = lambda gid: games[gid]
    poller = make_poller(espn_client, scheduler, published)
    poller.activate()
    old_func, old_args, _ = scheduler.jobs[job_id(poller, "full")]

    poller.change_game("402")
    old_func(*old_args)

    assert poller.snapshot()["gameId"] == "402"
    assert poller.snapshot()["game"]["id"] == "402"
    assert all(j.startswith("live_game_402_") for j in scheduler.jobs)


def test_job_already_removed_by_scheduler(espn_client, scheduler, published):
    espn_client.get_live_game_details.return_value = make_game(status="live")
    poller = make_poller(espn_client, scheduler, published)
    poller.activate()
    scheduler.jobs.clear()

    poller.deactivate()

    assert poller.job_ids == set()


def test_refresh_restarts_polling(espn_client, scheduler, published):
    espn_client.get_live_game_details.return_value = make_game(status="final")
    poller = make_poller(espn_client, scheduler, published)
    poller.activate()
    assert scheduler.jobs == {}

    espn_client.get_live_game_details.return_value = make_game(status="live")
    snapshot = poller.refresh()

    assert snapshot["isLive"]
    assert len(scheduler.jobs) == 2


def test_refresh_after_deactivate_schedules_nothing(espn_client, scheduler, published):
    espn_client.get_live_game_details.return_value = make_game(status="live", home_score=3)
    poller = make_poller(espn_client, scheduler, published, game_id="9")
    poller.activate()
    poller.deactivate()
    espn_client.get_live_game_details.reset_mock()
    espn_client.get_live_game_details.return_value = make_game(status="live", home_score=10)

    snapshot = poller.refresh()

    assert scheduler.jobs == {}
    assert not poller.is_active
    assert snapshot["game"]["homeScore"] == 3
    espn_client.get_live_game_details.assert_not_called()


def test_publish_errors_are_contained(espn_client, scheduler):
    espn_client.get_live_game_details.return_value = make_game(status="live")

    def broken(game_id, snapshot):
        raise RuntimeError("socket gone")

    poller = LiveGamePoller("401", espn_client, scheduler, on_snapshot=broken)
    poller.activate()

    assert poller.snapshot()["isLive"]


# Registry


def test_registry_shares_one_poller_per_game(espn_client, scheduler):
    espn_client.get_live_game_details.return_value = make_game(status="live")
    registry = LivePollerRegistry(espn_client, scheduler)

    first = registry.acquire("401")
    second = registry.acquire(401)

    assert first is second
    assert espn_client.get_live_game_details.call_count == 1
    assert len(registry) == 1

    registry.release("401")
    assert registry.get("401") is first
    assert len(scheduler.jobs) == 2

    registry.release("401")
    assert registry.get("401") is None
    assert scheduler.jobs == {}
    assert not first.is_active


def test_registry_switch_moves_between_games(espn_client, scheduler):
    espn_client.get_live_game_details.side_effect = lambda gid: make_game(gid, status="live")
    registry = LivePollerRegistry(espn_client, scheduler)

    registry.acquire("401")
    registry.switch("401", "402")

    assert registry.active_game_ids() == ["402"]
    assert all(j.startswith("live_game_402_") for j in scheduler.jobs)


def test_registry_shutdown_stops_everything(espn_client, scheduler):
    espn_client.get_live_game_details.side_effect = lambda gid: make_game(gid, status="live")
    registry = LivePollerRegistry(espn_client, scheduler)
    registry.acquire("401")
    registry.acquire("402")

    registry.shutdown()

    assert len(registry) == 0
    assert scheduler.jobs == {}


def test_registry_release_unknown_game_is_noop(espn_client, scheduler):
    registry = LivePollerRegistry(espn_client, scheduler)
    registry.release("404")
    assert len(registry) == 0


# Live games list


def test_live_games_fall_back_to_scoreboard_entry(espn_client):
    scoreboard = [make_game("401"), make_game("402"), make_game("403")]
    detailed = make_game("401", situation=make_situation(down=2))
    espn_client.get_live_games.return_value = scoreboard
    espn_client.get_live_game_details.side_effect = [
        detailed,
        SportsApiError("timeout"),
        None,
    ]

    games = fetch_live_games_with_details(espn_client)

    assert games == [detailed, scoreboard[1], scoreboard[2]]
