import pytest

from clipboard import socketio
from clipboard.errors import SportsApiError
from clipboard.services.live_game_poller import LivePollerRegistry
from clipboard.socketio_handlers import broadcast_game_snapshot, get_connection_stats
from tests.factories import make_game

NAMESPACE = "/scores"


@pytest.fixture
def registry(app, espn, scheduler):
    registry = LivePollerRegistry(espn, scheduler, publish=broadcast_game_snapshot)
    app.extensions["live_pollers"] = registry
    return registry


@pytest.fixture
def socket_client(app, espn):
    espn.get_live_games.return_value = [make_game("401")]
    espn.get_live_game_details.side_effect = lambda gid: make_game(gid, status="live")
    client = socketio.test_client(app, namespace=NAMESPACE)
    yield client
    if client.is_connected(NAMESPACE):
        client.disconnect(namespace=NAMESPACE)


def events(client, name):
    return [m["args"][0] for m in client.get_received(NAMESPACE) if m["name"] == name]


def test_connect_sends_live_games(socket_client):
    games = events(socket_client, "live_games_data")
    assert [g["id"] for g in games[0]["games"]] == ["401"]


def test_connect_survives_espn_outage(app, espn):
    espn.get_live_games.side_effect = SportsApiError("down")

    client = socketio.test_client(app, namespace=NAMESPACE)

    assert client.is_connected(NAMESPACE)
    assert events(client, "live_games_data") == []
    client.disconnect(namespace=NAMESPACE)


def test_watchers_share_a_poller_until_all_leave(app, registry, socket_client):
    other = socketio.test_client(app, namespace=NAMESPACE)
    socket_client.get_received(NAMESPACE)

    socket_client.emit("subscribe_game", {"game_id": "401"}, namespace=NAMESPACE)
    other.emit("subscribe_game", {"game_id": 401}, namespace=NAMESPACE)

    updates = events(socket_client, "game_update")
    assert updates and all(u["gameId"] == "401" for u in updates)
    assert registry.active_game_ids() == ["401"]
    assert get_connection_stats()["watched_games"] == 1

    socket_client.emit("unsubscribe_game", {"game_id": "401"}, namespace=NAMESPACE)
    assert registry.active_game_ids() == ["401"]

    other.disconnect(namespace=NAMESPACE)
    assert len(registry) == 0


def test_watch_game_switches_pollers(registry, socket_client, scheduler):
    socket_client.emit("watch_game", {"game_id": "401"}, namespace=NAMESPACE)
    socket_client.emit(
        "watch_game", {"game_id": "402", "previous_game_id": "401"}, namespace=NAMESPACE
    )

    assert registry.active_game_ids() == ["402"]
    assert all(job_id.startswith("live_game_402_") for job_id in scheduler.jobs)


def test_subscribe_twice_holds_one_reference(registry, socket_client):
    socket_client.emit("subscribe_game", {"game_id": "401"}, namespace=NAMESPACE)
    socket_client.emit("subscribe_game", {"game_id": "401"}, namespace=NAMESPACE)

    socket_client.emit("unsubscribe_game", {"game_id": "401"}, namespace=NAMESPACE)

    assert len(registry) == 0
