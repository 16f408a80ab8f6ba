"""
SocketIO Event Handlers for Real-time Updates

Clients on the ``/scores`` namespace get the live games list on connect and
can watch individual games. Watching a game joins its room and holds a
reference on the game's live poller; the poller pushes every new snapshot
to the room until the last watcher leaves.
"""

import logging

from flask import current_app, request
from flask_login import current_user
from flask_socketio import emit, join_room, leave_room

from clipboard import socketio
from clipboard.errors import SportsApiError

logger = logging.getLogger(__name__)

NAMESPACE = "/scores"

# Track connected users and the games they watch
connected_users = {}


def _room(game_id):
    return f"game_{game_id}"


def _registry():
    return current_app.extensions.get("live_pollers")


def _watch(client_id, game_id):
    """Join the game's room and start or share its poller; returns the poller"""
    subscriptions = connected_users[client_id]["subscriptions"]
    if game_id in subscriptions:
        return None

    subscriptions.add(game_id)
    join_room(_room(game_id))

    registry = _registry()
    if registry is None:
        return None
    return registry.acquire(game_id)


def _unwatch(client_id, game_id):
    subscriptions = connected_users[client_id]["subscriptions"]
    if game_id not in subscriptions:
        return

    subscriptions.discard(game_id)
    leave_room(_room(game_id))

    registry = _registry()
    if registry is not None:
        registry.release(game_id)


@socketio.on("connect", namespace=NAMESPACE)
def on_connect():
    """Handle client connection to scores namespace"""
    user_id = current_user.id if current_user.is_authenticated else None
    client_id = request.sid

    logger.info(f"Client connected to /scores: {client_id} (user: {user_id})")
    connected_users[client_id] = {"user_id": user_id, "subscriptions": set()}

    try:
        games = current_app.extensions["espn_client"].get_live_games()
    except SportsApiError as e:
        logger.warning(f"No live games sent on connect: {e}")
        return

    emit("live_games_data", {"games": [game.to_dict() for game in games]})


@socketio.on("disconnect", namespace=NAMESPACE)
def on_disconnect():
    """Handle client disconnection; releases every watched game"""
    client_id = request.sid
    entry = connected_users.pop(client_id, None)
    if entry is None:
        return

    registry = _registry()
    if registry is not None:
        for game_id in entry["subscriptions"]:
            registry.release(game_id)

    logger.info(
        f"Client disconnected from /scores: {client_id} (user: {entry['user_id']})"
    )


@socketio.on("subscribe_game", namespace=NAMESPACE)
def on_subscribe_game(data):
    """Subscribe to updates for a specific game"""
    client_id = request.sid
    game_id = str((data or {}).get("game_id") or "")
    if client_id not in connected_users or not game_id:
        return

    poller = _watch(client_id, game_id)
    if poller is not None:
        emit("game_update", poller.snapshot())

    logger.debug(f"Client {client_id} subscribed to game {game_id}")


@socketio.on("unsubscribe_game", namespace=NAMESPACE)
def on_unsubscribe_game(data):
    """Unsubscribe from updates for a specific game"""
    client_id = request.sid
    game_id = str((data or {}).get("game_id") or "")
    if client_id not in connected_users or not game_id:
        return

    _unwatch(client_id, game_id)
    logger.debug(f"Client {client_id} unsubscribed from game {game_id}")


@socketio.on("watch_game", namespace=NAMESPACE)
def on_watch_game(data):
    """Move a client's single watched game, e.g. when the game view changes"""
    client_id = request.sid
    data = data or {}
    game_id = str(data.get("game_id") or "")
    previous = data.get("previous_game_id")
    if client_id not in connected_users or not game_id:
        return

    if previous is not None and str(previous) != game_id:
        _unwatch(client_id, str(previous))

    poller = _watch(client_id, game_id)
    if poller is not None:
        emit("game_update", poller.snapshot())


# Broadcast functions (called from pollers and the scheduler service)
def broadcast_game_snapshot(game_id, snapshot):
    """Push a poller snapshot to everyone watching the game"""
    socketio.emit("game_update", snapshot, room=_room(game_id), namespace=NAMESPACE)
    logger.debug(f"Broadcasted snapshot for game {game_id}")


def broadcast_live_games(games):
    socketio.emit(
        "live_games_data",
        {"games": [game.to_dict() for game in games]},
        namespace=NAMESPACE,
    )
    logger.debug(f"Broadcasted {len(games)} live games")


def get_connection_stats():
    """Get detailed connection statistics"""
    return {
        "total_connections": len(connected_users),
        "authenticated_users": len(
            [u for u in connected_users.values() if u["user_id"]]
        ),
        "anonymous_users": len(
            [u for u in connected_users.values() if not u["user_id"]]
        ),
        "watched_games": len(
            set().union(*(u["subscriptions"] for u in connected_users.values()))
        ),
    }
