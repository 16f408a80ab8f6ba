import logging
import re

from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from clipboard import limiter
from clipboard.errors import SportsApiError
from clipboard.forms.picks import MakePickForm, TeamColorMappingForm
from clipboard.forms.profile import ProfileForm, VisibilityForm, sanitize_input
from clipboard.models.pick import picks_from_document
from clipboard.models.team import Team
from clipboard.models.team_color_mapping import TeamColorMapping
from clipboard.routes.api import bp
from clipboard.services import (
    get_document_store,
    get_espn_client,
    get_poller_registry,
    get_team_colors,
    get_tmdb_client,
)
from clipboard.services.clipboard_visibility import add_new_user_to_all
from clipboard.services.document_store import server_timestamp
from clipboard.services.live_game_poller import fetch_live_games_with_details
from clipboard.services.maintenance import init_team_colors
from clipboard.utils.auth_utils import add_security_headers, admin_required
from clipboard.utils.cache_utils import cached_result

logger = logging.getLogger(__name__)

WEEK_ID_PATTERN = re.compile(r"^\d{4}_[a-z0-9-]+$")

# Profile fields a player may change, keyed by JSON name
PROFILE_FIELDS = {
    "displayName": "display_name",
    "name": "name",
    "superBowlPick": "super_bowl_pick",
    "emailNotifications": "email_notifications",
}


def _bad_request(message):
    return jsonify({"success": False, "error": message}), 400


@cached_result("tmdb_movie", timeout=3600)
def _movie_details(movie_id):
    return get_tmdb_client().get_movie(movie_id)


@cached_result("espn_teams", timeout=1800)
def _team_list():
    return [team.to_dict() for team in get_espn_client().get_teams_with_standings()]


# Movies


@bp.route("/tmdb/search")
@limiter.limit("60 per minute")
def tmdb_search():
    """Search movies for the profile top picks"""
    query = request.args.get("query", "")
    if not query.strip():
        return _bad_request("Query parameter is required")

    page = request.args.get("page", 1, type=int)
    data = get_tmdb_client().search_movies(query, page=page)
    return jsonify({"success": True, **data})


@bp.route("/tmdb/movie/<int:movie_id>")
def tmdb_movie(movie_id):
    return jsonify({"success": True, "movie": _movie_details(movie_id)})


# Games


@bp.route("/live-games")
def live_games():
    """Games in progress; ``details=1`` adds situation and odds per game"""
    client = get_espn_client()
    if request.args.get("details") in ("1", "true"):
        games = fetch_live_games_with_details(client)
    else:
        games = client.get_live_games()

    return jsonify(
        {"success": True, "games": [g.to_dict() for g in games], "count": len(games)}
    )


@bp.route("/games/<game_id>")
def game_detail(game_id):
    """Latest state of one game, from its live poller when one is running"""
    registry = current_app.extensions.get("live_pollers")
    poller = registry.get(game_id) if registry else None
    if poller is not None:
        return jsonify({"success": True, **poller.snapshot()})

    game = get_espn_client().get_live_game_details(game_id)
    if game is None:
        return jsonify({"success": False, "error": "Game not found"}), 404

    return jsonify(
        {
            "success": True,
            "gameId": game.id,
            "game": game.to_dict(),
            "situation": game.situation.to_dict() if game.situation else None,
            "isLive": game.is_live,
        }
    )


@bp.route("/games/<game_id>/refresh", methods=["POST"])
@login_required
def refresh_game(game_id):
    """Manual refresh of a watched game"""
    poller = get_poller_registry().get(game_id)
    if poller is None:
        return jsonify({"success": False, "error": "Game is not being watched"}), 404
    return jsonify({"success": True, **poller.refresh()})


@bp.route("/current-week")
def current_week():
    week = get_espn_client().get_current_week()
    if week is None:
        return jsonify({"success": True, "offSeason": True, "week": None})
    return jsonify({"success": True, "offSeason": False, "week": week.to_dict()})


# Teams and colours


@bp.route("/teams")
def teams():
    """All teams with their resolved background colour and logo"""
    try:
        team_dicts = _team_list()
    except SportsApiError as e:
        logger.error(f"Error fetching teams: {e}")
        return jsonify({"success": False, "error": "Failed to fetch teams"}), 502

    team_colors = get_team_colors()
    results = []
    for data in team_dicts:
        style = team_colors.style_for(Team.from_dict(data))
        results.append({**data, "style": style.to_dict()})

    return jsonify({"success": True, "teams": results})


@bp.route("/team-colors")
def team_colors():
    mappings = get_team_colors().all()
    return jsonify({"success": True, "mappings": [m.to_dict() for m in mappings]})


@bp.route("/team-colors", methods=["PUT"])
@admin_required
def update_team_colors():
    """Replace the full mapping list; the last writer wins"""
    payload = request.get_json(silent=True) or {}
    entries = payload.get("mappings")
    if not isinstance(entries, list):
        return _bad_request("mappings must be a list")

    mappings = []
    for entry in entries:
        if not isinstance(entry, dict):
            return _bad_request("Each mapping must be an object")
        form = TeamColorMappingForm.from_json(
            {
                "abbreviation": entry.get("abbreviation"),
                "background_color_choice": entry.get("backgroundColorChoice"),
                "custom_color": entry.get("customColor"),
                "logo_type": entry.get("logoType"),
            }
        )
        if not form.validate():
            return _bad_request(f"{entry.get('abbreviation')}: {form.first_error()}")
        mappings.append(TeamColorMapping.from_dict(entry))

    saved = get_team_colors().set_mappings(mappings)
    logger.info(f"{current_user.email} saved {len(saved)} team colour mappings")
    return jsonify({"success": True, "mappings": [m.to_dict() for m in saved]})


@bp.route("/team-colors/init", methods=["POST"])
@admin_required
def initialize_team_colors():
    result = init_team_colors(get_team_colors())
    return jsonify(
        {"success": True, "message": "Team color mappings initialized", **result}
    )


# Picks


@bp.route("/picks/<week_id>")
@login_required
@add_security_headers
def get_picks(week_id):
    if not WEEK_ID_PATTERN.match(week_id):
        return _bad_request("Invalid week id")

    document = get_document_store().get(f"users/{current_user.id}/picks/{week_id}")
    picks = picks_from_document(document)
    return jsonify(
        {
            "success": True,
            "weekId": week_id,
            "picks": {game_id: pick.to_dict() for game_id, pick in picks.items()},
        }
    )


@bp.route("/picks/<week_id>", methods=["PUT"])
@login_required
@add_security_headers
def save_picks(week_id):
    """Save one or more picks; each overwrites any earlier pick for that game"""
    if not WEEK_ID_PATTERN.match(week_id):
        return _bad_request("Invalid week id")

    payload = request.get_json(silent=True) or {}
    entries = payload.get("picks")
    if entries is None:
        entries = [payload]
    if not isinstance(entries, list) or not entries:
        return _bad_request("No picks provided")

    updates = {}
    stamp = server_timestamp()
    for entry in entries:
        if not isinstance(entry, dict):
            return _bad_request("Each pick must be an object")
        form = MakePickForm.from_json(
            {"game_id": str(entry.get("gameId", "")), "picked_team": entry.get("pickedTeam")}
        )
        if not form.validate():
            return _bad_request(form.first_error())
        updates[form.game_id.data] = {"pickedTeam": form.picked_team.data, "pickedAt": stamp}

    store = get_document_store()
    path = f"users/{current_user.id}/picks/{week_id}"
    store.set(path, updates, merge=True)
    logger.info(f"User {current_user.id} saved {len(updates)} picks for {week_id}")

    return jsonify({"success": True, "weekId": week_id, "picks": store.get(path)})


# Profile


@bp.route("/profile")
@login_required
@add_security_headers
def get_profile():
    return jsonify({"success": True, "user": current_user.to_dict()})


@bp.route("/profile", methods=["PATCH"])
@login_required
@add_security_headers
def update_profile():
    payload = request.get_json(silent=True) or {}

    form = ProfileForm.from_json(
        {attr: payload.get(key) for key, attr in PROFILE_FIELDS.items()},
        top_movie_picks=payload.get("topMoviePicks"),
    )
    if not form.validate():
        return _bad_request(form.first_error())

    # Only fields present in the request are written
    updates = {}
    for key, attr in PROFILE_FIELDS.items():
        if key in payload:
            updates[key] = getattr(form, attr).data
    if "name" in updates:
        updates["name"] = sanitize_input(updates["name"])
    if "topMoviePicks" in payload:
        updates["topMoviePicks"] = payload["topMoviePicks"]
    if "moviePreferences" in payload:
        updates["moviePreferences"] = payload["moviePreferences"]
    if not updates:
        return _bad_request("No profile fields provided")

    if updates.get("displayName"):
        updates["profileComplete"] = True
    updates["updatedAt"] = server_timestamp()

    store = get_document_store()
    path = f"users/{current_user.id}"
    store.set(path, updates, merge=True)
    current_user.data = store.get(path)

    return jsonify({"success": True, "user": current_user.to_dict()})


@bp.route("/clipboard-visibility/add-new-user", methods=["POST"])
@login_required
def add_user_to_visibility():
    """Show a newly joined player on everyone else's clipboard"""
    payload = request.get_json(silent=True) or {}
    form = VisibilityForm.from_json({"new_user_id": payload.get("newUserId")})
    if not form.validate():
        return _bad_request("New user ID is required")

    updated = add_new_user_to_all(get_document_store(), form.new_user_id.data)
    return jsonify({"success": True, "updated": updated})


# Admin


@bp.route("/admin/status")
@admin_required
def admin_status():
    """Scheduler jobs, live pollers and socket connections of this process"""
    from clipboard.services.scheduler_service import scheduler_service
    from clipboard.socketio_handlers import get_connection_stats

    registry = current_app.extensions.get("live_pollers")
    return jsonify(
        {
            "success": True,
            "scheduler": scheduler_service.get_status(),
            "livePollers": registry.active_game_ids() if registry else [],
            "connections": get_connection_stats(),
        }
    )
