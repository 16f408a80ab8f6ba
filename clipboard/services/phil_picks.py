"""
Picks for Phil, the house player who always takes the favourite
"""

import logging

from clipboard.errors import SportsApiError
from clipboard.models.pick import UserPick
from clipboard.models.user import PHIL_USER
from clipboard.services.document_store import server_timestamp

logger = logging.getLogger(__name__)


def generate_phil_picks(games):
    """``{game_id: pick}`` following each game's favourite, home when unknown"""
    picks = {}
    for game in games:
        pick = UserPick(game_id=game.id, picked_team=game.favorite_team or "home")
        picks[game.id] = pick.to_dict()
    return picks


def ensure_phil_profile(store):
    """Phil needs a profile document to show up in recaps and standings"""
    profile = {k: v for k, v in PHIL_USER.items() if k != "id"}
    _, created = store.upsert(f"users/{PHIL_USER['id']}", profile)
    if created:
        logger.info("Created Phil's profile document")


def generate_and_store_phil_picks(store, games, week_id):
    """Store Phil's picks for a week unless they already exist.

    Returns True when a new picks document was written.
    """
    path = f"users/{PHIL_USER['id']}/picks/{week_id}"
    if store.exists(path):
        logger.info(f"Phil's picks for {week_id} already exist, skipping")
        return False

    picks = generate_phil_picks(games)
    stamp = server_timestamp()
    for pick in picks.values():
        pick["pickedAt"] = stamp

    store.set(path, picks)
    logger.info(f"Stored {len(picks)} Phil picks for {week_id}")
    return True


def generate_for_week(store, client, week):
    """Fetch a week's games and store Phil's picks; returns a result dict"""
    result = {"success": False, "weekKey": week.week_id, "gamesCount": 0, "created": False}

    games = client.get_games_for_date_range(week.start_date, week.end_date)
    result["gamesCount"] = len(games)
    if not games:
        logger.info(f"No games found for {week.week_id}, skipping")
        return result

    result["created"] = generate_and_store_phil_picks(store, games, week.week_id)
    result["success"] = True
    return result


def run_two_pass_generation(store, client, current_week):
    """Current week first, then the previous week to catch late-listed games"""
    ensure_phil_profile(store)

    results = {}
    for name, week in (("pass1", current_week), ("pass2", current_week.previous())):
        try:
            results[name] = generate_for_week(store, client, week)
        except SportsApiError as e:
            logger.error(f"Phil picks {name} failed for {week.week_id}: {e}")
            results[name] = {
                "success": False,
                "weekKey": week.week_id,
                "gamesCount": 0,
                "error": str(e),
            }

    return results
