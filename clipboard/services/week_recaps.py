"""
Week recaps

After a week is over, count each player's correct picks and flag the top
score. Recaps are only written to ``weekRecaps``; pick documents are read,
never modified.
"""

import logging
from datetime import datetime, timezone

from clipboard.errors import SportsApiError
from clipboard.models.pick import picks_from_document
from clipboard.models.week import parse_espn_datetime
from clipboard.services.document_store import server_timestamp

logger = logging.getLogger(__name__)

RECAPS_COLLECTION = "weekRecaps"


def pick_is_correct(picked_team, game):
    """A home pick needs a home win; an away pick is credited on any other result,
    so a tied game counts for ``away`` pickers.
    """
    home_won = game.home_score > game.away_score
    if picked_team == "home":
        return home_won
    return picked_team == "away" and not home_won


def score_user_week(picks, finished_games):
    """``(correct, games_with_picks)`` for one user's week"""
    correct = 0
    picked = 0
    for game in finished_games:
        pick = picks.get(str(game.id))
        if pick is None:
            continue
        picked += 1
        if pick_is_correct(pick.picked_team, game):
            correct += 1
    return correct, picked


def build_user_stats(store, users, week_id, finished_games):
    """Per-user stats for a week with the top scorers flagged.

    Every user is listed; games without a pick count as incorrect.
    """
    stats = []
    total = len(finished_games)
    if total == 0:
        return stats

    for user_id, _ in users:
        document = store.get(f"users/{user_id}/picks/{week_id}")
        try:
            picks = picks_from_document(document)
        except (AttributeError, TypeError, ValueError) as e:
            logger.error(f"Unreadable picks for user {user_id} in {week_id}: {e}")
            continue

        correct, _ = score_user_week(picks, finished_games)
        stats.append(
            {
                "userId": user_id,
                "correct": correct,
                "total": total,
                "percentage": round(correct / total * 100),
            }
        )

    top = max((s["correct"] for s in stats), default=0)
    for s in stats:
        s["isTopScore"] = top > 0 and s["correct"] == top

    return stats


def needs_recalculation(recap, week_end):
    """An existing recap is stale if it was calculated before the week ended"""
    calculated_at = parse_espn_datetime(recap.get("calculatedAt"))
    if calculated_at is None:
        return True
    return calculated_at < week_end


def calculate_week_recap(store, client, week, users):
    """Calculate and store one week's recap; returns the result entry"""
    week_id = week.week_id
    games = client.get_games_for_date_range(week.start_date, week.end_date)
    finished = [g for g in games if g.is_finished]

    if not finished:
        logger.info(f"Skipping {week_id} - no finished games yet")
        return {"weekId": week_id, "success": False, "message": "No finished games"}

    user_stats = build_user_stats(store, users, week_id, finished)
    store.set(
        f"{RECAPS_COLLECTION}/{week_id}",
        {
            "weekId": week_id,
            "season": str(week.season),
            "week": week.key,
            "calculatedAt": server_timestamp(),
            "userStats": user_stats,
        },
    )
    logger.info(f"Saved week recap for {week_id}: {len(user_stats)} users")
    return {"weekId": week_id, "success": True, "userCount": len(user_stats)}


def calculate_missing_recaps(store, client, season, now=None, force=False):
    """Calculate recaps for every finished week that is missing or stale.

    ``force`` recalculates every finished week, up to date or not.
    """
    now = now or datetime.now(timezone.utc)

    weeks = client.get_all_available_weeks(season)
    existing = dict(store.list_documents(RECAPS_COLLECTION))
    users = [(uid, data) for uid, data in store.list_documents("users") if data.get("displayName")]
    logger.info(
        f"Checking {len(weeks)} weeks against {len(existing)} recaps for {len(users)} users"
    )

    results = []
    for week in weeks:
        if week.end_date is None or week.end_date > now:
            continue

        recap = existing.get(week.week_id)
        if not force and recap is not None and not needs_recalculation(recap, week.end_date):
            continue

        try:
            result = calculate_week_recap(store, client, week, users)
        except SportsApiError as e:
            logger.error(f"Error calculating recap for {week.week_id}: {e}")
            result = {"weekId": week.week_id, "success": False, "message": str(e)}

        if result["success"]:
            result["recalculated"] = recap is not None
            result["message"] = (
                "Recalculated and updated" if recap is not None else "Calculated and saved"
            )
        results.append(result)

    succeeded = len([r for r in results if r["success"]])
    return {
        "results": results,
        "summary": {
            "total": len(results),
            "succeeded": succeeded,
            "failed": len(results) - succeeded,
        },
    }
