"""
Endpoints hit by the external cron provider

Every handler requires ``Authorization: Bearer <CRON_SECRET>``.
"""

import logging
from datetime import datetime, timezone

from flask import jsonify

from clipboard.errors import ClipboardError, SportsApiError
from clipboard.routes.cron import bp
from clipboard.services import get_document_store, get_espn_client
from clipboard.services.phil_picks import run_two_pass_generation
from clipboard.services.week_recaps import calculate_missing_recaps
from clipboard.utils.auth_utils import cron_required
from clipboard.utils.email_service import EmailService
from clipboard.utils.timezone_utils import get_current_time, is_reminder_day

logger = logging.getLogger(__name__)

CRON_METHODS = ["GET", "POST"]


def _current_week_or_error():
    week = get_espn_client().get_current_week()
    if week is None:
        logger.error("Could not get current NFL week from ESPN")
    return week


def _send_weekly_reminders():
    try:
        week = get_espn_client().get_current_week()
    except SportsApiError as e:
        logger.warning(f"Sending reminders without a week number: {e}")
        week = None
    week_number = week.week if week else None

    users = get_document_store().where("users", "emailNotifications", True)
    results = EmailService().send_weekly_reminders(users, week_number)
    sent = len([r for r in results if r["success"]])
    logger.info(f"Weekly reminders sent to {sent} of {len(results)} users")
    return {"sentTo": sent, "failed": len(results) - sent, "results": results}


@bp.route("/weekly-reminders", methods=CRON_METHODS)
@cron_required
def weekly_reminders():
    result = _send_weekly_reminders()
    return jsonify(
        {"success": True, **result, "timestamp": datetime.now(timezone.utc).isoformat()}
    )


@bp.route("/generate-phil-picks", methods=CRON_METHODS)
@cron_required
def generate_phil_picks():
    """Phil's picks for the current week, then a second pass over last week"""
    current_week = _current_week_or_error()
    if current_week is None:
        return (
            jsonify({"success": False, "error": "Could not get current NFL week"}),
            500,
        )

    results = run_two_pass_generation(
        get_document_store(), get_espn_client(), current_week
    )
    pass1, pass2 = results["pass1"], results["pass2"]
    success = pass1["success"] or pass2["success"]
    message = (
        f"Phil picks generation completed. "
        f"Pass 1: {'Success' if pass1['success'] else 'Failed'}, "
        f"Pass 2: {'Success' if pass2['success'] else 'Failed'}"
        if success
        else "Both passes failed"
    )

    return jsonify(
        {
            "success": success,
            "message": message,
            "pass1": pass1,
            "pass2": pass2,
            "currentWeek": {
                "week": current_week.week,
                "weekType": current_week.week_type,
                "season": current_week.season,
            },
        }
    )


def _recap_response(force):
    current_week = _current_week_or_error()
    if current_week is None:
        return (
            jsonify({"success": False, "error": "Could not get current NFL week"}),
            500,
        )

    outcome = calculate_missing_recaps(
        get_document_store(), get_espn_client(), current_week.season, force=force
    )
    summary = outcome["summary"]
    verb = "Recalculated" if force else "Processed"
    return jsonify(
        {
            "success": True,
            "message": (
                f"{verb} {summary['total']} weeks: "
                f"{summary['succeeded']} succeeded, {summary['failed']} failed"
            ),
            **outcome,
        }
    )


@bp.route("/calculate-week-recaps", methods=CRON_METHODS)
@cron_required
def calculate_week_recaps():
    return _recap_response(force=False)


@bp.route("/recalculate-all-week-recaps", methods=CRON_METHODS)
@cron_required
def recalculate_all_week_recaps():
    """Rebuild every finished week's recap, including ones already up to date"""
    return _recap_response(force=True)


@bp.route("/daily-tasks", methods=CRON_METHODS)
@cron_required
def daily_tasks():
    """Weekly reminders on Mondays, week recaps every day"""
    now = get_current_time()
    send_reminders = is_reminder_day(now)
    results = {}

    if send_reminders:
        try:
            reminder = _send_weekly_reminders()
            results["weeklyReminders"] = {"success": True, "sentTo": reminder["sentTo"]}
        except ClipboardError as e:
            logger.error(f"Error sending weekly reminder emails: {e}")
            results["weeklyReminders"] = {"success": False, "error": str(e)}

    try:
        current_week = get_espn_client().get_current_week()
        if current_week is None:
            raise SportsApiError("Could not get current NFL week from ESPN")
        summary = calculate_missing_recaps(
            get_document_store(), get_espn_client(), current_week.season
        )["summary"]
        results["weekRecaps"] = {
            "success": True,
            "processed": summary["total"],
            "succeeded": summary["succeeded"],
            "failed": summary["failed"],
        }
    except ClipboardError as e:
        logger.error(f"Error calculating week recaps: {e}")
        results["weekRecaps"] = {"success": False, "error": str(e)}

    return jsonify(
        {
            "success": True,
            "message": "Daily tasks completed",
            "dayOfWeek": now.strftime("%A"),
            "tasksRun": {"weeklyReminders": send_reminders, "weekRecaps": True},
            "results": results,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )
