import logging

from flask import jsonify, request
from flask_login import login_required

from clipboard import limiter
from clipboard.errors import EmailDeliveryError
from clipboard.forms.email import AudienceForm, WeeklyReminderForm
from clipboard.routes.email import bp
from clipboard.services import get_document_store
from clipboard.utils.auth_utils import admin_required
from clipboard.utils.email_service import EmailService

logger = logging.getLogger(__name__)


def _audience_form(form_class):
    payload = request.get_json(silent=True) or {}
    return form_class.from_json(
        {
            "email": payload.get("email"),
            "display_name": payload.get("displayName"),
            "week_number": payload.get("weekNumber"),
        }
    )


@bp.route("/welcome", methods=["POST"])
@login_required
@limiter.limit("10 per hour")
def welcome():
    form = _audience_form(AudienceForm)
    if not form.validate():
        return jsonify({"success": False, "error": "Email is required"}), 400

    try:
        message_id = EmailService().send_welcome_email(form.email.data, form.display_name.data)
    except EmailDeliveryError as e:
        logger.error(f"Error sending welcome email: {e}")
        return jsonify({"success": False, "error": "Failed to send welcome email"}), 502

    return jsonify({"success": True, "id": message_id})


@bp.route("/weekly-reminder", methods=["POST"])
@admin_required
def weekly_reminder():
    """Send a single reminder, mostly for checking the template"""
    form = _audience_form(WeeklyReminderForm)
    if not form.validate():
        return jsonify({"success": False, "error": form.first_error()}), 400

    try:
        message_id = EmailService().send_weekly_reminder(
            form.email.data, form.display_name.data, form.week_number.data
        )
    except EmailDeliveryError as e:
        logger.error(f"Error sending weekly reminder email: {e}")
        return jsonify({"success": False, "error": "Failed to send weekly reminder"}), 502

    return jsonify({"success": True, "id": message_id})


@bp.route("/add-to-audience", methods=["POST"])
@login_required
def add_to_audience():
    form = _audience_form(AudienceForm)
    if not form.validate():
        return jsonify({"success": False, "error": "Email is required"}), 400

    try:
        status = EmailService().add_to_audience(form.email.data, form.display_name.data)
    except EmailDeliveryError as e:
        logger.error(f"Error adding user to audience: {e}")
        return jsonify({"success": False, "error": "Failed to add user to audience"}), 502

    return jsonify({"success": True, "status": status})


@bp.route("/add-all-users-to-audience", methods=["POST"])
@admin_required
def add_all_users_to_audience():
    users = get_document_store().list_documents("users")
    results = EmailService().add_users_to_audience(users)

    success_count = len([r for r in results if r["success"]])
    return jsonify(
        {
            "success": True,
            "totalUsers": len(results),
            "successCount": success_count,
            "failureCount": len(results) - success_count,
            "results": results,
        }
    )
