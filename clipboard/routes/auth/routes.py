import hashlib
import logging

from flask import current_app, jsonify, redirect, request
from flask_login import current_user, login_required, login_user, logout_user
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from clipboard import limiter, login_manager
from clipboard.errors import ConfigurationError, EmailDeliveryError
from clipboard.forms.auth import MagicLinkForm
from clipboard.models.user import User
from clipboard.routes.auth import bp
from clipboard.services import get_document_store
from clipboard.services.clipboard_visibility import add_new_user_to_all
from clipboard.services.document_store import server_timestamp
from clipboard.utils.email_service import EmailService

logger = logging.getLogger(__name__)

MAGIC_LINK_SALT = "clipboard-magic-link"


def _serializer():
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=MAGIC_LINK_SALT)


def _is_admin(email):
    return (email or "").lower() in current_app.config.get("ADMIN_EMAILS", [])


def user_id_for_email(store, email):
    """Existing profile id for an email, else a stable id derived from it"""
    matches = store.where("users", "email", email)
    if matches:
        return matches[0][0]
    return hashlib.sha256(email.encode()).hexdigest()[:28]


@login_manager.user_loader
def load_user(user_id):
    data = get_document_store().get(f"users/{user_id}")
    if data is None:
        return None
    return User(user_id, data, is_admin=_is_admin(data.get("email")))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"success": False, "error": "Authentication required"}), 401


def welcome_new_user(user_id, email):
    """First sign-in: welcome email, audience signup and clipboard visibility"""
    try:
        EmailService().send_welcome_email(email)
    except (EmailDeliveryError, ConfigurationError) as e:
        logger.error(f"Welcome email to {email} failed: {e}")

    add_new_user_to_all(get_document_store(), user_id)


@bp.route("/api/auth/magic-link", methods=["POST"])
@limiter.limit("5 per minute")
def send_magic_link():
    """Email a one-time sign-in link"""
    form = MagicLinkForm.from_json(request.get_json(silent=True) or {})
    if not form.validate():
        return jsonify({"success": False, "error": "A valid email is required"}), 400

    email = form.email.data
    token = _serializer().dumps(email)
    link = f"{current_app.config['APP_URL'].rstrip('/')}/auth/complete?token={token}"

    try:
        EmailService().send_magic_link_email(email, link)
    except EmailDeliveryError as e:
        logger.error(f"Magic link to {email} failed: {e}")
        return jsonify({"success": False, "error": "Failed to send sign-in link"}), 502

    logger.info(f"Sent magic link to {email}")
    return jsonify({"success": True})


@bp.route("/auth/complete")
def complete_sign_in():
    """Verify a magic link token, create the profile on first sign-in, log in"""
    token = request.args.get("token", "")
    try:
        email = _serializer().loads(
            token, max_age=current_app.config.get("MAGIC_LINK_MAX_AGE", 3600)
        )
    except SignatureExpired:
        return jsonify({"success": False, "error": "Sign-in link has expired"}), 400
    except BadSignature:
        return jsonify({"success": False, "error": "Invalid sign-in link"}), 400

    store = get_document_store()
    user_id = user_id_for_email(store, email)
    now = server_timestamp()
    data, created = store.upsert(
        f"users/{user_id}",
        defaults={
            "email": email,
            "displayName": None,
            "createdAt": now,
            "emailNotifications": False,
            "profileComplete": False,
        },
        updates={"lastLogin": now},
    )

    if created:
        logger.info(f"New user {user_id} signed up")
        welcome_new_user(user_id, email)

    login_user(User(user_id, data, is_admin=_is_admin(email)), remember=True)

    target = f"{current_app.config['APP_URL'].rstrip('/')}/dashboard"
    if created:
        target += "?welcome=1"
    return redirect(target)


@bp.route("/auth/logout", methods=["POST"])
@login_required
def logout():
    logger.info(f"User {current_user.id} signed out")
    logout_user()
    return jsonify({"success": True})
