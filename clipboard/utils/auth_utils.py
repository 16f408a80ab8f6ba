"""
Request guards for the JSON API
"""

import hmac
import logging
from functools import wraps

from flask import current_app, jsonify, request
from flask_login import current_user

logger = logging.getLogger(__name__)


def cron_token_valid(auth_header):
    """Constant-time check of ``Authorization: Bearer <CRON_SECRET>``.

    With no CRON_SECRET configured every request is accepted.
    """
    secret = current_app.config.get("CRON_SECRET")
    if not secret:
        return True

    expected = f"Bearer {secret}".encode()
    return hmac.compare_digest((auth_header or "").encode(), expected)


def cron_required(f):
    """Reject cron triggers that don't carry the shared secret"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not cron_token_valid(request.headers.get("Authorization")):
            logger.warning(f"Rejected cron request to {request.path} from {request.remote_addr}")
            return jsonify({"success": False, "error": "Unauthorized"}), 401
        return f(*args, **kwargs)

    return decorated_function


def admin_required(f):
    """Signed-in administrators only"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({"success": False, "error": "Unauthorized"}), 401
        if not getattr(current_user, "is_admin", False):
            return jsonify({"success": False, "error": "Access forbidden"}), 403
        return f(*args, **kwargs)

    return decorated_function


def add_security_headers(f):
    """No caching of per-user API responses"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        response = current_app.make_response(f(*args, **kwargs))
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    return decorated_function
