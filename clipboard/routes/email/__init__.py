from flask import Blueprint

bp = Blueprint("email", __name__)

from clipboard.routes.email import routes  # noqa: F401, E402
