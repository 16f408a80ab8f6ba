from wtforms import StringField
from wtforms.validators import DataRequired, Email, Length

from clipboard.forms import JsonForm


def _normalize_email(value):
    return value.strip().lower() if value else value


class MagicLinkForm(JsonForm):
    email = StringField(
        "Email",
        validators=[DataRequired(), Email(), Length(max=254)],
        filters=[_normalize_email],
    )
