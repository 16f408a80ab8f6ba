import html

from wtforms import BooleanField, StringField
from wtforms.validators import AnyOf, DataRequired, Length, Optional, Regexp, ValidationError

from clipboard.forms import JsonForm
from clipboard.services.team_colors import NFL_TEAM_ABBREVIATIONS

MAX_TOP_MOVIE_PICKS = 5


def sanitize_input(text):
    """Sanitize user input to prevent XSS"""
    if not text:
        return text
    return html.escape(text.strip())


class ProfileForm(JsonForm):
    display_name = StringField(
        "Display Name",
        validators=[
            Optional(),
            Length(max=50),
            Regexp(
                r"^[a-zA-Z0-9 _.'-]*$",
                message="Display name contains invalid characters",
            ),
        ],
    )
    name = StringField("Name", validators=[Optional(), Length(max=100)])
    super_bowl_pick = StringField(
        "Super Bowl Pick",
        validators=[
            Optional(),
            AnyOf(NFL_TEAM_ABBREVIATIONS, message="Unknown team abbreviation"),
        ],
    )
    email_notifications = BooleanField("Weekly reminder emails")

    def __init__(self, *args, top_movie_picks=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.top_movie_picks = top_movie_picks

    def validate(self, extra_validators=None):
        valid = super().validate(extra_validators=extra_validators)
        if self.top_movie_picks is None:
            return valid

        try:
            self._check_movie_picks(self.top_movie_picks)
        except ValidationError as e:
            self.form_errors.append(str(e))
            return False
        return valid

    @staticmethod
    def _check_movie_picks(picks):
        if not isinstance(picks, list) or len(picks) > MAX_TOP_MOVIE_PICKS:
            raise ValidationError(f"topMoviePicks must be a list of at most {MAX_TOP_MOVIE_PICKS}")
        for pick in picks:
            if not isinstance(pick, dict) or not isinstance(pick.get("id"), int):
                raise ValidationError("Each movie pick needs a numeric id")


class VisibilityForm(JsonForm):
    new_user_id = StringField("New user id", validators=[DataRequired(), Length(max=128)])
