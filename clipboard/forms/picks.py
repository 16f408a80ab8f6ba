from wtforms import StringField
from wtforms.validators import AnyOf, DataRequired, Length, Optional, Regexp

from clipboard.forms import JsonForm
from clipboard.models.pick import PICK_SIDES
from clipboard.models.team import LOGO_TYPES
from clipboard.models.team_color_mapping import BACKGROUND_CHOICES


class MakePickForm(JsonForm):
    game_id = StringField("Game", validators=[DataRequired(), Regexp(r"^\d+$")])
    picked_team = StringField("Picked Team", validators=[DataRequired(), AnyOf(PICK_SIDES)])


class TeamColorMappingForm(JsonForm):
    abbreviation = StringField("Team", validators=[DataRequired(), Length(min=2, max=4)])
    background_color_choice = StringField(
        "Background", validators=[DataRequired(), AnyOf(BACKGROUND_CHOICES)]
    )
    custom_color = StringField(
        "Custom Color",
        validators=[Optional(), Regexp(r"^#[0-9a-fA-F]{6}$", message="Use #RRGGBB")],
    )
    logo_type = StringField("Logo", validators=[Optional(), AnyOf(LOGO_TYPES)])

    def validate(self, extra_validators=None):
        # Optional() ends custom_color's validator chain when it is empty
        if not super().validate(extra_validators=extra_validators):
            return False
        if self.background_color_choice.data == "custom" and not self.custom_color.data:
            self.form_errors.append("customColor is required for a custom background")
            return False
        return True
