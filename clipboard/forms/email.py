from wtforms import IntegerField, StringField
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional

from clipboard.forms import JsonForm


class AudienceForm(JsonForm):
    email = StringField("Email", validators=[DataRequired(), Email()])
    display_name = StringField("Display Name", validators=[Optional(), Length(max=100)])


class WeeklyReminderForm(AudienceForm):
    week_number = IntegerField("Week", validators=[Optional(), NumberRange(min=0, max=30)])
