from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict


class JsonForm(FlaskForm):
    """Form validated against a decoded JSON body instead of submitted form data"""

    class Meta:
        # Session cookies are SameSite=Lax and every endpoint takes JSON
        csrf = False

    @classmethod
    def from_json(cls, payload, **kwargs):
        # Booleans stay as-is for BooleanField; everything else arrives as text
        formdata = MultiDict(
            {
                key: value if isinstance(value, bool) else str(value)
                for key, value in payload.items()
                if value is not None
            }
        )
        return cls(formdata=formdata, **kwargs)

    def first_error(self):
        if self.form_errors:
            return self.form_errors[0]
        for name, messages in self.errors.items():
            if name is not None and messages:
                return f"{name}: {messages[0]}"
        return "Invalid request"
