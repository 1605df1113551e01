"""Forms for the auth blueprint."""

import re

from flask_wtf import FlaskForm  # type: ignore
from wtforms import PasswordField, StringField, ValidationError
from wtforms.validators import DataRequired, Email, EqualTo, Length


class RegisterForm(FlaskForm):
    """Registration form."""

    full_name = StringField("Full Name", validators=[DataRequired(), Length(max=100)])
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField(
        "Password",
        validators=[
            DataRequired(),
            Length(min=8),
            EqualTo("confirm_password", message="Passwords must match."),
        ],
    )
    confirm_password = PasswordField("Confirm Password", validators=[DataRequired()])

    def validate_password(self, field):
        """Validate password complexity."""
        if not re.search(r"[A-Za-z]", field.data):
            raise ValidationError("Password must contain at least one letter.")
        if not re.search(r"\d", field.data):
            raise ValidationError("Password must contain at least one number.")
