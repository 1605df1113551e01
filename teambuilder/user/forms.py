"""Forms for the user blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import SelectField, StringField, TextAreaField, ValidationError
from wtforms.validators import DataRequired, Length, Optional, URL

from teambuilder.core.constants import USER_YEARS
from teambuilder.core.forms import TagListField


class ProfileForm(FlaskForm):
    """Form for creating or updating a user profile."""

    full_name = StringField(
        "Full Name", validators=[DataRequired(), Length(min=2, max=100)]
    )
    avatar_url = StringField("Avatar URL", validators=[Optional(), URL()])
    year = SelectField(
        "Year",
        choices=[(year, year) for year in USER_YEARS],
        validators=[DataRequired()],
    )
    bio = TextAreaField("Bio", validators=[DataRequired(), Length(max=1000)])
    skills = TagListField("Skills")

    def validate_skills(self, field):
        if not field.data:
            raise ValidationError("Please add at least one skill.")


class SearchForm(FlaskForm):
    """Free-text query for the AI candidate search."""

    query = StringField("Query", validators=[DataRequired(), Length(max=500)])
