"""Forms for the teams blueprint."""

from flask_wtf import FlaskForm
from wtforms import BooleanField, StringField, TextAreaField, ValidationError
from wtforms.validators import DataRequired, Length, Optional

from teambuilder.core.forms import TagListField

DECISION_VALUES = (True, False, "true", "false", "1", "0")


class TeamForm(FlaskForm):
    """Form for creating or editing a team."""

    name = StringField("Team Name", validators=[DataRequired(), Length(max=100)])
    project_idea = TextAreaField(
        "Project Idea", validators=[DataRequired(), Length(max=2000)]
    )
    is_recruiting = BooleanField("Recruiting")
    appeal_description = TextAreaField(
        "Appeal", validators=[Optional(), Length(max=1000)]
    )
    required_skills = TagListField("Required Skills")


class InviteForm(FlaskForm):
    """Form for inviting a user to a team."""

    user_id = StringField("User", validators=[DataRequired()])


class DecisionForm(FlaskForm):
    """Accept or decline a join request or invitation."""

    accept = BooleanField("Accept")

    def validate_accept(self, field):
        if not field.raw_data or field.raw_data[0] not in DECISION_VALUES:
            raise ValidationError("Please choose to accept or decline.")
