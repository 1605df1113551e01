"""Forms for the skills blueprint."""

from flask_wtf import FlaskForm
from wtforms import StringField
from wtforms.validators import DataRequired, Length


class SkillForm(FlaskForm):
    """Form for adding a skill to the shared list."""

    name = StringField("Skill", validators=[DataRequired(), Length(max=50)])
