"""Forms for the chat blueprint."""

from flask_wtf import FlaskForm
from wtforms import TextAreaField
from wtforms.validators import DataRequired, Length

from teambuilder.core.constants import MESSAGE_MAX_LENGTH


class MessageForm(FlaskForm):
    text = TextAreaField(
        "Message", validators=[DataRequired(), Length(max=MESSAGE_MAX_LENGTH)]
    )
