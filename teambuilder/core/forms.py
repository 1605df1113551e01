"""Form helpers shared by the blueprints."""

from wtforms import Field
from wtforms.widgets import TextInput

from teambuilder.errors import ValidationError


class TagListField(Field):
    """A list of tags from a JSON array or a comma separated string."""

    widget = TextInput()

    def _value(self):
        return ", ".join(self.data) if self.data else ""

    def process_formdata(self, valuelist):
        tags = []
        for value in valuelist:
            if value is None:
                continue
            for tag in str(value).split(","):
                tag = tag.strip()
                if tag and tag not in tags:
                    tags.append(tag)
        self.data = tags

    def process_data(self, value):
        self.data = list(value) if value else []


def validate_or_raise(form):
    """Validate a submitted form, raising ValidationError with field errors."""
    if not form.validate_on_submit():
        raise ValidationError("Please correct the highlighted fields.", form.errors)
    return form
