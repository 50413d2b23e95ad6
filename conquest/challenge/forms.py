"""Forms for the challenge blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import DateField, SelectField, SelectMultipleField, StringField
from wtforms.validators import DataRequired, Optional

MATCH_TYPE_CHOICES = [
    ("doubles", "Doubles"),
    ("mixed_doubles", "Mixed Doubles"),
    ("singles", "Singles"),
]


class CreateChallengeForm(FlaskForm):
    """Form for issuing a challenge."""

    class Meta:
        csrf = False

    challenger_team_id = StringField("Challenging team", validators=[DataRequired()])
    challenged_team_id = StringField("Challenged team", validators=[Optional()])
    match_type = SelectField(
        "Match Type", choices=MATCH_TYPE_CHOICES, default="doubles"
    )
    proposed_level = StringField("Level", validators=[DataRequired()])
    proposed_date = DateField("Proposed date", validators=[Optional()])
    challenger_players = SelectMultipleField(
        "Players", choices=[], validate_choice=False
    )
    notes = StringField("Notes", validators=[Optional()])

    def to_fields(self):
        """Return keyword arguments for ``create_challenge``."""
        return {
            "challenger_team_id": self.challenger_team_id.data,
            "challenged_team_id": self.challenged_team_id.data or None,
            "match_type": self.match_type.data,
            "proposed_level": self.proposed_level.data,
            "proposed_date": self.proposed_date.data,
            "challenger_players": self.challenger_players.data or [],
            "notes": self.notes.data or "",
        }


class AcceptChallengeForm(FlaskForm):
    """Form for accepting a challenge."""

    class Meta:
        csrf = False

    team_id = StringField("Accepting team", validators=[DataRequired()])
    accepted_date = DateField("Match date", validators=[Optional()])
    accepted_level = StringField("Level", validators=[Optional()])
    challenged_players = SelectMultipleField(
        "Players", choices=[], validate_choice=False
    )
