"""Forms for the match blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import (
    BooleanField,
    DateField,
    IntegerField,
    SelectField,
    SelectMultipleField,
    StringField,
)
from wtforms.validators import DataRequired, InputRequired, NumberRange, Optional

from .models import MatchSubmission

SCORE_VALIDATORS = [InputRequired(), NumberRange(min=0)]
OPTIONAL_SCORE_VALIDATORS = [Optional(), NumberRange(min=0)]


class SetScoreForm(FlaskForm):
    """Form for checking a single set."""

    class Meta:
        csrf = False

    score_a = IntegerField("Score A", validators=SCORE_VALIDATORS)
    score_b = IntegerField("Score B", validators=SCORE_VALIDATORS)
    is_tiebreaker = BooleanField("Tiebreaker")
    is_set3 = BooleanField("Third set")


class ResultScoresForm(FlaskForm):
    """Winner selection and set scores, given from the winner's perspective."""

    class Meta:
        csrf = False

    winner = SelectField(
        "Winner",
        choices=[("team1", "Team 1"), ("team2", "Team 2")],
        validators=[DataRequired()],
    )
    set1_winner = IntegerField("Set 1 winner score", validators=SCORE_VALIDATORS)
    set1_loser = IntegerField("Set 1 loser score", validators=SCORE_VALIDATORS)
    set2_winner = IntegerField("Set 2 winner score", validators=SCORE_VALIDATORS)
    set2_loser = IntegerField("Set 2 loser score", validators=SCORE_VALIDATORS)
    set3_winner = IntegerField(
        "Set 3 winner score", validators=OPTIONAL_SCORE_VALIDATORS
    )
    set3_loser = IntegerField("Set 3 loser score", validators=OPTIONAL_SCORE_VALIDATORS)
    set3_is_tiebreaker = BooleanField("Set 3 is a 10-point tiebreak")
    notes = StringField("Notes", validators=[Optional()])

    def to_submission(self, created_by=None, **metadata):
        """Return the validated scores as a MatchSubmission."""
        return MatchSubmission(
            winner=self.winner.data,
            set1_winner=self.set1_winner.data,
            set1_loser=self.set1_loser.data,
            set2_winner=self.set2_winner.data,
            set2_loser=self.set2_loser.data,
            set3_winner=self.set3_winner.data,
            set3_loser=self.set3_loser.data,
            set3_is_tiebreaker=self.set3_is_tiebreaker.data,
            notes=self.notes.data or "",
            created_by=created_by,
            **metadata,
        )


class MatchResultForm(ResultScoresForm):
    """Form for entering a match that did not come from a challenge."""

    team1_id = StringField("Team 1", validators=[DataRequired()])
    team2_id = StringField("Team 2", validators=[DataRequired()])
    match_date = DateField("Date", validators=[Optional()])
    level = StringField("Level", validators=[Optional()])
    match_type = SelectField(
        "Match Type",
        choices=[
            ("", "Unspecified"),
            ("singles", "Singles"),
            ("doubles", "Doubles"),
            ("mixed_doubles", "Mixed Doubles"),
        ],
        default="",
        validators=[Optional()],
    )
    team1_players = SelectMultipleField(
        "Team 1 players", choices=[], validate_choice=False
    )
    team2_players = SelectMultipleField(
        "Team 2 players", choices=[], validate_choice=False
    )

    def to_submission(self, created_by=None, **metadata):
        """Return the validated data as a MatchSubmission."""
        match_date = self.match_date.data
        return super().to_submission(
            created_by=created_by,
            team1_id=self.team1_id.data,
            team2_id=self.team2_id.data,
            match_date=match_date.isoformat() if match_date else None,
            level=self.level.data or None,
            match_type=self.match_type.data or None,
            team1_players=self.team1_players.data or [],
            team2_players=self.team2_players.data or [],
            **metadata,
        )
