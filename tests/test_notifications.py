"""Tests for captain notification emails."""

import unittest
from unittest.mock import patch

from conquest import create_app
from conquest.notifications import notify_opposing_captains
from conquest.teams.models import Captain
from conquest.utils import EmailError
from tests.helpers import make_match, make_team

CAPTAINS = [
    Captain(id="1", name="Ann", email="ann@example.com", team_id="A"),
    Captain(id="2", name="Bea", email="bea@example.com", team_id="B"),
    Captain(id="3", name="Cal", email="cal@example.com", team_id="C"),
]
TEAMS = [make_team("A", "Aces"), make_team("B", "Baseliners")]


class NotifyCaptainsTestCase(unittest.TestCase):
    """Test case for notify_opposing_captains."""

    def setUp(self):
        """Set up an app with notifications enabled."""
        self.app = create_app({"TESTING": True, "NOTIFY_CAPTAINS": True})
        self.match = make_match("A", "B")
        self.match.match_id = "MATCH-2025-001"

    @patch("conquest.notifications.send_email")
    def test_only_the_opposing_captain_is_emailed(self, mock_send_email):
        """The team that entered the result is not emailed."""
        with self.app.app_context():
            sent = notify_opposing_captains(self.match, CAPTAINS, TEAMS, "A")
        self.assertEqual(sent, ["bea@example.com"])
        kwargs = mock_send_email.call_args.kwargs
        self.assertEqual(kwargs["to"], "bea@example.com")
        self.assertEqual(kwargs["template"], "email/match_verification.html")
        self.assertEqual(
            kwargs["subject"], "Match Result Verification - Aces vs Baseliners"
        )

    @patch("conquest.notifications.send_email")
    def test_unknown_entering_team_emails_both(self, mock_send_email):
        """Without an entering team both captains are emailed."""
        with self.app.app_context():
            sent = notify_opposing_captains(self.match, CAPTAINS, TEAMS)
        self.assertEqual(sent, ["ann@example.com", "bea@example.com"])

    @patch("conquest.notifications.send_email")
    def test_email_failure_is_not_raised(self, mock_send_email):
        """A failed email is logged and skipped."""
        mock_send_email.side_effect = EmailError("SMTP down")
        with self.app.app_context():
            sent = notify_opposing_captains(self.match, CAPTAINS, TEAMS, "A")
        self.assertEqual(sent, [])

    @patch("conquest.notifications.send_email")
    def test_disabled(self, mock_send_email):
        """Nothing is sent when notifications are off."""
        self.app.config["NOTIFY_CAPTAINS"] = False
        with self.app.app_context():
            sent = notify_opposing_captains(self.match, CAPTAINS, TEAMS)
        self.assertEqual(sent, [])
        mock_send_email.assert_not_called()

    def test_template_renders(self):
        """The verification email renders the score line."""
        with self.app.app_context():
            with patch("conquest.utils.mail.send") as mock_send:
                notify_opposing_captains(self.match, CAPTAINS, TEAMS, "A")
        message = mock_send.call_args[0][0]
        self.assertIn("6-3, 6-4", message.html)
        self.assertEqual(message.recipients, ["bea@example.com"])


if __name__ == "__main__":
    unittest.main()
