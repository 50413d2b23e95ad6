"""Tests for email sending and JSON form helpers."""

import smtplib
import unittest
from unittest.mock import patch

from conquest import create_app
from conquest.match.forms import MatchResultForm
from conquest.utils import EmailError, form_data, form_errors, send_email
from tests.helpers import make_match


class TestEmailErrors(unittest.TestCase):
    """Test case for email errors."""

    def setUp(self):
        """Set up the test case."""
        self.app = create_app({"TESTING": True, "MAIL_SUPPRESS_SEND": False})
        self.ctx = self.app.app_context()
        self.ctx.push()
        self.context = {
            "captain": None,
            "match": make_match("A", "B"),
            "sender_team": "Aces",
            "recipient_team": "Baseliners",
        }

    def tearDown(self):
        """Tear down the test case."""
        self.ctx.pop()

    @patch("conquest.utils.mail.send")
    def test_send_email_smtp_534(self, mock_send):
        """Test handling of SMTP 534 error."""
        error_msg = b"5.7.9 Please log in with your web browser and then try again..."
        mock_send.side_effect = smtplib.SMTPAuthenticationError(534, error_msg)

        with self.assertRaises(EmailError) as cm:
            send_email(
                "test@example.com",
                "Subject",
                "email/match_verification.html",
                **self.context,
            )

        self.assertIn("App Password", str(cm.exception))

    @patch("conquest.utils.mail.send")
    def test_send_email_generic_error(self, mock_send):
        """Test handling of generic email errors."""
        mock_send.side_effect = Exception("Some other error")

        with self.assertRaises(EmailError) as cm:
            send_email(
                "test@example.com",
                "Subject",
                "email/match_verification.html",
                **self.context,
            )

        self.assertIn("Failed to send email: Some other error", str(cm.exception))


class FormDataTestCase(unittest.TestCase):
    """Test case for feeding JSON bodies to forms."""

    def test_flattening(self):
        """Keys are snake_cased, lists repeated and booleans posted as checkboxes."""
        data = form_data(
            {
                "set3IsTiebreaker": True,
                "isSet3": False,
                "team1Players": ["a1", "a2"],
                "set1Winner": 0,
                "notes": None,
            }
        )
        self.assertEqual(data.get("set3_is_tiebreaker"), "y")
        self.assertEqual(data.get("is_set3"), "")
        self.assertEqual(data.getlist("team1_players"), ["a1", "a2"])
        self.assertEqual(data.get("set1_winner"), "0")
        self.assertNotIn("notes", data)

    def test_form_errors(self):
        """Field errors are joined into one message."""
        app = create_app({"TESTING": True})
        with app.test_request_context():
            form = MatchResultForm(formdata=form_data({"winner": "team3"}))
            self.assertFalse(form.validate())
            message = form_errors(form)
        self.assertIn("Winner:", message)
        self.assertIn("Team 1:", message)


if __name__ == "__main__":
    unittest.main()
