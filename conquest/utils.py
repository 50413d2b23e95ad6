"""Utility functions for the application."""

import re
import smtplib

from flask import current_app, render_template, request
from flask_mail import Message
from werkzeug.datastructures import MultiDict

from .errors import ValidationError
from .extensions import mail


class EmailError(Exception):
    """Base class for email errors."""

    pass


def send_email(to, subject, template, **kwargs):
    """Send an email to a recipient.

    Raises:
        EmailError: If sending the email fails.
    """
    msg = Message(
        subject,
        recipients=[to],
        html=render_template(template, **kwargs),
        sender=current_app.config["MAIL_DEFAULT_SENDER"],
    )
    try:
        mail.send(msg)
    except smtplib.SMTPAuthenticationError as e:
        if e.smtp_code == 534:
            raise EmailError(
                "Authentication failed. Google requires you to use an App Password. "
                "Please verify your MAIL_USERNAME and MAIL_PASSWORD settings."
            ) from e
        raise EmailError(f"SMTP Authentication failed: {e}") from e
    except Exception as e:
        raise EmailError(f"Failed to send email: {e}") from e


def json_body():
    """Return the request's JSON object or raise a ValidationError."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    return payload


def _snake_case(name):
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name).lower()


def form_data(payload):
    """Flatten a JSON object into form data for a FlaskForm.

    camelCase keys become snake_case field names, lists become repeated keys
    and every value is passed as the string a browser would post.
    """
    data = MultiDict()
    for key, value in payload.items():
        if value is None:
            continue
        name = _snake_case(key)
        if isinstance(value, (list, tuple)):
            for item in value:
                data.add(name, str(item))
        elif isinstance(value, bool):
            data.add(name, "y" if value else "")
        else:
            data.add(name, str(value))
    return data


def form_errors(form):
    """Join a form's field errors into one readable message."""
    messages = []
    for field_name, errors in form.errors.items():
        label = getattr(getattr(form, field_name, None), "label", None)
        name = label.text if label else field_name
        for error in errors:
            messages.append(f"{name}: {error}")
    return "; ".join(messages) or "Invalid input."
