"""Match result verification emails to team captains."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

from flask import current_app

from .utils import EmailError, send_email

if TYPE_CHECKING:
    from .match.models import Match
    from .teams.models import Captain, Team


def notify_opposing_captains(
    match: Match,
    captains: Iterable[Captain],
    teams: Iterable[Team],
    entered_by_team_id: Optional[str] = None,
) -> list[str]:
    """Email the captain of each team that did not enter the result.

    Delivery is best-effort: failures are logged and the addresses that were
    actually sent to are returned.
    """
    if not current_app.config.get("NOTIFY_CAPTAINS"):
        return []

    names = {t.id: t.name for t in teams}
    recipients = [
        team_id
        for team_id in (match.team1_id, match.team2_id)
        if team_id != entered_by_team_id
    ]

    sent = []
    for captain in captains:
        if captain.team_id not in recipients or not captain.email:
            continue
        sender_id = match.opponent_of(captain.team_id)
        sender_team = names.get(sender_id, "Your opponent")
        recipient_team = names.get(captain.team_id, "your team")
        try:
            send_email(
                to=captain.email,
                subject=(
                    f"Match Result Verification - {sender_team} vs {recipient_team}"
                ),
                template="email/match_verification.html",
                captain=captain,
                match=match,
                sender_team=sender_team,
                recipient_team=recipient_team,
            )
            sent.append(captain.email)
        except EmailError as e:
            current_app.logger.error(
                f"Failed to notify captain {captain.name} for {match.match_id}: {e}"
            )
    return sent
