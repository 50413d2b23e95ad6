"""Teams, players and roster rules."""
