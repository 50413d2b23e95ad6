"""Global constants for the conquest application."""

# Versioned collections (one document per collection)
TEAMS_COLLECTION = "teams"
MATCHES_COLLECTION = "matches"
BONUSES_COLLECTION = "bonuses"
CHALLENGES_COLLECTION = "challenges"
CAPTAINS_COLLECTION = "captains"
PHOTOS_COLLECTION = "photos"
VERSIONED_COLLECTIONS = (
    TEAMS_COLLECTION,
    MATCHES_COLLECTION,
    BONUSES_COLLECTION,
    CHALLENGES_COLLECTION,
    CAPTAINS_COLLECTION,
    PHOTOS_COLLECTION,
)
IMPORT_LOCK_KEY = "import_lock"
ACTIVITY_LOGS_COLLECTION = "activity_logs"
DATA_DOCUMENT_ID = "data"

# Roster rules
MAX_ROSTER_SIZE = 14

# Set scoring
TIEBREAK_WINNING_SCORE = 10
TIEBREAK_MIN_MARGIN = 2

# Monthly bonus rules, highest tier first
VOLUME_BONUS_TIERS = ((20, 4), (15, 3), (10, 2), (5, 1))
UNDER_PARTICIPATION_THRESHOLD = 4
UNDER_PARTICIPATION_PENALTY = -4
VARIETY_THRESHOLD = 3
MIXED_DOUBLES_THRESHOLD = 2

# Season bonus rules
UNIFORM_BONUS_POINTS = {"colors": 2, "tops-bottoms": 4, "custom": 6}
PRACTICE_POINTS_PER_SESSION = 0.5
PRACTICE_MONTHLY_CAP = 2
PRACTICE_SEASON_CAP = 4

# Leaderboard
WIN_POINTS = 2
LATE_MONTH_WIN_POINTS = 4
BONUS_CAP_RATIO = 0.25
CHAMPIONSHIP_QUALIFIERS = 2

# Challenges
OVERDUE_AFTER_DAYS = 1

# Season defaults
DEFAULT_TIMEZONE = "America/Los_Angeles"
DEFAULT_TOURNAMENT_MONTHS = [
    {"key": "2025-11", "label": "November 2025"},
    {"key": "2025-12", "label": "December 2025"},
    {"key": "2026-01", "label": "January 2026"},
]
DEFAULT_LATE_SCORING_MONTHS = ["2026-01"]
