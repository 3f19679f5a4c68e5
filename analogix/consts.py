# Local cache keys (one per logical collection)
EVENTS_KEY = "userEvents"
DEADLINES_KEY = "userDeadlines"
TIMER_KEY = "analogix_timer_state"
STATS_KEY = "analogix_user_stats_v1"
SUBJECTS_KEY = "analogix-subject-data"
PREFERENCES_KEY = "userPreferences"

# Notification topics
EVENTS_UPDATED = "eventsUpdated"
DEADLINES_UPDATED = "deadlinesUpdated"
STATS_UPDATED = "statsUpdated"
SUBJECTS_UPDATED = "subjectDataUpdated"

# Remote tables
EVENTS_TABLE = "events"
DEADLINES_TABLE = "deadlines"
STATS_TABLE = "user_stats"

EVENT_TYPES = ("exam", "assignment", "event")
EVENT_SOURCES = ("manual", "import")
DEADLINE_PRIORITIES = ("low", "medium", "high")

IMPORT_PLACEHOLDER_DESCRIPTION = "Imported event"  # Used when a VEVENT has no DESCRIPTION

TIMER_PHASES = ("study", "break")
DEFAULT_TIMER_SETTINGS = {
    "study": 25 * 60,  # Seconds per study phase
    "break": 5 * 60,   # Seconds per break phase
}
DEFAULT_SESSIONS_TARGET = 4
MAX_SESSIONS_TARGET = 12

DEFAULT_STATS = {
    "quizzesDone": 0,
    "currentStreak": 0,
    "accuracy": 0,
    "conversationsCount": 0,
    "topSubject": "None",
    "subjectCounts": {},
}
