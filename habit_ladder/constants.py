"""
Application-wide constants.
Domain tables for points, levels and achievements plus configuration defaults.
"""

# Intensity -> point value
INTENSITY_EASY = "easy"
INTENSITY_MEDIUM = "medium"
INTENSITY_HARD = "hard"

INTENSITY_POINTS = {
    INTENSITY_EASY: 5,
    INTENSITY_MEDIUM: 10,
    INTENSITY_HARD: 20,
}
DEFAULT_POINT_VALUE = 10

ITEM_CATEGORIES = (
    "health", "productivity", "learning", "mindfulness",
    "fitness", "creative", "social", "other",
)
TARGET_FREQUENCIES = ("daily", "weekly", "monthly", "none")

# Streak multiplier tiers, highest threshold first: (min streak, multiplier)
STREAK_MULTIPLIER_TIERS = (
    (7, "1.5"),
    (3, "1.2"),
)
BASE_MULTIPLIER = "1.0"

# Cumulative point thresholds, index == level
LEVEL_THRESHOLDS = (0, 50, 150, 300, 500, 750, 1000)
MAX_LEVEL = len(LEVEL_THRESHOLDS) - 1

# Ladder rungs per level: (title, description, reward)
LADDER_RUNGS = (
    ("Ground Level", "Starting your journey", None),
    ("First Step", "Building momentum", "Neon theme unlocked"),
    ("Getting Higher", "Consistency pays off", "Streak multiplier x1.2"),
    ("Midway Point", "Halfway to mastery", "Nature theme unlocked"),
    ("Almost There", "Excellence in sight", "Bonus achievements unlocked"),
    ("Peak Performance", "Master of habits", "Space theme unlocked"),
    ("Ladder Legend", "Transcended ordinary limits", "Crown badge & all themes"),
)

LADDER_THEMES = ("classic", "neon", "nature", "space", "minimal")
DEFAULT_LADDER_THEME = "classic"

# Achievement categories
ACHIEVEMENT_STREAK = "streak"
ACHIEVEMENT_POINTS = "points"
ACHIEVEMENT_MILESTONE = "milestone"

WEEK_WARRIOR_STREAK = 7
MONTH_MASTER_STREAK = 30
POINT_COLLECTOR_POINTS = 500
LADDER_CLIMBER_LEVEL = 5

# User roles
ROLE_USER = "user"
ROLE_ADMIN = "admin"

# Configuration defaults
DEFAULT_DATABASE_URL = "sqlite:///./habit_ladder.db"
DEFAULT_API_KEY = "your-secret-key-change-me"
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/habit_ladder"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"
DEFAULT_LOG_FILE = "app.log"
DEFAULT_WEEKLY_RESET_DAY = "mon"
DEFAULT_WEEKLY_RESET_HOUR = 0

CORS_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]
