# survivor_pool/config.py
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./survivor.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ESPN scoreboard (schedule + live scores)
ESPN_API_BASE = os.getenv(
    "ESPN_API_BASE", "https://site.api.espn.com/apis/site/v2/sports/football/nfl"
)
ESPN_TIMEOUT_SECONDS = float(os.getenv("ESPN_TIMEOUT_SECONDS", "10"))
SCHEDULE_CACHE_TTL_SECONDS = int(os.getenv("SCHEDULE_CACHE_TTL_SECONDS", "300"))

# Background result reconciliation; 0 disables the job
RECONCILE_INTERVAL_MINUTES = int(os.getenv("RECONCILE_INTERVAL_MINUTES", "10"))


def is_testing() -> bool:
    return os.getenv("TESTING", "0") == "1"


def bcrypt_rounds() -> int:
    # cheap hashes under test
    if is_testing():
        return 4
    return int(os.getenv("BCRYPT_ROUNDS", "12"))
