import os
from pathlib import Path

from dotenv import load_dotenv

# Explicitly load .env from project root (parent of shortlinks/)
ENV_PATH = Path(__file__).parent.parent / ".env"
load_dotenv(ENV_PATH)

ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL")
DEV_DB_PATH = Path(__file__).parent.parent / "shortlinks_dev.db"

SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

# "alice:secret,bob:hunter2"
AUTH_USERS = os.getenv("AUTH_USERS", "")
# Accept USERNAME/PASSWORD or ADMIN_* (either works)
ADMIN_USERNAME = (os.getenv("ADMIN_USERNAME") or os.getenv("USERNAME") or "").strip()
ADMIN_PASSWORD = (os.getenv("ADMIN_PASSWORD") or os.getenv("PASSWORD") or "").strip()

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "")


def parse_users(raw: str) -> dict[str, str]:
    """Parse ``user:password`` pairs separated by commas."""
    users = {}
    for pair in raw.split(","):
        name, sep, password = pair.strip().partition(":")
        if sep and name.strip() and password:
            users[name.strip()] = password
    return users
