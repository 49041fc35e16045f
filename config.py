import os
import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- CONFIGURATION ---
# Use environment variables with defaults
DB_PATH = os.environ.get("STORYVERSE_DB_PATH", "storyverse.db")

# Logging
LOG_LEVEL_STR = os.environ.get("STORYVERSE_LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_STR, logging.INFO)
LOG_FILE = os.environ.get("STORYVERSE_LOG_FILE", "storyverse.log")

# Security
STORYVERSE_ENV = os.environ.get("STORYVERSE_ENV", "development").lower()

ADMIN_USER = os.environ.get("STORYVERSE_ADMIN_USER", "admin")
ADMIN_PASS = os.environ.get("STORYVERSE_ADMIN_PASS", "admin123")

# Production guard: refuse to start with the bootstrap password
if STORYVERSE_ENV == "production":
    if not ADMIN_PASS or ADMIN_PASS.strip() in ("", "admin123", "changeme", "secret"):
        raise RuntimeError(
            "FATAL: Running in production mode but STORYVERSE_ADMIN_PASS is not set or is using a weak default value.\n"
            "Set a strong admin password:\n"
            "  export STORYVERSE_ADMIN_PASS=$(python -c 'import secrets; print(secrets.token_urlsafe(16))')\n"
            "Then restart the application."
        )

COOKIE_SECURE = os.environ.get("STORYVERSE_COOKIE_SECURE", "false").lower() == "true"
SESSION_HOURS = int(os.environ.get("STORYVERSE_SESSION_HOURS", "720"))  # 30 days

# Search
RECENT_SEARCH_LIMIT = int(os.environ.get("STORYVERSE_RECENT_SEARCH_LIMIT", "10"))
SUGGESTION_LIMIT = int(os.environ.get("STORYVERSE_SUGGESTION_LIMIT", "5"))

# Book lookup
GOOGLE_BOOKS_API_KEY = os.environ.get("GOOGLE_BOOKS_API_KEY", "")
GOOGLE_BOOKS_API_BASE = os.environ.get("GOOGLE_BOOKS_API_BASE", "https://www.googleapis.com/books/v1")
LOOKUP_CACHE_SECONDS = int(os.environ.get("STORYVERSE_LOOKUP_CACHE_SECONDS", "3600"))

# Category defaults used when a category has no icon/color of its own
DEFAULT_CATEGORY_ICON = "📁"
DEFAULT_CATEGORY_COLOR = "#60a5fa"
