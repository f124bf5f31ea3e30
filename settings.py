# settings.py
# Role: Environment-driven configuration for the ledger tracker.
#       Loads a local .env file (if present) and exposes plain module-level
#       constants that the rest of the app imports.

"""
Runtime configuration.

All values come from environment variables (optionally via a .env file):

- DATABASE_URL          SQLAlchemy URL (default: SQLite file under ./database)
- SQL_ECHO              log every SQL statement (default: off)
- LOG_LEVEL             root log level (default: INFO)
- LOG_FORMAT            "text" or "json" (default: text)
- IMPORT_MAX_UPLOAD_MB  upload size limit for import files (default: 5)
- CSV_DELIMITER         delimiter used by the CSV import parser (default: ",")
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_truthy(name: str, default: str = "0") -> bool:
    v = os.getenv(name, default)
    return str(v).strip().lower() in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


# Base directory of the project (where this module lives)
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Folder for the default SQLite DB
DB_DIR = os.path.join(BASE_DIR, "database")
DB_PATH = os.path.join(DB_DIR, "ledger.db")

DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DB_PATH}")
SQL_ECHO = _env_truthy("SQL_ECHO")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "text").lower()

IMPORT_MAX_UPLOAD_MB = _env_int("IMPORT_MAX_UPLOAD_MB", 5)
IMPORT_MAX_UPLOAD_BYTES = IMPORT_MAX_UPLOAD_MB * 1024 * 1024

CSV_DELIMITER = os.getenv("CSV_DELIMITER", ",") or ","
