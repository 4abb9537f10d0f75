"""
Trip Chat — Configuration: environment, defaults, logging.
"""
import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be an integer (got {raw!r}).")


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
PORT = _int_env("PORT", 4000)
HOST = os.getenv("HOST", "0.0.0.0")
BASE_URL = os.getenv("BASE_URL", f"http://localhost:{PORT}")

# Optional bearer token for /upload and /chat. Unset = no gate.
AUTH_TOKEN = os.getenv("AUTH_TOKEN") or None

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
LLM_MODEL = os.getenv("LLM_MODEL", "llama-3.1-8b-instant")
# Local embedding model (no API key).
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "all-MiniLM-L6-v2")

# ---------------------------------------------------------------------------
# Retrieval and memory
# ---------------------------------------------------------------------------
CHAT_TOP_K = _int_env("CHAT_TOP_K", 20)
# /chat2 is kept for old clients and retrieves fewer rows.
CHAT2_TOP_K = _int_env("CHAT2_TOP_K", 4)
# Prior exchanges replayed to the model per turn; 0 replays the whole history.
MEMORY_MAX_TURNS = _int_env("MEMORY_MAX_TURNS", 6)

# ---------------------------------------------------------------------------
# Workbook
# ---------------------------------------------------------------------------
DEFAULT_WORKBOOK_PATH = os.getenv("DEFAULT_WORKBOOK_PATH", os.path.join("data", "trips.xlsx"))

TRIP_SHEET_NAME = os.getenv("TRIP_SHEET_NAME", "Trip Data")
CHECKIN_SHEET_NAME = os.getenv("CHECKIN_SHEET_NAME", "Checked in User ID's")
DEMOGRAPHICS_SHEET_NAME = os.getenv("DEMOGRAPHICS_SHEET_NAME", "Customer Demographics")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Root logging setup; called once by the app factory."""
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
