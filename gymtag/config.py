"""Configuration: env, radio behaviour, API host/port."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Base paths (project root = parent of gymtag package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so GYMTAG_* overrides are set
load_dotenv(BASE_DIR / ".env")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# API
API_HOST = os.getenv("GYMTAG_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("GYMTAG_API_PORT", "8000"))
API_RELOAD = _flag("GYMTAG_API_RELOAD", "0")

# Hardware simulation (for development without a host radio)
SIMULATE_HARDWARE = _flag("GYMTAG_SIMULATE_HARDWARE", "1")
# Only consulted by the simulated radio: pretend the device lacks NFC
NFC_SUPPORTED = _flag("GYMTAG_NFC_SUPPORTED", "1")

# Radio stack silence beyond this many seconds is a radio error (0 = wait forever)
RADIO_TIMEOUT_SEC = float(os.getenv("GYMTAG_RADIO_TIMEOUT_SEC", "0"))

# Decode rejects language codes other than two characters when strict
STRICT_LANGUAGE = _flag("GYMTAG_STRICT_LANGUAGE", "1")


def radio_timeout() -> float | None:
    """RADIO_TIMEOUT_SEC as an asyncio timeout (None when disabled)."""
    return RADIO_TIMEOUT_SEC if RADIO_TIMEOUT_SEC > 0 else None
