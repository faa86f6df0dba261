"""
leadqa/config.py
=================
Runtime configuration - LeadQA

All settings come from environment variables (optionally loaded from a
``.env`` file).  API keys are not stored here; adapters read them with
``os.environ.get`` at call time.
"""

import os

from dotenv import load_dotenv

load_dotenv()


# ---------------------------------------------------------------------------
# Deepgram (transcription)
# ---------------------------------------------------------------------------

DEEPGRAM_MODEL: str = os.getenv("DEEPGRAM_MODEL", "nova-3")

# ---------------------------------------------------------------------------
# OpenAI (field extraction)
# ---------------------------------------------------------------------------

OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_MAX_TOKENS: int = int(os.getenv("OPENAI_MAX_TOKENS", "1500"))

# ---------------------------------------------------------------------------
# Melissa Personator (identity lookup)
# ---------------------------------------------------------------------------

MELISSA_ENDPOINT: str = os.getenv(
    "MELISSA_ENDPOINT",
    "https://personator.melissadata.net/v3/WEB/ContactVerify/doContactVerify",
)
MELISSA_TIMEOUT_SEC: float = float(os.getenv("MELISSA_TIMEOUT_SEC", "15"))

# ---------------------------------------------------------------------------
# Pipeline / server
# ---------------------------------------------------------------------------

# Caller-level timeout around the whole pipeline (the only cancellation
# boundary - individual calls are never cancelled or retried).
PIPELINE_TIMEOUT_SEC: float = float(os.getenv("PIPELINE_TIMEOUT_SEC", "300"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
HOST: str = os.getenv("HOST", "127.0.0.1")
PORT: int = int(os.getenv("PORT", "8000"))

REQUIRED_KEYS: tuple[str, ...] = (
    "DEEPGRAM_API_KEY",
    "OPENAI_API_KEY",
    "MELISSA_API_KEY",
)


def missing_keys() -> list[str]:
    """Return the names of required API keys that are not set."""
    return [name for name in REQUIRED_KEYS if not os.environ.get(name)]
