"""Static configuration for wellbots.

All user-editable settings (storage, server, session timing, logging) live
in a single JSON file for quick edits without touching Python.
"""

import json
import os

from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

load_dotenv(os.path.join(PROJECT_ROOT, ".env"))

# WELLBOTS_CONFIG points at an alternative file, e.g. per deployment.
CONFIG_PATH = os.getenv("WELLBOTS_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

CONFIG = _CONFIG

# Where to store the SQLite database.
_storage = _CONFIG.get("storage", {})
DB_PATH = _resolve_path(_storage.get("db_path", "wellbots.db"))

# Classification service bind address.
_server = _CONFIG.get("server", {})
SERVER_HOST = _server.get("host", "127.0.0.1")
SERVER_PORT = int(_server.get("port", 8000))

# Session timing. A null processing delay keeps each bot's own delay.
_sessions = _CONFIG.get("sessions", {})
_delay = _sessions.get("processing_delay_seconds")
PROCESSING_DELAY_SECONDS = None if _delay is None else float(_delay)
COUNTDOWN_SECONDS = int(_sessions.get("countdown_seconds", 60))
SHRED_STEP_SECONDS = float(_sessions.get("shred_step_seconds", 0.03))
# Fixed seed makes response variants reproducible; null draws from the OS.
RANDOM_SEED = _sessions.get("random_seed")

# Emotion sampler period for the face-aware chat.
_sampler = _CONFIG.get("sampler", {})
SAMPLER_PERIOD_SECONDS = float(_sampler.get("period_seconds", 0.3))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
