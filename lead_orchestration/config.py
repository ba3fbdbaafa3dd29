# lead_orchestration/config.py
"""
Environment configuration for the lead-capture orchestrator.

Values come from the process environment (optionally seeded from a .env
file). Modules read them through the ``settings`` singleton, e.g.
``settings.SHEETS_CHAT_TAB``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .logging_context import ConversationIdFilter
from .utils import trim_quotes

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s [%(conv_id)s]: %(message)s"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid integer for {env_var}: {raw!r}") from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid float for {env_var}: {raw!r}") from None


def _tab(env_var: str, default: str) -> str:
    return trim_quotes(os.getenv(env_var) or default)


_DEFAULT_LANDING_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "landing")
)


@dataclass(frozen=True)
class Settings:
    """All tunables of the service. Nothing else reads os.environ."""

    # OpenAI planner
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    LLM_PLANNER_MODEL: str = os.getenv("LLM_PLANNER_MODEL", "gpt-4o-mini")
    LLM_TEMPERATURE: float = _safe_float("LLM_TEMPERATURE", "0.2")
    LLM_TIMEOUT_SECONDS: float = _safe_float("LLM_TIMEOUT_SECONDS", "20")

    # Google Sheets sink
    SHEETS_SPREADSHEET_ID: str = os.getenv("SHEETS_SPREADSHEET_ID", "")
    GOOGLE_APPLICATION_CREDENTIALS: str = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "")
    SHEETS_TAB: str = _tab("SHEETS_TAB", "presales")
    SHEETS_CHAT_TAB: str = _tab("SHEETS_CHAT_TAB", "chat_log")
    SHEETS_LEADS_TAB: str = _tab("SHEETS_LEADS_TAB", "leads")
    LEADS_FIXED_ROW: int = _safe_int("LEADS_FIXED_ROW", "2")
    SHEETS_TIMEOUT_SECONDS: float = _safe_float("SHEETS_TIMEOUT_SECONDS", "10")

    # HTTP
    ALLOW_ORIGIN: str = os.getenv("ALLOW_ORIGIN", "*")
    LANDING_DIR: str = os.getenv("LANDING_DIR", _DEFAULT_LANDING_DIR)
    PORT: int = _safe_int("PORT", "5000")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def sheets_enabled(self) -> bool:
        return bool(self.SHEETS_SPREADSHEET_ID) and bool(
            self.GOOGLE_APPLICATION_CREDENTIALS
        ) and os.path.exists(self.GOOGLE_APPLICATION_CREDENTIALS)


def validate_settings(config: Settings) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 <= config.LLM_TEMPERATURE <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.LLM_TEMPERATURE}"
        )
    if config.LLM_TIMEOUT_SECONDS <= 0:
        raise ValueError(
            f"LLM_TIMEOUT_SECONDS must be > 0, got {config.LLM_TIMEOUT_SECONDS}"
        )
    if config.SHEETS_TIMEOUT_SECONDS <= 0:
        raise ValueError(
            f"SHEETS_TIMEOUT_SECONDS must be > 0, got {config.SHEETS_TIMEOUT_SECONDS}"
        )
    # Row 1 holds the header.
    if config.LEADS_FIXED_ROW < 2:
        raise ValueError(f"LEADS_FIXED_ROW must be >= 2, got {config.LEADS_FIXED_ROW}")
    if not 0 < config.PORT < 65536:
        raise ValueError(f"PORT must be between 1 and 65535, got {config.PORT}")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, ConversationIdFilter) for f in handler.filters):
            handler.addFilter(ConversationIdFilter())


def log_settings(config: Settings) -> None:
    """Print the effective startup configuration (secrets omitted)."""
    logger.info("[cfg] PORT             = %s", config.PORT)
    logger.info("[cfg] SHEETS_CHAT_TAB  = %s", config.SHEETS_CHAT_TAB)
    logger.info("[cfg] SHEETS_LEADS_TAB = %s", config.SHEETS_LEADS_TAB)
    logger.info("[cfg] LEADS_FIXED_ROW  = %s", config.LEADS_FIXED_ROW)
    logger.info("[cfg] LANDING_DIR      = %s", config.LANDING_DIR)
    if not config.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is missing; planner will return fallback plans")
    if not config.sheets_enabled:
        logger.warning(
            "Sheets disabled (set SHEETS_SPREADSHEET_ID and "
            "GOOGLE_APPLICATION_CREDENTIALS to an existing key file)"
        )


def load_settings() -> Settings:
    """Load, validate and log application configuration."""
    config = Settings()
    validate_settings(config)
    configure_logging(config.LOG_LEVEL)
    return config


# Singleton instance
settings = load_settings()
