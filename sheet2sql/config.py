"""
Runtime configuration and logging setup.

Settings are read from environment variables (and a ``.env`` file when
``AssistantSettings.from_env`` is used) into an explicit object that is
passed to the services that need it.

Environment variables:
    SHEET2SQL_API_KEY      API key for the text-generation endpoint
                           (falls back to GROQ_API_KEY)
    SHEET2SQL_BASE_URL     OpenAI-compatible base URL
    SHEET2SQL_MODEL        Model identifier
    SHEET2SQL_TIMEOUT_S    Request timeout in seconds
    SHEET2SQL_MAX_RETRIES  Retries performed by the SDK client
    SHEET2SQL_SAMPLE_ROWS  Uploaded data rows included in query prompts
    SHEET2SQL_LOG_LEVEL    Logging level name
"""

import logging
import os
import sys

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "mixtral-8x7b-32768"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer; using %d", name, raw, default)
        return default


class AssistantSettings(BaseModel):
    """
    Settings for the text-generation client and services.

    Attributes:
        api_key: API key; empty means model-backed operations fail with
            ConfigurationError.
        base_url: OpenAI-compatible endpoint.
        model: Model identifier sent with every request.
        request_timeout_s: Per-request timeout.
        max_retries: Retries performed by the SDK client.
        sample_rows: Uploaded data rows included in query prompts.
        log_level: Logging level name.
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("SHEET2SQL_API_KEY") or os.getenv("GROQ_API_KEY", ""),
        repr=False,
        description="API key for the text-generation endpoint",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("SHEET2SQL_BASE_URL", DEFAULT_BASE_URL),
        description="OpenAI-compatible base URL",
    )
    model: str = Field(
        default_factory=lambda: os.getenv("SHEET2SQL_MODEL", DEFAULT_MODEL),
        description="Model identifier",
    )
    request_timeout_s: int = Field(
        default_factory=lambda: _env_int("SHEET2SQL_TIMEOUT_S", 60),
        ge=1,
        description="Request timeout in seconds",
    )
    max_retries: int = Field(
        default_factory=lambda: _env_int("SHEET2SQL_MAX_RETRIES", 2),
        ge=0,
        description="Retries performed by the SDK client",
    )
    sample_rows: int = Field(
        default_factory=lambda: _env_int("SHEET2SQL_SAMPLE_ROWS", 5),
        ge=0,
        description="Uploaded data rows included in query prompts",
    )
    log_level: str = Field(
        default_factory=lambda: os.getenv("SHEET2SQL_LOG_LEVEL", "INFO"),
        description="Logging level name",
    )

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> "AssistantSettings":
        """Load ``.env`` (without overriding the real environment) and build settings."""
        load_dotenv(dotenv_path=dotenv_path, override=False)
        return cls()


def configure_logging(level: str = "INFO") -> None:
    """
    Install a stderr handler on the root logger.

    stderr keeps the MCP stdio transport's stdout stream clean.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
