"""Configuration management for the Meal Planner Service.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os
from typing import Optional

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # === Conversational agent (Gemini via Agno) ===
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")
        # Translation Model: small model used to propose store-language search terms
        self.TRANSLATION_MODEL: str = os.getenv("TRANSLATION_MODEL", "gemini-2.5-flash-lite")
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.3"))
        self.MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "4096"))
        self.MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
        self.DELAY_BETWEEN_RETRIES: int = int(os.getenv("DELAY_BETWEEN_RETRIES", "2"))
        self.EXPONENTIAL_BACKOFF: bool = _env_bool("EXPONENTIAL_BACKOFF", "true")
        self.MAX_HISTORY: int = int(os.getenv("MAX_HISTORY", "5"))
        self.TOOL_CALL_LIMIT: int = int(os.getenv("TOOL_CALL_LIMIT", "12"))

        # === Server & storage ===
        self.PORT: int = int(os.getenv("PORT", "7777"))
        # Database URL: PostgreSQL for agent sessions in production, SQLite otherwise
        self.DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
        self.ENABLE_TRACING: bool = _env_bool("ENABLE_TRACING", "false")
        self.TRACING_DB_FILE: str = os.getenv("TRACING_DB_FILE", "tmp/meal_planner_traces.db")

        # === Browser automation (browser-use cloud) ===
        self.BROWSER_USE_API_KEY: str = os.getenv("BROWSER_USE_API_KEY", "")
        # Pre-authenticated browser profile holding the shop login cookies
        self.BROWSER_USE_PROFILE_ID: str = os.getenv("BROWSER_USE_PROFILE_ID", "")
        self.BROWSER_USE_LLM: str = os.getenv("BROWSER_USE_LLM", "browser-use-2.0")
        self.SHOP_NAME: str = os.getenv("SHOP_NAME", "Carrefour")
        self.SHOP_START_URL: str = os.getenv("SHOP_START_URL", "https://www.carrefour.fr")
        self.SHOP_PROXY_COUNTRY: str = os.getenv("SHOP_PROXY_COUNTRY", "fr")
        # Language the shop's search box understands
        self.TRANSLATION_LANGUAGE: str = os.getenv("TRANSLATION_LANGUAGE", "French")
        self.DELIVERY_ADDRESS: str = os.getenv("DELIVERY_ADDRESS", "16 Boulevard Haussmann, 75009 Paris")
        self.DELIVERY_SLOT: str = os.getenv("DELIVERY_SLOT", "the earliest available day, any time after 10:00 AM")

        # Step budgets per automation task (enforced by the provider)
        self.SETUP_MAX_STEPS: int = int(os.getenv("SETUP_MAX_STEPS", "10"))
        self.PRODUCT_MAX_STEPS: int = int(os.getenv("PRODUCT_MAX_STEPS", "4"))
        self.CART_MAX_STEPS: int = int(os.getenv("CART_MAX_STEPS", "3"))
        # Upper bound on waiting for a single task to report back
        self.TASK_TIMEOUT_SECONDS: float = float(os.getenv("TASK_TIMEOUT_SECONDS", "300"))
        # 1 = a single attempt per product
        self.PRODUCT_MAX_ATTEMPTS: int = int(os.getenv("PRODUCT_MAX_ATTEMPTS", "1"))
        # Job progress retention window in seconds
        self.JOB_TTL_SECONDS: int = int(os.getenv("JOB_TTL_SECONDS", "3600"))

        # === Meal plan generation (Dust) ===
        self.DUST_API_KEY: str = os.getenv("DUST_API_KEY", "")
        self.DUST_WORKSPACE_ID: str = os.getenv("DUST_WORKSPACE_ID", "")
        self.DUST_AGENT_SID: str = os.getenv("DUST_AGENT_SID", "")
        self.DUST_BASE_URL: str = os.getenv("DUST_BASE_URL", "https://dust.tt")
        self.DUST_TIMEZONE: str = os.getenv("DUST_TIMEZONE", "Europe/Paris")
        self.DUST_TIMEOUT_SECONDS: float = float(os.getenv("DUST_TIMEOUT_SECONDS", "300"))

        # === User profiles ===
        self.PROFILES_PATH: str = os.getenv("PROFILES_PATH", "data/profiles.json")
        self.SYSTEM_PROMPT_PATH: str = os.getenv("SYSTEM_PROMPT_PATH", "data/dust-system-prompt.md")

    @property
    def USE_DUST(self) -> bool:
        """True when every Dust credential is present."""
        return bool(self.DUST_API_KEY and self.DUST_WORKSPACE_ID and self.DUST_AGENT_SID)

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If a numeric setting is out of range.
        """
        if not (0.0 <= self.TEMPERATURE <= 1.0):
            raise ValueError(f"TEMPERATURE must be between 0.0 and 1.0, got: {self.TEMPERATURE}")
        if self.MAX_OUTPUT_TOKENS < 512:
            raise ValueError(f"MAX_OUTPUT_TOKENS must be at least 512, got: {self.MAX_OUTPUT_TOKENS}")
        if self.MAX_RETRIES < 1:
            raise ValueError(f"MAX_RETRIES must be at least 1, got: {self.MAX_RETRIES}")
        for name in ("SETUP_MAX_STEPS", "PRODUCT_MAX_STEPS", "CART_MAX_STEPS", "PRODUCT_MAX_ATTEMPTS"):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be at least 1, got: {value}")
        if self.JOB_TTL_SECONDS < 1:
            raise ValueError(f"JOB_TTL_SECONDS must be at least 1 second, got: {self.JOB_TTL_SECONDS}")

    def validate_credentials(self) -> None:
        """Validate API keys needed to serve requests.

        Called by the server entry point rather than at import so that unit
        tests and tooling can load the module without credentials.

        Raises:
            ValueError: If required API keys are missing.
        """
        if not self.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY environment variable is required")
        if not self.BROWSER_USE_API_KEY:
            raise ValueError("BROWSER_USE_API_KEY environment variable is required")
        if not self.BROWSER_USE_PROFILE_ID:
            raise ValueError("BROWSER_USE_PROFILE_ID environment variable is required")


# Create module-level config instance and validate immediately
config = Config()
config.validate()
