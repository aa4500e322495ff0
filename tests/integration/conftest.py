"""Pytest configuration and fixtures for integration tests.

Ensures environment variables are loaded and validates required API keys
before running integration tests.
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv


REQUIRED_KEYS = ("GEMINI_API_KEY", "BROWSER_USE_API_KEY", "BROWSER_USE_PROFILE_ID")


def pytest_configure(config):
    """Load .env before collection so the server settings match the running app."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    print("\n" + "=" * 70)
    print(f"Note: These tests require {', '.join(REQUIRED_KEYS)}")
    print(f"Environment loaded from: {env_path}")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session", autouse=True)
def check_api_keys():
    """Skip the integration suite when the required API keys are not configured."""
    missing = [key for key in REQUIRED_KEYS if not os.getenv(key)]
    if missing:
        pytest.skip(
            f"Integration tests skipped. Missing API keys: {', '.join(missing)}. Please set these in your .env file.",
            allow_module_level=True,
        )
