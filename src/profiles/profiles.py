"""User preference profiles stored in a JSON file.

Profiles are keyed by user id. Saving merges the new values into the existing
profile (shallow merge, new values win) and rewrites the whole file.
"""

import json
import threading
from pathlib import Path
from typing import Any

from src.models.models import UserProfileResult
from src.utils.logger import logger


PROFILE_FIELDS = [
    "diet",
    "household_size",
    "budget",
    "allergies",
    "cuisine_preferences",
    "cooking_time",
    "days",
]


class ProfileStore:
    """Read and merge user preferences from a flat JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_all(self) -> dict[str, dict[str, Any]]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read profiles from {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, profiles: dict[str, dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(profiles, indent=2, ensure_ascii=False), encoding="utf-8")

    def get_profile(self, user_id: str) -> UserProfileResult:
        """Return the saved profile and the preference fields still missing."""
        with self._lock:
            profile = self._read_all().get(user_id) or {}

        missing = [field for field in PROFILE_FIELDS if field not in profile]
        known = len(PROFILE_FIELDS) - len(missing)
        if missing:
            message = f"Profile has {known}/{len(PROFILE_FIELDS)} fields. Missing: {', '.join(missing)}"
        else:
            message = "Profile is complete. Ready to generate a meal plan."
        return UserProfileResult(profile=profile, missing_fields=missing, message=message)

    def save_preferences(self, user_id: str, preferences: dict[str, Any]) -> str:
        """Merge ``preferences`` into the user's profile and persist it.

        Raises:
            ValueError: If user_id is empty.
        """
        if not user_id or not user_id.strip():
            raise ValueError("user_id is required")

        with self._lock:
            profiles = self._read_all()
            profiles[user_id] = {**profiles.get(user_id, {}), **preferences}
            self._write_all(profiles)

        logger.info(f"Saved preferences for {user_id}: {', '.join(preferences)}", extra={"user_id": user_id})
        return f"Saved preferences for {user_id}: {', '.join(preferences.keys())}"
