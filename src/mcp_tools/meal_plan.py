"""Weekly meal plan generation through a Dust agent.

Builds a prompt from the user's saved profile, sends it to Dust as a blocking
conversation and parses the agent's structured reply into meal plan,
shopping list and message.

Core Functions:
- build_meal_plan_prompt(): System prompt + profile bullet list + request/task
- parse_meal_plan_response(): Fenced or bare JSON into MealPlanResult
- DustMealPlanner.generate(): HTTP round trip to Dust (async, aiohttp)
"""

import asyncio
import json
import re
from pathlib import Path
from typing import Any, Optional

import aiohttp

from src.models.models import MealPlanResult
from src.utils.logger import logger


DEFAULT_SYSTEM_PROMPT = "You are a meal planning assistant. Generate a meal plan."
DEFAULT_TASK = "Generate a weekly meal plan based on the profile above."
PARSE_FAILURE_MESSAGE = "Failed to parse meal plan response."


class MealPlanError(Exception):
    """Raised when the meal plan service cannot be reached or answers badly."""


def load_system_prompt(path: Optional[str | Path]) -> str:
    """Read the system prompt file, falling back to a generic prompt."""
    if not path:
        return DEFAULT_SYSTEM_PROMPT
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError:
        logger.debug(f"System prompt not found at {path}, using default")
        return DEFAULT_SYSTEM_PROMPT


def build_meal_plan_prompt(profile: dict[str, Any], request: Optional[str], system_prompt: str) -> str:
    """Compose the prompt sent to the meal plan agent.

    Args:
        profile: Saved user preferences.
        request: Optional adjustment such as "swap Monday lunch".
        system_prompt: Instructions describing the expected JSON reply.
    """
    profile_summary = "\n".join(f"- {key}: {value}" for key, value in profile.items())
    prompt = f"{system_prompt}\n\n## User Profile\n{profile_summary}"

    if request:
        prompt += f"\n\n## User Request\n{request}"
    else:
        prompt += f"\n\n## Task\n{DEFAULT_TASK}"
    return prompt


def parse_meal_plan_response(content: str) -> MealPlanResult:
    """Parse the agent reply, accepting a ```json fenced block or bare JSON.

    Fields are read at the top level or under ``data``. Unparseable content
    yields an empty plan with a failure message rather than an exception.
    """
    try:
        fenced = re.search(r"```(?:json)?\s*([\s\S]*?)```", content)
        raw = fenced.group(1).strip() if fenced else content.strip()
        parsed = json.loads(raw)
        if not isinstance(parsed, dict):
            raise ValueError("meal plan reply is not a JSON object")
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning(f"Could not parse meal plan reply: {e}")
        return MealPlanResult(message=PARSE_FAILURE_MESSAGE)

    data = parsed.get("data") if isinstance(parsed.get("data"), dict) else {}
    return MealPlanResult(
        meal_plan=parsed.get("meal_plan") or data.get("meal_plan") or {},
        ingredients=parsed.get("ingredients") or data.get("ingredients") or [],
        message=parsed.get("text") or parsed.get("message") or "Here's your meal plan!",
    )


def extract_agent_message(conversation_payload: dict[str, Any]) -> str:
    """Return the content of the agent message in the conversation's last turn."""
    turns = conversation_payload.get("conversation", {}).get("content") or []
    if not turns:
        return ""
    for message in turns[-1]:
        if isinstance(message, dict) and message.get("type") == "agent_message":
            return message.get("content") or ""
    return ""


class DustMealPlanner:
    """Client for a Dust workspace agent that writes meal plans.

    Args:
        api_key: Dust API key.
        workspace_id: Dust workspace id.
        agent_sid: Configuration id of the meal planning agent.
        base_url: Dust API base URL.
        system_prompt_path: File with the system prompt; a default is used if missing.
        timezone: Timezone sent as conversation context.
        timeout_seconds: HTTP timeout (blocking conversations can take minutes).
    """

    def __init__(
        self,
        api_key: str,
        workspace_id: str,
        agent_sid: str,
        base_url: str = "https://dust.tt",
        system_prompt_path: Optional[str] = None,
        timezone: str = "Europe/Paris",
        timeout_seconds: float = 300,
    ) -> None:
        if not api_key:
            raise ValueError("DUST_API_KEY is required")
        self.api_key = api_key
        self.workspace_id = workspace_id
        self.agent_sid = agent_sid
        self.base_url = base_url.rstrip("/")
        self.system_prompt_path = system_prompt_path
        self.timezone = timezone
        self.timeout_seconds = timeout_seconds

    @property
    def conversations_url(self) -> str:
        return f"{self.base_url}/api/v1/w/{self.workspace_id}/assistant/conversations"

    async def _create_conversation(self, message: str, user_id: str) -> dict[str, Any]:
        payload = {
            "message": {
                "content": message,
                "mentions": [{"configurationId": self.agent_sid}],
                "context": {"username": user_id, "timezone": self.timezone, "origin": "api"},
            },
            "blocking": True,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)) as session:
                async with session.post(self.conversations_url, json=payload, headers=headers) as response:
                    if response.status >= 400:
                        body = await response.text()
                        raise MealPlanError(f"Dust API error {response.status}: {body}")
                    return await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise MealPlanError(f"Dust API request timed out after {self.timeout_seconds}s") from e
        except aiohttp.ClientError as e:
            raise MealPlanError(f"Dust API request failed: {e}") from e

    async def generate(self, profile: dict[str, Any], user_id: str, request: Optional[str] = None) -> MealPlanResult:
        """Generate a meal plan for ``profile``.

        Raises:
            MealPlanError: If Dust is unreachable or returns an HTTP error.
        """
        prompt = build_meal_plan_prompt(profile, request, load_system_prompt(self.system_prompt_path))
        logger.info(f"Requesting meal plan from Dust (request={request!r})", extra={"user_id": user_id})
        payload = await self._create_conversation(prompt, user_id)
        return parse_meal_plan_response(extract_agent_message(payload))
