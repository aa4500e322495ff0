"""Browser automation through the browser-use cloud API.

Thin async wrapper around ``browser_use_sdk.AsyncBrowserUse`` that exposes the
three operations the cart-fill orchestrator needs:

- create_session(): one remote browser bound to the shop, a pre-authenticated
  profile and a proxy country
- run_task(): run a natural-language task in that session with a step budget
- close_session(): stop the remote browser once the job is done

Any task that does not finish successfully is raised as AutomationTaskError so
the orchestrator can record the item as failed.
"""

import asyncio
from typing import Optional

from browser_use_sdk import AsyncBrowserUse

from src.models.models import AutomationTaskResult
from src.utils.logger import logger


class AutomationError(Exception):
    """Base error for browser automation failures."""


class SessionCreationError(AutomationError):
    """Raised when a remote browser session cannot be established."""


class AutomationTaskError(AutomationError):
    """Raised when a task times out, is stopped, or reports failure."""


class BrowserAutomation:
    """Drive a remote browser session with natural-language tasks.

    Args:
        api_key: browser-use cloud API key.
        profile_id: Browser profile holding the shop login state.
        start_url: Page every new session opens on.
        proxy_country_code: Proxy country so the shop serves the right region.
        llm: Model the remote agent uses for tasks.
        task_timeout_seconds: Upper bound on waiting for one task to finish.
        client: Optional pre-built client (tests inject a mock).

    Raises:
        ValueError: If api_key is missing.
    """

    def __init__(
        self,
        api_key: str,
        profile_id: str,
        start_url: str,
        proxy_country_code: str = "fr",
        llm: str = "browser-use-2.0",
        task_timeout_seconds: Optional[float] = 300,
        client: Optional[AsyncBrowserUse] = None,
    ) -> None:
        if not api_key and client is None:
            raise ValueError("BROWSER_USE_API_KEY is required")

        self.profile_id = profile_id
        self.start_url = start_url
        self.proxy_country_code = proxy_country_code
        self.llm = llm
        self.task_timeout_seconds = task_timeout_seconds
        self._client = client or AsyncBrowserUse(api_key=api_key)

    async def create_session(self) -> str:
        """Create a remote browser session and return its id.

        Raises:
            SessionCreationError: If the provider rejects or fails the request.
        """
        try:
            session = await self._client.sessions.create_session(
                profile_id=self.profile_id,
                proxy_country_code=self.proxy_country_code,
                start_url=self.start_url,
            )
        except Exception as e:
            raise SessionCreationError(f"Could not start browser session: {e}") from e

        logger.info(f"Browser session {session.id} started on {self.start_url}", extra={"session_id": session.id})
        return session.id

    async def run_task(self, session_id: str, description: str, max_steps: int) -> AutomationTaskResult:
        """Run one task in ``session_id`` and wait for it to finish.

        Args:
            session_id: Session returned by create_session().
            description: Natural-language instructions.
            max_steps: Step budget enforced by the provider.

        Returns:
            AutomationTaskResult with the final page URL when the provider reports steps.

        Raises:
            AutomationTaskError: On timeout, provider error, stopped task or reported failure.
        """
        try:
            task = await self._client.tasks.create_task(
                task=description,
                session_id=session_id,
                max_steps=max_steps,
                llm=self.llm,
            )
            result = await asyncio.wait_for(task.complete(), timeout=self.task_timeout_seconds)
        except asyncio.TimeoutError as e:
            raise AutomationTaskError(f"Task timed out after {self.task_timeout_seconds}s") from e
        except Exception as e:
            raise AutomationTaskError(f"Task failed: {e}") from e

        status = str(getattr(result.status, "value", result.status))
        if status == "stopped" or result.is_success is False:
            raise AutomationTaskError(f"Task ended with status {status}: {result.output or 'no output'}")

        steps = result.steps or []
        final_url = steps[-1].url if steps else None
        logger.debug(f"Task {result.id} {status} after {len(steps)} step(s)", extra={"session_id": session_id})
        return AutomationTaskResult(task_id=result.id, status=status, output=result.output, final_url=final_url)

    async def close_session(self, session_id: str) -> None:
        """Stop the remote browser. Failures are logged, never raised."""
        try:
            await self._client.sessions.update_session(session_id, action="stop")
            logger.debug(f"Browser session {session_id} stopped", extra={"session_id": session_id})
        except Exception as e:
            logger.warning(f"Failed to stop browser session {session_id}: {e}", extra={"session_id": session_id})
