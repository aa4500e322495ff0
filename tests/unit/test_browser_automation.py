"""Unit tests for the browser-use automation wrapper."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.mcp_tools.browser_automation import (
    AutomationTaskError,
    BrowserAutomation,
    SessionCreationError,
)


def task_result(status="finished", is_success=True, urls=("https://shop.example/search", "https://shop.example/cart")):
    return SimpleNamespace(
        id="task-1",
        status=status,
        is_success=is_success,
        output="done",
        steps=[SimpleNamespace(url=url) for url in urls],
    )


@pytest.fixture
def client():
    client = MagicMock()
    client.sessions.create_session = AsyncMock(return_value=SimpleNamespace(id="session-1"))
    client.sessions.update_session = AsyncMock()
    handle = MagicMock()
    handle.complete = AsyncMock(return_value=task_result())
    client.tasks.create_task = AsyncMock(return_value=handle)
    return client


@pytest.fixture
def automation(client):
    return BrowserAutomation(
        api_key="test-key",
        profile_id="profile-1",
        start_url="https://shop.example",
        proxy_country_code="fr",
        task_timeout_seconds=5,
        client=client,
    )


class TestBrowserAutomationInit:
    def test_requires_api_key(self):
        with pytest.raises(ValueError, match="BROWSER_USE_API_KEY"):
            BrowserAutomation(api_key="", profile_id="profile-1", start_url="https://shop.example")


class TestCreateSession:
    """Tests for session creation."""

    @pytest.mark.asyncio
    async def test_create_session(self, automation, client):
        assert await automation.create_session() == "session-1"
        client.sessions.create_session.assert_awaited_once_with(
            profile_id="profile-1",
            proxy_country_code="fr",
            start_url="https://shop.example",
        )

    @pytest.mark.asyncio
    async def test_provider_error_is_wrapped(self, automation, client):
        client.sessions.create_session.side_effect = RuntimeError("401 invalid api key")

        with pytest.raises(SessionCreationError, match="401 invalid api key"):
            await automation.create_session()


class TestRunTask:
    """Tests for running one natural-language task."""

    @pytest.mark.asyncio
    async def test_successful_task(self, automation, client):
        """The final URL is the URL of the last step."""
        result = await automation.run_task("session-1", "Open the cart", max_steps=3)

        assert result.status == "finished"
        assert result.final_url == "https://shop.example/cart"
        assert result.task_id == "task-1"
        kwargs = client.tasks.create_task.call_args.kwargs
        assert kwargs["session_id"] == "session-1"
        assert kwargs["max_steps"] == 3
        assert kwargs["task"] == "Open the cart"

    @pytest.mark.asyncio
    async def test_no_steps_means_no_url(self, automation, client):
        client.tasks.create_task.return_value.complete.return_value = task_result(urls=())

        result = await automation.run_task("session-1", "Open the cart", max_steps=3)

        assert result.final_url is None

    @pytest.mark.asyncio
    async def test_unsuccessful_task_raises(self, automation, client):
        client.tasks.create_task.return_value.complete.return_value = task_result(is_success=False)

        with pytest.raises(AutomationTaskError):
            await automation.run_task("session-1", "Add milk", max_steps=4)

    @pytest.mark.asyncio
    async def test_stopped_task_raises(self, automation, client):
        client.tasks.create_task.return_value.complete.return_value = task_result(status="stopped", is_success=None)

        with pytest.raises(AutomationTaskError, match="stopped"):
            await automation.run_task("session-1", "Add milk", max_steps=4)

    @pytest.mark.asyncio
    async def test_enum_status_is_unwrapped(self, automation, client):
        client.tasks.create_task.return_value.complete.return_value = task_result(
            status=SimpleNamespace(value="finished")
        )

        result = await automation.run_task("session-1", "Add milk", max_steps=4)

        assert result.status == "finished"

    @pytest.mark.asyncio
    async def test_timeout_raises(self, automation, client):
        client.tasks.create_task.return_value.complete.side_effect = asyncio.TimeoutError()

        with pytest.raises(AutomationTaskError, match="timed out"):
            await automation.run_task("session-1", "Add milk", max_steps=4)

    @pytest.mark.asyncio
    async def test_provider_error_raises(self, automation, client):
        client.tasks.create_task.side_effect = RuntimeError("session not found")

        with pytest.raises(AutomationTaskError, match="session not found"):
            await automation.run_task("session-1", "Add milk", max_steps=4)


class TestCloseSession:
    @pytest.mark.asyncio
    async def test_close_session_stops_browser(self, automation, client):
        await automation.close_session("session-1")

        client.sessions.update_session.assert_awaited_once_with("session-1", action="stop")

    @pytest.mark.asyncio
    async def test_close_session_swallows_errors(self, automation, client):
        client.sessions.update_session.side_effect = RuntimeError("already stopped")

        await automation.close_session("session-1")
