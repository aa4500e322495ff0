"""Unit tests for the agent factory wiring.

Tests verify:
- Cart-fill service is built from configuration
- Dust meal planner is optional
- Database configuration (stateless, SQLite, PostgreSQL)
- Agent receives the meal-planner toolkit and matching instructions
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.agents import agent as agent_module
from src.agents.tools import MealPlannerTools
from src.jobs.service import CartFillService


class TestBuildCartFillService:
    """Tests for the cart-fill service factory."""

    @patch("src.agents.agent.ProductTranslator")
    @patch("src.agents.agent.BrowserAutomation")
    def test_service_uses_config(self, mock_automation, mock_translator, monkeypatch):
        monkeypatch.setattr(agent_module.config, "PRODUCT_MAX_STEPS", 6)
        monkeypatch.setattr(agent_module.config, "JOB_TTL_SECONDS", 120)
        monkeypatch.setattr(agent_module.config, "SHOP_START_URL", "https://shop.example")

        service = agent_module.build_cart_fill_service()

        assert isinstance(service, CartFillService)
        assert service.store.ttl_seconds == 120
        assert service.orchestrator.product_max_steps == 6
        assert service.orchestrator.shop_url == "https://shop.example"
        assert mock_automation.call_args.kwargs["start_url"] == "https://shop.example"
        assert mock_translator.call_args.kwargs["model"] == agent_module.config.TRANSLATION_MODEL


class TestMealPlannerFactory:
    """Tests for the optional Dust client."""

    def test_no_planner_without_dust_credentials(self, monkeypatch):
        monkeypatch.setattr(agent_module.config, "DUST_API_KEY", "")

        assert agent_module._build_meal_planner() is None

    def test_planner_with_dust_credentials(self, monkeypatch):
        monkeypatch.setattr(agent_module.config, "DUST_API_KEY", "dust-key")
        monkeypatch.setattr(agent_module.config, "DUST_WORKSPACE_ID", "ws-1")
        monkeypatch.setattr(agent_module.config, "DUST_AGENT_SID", "agent-1")

        planner = agent_module._build_meal_planner()

        assert planner is not None
        assert planner.conversations_url.endswith("/api/v1/w/ws-1/assistant/conversations")


class TestDatabaseConfiguration:
    """Tests for session storage selection."""

    def test_stateless_mode(self):
        assert agent_module._configure_database(use_db=False) is None

    @patch("src.agents.agent.SqliteDb")
    def test_sqlite_when_no_database_url(self, mock_sqlite, monkeypatch):
        monkeypatch.setattr(agent_module.config, "DATABASE_URL", None)

        db = agent_module._configure_database(use_db=True)

        assert db is mock_sqlite.return_value
        mock_sqlite.assert_called_once_with(db_file="tmp/meal_planner_sessions.db", id="meal_planner_db")

    @patch("src.agents.agent.PostgresDb")
    def test_postgres_when_database_url_set(self, mock_postgres, monkeypatch):
        url = "postgresql+psycopg://user:pass@db:5432/meals"
        monkeypatch.setattr(agent_module.config, "DATABASE_URL", url)

        db = agent_module._configure_database(use_db=True)

        assert db is mock_postgres.return_value
        mock_postgres.assert_called_once_with(db_url=url, id="meal_planner_db")


class TestInitializeAgent:
    """Tests for the async agent factory."""

    @pytest.mark.asyncio
    @patch("src.agents.agent.initialize_tracing", new_callable=AsyncMock, return_value=None)
    @patch("src.agents.agent.Gemini")
    @patch("src.agents.agent.Agent")
    async def test_agent_gets_toolkit(self, mock_agent, mock_gemini, mock_tracing, service, monkeypatch, tmp_path):
        monkeypatch.setattr(agent_module.config, "DUST_API_KEY", "")
        monkeypatch.setattr(agent_module.config, "PROFILES_PATH", str(tmp_path / "profiles.json"))

        agent, cart_service, tracing_db = await agent_module.initialize_meal_planner_agent(
            cart_service=service, use_db=False
        )

        assert agent is mock_agent.return_value
        assert cart_service is service
        assert tracing_db is None

        kwargs = mock_agent.call_args.kwargs
        toolkit = kwargs["tools"][0]
        assert isinstance(toolkit, MealPlannerTools)
        assert toolkit.cart_service is service
        assert toolkit.meal_planner is None
        assert kwargs["db"] is None
        assert kwargs["add_history_to_context"] is False
        assert "generate_meal_plan" not in kwargs["instructions"]
        assert "start_cart_fill" in kwargs["instructions"]

    @pytest.mark.asyncio
    @patch("src.agents.agent.initialize_tracing", new_callable=AsyncMock, return_value=None)
    @patch("src.agents.agent.Gemini")
    @patch("src.agents.agent.Agent")
    @patch("src.agents.agent.build_cart_fill_service")
    async def test_builds_service_when_missing(
        self, mock_build, mock_agent, mock_gemini, mock_tracing, service, monkeypatch, tmp_path
    ):
        mock_build.return_value = service
        monkeypatch.setattr(agent_module.config, "PROFILES_PATH", str(tmp_path / "profiles.json"))

        _, cart_service, _ = await agent_module.initialize_meal_planner_agent(use_db=False)

        mock_build.assert_called_once_with()
        assert cart_service is service
