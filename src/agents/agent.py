"""Agent initialization factory for the Meal Planner Service.

Builds the collaborators (job store, browser automation, translator, Dust
client, profile store), wraps them in the meal-planner toolkit and configures
the Agno Agent that the chat host talks to.
"""

from pathlib import Path
from typing import Optional

from agno.agent import Agent
from agno.db.postgres import PostgresDb
from agno.db.sqlite import SqliteDb
from agno.models.google import Gemini

from src.agents.tools import MealPlannerTools
from src.jobs.cart_fill import CartFillOrchestrator
from src.jobs.service import CartFillService
from src.jobs.store import InMemoryJobStore
from src.mcp_tools.browser_automation import BrowserAutomation
from src.mcp_tools.meal_plan import DustMealPlanner
from src.mcp_tools.translation import ProductTranslator
from src.profiles.profiles import ProfileStore
from src.prompts.prompts import get_system_instructions
from src.utils.config import config
from src.utils.logger import logger
from src.utils.tracing import initialize_tracing


def build_cart_fill_service() -> CartFillService:
    """Wire the job store, browser automation and translator into the cart-fill service."""
    logger.info("Step 1/5: Configuring cart fill jobs...")
    store = InMemoryJobStore(ttl_seconds=config.JOB_TTL_SECONDS)
    automation = BrowserAutomation(
        api_key=config.BROWSER_USE_API_KEY,
        profile_id=config.BROWSER_USE_PROFILE_ID,
        start_url=config.SHOP_START_URL,
        proxy_country_code=config.SHOP_PROXY_COUNTRY,
        llm=config.BROWSER_USE_LLM,
        task_timeout_seconds=config.TASK_TIMEOUT_SECONDS,
    )
    translator = ProductTranslator(
        api_key=config.GEMINI_API_KEY,
        model=config.TRANSLATION_MODEL,
        shop_name=config.SHOP_NAME,
        language=config.TRANSLATION_LANGUAGE,
    )
    orchestrator = CartFillOrchestrator(
        store=store,
        automation=automation,
        translator=translator,
        shop_url=config.SHOP_START_URL,
        language=config.TRANSLATION_LANGUAGE,
        delivery_address=config.DELIVERY_ADDRESS,
        delivery_slot=config.DELIVERY_SLOT,
        setup_max_steps=config.SETUP_MAX_STEPS,
        product_max_steps=config.PRODUCT_MAX_STEPS,
        cart_max_steps=config.CART_MAX_STEPS,
        product_max_attempts=config.PRODUCT_MAX_ATTEMPTS,
    )
    logger.info(f"✓ Cart fill configured for {config.SHOP_NAME} ({config.SHOP_START_URL}), jobs kept {config.JOB_TTL_SECONDS}s")
    return CartFillService(store=store, orchestrator=orchestrator)


def _build_meal_planner() -> Optional[DustMealPlanner]:
    logger.info("Step 2/5: Checking meal plan service configuration...")
    if not config.USE_DUST:
        logger.info("✓ Dust not configured - the agent writes meal plans itself")
        return None

    planner = DustMealPlanner(
        api_key=config.DUST_API_KEY,
        workspace_id=config.DUST_WORKSPACE_ID,
        agent_sid=config.DUST_AGENT_SID,
        base_url=config.DUST_BASE_URL,
        system_prompt_path=config.SYSTEM_PROMPT_PATH,
        timezone=config.DUST_TIMEZONE,
        timeout_seconds=config.DUST_TIMEOUT_SECONDS,
    )
    logger.info("✓ Dust meal planner configured")
    return planner


def _configure_database(use_db: bool):
    """Configure database for session persistence (SQLite or PostgreSQL).

    Returns:
        Database instance or None for stateless mode.
    """
    logger.info("Step 4/5: Configuring database for session persistence...")

    if not use_db:
        logger.info("✓ Stateless mode configured")
        return None

    if config.DATABASE_URL:
        logger.info(f"Using PostgreSQL: {config.DATABASE_URL.split('@')[1] if '@' in config.DATABASE_URL else '...'}")
        return PostgresDb(db_url=config.DATABASE_URL, id="meal_planner_db")

    Path("tmp").mkdir(exist_ok=True)
    logger.info("Using SQLite database: tmp/meal_planner_sessions.db")
    return SqliteDb(db_file="tmp/meal_planner_sessions.db", id="meal_planner_db")


def _create_agent(db, tools: MealPlannerTools, use_meal_plan_tool: bool) -> Agent:
    logger.info("Step 5/5: Configuring Agno Agent...")
    agent = Agent(
        # === Model Configuration ===
        model=Gemini(
            id=config.GEMINI_MODEL,
            api_key=config.GEMINI_API_KEY,
            temperature=config.TEMPERATURE,
            max_output_tokens=config.MAX_OUTPUT_TOKENS,
        ),
        # === Storage ===
        db=db,
        # === Tools ===
        tools=[tools],
        tool_call_limit=config.TOOL_CALL_LIMIT,
        # === Instructions ===
        instructions=get_system_instructions(shop_name=config.SHOP_NAME, use_meal_plan_tool=use_meal_plan_tool),
        markdown=True,
        # === Retry & Error Handling ===
        retries=config.MAX_RETRIES,
        exponential_backoff=config.EXPONENTIAL_BACKOFF,
        delay_between_retries=config.DELAY_BETWEEN_RETRIES,
        # === Memory & Context ===
        add_history_to_context=db is not None,
        num_history_runs=config.MAX_HISTORY,
        # === Metadata ===
        name="Meal Planner Agent",
        description="Collects dietary preferences, plans weekly meals and fills the grocery cart",
    )
    logger.info(f"✓ Agent configured with {len(tools.tools)} tool(s)")
    return agent


async def initialize_meal_planner_agent(
    cart_service: Optional[CartFillService] = None,
    use_db: bool = True,
):
    """Factory function to initialize the meal-planner agent (async).

    Args:
        cart_service: Shared cart-fill service. The HTTP routes must use the same
            instance as the agent tools so both see the same jobs; built here when omitted.
        use_db: If True, persist agent sessions. If False, run stateless.

    Returns:
        Tuple of (Agent, CartFillService, tracing_db).
    """
    logger.info("=== Initializing Meal Planner Agent ===")

    cart_service = cart_service or build_cart_fill_service()
    meal_planner = _build_meal_planner()

    logger.info("Step 3/5: Initializing tracing...")
    tracing_db = await initialize_tracing()

    db = _configure_database(use_db)
    tools = MealPlannerTools(
        cart_service=cart_service,
        profiles=ProfileStore(config.PROFILES_PATH),
        meal_planner=meal_planner,
    )
    agent = _create_agent(db, tools, use_meal_plan_tool=meal_planner is not None)

    logger.info("=== Agent initialization complete ===")
    return agent, cart_service, tracing_db
