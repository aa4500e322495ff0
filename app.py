"""AgentOS Application - Meal Planner Service.

Single entry point for the meal planner:
- Builds the cart-fill service shared by the agent tools and the HTTP routes
- Configures the Agno meal-planner agent (profiles, meal plans, cart filling)
- Mounts the cart-fill routes (start + progress polling) on the base FastAPI app
- Serves the REST API and Web UI via AgentOS

Run with: python app.py
"""

import asyncio
from contextlib import asynccontextmanager

from agno.os import AgentOS
from fastapi import FastAPI

from src.agents.agent import build_cart_fill_service, initialize_meal_planner_agent
from src.api.routes import create_cart_fill_router
from src.utils.config import config
from src.utils.logger import logger


# Fail fast on missing credentials before anything is built
config.validate_credentials()

cart_service = build_cart_fill_service()
agent, _, _ = asyncio.run(initialize_meal_planner_agent(cart_service=cart_service))


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    if cart_service.pending_jobs:
        logger.info(f"Waiting up to 30s for {cart_service.pending_jobs} cart fill job(s) to finish...")
        await cart_service.wait_for_pending_jobs(timeout=30)


base_app = FastAPI(title="Meal Planner Service", version="0.1.0")
base_app.include_router(create_cart_fill_router(cart_service))

agent_os = AgentOS(
    id="meal-planner-os",
    description="Meal planning assistant that fills your grocery cart",
    agents=[agent],
    base_app=base_app,
    lifespan=lifespan,
)
app = agent_os.get_app()


if __name__ == "__main__":
    logger.info(f"Starting Meal Planner Service on port {config.PORT}")
    logger.info(f"Cart progress endpoint: http://localhost:{config.PORT}/api/fill-cart/progress/{{job_id}}")
    logger.info(f"API docs available at: http://localhost:{config.PORT}/docs")
    agent_os.serve(app="app:app", port=config.PORT)
