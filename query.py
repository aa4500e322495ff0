#!/usr/bin/env python3
"""Ad hoc query runner for the Meal Planner agent.

Run queries directly without starting the full API server.

Usage:
    python query.py "I'm user alice, plan my week"
    python query.py --debug "Your query"      # Show full JSON response
    python query.py --stateless "Your query"  # No session history
    python query.py --wait "Fill my cart with 1L milk and 6 eggs"

Cart fill jobs run in the background of this process. With --wait the runner
stays alive until they finish and prints their final progress; without it
they are abandoned when the query returns.
"""

import asyncio
import json
import sys

from rich.console import Console
from rich.markdown import Markdown

from src.agents.agent import initialize_meal_planner_agent
from src.jobs.service import format_progress_message
from src.utils.config import config
from src.utils.logger import logger

console = Console()


def extract_response_text(response) -> str:
    """Extract markdown text from an agent run output (content string or object)."""
    content = getattr(response, "content", None)
    if isinstance(content, str):
        return content
    if content is not None:
        return str(content)
    return str(response) if response else ""


async def _run(query: str, debug: bool, stateless: bool, wait: bool) -> None:
    agent, cart_service, _ = await initialize_meal_planner_agent(use_db=not stateless)

    logger.info(f"Running query: {query}")
    response = await agent.arun(input=query)
    console.print()

    if debug:
        console.print("[bold cyan]Debug Mode: Full Response[/bold cyan]")
        response_dict = response.to_dict() if hasattr(response, "to_dict") else response.__dict__
        console.print_json(data=json.loads(json.dumps(response_dict, default=str)))
        console.print()

    response_text = extract_response_text(response)
    if response_text:
        console.print(Markdown(response_text))
    else:
        console.print("[yellow]No response text found[/yellow]")

    if wait and cart_service.pending_jobs:
        console.print(f"[dim]Waiting for {cart_service.pending_jobs} cart fill job(s)...[/dim]")
        await cart_service.wait_for_pending_jobs()
        for job_id in cart_service.started_job_ids:
            console.print(format_progress_message(cart_service.check_cart_fill_progress(job_id)))


def run_query(query: str, debug: bool = False, stateless: bool = False, wait: bool = False) -> None:
    """Execute a single ad hoc query and print the response."""
    try:
        config.validate_credentials()
        asyncio.run(_run(query, debug, stateless, wait))
    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    flags = {"--debug": False, "--stateless": False, "--wait": False}
    args = sys.argv[1:]
    while args and args[0].startswith("--"):
        if args[0] not in flags:
            print(f"Unknown flag: {args[0]}")
            sys.exit(1)
        flags[args.pop(0)] = True

    if not args:
        print('Usage: python query.py [--debug] [--stateless] [--wait] "<your query>"')
        sys.exit(1)

    run_query(" ".join(args), debug=flags["--debug"], stateless=flags["--stateless"], wait=flags["--wait"])
