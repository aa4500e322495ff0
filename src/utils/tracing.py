"""Optional Agno tracing for the meal-planner agent.

Traces go to their own SQLite file so they can be inspected or deleted
without touching agent sessions. Disabled unless ENABLE_TRACING=true.
"""

from pathlib import Path
from typing import Optional

from agno.db.sqlite import SqliteDb

from src.utils.config import config
from src.utils.logger import logger


async def initialize_tracing() -> Optional[SqliteDb]:
    """Set up OpenTelemetry tracing backed by a dedicated SQLite database.

    Returns:
        SqliteDb holding traces, or None when tracing is disabled or unavailable.
        Failures are logged and never stop the service.
    """
    if not config.ENABLE_TRACING:
        logger.info("Tracing disabled via ENABLE_TRACING=false")
        return None

    try:
        # agno.tracing pulls in the OpenTelemetry packages from the "tracing" extra
        from agno.tracing import setup_tracing

        Path(config.TRACING_DB_FILE).parent.mkdir(parents=True, exist_ok=True)
        tracing_db = SqliteDb(db_file=config.TRACING_DB_FILE, id="meal_planner_tracing_db")
        setup_tracing(db=tracing_db, batch_processing=True)
        logger.info(f"Tracing enabled. Database: {config.TRACING_DB_FILE}")
        return tracing_db
    except ImportError as e:
        logger.warning(f"Tracing requested but OpenTelemetry is not installed ({e}). Install the 'tracing' extra.")
        return None
    except Exception as e:
        logger.warning(f"Tracing initialization failed (non-fatal): {e}")
        return None
