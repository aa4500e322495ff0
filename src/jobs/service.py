"""Cart-fill job API.

Starts cart-fill jobs in the background and serves progress snapshots:

- start_cart_fill(): validate, create the job record, launch the orchestrator
  as a detached asyncio task and return the job id immediately
- check_cart_fill_progress(): read the current snapshot (``not_found`` when
  unknown or expired)

The detached task wraps the whole orchestrator run so that no exception is
lost: anything unexpected is logged and recorded as ``status="failed"``.
"""

import asyncio
import uuid
from collections import deque
from typing import Any, Iterable, Optional

from src.jobs.cart_fill import CartFillOrchestrator
from src.jobs.store import JobStore
from src.models.models import (
    CartFillProgress,
    ProductRequest,
    StartCartFillRequest,
    StartCartFillResponse,
)
from src.utils.logger import job_logger


# Lists longer than this are summarised by count only
MAX_NAMES_IN_SUMMARY = 3

# Most recent job ids remembered for callers that report on their own jobs
MAX_TRACKED_JOB_IDS = 100


class CartFillService:
    """Entry point used by the agent tools and the HTTP routes.

    Args:
        store: Job progress store shared with the orchestrator.
        orchestrator: Runs one job to completion.
        max_tracked_job_ids: How many recent job ids ``started_job_ids`` keeps.
    """

    def __init__(
        self,
        store: JobStore,
        orchestrator: CartFillOrchestrator,
        max_tracked_job_ids: int = MAX_TRACKED_JOB_IDS,
    ) -> None:
        self.store = store
        self.orchestrator = orchestrator
        # Strong references so running jobs are not garbage collected
        self._tasks: set[asyncio.Task] = set()
        # Most recent job ids accepted by this instance, oldest first
        self.started_job_ids: deque[str] = deque(maxlen=max_tracked_job_ids)

    @property
    def pending_jobs(self) -> int:
        return len(self._tasks)

    async def start_cart_fill(
        self, products: Optional[Iterable[ProductRequest | dict[str, Any]]]
    ) -> StartCartFillResponse:
        """Accept a cart-fill request and return its handle without waiting.

        The job record exists before this returns, so the id is immediately
        valid for progress queries.

        Raises:
            ValueError: If the product list is empty or an item has an empty name or quantity
                (pydantic's ValidationError is a ValueError).
        """
        request = StartCartFillRequest(products=list(products or []))

        job_id = str(uuid.uuid4())
        self.store.create(job_id)
        self.started_job_ids.append(job_id)

        task = asyncio.create_task(self._run_detached(job_id, request.products), name=f"cart-fill-{job_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        count = len(request.products)
        job_logger(job_id).info(f"Cart fill job accepted with {count} product(s)")
        return StartCartFillResponse(
            job_id=job_id,
            message=(
                f"Started adding {count} product{'' if count == 1 else 's'} to your cart. "
                f"Job ID: {job_id}. Ask for progress at any time."
            ),
        )

    def check_cart_fill_progress(self, job_id: str) -> CartFillProgress:
        """Return the latest snapshot for ``job_id`` or ``not_found``."""
        job = self.store.get(job_id)
        if job is None:
            return CartFillProgress.not_found()
        return CartFillProgress.from_job(job)

    async def wait_for_pending_jobs(self, timeout: Optional[float] = None) -> None:
        """Wait for every running job to finish (shutdown hook and tests)."""
        if not self._tasks:
            return
        await asyncio.wait(set(self._tasks), timeout=timeout)

    async def _run_detached(self, job_id: str, products: list[ProductRequest]) -> None:
        try:
            await self.orchestrator.run(job_id, products)
        except Exception as e:
            job_logger(job_id).exception(f"Cart fill job crashed: {e}")
            self.store.update(job_id, status="failed", error=str(e) or type(e).__name__, current_product=None)


def _names(products: list[ProductRequest]) -> str:
    return ", ".join(product.name for product in products)


def format_progress_message(progress: CartFillProgress) -> str:
    """Render a snapshot as the short text shown in the chat."""
    added, failed = progress.added_products, progress.failed_products

    if progress.status == "not_found":
        return "Cart fill job not found. It may have expired (jobs are kept for one hour)."
    if progress.status == "failed":
        return f"Failed to fill shopping cart: {progress.error or 'unknown error'}"
    if progress.status in ("started", "running"):
        processed = len(added) + len(failed)
        if progress.current_product:
            return f"Filling your cart: {processed} product(s) processed, now adding {progress.current_product}."
        return f"Filling your cart: {processed} product(s) processed."

    lines = ["Shopping cart update complete:"]
    if added:
        line = f"✅ Successfully added {len(added)} item{'' if len(added) == 1 else 's'}"
        if len(added) <= MAX_NAMES_IN_SUMMARY:
            line += f": {_names(added)}"
        lines.append(line)
    if failed:
        line = f"❌ Failed to add {len(failed)} item{'' if len(failed) == 1 else 's'}"
        if len(failed) <= MAX_NAMES_IN_SUMMARY:
            line += f": {_names(failed)}"
        lines.append(line)
    if not added and not failed:
        lines.append("No products were requested.")
    if progress.cart_url:
        lines.append(f"🛒 Cart: {progress.cart_url}")
    return "\n".join(lines)
