"""Cart-fill orchestrator.

Drives one job from ``started`` to a terminal state:

1. Create one browser session (the only fatal step: failure marks the job ``failed``)
2. Run the setup task that clears address / delivery-slot prompts (failure tolerated)
3. For each product, in order: translate, add to cart, record added or failed
4. Navigate to the cart to capture its URL (failure tolerated)
5. Mark the job ``completed``

Per-item failures never abort the loop, and a job whose items all failed is
still ``completed``: ``failed`` is reserved for a job that never started
shopping. Every progress update carries the full accumulated arrays because
the store replaces fields instead of appending.
"""

import asyncio
from typing import Optional, Protocol, Sequence

from src.jobs.store import JobStore
from src.models.models import AutomationTaskResult, ProductRequest
from src.prompts.prompts import (
    get_cart_task_description,
    get_product_task_description,
    get_setup_task_description,
)
from src.utils.logger import job_logger


class Translator(Protocol):
    async def translate(self, product_name: str) -> list[str]: ...


class Automation(Protocol):
    async def create_session(self) -> str: ...

    async def run_task(self, session_id: str, description: str, max_steps: int) -> AutomationTaskResult: ...

    async def close_session(self, session_id: str) -> None: ...


class CartFillOrchestrator:
    """Sequentially add products to a shop cart through browser automation.

    One orchestrator instance can serve many jobs; all per-job state lives in
    local variables and the store.

    Args:
        store: Job progress store receiving every update.
        automation: Browser automation collaborator.
        translator: Search-term translator (expected not to raise).
        shop_url: Shop start URL used in task descriptions.
        language: Language the shop's search understands.
        delivery_address: Address used when the shop asks for one.
        delivery_slot: Delivery slot preference used when the shop asks for one.
        setup_max_steps: Step budget of the setup task.
        product_max_steps: Step budget of each add-to-cart task.
        cart_max_steps: Step budget of the cart navigation task.
        product_max_attempts: Attempts per product before recording it as failed.
        retry_delays: Seconds to wait before each repeated attempt.
    """

    def __init__(
        self,
        store: JobStore,
        automation: Automation,
        translator: Translator,
        shop_url: str,
        language: str,
        delivery_address: str,
        delivery_slot: str,
        setup_max_steps: int = 10,
        product_max_steps: int = 4,
        cart_max_steps: int = 3,
        product_max_attempts: int = 1,
        retry_delays: Optional[list[float]] = None,
    ) -> None:
        self.store = store
        self.automation = automation
        self.translator = translator
        self.shop_url = shop_url
        self.language = language
        self.delivery_address = delivery_address
        self.delivery_slot = delivery_slot
        self.setup_max_steps = setup_max_steps
        self.product_max_steps = product_max_steps
        self.cart_max_steps = cart_max_steps
        self.product_max_attempts = max(1, product_max_attempts)
        self.retry_delays = retry_delays or [1, 2, 4]

    async def run(self, job_id: str, products: Sequence[ProductRequest]) -> None:
        """Process ``products`` for ``job_id`` and leave the job in a terminal state.

        Only session creation failure ends the job as ``failed``. Other
        collaborator errors are absorbed per step. Unexpected errors propagate
        to the caller, which is responsible for marking the job failed.
        """
        log = job_logger(job_id)
        products = list(products)

        try:
            session_id = await self.automation.create_session()
        except Exception as e:
            log.error(f"Cart fill setup failed: {e}")
            self.store.update(job_id, status="failed", error=str(e) or type(e).__name__, current_product=None)
            return

        try:
            await self._run_setup(session_id, job_id)

            added: list[ProductRequest] = []
            failed: list[ProductRequest] = []

            for index, product in enumerate(products):
                self.store.update(job_id, status="running", current_product=product.name)

                if await self._add_product(session_id, job_id, product):
                    added.append(product)
                else:
                    failed.append(product)

                next_product = products[index + 1].name if index + 1 < len(products) else None
                self.store.update(
                    job_id,
                    added_products=list(added),
                    failed_products=list(failed),
                    current_product=next_product,
                )

            cart_url = await self._capture_cart_url(session_id, job_id)

            self.store.update(
                job_id,
                status="completed",
                added_products=list(added),
                failed_products=list(failed),
                cart_url=cart_url,
                current_product=None,
            )
            log.info(f"Cart fill completed: {len(added)} added, {len(failed)} failed, cart_url={cart_url}")
        finally:
            await self.automation.close_session(session_id)

    async def _run_setup(self, session_id: str, job_id: str) -> None:
        description = get_setup_task_description(self.delivery_address, self.delivery_slot)
        try:
            await self.automation.run_task(session_id, description, self.setup_max_steps)
            job_logger(job_id).info("Session setup task finished")
        except Exception as e:
            job_logger(job_id).warning(f"Session setup task failed, continuing with products: {e}")

    async def _search_terms(self, product: ProductRequest, job_id: str) -> list[str]:
        try:
            terms = await self.translator.translate(product.name)
        except Exception as e:
            job_logger(job_id).warning(f'Translation failed for "{product.name}": {e}')
            return [product.name]
        return terms or [product.name]

    async def _add_product(self, session_id: str, job_id: str, product: ProductRequest) -> bool:
        """Try to add one product. Returns False instead of raising on failure."""
        log = job_logger(job_id)
        log_extra = {"product": product.name}
        search_terms = await self._search_terms(product, job_id)
        description = get_product_task_description(
            shop_url=self.shop_url,
            product_name=product.name,
            quantity=product.quantity,
            search_terms=search_terms,
            language=self.language,
        )

        for attempt in range(self.product_max_attempts):
            try:
                result = await self.automation.run_task(session_id, description, self.product_max_steps)
                log.info(f'Added "{product.name}" ({product.quantity}): {result.status}', extra=log_extra)
                return True
            except Exception as e:
                if attempt < self.product_max_attempts - 1:
                    delay = self.retry_delays[attempt] if attempt < len(self.retry_delays) else self.retry_delays[-1]
                    log.warning(
                        f'Adding "{product.name}" failed, retrying in {delay}s '
                        f"(attempt {attempt + 1}/{self.product_max_attempts}): {e}",
                        extra=log_extra,
                    )
                    await asyncio.sleep(delay)
                else:
                    log.warning(f'Failed to add "{product.name}": {e}', extra=log_extra)
        return False

    async def _capture_cart_url(self, session_id: str, job_id: str) -> Optional[str]:
        description = get_cart_task_description(self.shop_url)
        try:
            result = await self.automation.run_task(session_id, description, self.cart_max_steps)
        except Exception as e:
            job_logger(job_id).warning(f"Cart navigation failed, no cart URL: {e}")
            return None
        return result.final_url
