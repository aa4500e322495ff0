"""Shared fixtures for cart-fill unit tests.

Provides in-process fakes for the browser automation and translation
collaborators, a controllable clock, and a store that records every snapshot
so tests can check progress ordering.
"""

import math
import re
from typing import Any, Callable, Iterable, Optional

import pytest

from src.jobs.cart_fill import CartFillOrchestrator
from src.jobs.service import CartFillService
from src.jobs.store import InMemoryJobStore
from src.mcp_tools.browser_automation import AutomationTaskError, SessionCreationError
from src.models.models import AutomationTaskResult, CartFillJob


CART_URL = "https://shop.example/cart"


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingStore(InMemoryJobStore):
    """InMemoryJobStore that keeps a snapshot after every update."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.snapshots: list[CartFillJob] = []

    def update(self, job_id: str, **fields: Any) -> None:
        super().update(job_id, **fields)
        job = self.get(job_id)
        if job is not None:
            self.snapshots.append(job)


class FakeAutomation:
    """Scriptable browser automation.

    Args:
        failing_products: Product names whose add task always raises.
        flaky_products: Product name -> number of failures before succeeding.
        session_error: Raised by create_session when set.
        setup_error: Raised by the setup task when set.
        cart_error: Raised by the cart navigation task when set.
        cart_url: Final URL reported by the cart navigation task.
    """

    def __init__(
        self,
        failing_products: Iterable[str] = (),
        flaky_products: Optional[dict[str, int]] = None,
        session_error: Optional[Exception] = None,
        setup_error: Optional[Exception] = None,
        cart_error: Optional[Exception] = None,
        cart_url: Optional[str] = CART_URL,
    ) -> None:
        self.remaining_failures: dict[str, float] = {name: math.inf for name in failing_products}
        self.remaining_failures.update(flaky_products or {})
        self.session_error = session_error
        self.setup_error = setup_error
        self.cart_error = cart_error
        self.cart_url = cart_url
        self.tasks: list[tuple[str, int]] = []
        self.product_attempts: list[str] = []
        self.closed_sessions: list[str] = []
        self.on_product: Optional[Callable[[str], None]] = None

    async def create_session(self) -> str:
        if self.session_error is not None:
            raise self.session_error
        return "session-1"

    async def run_task(self, session_id: str, description: str, max_steps: int) -> AutomationTaskResult:
        self.tasks.append((description, max_steps))

        if description.startswith("Go to"):
            name = re.search(r'search for "([^"]+)"', description).group(1)
            self.product_attempts.append(name)
            if self.on_product:
                self.on_product(name)
            if self.remaining_failures.get(name, 0) > 0:
                self.remaining_failures[name] -= 1
                raise AutomationTaskError(f"Could not add {name}")
            return AutomationTaskResult(task_id=f"task-{name}", status="finished")

        if description.startswith("Open the shopping cart"):
            if self.cart_error:
                raise self.cart_error
            return AutomationTaskResult(task_id="task-cart", status="finished", final_url=self.cart_url)

        if self.setup_error:
            raise self.setup_error
        return AutomationTaskResult(task_id="task-setup", status="finished")

    async def close_session(self, session_id: str) -> None:
        self.closed_sessions.append(session_id)

    def product_descriptions(self) -> list[str]:
        return [description for description, _ in self.tasks if description.startswith("Go to")]


class FakeTranslator:
    """Translator returning canned terms, or raising when ``error`` is set."""

    def __init__(self, terms: Optional[dict[str, list[str]]] = None, error: Optional[Exception] = None) -> None:
        self.terms = terms or {}
        self.error = error
        self.calls: list[str] = []

    async def translate(self, product_name: str) -> list[str]:
        self.calls.append(product_name)
        if self.error:
            raise self.error
        return self.terms.get(product_name, [product_name])


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> RecordingStore:
    return RecordingStore(ttl_seconds=3600, clock=clock)


@pytest.fixture
def make_automation():
    """Factory for FakeAutomation with per-test failure scripting."""
    return FakeAutomation


@pytest.fixture
def automation() -> FakeAutomation:
    return FakeAutomation()


@pytest.fixture
def translator() -> FakeTranslator:
    return FakeTranslator(terms={"Milk": ["lait", "lait demi-écrémé"]})


@pytest.fixture
def make_orchestrator(store, translator):
    def _make(automation: FakeAutomation, **kwargs: Any) -> CartFillOrchestrator:
        options = {
            "shop_url": "https://shop.example",
            "language": "French",
            "delivery_address": "1 Rue de Test, 75001 Paris",
            "delivery_slot": "tomorrow after 10:00 AM",
        }
        options.update(kwargs)
        return CartFillOrchestrator(store=store, automation=automation, translator=translator, **options)

    return _make


@pytest.fixture
def orchestrator(make_orchestrator, automation) -> CartFillOrchestrator:
    return make_orchestrator(automation)


@pytest.fixture
def service(store, orchestrator) -> CartFillService:
    return CartFillService(store=store, orchestrator=orchestrator)


@pytest.fixture
def session_error() -> SessionCreationError:
    return SessionCreationError("Could not start browser session: profile not found")
