"""Data models and schemas for the Meal Planner Service.

Defines Pydantic models for cart-fill jobs, tool inputs/outputs and
collaborator results. All models use Pydantic v2 for validation and
OpenAPI schema generation.
"""

from typing import Any, Literal, Optional, Annotated
from pydantic import BaseModel, Field, ConfigDict, field_validator


JobStatus = Literal["started", "running", "completed", "failed"]
ProgressStatus = Literal["started", "running", "completed", "failed", "not_found"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed"})


class ProductRequest(BaseModel):
    """One grocery item to add to the cart.

    The quantity is free text ("500g", "1L", "6 pieces"); the automation agent
    interprets it in natural language so it is only checked for non-emptiness.
    """

    model_config = ConfigDict(frozen=True)

    name: Annotated[str, Field(min_length=1, description="Product name (e.g. 'Chicken breast')")]
    quantity: Annotated[str, Field(min_length=1, description="Quantity with unit (e.g. '500g', '1L')")]

    @field_validator("name", "quantity")
    @classmethod
    def reject_blank(cls, value: str) -> str:
        """Reject values that are empty after stripping; the value itself is kept as sent."""
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class CartFillJob(BaseModel):
    """Stored state of one asynchronous cart-fill run."""

    job_id: str
    status: JobStatus = "started"
    added_products: list[ProductRequest] = Field(default_factory=list)
    failed_products: list[ProductRequest] = Field(default_factory=list)
    current_product: Optional[str] = None
    cart_url: Optional[str] = None
    error: Optional[str] = None
    updated_at: float

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class CartFillProgress(BaseModel):
    """Snapshot returned to polling callers.

    ``not_found`` is distinct from the job's own statuses so callers can tell an
    unknown or expired handle apart from a failed job.
    """

    status: ProgressStatus
    added_products: list[ProductRequest] = Field(default_factory=list)
    failed_products: list[ProductRequest] = Field(default_factory=list)
    cart_url: Optional[str] = None
    error: Optional[str] = None
    current_product: Optional[str] = None

    @classmethod
    def not_found(cls) -> "CartFillProgress":
        return cls(status="not_found")

    @classmethod
    def from_job(cls, job: CartFillJob) -> "CartFillProgress":
        return cls(
            status=job.status,
            added_products=list(job.added_products),
            failed_products=list(job.failed_products),
            cart_url=job.cart_url,
            error=job.error,
            current_product=job.current_product,
        )


class StartCartFillRequest(BaseModel):
    """Input for starting a cart-fill job. At least one product is required."""

    products: Annotated[
        list[ProductRequest],
        Field(min_length=1, description="Products to add to the cart, processed in order"),
    ]


class StartCartFillResponse(BaseModel):
    """Handle returned as soon as a cart-fill job is accepted."""

    job_id: str
    status: Literal["started"] = "started"
    message: str


class AutomationTaskResult(BaseModel):
    """Outcome of one browser automation task that finished successfully."""

    task_id: Optional[str] = None
    status: str
    output: Optional[str] = None
    final_url: Optional[str] = None


class TranslationOutput(BaseModel):
    """Structured response expected from the translation model (1-3 ranked terms)."""

    translations: Annotated[list[str], Field(min_length=1, max_length=3)]


class UserProfileResult(BaseModel):
    """Saved preferences for a user plus the fields still to ask about."""

    profile: dict[str, Any] = Field(default_factory=dict)
    missing_fields: list[str] = Field(default_factory=list)
    message: str


class MealPlanResult(BaseModel):
    """Parsed meal plan with its shopping list."""

    meal_plan: dict[str, Any] = Field(default_factory=dict)
    ingredients: list[Any] = Field(default_factory=list)
    message: str
