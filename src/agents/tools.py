"""Agent tools for the Meal Planner agent.

Groups the chat-facing operations into one Agno Toolkit. Each tool returns a
JSON string with the structured result plus a ``message`` the agent can
relay to the user. Method docstrings are used as tool descriptions.
"""

import json
from typing import Any, Optional

from agno.tools import Toolkit
from pydantic import ValidationError

from src.jobs.service import CartFillService, format_progress_message
from src.mcp_tools.meal_plan import DustMealPlanner, MealPlanError
from src.profiles.profiles import ProfileStore
from src.utils.logger import logger


class MealPlannerTools(Toolkit):
    """Profile, meal plan and cart-fill tools.

    Args:
        cart_service: Cart-fill job API.
        profiles: User preference store.
        meal_planner: Dust client; when None the generate_meal_plan tool is not registered.
    """

    def __init__(
        self,
        cart_service: CartFillService,
        profiles: ProfileStore,
        meal_planner: Optional[DustMealPlanner] = None,
        **kwargs: Any,
    ) -> None:
        self.cart_service = cart_service
        self.profiles = profiles
        self.meal_planner = meal_planner

        tools = [self.get_profile, self.save_preferences]
        if meal_planner is not None:
            tools.append(self.generate_meal_plan)
        tools.extend([self.start_cart_fill, self.check_cart_fill_progress])

        super().__init__(name="meal_planner_tools", tools=tools, **kwargs)

    def get_profile(self, user_id: str) -> str:
        """Retrieve the user's saved preferences and the list of missing fields.

        Call this first in every conversation. Ask about missing fields one at a time.
        If nothing is missing, move on to the meal plan.

        Args:
            user_id: Unique user identifier.

        Returns:
            JSON with 'profile', 'missing_fields' and 'message'.
        """
        return self.profiles.get_profile(user_id).model_dump_json()

    def save_preferences(self, user_id: str, preferences: dict[str, Any]) -> str:
        """Save or update user preferences after the user answers a question.

        Merges new values into the existing profile.

        Args:
            user_id: Unique user identifier.
            preferences: Key-value pairs to save (e.g. {"diet": "vegetarian", "household_size": 2}).

        Returns:
            Confirmation message listing the saved keys.
        """
        if not preferences:
            raise ValueError("preferences must contain at least one field")
        return self.profiles.save_preferences(user_id, preferences)

    async def generate_meal_plan(self, user_id: str, request: Optional[str] = None) -> str:
        """Generate a weekly meal plan and shopping list from the user's saved profile.

        Use once the profile is complete.

        Args:
            user_id: User identifier; the saved profile is read server-side.
            request: Optional adjustment like 'swap Monday lunch' or 'more vegetarian options'.

        Returns:
            JSON with 'meal_plan', 'ingredients' and 'message', or an error message.
        """
        profile = self.profiles.get_profile(user_id).profile
        try:
            result = await self.meal_planner.generate(profile, user_id, request)
        except MealPlanError as e:
            logger.error(f"Meal plan generation failed: {e}", extra={"user_id": user_id})
            return f"Error generating meal plan: {e}"
        return result.model_dump_json()

    async def start_cart_fill(self, products: list[dict[str, str]]) -> str:
        """Start filling the online grocery cart with the given products.

        Browser automation adds products one by one in the background. This returns a
        job id immediately; use check_cart_fill_progress to follow the job.

        Args:
            products: Products to add, e.g. [{"name": "Chicken breast", "quantity": "500g"},
                {"name": "Olive oil", "quantity": "1L"}].

        Returns:
            JSON with 'job_id', 'status' ("started") and 'message'.

        Raises:
            ValueError: If the list is empty or a product has no name or quantity.
        """
        try:
            response = await self.cart_service.start_cart_fill(products)
        except ValidationError as e:
            raise ValueError(
                "products must be a non-empty list of {name, quantity} objects with non-empty values: "
                f"{e.error_count()} validation error(s)"
            ) from e
        return response.model_dump_json()

    def check_cart_fill_progress(self, job_id: str) -> str:
        """Check the progress of a cart fill job started with start_cart_fill.

        Args:
            job_id: Job id returned by start_cart_fill.

        Returns:
            JSON with 'status' (started, running, completed, failed or not_found), 'added_products',
            'failed_products', 'cart_url', 'error', 'current_product' and a 'message' summary.
        """
        progress = self.cart_service.check_cart_fill_progress(job_id)
        payload = progress.model_dump(mode="json")
        payload["message"] = format_progress_message(progress)
        return json.dumps(payload, ensure_ascii=False)
