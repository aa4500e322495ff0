"""Prompts for the Meal Planner agent and the browser automation tasks.

Provides factory functions that render:
- System instructions for the conversational meal-planner agent
- Natural-language task descriptions handed to the browser automation agent
  (session setup, per-product add-to-cart, cart navigation)
- The translation request sent to the translation model
"""


def get_setup_task_description(delivery_address: str, delivery_slot: str) -> str:
    """Task that clears store interstitials on a fresh session.

    A fresh session may ask for a delivery address or offer to resume a previous
    basket. The agent reports success when nothing is asked.
    """
    return f"""
If you are asked to choose a new address or to resume shopping, choose the option to pick another drive or
another delivery address ("Choisir un autre Drive ou une autre adresse de livraison"), then choose "Livraison",
use "{delivery_address}", wait up to 10 seconds and select the address if asked.
For the delivery date, choose {delivery_slot}.

If you are not asked anything, report success.
""".strip()


def get_product_task_description(
    shop_url: str,
    product_name: str,
    quantity: str,
    search_terms: list[str],
    language: str,
) -> str:
    """Task that searches for one product and adds at least the requested quantity.

    Translated search terms are tried in ranked order before the original name.
    Substitution by a similar product is allowed and still counts as success.

    Args:
        shop_url: Start URL of the shop.
        product_name: Product name as requested by the user.
        quantity: Free-text amount with unit.
        search_terms: Ranked translations of the product name (may be just the original name).
        language: Language the shop's search understands.

    Returns:
        Task description for the automation agent.
    """
    alternates = [term for term in search_terms if term and term != product_name]
    if alternates:
        quoted = '", "'.join(alternates)
        search_hint = (
            f'Make all searches in {language}. The {language} translation of "{product_name}" might be '
            f'"{quoted}". Start searching with them, starting with the first, '
            f'and fall back to "{product_name}" if none of them gives results.'
        )
    else:
        search_hint = f'Search for "{product_name}" as written.'

    return f"""
Go to {shop_url} and search for "{product_name}".
{search_hint}
Add to cart at least {quantity} of the product.
If the exact product cannot be found or cannot be delivered, choose the most similar available product instead.
Report success only if the product is added to the cart.
""".strip()


def get_cart_task_description(shop_url: str) -> str:
    """Task that opens the cart page so its URL is the last visited location."""
    return f"""
Open the shopping cart of {shop_url} (use the cart / basket icon) and stop once the cart page is displayed.
Do not modify the cart.
""".strip()


def get_translation_prompt(product_name: str, shop_name: str, language: str) -> tuple[str, str]:
    """Return (system_instruction, user_prompt) for the translation model."""
    system_instruction = (
        f"You are a translation assistant helping customers find products at {shop_name}, a grocery store. "
        f"When given a product name, provide the 3 most relevant {language} translations that would help "
        f"someone search for this product at {shop_name}. Sort them by relevance. "
        "The translations should be practical search terms that work in a grocery store context. "
        'Return ONLY valid JSON: {"translations": ["term 1", "term 2", "term 3"]}'
    )
    user_prompt = f"Translate {product_name} to {language} for searching at {shop_name} grocery store"
    return system_instruction, user_prompt


def get_system_instructions(shop_name: str, use_meal_plan_tool: bool = True) -> str:
    """Generate system instructions for the meal-planner agent.

    Args:
        shop_name: Grocery store the cart is filled at.
        use_meal_plan_tool: If False, the agent writes the plan itself instead of
            calling generate_meal_plan.

    Returns:
        str: Complete system instructions.
    """
    if use_meal_plan_tool:
        plan_section = """
## Meal Plan

- Once the profile is complete, call `generate_meal_plan` with the user id.
- Pass the user's adjustment request (e.g. "swap Monday lunch", "more vegetarian options") as `request`.
- Present the plan day by day, then the shopping list with quantities.
"""
    else:
        plan_section = """
## Meal Plan

- Once the profile is complete, write a weekly meal plan that respects every saved preference.
- Follow it with a consolidated shopping list, one line per product with a quantity and unit.
"""

    return f"""You are a friendly meal planning assistant. You collect dietary preferences, build a weekly
meal plan and can fill the user's online grocery cart at {shop_name}.

## Preferences

- Start every conversation by calling `get_profile` with the user id.
- Ask about missing fields one at a time, offering 3-5 short options.
- After each answer call `save_preferences` with only the fields the user just gave.
- Known fields: diet, household_size, budget, allergies, cuisine_preferences, cooking_time, days.
{plan_section}
## Filling the Cart

- Only fill the cart after the user confirms the shopping list.
- Call `start_cart_fill` with a list of products, each with a `name` and a `quantity` with unit
  (e.g. {{"name": "Chicken breast", "quantity": "500g"}}).
- The tool returns a job id immediately; filling continues in the background.
- Call `check_cart_fill_progress` with the job id when the user asks how it is going.
- Status "started" or "running" means the job is still working: report the current product.
- Status "completed" can still list failed products: tell the user which ones to add manually and share the cart link.
- Status "failed" means the store could not be reached: share the error and offer to retry.
- Status "not_found" means the job id is unknown or older than one hour.

## Guardrails

- Never claim a product was added unless the progress tool lists it under added products.
- Never invent a job id.
- Keep answers short and focused on meals and groceries.
"""
