"""Product-name translation using the Gemini API.

Proposes up to 3 ranked search terms in the shop's language for a product
name. Used only to enrich the browser automation task, so every failure
degrades to the original name and nothing is raised to the caller.

Core Functions:
- parse_translation_response(): Lenient JSON parsing into TranslationOutput
- ProductTranslator.translate(): Gemini call with fallback to [product_name]
"""

import asyncio
import json
import re
from typing import Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from src.models.models import TranslationOutput
from src.prompts.prompts import get_translation_prompt
from src.utils.logger import logger


def parse_translation_response(response_text: Optional[str]) -> Optional[TranslationOutput]:
    """Parse the model's reply into a validated TranslationOutput.

    Tries a direct ``json.loads`` first, then extracts the first ``{...}`` block
    in case the model wrapped the JSON in prose or a code fence.

    Returns:
        TranslationOutput, or None if no valid JSON object with 1-3 non-empty
        translations is found.
    """
    if not response_text:
        return None

    parsed = None
    try:
        parsed = json.loads(response_text)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", response_text, re.DOTALL)
        if match:
            try:
                parsed = json.loads(match.group())
            except json.JSONDecodeError as e:
                logger.debug(f"Regex JSON extraction failed: {e}")

    if not isinstance(parsed, dict):
        return None

    translations = parsed.get("translations")
    if isinstance(translations, list):
        # Keep order, drop blanks and duplicates
        cleaned: list[str] = []
        for term in translations:
            if isinstance(term, str) and term.strip() and term.strip() not in cleaned:
                cleaned.append(term.strip())
        translations = cleaned[:3]

    try:
        return TranslationOutput(translations=translations)
    except ValidationError as e:
        logger.debug(f"Translation response failed validation: {e}")
        return None


class ProductTranslator:
    """Translate product names into store-language search terms.

    Args:
        api_key: Gemini API key.
        model: Gemini model id used for translation.
        shop_name: Shop name given to the model as context.
        language: Target language (e.g. "French").
        client: Optional pre-built ``genai.Client`` (tests inject a mock).
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        shop_name: str,
        language: str,
        client: Optional[genai.Client] = None,
    ) -> None:
        self.model = model
        self.shop_name = shop_name
        self.language = language
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def translate(self, product_name: str) -> list[str]:
        """Return 1-3 ranked search terms for ``product_name``.

        Never raises: any API, parsing or validation failure returns
        ``[product_name]``.
        """
        system_instruction, prompt = get_translation_prompt(product_name, self.shop_name, self.language)

        try:
            response = await asyncio.to_thread(
                self.client.models.generate_content,
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=system_instruction,
                    response_mime_type="application/json",
                    temperature=0.0,
                ),
            )
        except Exception as e:
            logger.warning(f'Failed to translate "{product_name}": {e}')
            return [product_name]

        result = parse_translation_response(getattr(response, "text", None))
        if result is None:
            logger.warning(f'Unusable translation response for "{product_name}", using original name')
            return [product_name]

        logger.debug(f'Translated "{product_name}" -> {result.translations}')
        return result.translations
