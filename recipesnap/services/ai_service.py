"""
Claude AI integration service for food identification and recipe generation.

This service provides two AI capabilities, both driven by a photo data URI:
1. Food item identification (IDENTIFY_FOOD_FLOW)
2. Recipe generation (GENERATE_RECIPE_FLOW)

Both go through run_flow(), which validates the input, renders the prompt,
makes exactly one Claude call and validates the JSON response.
"""

import json
import re
import logging

import anthropic
from anthropic import AsyncAnthropic
from pydantic import BaseModel, ValidationError

from recipesnap.config import settings
from recipesnap.services.ai_flows import (
    AIFlow,
    IDENTIFY_FOOD_FLOW,
    GENERATE_RECIPE_FLOW,
    render_prompt,
)


logger = logging.getLogger(__name__)


def _strip_markdown_json(text: str) -> str:
    """Strip markdown code block wrappers from JSON text."""
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()
    return text


def _fix_trailing_commas(text: str) -> str:
    """Fix trailing commas in JSON (common LLM error)."""
    text = re.sub(r",\s*}", "}", text)
    text = re.sub(r",\s*]", "]", text)
    return text


class ClaudeService:
    """Centralized Claude API integration for all AI features."""

    def __init__(self, client: AsyncAnthropic | None = None):
        # One attempt per invocation: SDK-level retries are disabled
        self.client = client or AsyncAnthropic(
            api_key=settings.anthropic_api_key, max_retries=0
        )
        self.vision_model = settings.vision_model

    # =========================================================================
    # SCHEMA-VALIDATED FLOW EXECUTION
    # =========================================================================

    async def run_flow(self, flow: AIFlow, payload: dict) -> tuple[dict, str]:
        """
        Execute an AI flow: validate input, call Claude once, validate output.

        Args:
            flow: The flow definition (schemas + prompt template)
            payload: Input values keyed by wire names, e.g. {"photoDataUri": ...}

        Returns:
            (validated_output_dict, raw_response_text) tuple

        Raises:
            InputValidationError: Payload fails the input schema (no API call made)
            MalformedResponseError: Response is empty or fails the output schema
            ServiceUnavailableError: AI service temporarily down
            RateLimitError: Too many requests
            AIServiceError: Any other request error
        """
        try:
            validated_input = flow.input_schema.model_validate(payload)
        except ValidationError as e:
            raise InputValidationError(f"Invalid input for {flow.name}: {e}") from e

        messages = [
            {
                "role": "user",
                "content": render_prompt(
                    flow.prompt, validated_input.model_dump(by_alias=True)
                ),
            }
        ]

        try:
            return await self._call_with_schema(
                messages=messages,
                schema_class=flow.output_schema,
                request_params={
                    "model": self.vision_model,
                    "max_tokens": flow.max_tokens,
                },
            )
        except anthropic.APIConnectionError as e:
            logger.error("Connection error calling %s: %s", flow.name, e)
            raise ServiceUnavailableError("AI service temporarily unavailable") from e
        except anthropic.RateLimitError as e:
            raise RateLimitError(
                "Too many requests, please try again in 1 minute"
            ) from e
        except anthropic.APIStatusError as e:
            logger.error("%s failed with status %d: %s", flow.name, e.status_code, e.message)
            if e.status_code >= 500:
                raise ServiceUnavailableError("AI service error") from e
            raise AIServiceError(f"Request error: {e.message}") from e

    async def _call_with_schema(
        self,
        messages: list[dict],
        schema_class: type[BaseModel],
        request_params: dict,
        prefill: str | None = "{",
    ) -> tuple[dict, str]:
        """
        Call Claude once and validate the JSON response against a schema.

        Args:
            messages: The messages list
            schema_class: Pydantic model class to validate against
            request_params: Dict of params for client.messages.create
                            (model, max_tokens, ...)
                            NOTE: do NOT include 'messages' - they're passed separately
            prefill: Assistant prefill string, or None for no prefill

        Returns:
            (validated_dict, raw_response_text) tuple

        Raises:
            MalformedResponseError: If the response has no text or fails validation
        """
        call_messages = list(messages)
        if prefill:
            call_messages.append({"role": "assistant", "content": prefill})

        response = await self.client.messages.create(
            messages=call_messages,
            **request_params,
        )

        response_text = ""
        for block in response.content:
            if hasattr(block, "text"):
                response_text += block.text

        if not response_text:
            raise MalformedResponseError("No text content in AI response")

        # Reconstruct JSON (handle prefill)
        raw_text = response_text.strip()
        json_str = (prefill or "") + raw_text

        json_str = _strip_markdown_json(json_str)
        json_str = _fix_trailing_commas(json_str)

        try:
            parsed = json.loads(json_str)
            validated = schema_class.model_validate(parsed)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(
                "AI response schema validation failed for %s: %s",
                schema_class.__name__,
                e,
            )
            raise MalformedResponseError(
                f"AI response failed schema validation: {e}"
            ) from e

        return validated.model_dump(), raw_text

    # =========================================================================
    # FOOD IDENTIFICATION
    # =========================================================================

    async def identify_food_items(self, photo_data_uri: str) -> dict:
        """
        Identify the food items visible in a photo.

        Args:
            photo_data_uri: Image as 'data:<mimetype>;base64,<encoded_data>'

        Returns:
            {
                "food_items": ["apple", "cheese"],
                "raw_response": "...",
                "model": "claude-sonnet-4-5-20250929"
            }

            An empty food_items list means nothing was recognised.

        Raises:
            InputValidationError: photo_data_uri is not a supported data URI
            IdentificationError: Response could not be parsed
            ServiceUnavailableError: AI service temporarily down
            RateLimitError: Too many requests
        """
        try:
            validated, raw_text = await self.run_flow(
                IDENTIFY_FOOD_FLOW, {"photoDataUri": photo_data_uri}
            )
        except MalformedResponseError as e:
            raise IdentificationError("Failed to identify food items") from e

        return {
            "food_items": validated["food_items"],
            "raw_response": raw_text,
            "model": self.vision_model,
        }

    # =========================================================================
    # RECIPE GENERATION
    # =========================================================================

    async def generate_recipe(self, photo_data_uri: str) -> dict:
        """
        Generate a recipe from the food visible in a photo.

        Does not depend on identify_food_items() having run first.

        Returns:
            {
                "recipe_name": "Apple Cheese Toast",
                "ingredients": ["2 slices bread", ...],
                "instructions": ["Toast the bread.", ...],
                "raw_response": "...",
                "model": "claude-sonnet-4-5-20250929"
            }

        Raises:
            InputValidationError: photo_data_uri is not a supported data URI
            MalformedResponseError: Response is missing fields or is not JSON
            ServiceUnavailableError: AI service temporarily down
            RateLimitError: Too many requests
        """
        validated, raw_text = await self.run_flow(
            GENERATE_RECIPE_FLOW, {"photoDataUri": photo_data_uri}
        )

        return {
            "recipe_name": validated["recipe_name"],
            "ingredients": validated["ingredients"],
            "instructions": validated["instructions"],
            "raw_response": raw_text,
            "model": self.vision_model,
        }


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class AIServiceError(Exception):
    """Base class for AI service failures."""

    pass


class ServiceUnavailableError(AIServiceError):
    """AI service is temporarily unavailable."""

    pass


class RateLimitError(AIServiceError):
    """Rate limit exceeded."""

    pass


class InputValidationError(AIServiceError):
    """Flow input failed its schema; nothing was sent."""

    pass


class MalformedResponseError(AIServiceError):
    """Model response is absent or does not match the expected schema."""

    pass


class IdentificationError(AIServiceError):
    """Food identification failed."""

    pass
