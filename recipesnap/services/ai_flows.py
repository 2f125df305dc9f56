"""
Declarative AI flow definitions.

An AIFlow bundles everything needed for one schema-typed Claude invocation:
the input schema, the output schema and the prompt template. Flows are
executed by ClaudeService.run_flow().
"""

import re
from dataclasses import dataclass

from pydantic import BaseModel

from recipesnap.config import settings
from recipesnap.services.ai_schemas import (
    DATA_URI_PATTERN,
    IdentifyFoodItemsInput,
    IdentifyFoodItemsOutput,
    GenerateRecipeInput,
    GenerateRecipeOutput,
)
from recipesnap.services.prompts import IDENTIFY_FOOD_PROMPT, GENERATE_RECIPE_PROMPT


PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*(?P<media>media\s+url=)?(?P<field>\w+)\s*\}\}")


@dataclass(frozen=True)
class AIFlow:
    name: str
    input_schema: type[BaseModel]
    output_schema: type[BaseModel]
    prompt: str
    max_tokens: int = 1024


def render_prompt(template: str, values: dict) -> list[dict]:
    """
    Render a prompt template into Claude message content blocks.

    Text between placeholders is kept as text blocks; {{field}} is substituted
    inline and {{media url=field}} becomes a base64 image block built from the
    field's data URI.

    Args:
        template: Prompt template text
        values: Input values keyed by their wire (alias) names

    Returns:
        List of content blocks for a single user message

    Raises:
        ValueError: If a placeholder has no value or a media value is not a data URI
    """
    blocks: list[dict] = []
    text = ""
    position = 0

    for match in PLACEHOLDER_PATTERN.finditer(template):
        text += template[position : match.start()]
        position = match.end()

        field = match.group("field")
        if field not in values:
            raise ValueError(f"No value for prompt placeholder '{field}'")

        if not match.group("media"):
            text += str(values[field])
            continue

        data_uri = DATA_URI_PATTERN.match(values[field])
        if not data_uri:
            raise ValueError(f"Prompt media field '{field}' is not a data URI")

        if text.strip():
            blocks.append({"type": "text", "text": text.strip()})
        text = ""
        blocks.append(
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": data_uri.group("media_type"),
                    "data": data_uri.group("data"),
                },
            }
        )

    text += template[position:]
    if text.strip():
        blocks.append({"type": "text", "text": text.strip()})

    return blocks


# =============================================================================
# FLOWS
# =============================================================================

IDENTIFY_FOOD_FLOW = AIFlow(
    name="identifyFoodItems",
    input_schema=IdentifyFoodItemsInput,
    output_schema=IdentifyFoodItemsOutput,
    prompt=IDENTIFY_FOOD_PROMPT,
    max_tokens=settings.identify_max_tokens,
)

GENERATE_RECIPE_FLOW = AIFlow(
    name="generateRecipe",
    input_schema=GenerateRecipeInput,
    output_schema=GenerateRecipeOutput,
    prompt=GENERATE_RECIPE_PROMPT,
    max_tokens=settings.recipe_max_tokens,
)
