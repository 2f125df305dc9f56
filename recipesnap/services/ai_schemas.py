"""
Pydantic models for the request and response shapes of the AI flows.

Each flow has an input schema (validated before anything is sent to Claude)
and an output schema (validated against the parsed JSON response).
Field aliases keep the camelCase wire names used by the browser and the
prompt templates.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator


DATA_URI_PATTERN = re.compile(
    r"^data:(?P<media_type>[\w.+-]+/[\w.+-]+);base64,(?P<data>[A-Za-z0-9+/]+={0,2})$"
)

# Image media types Claude accepts as base64 sources
SUPPORTED_MEDIA_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})

PHOTO_DATA_URI_DESCRIPTION = (
    "A photo of food, as a data URI that must include a MIME type and use "
    "Base64 encoding. Expected format: 'data:<mimetype>;base64,<encoded_data>'."
)


# --- Shared input (identify_food_items, generate_recipe) ---


class PhotoInputSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    photo_data_uri: str = Field(
        alias="photoDataUri", description=PHOTO_DATA_URI_DESCRIPTION
    )

    @field_validator("photo_data_uri")
    @classmethod
    def check_data_uri_shape(cls, value: str) -> str:
        match = DATA_URI_PATTERN.match(value)
        if not match:
            raise ValueError(
                "photoDataUri must look like 'data:<mimetype>;base64,<encoded_data>'"
            )
        if match.group("media_type") not in SUPPORTED_MEDIA_TYPES:
            raise ValueError(
                f"Unsupported image type: {match.group('media_type')}. "
                f"Allowed: {sorted(SUPPORTED_MEDIA_TYPES)}"
            )
        return value


class IdentifyFoodItemsInput(PhotoInputSchema):
    pass


class GenerateRecipeInput(PhotoInputSchema):
    pass


# --- Food Identification (identify_food_items) ---


class IdentifyFoodItemsOutput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    food_items: list[str] = Field(
        alias="foodItems",
        description="An array of identified food items in the image.",
    )


# --- Recipe Generation (generate_recipe) ---


class GenerateRecipeOutput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recipe_name: str = Field(alias="recipeName", description="The name of the recipe.")
    ingredients: list[str] = Field(description="The ingredients of the recipe.")
    instructions: list[str] = Field(description="The cooking instructions, in order.")


class Recipe(BaseModel):
    """A recipe accepted for display."""

    model_config = ConfigDict(frozen=True)

    name: str
    ingredients: tuple[str, ...]
    instructions: tuple[str, ...]
