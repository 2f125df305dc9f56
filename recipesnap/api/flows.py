"""JSON endpoints exposing the AI flows with their camelCase wire contracts."""

import logging

from fastapi import APIRouter, Body, Depends, HTTPException

from recipesnap.api.dependencies import get_ai_service
from recipesnap.services.ai_schemas import GenerateRecipeOutput, IdentifyFoodItemsOutput
from recipesnap.services.ai_service import (
    ClaudeService,
    IdentificationError,
    InputValidationError,
    MalformedResponseError,
    RateLimitError,
    ServiceUnavailableError,
    AIServiceError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["flows"])


def _to_http_error(e: AIServiceError) -> HTTPException:
    if isinstance(e, InputValidationError):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, (MalformedResponseError, IdentificationError)):
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, RateLimitError):
        return HTTPException(status_code=429, detail=str(e))
    if isinstance(e, ServiceUnavailableError):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


@router.post("/identify-food")
async def identify_food(
    payload: dict = Body(...),
    ai_service: ClaudeService = Depends(get_ai_service),
):
    """{photoDataUri} -> {foodItems}"""
    try:
        result = await ai_service.identify_food_items(payload.get("photoDataUri"))
    except AIServiceError as e:
        logger.warning("identify-food failed: %s", e)
        raise _to_http_error(e)

    return IdentifyFoodItemsOutput(food_items=result["food_items"]).model_dump(by_alias=True)


@router.post("/generate-recipe")
async def generate_recipe(
    payload: dict = Body(...),
    ai_service: ClaudeService = Depends(get_ai_service),
):
    """{photoDataUri} -> {recipeName, ingredients, instructions}"""
    try:
        result = await ai_service.generate_recipe(payload.get("photoDataUri"))
    except AIServiceError as e:
        logger.warning("generate-recipe failed: %s", e)
        raise _to_http_error(e)

    return GenerateRecipeOutput(
        recipe_name=result["recipe_name"],
        ingredients=result["ingredients"],
        instructions=result["instructions"],
    ).model_dump(by_alias=True)
