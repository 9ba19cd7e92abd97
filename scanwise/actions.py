"""Validated entry points for the model flows.

Every action checks its inputs before dispatch and returns an
``ActionResult`` envelope instead of raising; callers branch on ``success``.
"""

import logging
from typing import Optional

from scanwise.ai import flows
from scanwise.errors import ValidationError
from scanwise.schemas.models import (
    ActionResult,
    ClassificationResult,
    MedicineInfo,
    Mode,
    ProductDescription,
    validate_context_clues,
    validate_item_name,
)

logger = logging.getLogger(__name__)


def _service_error(action: str, exc: Exception) -> str:
    logger.warning("%s failed: %s", action, exc)
    return f"AI service error: {exc}"


async def get_product_description_action(
    product_name: Optional[str],
    context_clues: Optional[str] = None,
    language: Optional[str] = None,
) -> ActionResult[ProductDescription]:
    try:
        name = validate_item_name(product_name, Mode.GENERAL)
        clues = validate_context_clues(context_clues)
    except ValidationError as e:
        return ActionResult.fail(e.message)

    try:
        result = await flows.generate_product_description(name, clues, language)
    except Exception as e:
        return ActionResult.fail(_service_error("get_product_description_action", e))
    return ActionResult.ok(result)


async def detect_object_action(
    image_data_uri: Optional[str],
    language: Optional[str] = None,
) -> ActionResult[ClassificationResult]:
    if not image_data_uri or not image_data_uri.startswith("data:image/"):
        return ActionResult.fail("Invalid image data provided.")

    try:
        result = await flows.detect_object_from_image(image_data_uri, language)
    except Exception as e:
        return ActionResult.fail(_service_error("detect_object_action", e))
    return ActionResult.ok(result)


async def get_medicine_info_action(
    medicine_name: Optional[str],
    language: Optional[str] = None,
) -> ActionResult[MedicineInfo]:
    try:
        name = validate_item_name(medicine_name, Mode.MEDICINE)
    except ValidationError as e:
        return ActionResult.fail(e.message)

    try:
        result = await flows.get_medicine_info(name, language)
    except Exception as e:
        return ActionResult.fail(_service_error("get_medicine_info_action", e))
    return ActionResult.ok(result)
