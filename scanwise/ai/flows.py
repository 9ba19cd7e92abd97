"""Model flows: object detection, product description, medicine information.

Each flow raises when the model gives no output; validation of inputs and
conversion of failures into envelopes happens one level up in
``scanwise.actions``.
"""

import logging
from typing import Optional

from scanwise import settings
from scanwise.ai import prompts
from scanwise.ai.llm_client import complete_json
from scanwise.schemas.models import ClassificationResult, MedicineInfo, ProductDescription

logger = logging.getLogger(__name__)


async def detect_object_from_image(image_data_uri: str, language: Optional[str] = None) -> ClassificationResult:
    content = [
        {"type": "text", "text": prompts.detect_prompt(language)},
        {"type": "image_url", "image_url": {"url": image_data_uri}},
    ]
    payload = await complete_json(
        prompts.DETECT_SYSTEM, content, model=settings.VISION_MODEL, label="detect"
    )
    if not payload:
        raise RuntimeError("The AI failed to detect an object or provide a response.")
    result = ClassificationResult.model_validate(payload)
    logger.debug("detect  object=%r  clues=%r", result.object_name, result.contextual_clues)
    return result


async def generate_product_description(
    product_name: str,
    context_clues: Optional[str] = None,
    language: Optional[str] = None,
) -> ProductDescription:
    payload = await complete_json(
        prompts.DESCRIBE_SYSTEM,
        prompts.describe_prompt(product_name, context_clues, language),
        model=settings.LLM_MODEL,
        label="describe",
    )
    if not payload:
        raise RuntimeError("The AI failed to generate a product description.")
    return ProductDescription.model_validate(payload)


async def get_medicine_info(medicine_name: str, language: Optional[str] = None) -> MedicineInfo:
    payload = await complete_json(
        prompts.MEDICINE_SYSTEM,
        prompts.medicine_prompt(medicine_name, language),
        model=settings.LLM_MODEL,
        label="medicine",
    )
    if not payload:
        raise RuntimeError("The AI failed to provide medicine information.")
    info = MedicineInfo.model_validate(payload)
    # Echo the requested name back so results always line up with the form
    info.medicine_name = medicine_name
    return info
