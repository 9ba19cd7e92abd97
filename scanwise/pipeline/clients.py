"""Classification and detail clients used by the capture loop.

Both sit on top of the envelope-returning actions and turn an unsuccessful
envelope (or an unusable payload) into a typed failure the controller can
record.
"""

import logging

from scanwise import actions, settings
from scanwise.errors import ClassificationFailed, DetailFetchFailed
from scanwise.i18n.translations import translate
from scanwise.schemas.models import (
    ClassificationRequest,
    ClassificationResult,
    DetailRequest,
    DetailResult,
    GeneralDetail,
    MedicineDetail,
    Mode,
)

logger = logging.getLogger(__name__)

DISCLAIMER_KEY = "productScanner.importantDisclaimerText"


def default_disclaimer(language: str | None) -> str:
    return translate(language or settings.DEFAULT_LANGUAGE, DISCLAIMER_KEY)


class ClassificationClient:
    async def classify(self, req: ClassificationRequest) -> ClassificationResult:
        res = await actions.detect_object_action(req.frame.to_data_uri(), req.language_hint)
        if not res.success or res.data is None:
            raise ClassificationFailed(res.error or "The AI failed to detect an object.")

        result = res.data
        name = (result.object_name or "").strip()
        if not name:
            raise ClassificationFailed("The AI returned an empty object name.")
        clues = (result.contextual_clues or "").strip() or None
        return ClassificationResult(object_name=name, contextual_clues=clues)


class DetailClient:
    async def fetch_details(self, req: DetailRequest) -> DetailResult:
        if req.mode is Mode.MEDICINE:
            return await self._medicine(req)
        return await self._general(req)

    async def _general(self, req: DetailRequest) -> GeneralDetail:
        res = await actions.get_product_description_action(
            req.item_name, req.context_clues, req.language_hint
        )
        if not res.success or res.data is None:
            raise DetailFetchFailed(res.error or "Failed to get product description.")
        description = (res.data.description or "").strip()
        if not description:
            raise DetailFetchFailed("The AI returned an empty description.")
        return GeneralDetail(name=req.item_name, description=description)

    async def _medicine(self, req: DetailRequest) -> MedicineDetail:
        res = await actions.get_medicine_info_action(req.item_name, req.language_hint)
        if not res.success or res.data is None:
            raise DetailFetchFailed(res.error or "Failed to get medicine information.")

        info = res.data
        usage = (info.usage or "").strip()
        if not usage:
            raise DetailFetchFailed("The AI returned no usage information.")

        disclaimer = (info.disclaimer or "").strip()
        if not disclaimer:
            logger.info("medicine response had no disclaimer – using the default")
            disclaimer = default_disclaimer(req.language_hint)

        return MedicineDetail(
            name=(info.medicine_name or "").strip() or req.item_name,
            usage=usage,
            how_to_use=(info.how_to_use or "").strip() or None,
            common_brands=(info.common_brands or "").strip() or None,
            precautions=(info.precautions or "").strip() or None,
            disclaimer=disclaimer,
        )
