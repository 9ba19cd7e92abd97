from fastapi import APIRouter

from scanwise import actions
from scanwise.schemas.messages import DescribeBody, DetectBody, MedicineBody

router = APIRouter(prefix="/api")

# Bodies are accepted in either key style; responses use camelCase keys.


@router.post("/detect")
async def detect(body: DetectBody):
    res = await actions.detect_object_action(body.image_data_uri, body.language)
    return res.model_dump(by_alias=True)


@router.post("/describe")
async def describe(body: DescribeBody):
    res = await actions.get_product_description_action(
        body.product_name, body.context_clues, body.language
    )
    return res.model_dump(by_alias=True)


@router.post("/medicine")
async def medicine(body: MedicineBody):
    res = await actions.get_medicine_info_action(body.medicine_name, body.language)
    return res.model_dump(by_alias=True)
