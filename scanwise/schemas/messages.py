from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional

from scanwise.schemas.models import Behavior, Mode

# ── WebSocket: client → server ──

class FrameIn(BaseModel):
    type: Literal["frame"]
    image: str                      # data URI or bare base64 JPEG
    ts: Optional[int] = None

class CameraIn(BaseModel):
    type: Literal["camera"]
    ready: bool
    used_fallback: bool = False

class TriggerIn(BaseModel):
    type: Literal["trigger"]

class SubmitIn(BaseModel):
    type: Literal["submit"]
    item_name: Optional[str] = None
    context_clues: Optional[str] = None

class SetModeIn(BaseModel):
    type: Literal["set_mode"]
    mode: Mode

class SetLanguageIn(BaseModel):
    type: Literal["set_language"]
    language: Literal["en", "mr"]

class SetBehaviorIn(BaseModel):
    type: Literal["set_behavior"]
    behavior: Behavior

# ── WebSocket: server → client ──

class StateOut(BaseModel):
    type: Literal["state"] = "state"
    session: dict

class ToastOut(BaseModel):
    type: Literal["toast"] = "toast"
    title: str
    description: Optional[str] = None
    variant: Literal["default", "destructive"] = "default"

# ── HTTP action bodies (camelCase accepted, matching the browser form) ──

class DetectBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    image_data_uri: Optional[str] = Field(None, alias="imageDataUri")
    language: Optional[str] = None

class DescribeBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    product_name: Optional[str] = Field(None, alias="productName")
    context_clues: Optional[str] = Field(None, alias="contextClues")
    language: Optional[str] = None

class MedicineBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    medicine_name: Optional[str] = Field(None, alias="medicineName")
    language: Optional[str] = None
