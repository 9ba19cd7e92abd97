"""Domain types shared by the capture loop, the clients and the API."""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Generic, Literal, Optional, TypeVar, Union

from pydantic import AliasChoices, BaseModel, Field

from scanwise.errors import ValidationError

NAME_MIN_LEN = 2
NAME_MAX_LEN = 100
CLUES_MAX_LEN = 500


class Mode(str, Enum):
    GENERAL = "general"
    MEDICINE = "medicine"


class Behavior(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


@dataclass
class Frame:
    """One encoded still image. Not retained after it is sent."""

    data: bytes
    mime_type: str = "image/jpeg"
    captured_at: float = field(default_factory=time.time)

    def to_data_uri(self) -> str:
        payload = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{payload}"


@dataclass
class ClassificationRequest:
    frame: Frame
    language_hint: Optional[str] = None


@dataclass
class ItemIdentity:
    """Name + clues held between detection and submission."""

    name: str
    clues: Optional[str] = None


def _label(mode: Mode) -> str:
    return "Medicine name" if mode is Mode.MEDICINE else "Product name"


def validate_item_name(name: Optional[str], mode: Mode = Mode.GENERAL) -> str:
    """Return the trimmed name or raise ValidationError naming the violated bound."""
    trimmed = (name or "").strip()
    if len(trimmed) < NAME_MIN_LEN:
        raise ValidationError(
            "item_name", f"{_label(mode)} must be at least {NAME_MIN_LEN} characters."
        )
    if len(trimmed) > NAME_MAX_LEN:
        raise ValidationError(
            "item_name", f"{_label(mode)} must be {NAME_MAX_LEN} characters or less."
        )
    return trimmed


def validate_context_clues(clues: Optional[str]) -> Optional[str]:
    if clues is None:
        return None
    trimmed = clues.strip()
    if len(trimmed) > CLUES_MAX_LEN:
        raise ValidationError(
            "context_clues", f"Context clues must be {CLUES_MAX_LEN} characters or less."
        )
    return trimmed or None


@dataclass
class DetailRequest:
    item_name: str
    mode: Mode = Mode.GENERAL
    context_clues: Optional[str] = None
    language_hint: Optional[str] = None

    def __post_init__(self):
        self.mode = Mode(self.mode)
        self.item_name = validate_item_name(self.item_name, self.mode)
        self.context_clues = validate_context_clues(self.context_clues)


# ── Model outputs ─────────────────────────────────────────────────────────
# Keys are requested in snake_case; camelCase is accepted as well, and the
# HTTP API dumps them as camelCase (by_alias) to match the browser client.

class ClassificationResult(BaseModel):
    object_name: str = Field(
        "",
        validation_alias=AliasChoices("object_name", "objectName"),
        serialization_alias="objectName",
    )
    contextual_clues: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("contextual_clues", "contextualClues"),
        serialization_alias="contextualClues",
    )


class ProductDescription(BaseModel):
    description: str = ""


class MedicineInfo(BaseModel):
    medicine_name: str = Field(
        "",
        validation_alias=AliasChoices("medicine_name", "medicineName"),
        serialization_alias="medicineName",
    )
    usage: str = ""
    how_to_use: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("how_to_use", "howToUse"),
        serialization_alias="howToUse",
    )
    common_brands: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("common_brands", "commonBrands"),
        serialization_alias="commonBrands",
    )
    precautions: Optional[str] = None
    disclaimer: Optional[str] = None


# ── Detail results (tagged union) ─────────────────────────────────────────

class GeneralDetail(BaseModel):
    kind: Literal["general"] = "general"
    name: str
    description: str


class MedicineDetail(BaseModel):
    kind: Literal["medicine"] = "medicine"
    name: str
    usage: str
    how_to_use: Optional[str] = None
    common_brands: Optional[str] = None
    precautions: Optional[str] = None
    disclaimer: str = Field(..., min_length=1)


DetailResult = Annotated[Union[GeneralDetail, MedicineDetail], Field(discriminator="kind")]


T = TypeVar("T")


class ActionResult(BaseModel, Generic[T]):
    """Uniform envelope returned by every action; callers branch on ``success``."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: T) -> "ActionResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ActionResult[T]":
        return cls(success=False, error=error)
