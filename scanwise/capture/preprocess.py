"""Conversions between browser payloads, OpenCV images and ``Frame``."""

import base64
import binascii
import logging
import re

import cv2
import numpy as np

from scanwise.schemas.models import Frame

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:(image/[\w.+-]+);base64,(.*)$", re.DOTALL)


def frame_from_payload(payload: str) -> Frame | None:
    """Build a Frame from a data URI or a bare base64 JPEG; None if undecodable."""
    mime_type = "image/jpeg"
    m = _DATA_URI_RE.match(payload or "")
    if m:
        mime_type, payload = m.group(1), m.group(2)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        logger.debug("dropping frame – payload is not valid base64")
        return None
    if not data:
        return None
    return Frame(data=data, mime_type=mime_type)


def bgr_to_frame(img_bgr: np.ndarray, quality: int = 85) -> Frame | None:
    ok, buf = cv2.imencode(".jpg", img_bgr, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        return None
    return Frame(data=buf.tobytes(), mime_type="image/jpeg")


def frame_to_bgr(frame: Frame) -> np.ndarray | None:
    arr = np.frombuffer(frame.data, dtype=np.uint8)
    return cv2.imdecode(arr, cv2.IMREAD_COLOR)
