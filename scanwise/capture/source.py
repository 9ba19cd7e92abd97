"""Capture sources: where the controller gets its frames from.

``CameraSource`` owns a local OpenCV device. ``PushedFrameSource`` holds the
latest frame a browser pushed over the websocket; the browser does its own
rear-camera → any-camera fallback and reports the outcome.
"""

import asyncio
import logging
import threading

import cv2

from scanwise import settings
from scanwise.capture.preprocess import bgr_to_frame, frame_from_payload
from scanwise.errors import CameraUnavailable
from scanwise.schemas.models import Frame

logger = logging.getLogger(__name__)


class CaptureSource:
    used_fallback = False

    @property
    def ready(self) -> bool:
        raise NotImplementedError

    async def start(self) -> None:
        """Open the device. Raises CameraUnavailable when nothing can be opened."""

    async def acquire(self) -> Frame:
        """Return the current frame as an encoded image."""
        raise NotImplementedError

    def release(self) -> None:
        """Stop the device. Safe to call more than once."""


class CameraSource(CaptureSource):
    def __init__(
        self,
        preferred_index: int = settings.CAMERA_PREFERRED_INDEX,
        fallback_indices=None,
        jpeg_quality: int = settings.JPEG_QUALITY,
    ):
        self.preferred_index = preferred_index
        self.fallback_indices = list(
            settings.CAMERA_FALLBACK_INDICES if fallback_indices is None else fallback_indices
        )
        self.jpeg_quality = jpeg_quality
        self.used_fallback = False
        self._cap = None
        self._released = False
        # Serializes reads on worker threads against release()
        self._lock = threading.Lock()

    @property
    def ready(self) -> bool:
        return self._cap is not None and not self._released

    def _try_open(self, index: int):
        cap = cv2.VideoCapture(index)
        if cap.isOpened():
            return cap
        cap.release()
        return None

    def open(self) -> None:
        if self._released:
            raise CameraUnavailable("capture source already released")
        cap = self._try_open(self.preferred_index)
        if cap is None:
            logger.warning("preferred camera %d unavailable – trying fallbacks", self.preferred_index)
            for index in self.fallback_indices:
                if index == self.preferred_index:
                    continue
                cap = self._try_open(index)
                if cap is not None:
                    self.used_fallback = True
                    logger.info("using fallback camera %d", index)
                    break
        if cap is None:
            raise CameraUnavailable("no capture device could be opened")
        with self._lock:
            if self._released:
                cap.release()
                raise CameraUnavailable("capture source released while opening")
            self._cap = cap

    async def start(self) -> None:
        await asyncio.to_thread(self.open)

    def _read(self) -> Frame:
        with self._lock:
            if not self.ready:
                raise CameraUnavailable("camera not started")
            ok, img = self._cap.read()
        if not ok or img is None:
            raise CameraUnavailable("camera returned no frame")
        frame = bgr_to_frame(img, self.jpeg_quality)
        if frame is None:
            raise CameraUnavailable("could not encode camera frame")
        return frame

    async def acquire(self) -> Frame:
        return await asyncio.to_thread(self._read)

    def release(self) -> None:
        """Stop the device; waits for a read already running on a worker thread."""
        with self._lock:
            if self._released:
                return
            self._released = True
            if self._cap is not None:
                self._cap.release()
                self._cap = None
        logger.info("camera released")


class PushedFrameSource(CaptureSource):
    def __init__(self):
        self._latest: Frame | None = None
        self._camera_ok = False
        self._released = False
        self.used_fallback = False

    @property
    def ready(self) -> bool:
        return self._camera_ok and not self._released

    def set_camera_status(self, ready: bool, used_fallback: bool = False) -> None:
        self._camera_ok = ready
        self.used_fallback = used_fallback
        if not ready:
            self._latest = None

    def push(self, payload: str) -> bool:
        """Store a frame pushed by the client; returns False if it was dropped."""
        if self._released:
            return False
        frame = frame_from_payload(payload)
        if frame is None:
            return False
        self._latest = frame
        # A client that streams frames evidently has a working camera
        self._camera_ok = True
        return True

    async def acquire(self) -> Frame:
        if not self.ready:
            raise CameraUnavailable("camera not available on the client")
        if self._latest is None:
            raise CameraUnavailable("no frame received yet")
        return self._latest

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._latest = None
        self._camera_ok = False
        logger.info("client capture released")
