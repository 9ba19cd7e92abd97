"""Capture loop: timer/manual trigger → frame → classify → pending item → details.

One controller per scan session. All work runs on the event loop; the only
suspension points are the camera, the classification call and the detail
call. Each request is tagged with the session's mode/language when it is
issued, and its result is dropped on completion if the tag no longer matches.
"""

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Optional

from scanwise import settings
from scanwise.capture.source import CaptureSource
from scanwise.errors import ScanWiseError, ValidationError
from scanwise.pipeline.clients import ClassificationClient, DetailClient
from scanwise.pipeline.session import Phase, ScanSession
from scanwise.schemas.models import Behavior, ClassificationRequest, DetailRequest, ItemIdentity, Mode

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """Toast for the presentation layer; titles/descriptions are i18n keys."""

    title_key: str
    description_key: Optional[str] = None
    args: tuple = ()
    text: Optional[str] = None
    variant: str = "default"


async def _emit(callback, arg) -> None:
    if callback is None:
        return
    try:
        result = callback(arg)
        if inspect.isawaitable(result):
            await result
    except Exception:
        # A dead listener must not take the capture loop down with it
        logger.exception("listener failed – skipping")


class CaptureLoopController:
    def __init__(
        self,
        source: CaptureSource,
        session: Optional[ScanSession] = None,
        *,
        classifier=None,
        detailer=None,
        notify=None,
        on_change=None,
        interval_s: Optional[float] = None,
    ):
        self.source = source
        self.session = session if session is not None else ScanSession()
        self.classifier = classifier or ClassificationClient()
        self.detailer = detailer or DetailClient()
        self.notify = notify
        self.on_change = on_change
        self.interval_s = settings.SCAN_INTERVAL_S if interval_s is None else interval_s

        self._timer: Optional[asyncio.Task] = None
        self._detect_task: Optional[asyncio.Task] = None
        self._submit_task: Optional[asyncio.Task] = None
        self._closed = False

    # ── lifecycle ─────────────────────────────────────────────────────────

    async def start(self) -> None:
        try:
            await self.source.start()
        except ScanWiseError as e:
            logger.warning("camera unavailable at start: %s", e.reason)
            await _emit(self.notify, Notification(
                "productScanner.cameraAccessDeniedTitle",
                "productScanner.cameraAccessDeniedDescription",
                variant="destructive",
            ))
        else:
            if self.source.used_fallback:
                await _emit(self.notify, Notification(
                    "productScanner.usingDefaultCameraTitle",
                    "productScanner.usingDefaultCameraDescription",
                ))
        self.session.camera_ready = self.source.ready
        self._restart_timer()
        await self._changed()

    async def camera_changed(self) -> None:
        """Re-read camera readiness after the source reported a status change."""
        was_ready = self.session.camera_ready
        self.session.camera_ready = self.source.ready
        if was_ready == self.session.camera_ready:
            return
        if not self.session.camera_ready:
            await _emit(self.notify, Notification(
                "productScanner.cameraAccessDeniedTitle",
                "productScanner.cameraAccessDeniedDescription",
                variant="destructive",
            ))
        elif self.source.used_fallback:
            await _emit(self.notify, Notification(
                "productScanner.usingDefaultCameraTitle",
                "productScanner.usingDefaultCameraDescription",
            ))
        await self._changed()

    async def close(self) -> None:
        """Tear the session down. The capture source is released exactly once."""
        if self._closed:
            return
        self._closed = True
        self._cancel_timer()
        pending = [t for t in (self._detect_task, self._submit_task) if t and not t.done()]
        for t in pending:
            t.cancel()
        try:
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        finally:
            # release() may wait for a frame read still running on a worker thread
            await asyncio.to_thread(self.source.release)
            self.session.camera_ready = False
            logger.info("scan session closed")

    async def wait_idle(self) -> None:
        """Wait for the in-flight detection and submission, if any."""
        tasks = [t for t in (self._detect_task, self._submit_task) if t and not t.done()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ── timer ─────────────────────────────────────────────────────────────

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _restart_timer(self) -> None:
        self._cancel_timer()
        if self._closed or self.session.behavior is not Behavior.AUTO:
            return
        self._timer = asyncio.create_task(self._run_timer())

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            await self.tick()

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    # ── detection ─────────────────────────────────────────────────────────

    def _can_detect(self) -> bool:
        s = self.session
        return (
            not self._closed
            and not s.busy.detecting
            and not s.busy.generating
            and self.source.ready
        )

    def _spawn_detection(self, manual: bool) -> bool:
        if not self._can_detect():
            logger.debug("detection skipped (busy=%s camera=%s)", self.session.busy, self.source.ready)
            return False
        # Claimed before the task runs so a second trigger in the same tick is refused
        self.session.busy.detecting = True
        self._detect_task = asyncio.create_task(self._detect(manual))
        return True

    async def tick(self) -> bool:
        """Timer entry point. Dropped if anything is in flight."""
        if self.session.behavior is not Behavior.AUTO:
            return False
        return self._spawn_detection(manual=False)

    async def trigger(self) -> bool:
        """Manual capture; in auto behavior the next tick is pushed a full period out."""
        started = self._spawn_detection(manual=True)
        if started and self.session.behavior is Behavior.AUTO:
            self._restart_timer()
        return started

    async def _detect(self, manual: bool) -> None:
        s = self.session
        tag = s.tag
        t0 = time.perf_counter()
        result = None
        error = None
        try:
            s.phase = Phase.DETECTING
            s.detection_error = None
            await self._changed()
            frame = await self.source.acquire()
            result = await self.classifier.classify(
                ClassificationRequest(frame=frame, language_hint=tag.language)
            )
        except ScanWiseError as e:
            error = e.reason
        except Exception as e:
            logger.exception("unexpected detection error")
            error = str(e) or e.__class__.__name__
        finally:
            s.busy.detecting = False

        if self._closed:
            return
        if tag != s.tag:
            logger.info("discarding stale detection issued under %s/%s", tag.mode.value, tag.language)
            await self._changed()
            return

        logger.info(
            "detection latency=%.0fms  manual=%s  ok=%s",
            (time.perf_counter() - t0) * 1000, manual, result is not None,
        )
        if result is not None:
            s.phase = Phase.DETECTED
            s.last_classification = result
            s.pending = ItemIdentity(result.object_name, result.contextual_clues)
            s.field_errors = {}
            await _emit(self.notify, Notification(
                "productScanner.objectDetectedTitle",
                "productScanner.objectDetectedDescription",
                args=(result.object_name,),
            ))
        else:
            s.phase = Phase.DETECTION_FAILED
            s.detection_error = error
            # Repeated automatic failures stay in the error panel only
            if manual or s.behavior is Behavior.MANUAL:
                await _emit(self.notify, Notification(
                    "productScanner.detectionErrorTitle", text=error, variant="destructive",
                ))
        await self._changed()

    # ── submission ────────────────────────────────────────────────────────

    async def submit(self, item_name: Optional[str] = None, context_clues: Optional[str] = None) -> bool:
        """Request details for the pending item, or for user-edited fields."""
        s = self.session
        if self._closed or s.busy.detecting or s.busy.generating:
            return False

        name = item_name if item_name is not None else (s.pending.name if s.pending else "")
        clues = context_clues if context_clues is not None else (s.pending.clues if s.pending else None)
        try:
            req = DetailRequest(
                item_name=name, mode=s.mode, context_clues=clues, language_hint=s.language,
            )
        except ValidationError as e:
            s.field_errors = {e.field: e.message}
            await self._changed()
            return False

        s.field_errors = {}
        s.pending = ItemIdentity(req.item_name, req.context_clues)
        s.busy.generating = True
        self._submit_task = asyncio.create_task(self._submit(req))
        return True

    async def _submit(self, req: DetailRequest) -> None:
        s = self.session
        tag = s.tag
        result = None
        error = None
        try:
            s.phase = Phase.SUBMITTING
            s.detail_error = None
            await self._changed()
            result = await self.detailer.fetch_details(req)
        except ScanWiseError as e:
            error = e.reason
        except Exception as e:
            logger.exception("unexpected detail error")
            error = str(e) or e.__class__.__name__
        finally:
            s.busy.generating = False

        if self._closed:
            return
        if tag != s.tag:
            logger.info("discarding stale details issued under %s/%s", tag.mode.value, tag.language)
            await self._changed()
            return

        if result is not None:
            s.phase = Phase.COMPLETED
            s.last_detail = result
        else:
            s.phase = Phase.SUBMISSION_FAILED
            s.last_detail = None
            s.detail_error = error
        await self._changed()

    # ── settings ──────────────────────────────────────────────────────────

    async def set_mode(self, mode) -> None:
        mode = Mode(mode)
        if mode is self.session.mode:
            return
        self.session.mode = mode
        self.session.reset_results()
        self._restart_timer()
        await self._changed()

    async def set_language(self, language: str) -> None:
        if language == self.session.language:
            return
        self.session.language = language
        self.session.reset_results()
        self._restart_timer()
        await self._changed()

    async def set_behavior(self, behavior) -> None:
        behavior = Behavior(behavior)
        if behavior is self.session.behavior:
            return
        self.session.behavior = behavior
        if behavior is Behavior.MANUAL:
            self._cancel_timer()
        else:
            self._restart_timer()
        await self._changed()

    async def _changed(self) -> None:
        await _emit(self.on_change, self.session)
