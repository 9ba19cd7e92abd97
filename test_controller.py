"""Capture loop controller tests.

Everything below the controller is faked: the capture source hands out a
fixed JPEG stub, and the classifier/detailer can be held open with an
asyncio.Event to simulate a slow model call.

Run:  pytest test_controller.py
"""

import asyncio
import threading

import numpy as np

import scanwise.capture.source as source_mod
from scanwise.capture.source import CameraSource, CaptureSource
from scanwise.errors import CameraUnavailable, ClassificationFailed, DetailFetchFailed
from scanwise.pipeline.controller import CaptureLoopController
from scanwise.pipeline.session import Phase, ScanSession
from scanwise.schemas.models import (
    Behavior,
    ClassificationResult,
    Frame,
    GeneralDetail,
    MedicineDetail,
    Mode,
)

LONG_INTERVAL = 60.0   # timer never fires inside a test unless we want it to


# ── fakes ─────────────────────────────────────────────────────────────────

class FakeSource(CaptureSource):
    def __init__(self, ready=True, fail_start=False, used_fallback=False):
        self._ready = ready
        self.fail_start = fail_start
        self.used_fallback = used_fallback
        self.release_calls = 0

    @property
    def ready(self):
        return self._ready and self.release_calls == 0

    async def start(self):
        if self.fail_start:
            self._ready = False
            raise CameraUnavailable("no capture device could be opened")

    async def acquire(self):
        return Frame(data=b"\xff\xd8fake-jpeg")

    def release(self):
        self.release_calls += 1


class FakeClassifier:
    def __init__(self, name="Paracetamol 500mg", error=None, gate=None):
        self.name = name
        self.error = error
        self.gate = gate
        self.calls = []

    async def classify(self, req):
        self.calls.append(req)
        if self.gate is not None:
            await self.gate.wait()
        if self.error:
            raise ClassificationFailed(self.error)
        return ClassificationResult(object_name=self.name, contextual_clues="blister pack of tablets")


class FakeDetailer:
    def __init__(self, error=None, gate=None):
        self.error = error
        self.gate = gate
        self.calls = []

    async def fetch_details(self, req):
        self.calls.append(req)
        if self.gate is not None:
            await self.gate.wait()
        if self.error:
            raise DetailFetchFailed(self.error)
        if req.mode is Mode.MEDICINE:
            return MedicineDetail(
                name=req.item_name, usage="Pain relief", disclaimer="Not medical advice."
            )
        return GeneralDetail(name=req.item_name, description="A useful thing.")


def _controller(session=None, source=None, classifier=None, detailer=None, interval_s=LONG_INTERVAL):
    toasts = []
    c = CaptureLoopController(
        source or FakeSource(),
        session or ScanSession(),
        classifier=classifier or FakeClassifier(),
        detailer=detailer or FakeDetailer(),
        notify=toasts.append,
        interval_s=interval_s,
    )
    return c, toasts


async def _settle(n=5):
    for _ in range(n):
        await asyncio.sleep(0)


# ── detection ─────────────────────────────────────────────────────────────

def test_trigger_populates_pending_item_and_notifies():
    async def scenario():
        c, toasts = _controller(ScanSession(behavior=Behavior.MANUAL))
        await c.start()
        assert await c.trigger()
        await c.wait_idle()

        s = c.session
        assert s.phase is Phase.DETECTED
        assert s.pending.name == "Paracetamol 500mg"
        assert s.pending.clues == "blister pack of tablets"
        assert s.detection_error is None
        assert toasts[-1].title_key == "productScanner.objectDetectedTitle"
        assert toasts[-1].args == ("Paracetamol 500mg",)
        await c.close()

    asyncio.run(scenario())


def test_language_hint_is_passed_to_classifier():
    async def scenario():
        clf = FakeClassifier()
        c, _ = _controller(ScanSession(language="mr"), classifier=clf)
        await c.start()
        await c.trigger()
        await c.wait_idle()
        assert clf.calls[0].language_hint == "mr"
        await c.close()

    asyncio.run(scenario())


def test_no_second_classification_while_detecting():
    async def scenario():
        gate = asyncio.Event()
        clf = FakeClassifier(gate=gate)
        c, _ = _controller(classifier=clf)
        await c.start()

        assert await c.trigger()
        await _settle()
        assert c.session.busy.detecting
        assert not await c.trigger()
        assert not await c.tick()
        await _settle()
        assert len(clf.calls) == 1

        gate.set()
        await c.wait_idle()
        assert not c.session.busy.detecting
        assert await c.trigger()
        await c.wait_idle()
        assert len(clf.calls) == 2
        await c.close()

    asyncio.run(scenario())


def test_tick_dropped_while_submitting():
    async def scenario():
        gate = asyncio.Event()
        clf = FakeClassifier()
        c, _ = _controller(classifier=clf, detailer=FakeDetailer(gate=gate))
        await c.start()
        await c.trigger()
        await c.wait_idle()

        assert await c.submit()
        await _settle()
        assert c.session.phase is Phase.SUBMITTING
        assert not await c.tick()
        assert len(clf.calls) == 1

        gate.set()
        await c.wait_idle()
        await c.close()

    asyncio.run(scenario())


def test_stale_detection_discarded_after_mode_switch():
    async def scenario():
        gate = asyncio.Event()
        c, toasts = _controller(
            ScanSession(mode=Mode.MEDICINE, language="en"),
            classifier=FakeClassifier(gate=gate),
        )
        await c.start()
        await c.trigger()
        await _settle()

        await c.set_mode(Mode.GENERAL)
        gate.set()
        await c.wait_idle()

        s = c.session
        assert s.pending is None
        assert s.last_classification is None
        assert s.phase is Phase.IDLE
        assert not any(t.title_key == "productScanner.objectDetectedTitle" for t in toasts)
        await c.close()

    asyncio.run(scenario())


def test_stale_detection_discarded_after_language_switch():
    async def scenario():
        gate = asyncio.Event()
        c, _ = _controller(classifier=FakeClassifier(gate=gate))
        await c.start()
        await c.trigger()
        await _settle()

        await c.set_language("mr")
        gate.set()
        await c.wait_idle()
        assert c.session.pending is None
        await c.close()

    asyncio.run(scenario())


def test_automatic_failures_do_not_notify():
    async def scenario():
        c, toasts = _controller(classifier=FakeClassifier(error="AI service error: boom"))
        await c.start()
        for _ in range(3):
            assert await c.tick()
            await c.wait_idle()

        assert c.session.phase is Phase.DETECTION_FAILED
        assert c.session.detection_error == "AI service error: boom"
        assert toasts == []
        await c.close()

    asyncio.run(scenario())


def test_manual_failures_notify_each_time():
    async def scenario():
        c, toasts = _controller(
            ScanSession(behavior=Behavior.MANUAL),
            classifier=FakeClassifier(error="AI service error: boom"),
        )
        await c.start()
        for _ in range(2):
            await c.trigger()
            await c.wait_idle()

        assert len(toasts) == 2
        assert all(t.variant == "destructive" for t in toasts)
        assert toasts[0].text == "AI service error: boom"
        await c.close()

    asyncio.run(scenario())


def test_detection_error_cleared_on_next_attempt():
    async def scenario():
        clf = FakeClassifier(error="nope")
        c, _ = _controller(classifier=clf)
        await c.start()
        await c.trigger()
        await c.wait_idle()
        assert c.session.detection_error == "nope"

        clf.error = None
        await c.trigger()
        await c.wait_idle()
        assert c.session.detection_error is None
        assert c.session.phase is Phase.DETECTED
        await c.close()

    asyncio.run(scenario())


# ── timer ─────────────────────────────────────────────────────────────────

def test_auto_mode_ticks_and_manual_mode_stops_them():
    async def scenario():
        clf = FakeClassifier()
        c, _ = _controller(classifier=clf, interval_s=0.05)
        await c.start()
        assert c.timer_active

        await asyncio.sleep(0.32)
        assert len(clf.calls) >= 3

        await c.set_behavior(Behavior.MANUAL)
        await c.wait_idle()
        assert not c.timer_active
        seen = len(clf.calls)
        await asyncio.sleep(0.3)
        assert len(clf.calls) == seen
        await c.close()

    asyncio.run(scenario())


def test_switching_to_manual_keeps_results():
    async def scenario():
        c, _ = _controller()
        await c.start()
        await c.trigger()
        await c.wait_idle()
        await c.set_behavior(Behavior.MANUAL)
        assert c.session.pending.name == "Paracetamol 500mg"
        await c.close()

    asyncio.run(scenario())


def test_mode_switch_resets_results_and_restarts_timer():
    async def scenario():
        c, _ = _controller()
        await c.start()
        await c.trigger()
        await c.wait_idle()
        await c.submit()
        await c.wait_idle()
        old_timer = c._timer

        await c.set_mode(Mode.MEDICINE)
        s = c.session
        assert s.pending is None and s.last_detail is None
        assert s.detection_error is None and s.detail_error is None
        assert c.timer_active and c._timer is not old_timer
        await c.close()

    asyncio.run(scenario())


def test_mode_switch_in_manual_behavior_keeps_timer_off():
    async def scenario():
        c, _ = _controller(ScanSession(behavior=Behavior.MANUAL))
        await c.start()
        await c.set_mode(Mode.MEDICINE)
        assert not c.timer_active
        await c.close()

    asyncio.run(scenario())


# ── submission ────────────────────────────────────────────────────────────

def test_submit_general_item():
    async def scenario():
        det = FakeDetailer()
        c, _ = _controller(detailer=det)
        await c.start()
        await c.trigger()
        await c.wait_idle()

        assert await c.submit()
        await c.wait_idle()
        s = c.session
        assert s.phase is Phase.COMPLETED
        assert s.last_detail.kind == "general"
        assert det.calls[0].item_name == "Paracetamol 500mg"
        assert det.calls[0].context_clues == "blister pack of tablets"
        assert det.calls[0].mode is Mode.GENERAL
        await c.close()

    asyncio.run(scenario())


def test_submit_uses_edited_fields_and_active_mode():
    async def scenario():
        det = FakeDetailer()
        c, _ = _controller(ScanSession(mode=Mode.MEDICINE, language="mr"), detailer=det)
        await c.start()
        assert await c.submit("  Ibuprofen ", "tablets")
        await c.wait_idle()

        req = det.calls[0]
        assert req.item_name == "Ibuprofen"
        assert req.mode is Mode.MEDICINE
        assert req.language_hint == "mr"
        assert c.session.last_detail.disclaimer
        await c.close()

    asyncio.run(scenario())


def test_submit_refused_without_a_name():
    async def scenario():
        det = FakeDetailer()
        c, _ = _controller(detailer=det)
        await c.start()
        assert not await c.submit()
        assert c.session.field_errors == {
            "item_name": "Product name must be at least 2 characters."
        }
        assert det.calls == []
        await c.close()

    asyncio.run(scenario())


def test_submit_refused_for_overlong_clues():
    async def scenario():
        det = FakeDetailer()
        c, _ = _controller(detailer=det)
        await c.start()
        assert not await c.submit("Mug", "x" * 501)
        assert "context_clues" in c.session.field_errors
        assert det.calls == []
        await c.close()

    asyncio.run(scenario())


def test_submit_refused_while_detecting():
    async def scenario():
        gate = asyncio.Event()
        det = FakeDetailer()
        c, _ = _controller(classifier=FakeClassifier(gate=gate), detailer=det)
        await c.start()
        await c.trigger()
        await _settle()
        assert not await c.submit("Ibuprofen")
        gate.set()
        await c.wait_idle()
        assert det.calls == []
        await c.close()

    asyncio.run(scenario())


def test_submission_failure_clears_previous_detail():
    async def scenario():
        det = FakeDetailer()
        c, _ = _controller(detailer=det)
        await c.start()
        await c.submit("Coffee Mug")
        await c.wait_idle()
        assert c.session.last_detail is not None

        det.error = "AI service error: quota"
        await c.submit("Coffee Mug")
        await c.wait_idle()
        s = c.session
        assert s.phase is Phase.SUBMISSION_FAILED
        assert s.last_detail is None
        assert s.detail_error == "AI service error: quota"
        await c.close()

    asyncio.run(scenario())


def test_stale_details_discarded_after_mode_switch():
    async def scenario():
        gate = asyncio.Event()
        c, _ = _controller(detailer=FakeDetailer(gate=gate))
        await c.start()
        await c.submit("Coffee Mug")
        await _settle()
        await c.set_mode(Mode.MEDICINE)
        gate.set()
        await c.wait_idle()
        assert c.session.last_detail is None
        assert c.session.phase is Phase.IDLE
        await c.close()

    asyncio.run(scenario())


# ── camera lifecycle ──────────────────────────────────────────────────────

def test_camera_unavailable_at_start():
    async def scenario():
        src = FakeSource(fail_start=True)
        c, toasts = _controller(source=src)
        await c.start()
        assert not c.session.camera_ready
        assert toasts[0].title_key == "productScanner.cameraAccessDeniedTitle"
        assert not await c.trigger()
        await c.close()
        assert src.release_calls == 1

    asyncio.run(scenario())


def test_fallback_camera_notifies_at_start():
    async def scenario():
        c, toasts = _controller(source=FakeSource(used_fallback=True))
        await c.start()
        assert c.session.camera_ready
        assert [t.title_key for t in toasts] == ["productScanner.usingDefaultCameraTitle"]
        assert toasts[0].variant == "default"
        await c.close()

    asyncio.run(scenario())


def test_preferred_camera_starts_without_toast():
    async def scenario():
        c, toasts = _controller(source=FakeSource())
        await c.start()
        assert c.session.camera_ready
        assert toasts == []
        await c.close()

    asyncio.run(scenario())


def test_camera_becoming_ready_on_fallback_notifies():
    async def scenario():
        src = FakeSource(ready=False, used_fallback=True)
        c, toasts = _controller(ScanSession(behavior=Behavior.MANUAL), source=src)
        await c.start()
        assert not c.session.camera_ready
        toasts.clear()

        src._ready = True
        await c.camera_changed()
        assert c.session.camera_ready
        assert [t.title_key for t in toasts] == ["productScanner.usingDefaultCameraTitle"]

        # Same readiness reported again: nothing new
        await c.camera_changed()
        assert len(toasts) == 1
        await c.close()

    asyncio.run(scenario())


def test_losing_camera_notifies_and_blocks_detection():
    async def scenario():
        src = FakeSource()
        changes = []
        c, toasts = _controller(ScanSession(behavior=Behavior.MANUAL), source=src)
        c.on_change = lambda s: changes.append(s.camera_ready)
        await c.start()
        assert c.session.camera_ready

        src._ready = False
        await c.camera_changed()
        assert not c.session.camera_ready
        assert changes[-1] is False
        assert toasts[-1].title_key == "productScanner.cameraAccessDeniedTitle"
        assert toasts[-1].description_key == "productScanner.cameraAccessDeniedDescription"
        assert toasts[-1].variant == "destructive"
        assert not await c.trigger()
        await c.close()

    asyncio.run(scenario())


def test_close_releases_exactly_once():
    async def scenario():
        src = FakeSource()
        c, _ = _controller(source=src)
        await c.close()
        await c.close()
        assert src.release_calls == 1

    asyncio.run(scenario())


def test_close_abandons_in_flight_detection():
    async def scenario():
        src = FakeSource()
        c, _ = _controller(source=src, classifier=FakeClassifier(gate=asyncio.Event()))
        await c.start()
        await c.trigger()
        await _settle()
        await c.close()
        assert src.release_calls == 1
        assert not c.timer_active
        assert c.session.pending is None

    asyncio.run(scenario())


class _BlockingCapture:
    """cv2.VideoCapture stand-in whose read() holds until ``unblock`` is set."""

    def __init__(self):
        self.read_started = threading.Event()
        self.unblock = threading.Event()
        self.reading = False
        self.released_during_read = False
        self.release_calls = 0

    def isOpened(self):
        return True

    def read(self):
        self.reading = True
        self.read_started.set()
        self.unblock.wait(5.0)
        self.reading = False
        return True, np.zeros((8, 8, 3), dtype=np.uint8)

    def release(self):
        self.release_calls += 1
        if self.reading:
            self.released_during_read = True


def test_close_waits_for_running_camera_read(monkeypatch):
    cap = _BlockingCapture()
    monkeypatch.setattr(source_mod.cv2, "VideoCapture", lambda index: cap)

    async def scenario():
        src = CameraSource(preferred_index=0, fallback_indices=[])
        c, _ = _controller(ScanSession(behavior=Behavior.MANUAL), source=src)
        await c.start()
        assert await c.trigger()
        assert await asyncio.to_thread(cap.read_started.wait, 2.0)

        timer = threading.Timer(0.1, cap.unblock.set)
        timer.start()
        try:
            await c.close()
        finally:
            timer.cancel()
            cap.unblock.set()

        assert cap.release_calls == 1
        assert not cap.released_during_read
        assert not src.ready

    asyncio.run(scenario())
