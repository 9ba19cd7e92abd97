#!/usr/bin/env python3
"""Run the capture loop against a local webcam.

Usage:
    python scan_local.py [--mode general|medicine] [--language en|mr] [--manual]

Auto behavior captures every SCAN_INTERVAL_S seconds. In manual behavior,
press ENTER to capture. After each detection the details for the detected
item are requested and printed. Ctrl+C quits.
"""

import argparse
import asyncio
import logging
import sys

from scanwise import settings
from scanwise.capture.source import CameraSource
from scanwise.i18n.translations import translate
from scanwise.pipeline.controller import CaptureLoopController, Notification
from scanwise.pipeline.session import Phase, ScanSession
from scanwise.schemas.models import Behavior, Mode


def _print_detail(session: ScanSession):
    d = session.last_detail
    lang = session.language
    print("\n" + "=" * 60)
    print(f"  {d.name}")
    print("=" * 60)
    if d.kind == "general":
        print(translate(lang, "productScanner.aiGeneratedDescriptionLabel"))
        print(d.description)
        return
    print(translate(lang, "productScanner.typicalUsageLabel"), d.usage)
    if d.how_to_use:
        print(translate(lang, "productScanner.howToUseLabel"), d.how_to_use)
    if d.common_brands:
        print(translate(lang, "productScanner.commonBrandNamesLabel"), d.common_brands)
    if d.precautions:
        print(translate(lang, "productScanner.generalPrecautionsLabel"), d.precautions)
    print(f"\n[{translate(lang, 'productScanner.importantDisclaimerTitle')}] {d.disclaimer}")


async def run(args) -> int:
    session = ScanSession(
        mode=Mode(args.mode),
        language=args.language,
        behavior=Behavior.MANUAL if args.manual else Behavior.AUTO,
    )
    controller = None
    last_phase = None

    def on_toast(n: Notification):
        desc = n.text or (translate(session.language, n.description_key, *n.args) if n.description_key else "")
        print(f"  [{translate(session.language, n.title_key)}] {desc}")

    async def on_change(s: ScanSession):
        nonlocal last_phase
        if s.phase == last_phase:
            return
        last_phase = s.phase
        if s.phase is Phase.DETECTED:
            await controller.submit()
        elif s.phase is Phase.COMPLETED:
            _print_detail(s)
        elif s.phase is Phase.DETECTION_FAILED:
            print(f"  detection failed: {s.detection_error}")
        elif s.phase is Phase.SUBMISSION_FAILED:
            print(f"  details failed: {s.detail_error}")

    controller = CaptureLoopController(
        CameraSource(), session, notify=on_toast, on_change=on_change,
    )
    await controller.start()
    if not session.camera_ready:
        await controller.close()
        return 1

    try:
        if session.behavior is Behavior.MANUAL:
            while True:
                await asyncio.to_thread(input, "Press ENTER to capture… ")
                await controller.trigger()
                await controller.wait_idle()
                await controller.wait_idle()  # detail request spawned from on_change
        else:
            print(f"Auto capture every {controller.interval_s:.0f}s – Ctrl+C to quit")
            await asyncio.Event().wait()
    finally:
        await controller.close()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--mode", choices=[m.value for m in Mode], default=Mode.MEDICINE.value)
    parser.add_argument("--language", choices=settings.SUPPORTED_LANGUAGES, default=settings.DEFAULT_LANGUAGE)
    parser.add_argument("--manual", action="store_true", help="capture on ENTER instead of a timer")
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s  %(name)-30s  %(levelname)-7s  %(message)s",
        datefmt="%H:%M:%S",
    )
    for _noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(_noisy).setLevel(logging.WARNING)

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
