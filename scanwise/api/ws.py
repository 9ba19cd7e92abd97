import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from scanwise.capture.source import PushedFrameSource
from scanwise.i18n.translations import translate
from scanwise.pipeline.controller import CaptureLoopController, Notification
from scanwise.pipeline.session import ScanSession
from scanwise.schemas.messages import (
    CameraIn,
    FrameIn,
    SetBehaviorIn,
    SetLanguageIn,
    SetModeIn,
    StateOut,
    SubmitIn,
    ToastOut,
    TriggerIn,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def render_toast(n: Notification, language: str) -> ToastOut:
    description = n.text
    if description is None and n.description_key:
        description = translate(language, n.description_key, *n.args)
    return ToastOut(
        title=translate(language, n.title_key),
        description=description,
        variant=n.variant,
    )


@router.websocket("/ws")
async def ws_endpoint(ws: WebSocket):
    await ws.accept()
    logger.info("WebSocket connected")

    source = PushedFrameSource()
    session = ScanSession()

    async def send_state(s: ScanSession):
        await ws.send_json(StateOut(session=s.snapshot()).model_dump())

    async def send_toast(n: Notification):
        await ws.send_json(render_toast(n, session.language).model_dump())

    controller = CaptureLoopController(
        source, session, notify=send_toast, on_change=send_state,
    )
    await controller.start()
    try:
        while True:
            data = await ws.receive_json()
            msg_type = data.get("type")

            try:
                if msg_type == "frame":
                    frame_in = FrameIn(**data)
                    was_ready = source.ready
                    if source.push(frame_in.image) and not was_ready:
                        await controller.camera_changed()

                elif msg_type == "camera":
                    cam = CameraIn(**data)
                    source.set_camera_status(cam.ready, cam.used_fallback)
                    await controller.camera_changed()

                elif msg_type == "trigger":
                    TriggerIn(**data)
                    await controller.trigger()

                elif msg_type == "submit":
                    sub = SubmitIn(**data)
                    await controller.submit(sub.item_name, sub.context_clues)

                elif msg_type == "set_mode":
                    await controller.set_mode(SetModeIn(**data).mode)

                elif msg_type == "set_language":
                    await controller.set_language(SetLanguageIn(**data).language)

                elif msg_type == "set_behavior":
                    await controller.set_behavior(SetBehaviorIn(**data).behavior)

                else:
                    logger.debug("ignoring message type %r", msg_type)

            except PydanticValidationError as e:
                logger.warning("malformed %s message: %s", msg_type, e.errors()[:1])
            except Exception:
                # Never let a single bad message kill the connection
                logger.exception("Error processing %s message – skipping", msg_type)

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected")
    finally:
        await controller.close()
