"""WebSocket endpoint for live recordings.

Protocol:
    - Client sends JSON ``RecordingCommand`` frames
      (``start`` with the browser's permission outcome, ``stop``, ``discard``,
      ``save``) and binary frames holding encoded audio chunks.
    - Server sends JSON ``RecordingEvent`` frames: ``state`` after each
      command and when a save begins, ``tick`` every recorded second, ``saved``
      with the attachment URL and ``error`` with the failure detail. Errors
      keep the socket open. A successful save closes it with 4409.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from audio_memory.controllers.dependencies import (
    OptionalUserDep,
    PreviewsDep,
    RepositoryDep,
    TimerFactoryDep,
    UploadControllerDep,
)
from audio_memory.errors import AlreadyAttachedError, AudioMemoryError, NotFoundError
from audio_memory.pipelines.audio import ClientMicrophone, RecordingController
from audio_memory.views import RecordingCommand, RecordingEvent

router = APIRouter(tags=["recording"])

logger = logging.getLogger(__name__)

CLOSE_UNAUTHENTICATED = 4401
CLOSE_NOT_FOUND = 4404
CLOSE_ALREADY_ATTACHED = 4409


def _event(controller: RecordingController, kind: str, **extra: object) -> RecordingEvent:
    preview = controller.preview
    return RecordingEvent(
        type=kind,
        state=controller.state.value,
        elapsed=controller.elapsed,
        display=controller.elapsed_display,
        preview_url=preview.url if preview is not None else None,
        **extra,
    )


async def _dispatch(
    controller: RecordingController,
    microphone: ClientMicrophone,
    command: RecordingCommand,
) -> RecordingEvent:
    if command.action == "start":
        microphone.report_permission(command.permission == "granted")
        await controller.start()
    elif command.action == "stop":
        await controller.stop()
    elif command.action == "discard":
        controller.discard()
    else:
        attachment = await controller.save()
        return _event(controller, "saved", attachment_url=attachment.url)
    return _event(controller, "state")


async def _drain(events: asyncio.Queue, sender: asyncio.Task) -> None:
    joined = asyncio.ensure_future(events.join())
    await asyncio.wait({joined, sender}, return_when=asyncio.FIRST_COMPLETED)
    joined.cancel()


async def _reject(websocket: WebSocket, detail: str, code: str, close_code: int) -> None:
    await websocket.send_json(
        RecordingEvent(type="error", state="idle", detail=detail, code=code).model_dump(
            mode="json"
        )
    )
    await websocket.close(code=close_code)


@router.websocket("/qr/{token}/record")
async def record_ws(
    websocket: WebSocket,
    token: str,
    user: OptionalUserDep,
    repository: RepositoryDep,
    uploader: UploadControllerDep,
    previews: PreviewsDep,
    timer_factory: TimerFactoryDep,
) -> None:
    """Drive one recording session for one code over a WebSocket."""

    await websocket.accept()

    if user is None:
        await _reject(websocket, "Sign in required", "unauthenticated", CLOSE_UNAUTHENTICATED)
        return

    code = await repository.get_code_by_token(token)
    if code is None:
        await _reject(
            websocket,
            NotFoundError.default_detail,
            NotFoundError.code,
            CLOSE_NOT_FOUND,
        )
        return

    if await repository.get_attachment_for_code(code.id) is not None:
        await _reject(
            websocket,
            AlreadyAttachedError.default_detail,
            AlreadyAttachedError.code,
            CLOSE_ALREADY_ATTACHED,
        )
        return

    events: asyncio.Queue[RecordingEvent] = asyncio.Queue()
    microphone = ClientMicrophone()

    def on_tick(_elapsed: int) -> None:
        events.put_nowait(_event(controller, "tick"))

    controller = RecordingController(
        microphone,
        uploader,
        previews,
        code_id=code.id,
        uploader_email=user.email,
        timer_factory=timer_factory,
        on_tick=on_tick,
        on_saving=lambda: events.put_nowait(_event(controller, "state")),
    )

    async def send_events() -> None:
        while True:
            event = await events.get()
            try:
                await websocket.send_json(event.model_dump(mode="json"))
            finally:
                events.task_done()

    sender = asyncio.create_task(send_events())
    events.put_nowait(_event(controller, "state"))
    logger.info("Recording socket opened code=%s user=%s", code.token, user.email)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            chunk = message.get("bytes")
            if chunk is not None:
                microphone.push(chunk)
                continue

            try:
                command = RecordingCommand.model_validate_json(message.get("text") or "")
            except ValidationError:
                events.put_nowait(
                    _event(controller, "error", detail="Unknown command.", code="invalid_command")
                )
                continue

            try:
                event = await _dispatch(controller, microphone, command)
            except AudioMemoryError as exc:
                event = _event(controller, "error", detail=exc.detail, code=exc.code)
            events.put_nowait(event)

            if event.type == "saved":
                await _drain(events, sender)
                if not sender.done():
                    await websocket.close(code=CLOSE_ALREADY_ATTACHED)
                break
    except WebSocketDisconnect:
        pass
    finally:
        await controller.close()
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
        logger.info("Recording socket closed code=%s", code.token)
