"""
Transcripts router: read and append transcript segments, and a live feed.

The live feed is a WebSocket that receives the full segment list whenever the
meeting's transcript changes. Clients close the socket or send
{"type": "unsubscribe"} to stop it.
"""
import json
import logging
from typing import List

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from models.request_context import RequestContext
from models.transcript import TranscriptAppendRequest, TranscriptSegment
from utils.context_utils import get_current_user, get_services, get_websocket_user
from utils.errors import AuthenticationRequired

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meetings/{meeting_id}/transcript", tags=["transcripts"])


@router.get("", response_model=List[TranscriptSegment])
async def get_transcript(
    meeting_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    return await services.transcript_service.get_transcript(meeting_id)


@router.post("", response_model=List[TranscriptSegment])
async def append_transcript(
    meeting_id: str,
    body: TranscriptAppendRequest,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    """Append segments; is_complete=true also generates the summary."""
    return await services.transcript_service.append_segments(
        meeting_id, body.segments, is_complete=body.is_complete
    )


@router.websocket("/live")
async def live_transcript(websocket: WebSocket, meeting_id: str):
    await websocket.accept()

    try:
        context = get_websocket_user(websocket)
    except AuthenticationRequired as e:
        await websocket.send_json({"type": "error", **e.to_dict()})
        await websocket.close(code=1008)
        return

    services = websocket.app.state.services
    logger.info(f"Live transcript connection established: meeting_id={meeting_id}, user_id={context.user_id}")

    async def push(segments: List[TranscriptSegment]) -> None:
        await websocket.send_json({
            "type": "transcript",
            "meeting_id": meeting_id,
            "segments": [segment.model_dump(mode="json") for segment in segments],
        })

    subscription = None
    try:
        subscription = await services.transcript_service.subscribe(meeting_id, push)
        if subscription is None:
            await websocket.send_json({
                "type": "error",
                "error": "MEETING_ERROR",
                "message": "Invalid meeting id",
            })
            return

        while True:
            message = await websocket.receive_text()
            try:
                data = json.loads(message)
            except json.JSONDecodeError:
                logger.warning(f"Received non-JSON text message: meeting_id={meeting_id}")
                continue
            if not isinstance(data, dict):
                logger.warning(f"Ignoring non-object message: meeting_id={meeting_id}")
                continue
            if data.get("type") == "unsubscribe":
                logger.info(f"Unsubscribe received: meeting_id={meeting_id}")
                break

    except WebSocketDisconnect:
        logger.info(f"Live transcript client disconnected: meeting_id={meeting_id}")
    finally:
        if subscription is not None:
            await subscription.unsubscribe()
        try:
            await websocket.close()
        except RuntimeError:
            logger.debug(f"WebSocket already closed: meeting_id={meeting_id}")
