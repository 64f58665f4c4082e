"""Twilio voice webhook endpoints for the intake IVR."""
import logging
from fastapi import APIRouter, Request, Form, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.core.config import settings
from app.core.security import verify_twilio_signature
from app.services.call_session.manager import IvrSessionManager, TERMINAL_CALL_STATUSES
from app.services.ivr.constants import ERROR_MESSAGE, UNIDENTIFIED_CALL_MESSAGE
from app.services.speech.twiml import hangup_response
from app.services.speech.voice import VoiceSettings

router = APIRouter(dependencies=[Depends(verify_twilio_signature)])
logger = logging.getLogger(__name__)


def twiml(content: str) -> Response:
    return Response(content=content, media_type="text/xml")


def get_base_url(request: Request) -> str:
    """
    Get the base URL for constructing absolute callback URLs.

    Uses BASE_URL if set (e.g. behind ngrok or a load balancer),
    otherwise constructs from request.
    """
    if settings.base_url:
        return settings.base_url.rstrip("/")
    return str(request.base_url).rstrip("/")


def get_session_manager(db: AsyncSession = Depends(get_db)) -> IvrSessionManager:
    """Get IVR session manager."""
    return IvrSessionManager(db)


@router.post("/voice/ivr")
async def handle_ivr_turn(
    request: Request,
    step: str = Query("detect"),
    CallSid: str = Form(""),
    SpeechResult: str = Form(""),
    Digits: str = Form(""),
    session_manager: IvrSessionManager = Depends(get_session_manager),
):
    """
    Handle one turn of the intake call.

    Twilio posts here on the first ring and after every <Gather>; the step
    to process is carried on the query string.
    """
    logger.info(
        f"[IVR] Turn received - CallSid: {CallSid or 'missing'}, step: {step}, "
        f"speech: {len(SpeechResult)} chars, digits: {len(Digits)}"
    )

    if not CallSid:
        logger.warning("[IVR] Webhook without CallSid, hanging up")
        return twiml(hangup_response(UNIDENTIFIED_CALL_MESSAGE))

    try:
        voice = VoiceSettings.from_query(request.query_params)
        content = await session_manager.process_turn(
            CallSid,
            step,
            speech=SpeechResult,
            digits=Digits,
            voice=voice,
            base_url=get_base_url(request),
        )
        return twiml(content)

    except Exception as e:
        logger.error(
            f"[IVR] Error processing turn - CallSid: {CallSid}, step: {step}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        return twiml(hangup_response(ERROR_MESSAGE))


@router.post("/voice/status")
async def handle_call_status(
    CallSid: str = Form(...),
    CallStatus: str = Form(...),
    session_manager: IvrSessionManager = Depends(get_session_manager),
):
    """
    Handle call status updates from Twilio.

    Ends the session when the call is over so abandoned calls do not linger.
    """
    logger.info(f"[CALL STATUS] Received status update - CallSid: {CallSid}, CallStatus: {CallStatus}")

    try:
        if CallStatus in TERMINAL_CALL_STATUSES:
            await session_manager.end_session(CallSid, status=CallStatus)
            logger.info(f"[CALL STATUS] Session ended - CallSid: {CallSid}, reason: {CallStatus}")
        else:
            logger.debug(
                f"[CALL STATUS] No action needed - CallSid: {CallSid}, CallStatus: {CallStatus}"
            )
    except Exception as e:
        logger.error(
            f"[CALL STATUS] Error handling status update - CallSid: {CallSid}, "
            f"CallStatus: {CallStatus}, Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )

    # Always OK so Twilio does not retry
    return Response(content="OK", media_type="text/plain")
