"""Twilio voice webhook endpoints for the conversational agent line."""
import logging
from urllib.parse import urlencode
from fastapi import APIRouter, Request, Form, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.webhooks.voice import get_base_url, twiml
from app.core.dependencies import get_profile_repository
from app.core.rate_limit import caller_limiter
from app.core.security import verify_twilio_signature
from app.db.database import get_db
from app.services.agent.agent import AgentService
from app.services.persistence.calls import CallPersistenceService
from app.services.profiles.base import AgentProfile
from app.services.profiles.repository import ProfileRepository
from app.services.speech.twiml import escape_xml, say_plain, twiml_response

router = APIRouter(dependencies=[Depends(verify_twilio_signature)])
logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = (
    "This phone number is not configured yet. "
    "Please finish creating a voice agent in your dashboard."
)
BUSY_MESSAGE = "We are receiving too many requests right now. Please call back in a minute. Goodbye!"


def get_agent_service() -> AgentService:
    """Get agent service."""
    return AgentService()


def handle_url(base_url: str, phone_number_id: str) -> str:
    query = urlencode({"phoneNumberId": phone_number_id})
    return f"{base_url}/webhooks/voice/agent/handle?{query}"


def speak_and_hang_up(text: str, voice: str = "Polly.Joanna") -> str:
    return twiml_response(f"{say_plain(text, voice)}\n    <Hangup/>")


def speak_and_listen(
    profile: AgentProfile, lead: str, prompt: str, goodbye: str, action_url: str
) -> str:
    """Say ``lead``, gather speech behind ``prompt``, then say goodbye on silence."""
    return twiml_response(
        f"{say_plain(lead, profile.voice)}\n"
        f'    <Gather input="speech" action="{escape_xml(action_url)}" method="POST" '
        f'language="{escape_xml(profile.language)}" speechTimeout="auto">\n'
        f"    {say_plain(prompt, profile.voice)}\n"
        f"    </Gather>\n"
        f"{say_plain(goodbye, profile.voice)}\n"
        f"    <Hangup/>"
    )


async def record_agent_call(db: AsyncSession, call_sid: str) -> None:
    """Store the call record; the greeting is played even if this fails."""
    try:
        await CallPersistenceService(db).create_call(call_sid, flow="agent")
    except Exception as e:
        logger.error(
            f"[AGENT LINE] Could not record call - CallSid: {call_sid}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        await db.rollback()


@router.post("/voice/agent/incoming")
async def handle_agent_incoming(
    request: Request,
    CallSid: str = Form(""),
    To: str = Form(""),
    CalledSid: str = Form(""),
    profiles: ProfileRepository = Depends(get_profile_repository),
    db: AsyncSession = Depends(get_db),
):
    """Greet the caller and start listening."""
    phone_number_id = CalledSid or To or "default"
    logger.info(
        f"[AGENT LINE] Incoming call - CallSid: {CallSid or 'missing'}, "
        f"phoneNumberId: {phone_number_id}"
    )

    if CallSid:
        await record_agent_call(db, CallSid)

    profile = await profiles.resolve(phone_number_id)
    if profile is None:
        logger.warning(f"[AGENT LINE] No profile configured - phoneNumberId: {phone_number_id}")
        return twiml(speak_and_hang_up(NOT_CONFIGURED_MESSAGE))

    return twiml(
        speak_and_listen(
            profile,
            lead=profile.greeting,
            prompt="I'm listening, please speak after the tone.",
            goodbye="I didn't catch that. Goodbye!",
            action_url=handle_url(get_base_url(request), phone_number_id),
        )
    )


@router.post("/voice/agent/handle")
async def handle_agent_turn(
    request: Request,
    phoneNumberId: str = Query("default"),
    SpeechResult: str = Form(""),
    Digits: str = Form(""),
    From: str = Form(""),
    profiles: ProfileRepository = Depends(get_profile_repository),
    agent_service: AgentService = Depends(get_agent_service),
):
    """Answer one caller utterance and keep listening."""
    user_text = SpeechResult or Digits
    logger.info(
        f"[AGENT LINE] Turn received - phoneNumberId: {phoneNumberId}, "
        f"input length: {len(user_text)}"
    )

    profile = await profiles.resolve(phoneNumberId)
    if profile is None:
        logger.warning(f"[AGENT LINE] No profile configured - phoneNumberId: {phoneNumberId}")
        return twiml(speak_and_hang_up(NOT_CONFIGURED_MESSAGE))

    caller_key = From or (request.client.host if request.client else "unknown")
    if not caller_limiter.allow(caller_key):
        logger.warning(f"[AGENT LINE] Rate limit exceeded - caller: {caller_key}")
        return twiml(speak_and_hang_up(BUSY_MESSAGE, profile.voice))

    reply = await agent_service.reply(profile, user_text)
    return twiml(
        speak_and_listen(
            profile,
            lead=reply,
            prompt="Anything else?",
            goodbye="Thanks for calling. Goodbye!",
            action_url=handle_url(get_base_url(request), phoneNumberId),
        )
    )
