"""IVR call session manager."""
import logging
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.services.call_session.models import CallSession
from app.services.call_session.store import SessionStore, session_store
from app.services.ivr.constants import (
    ASK_PROMPTS,
    ESCALATION_GOODBYE,
    ESCALATION_MESSAGE,
    FRONTDESK_MESSAGE,
    GATHER_OPTIONS,
    GREETING_PROMPT,
    MAIN_MENU_MESSAGE,
    PATH_LABELS,
    REPROMPTS,
    START_OVER_MESSAGE,
    SUMMARY_TEMPLATE,
)
from app.services.ivr.stages import CallPath, IvrStep
from app.services.ivr.transitions import StepTransitionHandler
from app.services.persistence.calls import CallPersistenceService
from app.services.persistence.intakes import IntakePersistenceService
from app.services.speech.twiml import TwimlRenderer
from app.services.speech.voice import VoiceSettings

logger = logging.getLogger(__name__)

IVR_PATH = "/webhooks/voice/ivr"

# Twilio CallStatus values that mean the call is over
TERMINAL_CALL_STATUSES = {"completed", "failed", "busy", "no-answer", "canceled"}
FAILED_CALL_STATUSES = {"failed", "busy", "no-answer"}


class IvrSessionManager:
    """Runs one webhook turn of the intake call and tracks its session."""

    def __init__(self, db: AsyncSession, store: SessionStore = session_store):
        self.db = db
        self.store = store
        self.call_persistence = CallPersistenceService(db)
        self.intake_persistence = IntakePersistenceService(db)

    def action_url(self, step: IvrStep, voice: VoiceSettings, base_url: str = "") -> str:
        """Callback URL for the next turn, carrying the voice settings."""
        query = urlencode({"step": step.value, **voice.to_query()})
        return f"{base_url}{IVR_PATH}?{query}"

    async def process_turn(
        self,
        call_sid: str,
        step_name: str,
        speech: Optional[str] = None,
        digits: Optional[str] = None,
        voice: Optional[VoiceSettings] = None,
        base_url: str = "",
    ) -> str:
        """
        Handle one turn and return the TwiML to play.

        Args:
            call_sid: Twilio call SID
            step_name: step named on the callback URL
            speech: SpeechResult from Twilio, if any
            digits: Digits from Twilio, if any
            voice: voice settings for this call
            base_url: public base URL for callbacks

        Returns:
            TwiML XML response
        """
        voice = voice or VoiceSettings.from_query({})
        renderer = TwimlRenderer(voice)
        speech = speech or ""
        digits = digits or ""

        try:
            step = IvrStep(step_name)
        except ValueError:
            logger.warning(f"[IVR] Unknown step '{step_name}' - CallSid: {call_sid}")
            return renderer.redirect(
                MAIN_MENU_MESSAGE, self.action_url(IvrStep.DETECT, voice, base_url)
            )

        session, created = self.store.get_or_create(call_sid)
        if created:
            logger.info(f"[IVR] New session - CallSid: {call_sid}, step: {step}")
            await self._record_call_start(call_sid)

        expected = session.next_step()
        if expected is None:
            return await self._summarize(renderer, session)

        if created and step != IvrStep.DETECT:
            # Session expired or was lost mid-call
            logger.warning(
                f"[IVR] No session for step '{step}', restarting - CallSid: {call_sid}"
            )
            return self._ask(
                renderer, IvrStep.DETECT, voice, base_url,
                prefix=START_OVER_MESSAGE,
            )

        if step != expected:
            logger.info(
                f"[IVR] Step '{step}' out of order, asking for '{expected}' - CallSid: {call_sid}"
            )
            return self._ask(renderer, expected, voice, base_url)

        if created and not speech.strip() and not digits.strip():
            greeting = GREETING_PROMPT.format(business=settings.business_name)
            return self._gather(renderer, IvrStep.DETECT, greeting, voice, base_url)

        if not StepTransitionHandler.apply_turn(session, step, speech, digits):
            if 0 < settings.ivr_max_attempts <= session.attempts:
                return await self._escalate(renderer, session)
            return self._gather(renderer, step, REPROMPTS[step], voice, base_url)

        if session.path == CallPath.FRONTDESK:
            return await self._front_desk(renderer, session, FRONTDESK_MESSAGE)

        next_step = session.next_step()
        if next_step is None:
            return await self._summarize(renderer, session)
        return self._ask(renderer, next_step, voice, base_url)

    def _gather(
        self,
        renderer: TwimlRenderer,
        step: IvrStep,
        text: str,
        voice: VoiceSettings,
        base_url: str,
    ) -> str:
        options = dict(GATHER_OPTIONS[step])
        if step == IvrStep.DETECT:
            options["bargeIn"] = "true" if voice.barge_in else "false"
        return renderer.gather(text, self.action_url(step, voice, base_url), options)

    def _ask(
        self,
        renderer: TwimlRenderer,
        step: IvrStep,
        voice: VoiceSettings,
        base_url: str,
        prefix: str = "",
    ) -> str:
        text = f"{prefix} {ASK_PROMPTS[step]}" if prefix else ASK_PROMPTS[step]
        return self._gather(renderer, step, text, voice, base_url)

    async def _summarize(self, renderer: TwimlRenderer, session: CallSession) -> str:
        """Read back the collected fields, store them and hang up."""
        summary = SUMMARY_TEMPLATE.format(
            path=PATH_LABELS.get(session.path, session.path.value),
            name=session.caller_name,
            dob=session.date_of_birth,
            when=session.preferred_when,
        )
        self.store.remove(session.call_sid)
        logger.info(f"[IVR] Flow complete - CallSid: {session.call_sid}, fields: {session.collected()}")
        await self._persist_intake(session)
        return renderer.goodbye(summary, delay_ms=200)

    async def _front_desk(
        self, renderer: TwimlRenderer, session: CallSession, message: str
    ) -> str:
        self.store.remove(session.call_sid)
        await self._mark_call(session.call_sid, "transferred")
        if settings.frontdesk_number:
            logger.info(f"[IVR] Transferring to front desk - CallSid: {session.call_sid}")
            return renderer.transfer(
                message, settings.frontdesk_number, caller_id=settings.twilio_phone_number
            )
        logger.info(f"[IVR] Front desk requested, no number configured - CallSid: {session.call_sid}")
        return renderer.goodbye(message)

    async def _escalate(self, renderer: TwimlRenderer, session: CallSession) -> str:
        """Leave the flow after too many failed attempts."""
        logger.warning(
            f"[IVR] Retry limit reached at step '{session.next_step()}' "
            f"({session.attempts} attempts) - CallSid: {session.call_sid}"
        )
        if settings.ivr_escalation == "frontdesk":
            return await self._front_desk(
                renderer, session, f"{ESCALATION_MESSAGE} {FRONTDESK_MESSAGE}"
            )
        self.store.remove(session.call_sid)
        await self._mark_call(session.call_sid, "abandoned")
        return renderer.goodbye(ESCALATION_GOODBYE)

    async def _record_call_start(self, call_sid: str) -> None:
        try:
            await self.call_persistence.create_call(call_sid, flow="ivr")
        except Exception as e:
            logger.error(
                f"[IVR] Could not record call start - CallSid: {call_sid}, "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            await self.db.rollback()

    async def _mark_call(self, call_sid: str, status: str) -> None:
        try:
            await self.call_persistence.update_call_status(
                call_sid, status, ended_at=datetime.utcnow()
            )
        except Exception as e:
            logger.error(
                f"[IVR] Could not update call status - CallSid: {call_sid}, "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            await self.db.rollback()

    async def _persist_intake(self, session: CallSession) -> None:
        """Store the finished intake; failures are logged, not spoken."""
        try:
            call = await self.call_persistence.create_call(session.call_sid, flow="ivr")
            await self.intake_persistence.create_intake_request(
                call_id=call.id,
                path=session.path.value,
                caller_name=session.caller_name,
                date_of_birth=session.date_of_birth,
                preferred_when=session.preferred_when,
            )
            await self.call_persistence.update_call_status(
                session.call_sid, "completed", ended_at=datetime.utcnow()
            )
        except Exception as e:
            logger.error(
                f"[IVR] Could not persist intake request - CallSid: {session.call_sid}, "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            await self.db.rollback()

    async def end_session(self, call_sid: str, status: str = "completed") -> None:
        """End a call session and close its call record.

        Args:
            call_sid: Twilio call SID
            status: Twilio CallStatus, e.g. "completed", "failed", "busy", "no-answer"
        """
        session = self.store.remove(call_sid)
        if session:
            logger.info(
                f"[IVR] Dropped unfinished session - CallSid: {call_sid}, "
                f"fields: {session.collected()}"
            )

        call_record = await self.call_persistence.get_call_by_sid(call_sid)
        if not call_record:
            return

        db_status = call_record.status
        if db_status == "in_progress":
            if status in FAILED_CALL_STATUSES:
                db_status = "failed"
            elif call_record.flow == "agent":
                db_status = "completed"
            elif await self.call_persistence.count_intake_requests(call_record.id) > 0:
                db_status = "completed"
            else:
                db_status = "abandoned"

        await self.call_persistence.update_call_status(
            call_sid, db_status, ended_at=call_record.ended_at or datetime.utcnow()
        )
