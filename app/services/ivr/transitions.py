"""Input handling for each IVR step."""
import logging
from typing import Optional

from app.services.call_session.models import CallSession
from app.services.ivr.constants import DOB_PATTERN, DTMF_PATHS, SPEECH_PATHS
from app.services.ivr.stages import CallPath, IvrStep

logger = logging.getLogger(__name__)


class StepTransitionHandler:
    """Validates turn input and records it on the session."""

    @staticmethod
    def classify_intent(speech: str, digits: str) -> Optional[CallPath]:
        """Map a keypad press or free speech to a call path."""
        key = digits.strip()[:1]
        if key in DTMF_PATHS:
            return DTMF_PATHS[key]

        speech_lower = speech.lower()
        for path, pattern in SPEECH_PATHS:
            if pattern.search(speech_lower):
                return path
        return None

    @staticmethod
    def parse_date_of_birth(digits: str) -> Optional[str]:
        entered = digits.strip()
        return entered if DOB_PATTERN.fullmatch(entered) else None

    @staticmethod
    def apply_turn(
        session: CallSession, step: IvrStep, speech: str, digits: str
    ) -> bool:
        """
        Record this turn's input for ``step``.

        Fields already collected are never overwritten.

        Returns:
            True when the step's field is set after the turn
        """
        if session.field_for(step) is not None:
            return True

        spoken = speech.strip()
        if step == IvrStep.DETECT:
            session.path = StepTransitionHandler.classify_intent(spoken, digits)
        elif step == IvrStep.NAME:
            session.caller_name = spoken or None
        elif step == IvrStep.DOB:
            session.date_of_birth = StepTransitionHandler.parse_date_of_birth(digits)
        elif step == IvrStep.WHEN:
            session.preferred_when = spoken or None

        accepted = session.field_for(step) is not None
        if accepted:
            session.attempts = 0
            logger.info(
                f"[IVR] Step '{step}' accepted - CallSid: {session.call_sid}, "
                f"next: {session.next_step() or 'summary'}"
            )
        else:
            session.attempts += 1
            logger.info(
                f"[IVR] Step '{step}' rejected input (attempt {session.attempts}) - "
                f"CallSid: {session.call_sid}"
            )
        return accepted
