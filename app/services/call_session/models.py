"""Call session models."""
from typing import Dict, Optional
from pydantic import BaseModel

from app.services.ivr.stages import CallPath, IvrStep, STEP_ORDER


class CallSession(BaseModel):
    """Fields collected so far on one call, keyed by its CallSid."""

    call_sid: str
    path: Optional[CallPath] = None
    caller_name: Optional[str] = None
    date_of_birth: Optional[str] = None  # MMDDYYYY digits
    preferred_when: Optional[str] = None
    attempts: int = 0  # failed attempts at the current step
    created_at: float = 0.0
    updated_at: float = 0.0

    def field_for(self, step: IvrStep) -> Optional[str]:
        """The value collected by a step, if any."""
        values = {
            IvrStep.DETECT: self.path.value if self.path else None,
            IvrStep.NAME: self.caller_name,
            IvrStep.DOB: self.date_of_birth,
            IvrStep.WHEN: self.preferred_when,
        }
        return values[step]

    def next_step(self) -> Optional[IvrStep]:
        """Earliest step still missing its field; None once all are set."""
        for step in STEP_ORDER:
            if self.field_for(step) is None:
                return step
        return None

    def collected(self) -> Dict[str, str]:
        """Collected fields by step name."""
        return {
            step.value: self.field_for(step)
            for step in STEP_ORDER
            if self.field_for(step) is not None
        }
