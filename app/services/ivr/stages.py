"""IVR step and call path enumerations."""
from enum import Enum


class IvrStep(str, Enum):
    """Steps of the intake call, in the order they are collected."""

    DETECT = "detect"  # What is the caller calling about
    NAME = "name"  # Caller's full name (speech)
    DOB = "dob"  # Date of birth, eight keypad digits
    WHEN = "when"  # Preferred date and time (speech)

    def __str__(self) -> str:
        """Return the string value of the step."""
        return self.value


STEP_ORDER = [IvrStep.DETECT, IvrStep.NAME, IvrStep.DOB, IvrStep.WHEN]


class CallPath(str, Enum):
    """What the caller wants."""

    NEW = "new"
    RESCHEDULE = "reschedule"
    CANCEL = "cancel"
    FRONTDESK = "frontdesk"

    def __str__(self) -> str:
        return self.value
