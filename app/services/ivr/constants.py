"""Constants for the intake call flow."""
import re

from app.services.ivr.stages import CallPath, IvrStep

# Keypad shortcuts on the main menu
DTMF_PATHS = {
    "1": CallPath.NEW,
    "2": CallPath.RESCHEDULE,
    "3": CallPath.CANCEL,
    "0": CallPath.FRONTDESK,
}

# Checked in order: "reschedule" must win over the "schedule" in NEW
SPEECH_PATHS = [
    (CallPath.RESCHEDULE, re.compile(r"\bre-?\s?schedul|\bmove\b|\bchange\b")),
    (CallPath.CANCEL, re.compile(r"\bcancel")),
    (CallPath.FRONTDESK, re.compile(r"\bfront\s*desk\b|\boperator\b|\brepresentative\b|\breceptionist\b")),
    (CallPath.NEW, re.compile(r"\bnew\b|\bbook|\bschedul|\bappointment\b")),
]

DOB_PATTERN = re.compile(r"[0-9]{8}")  # ASCII keypad digits only

PATH_LABELS = {
    CallPath.NEW: "new appointment",
    CallPath.RESCHEDULE: "reschedule",
    CallPath.CANCEL: "cancellation",
}

MENU_OPTIONS = (
    "For a new appointment press 1, to reschedule press 2, to cancel press 3, "
    "to reach the front desk press 0."
)

GREETING_PROMPT = "Thanks for calling {business}. " + MENU_OPTIONS

ASK_PROMPTS = {
    IvrStep.DETECT: "How can we help you today? " + MENU_OPTIONS,
    IvrStep.NAME: "Great. Please say your full name after the tone.",
    IvrStep.DOB: (
        "Thanks. Please enter your date of birth using the keypad, in eight digits. "
        "For example, May twenty second nineteen ninety is 05221990."
    ),
    IvrStep.WHEN: (
        "Please briefly say your preferred date and time. "
        "For example: next Tuesday afternoon, or October twelfth at ten A M."
    ),
}

REPROMPTS = {
    IvrStep.DETECT: "I did not get that. " + MENU_OPTIONS,
    IvrStep.NAME: "Sorry, I did not catch that. Please say your full name.",
    IvrStep.DOB: "Apologies, that did not look like eight digits. Please try again.",
    IvrStep.WHEN: "Sorry, I did not catch that. Please say a preferred date and time.",
}

GATHER_OPTIONS = {
    IvrStep.DETECT: {"input": "speech dtmf", "numDigits": "1", "timeout": "6", "speechTimeout": "auto"},
    IvrStep.NAME: {"input": "speech", "timeout": "6", "speechTimeout": "auto", "bargeIn": "false"},
    IvrStep.DOB: {"input": "dtmf", "numDigits": "8", "timeout": "7"},
    IvrStep.WHEN: {"input": "speech", "timeout": "6", "speechTimeout": "auto"},
}

SUMMARY_TEMPLATE = (
    'Thank you. I have your {path} request for {name}, date of birth {dob}, '
    'preferred time "{when}". Our team will confirm shortly.'
)

FRONTDESK_MESSAGE = "Please hold while we connect you to the front desk."
ESCALATION_MESSAGE = "Let me get someone to help you."
ESCALATION_GOODBYE = "Sorry, we are having trouble understanding you. Please call back later. Goodbye."
START_OVER_MESSAGE = "Let's start over."
MAIN_MENU_MESSAGE = "Returning to the main menu."
UNIDENTIFIED_CALL_MESSAGE = "We could not identify this call. Goodbye."
ERROR_MESSAGE = "Sorry, an error occurred."
