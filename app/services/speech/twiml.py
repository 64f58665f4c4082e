"""TwiML rendering for voice webhooks."""
from typing import Dict, Optional

from app.services.speech.voice import VoiceSettings

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'


def escape_xml(text: str) -> str:
    """Escape XML special characters."""
    return (
        str(text)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def twiml_response(inner: str) -> str:
    """Wrap verbs in a TwiML document."""
    return f"{XML_HEADER}\n<Response>\n{inner}\n</Response>"


def say_plain(text: str, voice: str = "Polly.Joanna", language: Optional[str] = None) -> str:
    """A <Say> verb without SSML."""
    lang_attr = f' language="{escape_xml(language)}"' if language else ""
    return f'    <Say voice="{escape_xml(voice)}"{lang_attr}>{escape_xml(text)}</Say>'


def hangup_response(text: str, voice: str = "alice") -> str:
    """Speak a line and end the call."""
    return twiml_response(f"{say_plain(text, voice)}\n    <Hangup/>")


class TwimlRenderer:
    """Renders IVR prompts as TwiML using one call's voice settings."""

    def __init__(self, voice: VoiceSettings):
        self.voice = voice

    def ssml(self, text: str, delay_ms: int = 0) -> str:
        """Wrap text in prosody (and a Polly domain when the style has one)."""
        pitch = f"+{self.voice.pitch}" if self.voice.pitch >= 0 else str(self.voice.pitch)
        body = (
            f'<prosody rate="{self.voice.rate}%" pitch="{pitch}st">'
            f"{escape_xml(text)}</prosody>"
        )
        domain = self.voice.domain
        if domain:
            body = f'<amazon:domain name="{domain}">{body}</amazon:domain>'
        if delay_ms:
            body = f'<break time="{delay_ms}ms"/>{body}'
        return body

    def say(self, text: str, delay_ms: int = 0) -> str:
        return (
            f'<Say voice="{escape_xml(self.voice.voice)}" '
            f'language="{escape_xml(self.voice.language)}">'
            f"{self.ssml(text, delay_ms)}</Say>"
        )

    def gather(self, text: str, action_url: str, options: Dict[str, str]) -> str:
        """Prompt and gather input, redirecting to the same action on silence."""
        attrs = dict(options)
        if "speech" in attrs.get("input", ""):
            attrs["language"] = self.voice.language
        attr_str = " ".join(f'{key}="{escape_xml(value)}"' for key, value in attrs.items())
        url = escape_xml(action_url)
        return twiml_response(
            f'    <Gather {attr_str} action="{url}" method="POST">\n'
            f"        {self.say(text)}\n"
            f"    </Gather>\n"
            f'    <Redirect method="POST">{url}</Redirect>'
        )

    def redirect(self, text: str, action_url: str) -> str:
        """Speak a line and move the call to another URL."""
        return twiml_response(
            f"    {self.say(text)}\n"
            f'    <Redirect method="POST">{escape_xml(action_url)}</Redirect>'
        )

    def goodbye(self, text: str, delay_ms: int = 0) -> str:
        """Speak a line, pause, and hang up."""
        return twiml_response(
            f"    {self.say(text, delay_ms)}\n"
            f'    <Pause length="1"/>\n'
            f"    <Hangup/>"
        )

    def transfer(self, text: str, number: str, caller_id: Optional[str] = None) -> str:
        """Speak a line and dial a human."""
        caller_attr = f' callerId="{escape_xml(caller_id)}"' if caller_id else ""
        return twiml_response(
            f"    {self.say(text)}\n"
            f"    <Dial{caller_attr}>{escape_xml(number)}</Dial>"
        )
