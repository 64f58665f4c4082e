"""Voice settings carried on IVR callback URLs."""
import math
from typing import Any, Dict, Mapping, Optional
from pydantic import BaseModel

from app.core.config import settings

RATE_RANGE = (60, 140)  # percent
PITCH_RANGE = (-6, 6)  # semitones

# Polly speaking styles; anything else is spoken without a domain
STYLE_DOMAINS = {
    "newscaster": "news",
    "news": "news",
    "conversational": "conversational",
}


def _clamp_number(raw: Any, default: int, bounds: tuple) -> int:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    if math.isnan(value):
        return default
    low, high = bounds
    if math.isinf(value):
        return high if value > 0 else low
    return int(max(low, min(high, round(value))))


class VoiceSettings(BaseModel):
    """How prompts are spoken on a call."""

    language: str = "en-US"
    voice: str = "Polly.Joanna"
    style: str = ""
    rate: int = 100
    pitch: int = 0
    barge_in: bool = False

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> "VoiceSettings":
        """Build settings from webhook query parameters, clamping numbers."""
        barge_in = str(params.get("bargeIn", "")).lower() in ("1", "true")
        return cls(
            language=str(params.get("lang") or settings.ivr_language),
            voice=str(params.get("voice") or settings.ivr_voice),
            style=str(params.get("style") or ""),
            rate=_clamp_number(params.get("rate"), 100, RATE_RANGE),
            pitch=_clamp_number(params.get("pitch"), 0, PITCH_RANGE),
            barge_in=barge_in,
        )

    @property
    def domain(self) -> Optional[str]:
        return STYLE_DOMAINS.get(self.style.lower())

    def to_query(self) -> Dict[str, str]:
        """Query parameters that reproduce these settings on the next turn."""
        return {
            "lang": self.language,
            "voice": self.voice,
            "style": self.style,
            "rate": str(self.rate),
            "pitch": str(self.pitch),
            "bargeIn": "1" if self.barge_in else "0",
        }
