"""Twilio webhook signature validation."""
import logging
from fastapi import HTTPException, Request
from twilio.request_validator import RequestValidator

from app.core.config import settings

logger = logging.getLogger(__name__)


def get_public_url(request: Request) -> str:
    """Rebuild the URL Twilio signed, honouring BASE_URL behind proxies."""
    if settings.base_url:
        url = settings.base_url.rstrip("/") + request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        return url

    url = str(request.url)
    if request.headers.get("x-forwarded-proto") == "https":
        url = url.replace("http://", "https://", 1)
    return url


async def verify_twilio_signature(request: Request) -> None:
    """Dependency rejecting webhook calls not signed by Twilio.

    Disabled unless VALIDATE_TWILIO_SIGNATURE is set.
    """
    if not settings.validate_twilio_signature:
        return

    if not settings.twilio_auth_token:
        logger.error("[SECURITY] Signature validation enabled but TWILIO_AUTH_TOKEN is not set")
        raise HTTPException(status_code=500, detail="Twilio auth token not configured")

    form = await request.form()
    url = get_public_url(request)
    signature = request.headers.get("X-Twilio-Signature", "")
    validator = RequestValidator(settings.twilio_auth_token)

    if not validator.validate(url, dict(form), signature):
        logger.warning(f"[SECURITY] Invalid Twilio signature for URL: {url}")
        raise HTTPException(status_code=403, detail="Invalid Twilio signature")
