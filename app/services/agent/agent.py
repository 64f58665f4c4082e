"""LLM agent service for the conversational phone line."""
import logging
from typing import Optional
from openai import AsyncOpenAI

from app.core.config import settings
from app.services.profiles.base import AgentProfile

logger = logging.getLogger(__name__)

NO_INPUT_REPLY = "Sorry, I didn't hear anything. Could you repeat that?"
EMPTY_COMPLETION_REPLY = "Sorry, I had trouble generating a reply."
FAILURE_REPLY = "I'm having trouble right now. Please try again."


class AgentService:
    """Produces one spoken reply per caller utterance."""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        if client is None and settings.openai_api_key:
            client = AsyncOpenAI(api_key=settings.openai_api_key)
        self.client = client

    async def reply(self, profile: AgentProfile, user_text: str) -> str:
        """
        Reply to the caller using the profile's prompt.

        Without an OpenAI client the caller's words are echoed back so the
        line keeps working.
        """
        user_text = user_text.strip()

        if self.client is None:
            if not user_text:
                return NO_INPUT_REPLY
            return f'You said: "{user_text}". How else can I help?'

        try:
            response = await self.client.chat.completions.create(
                model=settings.agent_model,
                messages=[
                    {"role": "system", "content": profile.system_prompt},
                    {"role": "user", "content": user_text or "Greet the caller."},
                ],
                temperature=settings.agent_temperature,
                max_tokens=settings.agent_max_tokens,
            )
            content = response.choices[0].message.content if response.choices else None
            text = (content or "").strip()
            logger.info(
                f"[AGENT] Reply generated - profile: {profile.phone_number_id}, "
                f"length: {len(text)}"
            )
            return text or EMPTY_COMPLETION_REPLY
        except Exception as e:
            logger.error(
                f"[AGENT] Completion failed - profile: {profile.phone_number_id}, "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            return FAILURE_REPLY
