"""Agent profile provider interface."""
from abc import ABC, abstractmethod
from typing import List, Optional
from pydantic import BaseModel

DEFAULT_PROFILE_ID = "default"


class AgentProfile(BaseModel):
    """How the agent line behaves for one phone number."""

    phone_number_id: str
    name: str = "Voice agent"
    system_prompt: str
    greeting: str = "Hey! How can I help you today?"
    voice: str = "Polly.Joanna"
    language: str = "en-US"


class ProfileProvider(ABC):
    """Abstract base class for agent profile providers."""

    @abstractmethod
    async def list_profiles(self) -> List[AgentProfile]:
        """Get every configured profile."""
        pass

    @abstractmethod
    async def get_profile(self, phone_number_id: str) -> Optional[AgentProfile]:
        """Get the profile configured for exactly this phone number id."""
        pass
