"""Agent profile repository."""
from typing import List, Optional
from app.services.profiles.base import AgentProfile, DEFAULT_PROFILE_ID, ProfileProvider


class ProfileRepository:
    """Repository for agent profile lookups."""

    def __init__(self, provider: ProfileProvider):
        self.provider = provider

    async def list_profiles(self) -> List[AgentProfile]:
        return await self.provider.list_profiles()

    async def resolve(self, phone_number_id: Optional[str]) -> Optional[AgentProfile]:
        """
        Profile for a phone number, falling back to the default profile.

        Returns:
            None when neither the number nor the default is configured
        """
        if phone_number_id:
            profile = await self.provider.get_profile(phone_number_id)
            if profile:
                return profile
        return await self.provider.get_profile(DEFAULT_PROFILE_ID)
