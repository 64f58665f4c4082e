"""In-memory agent profile provider."""
import logging
import yaml
from pathlib import Path
from typing import Dict, List, Optional
from app.services.profiles.base import AgentProfile, DEFAULT_PROFILE_ID, ProfileProvider

logger = logging.getLogger(__name__)


class InMemoryProfileProvider(ProfileProvider):
    """Profiles loaded once from a YAML file."""

    def __init__(self, profiles_file: Optional[str] = None):
        """Initialize with optional profiles file path."""
        if profiles_file is None:
            profiles_file = Path(__file__).parent / "data" / "agents.yaml"
        self.profiles_file = Path(profiles_file)
        self._profiles: Optional[Dict[str, AgentProfile]] = None

    async def _load_profiles(self) -> Dict[str, AgentProfile]:
        """Load profiles from YAML file."""
        if self._profiles is None:
            if not self.profiles_file.exists():
                logger.warning(
                    f"[PROFILES] {self.profiles_file} not found, using built-in default profile"
                )
                profiles = [
                    AgentProfile(
                        phone_number_id=DEFAULT_PROFILE_ID,
                        system_prompt=(
                            "You are a helpful voice agent. Be concise, friendly, "
                            "and ask one question at a time."
                        ),
                    )
                ]
            else:
                with open(self.profiles_file, "r") as f:
                    data = yaml.safe_load(f) or {}
                profiles = [AgentProfile(**item) for item in data.get("profiles", [])]
            self._profiles = {profile.phone_number_id: profile for profile in profiles}
        return self._profiles

    async def list_profiles(self) -> List[AgentProfile]:
        profiles = await self._load_profiles()
        return list(profiles.values())

    async def get_profile(self, phone_number_id: str) -> Optional[AgentProfile]:
        profiles = await self._load_profiles()
        return profiles.get(phone_number_id.strip())
