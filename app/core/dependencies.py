"""FastAPI dependencies."""
from app.core.config import settings
from app.services.profiles.repository import ProfileRepository
from app.services.profiles.in_memory_profiles import InMemoryProfileProvider

_profile_repository = ProfileRepository(
    provider=InMemoryProfileProvider(settings.agent_profiles_file)
)


def get_profile_repository() -> ProfileRepository:
    """Get agent profile repository instance."""
    return _profile_repository
