"""
Service layer for business logic.

Services encapsulate business logic, keeping routes as thin HTTP adapters.

Usage in routes:
    from ..services import TopicServiceDep

    @router.post("/users/{user_id}/topics")
    async def create_topic(user_id: int, service: TopicServiceDep):
        ...
"""

from typing import Annotated

from fastapi import Depends

from ..config import config, state, get_db
from ..database import Database

from .onboarding_service import OnboardingService
from .topic_service import CuratedTopic, TopicService

__all__ = [
    # Services
    "OnboardingService",
    "TopicService",
    "CuratedTopic",
    # Dependency factories
    "get_onboarding_service",
    "get_topic_service",
    # Type aliases for dependency injection
    "OnboardingServiceDep",
    "TopicServiceDep",
]


def get_topic_service(db: Annotated[Database, Depends(get_db)]) -> TopicService:
    """Dependency to get TopicService instance."""
    return TopicService(db)


def get_onboarding_service(db: Annotated[Database, Depends(get_db)]) -> OnboardingService:
    """Dependency to get OnboardingService instance (first-run work happens in tasks)."""
    return OnboardingService(db, delivery=state.delivery, from_addr=config.EMAIL_FROM)


TopicServiceDep = Annotated[TopicService, Depends(get_topic_service)]
OnboardingServiceDep = Annotated[OnboardingService, Depends(get_onboarding_service)]
