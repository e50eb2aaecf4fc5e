"""
User routes: briefs, schedule, topics and onboarding.
"""

import sqlite3
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from pydantic import BaseModel

from ..config import get_db
from ..database import Database, utcnow
from ..exceptions import ValidationError, require_resource, require_topic, require_user
from ..schedule import InvalidTimezoneError, next_scheduled_time
from ..schemas import (
    BriefItemResponse,
    FollowResponse,
    NextBriefResponse,
    OnboardRequest,
    PreferencesResponse,
    TopicCreateRequest,
    TopicResponse,
)
from ..services import OnboardingServiceDep, TopicServiceDep
from ..tasks import first_brief_task

router = APIRouter(prefix="/users", tags=["users"])


class UserCreateRequest(BaseModel):
    email: str
    name: str = ""


@router.post("")
async def create_user(
    request: UserCreateRequest,
    db: Annotated[Database, Depends(get_db)],
) -> PreferencesResponse:
    """Create a user with default preferences."""
    if "@" not in request.email:
        raise HTTPException(status_code=400, detail="Invalid email address")
    try:
        user_id = db.add_user(request.email, request.name)
    except sqlite3.IntegrityError:
        raise HTTPException(status_code=400, detail="Email already registered")
    return PreferencesResponse.from_db(db.preferences.get(user_id))


@router.get("/{user_id}/briefs")
async def list_briefs(
    user_id: int,
    db: Annotated[Database, Depends(get_db)],
    limit: int = Query(default=50, le=200),
    offset: int = 0,
) -> list[BriefItemResponse]:
    """A user's brief items, newest first."""
    require_user(db.get_user(user_id))
    return [BriefItemResponse.from_db(b) for b in db.briefs.get_user_briefs(user_id, limit, offset)]


@router.get("/{user_id}/next-brief")
async def next_brief(
    user_id: int,
    db: Annotated[Database, Depends(get_db)],
) -> NextBriefResponse:
    """When the user's next digest is scheduled."""
    require_user(db.get_user(user_id))
    prefs = require_resource(db.get_preferences(user_id), "Preferences not found")
    now = utcnow()
    try:
        next_at = next_scheduled_time(prefs.schedule, now)
    except InvalidTimezoneError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return NextBriefResponse(
        next_brief_at=next_at.isoformat(),
        hour=prefs.schedule.hour,
        day_of_week=prefs.schedule.day_of_week,
        timezone=prefs.schedule.timezone,
        seconds_until_next=int((next_at - now).total_seconds()),
    )


@router.get("/{user_id}/topics")
async def list_topics(
    user_id: int,
    service: TopicServiceDep,
) -> list[TopicResponse]:
    require_user(service.db.get_user(user_id))
    topics = service.list_topics(user_id) + service.list_curated()
    return [TopicResponse.from_db(t) for t in topics]


@router.post("/{user_id}/topics")
async def create_topic(
    user_id: int,
    request: TopicCreateRequest,
    service: TopicServiceDep,
) -> TopicResponse:
    """Create a topic owned by the user."""
    require_user(service.db.get_user(user_id))
    try:
        topic = service.create_topic(user_id, request.name, request.tags, request.feed_urls)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TopicResponse.from_db(topic)


@router.post("/{user_id}/topics/{topic_id}/follow")
async def follow_topic(
    user_id: int,
    topic_id: int,
    service: TopicServiceDep,
) -> FollowResponse:
    """Follow a curated topic."""
    require_user(service.db.get_user(user_id))
    require_topic(service.db.topics.get(topic_id))
    created = service.follow_topic(user_id, topic_id)
    return FollowResponse(topic_id=topic_id, links_created=created)


@router.post("/{user_id}/onboard")
async def onboard(
    user_id: int,
    request: OnboardRequest,
    service: OnboardingServiceDep,
    background_tasks: BackgroundTasks,
) -> PreferencesResponse:
    """Save onboarding choices, then build and send the first brief in the background."""
    require_user(service.db.get_user(user_id))
    try:
        prefs = service.onboard_user(
            user_id,
            name=request.name,
            style=request.style,
            hour=request.hour,
            day_of_week=request.day_of_week,
            timezone=request.timezone,
            topic_ids=request.topic_ids,
            language=request.language,
            email_notifications=request.email_notifications,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(first_brief_task, user_id)
    return PreferencesResponse.from_db(prefs)
