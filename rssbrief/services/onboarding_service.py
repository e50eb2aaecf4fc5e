"""
Onboarding service: first-run setup for a new user.

``onboard_user`` validates and stores preferences and follows the chosen
topics. ``run_first_brief`` then warms the user's feeds, compiles their
first briefs and sends them in a welcome email; routes schedule it as a
background task.
"""

import logging
from dataclasses import dataclass, field

from ..briefs import BriefCompiler, ProcessedBrief
from ..database import Database, DBPreferences
from ..delivery import DeliveryAdapter, EmailMessage
from ..exceptions import PipelineError, ValidationError
from ..refresh import FeedRefreshEngine
from ..results import Err
from ..schedule import InvalidTimezoneError, get_zone
from ..summarizer import SummaryStyle
from .topic_service import TopicService

logger = logging.getLogger(__name__)


@dataclass
class FirstBriefResult:
    user_id: int
    briefs: list[ProcessedBrief] = field(default_factory=list)
    delivery_id: str | None = None
    error: str | None = None


def render_welcome(name: str, briefs: list[ProcessedBrief]) -> str:
    lines = [f"# Welcome to RSSBrief, {name}!", ""]
    if not briefs:
        lines.append("Your feeds are set up. Your first weekly brief will arrive on schedule.")
        return "\n".join(lines)

    lines += ["Here's a first look at what's new in your topics:", ""]
    for brief in briefs:
        lines.append(f"### [{brief.title}]({brief.url})")
        lines.append(brief.summary)
        if brief.translation:
            lines += ["", f"*Translation: {brief.translation}*"]
        lines += ["", "---", ""]
    lines.append("*Your weekly brief will follow on the schedule you picked.*")
    return "\n".join(lines)


class OnboardingService:
    """Service for onboarding new users."""

    def __init__(
        self,
        db: Database,
        refresh_engine: FeedRefreshEngine | None = None,
        compiler: BriefCompiler | None = None,
        delivery: DeliveryAdapter | None = None,
        from_addr: str = "",
    ):
        self.db = db
        self.refresh_engine = refresh_engine
        self.compiler = compiler
        self.delivery = delivery
        self.from_addr = from_addr
        self.topics = TopicService(db)

    def onboard_user(
        self,
        user_id: int,
        name: str,
        style: str = SummaryStyle.CONCISE.value,
        hour: int = 9,
        day_of_week: int = 0,
        timezone: str = "UTC",
        topic_ids: list[int] | None = None,
        language: str | None = None,
        email_notifications: bool = True,
    ) -> DBPreferences:
        """
        Store preferences, follow topics and mark the user onboarded.

        Raises:
            ValidationError: any invalid field or unknown topic
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required")
        try:
            SummaryStyle(style)
        except ValueError:
            raise ValidationError(f"Unknown style: {style}")
        if not 0 <= hour <= 23:
            raise ValidationError("Hour must be between 0 and 23")
        if not 0 <= day_of_week <= 6:
            raise ValidationError("Day of week must be between 0 (Sunday) and 6")
        try:
            get_zone(timezone)
        except InvalidTimezoneError as e:
            raise ValidationError(str(e))

        topic_ids = topic_ids or []
        for topic_id in topic_ids:
            if self.db.topics.get(topic_id) is None:
                raise ValidationError(f"Topic {topic_id} does not exist")

        for topic_id in topic_ids:
            self.topics.follow_topic(user_id, topic_id)

        return self.db.preferences.update(
            user_id,
            name=name,
            style=style,
            hour=hour,
            day_of_week=day_of_week,
            timezone=timezone,
            language=language or None,
            email_notifications=email_notifications,
            onboarded=True,
        )

    async def run_first_brief(self, user_id: int) -> FirstBriefResult:
        """Refresh the user's feeds, compile briefs and send the welcome email."""
        result = FirstBriefResult(user_id=user_id)
        user = self.db.users.get(user_id)
        prefs = self.db.preferences.get(user_id)
        if user is None or prefs is None:
            result.error = "User missing email or preferences"
            logger.error(f"User {user_id}: {result.error}")
            return result

        if self.refresh_engine:
            await self.refresh_engine.refresh_feeds(self.db.feeds.get_user_feed_ids(user_id))

        if self.compiler:
            try:
                result.briefs = await self.compiler.compile_for_user(user_id)
            except PipelineError as e:
                result.error = str(e)
                logger.error(f"First brief failed for user {user_id}: {e}")
                return result

        logger.info(f"User {user_id}: first run compiled {len(result.briefs)} briefs")

        if not self.delivery:
            return result

        sent = await self.delivery.safe_send(EmailMessage(
            to=user.email,
            from_addr=self.from_addr,
            subject=f"Welcome to RSSBrief, {prefs.name}! Here is your first brief!",
            text=render_welcome(prefs.name, result.briefs),
        ))
        if isinstance(sent, Err):
            result.error = str(sent.error)
            logger.error(f"Failed to send welcome email to user {user_id}: {sent.error}")
        else:
            result.delivery_id = sent.value
        return result
