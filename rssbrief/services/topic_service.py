"""
Topic service: business logic for topics and following.

Curated topics (``user_id`` NULL) carry template feed links. Following one
copies those links into user-owned links, which is what the refresh engine
and the brief compiler read.
"""

import logging
from dataclasses import dataclass, field

from ..database import Database, DBTopic
from ..exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class CuratedTopic:
    """A catalog entry: topic name, tags and its feed URLs."""
    name: str
    feeds: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


class TopicService:
    """Service for topic-related business logic."""

    def __init__(self, db: Database):
        self.db = db

    def list_topics(self, user_id: int) -> list[DBTopic]:
        return self.db.topics.get_user_topics(user_id)

    def list_curated(self) -> list[DBTopic]:
        return self.db.topics.get_curated()

    def create_topic(
        self,
        user_id: int | None,
        name: str,
        tags: list[str] | None = None,
        feed_urls: list[str] | None = None,
    ) -> DBTopic:
        """
        Create a topic owned by ``user_id`` (None for a curated topic).

        Raises:
            ValidationError: empty name or the owner already has a topic by that name
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Topic name is required")
        if self.db.topics.get_by_name(name, user_id) is not None:
            raise ValidationError(f"Topic '{name}' already exists")

        topic_id = self.db.topics.add(name, user_id=user_id, tags=tags)
        for url in feed_urls or []:
            feed_id = self.db.feeds.get_or_create(url)
            self.db.topics.link(topic_id, feed_id, user_id)

        logger.info(f"Created topic '{name}' ({topic_id}) for owner {user_id}")
        return self.db.topics.get(topic_id)

    def follow_topic(self, user_id: int, topic_id: int) -> int:
        """
        Follow a curated topic by copying its feed links to the user.

        Idempotent; returns how many new links were created.

        Raises:
            ValidationError: unknown topic
        """
        topic = self.db.topics.get(topic_id)
        if topic is None:
            raise ValidationError(f"Topic {topic_id} does not exist")

        created = 0
        for feed_id in self.db.topics.get_curated_feed_ids(topic_id):
            if self.db.topics.link(topic_id, feed_id, user_id):
                created += 1

        logger.info(f"User {user_id} followed topic '{topic.name}' ({created} new feed links)")
        return created

    def import_curated_topics(self, topics: list[CuratedTopic]) -> int:
        """Get-or-create curated topics, their feeds and links. Returns new link count."""
        created = 0
        for entry in topics:
            topic = self.db.topics.get_by_name(entry.name)
            topic_id = topic.id if topic else self.db.topics.add(entry.name, tags=entry.tags)
            for url in entry.feeds:
                feed_id = self.db.feeds.get_or_create(url)
                if self.db.topics.link(topic_id, feed_id):
                    created += 1
        logger.info(f"Imported {len(topics)} curated topics ({created} new feed links)")
        return created
