"""
Tests for the HTTP API.
"""

from unittest.mock import AsyncMock, patch

from rssbrief.config import state
from rssbrief.refresh import FeedOutcome, RefreshReport
from rssbrief.services import CuratedTopic, TopicService


def create_user(client, email="reader@example.com"):
    response = client.post("/users", json={"email": email, "name": "Ada"})
    assert response.status_code == 200
    return response.json()["user_id"]


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["summarization_enabled"] is False


class TestUsers:

    def test_create_user(self, client):
        response = client.post("/users", json={"email": "Reader@Example.com"})

        assert response.status_code == 200
        assert response.json()["onboarded"] is False
        assert response.json()["hour"] == 9
        assert response.json()["day_of_week"] == 0
        assert state.db.users.get_by_email("reader@example.com") is not None

    def test_duplicate_email(self, client):
        create_user(client)
        response = client.post("/users", json={"email": "reader@example.com"})
        assert response.status_code == 400

    def test_unknown_user_is_404(self, client):
        assert client.get("/users/999/briefs").status_code == 404
        assert client.get("/users/999/next-brief").status_code == 404

    def test_briefs_newest_first(self, client):
        user_id = create_user(client)
        feed_id = state.db.feeds.get_or_create("https://blog.example.com/feed")
        from rssbrief.database import utcnow
        for name in ("a", "b"):
            item_id = state.db.feed_items.add_if_absent(feed_id, f"https://blog.example.com/{name}", utcnow())
            state.db.briefs.add_if_absent(user_id, item_id, name.upper(), "Summary", f"https://blog.example.com/{name}")

        response = client.get(f"/users/{user_id}/briefs")

        assert response.status_code == 200
        assert [b["title"] for b in response.json()] == ["B", "A"]

    def test_next_brief(self, client):
        user_id = create_user(client)

        response = client.get(f"/users/{user_id}/next-brief")

        assert response.status_code == 200
        data = response.json()
        assert data["hour"] == 9
        assert data["timezone"] == "UTC"
        assert data["seconds_until_next"] > 0


class TestTopics:

    def test_create_topic(self, client):
        user_id = create_user(client)

        response = client.post(f"/users/{user_id}/topics", json={"name": "Rust", "tags": ["lang"]})

        assert response.status_code == 200
        assert response.json()["name"] == "Rust"
        assert response.json()["curated"] is False

    def test_list_includes_curated(self, client):
        user_id = create_user(client)
        TopicService(state.db).import_curated_topics(
            [CuratedTopic(name="AI", feeds=["https://ai.example.com/feed"])]
        )
        client.post(f"/users/{user_id}/topics", json={"name": "Rust"})

        response = client.get(f"/users/{user_id}/topics")

        assert response.status_code == 200
        names = {t["name"]: t["curated"] for t in response.json()}
        assert names == {"Rust": False, "AI": True}

    def test_duplicate_topic_is_400(self, client):
        user_id = create_user(client)
        client.post(f"/users/{user_id}/topics", json={"name": "Rust"})

        response = client.post(f"/users/{user_id}/topics", json={"name": "Rust"})

        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    def test_follow_topic(self, client):
        user_id = create_user(client)
        TopicService(state.db).import_curated_topics([
            CuratedTopic(name="Tech", feeds=["https://tech.example.com/feed"])
        ])
        topic_id = state.db.topics.get_by_name("Tech").id

        response = client.post(f"/users/{user_id}/topics/{topic_id}/follow")

        assert response.status_code == 200
        assert response.json() == {"topic_id": topic_id, "links_created": 1}

    def test_follow_unknown_topic_is_404(self, client):
        user_id = create_user(client)
        assert client.post(f"/users/{user_id}/topics/999/follow").status_code == 404


class TestOnboard:

    def test_onboard(self, client):
        user_id = create_user(client)
        with patch("rssbrief.routes.users.first_brief_task", AsyncMock()) as task:
            response = client.post(f"/users/{user_id}/onboard", json={
                "name": "Ada",
                "style": "detailed",
                "hour": 8,
                "day_of_week": 1,
                "timezone": "America/New_York",
            })

        assert response.status_code == 200
        assert response.json()["onboarded"] is True
        assert response.json()["timezone"] == "America/New_York"
        task.assert_awaited_once_with(user_id)

    def test_onboard_invalid_is_400(self, client):
        user_id = create_user(client)
        response = client.post(f"/users/{user_id}/onboard", json={"name": "Ada", "hour": 30})
        assert response.status_code == 400


class TestJobs:

    def test_refresh_job(self, client):
        report = RefreshReport(outcomes=[
            FeedOutcome(feed_id=1, url="https://a.example.com/feed", ok=True, inserted=3),
            FeedOutcome(feed_id=2, url="https://b.example.com/feed", ok=False, error="[fetch] HTTP 500"),
        ])
        with patch("rssbrief.routes.jobs.refresh_feeds_job", AsyncMock(return_value=report)):
            response = client.post("/jobs/refresh")

        assert response.status_code == 200
        assert response.json() == {
            "refreshed": 1,
            "failed": 1,
            "inserted": 3,
            "errors": {"2": "[fetch] HTTP 500"},
        }

    def test_refresh_with_no_feeds(self, client):
        response = client.post("/jobs/refresh")

        assert response.status_code == 200
        assert response.json()["refreshed"] == 0

    def test_unconfigured_jobs_are_503(self, client):
        assert client.post("/jobs/briefs").status_code == 503
        assert client.post("/jobs/digests").status_code == 503


class TestRateLimit:

    def test_limiter_installed(self, client):
        from rssbrief.rate_limit import get_rate_limit, limiter
        from rssbrief.server import app

        assert app.state.limiter is limiter
        assert get_rate_limit().endswith("/minute")
