"""Community forum: live posts, new discussions and likes."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from src.domain.models import DomainRecord, ForumPost
from src.screens.base import DESTRUCTIVE, DomainScreen
from src.sync.reconcile import Rows

TOPICS = (
    "Organic Farming",
    "Pest Control",
    "Water Management",
    "Soil Health",
    "Market Insights",
    "Equipment",
    "Seeds",
    "Traditional Practices",
)

_MOCK_POSTS = (
    (
        "Best practices for organic pest control?",
        "I'm growing vegetables using organic methods and dealing with aphids. "
        "What natural remedies have worked for you?",
        "Pest Control",
        12,
        2,
    ),
    (
        "Water conservation techniques for rice cultivation",
        "I want to reduce water usage in my rice fields. Has anyone tried the SRI "
        "(System of Rice Intensification) method?",
        "Water Management",
        8,
        3,
    ),
    (
        "Market rates for organic turmeric",
        "Can anyone share current market rates for organic turmeric in Maharashtra region? "
        "Planning to harvest next month.",
        "Market Insights",
        5,
        1,
    ),
    (
        "Traditional methods for seed preservation",
        "My grandfather used to preserve seeds using some traditional techniques. Looking to gather "
        "more knowledge about traditional seed preservation methods.",
        "Traditional Practices",
        15,
        5,
    ),
    (
        "Soil testing labs in Tamil Nadu",
        "Can anyone recommend reliable soil testing laboratories in Tamil Nadu? Need to check "
        "nutrient levels before the next planting season.",
        "Soil Health",
        3,
        4,
    ),
)


def mock_posts(now: Optional[datetime] = None) -> Rows:
    """Sample discussions shown while the forum has no posts."""
    now = now or datetime.now(timezone.utc)
    return tuple(
        ForumPost(
            id=f"mock-{index}",
            title=title,
            content=content,
            topic=topic,
            user_id=f"mock-user-{index}",
            likes=likes,
            created_at=now - timedelta(days=days_ago),
        )
        for index, (title, content, topic, likes, days_ago) in enumerate(_MOCK_POSTS, start=1)
    )


class ForumScreen(DomainScreen):
    table = "community_posts"
    search_fields = ("title", "content")
    load_error_title = "Error loading forum posts"
    load_error_description = "Could not load community posts. Please try again later."

    async def load_fallback(self) -> Iterable[DomainRecord]:
        return mock_posts()

    def filter_posts(self, term: str = "", topic: Optional[str] = None) -> Rows:
        posts = self.search(term)
        if topic:
            posts = tuple(post for post in posts if post.topic == topic)
        return posts

    async def create_post(
        self,
        title: str,
        content: str,
        topic: str,
        user_id: str = "current-user",
    ) -> Optional[ForumPost]:
        if not (title or "").strip() or not (content or "").strip() or not topic:
            self.notify("Incomplete form", "Please fill in all fields to create a post.", DESTRUCTIVE)
            return None
        post = await self._mutate(
            self.mutator.insert(
                {"title": title.strip(), "content": content.strip(), "topic": topic, "user_id": user_id, "likes": 0}
            ),
            "Error creating post",
            "There was a problem posting your discussion. Please try again.",
        )
        if post is not None:
            self.notify("Post created", "Your discussion has been posted to the community forum.")
        return post

    async def like_post(self, post_id: str) -> Optional[ForumPost]:
        return await self._mutate(
            self.mutator.increment(post_id, "likes"),
            "Error",
            "Could not like the post. Please try again.",
        )


__all__ = ["ForumScreen", "TOPICS", "mock_posts"]
