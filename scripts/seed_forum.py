"""Seed the record store with starter communities and posts.

Uses whichever store STORE_BACKEND selects. Communities are matched by name,
so running the script twice does not create duplicates.

Usage:
    STORE_BACKEND=sql python scripts/seed_forum.py
"""

import asyncio
import sys
import os

# Add backend to path so we can import forumkit without installing it
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from forumkit.core.logging import configure_logging
from forumkit.schemas import CommunityCreate, PollOption, PostCreate
from forumkit.session import ForumSession

COMMUNITIES = [
    {
        "name": "programming",
        "description": "Code, tooling and the craft of software.",
        "category": "Technology",
        "color": "#0079D3",
        "member_count": 1200,
    },
    {
        "name": "boardgames",
        "description": "Tabletop strategy, party games and rules questions.",
        "category": "Hobbies",
        "color": "#46D160",
        "member_count": 340,
    },
    {
        "name": "cooking",
        "description": "Recipes, techniques and kitchen disasters.",
        "category": "Lifestyle",
        "member_count": 870,
    },
]

POSTS = [
    {
        "title": "What is your favourite async HTTP client?",
        "community": "programming",
        "author": "devnull",
        "content": "Looking for something with good timeout handling.",
        "tags": ["python", "http"],
    },
    {
        "title": "Best two-player game?",
        "community": "boardgames",
        "author": "meeple",
        "post_type": "poll",
        "poll_options": [
            {"Id": 1, "text": "Patchwork", "voteCount": 0},
            {"Id": 2, "text": "7 Wonders Duel", "voteCount": 0},
            {"Id": 3, "text": "Jaipur", "voteCount": 0},
        ],
    },
    {
        "title": "Cast iron seasoning guide",
        "community": "cooking",
        "author": "skillet",
        "post_type": "link",
        "link_url": "https://example.com/cast-iron",
        "tags": ["cast-iron"],
        "score": 64,
    },
]


async def seed_forum():
    """Seed communities then posts; existing communities are skipped."""
    print(f"\n{'='*60}")
    print(f"  Seeding Forum Records")
    print(f"{'='*60}\n")

    added_count = 0
    skipped_count = 0

    async with ForumSession() as forum:
        for data in COMMUNITIES:
            if await forum.communities.get_by_name(data["name"]):
                print(f"  ⏭️  Community '{data['name']}' already exists, skipping")
                skipped_count += 1
                continue

            community = await forum.communities.create(CommunityCreate(**data))
            print(f"  ✅ Added community: {community.name} (id={community.id})")
            added_count += 1

        if added_count:
            for data in POSTS:
                options = data.pop("poll_options", None)
                post = await forum.posts.create(PostCreate(
                    **data,
                    poll_options=[PollOption.model_validate(o) for o in options] if options else None,
                ))
                print(f"  ✅ Added post: {post.title} ({post.key})")

    print(f"\n{'='*60}")
    print(f"  Seeding Complete")
    print(f"{'='*60}")
    print(f"  ✅ Added: {added_count} communities")
    print(f"  ⏭️  Skipped: {skipped_count} communities (already exist)\n")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(seed_forum())
