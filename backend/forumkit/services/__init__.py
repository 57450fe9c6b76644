"""Services module: the operations clients call.

Each service works only through a RecordStore, so the same code runs
against the hosted record API and the local SQL store.
"""

from forumkit.services.comment_service import CommentService, build_tree
from forumkit.services.community_service import CommunityService
from forumkit.services.post_service import PostService, next_vote, tally_poll_vote
from forumkit.services.saved_posts import SavedPostRegistry

__all__ = [
    "CommentService",
    "CommunityService",
    "PostService",
    "SavedPostRegistry",
    "build_tree",
    "next_vote",
    "tally_poll_vote",
]
