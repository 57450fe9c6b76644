"""forumkit -- data-access layer for a discussion-forum client."""

__version__ = "0.1.0"
