"""Custom exception classes for forumkit."""


class ForumKitException(Exception):
    """Base exception for all forumkit errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(ForumKitException):
    """Raised when a requested record is not found."""

    def __init__(self, resource: str, identifier):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class ValidationError(ForumKitException):
    """Raised when input is malformed or not applicable to the target record."""


class StoreError(ForumKitException):
    """Raised when the record store reports a failure or cannot be reached."""

    def __init__(self, kind: str, message: str):
        self.kind = kind
        super().__init__(f"Record store error for {kind}: {message}")
