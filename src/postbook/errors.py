"""Exceptions raised by postbook."""

from pathlib import Path


class PostbookError(ValueError):
    """Base class for content repository errors."""


class FrontMatterError(PostbookError):
    """Raised when a front-matter block cannot be read."""

    def __init__(self, message: str, *, source: Path | str | None = None) -> None:
        if source is not None:
            message = f"{source}: {message}"
        super().__init__(message)
        self.source = source


class PostFilenameError(PostbookError):
    """Raised when a filename does not encode a valid date and slug."""

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(f"Invalid post filename '{filename}': {reason}")
        self.filename = filename
        self.reason = reason


class PostExistsError(PostbookError):
    """Raised when creating a post whose filename is already taken."""

    def __init__(self, filename: str) -> None:
        super().__init__(f"Post '{filename}' already exists")
        self.filename = filename


class PostNotFoundError(PostbookError):
    """Raised when no post matches a lookup."""

    def __init__(self, slug: str) -> None:
        super().__init__(f"Post '{slug}' not found")
        self.slug = slug
