"""Pydantic data models."""

from postbook.models.post import (
    Post,
    PostFilename,
    PostFrontMatter,
    format_post_filename,
    parse_post_filename,
)
from postbook.models.validation import Severity, ValidationIssue, ValidationReport

__all__ = [
    "Post",
    "PostFilename",
    "PostFrontMatter",
    "format_post_filename",
    "parse_post_filename",
    "Severity",
    "ValidationIssue",
    "ValidationReport",
]
