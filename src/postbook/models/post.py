"""Post models: filename, front-matter and the post itself."""

import re
import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from postbook.errors import PostFilenameError
from postbook.utils.text_utils import (
    count_words,
    clean_markdown,
    extract_code_languages,
    extract_footnotes,
    reading_time_minutes,
)

POST_EXTENSIONS = (".md", ".markdown")
FRONT_MATTER_KEYS = ("layout", "title", "description", "summary", "comments", "tags")

_FILENAME_RE = re.compile(
    r'^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})-(?P<slug>.+?)(?P<ext>\.[A-Za-z]+)$'
)
_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0", ""}


class PostFilename(BaseModel):
    """Publication date and slug encoded in a post's filename."""

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    slug: str = Field(..., min_length=1, description="URL slug from the filename")
    extension: str = Field(default=".md", description="File extension including the dot")

    @computed_field
    @property
    def name(self) -> str:
        """Filename in YYYY-MM-DD-slug.ext form."""
        return format_post_filename(self.date, self.slug, self.extension)

    def __str__(self) -> str:
        return self.name


def parse_post_filename(filename: str) -> PostFilename:
    """
    Parse a YYYY-MM-DD-slug.ext filename.

    Raises:
        PostFilenameError: if the pattern does not match, the extension is
            not a Markdown one, or the date is not a real calendar date.
    """
    name = Path(filename).name
    match = _FILENAME_RE.match(name)
    if not match:
        raise PostFilenameError(name, "expected YYYY-MM-DD-slug.md")

    extension = match.group("ext")
    if extension.lower() not in POST_EXTENSIONS:
        raise PostFilenameError(name, f"unsupported extension '{extension}'")

    try:
        published = datetime.date(
            int(match.group("year")),
            int(match.group("month")),
            int(match.group("day")),
        )
    except ValueError as exc:
        raise PostFilenameError(name, f"invalid date ({exc})") from exc

    return PostFilename(date=published, slug=match.group("slug"), extension=extension)


def format_post_filename(published: datetime.date, slug: str, extension: str = ".md") -> str:
    """Build the filename for a post published on a date."""
    if not extension.startswith("."):
        extension = f".{extension}"
    return f"{published.isoformat()}-{slug}{extension}"


def is_post_file(path: Path) -> bool:
    """Check whether a path looks like a post file (by extension)."""
    return path.is_file() and path.suffix.lower() in POST_EXTENSIONS


class PostFrontMatter(BaseModel):
    """Front-matter fields the renderer expects, plus any extra keys."""

    layout: str = Field(default="", description="Renderer layout name")
    title: str = Field(default="", description="Post title")
    description: str = Field(default="", description="Short description for meta tags")
    summary: str = Field(default="", description="Summary shown in listings")
    comments: bool = Field(default=False, description="Whether comments are enabled")
    tags: list[str] = Field(default_factory=list, description="Ordered tags, duplicates allowed")
    extra: dict[str, Any] = Field(default_factory=dict, description="Unrecognized keys")

    @field_validator("layout", "title", "description", "summary", mode="before")
    @classmethod
    def convert_text(cls, v):
        """Convert None to empty and scalars to strings."""
        if v is None:
            return ""
        if isinstance(v, (list, dict)):
            raise ValueError("must be a string")
        return str(v)

    @field_validator("comments", mode="before")
    @classmethod
    def convert_comments(cls, v):
        """Accept YAML booleans and their common string spellings."""
        if v is None:
            return False
        if isinstance(v, bool):
            return v
        if isinstance(v, int) and v in (0, 1):
            return bool(v)
        if isinstance(v, str):
            lowered = v.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        raise ValueError(f"expected a boolean, got {v!r}")

    @field_validator("tags", mode="before")
    @classmethod
    def convert_tags(cls, v):
        """Accept a list or a space-separated string."""
        if v is None:
            return []
        if isinstance(v, str):
            return v.split()
        if isinstance(v, (list, tuple)):
            return [str(tag) for tag in v if tag is not None]
        raise ValueError("must be a list of strings")

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "PostFrontMatter":
        """Build from a parsed front-matter mapping, keeping unknown keys."""
        known = {key: data[key] for key in FRONT_MATTER_KEYS if key in data}
        extra = {str(key): value for key, value in data.items() if key not in FRONT_MATTER_KEYS}
        return cls(**known, extra=extra)

    def to_mapping(self) -> dict[str, Any]:
        """Ordered mapping for serialization: known keys first, then extras."""
        data: dict[str, Any] = {
            "layout": self.layout,
            "title": self.title,
            "description": self.description,
            "summary": self.summary,
            "comments": self.comments,
            "tags": list(self.tags),
        }
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data


class Post(BaseModel):
    """A published post: filename-derived identity, front-matter and body."""

    location: PostFilename
    front_matter: PostFrontMatter
    body: str = Field(default="", description="Markdown body after the front-matter")
    source_path: Path | None = Field(default=None, description="File the post was read from")
    raw_front_matter: dict[str, Any] = Field(
        default_factory=dict,
        repr=False,
        description="Front-matter exactly as parsed, before type coercion",
    )

    @property
    def filename(self) -> str:
        return self.location.name

    @property
    def date(self) -> datetime.date:
        return self.location.date

    @property
    def slug(self) -> str:
        return self.location.slug

    @property
    def title(self) -> str:
        return self.front_matter.title

    @property
    def tags(self) -> list[str]:
        return self.front_matter.tags

    @computed_field
    @property
    def unique_tags(self) -> list[str]:
        """Tags de-duplicated for display, first occurrence wins."""
        return list(dict.fromkeys(self.front_matter.tags))

    @computed_field
    @property
    def word_count(self) -> int:
        """Prose word count, code samples excluded."""
        return count_words(clean_markdown(self.body))

    @computed_field
    @property
    def footnotes(self) -> list[str]:
        """Footnote labels defined in the body."""
        return extract_footnotes(self.body)["definitions"]

    @computed_field
    @property
    def code_languages(self) -> list[str]:
        """Languages of embedded code samples."""
        return extract_code_languages(self.body)

    def reading_time_minutes(self, words_per_minute: int = 200) -> int:
        """Estimated reading time in minutes."""
        return reading_time_minutes(self.body, words_per_minute)

    def permalink(self, pattern: str = "/:year/:month/:day/:slug/") -> str:
        """Expand a Jekyll-style permalink pattern for this post."""
        replacements = {
            ":year": f"{self.date.year:04d}",
            ":month": f"{self.date.month:02d}",
            ":day": f"{self.date.day:02d}",
            ":slug": self.slug,
            ":title": self.slug,
        }
        return re.sub(
            r':(year|month|day|slug|title)\b',
            lambda m: replacements[m.group(0)],
            pattern,
        )
