"""YAML front-matter parsing and rendering."""

import re
from pathlib import Path
from typing import Any

import yaml
from frontmatter.default_handlers import YAMLHandler
from pydantic import ValidationError

from postbook.errors import FrontMatterError
from postbook.models.post import PostFrontMatter

LINE_END = re.compile(r"\r?\n")


class PostYAMLHandler(YAMLHandler):
    """
    YAML handler for Jekyll posts.

    The block must open with ``---`` on the first line and may close with
    ``---`` or ``...``.
    """

    FM_BOUNDARY = re.compile(r"^(?:-{3}|\.{3})[ \t]*\r?$", re.MULTILINE)
    OPENING = re.compile(r"-{3}[ \t]*\r?$", re.MULTILINE)

    def detect(self, text):
        return self.OPENING.match(text) is not None


handler = PostYAMLHandler()


def _drop_line_end(text: str) -> str:
    match = LINE_END.match(text)
    return text[match.end():] if match else text


def split_front_matter(text: str, *, source: Path | str | None = None) -> tuple[dict[str, Any], str]:
    """
    Split a document into its front-matter mapping and body.

    A block must open on the very first line. Documents without one are
    returned unchanged with an empty mapping. One blank line between the
    closing delimiter and the body is treated as a separator.

    Raises:
        FrontMatterError: if the block is never closed or is not a mapping.
    """
    text = text.lstrip("\ufeff")
    if not handler.detect(text):
        return {}, text

    try:
        yaml_text, content = handler.split(text)
    except ValueError as exc:
        raise FrontMatterError("front-matter block is not closed", source=source) from exc

    try:
        data = handler.load(yaml_text)
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"front-matter is not valid YAML: {exc}", source=source) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"front-matter must be a mapping, got {type(data).__name__}", source=source
        )

    # Rest of the closing delimiter line, then the separator line
    return data, _drop_line_end(_drop_line_end(content))


def build_front_matter(raw: dict[str, Any], *, source: Path | str | None = None) -> PostFrontMatter:
    """Type a raw front-matter mapping, wrapping validation errors."""
    try:
        return PostFrontMatter.from_mapping(raw)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise FrontMatterError(f"invalid front-matter ({problems})", source=source) from exc


def parse_post_text(text: str, *, source: Path | str | None = None) -> tuple[PostFrontMatter, str]:
    """Parse a post document into typed front-matter and its body."""
    raw, body = split_front_matter(text, source=source)
    return build_front_matter(raw, source=source), body


def dump_front_matter(front_matter: PostFrontMatter) -> str:
    """Serialize front-matter to YAML in canonical key order."""
    return handler.export(front_matter.to_mapping(), sort_keys=False, width=1000)


def render_post_text(front_matter: PostFrontMatter, body: str) -> str:
    """
    Render front-matter and body back into a post document.

    Exactly one blank line separates the block from the body, so
    ``parse_post_text`` returns ``body`` unchanged.
    """
    return (
        f"{handler.START_DELIMITER}\n{dump_front_matter(front_matter)}\n"
        f"{handler.END_DELIMITER}\n\n{body}"
    )
