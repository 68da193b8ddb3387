"""JSON output writer for the site manifest."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles

from postbook.models.post import Post
from postbook.models.validation import ValidationReport
from postbook.services.tag_index import TagIndex


class JSONWriter:
    """Writer for structured JSON output."""

    def __init__(
        self,
        output_dir: Path,
        permalink_pattern: str = "/:year/:month/:day/:slug/",
        words_per_minute: int = 200,
    ):
        self.output_dir = output_dir
        self.permalink_pattern = permalink_pattern
        self.words_per_minute = words_per_minute
        self.output_dir.mkdir(parents=True, exist_ok=True)

    async def write_manifest(
        self,
        posts: list[Post],
        tag_index: TagIndex | None = None,
        filename: str = "manifest.json",
    ) -> Path:
        """Write the site manifest: every post plus tag counts."""
        data = self.build_manifest(posts, tag_index)
        file_path = self.output_dir / filename

        async with aiofiles.open(file_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(data, indent=2, default=str, ensure_ascii=False))

        return file_path

    def build_manifest(
        self,
        posts: list[Post],
        tag_index: TagIndex | None = None,
    ) -> dict[str, Any]:
        """Build complete manifest structure."""
        tag_index = tag_index or TagIndex.from_posts(posts)
        return {
            "version": "1.0",
            "generated_at": datetime.now().isoformat(),
            "total_posts": len(posts),
            "total_word_count": sum(p.word_count for p in posts),
            "posts": [self._post_entry(post) for post in posts],
            "tags": tag_index.counts(),
        }

    def _post_entry(self, post: Post) -> dict[str, Any]:
        return {
            "filename": post.filename,
            "date": post.date.isoformat(),
            "slug": post.slug,
            "permalink": post.permalink(self.permalink_pattern),
            "layout": post.front_matter.layout,
            "title": post.title,
            "description": post.front_matter.description,
            "summary": post.front_matter.summary,
            "comments": post.front_matter.comments,
            "tags": post.tags,
            "word_count": post.word_count,
            "reading_time_minutes": post.reading_time_minutes(self.words_per_minute),
            "code_languages": post.code_languages,
            "footnotes": len(post.footnotes),
        }

    async def write_validation_report(
        self,
        report: ValidationReport,
        filename: str = "validation.json",
    ) -> Path:
        """Write a validation report for CI tooling."""
        data = {
            "generated_at": datetime.now().isoformat(),
            **report.model_dump(mode="json"),
        }
        file_path = self.output_dir / filename

        async with aiofiles.open(file_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(data, indent=2, default=str))

        return file_path


def create_json_writer(
    output_dir: Path,
    permalink_pattern: str = "/:year/:month/:day/:slug/",
    words_per_minute: int = 200,
) -> JSONWriter:
    """Factory function to create JSON writer."""
    return JSONWriter(
        output_dir=output_dir,
        permalink_pattern=permalink_pattern,
        words_per_minute=words_per_minute,
    )
