"""Markdown output writer with YAML front-matter."""

from pathlib import Path

import aiofiles

from postbook.errors import PostExistsError
from postbook.models.post import Post
from postbook.services.front_matter import render_post_text


class MarkdownWriter:
    """Writer for post files in canonical front-matter form."""

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.output_dir.mkdir(parents=True, exist_ok=True)

    async def write_post(self, post: Post, *, overwrite: bool = False) -> Path:
        """Write a post to ``<output_dir>/<filename>``."""
        file_path = self.output_dir / post.filename
        if file_path.exists() and not overwrite:
            raise PostExistsError(post.filename)

        async with aiofiles.open(file_path, "w", encoding="utf-8") as f:
            await f.write(render_post_text(post.front_matter, post.body))

        return file_path

    async def write_posts(self, posts: list[Post], *, overwrite: bool = False) -> list[Path]:
        """Write several posts, e.g. to export a normalized copy of the collection."""
        return [await self.write_post(post, overwrite=overwrite) for post in posts]


def create_markdown_writer(output_dir: Path) -> MarkdownWriter:
    """Factory function to create Markdown writer."""
    return MarkdownWriter(output_dir=output_dir)
