"""Post store backed by a flat directory of dated Markdown files."""

from __future__ import annotations

import datetime
from collections.abc import Iterator
from pathlib import Path

from postbook.errors import FrontMatterError, PostbookError, PostExistsError, PostNotFoundError
from postbook.models.post import (
    Post,
    PostFrontMatter,
    format_post_filename,
    is_post_file,
    parse_post_filename,
)
from postbook.services.front_matter import build_front_matter, render_post_text, split_front_matter
from postbook.services.tag_index import TagIndex
from postbook.utils.logging import get_logger

logger = get_logger(__name__)


def load_post(path: Path) -> Post:
    """Read one post file. Raises PostbookError subclasses on bad input."""
    location = parse_post_filename(path.name)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise FrontMatterError(f"file is not valid UTF-8 ({exc.reason})", source=path.name) from exc
    raw, body = split_front_matter(text, source=path.name)
    return Post(
        location=location,
        front_matter=build_front_matter(raw, source=path.name),
        body=body,
        source_path=path,
        raw_front_matter=raw,
    )


class LoadFailure:
    """A file that could not be loaded, kept for reporting."""

    def __init__(self, path: Path, error: PostbookError):
        self.path = path
        self.error = error

    @property
    def filename(self) -> str:
        return self.path.name

    def __repr__(self) -> str:
        return f"LoadFailure({self.path.name!r}, {self.error!r})"


class PostStore:
    """Reads and creates posts in a posts directory. Posts are never deleted."""

    def __init__(self, posts_dir: Path):
        self.posts_dir = posts_dir
        self.failures: list[LoadFailure] = []

    def iter_files(self) -> Iterator[Path]:
        """Post files in the directory, sorted by name. Hidden files are skipped."""
        if not self.posts_dir.exists():
            return
        for path in sorted(self.posts_dir.iterdir()):
            if path.name.startswith(".") or not is_post_file(path):
                continue
            yield path

    def load_posts(self, *, strict: bool = True) -> list[Post]:
        """
        Load every post, newest first.

        With strict=False, files that fail to load are recorded in
        ``self.failures`` instead of raising.
        """
        self.failures = []
        posts: list[Post] = []

        for path in self.iter_files():
            try:
                posts.append(load_post(path))
            except PostbookError as exc:
                if strict:
                    raise
                logger.warning(f"Skipping {path.name}: {exc}")
                self.failures.append(LoadFailure(path, exc))

        # Newest first, filename ascending within a day
        posts.sort(key=lambda p: p.filename)
        posts.sort(key=lambda p: p.date, reverse=True)
        logger.debug(f"Loaded {len(posts)} posts from {self.posts_dir}")
        return posts

    def post_exists(self, filename: str) -> bool:
        return (self.posts_dir / filename).exists()

    def get_post(self, slug: str, posts: list[Post] | None = None) -> Post:
        """
        Find a post by slug, or by full filename.

        When several dates share a slug the newest post wins. Pass already
        loaded ``posts`` to search them instead of reading the directory.
        """
        if posts is None:
            posts = self.load_posts(strict=False)
        for post in posts:
            if slug in (post.slug, post.filename):
                return post
        raise PostNotFoundError(slug)

    def find_by_tag(self, tag: str, posts: list[Post] | None = None) -> list[Post]:
        """Posts carrying a tag (case-insensitive), newest first."""
        wanted = tag.lower()
        if posts is None:
            posts = self.load_posts(strict=False)
        return [
            post for post in posts
            if wanted in (t.lower() for t in post.tags)
        ]

    def create_post(
        self,
        *,
        slug: str,
        front_matter: PostFrontMatter,
        body: str = "",
        published: datetime.date | None = None,
        extension: str = ".md",
    ) -> Post:
        """
        Write a new post file.

        Raises:
            PostExistsError: if a file with the same name already exists.
        """
        published = published or datetime.date.today()
        filename = format_post_filename(published, slug, extension)
        location = parse_post_filename(filename)

        if self.post_exists(filename):
            raise PostExistsError(filename)

        path = self.posts_dir / filename
        self.posts_dir.mkdir(parents=True, exist_ok=True)
        try:
            with open(path, "x", encoding="utf-8") as f:
                f.write(render_post_text(front_matter, body))
        except FileExistsError as exc:
            raise PostExistsError(filename) from exc

        logger.info(f"Created post {filename}")
        return Post(
            location=location,
            front_matter=front_matter,
            body=body,
            source_path=path,
            raw_front_matter=front_matter.to_mapping(),
        )

    def tags(self, posts: list[Post] | None = None) -> dict[str, int]:
        """Tag usage counts across the collection."""
        if posts is None:
            posts = self.load_posts(strict=False)
        return TagIndex.from_posts(posts).counts()
