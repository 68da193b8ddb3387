"""Collection validator for the renderer's input contract."""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path

from postbook.core.post_store import PostStore
from postbook.errors import FrontMatterError, PostFilenameError
from postbook.models.post import FRONT_MATTER_KEYS, Post
from postbook.models.validation import Severity, ValidationReport
from postbook.utils.logging import get_logger
from postbook.utils.text_utils import extract_footnotes, has_unclosed_fence, is_url_safe_slug

logger = get_logger(__name__)

TEXT_FIELDS = ("layout", "title", "description", "summary")
OPTIONAL_TEXT_FIELDS = ("description", "summary")


class PostValidator:
    """Checks every post file and the collection as a whole."""

    def __init__(self, required_fields: tuple[str, ...] = FRONT_MATTER_KEYS):
        self.required_fields = required_fields

    def validate_store(self, store: PostStore) -> ValidationReport:
        """Validate all files in a store, including ones that fail to load."""
        posts = store.load_posts(strict=False)
        report = ValidationReport(checked=len(posts) + len(store.failures))

        for failure in store.failures:
            if isinstance(failure.error, PostFilenameError):
                code = "invalid-filename"
            elif isinstance(failure.error, FrontMatterError):
                code = "invalid-front-matter"
            else:
                code = "invalid-post"
            report.add(Severity.error, code, failure.filename, str(failure.error))

        self._check_filenames(report, [p.name for p in store.iter_files()])
        for post in posts:
            self.check_post(report, post)
        self._check_slugs(report, posts)

        logger.debug(
            f"Validated {report.checked} files: "
            f"{len(report.errors)} errors, {len(report.warnings)} warnings"
        )
        return report

    def validate_posts(self, posts: list[Post]) -> ValidationReport:
        """Validate already loaded posts."""
        report = ValidationReport(checked=len(posts))
        self._check_filenames(report, [p.filename for p in posts])
        for post in posts:
            self.check_post(report, post)
        self._check_slugs(report, posts)
        return report

    def check_post(self, report: ValidationReport, post: Post) -> None:
        """Per-post checks: front-matter contract, filename, body."""
        name = post.filename
        raw = post.raw_front_matter

        if not post.title.strip():
            report.add(Severity.error, "missing-title", name, "front-matter needs a non-empty title")

        for field in self.required_fields:
            if field == "title" or field in raw:
                continue
            severity = Severity.warning if field in OPTIONAL_TEXT_FIELDS else Severity.error
            report.add(severity, f"missing-{field}", name, f"front-matter has no '{field}'")

        for field in TEXT_FIELDS:
            value = raw.get(field)
            if value is not None and not isinstance(value, str):
                report.add(
                    Severity.warning, f"non-string-{field}", name,
                    f"'{field}' is {type(value).__name__}, expected a string",
                )

        if "comments" in raw and not isinstance(raw["comments"], bool):
            report.add(
                Severity.error, "non-boolean-comments", name,
                f"'comments' must be true or false, got {raw['comments']!r}",
            )

        tags = raw.get("tags")
        if tags is not None:
            if isinstance(tags, str):
                report.add(
                    Severity.warning, "tags-as-string", name,
                    "'tags' is a string; use a YAML list to keep multi-word tags intact",
                )
            elif not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
                report.add(Severity.error, "non-string-tags", name, "'tags' must be a list of strings")
            elif any(not t.strip() for t in tags):
                report.add(Severity.warning, "empty-tag", name, "'tags' contains an empty tag")

        if not is_url_safe_slug(post.slug):
            report.add(
                Severity.warning, "unsafe-slug", name,
                f"slug '{post.slug}' should only use lowercase letters, digits and hyphens",
            )

        footnotes = extract_footnotes(post.body)
        undefined = [ref for ref in footnotes["references"] if ref not in footnotes["definitions"]]
        if undefined:
            report.add(
                Severity.warning, "undefined-footnote", name,
                f"footnote references without definitions: {', '.join(undefined)}",
            )
        unused = [d for d in footnotes["definitions"] if d not in footnotes["references"]]
        if unused:
            report.add(
                Severity.warning, "unused-footnote", name,
                f"footnote definitions never referenced: {', '.join(unused)}",
            )

        if has_unclosed_fence(post.body):
            report.add(Severity.warning, "unclosed-code-fence", name, "a fenced code block is never closed")

    def _check_filenames(self, report: ValidationReport, filenames: list[str]) -> None:
        """Filenames must be unique; case-only differences break case-folding file systems."""
        by_name: dict[str, int] = defaultdict(int)
        by_folded: dict[str, list[str]] = defaultdict(list)
        for filename in filenames:
            by_name[filename] += 1
            by_folded[filename.casefold()].append(filename)

        for filename, count in by_name.items():
            if count > 1:
                report.add(
                    Severity.error, "duplicate-filename", filename,
                    f"filename used by {count} posts",
                )

        for names in by_folded.values():
            distinct = sorted(set(names))
            if len(distinct) > 1:
                report.add(
                    Severity.warning, "case-conflict", distinct[0],
                    f"filenames differ only by case: {', '.join(distinct)}",
                )

    def _check_slugs(self, report: ValidationReport, posts: list[Post]) -> None:
        by_slug: dict[str, list[str]] = defaultdict(list)
        for post in posts:
            by_slug[post.slug].append(post.filename)
        for slug, filenames in by_slug.items():
            if len(set(filenames)) > 1:
                report.add(
                    Severity.warning, "duplicate-slug", sorted(filenames)[0],
                    f"slug '{slug}' is used on several dates: {', '.join(sorted(filenames))}",
                )


def validate_directory(posts_dir: Path) -> ValidationReport:
    """Validate a posts directory with default rules."""
    return PostValidator().validate_store(PostStore(posts_dir))

