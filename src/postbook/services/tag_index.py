"""Tag index for cross-linking posts."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable

from rapidfuzz import fuzz, process

from postbook.models.post import Post


def normalize_tag(tag: str) -> str:
    """Index key for a tag: trimmed and lowercased."""
    return tag.strip().lower()


def _squash(tag: str) -> str:
    return re.sub(r'[^a-z0-9]', '', normalize_tag(tag))


class TagIndex:
    """Maps tags to the posts that carry them."""

    def __init__(self, min_similarity_score: int = 60):
        self.min_similarity_score = min_similarity_score
        self._posts: dict[str, list[Post]] = {}
        self._spellings: dict[str, Counter] = {}
        self._all: dict[str, Post] = {}

    @classmethod
    def from_posts(cls, posts: Iterable[Post], min_similarity_score: int = 60) -> TagIndex:
        index = cls(min_similarity_score=min_similarity_score)
        for post in posts:
            index.add(post)
        return index

    def add(self, post: Post) -> None:
        """Index a post under each of its tags, once per tag."""
        self._all.setdefault(post.filename, post)
        seen: set[str] = set()
        for tag in post.tags:
            key = normalize_tag(tag)
            if not key:
                continue
            self._spellings.setdefault(key, Counter())[tag.strip()] += 1
            if key in seen:
                continue
            seen.add(key)
            bucket = self._posts.setdefault(key, [])
            bucket.append(post)
            bucket.sort(key=lambda p: (p.date, p.filename), reverse=True)

    def __contains__(self, tag: str) -> bool:
        return normalize_tag(tag) in self._posts

    def __len__(self) -> int:
        return len(self._posts)

    @property
    def tags(self) -> list[str]:
        """Display names of all tags, alphabetically."""
        return sorted((self.display_name(key) for key in self._posts), key=str.lower)

    def display_name(self, tag: str) -> str:
        """Most used spelling of a tag; ties go to the first one seen."""
        spellings = self._spellings.get(normalize_tag(tag))
        if not spellings:
            return tag
        return spellings.most_common(1)[0][0]

    def posts_for(self, tag: str) -> list[Post]:
        """Posts carrying a tag, newest first."""
        return list(self._posts.get(normalize_tag(tag), []))

    def counts(self) -> dict[str, int]:
        """Number of posts per tag, most used first then alphabetical."""
        items = [(self.display_name(key), len(posts)) for key, posts in self._posts.items()]
        items.sort(key=lambda item: (-item[1], item[0].lower()))
        return dict(items)

    def related_posts(self, post: Post, limit: int = 5) -> list[tuple[Post, int, float]]:
        """
        Rank other posts by shared tags, then title similarity.

        Returns:
            Tuples of (post, shared tag count, title similarity 0-100).
            Posts sharing no tag are kept only when their title is
            similar enough.
        """
        own_tags = {normalize_tag(t) for t in post.tags if normalize_tag(t)}
        scored = []
        for other in self._all.values():
            if other.filename == post.filename:
                continue
            shared = len(own_tags & {normalize_tag(t) for t in other.tags})
            similarity = fuzz.token_set_ratio(post.title.lower(), other.title.lower())
            if shared == 0 and similarity < self.min_similarity_score:
                continue
            scored.append((other, shared, similarity))

        scored.sort(key=lambda item: (item[1], item[2], item[0].date), reverse=True)
        return scored[:limit]

    def similar_tags(self, min_score: int = 85) -> list[tuple[str, str, float]]:
        """Pairs of distinct tags that are probably the same tag spelled differently."""
        names = self.tags
        pairs = []
        for i, first in enumerate(names):
            for second in names[i + 1:]:
                if _squash(first) == _squash(second):
                    pairs.append((first, second, 100.0))
                    continue
                score = fuzz.ratio(normalize_tag(first), normalize_tag(second))
                if score >= min_score:
                    pairs.append((first, second, score))
        pairs.sort(key=lambda item: item[2], reverse=True)
        return pairs


def suggest_tags(tag: str, known_tags: Iterable[str], limit: int = 3, min_score: int = 80) -> list[str]:
    """Known tags that look like the given one, best match first."""
    choices = [t for t in dict.fromkeys(known_tags) if normalize_tag(t) != normalize_tag(tag)]
    matches = process.extract(
        normalize_tag(tag),
        choices,
        scorer=fuzz.ratio,
        processor=normalize_tag,
        score_cutoff=min_score,
        limit=limit,
    )
    return [match[0] for match in matches]
