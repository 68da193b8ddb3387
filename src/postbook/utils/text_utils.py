"""Text utilities for Markdown post bodies."""

import math
import re
import unicodedata

FENCE_RE = re.compile(r'^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>[^`]*)$')
FOOTNOTE_REF_RE = re.compile(r'\[\^([^\]\s]+)\](?!:)')
FOOTNOTE_DEF_RE = re.compile(r'^ {0,3}\[\^([^\]\s]+)\]:', re.MULTILINE)


def slugify(text: str, max_length: int = 100) -> str:
    """
    Convert text to URL-friendly slug.

    Args:
        text: Text to convert
        max_length: Maximum slug length

    Returns:
        URL-friendly slug
    """
    # Normalize unicode characters
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")

    text = text.lower()

    # Replace spaces and special chars with hyphens
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    text = re.sub(r'-+', '-', text)

    text = text.strip('-')

    # Truncate to max length at word boundary
    if len(text) > max_length:
        text = text[:max_length].rsplit('-', 1)[0]

    return text


def is_url_safe_slug(slug: str) -> bool:
    """Check that a slug only uses lowercase letters, digits and inner hyphens."""
    return bool(re.fullmatch(r'[a-z0-9]+(?:-[a-z0-9]+)*', slug))


def strip_code_blocks(markdown: str) -> str:
    """Remove fenced code blocks, keeping surrounding prose line positions."""
    lines = markdown.split('\n')
    kept: list[str] = []
    open_fence: str | None = None

    for line in lines:
        match = FENCE_RE.match(line)
        if open_fence is None:
            if match:
                open_fence = match.group("fence")
                kept.append("")
                continue
            kept.append(line)
        else:
            if match and _closes_fence(open_fence, match):
                open_fence = None
            kept.append("")

    return '\n'.join(kept)


def _closes_fence(open_fence: str, match: re.Match) -> bool:
    fence = match.group("fence")
    return (
        fence[0] == open_fence[0]
        and len(fence) >= len(open_fence)
        and not match.group("info").strip()
    )


def count_words(text: str) -> int:
    """Count words in text."""
    clean = re.sub(r'!\[.*?\]\(.*?\)', '', text)         # Remove images
    clean = re.sub(r'\[([^\]]*)\]\(.*?\)', r'\1', clean)  # Keep link text
    clean = re.sub(r'\[\^[^\]]+\]:?', '', clean)          # Footnote markers
    clean = re.sub(r'[#*_`\[\]()>|]', ' ', clean)

    words = [w for w in clean.split() if re.search(r'\w', w)]
    return len(words)


def reading_time_minutes(text: str, words_per_minute: int = 200) -> int:
    """Estimated reading time, at least one minute for non-empty prose."""
    words = count_words(clean_markdown(text))
    if words == 0:
        return 0
    return max(1, math.ceil(words / words_per_minute))


def extract_code_languages(markdown: str) -> list[str]:
    """Languages named on opening code fences, in order of first use."""
    languages: list[str] = []
    open_fence: str | None = None

    for line in markdown.split('\n'):
        match = FENCE_RE.match(line)
        if not match:
            continue
        if open_fence is None:
            open_fence = match.group("fence")
            info = match.group("info").strip()
            language = info.split()[0].strip('{}.').lower() if info else ""
            if language and language not in languages:
                languages.append(language)
        elif _closes_fence(open_fence, match):
            open_fence = None

    return languages


def has_unclosed_fence(markdown: str) -> bool:
    """Check whether a fenced code block is left open at end of text."""
    open_fence: str | None = None
    for line in markdown.split('\n'):
        match = FENCE_RE.match(line)
        if not match:
            continue
        if open_fence is None:
            open_fence = match.group("fence")
        elif _closes_fence(open_fence, match):
            open_fence = None
    return open_fence is not None


def extract_footnotes(markdown: str) -> dict[str, list[str]]:
    """
    Collect footnote labels outside code blocks.

    Returns:
        Dict with "references" (labels used in prose, first-use order)
        and "definitions" (labels defined with ``[^label]:``).
    """
    prose = strip_code_blocks(markdown)
    prose = re.sub(r'`[^`\n]+`', '', prose)

    definitions = list(dict.fromkeys(FOOTNOTE_DEF_RE.findall(prose)))
    without_defs = FOOTNOTE_DEF_RE.sub('', prose)
    references = list(dict.fromkeys(FOOTNOTE_REF_RE.findall(without_defs)))

    return {"references": references, "definitions": definitions}


def clean_markdown(markdown: str) -> str:
    """Remove markdown formatting, leaving plain text."""
    text = strip_code_blocks(markdown)
    text = re.sub(r'`[^`]+`', '', text)

    # Remove images
    text = re.sub(r'!\[.*?\]\(.*?\)', '', text)

    # Convert links to just text
    text = re.sub(r'\[([^\]]+)\]\([^)]+\)', r'\1', text)

    # Footnote definitions and markers
    text = re.sub(r'^ {0,3}\[\^[^\]]+\]:.*$', '', text, flags=re.MULTILINE)
    text = re.sub(r'\[\^[^\]]+\]', '', text)

    # Remove headers (keep text)
    text = re.sub(r'^#{1,6}\s+', '', text, flags=re.MULTILINE)

    # Remove bold/italic
    text = re.sub(r'\*\*([^*]+)\*\*', r'\1', text)
    text = re.sub(r'\*([^*]+)\*', r'\1', text)
    text = re.sub(r'__([^_]+)__', r'\1', text)
    text = re.sub(r'\b_([^_]+)_\b', r'\1', text)

    # Remove horizontal rules
    text = re.sub(r'^-{3,}$', '', text, flags=re.MULTILINE)

    # Clean up whitespace
    text = re.sub(r'\n{3,}', '\n\n', text)

    return text.strip()
