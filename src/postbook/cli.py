"""CLI commands for postbook using Typer."""

import asyncio
import datetime
import logging
import stat
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from postbook.config import get_settings
from postbook.core.post_store import PostStore
from postbook.core.validator import PostValidator
from postbook.errors import PostbookError
from postbook.models.post import PostFrontMatter
from postbook.models.validation import Severity, ValidationReport
from postbook.output.json_writer import create_json_writer
from postbook.output.markdown_writer import create_markdown_writer
from postbook.services.tag_index import TagIndex, suggest_tags
from postbook.utils.logging import LogContext, get_logger, setup_logging
from postbook.utils.text_utils import slugify


app = typer.Typer(
    name="postbook",
    help="Manage a static blog's dated Markdown posts",
    no_args_is_help=True,
)

console = Console()
logger = get_logger("postbook.cli")

state: dict = {"posts_dir": None}

HOOK_MARKER = "# postbook pre-commit hook"


@app.callback()
def main_callback(
    posts_dir: Optional[Path] = typer.Option(
        None, "--posts-dir", "-d", help="Posts directory (defaults to POSTBOOK_POSTS_DIR)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write a debug log to this file"),
):
    """Manage a static blog's dated Markdown posts."""
    setup_logging(level=logging.DEBUG if verbose else logging.WARNING, log_file=log_file)
    state["posts_dir"] = posts_dir


def _posts_dir() -> Path:
    return state["posts_dir"] or get_settings().posts_dir


def _get_store() -> PostStore:
    posts_dir = _posts_dir()
    if not posts_dir.is_dir():
        console.print(f"[red]Posts directory not found: {posts_dir}[/red]")
        raise typer.Exit(1)
    return PostStore(posts_dir)


# --- List Command ---


@app.command("list")
def list_posts(
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Only posts with this tag"),
    limit: int = typer.Option(0, "--limit", "-n", help="Show at most N posts (0 = all)"),
):
    """List posts, newest first."""
    store = _get_store()
    posts = store.find_by_tag(tag) if tag else store.load_posts(strict=False)

    if limit > 0:
        posts = posts[:limit]

    if not posts:
        console.print("[yellow]No posts found[/yellow]")
        return

    table = Table(title=f"Posts tagged '{tag}'" if tag else "Posts")
    table.add_column("Date", style="dim")
    table.add_column("Slug", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Tags")
    table.add_column("Words", justify="right")

    for post in posts:
        table.add_row(
            post.date.isoformat(),
            post.slug,
            post.title,
            ", ".join(post.unique_tags),
            str(post.word_count),
        )

    console.print(table)

    if store.failures:
        console.print(f"[yellow]{len(store.failures)} file(s) could not be read; run 'postbook validate'[/yellow]")


# --- Show Command ---


@app.command()
def show(
    slug: str = typer.Argument(..., help="Post slug or filename"),
):
    """Show a post's metadata."""
    settings = get_settings()
    store = _get_store()

    try:
        post = store.get_post(slug)
    except PostbookError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    fm = post.front_matter
    lines = [
        f"[bold]Filename:[/bold] {post.filename}",
        f"[bold]Date:[/bold] {post.date.isoformat()}",
        f"[bold]Permalink:[/bold] {post.permalink(settings.permalink_pattern)}",
        f"[bold]Layout:[/bold] {fm.layout}",
        f"[bold]Description:[/bold] {fm.description}",
        f"[bold]Summary:[/bold] {fm.summary}",
        f"[bold]Comments:[/bold] {'on' if fm.comments else 'off'}",
        f"[bold]Tags:[/bold] {', '.join(post.tags)}",
        f"[bold]Words:[/bold] {post.word_count} "
        f"({post.reading_time_minutes(settings.words_per_minute)} min read)",
    ]
    if post.code_languages:
        lines.append(f"[bold]Code samples:[/bold] {', '.join(post.code_languages)}")
    if post.footnotes:
        lines.append(f"[bold]Footnotes:[/bold] {len(post.footnotes)}")
    if fm.extra:
        lines.append(f"[bold]Other keys:[/bold] {', '.join(fm.extra)}")

    console.print(Panel("\n".join(lines), title=post.title or "(untitled)"))


# --- Validate Command ---


@app.command()
def validate(
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as errors"),
    report_file: Optional[Path] = typer.Option(
        None, "--report", help="Also write the report as JSON to this file"
    ),
):
    """Check every post against the renderer's front-matter contract."""
    store = _get_store()
    report = PostValidator().validate_store(store)

    _display_report(report)

    if report_file:
        writer = create_json_writer(report_file.parent)
        path = asyncio.run(writer.write_validation_report(report, filename=report_file.name))
        console.print(f"[dim]Report written to {path}[/dim]")

    if not report.is_valid or (strict and report.warnings):
        raise typer.Exit(1)


def _display_report(report: ValidationReport) -> None:
    """Display validation issues grouped in a table."""
    if report.issues:
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Severity")
        table.add_column("File", style="cyan")
        table.add_column("Code", style="dim")
        table.add_column("Message")

        for issue in sorted(report.issues, key=lambda i: (i.filename, i.severity.value, i.code)):
            color = "red" if issue.severity == Severity.error else "yellow"
            table.add_row(
                f"[{color}]{issue.severity.value}[/{color}]",
                issue.filename,
                issue.code,
                issue.message,
            )
        console.print(table)

    summary = (
        f"Checked {report.checked} posts: "
        f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)"
    )
    if report.is_valid:
        console.print(f"[green]{summary}[/green]")
    else:
        console.print(f"[red]{summary}[/red]")


# --- New Command ---


@app.command()
def new(
    title: str = typer.Argument(..., help="Post title"),
    tags: list[str] = typer.Option([], "--tag", "-t", help="Tag (repeatable, order kept)"),
    date: Optional[str] = typer.Option(None, "--date", help="Publication date YYYY-MM-DD (default today)"),
    slug: Optional[str] = typer.Option(None, "--slug", help="Slug (default derived from title)"),
    description: str = typer.Option("", "--description", help="Short description"),
    summary: str = typer.Option("", "--summary", help="Listing summary"),
    comments: Optional[bool] = typer.Option(None, "--comments/--no-comments", help="Enable comments"),
    layout: Optional[str] = typer.Option(None, "--layout", help="Renderer layout"),
):
    """Create a new post file with front-matter."""
    settings = get_settings()
    store = PostStore(_posts_dir())

    published = None
    if date:
        try:
            published = datetime.date.fromisoformat(date)
        except ValueError:
            console.print(f"[red]Invalid date '{date}', expected YYYY-MM-DD[/red]")
            raise typer.Exit(1)

    post_slug = slug or slugify(title)
    if not post_slug:
        console.print("[red]Could not derive a slug from the title; pass --slug[/red]")
        raise typer.Exit(1)

    known_tags = TagIndex.from_posts(store.load_posts(strict=False)).tags
    for tag in tags:
        lookalikes = suggest_tags(tag, known_tags)
        if lookalikes and tag not in known_tags:
            console.print(f"[yellow]Tag '{tag}' is new; existing similar tags: {', '.join(lookalikes)}[/yellow]")

    front_matter = PostFrontMatter(
        layout=layout or settings.default_layout,
        title=title,
        description=description,
        summary=summary,
        comments=settings.default_comments if comments is None else comments,
        tags=tags,
    )

    try:
        post = store.create_post(
            slug=post_slug,
            front_matter=front_matter,
            published=published,
            extension=settings.post_extension,
        )
    except PostbookError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Created {post.source_path}[/green]")


# --- Tags Command ---


@app.command()
def tags(
    similar: bool = typer.Option(False, "--similar", help="Also list tags that look like duplicates"),
):
    """Show tag usage across the collection."""
    store = _get_store()
    index = TagIndex.from_posts(store.load_posts(strict=False))

    if not len(index):
        console.print("[yellow]No tags found[/yellow]")
        return

    table = Table(title="Tags")
    table.add_column("Tag", style="cyan")
    table.add_column("Posts", justify="right")
    for name, count in index.counts().items():
        table.add_row(name, str(count))
    console.print(table)

    if similar:
        pairs = index.similar_tags()
        if not pairs:
            console.print("[green]No similar tag spellings found[/green]")
        for first, second, score in pairs:
            console.print(f"  [yellow]{first}[/yellow] ~ [yellow]{second}[/yellow] [dim]({score:.0f})[/dim]")


# --- Related Command ---


@app.command()
def related(
    slug: str = typer.Argument(..., help="Post slug or filename"),
    limit: int = typer.Option(5, "--limit", "-n", help="Number of related posts"),
):
    """Suggest related posts for cross-linking."""
    store = _get_store()
    posts = store.load_posts(strict=False)

    try:
        post = store.get_post(slug, posts=posts)
    except PostbookError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    index = TagIndex.from_posts(posts)
    matches = index.related_posts(post, limit=limit)

    if not matches:
        console.print("[yellow]No related posts found[/yellow]")
        return

    table = Table(title=f"Related to '{post.title}'")
    table.add_column("Slug", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Shared tags", justify="right")
    table.add_column("Title match", justify="right")
    for other, shared, similarity in matches:
        table.add_row(other.slug, other.title, str(shared), f"{similarity:.0f}")
    console.print(table)


# --- Manifest Command ---


@app.command()
def manifest(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Manifest file path"),
):
    """Write a JSON manifest of all posts and tags."""
    settings = get_settings()
    store = _get_store()
    target = output or settings.manifest_file

    posts = store.load_posts(strict=False)
    writer = create_json_writer(
        target.parent,
        permalink_pattern=settings.permalink_pattern,
        words_per_minute=settings.words_per_minute,
    )
    with LogContext(logger, f"manifest for {len(posts)} posts"):
        path = asyncio.run(writer.write_manifest(posts, TagIndex.from_posts(posts), filename=target.name))

    console.print(f"[green]Wrote manifest for {len(posts)} posts to {path}[/green]")
    if store.failures:
        console.print(f"[yellow]{len(store.failures)} file(s) skipped; run 'postbook validate'[/yellow]")


# --- Export Command ---


@app.command()
def export(
    output_dir: Path = typer.Argument(..., help="Directory for normalized copies"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace existing files"),
):
    """Write every post with canonical front-matter into another directory."""
    store = _get_store()
    if output_dir.resolve() == store.posts_dir.resolve():
        console.print("[red]Output directory must differ from the posts directory[/red]")
        raise typer.Exit(1)

    posts = store.load_posts(strict=False)
    writer = create_markdown_writer(output_dir)

    try:
        with LogContext(logger, f"export of {len(posts)} posts to {output_dir}"):
            paths = asyncio.run(writer.write_posts(posts, overwrite=overwrite))
    except PostbookError as exc:
        console.print(f"[red]{exc}[/red]")
        console.print("[dim]Use --overwrite to replace existing files[/dim]")
        raise typer.Exit(1)

    console.print(f"[green]Exported {len(paths)} posts to {output_dir}[/green]")


# --- Install Hook Command ---


@app.command("install-hook")
def install_hook(
    repo: Path = typer.Option(Path("."), "--repo", help="Path inside the git repository"),
    force: bool = typer.Option(False, "--force", "-f", help="Replace an existing pre-commit hook"),
):
    """Install a git pre-commit hook that runs 'postbook validate'."""
    git_dir = _find_git_dir(repo.resolve())
    if git_dir is None:
        console.print(f"[red]No git repository found at or above {repo}[/red]")
        raise typer.Exit(1)

    hook_path = git_dir / "hooks" / "pre-commit"
    if hook_path.exists() and not force:
        existing = hook_path.read_text(encoding="utf-8", errors="replace")
        if HOOK_MARKER not in existing:
            console.print(f"[red]{hook_path} already exists; use --force to replace it[/red]")
            raise typer.Exit(1)

    hook_path.parent.mkdir(parents=True, exist_ok=True)
    hook_path.write_text(build_hook_script(_posts_dir()), encoding="utf-8")
    mode = hook_path.stat().st_mode
    hook_path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    console.print(f"[green]Installed pre-commit hook at {hook_path}[/green]")


def build_hook_script(posts_dir: Path) -> str:
    """Shell script for the pre-commit hook."""
    return (
        "#!/bin/sh\n"
        f"{HOOK_MARKER}\n"
        "# Blocks the commit when any post breaks the front-matter contract.\n"
        f"exec postbook --posts-dir \"{posts_dir}\" validate\n"
    )


def _find_git_dir(start: Path) -> Path | None:
    for candidate in (start, *start.parents):
        git_dir = candidate / ".git"
        if git_dir.is_dir():
            return git_dir
    return None


# --- Entry Point ---


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
