import datetime
import json

import pytest

from postbook.errors import PostExistsError
from postbook.models.post import Post, PostFilename, PostFrontMatter
from postbook.models.validation import Severity, ValidationReport
from postbook.output.json_writer import create_json_writer
from postbook.output.markdown_writer import create_markdown_writer
from postbook.services.front_matter import parse_post_text


def make_post(slug: str = "git-hooks", tags: list[str] | None = None) -> Post:
    return Post(
        location=PostFilename(date=datetime.date(2022, 9, 15), slug=slug),
        front_matter=PostFrontMatter(
            layout="post",
            title="Git Hooks",
            description="A tiny pre-commit hook",
            summary="Validate before committing.",
            comments=False,
            tags=tags if tags is not None else ["git", "shell"],
        ),
        body="Hooks run scripts.\n\n```sh\n#!/bin/sh\nexit 0\n```\n",
    )


@pytest.mark.asyncio
async def test_write_post(tmp_path):
    writer = create_markdown_writer(tmp_path / "out")
    post = make_post()

    path = await writer.write_post(post)

    assert path.name == "2022-09-15-git-hooks.md"
    fm, body = parse_post_text(path.read_text(encoding="utf-8"))
    assert fm == post.front_matter
    assert body == post.body


@pytest.mark.asyncio
async def test_write_post_refuses_overwrite(tmp_path):
    writer = create_markdown_writer(tmp_path)
    await writer.write_post(make_post())

    with pytest.raises(PostExistsError):
        await writer.write_post(make_post())

    path = await writer.write_post(make_post(), overwrite=True)
    assert path.exists()


@pytest.mark.asyncio
async def test_write_manifest(tmp_path):
    writer = create_json_writer(tmp_path, permalink_pattern="/blog/:slug/")
    posts = [make_post(), make_post("terraform-state", tags=["terraform", "git"])]

    path = await writer.write_manifest(posts)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["total_posts"] == 2
    assert data["posts"][0]["permalink"] == "/blog/git-hooks/"
    assert data["posts"][0]["date"] == "2022-09-15"
    assert data["posts"][0]["code_languages"] == ["sh"]
    assert data["posts"][0]["word_count"] == 3
    assert data["tags"] == {"git": 2, "shell": 1, "terraform": 1}


def test_build_manifest_empty(tmp_path):
    writer = create_json_writer(tmp_path)
    data = writer.build_manifest([])
    assert data["total_posts"] == 0
    assert data["posts"] == []
    assert data["tags"] == {}


@pytest.mark.asyncio
async def test_write_validation_report(tmp_path):
    report = ValidationReport(checked=1)
    report.add(Severity.error, "missing-title", "2020-01-01-x.md", "no title")
    writer = create_json_writer(tmp_path)

    path = await writer.write_validation_report(report)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["is_valid"] is False
    assert data["errors"][0]["code"] == "missing-title"
    assert data["errors"][0]["severity"] == "error"
