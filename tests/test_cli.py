"""Tests for the Typer CLI."""

import json
import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from postbook.cli import HOOK_MARKER, app, build_hook_script

runner = CliRunner()

POST = """---
layout: post
title: {title}
description: d
summary: s
comments: true
tags:
{tags}---

Body text for {title}.
"""


def write_post(posts_dir: Path, filename: str, title: str, tags: list[str]) -> None:
    tag_lines = "".join(f"  - {t}\n" for t in tags)
    (posts_dir / filename).write_text(POST.format(title=title, tags=tag_lines), encoding="utf-8")


@pytest.fixture
def posts_dir(tmp_path):
    directory = tmp_path / "_posts"
    directory.mkdir()
    write_post(directory, "2021-06-01-modules.md", "Modules", ["terraform"])
    write_post(directory, "2022-09-15-hooks.md", "Hooks", ["git"])
    write_post(directory, "2023-02-10-state.md", "State", ["terraform"])
    return directory


def invoke(posts_dir: Path, *args: str):
    return runner.invoke(app, ["--posts-dir", str(posts_dir), *args])


class TestListAndShow:
    def test_list(self, posts_dir):
        result = invoke(posts_dir, "list")
        assert result.exit_code == 0
        assert "modules" in result.output
        assert result.output.index("state") < result.output.index("modules")

    def test_list_by_tag(self, posts_dir):
        result = invoke(posts_dir, "list", "--tag", "git")
        assert result.exit_code == 0
        assert "hooks" in result.output
        assert "modules" not in result.output

    def test_missing_posts_dir(self, tmp_path):
        result = invoke(tmp_path / "missing", "list")
        assert result.exit_code == 1

    def test_show(self, posts_dir):
        result = invoke(posts_dir, "show", "hooks")
        assert result.exit_code == 0
        assert "2022-09-15-hooks.md" in result.output

    def test_show_missing(self, posts_dir):
        result = invoke(posts_dir, "show", "nope")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestValidate:
    def test_valid(self, posts_dir):
        result = invoke(posts_dir, "validate")
        assert result.exit_code == 0
        assert "0 error(s)" in result.output

    def test_errors_fail(self, posts_dir):
        (posts_dir / "2023-02-30-bad.md").write_text("---\ntitle: x\n---\n", encoding="utf-8")
        result = invoke(posts_dir, "validate")
        assert result.exit_code == 1

    def test_strict_warnings_fail(self, posts_dir):
        text = (posts_dir / "2021-06-01-modules.md").read_text(encoding="utf-8")
        (posts_dir / "2021-06-01-modules.md").write_text(text.replace("summary: s\n", ""), encoding="utf-8")
        assert invoke(posts_dir, "validate").exit_code == 0
        assert invoke(posts_dir, "validate", "--strict").exit_code == 1

    def test_report_file(self, posts_dir, tmp_path):
        report = tmp_path / "reports" / "validation.json"
        result = invoke(posts_dir, "validate", "--report", str(report))
        assert result.exit_code == 0
        assert json.loads(report.read_text(encoding="utf-8"))["checked"] == 3


class TestNew:
    def test_new_post(self, posts_dir):
        result = invoke(
            posts_dir, "new", "Remote State Locking",
            "--tag", "terraform", "--tag", "aws", "--date", "2024-05-01",
        )
        assert result.exit_code == 0

        path = posts_dir / "2024-05-01-remote-state-locking.md"
        text = path.read_text(encoding="utf-8")
        assert text.startswith("---\nlayout: post\ntitle: Remote State Locking\n")
        assert "comments: true" in text
        assert "- terraform\n- aws\n" in text

    def test_new_without_comments(self, posts_dir):
        result = invoke(posts_dir, "new", "Quiet", "--no-comments", "--date", "2024-05-02")
        assert result.exit_code == 0
        text = (posts_dir / "2024-05-02-quiet.md").read_text(encoding="utf-8")
        assert "comments: false" in text

    def test_new_duplicate(self, posts_dir):
        result = invoke(posts_dir, "new", "Hooks", "--date", "2022-09-15")
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_new_bad_date(self, posts_dir):
        result = invoke(posts_dir, "new", "Hooks", "--date", "2022-02-30")
        assert result.exit_code == 1


class TestTagsRelatedManifest:
    def test_tags(self, posts_dir):
        result = invoke(posts_dir, "tags")
        assert result.exit_code == 0
        assert "terraform" in result.output

    def test_related(self, posts_dir):
        result = invoke(posts_dir, "related", "modules")
        assert result.exit_code == 0
        assert "state" in result.output
        assert "hooks" not in result.output

    def test_manifest(self, posts_dir, tmp_path):
        target = tmp_path / "site" / "manifest.json"
        result = invoke(posts_dir, "manifest", "--output", str(target))
        assert result.exit_code == 0
        data = json.loads(target.read_text(encoding="utf-8"))
        assert [p["slug"] for p in data["posts"]] == ["state", "hooks", "modules"]

    def test_export(self, posts_dir, tmp_path):
        out = tmp_path / "normalized"
        result = invoke(posts_dir, "export", str(out))
        assert result.exit_code == 0
        assert sorted(p.name for p in out.iterdir()) == [
            "2021-06-01-modules.md",
            "2022-09-15-hooks.md",
            "2023-02-10-state.md",
        ]
        assert invoke(posts_dir, "export", str(out)).exit_code == 1

    def test_manifest_logged(self, posts_dir, tmp_path):
        log_file = tmp_path / "postbook.log"
        target = tmp_path / "site" / "manifest.json"
        result = runner.invoke(
            app,
            ["--posts-dir", str(posts_dir), "--log-file", str(log_file), "manifest", "--output", str(target)],
        )
        assert result.exit_code == 0

        text = log_file.read_text(encoding="utf-8")
        assert "Starting: manifest for 3 posts" in text
        assert "Completed: manifest for 3 posts" in text

    def test_failed_export_logged(self, posts_dir, tmp_path):
        out = tmp_path / "normalized"
        log_file = tmp_path / "postbook.log"
        assert invoke(posts_dir, "export", str(out)).exit_code == 0

        result = runner.invoke(app, ["--posts-dir", str(posts_dir), "--log-file", str(log_file), "export", str(out)])
        assert result.exit_code == 1
        assert "Failed: export of 3 posts" in log_file.read_text(encoding="utf-8")


class TestInstallHook:
    def test_install(self, posts_dir, tmp_path):
        (tmp_path / ".git").mkdir()
        result = invoke(posts_dir, "install-hook", "--repo", str(tmp_path))
        assert result.exit_code == 0

        hook = tmp_path / ".git" / "hooks" / "pre-commit"
        assert hook.read_text(encoding="utf-8") == build_hook_script(posts_dir)
        assert os.access(hook, os.X_OK)

        # Re-installing our own hook is allowed
        assert invoke(posts_dir, "install-hook", "--repo", str(tmp_path)).exit_code == 0

    def test_existing_hook(self, posts_dir, tmp_path):
        hooks = tmp_path / ".git" / "hooks"
        hooks.mkdir(parents=True)
        (hooks / "pre-commit").write_text("#!/bin/sh\nmake lint\n", encoding="utf-8")

        assert invoke(posts_dir, "install-hook", "--repo", str(tmp_path)).exit_code == 1
        assert invoke(posts_dir, "install-hook", "--repo", str(tmp_path), "--force").exit_code == 0

    def test_script(self):
        script = build_hook_script(Path("_posts"))
        assert script.startswith("#!/bin/sh\n")
        assert HOOK_MARKER in script
        assert 'postbook --posts-dir "_posts" validate' in script
