"""Integration tests for the wppub CLI against a fake WordPress site"""

import json

import pytest
from typer.testing import CliRunner

from wppub.cli import commands
from wppub.cli.cli import app
from wppub.core.frontmatter import extract


CONFIG = """\
sites:
  - name: blog
    url: https://blog.example.com
    username: admin
    application_password: secret
    is_default: true
"""

runner = CliRunner()


@pytest.fixture(autouse=True)
def project(tmp_path, monkeypatch, wp):
    """A project directory with a config.yaml, a temp DB, and the fake site wired in."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("WPPUB_DB_URL", f"sqlite:///{tmp_path}/test.db")
    (tmp_path / "config.yaml").write_text(CONFIG)
    monkeypatch.setattr(commands, "make_client", lambda site, settings: wp.client())
    return tmp_path


def test_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "publish" in result.output


def test_publish_then_update(project, wp):
    note = project / "post.md"
    note.write_text("---\nwp_status: draft\nwp_tags:\n  - a\n  - b\n---\nHello **world**")

    result = runner.invoke(app, ["publish", "post.md"])
    assert result.exit_code == 0, result.output
    _, metadata = extract(note.read_text())
    post_id = metadata["wp_post_id"]
    assert wp.posts[post_id]["content"] == "<p>Hello <strong>world</strong></p>"

    result = runner.invoke(app, ["publish", "post.md", "--title", "Renamed", "--status", "publish"])
    assert result.exit_code == 0, result.output
    assert len(wp.posts) == 1
    assert wp.posts[post_id]["title"] == "Renamed"
    assert wp.posts[post_id]["status"] == "publish"

    result = runner.invoke(app, ["history", "--all"])
    assert result.exit_code == 0, result.output
    assert "created" in result.output
    assert "updated" in result.output


def test_publish_failure_exits_1(project, wp):
    (project / "n.md").write_text("text")
    wp.fail_with = (401, {"message": "Sorry, you are not allowed to do that."})
    result = runner.invoke(app, ["publish", "n.md"])
    assert result.exit_code == 1
    assert "not allowed" in result.output


def test_publish_dry_run_sends_nothing(project, wp):
    (project / "n.md").write_text("---\nwp_post_id: 7\n---\n# Title")
    result = runner.invoke(app, ["publish", "n.md", "--dry-run"])
    assert result.exit_code == 0, result.output
    assert "Would update post #7" in result.output
    assert "<h1>Title</h1>" in result.output
    assert wp.requests == []


def test_publish_unknown_site(project):
    (project / "n.md").write_text("text")
    result = runner.invoke(app, ["publish", "n.md", "--site", "other"])
    assert result.exit_code == 1
    assert "Unknown site 'other'" in result.output


def test_publish_dir(project, wp):
    notes = project / "notes"
    notes.mkdir()
    (notes / "one.md").write_text("One")
    (notes / "two.md").write_text("Two")

    result = runner.invoke(app, ["publish-dir", "notes", "--yes"])
    assert result.exit_code == 0, result.output
    assert "Published 2 notes, 0 failed" in result.output
    assert len(wp.posts) == 2

    result = runner.invoke(app, ["history"])
    assert result.output.count("created") == 2


def test_publish_dir_declined(project, wp):
    (project / "one.md").write_text("One")
    result = runner.invoke(app, ["publish-dir", "."], input="n\n")
    assert result.exit_code == 1
    assert wp.posts == {}


def test_convert_and_meta(project):
    (project / "n.md").write_text("---\nwp_tags:\n  - x\nwp_post_id: 3\n---\n- a\n- b")

    result = runner.invoke(app, ["convert", "n.md"])
    assert result.exit_code == 0, result.output
    assert "<ul><li>a</li>\n<li>b</li></ul>" in result.output

    result = runner.invoke(app, ["convert", "n.md", "--out", "n.html"])
    assert result.exit_code == 0, result.output
    assert (project / "n.html").read_text().startswith("<ul>")

    result = runner.invoke(app, ["meta", "n.md"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"wp_tags": ["x"], "wp_post_id": 3}


def test_test_connection(project, wp):
    result = runner.invoke(app, ["test-connection"])
    assert result.exit_code == 0, result.output
    assert "Connected as Admin" in result.output

    wp.fail_with = (401, {"message": "Invalid application password."})
    result = runner.invoke(app, ["test-connection"])
    assert result.exit_code == 1


def test_upload_media(project, wp):
    (project / "pic.png").write_bytes(b"\x89PNG")
    result = runner.invoke(app, ["upload-media", "pic.png"])
    assert result.exit_code == 0, result.output
    assert wp.requests[-1].headers["Content-Type"] == "image/png"


def test_init_and_empty_history(project):
    result = runner.invoke(app, ["init", "--reset"])
    assert result.exit_code == 0, result.output
    result = runner.invoke(app, ["history"])
    assert result.exit_code == 1
    assert "No publish history found." in result.output
