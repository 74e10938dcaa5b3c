"""CLI command implementations"""

import json
import logging
import mimetypes
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import Session, SQLModel

from wppub.client.wordpress import WordPressError
from wppub.config import Settings, Site, load_config
from wppub.core.convert import render
from wppub.core.frontmatter import extract
from wppub.core.publish import (
    discover_files,
    existing_post_id,
    make_client,
    publish_dir,
    publish_file,
    resolve_options,
    select_site,
)
from wppub.crud.database import init_db, make_engine
from wppub.crud.history import get_all_records, get_last_batch


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _site(settings: Settings, name: Optional[str]) -> Site:
    try:
        return select_site(settings, name)
    except ValueError as e:
        _fail(str(e))


def _setup_logging(settings: Settings, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _read_note(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        _fail(f"Cannot read {path}", e)


def publish_cmd(
    path: Annotated[Path, typer.Argument(help="Markdown note to publish")],
    site: Annotated[Optional[str], typer.Option("--site", help="Configured site name")] = None,
    post_type: Annotated[Optional[str], typer.Option("--type", help="post or page")] = None,
    status: Annotated[Optional[str], typer.Option("--status", help="publish, draft, pending or private")] = None,
    title: Annotated[Optional[str], typer.Option("--title", help="Title override")] = None,
    categories: Annotated[Optional[list[str]], typer.Option("--category", help="Category name (repeatable)")] = None,
    tags: Annotated[Optional[list[str]], typer.Option("--tag", help="Tag name (repeatable)")] = None,
    excerpt: Annotated[Optional[str], typer.Option("--excerpt", help="Post excerpt")] = None,
    slug: Annotated[Optional[str], typer.Option("--slug", help="Post slug")] = None,
    no_convert: Annotated[bool, typer.Option("--no-convert", help="Send the Markdown body as-is")] = False,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Show what would be sent without publishing")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
    ):
    """Publish a single note, updating the post when the note already has a wp_post_id."""
    settings = _settings(overrides={"convert_markdown": False if no_convert else None})
    _setup_logging(settings, verbose)
    target = _site(settings, site)
    overrides = {
        "post_type": post_type, "status": status, "title": title,
        "categories": categories or None, "tags": tags or None,
        "excerpt": excerpt, "slug": slug,
    }

    if dry_run:
        body, metadata = extract(_read_note(path))
        try:
            options = resolve_options(metadata, settings, target.name, path.stem, **overrides)
            content = render(body, settings.converter, settings.parser_config) if settings.convert_markdown else body
        except ValueError as e:
            _fail("Invalid publish options", e)
        post_id = existing_post_id(metadata)
        action = f"update {options.post_type} #{post_id}" if post_id else f"create {options.post_type}"
        typer.echo(f"Would {action} on {target.name} ({target.url}):")
        typer.echo(json.dumps(options.model_dump(), indent=2))
        typer.echo(content)
        return

    engine = make_engine(settings.db_url)
    init_db(engine)
    try:
        with make_client(target, settings) as client, Session(engine) as session:
            result = publish_file(client, path, settings, target.name, overrides, session=session)
            session.commit()
    except (OSError, ValueError, WordPressError) as e:
        _fail(f"Failed to publish {path}", e)

    if not result.success:
        _fail(f"Failed to publish {path}", result.error)
    typer.echo(f"Published: {path} -> #{result.post_id} {result.post_url or ''}".rstrip())


def publish_dir_cmd(
    path: Annotated[Path, typer.Argument(help="Directory of notes to publish")],
    site: Annotated[Optional[str], typer.Option("--site", help="Configured site name")] = None,
    recursive: Annotated[bool, typer.Option("--recursive", "-r", help="Include subdirectories")] = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
    ):
    """Publish every note in a directory using frontmatter and defaults."""
    settings = _settings()
    _setup_logging(settings, verbose)
    if not path.is_dir():
        _fail(f"Not a directory: {path}")
    target = _site(settings, site)

    files = discover_files(path, recursive)
    if not files:
        typer.echo("No markdown files in this folder.")
        raise typer.Exit(1)
    if not yes and not typer.confirm(f"Publish {len(files)} notes to {target.name}?"):
        raise typer.Exit(1)

    engine = make_engine(settings.db_url)
    init_db(engine)
    with make_client(target, settings) as client, Session(engine) as session:
        batch = publish_dir(client, path, settings, target.name, recursive, session=session)
        session.commit()

    for note, result in batch.results:
        status = f"#{result.post_id}" if result.success else f"failed: {result.error}"
        typer.echo(f"  {note}: {status}")
    typer.echo(f"Published {batch.published} notes, {batch.failed} failed")
    if batch.failed:
        raise typer.Exit(1)


def convert_cmd(
    path: Annotated[Path, typer.Argument(help="Markdown note to convert")],
    out: Annotated[Optional[Path], typer.Option("--out", "-o", help="Write HTML to this file")] = None,
    converter: Annotated[Optional[str], typer.Option("--converter", help="simple or markdown-it")] = None,
    ):
    """Convert a note body (frontmatter removed) to HTML."""
    settings = _settings(overrides={"converter": converter})
    body, _ = extract(_read_note(path))
    html = render(body, settings.converter, settings.parser_config)
    if out:
        out.write_text(html + "\n", encoding="utf-8")
        typer.echo(f"  {path} -> {out}")
    else:
        typer.echo(html)


def meta_cmd(
    path: Annotated[Path, typer.Argument(help="Markdown note to inspect")],
    ):
    """Print the parsed frontmatter of a note as JSON."""
    _, metadata = extract(_read_note(path))
    typer.echo(json.dumps(metadata, indent=2, ensure_ascii=False))


def check_connection_cmd(
    site: Annotated[Optional[str], typer.Option("--site", help="Configured site name")] = None,
    ):
    """Check the credentials of a configured site."""
    settings = _settings()
    target = _site(settings, site)
    with make_client(target, settings) as client:
        result = client.test_connection()
    if not result.success:
        _fail(f"Connection to {target.url} failed", result.message)
    typer.echo(f"{target.name}: {result.message}")


def upload_media_cmd(
    file: Annotated[Path, typer.Argument(help="File to upload to the media library")],
    site: Annotated[Optional[str], typer.Option("--site", help="Configured site name")] = None,
    ):
    """Upload a file to the site's media library."""
    settings = _settings()
    target = _site(settings, site)
    try:
        data = file.read_bytes()
    except OSError as e:
        _fail(f"Cannot read {file}", e)
    mime_type = mimetypes.guess_type(file.name)[0] or "application/octet-stream"
    with make_client(target, settings) as client:
        media = client.upload_media(file.name, data, mime_type)
    if media is None:
        _fail(f"Upload of {file} failed")
    typer.echo(f"Uploaded {file.name} -> #{media.id} {media.source_url}")


def history_cmd(
    all_records: Annotated[bool, typer.Option("--all", help="Show every recorded attempt")] = False,
    ):
    """List publish attempts from the last run (or all runs)."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    init_db(engine)
    with Session(engine) as session:
        records = get_all_records(session) if all_records else get_last_batch(session)
        rows = [
            (r.published_at, r.status.value, r.site, r.path, r.post_id, r.post_url or r.error or "")
            for r in records
        ]
    if not rows:
        typer.echo("No publish history found.")
        raise typer.Exit(1)
    for published_at, status, site, path, post_id, detail in rows:
        ts = published_at.strftime("%Y-%m-%d %H:%M:%S") if isinstance(published_at, datetime) else published_at
        typer.echo(f"{ts}  {status:<8} {site}  {path}  #{post_id or '-'}  {detail}")


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize the publish history database. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        SQLModel.metadata.drop_all(engine)
        typer.echo("Existing history cleared.")
    init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")
