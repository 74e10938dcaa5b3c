"""Publish workflow: frontmatter -> options -> HTML -> WordPress -> frontmatter write-back"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from sqlmodel import Session

from wppub.client.wordpress import WordPressClient, WordPressError
from wppub.config import Settings, Site
from wppub.core.convert import render
from wppub.core.frontmatter import MetadataMap, extract, merge
from wppub.core.models import BatchResult, Post, PublishOptions, PublishResult
from wppub.core.utils.hashing import sha256
from wppub.crud.history import record_result


logger = logging.getLogger(__name__)

MD_EXTENSIONS = {'.md'}


def discover_files(path: Path, recursive: bool = False) -> list[Path]:
    """Return sorted .md files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix.lower() in MD_EXTENSIONS else []
    candidates = path.rglob('*') if recursive else path.iterdir()
    return sorted(p for p in candidates if p.is_file() and p.suffix.lower() in MD_EXTENSIONS)


def select_site(settings: Settings, name: Optional[str] = None) -> Site:
    """Return the named site, else the default site, else the first configured one."""
    if not settings.sites:
        raise ValueError("No WordPress sites configured. Add one under 'sites' in config.yaml.")
    if name:
        for site in settings.sites:
            if site.name == name:
                return site
        raise ValueError(f"Unknown site '{name}'. Configured: {', '.join(s.name for s in settings.sites)}")
    return next((s for s in settings.sites if s.is_default), settings.sites[0])


def make_client(site: Site, settings: Settings, **kwargs) -> WordPressClient:
    return WordPressClient(site.url, site.username, site.application_password, timeout=settings.timeout, **kwargs)


def _as_list(value: Any) -> list[str]:
    """Frontmatter lists pass through; a lone scalar becomes a one-item list."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def resolve_options(
    metadata: MetadataMap,
    settings: Settings,
    site: str,
    default_title: str,
    **overrides,
    ) -> PublishOptions:
    """Merge non-None overrides, then frontmatter wp_* keys, then settings defaults."""
    options = {
        'site': site,
        'post_type': metadata.get('wp_post_type') or settings.default_post_type,
        'status': metadata.get('wp_status') or settings.default_status,
        'categories': _as_list(metadata.get('wp_categories')),
        'tags': _as_list(metadata.get('wp_tags')),
        'title': str(metadata.get('wp_title') or default_title),
        'excerpt': str(metadata.get('wp_excerpt') or ''),
        'slug': str(metadata.get('wp_slug') or ''),
    }
    options.update({k: v for k, v in overrides.items() if v is not None})
    return PublishOptions(**options)


def existing_post_id(metadata: MetadataMap) -> Optional[int]:
    """Return wp_post_id when it is a positive integer, else None."""
    post_id = metadata.get('wp_post_id')
    if isinstance(post_id, int) and not isinstance(post_id, bool) and post_id > 0:
        return post_id
    return None


def _term_ids(client: WordPressClient, names: list[str], kind: str) -> list[int]:
    """Resolve names to ids; a name that cannot be resolved is logged and skipped."""
    lookup = client.get_or_create_category if kind == 'category' else client.get_or_create_tag
    ids = []
    for name in names:
        try:
            ids.append(lookup(name).id)
        except (WordPressError, ValueError) as e:
            logger.error("Failed to get/create %s '%s': %s", kind, name, e)
    return ids


def build_post(client: WordPressClient, body: str, options: PublishOptions, settings: Settings) -> Post:
    """Convert the body (when enabled) and resolve taxonomy ids for posts."""
    content = render(body, settings.converter, settings.parser_config) if settings.convert_markdown else body

    categories: list[int] = []
    tags: list[int] = []
    if options.post_type == 'post':
        categories = _term_ids(client, options.categories, 'category')
        tags = _term_ids(client, options.tags, 'tag')

    return Post(
        title=options.title,
        content=content,
        status=options.status,
        type=options.post_type,
        categories=categories or None,
        tags=tags or None,
        excerpt=options.excerpt or None,
        slug=options.slug or None,
    )


def publish_text(
    client: WordPressClient,
    raw: str,
    options: PublishOptions,
    settings: Settings,
    ) -> tuple[PublishResult, Post, bool]:
    """Publish a note's raw text. Returns (result, post sent, whether it was an update)."""
    body, metadata = extract(raw)
    post = build_post(client, body, options, settings)

    post_id = existing_post_id(metadata)
    logger.debug("Existing post id: %r (from %r)", post_id, metadata.get('wp_post_id'))
    if post_id is not None:
        return client.update_post(post_id, post), post, True
    return client.create_post(post), post, False


def publish_file(
    client: WordPressClient,
    path: Path,
    settings: Settings,
    site: str,
    overrides: Optional[dict[str, Any]] = None,
    session: Optional[Session] = None,
    batch_at: Optional[datetime] = None,
    ) -> PublishResult:
    """Publish one note and write the remote id/url/date back into its frontmatter.

    When a session is given the attempt is stored in the publish history.
    """
    raw = path.read_text(encoding='utf-8')
    _, metadata = extract(raw)
    options = resolve_options(metadata, settings, site, path.stem, **(overrides or {}))

    result, post, updated = publish_text(client, raw, options, settings)

    if result.success and settings.add_frontmatter_on_publish:
        original = path.read_text(encoding='utf-8')
        path.write_text(merge(original, {
            'wp_post_id': result.post_id,
            'wp_post_url': result.post_url,
            'wp_last_published': datetime.now(timezone.utc).date().isoformat(),
        }), encoding='utf-8')

    if result.success:
        logger.info("Published %s -> %s", path, result.post_url)
    else:
        logger.warning("Failed to publish %s: %s", path, result.error)

    if session is not None:
        record_result(session, str(path), options, result, updated, sha256(post.content), batch_at or datetime.now())
    return result


def publish_dir(
    client: WordPressClient,
    root: Path,
    settings: Settings,
    site: str,
    recursive: bool = False,
    session: Optional[Session] = None,
    ) -> BatchResult:
    """Publish every note under root in sequence, counting successes and failures."""
    batch = BatchResult()
    batch_at = datetime.now()
    for path in discover_files(root, recursive):
        try:
            result = publish_file(client, path, settings, site, session=session, batch_at=batch_at)
        except (OSError, ValueError, WordPressError) as e:
            logger.error("Failed to publish %s: %s", path, e)
            result = PublishResult(success=False, error=str(e))
        batch.results.append((path, result))
        if result.success:
            batch.published += 1
        else:
            batch.failed += 1
    return batch
