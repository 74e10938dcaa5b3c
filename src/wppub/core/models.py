"""Data models shared by the publish workflow and the WordPress client"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


PostType = Literal['post', 'page']
PostStatus = Literal['publish', 'draft', 'pending', 'private']


class Term(BaseModel):
    """A WordPress category or tag."""
    id: int
    name: str
    slug: str = ''
    parent: int = 0


class User(BaseModel):
    id: int
    name: str
    slug: str = ''


class Media(BaseModel):
    id: int
    source_url: str
    title: dict[str, Any] = {}


class Post(BaseModel):
    """Request body for creating or updating a post/page; None fields are not sent."""
    title: str
    content: str
    status: PostStatus = 'draft'
    type: PostType = Field(default='post', exclude=True)
    categories: Optional[list[int]] = None
    tags: Optional[list[int]] = None
    featured_media: Optional[int] = None
    excerpt: Optional[str] = None
    slug: Optional[str] = None


class PublishResult(BaseModel):
    success: bool
    post_id: Optional[int] = None
    post_url: Optional[str] = None
    error: Optional[str] = None


class ConnectionResult(BaseModel):
    success: bool
    message: str
    user: Optional[User] = None


class PublishOptions(BaseModel):
    """Resolved per-note publish settings (frontmatter, CLI flags, then defaults)."""
    site: str
    post_type: PostType = 'post'
    status: PostStatus = 'draft'
    categories: list[str] = []
    tags: list[str] = []
    title: str
    excerpt: str = ''
    slug: str = ''


@dataclass
class BatchResult:
    """Outcome of publishing every note in a directory."""
    published: int = 0
    failed: int = 0
    results: list[tuple[Path, PublishResult]] = field(default_factory=list)
