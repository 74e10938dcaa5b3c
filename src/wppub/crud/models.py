"""Database table definitions for the publish history"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, String, Text
from sqlmodel import Field, SQLModel


class PublishStatusEnum(str, Enum):
    """Outcome of a single publish attempt"""
    created = "created"
    updated = "updated"
    failed = "failed"


class PublishRecord(SQLModel, table=True):
    """One publish attempt of a note to a WordPress site"""
    __tablename__ = "publish_records"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    path: str = Field(..., sa_column=Column(Text, nullable=False, index=True))
    site: str = Field(..., nullable=False, description="Site name the note was sent to")
    post_type: str = Field(default="post", nullable=False)
    title: str = Field(default="", sa_column=Column(Text, nullable=False))
    status: PublishStatusEnum = Field(..., nullable=False)
    post_id: Optional[int] = Field(default=None, description="Remote post identifier")
    post_url: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    error: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    content_hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    published_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    batch_at: datetime = Field(..., sa_column=Column(DateTime(timezone=False), nullable=False, index=True))
