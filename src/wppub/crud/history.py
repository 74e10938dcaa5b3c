"""Publish history persistence: record attempts and query past batches"""

from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, select

from wppub.core.models import PublishOptions, PublishResult
from wppub.crud.models import PublishRecord, PublishStatusEnum


def record_result(
    session: Session,
    path: str,
    options: PublishOptions,
    result: PublishResult,
    updated: bool,
    content_hash: str,
    batch_at: datetime,
    ) -> PublishRecord:
    """Store one publish attempt. Flushes but does not commit; caller controls the transaction."""
    if not result.success:
        status = PublishStatusEnum.failed
    elif updated:
        status = PublishStatusEnum.updated
    else:
        status = PublishStatusEnum.created

    record = PublishRecord(
        path=path,
        site=options.site,
        post_type=options.post_type,
        title=options.title,
        status=status,
        post_id=result.post_id,
        post_url=result.post_url,
        error=result.error,
        content_hash=content_hash,
        batch_at=batch_at,
    )
    session.add(record)
    session.flush()
    return record


def get_last_batch(session: Session) -> list[PublishRecord]:
    """Return records from the most recent publish run (MAX batch_at)."""
    max_ts = session.exec(select(func.max(PublishRecord.batch_at))).one()
    if max_ts is None:
        return []
    return list(session.exec(
        select(PublishRecord)
        .where(PublishRecord.batch_at == max_ts)
        .order_by(PublishRecord.published_at.asc())
    ).all())


def get_by_path(session: Session, path: str) -> list[PublishRecord]:
    """Return all attempts for a note path, newest first."""
    return list(session.exec(
        select(PublishRecord)
        .where(PublishRecord.path == path)
        .order_by(PublishRecord.published_at.desc())
    ).all())


def get_all_records(session: Session) -> list[PublishRecord]:
    """Return every stored attempt, oldest first."""
    return list(session.exec(select(PublishRecord).order_by(PublishRecord.published_at.asc())).all())
