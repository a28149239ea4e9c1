import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models.polls import Poll
from ..utils.clock import utcnow
from .errors import StorageUnavailable

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 60


class PollRepository:
    def __init__(self, default_duration_minutes: int = DEFAULT_DURATION_MINUTES):
        self.default_duration_minutes = default_duration_minutes

    def create(
        self,
        title: str,
        content: str,
        duration_minutes: Optional[int] = None,
        expires_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> Poll:
        """
        Publish a poll. An explicit ``expires_at`` wins over ``duration_minutes``;
        with neither, the poll runs for the default duration.

        Callers validate that ``expires_at`` lies in the future.
        """
        created = now or utcnow()
        if expires_at is None:
            minutes = duration_minutes or self.default_duration_minutes
            expires_at = created + timedelta(minutes=minutes)

        poll = Poll(
            title=title,
            content=content,
            created_at=created,
            expires_at=expires_at,
            is_active=True,
            created_by=Poll.ADMIN_IDENTITY,
        )
        try:
            db.session.add(poll)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("DB error creating poll")
            raise StorageUnavailable("poll create")
        return poll

    def list_active(self, now: Optional[datetime] = None) -> List[Poll]:
        """Polls still open at ``now``, newest first. A point-in-time snapshot."""
        now = now or utcnow()
        try:
            return (
                Poll.query
                .filter(Poll.is_active.is_(True), Poll.expires_at > now)
                .order_by(Poll.created_at.desc())
                .all()
            )
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("DB error listing active polls")
            raise StorageUnavailable("poll list")

    def get(self, poll_id) -> Optional[Poll]:
        try:
            return db.session.get(Poll, poll_id)
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("DB error fetching poll %s", poll_id)
            raise StorageUnavailable("poll fetch")
