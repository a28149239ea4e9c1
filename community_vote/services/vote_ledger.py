import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..domain import CHOICE_AGREE, CHOICE_DISAGREE, VALID_CHOICES, PollResult, ResidentId
from ..extensions import db
from ..models.vote import Vote
from ..utils.clock import utcnow
from .errors import StorageUnavailable

logger = logging.getLogger(__name__)


def _resident_filter(poll_id, resident: ResidentId):
    return (
        Vote.poll_id == poll_id,
        Vote.building_code == resident.building_code,
        Vote.unit_number == resident.unit_number,
        Vote.floor_number == resident.floor_number,
    )


class VoteLedger:
    """One vote per household per poll, enforced by ``uq_votes_poll_resident``."""

    def has_voted(self, poll_id, resident: ResidentId) -> bool:
        try:
            found = db.session.query(Vote.id).filter(*_resident_filter(poll_id, resident)).first()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("DB error checking vote status")
            raise StorageUnavailable("vote status")
        return found is not None

    def find(self, poll_id, resident: ResidentId) -> Optional[Vote]:
        try:
            return Vote.query.filter(*_resident_filter(poll_id, resident)).first()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("DB error fetching vote")
            raise StorageUnavailable("vote fetch")

    def submit(self, poll_id, resident: ResidentId, choice: str,
               now: Optional[datetime] = None) -> bool:
        """
        Record ``choice`` for ``resident`` on ``poll_id``.

        A single insert; the unique constraint decides between concurrent
        submissions. Returns False when the household has already voted.
        """
        if choice not in VALID_CHOICES:
            raise ValueError(f"Invalid choice: {choice!r}")

        vote = Vote(
            poll_id=poll_id,
            building_code=resident.building_code,
            unit_number=resident.unit_number,
            floor_number=resident.floor_number,
            choice=choice,
            voted_at=now or utcnow(),
        )
        try:
            db.session.add(vote)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            if self.has_voted(poll_id, resident):
                logger.info("Duplicate vote attempt poll=%s resident=%s", poll_id, resident)
                return False
            raise ValueError(f"Poll {poll_id} does not exist")
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("DB error while submitting vote")
            raise StorageUnavailable("vote submit")
        return True

    def tally(self, poll_id) -> PollResult:
        """Counts per choice, recomputed from the votes table on every call."""
        try:
            rows = (
                db.session.query(Vote.choice, func.count(Vote.id))
                .filter(Vote.poll_id == poll_id)
                .group_by(Vote.choice)
                .all()
            )
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("DB error computing tally")
            raise StorageUnavailable("tally")

        counts = {choice: int(n) for choice, n in rows}
        return PollResult(
            poll_id=str(poll_id),
            agree_count=counts.get(CHOICE_AGREE, 0),
            disagree_count=counts.get(CHOICE_DISAGREE, 0),
        )
