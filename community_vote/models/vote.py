import uuid
from ..extensions import db
from ..domain import VALID_CHOICES, ResidentId
from ..utils.clock import utcnow

class Vote(db.Model):
    __tablename__ = "votes"

    id = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)

    poll_id = db.Column(db.Uuid, db.ForeignKey("polls.id", ondelete="CASCADE"), nullable=False, index=True)

    # Resident identity, kept as three columns rather than a joined string
    building_code = db.Column(db.String(16), nullable=False)
    unit_number = db.Column(db.String(16), nullable=False)
    floor_number = db.Column(db.Integer, nullable=False)

    choice = db.Column(db.String(16), nullable=False)
    voted_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        # One vote per household per poll
        db.UniqueConstraint(
            "poll_id", "building_code", "unit_number", "floor_number",
            name="uq_votes_poll_resident",
        ),
        db.CheckConstraint(
            "choice IN ({})".format(", ".join(f"'{c}'" for c in VALID_CHOICES)),
            name="ck_votes_choice",
        ),
    )

    @property
    def resident(self) -> ResidentId:
        return ResidentId(self.building_code, self.unit_number, self.floor_number)
