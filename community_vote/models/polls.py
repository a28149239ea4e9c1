import uuid
from datetime import datetime
from ..extensions import db
from ..utils.clock import utcnow

class Poll(db.Model):
    __tablename__ = "polls"

    ADMIN_IDENTITY = "admin"

    id = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)

    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by = db.Column(db.String(64), nullable=False, default=ADMIN_IDENTITY)

    # relationship
    votes = db.relationship(
        "Vote",
        backref="poll",
        lazy=True,
        cascade="all, delete-orphan"
    )

    def is_open(self, now: datetime) -> bool:
        """Accepting votes: active and not yet expired. Evaluated per read."""
        return bool(self.is_active) and now < self.expires_at
