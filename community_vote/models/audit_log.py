import uuid
from ..extensions import db
from ..utils.clock import utcnow

class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)

    # Who performed the action: an admin user id, a resident ("A-26-5") or nothing
    actor_user_id = db.Column(db.Uuid, nullable=True, index=True)
    actor_resident = db.Column(db.String(64), nullable=True, index=True)
    actor_role = db.Column(db.String(30), nullable=True)

    # What happened
    action = db.Column(db.String(80), nullable=False, index=True)  # e.g. POLL_CREATED
    entity_type = db.Column(db.String(50), nullable=True, index=True)  # e.g. POLL, VOTE, AUTH
    entity_id = db.Column(db.Uuid, nullable=True, index=True)

    # Request context
    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    details = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
