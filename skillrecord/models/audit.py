from sqlalchemy.exc import SQLAlchemyError
from .. import db
from .user import new_id, isoformat
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


class AuditLog(db.Model):
    """Append-only record of privileged actions"""
    __tablename__ = 'audit_logs'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    actor_user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    action = db.Column(db.String(64), nullable=False)
    entity_type = db.Column(db.String(64), nullable=False)
    entity_id = db.Column(db.String(36))
    details = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    actor = db.relationship('User', foreign_keys=[actor_user_id])

    @classmethod
    def record(cls, actor_user_id, action, entity_type, entity_id=None, details=None):
        """Append an audit entry after the primary change has been committed.

        Failures are logged and swallowed so they never undo or mask the
        operation being described. Returns the entry, or None on failure.
        """
        entry = cls(
            actor_user_id=actor_user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details
        )
        try:
            db.session.add(entry)
            db.session.commit()
            return entry
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning(f"Audit write failed for {action} on {entity_type} {entity_id}: {str(e)}")
            return None

    @classmethod
    def recent(cls, limit=200):
        return cls.query.order_by(cls.created_at.desc()).limit(limit).all()

    def __repr__(self):
        return f'<AuditLog {self.action} {self.entity_type}:{self.entity_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'actor_user_id': self.actor_user_id,
            'actor_name': (self.actor.full_name or None) if self.actor else None,
            'action': self.action,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'details': self.details,
            'created_at': isoformat(self.created_at)
        }
