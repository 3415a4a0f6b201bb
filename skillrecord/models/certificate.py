from flask import current_app
from sqlalchemy.exc import IntegrityError
from .. import db
from .user import new_id, isoformat
from ..errors import ServiceUnavailable
from datetime import datetime
import logging
import uuid

logger = logging.getLogger(__name__)


def new_verification_code():
    return uuid.uuid4().hex


class CertificateNumberExhausted(ServiceUnavailable):
    """Raised when every retry for a free certificate number collided"""


class Certificate(db.Model):
    __tablename__ = 'certificates'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    course_id = db.Column(db.String(36), db.ForeignKey('courses.id'))
    activity_id = db.Column(db.String(36), db.ForeignKey('activities.id'))
    type = db.Column(db.String(32), nullable=False, default='course_completion')
    title_ar = db.Column(db.Text, nullable=False)
    title_en = db.Column(db.Text)
    certificate_number = db.Column(db.Integer, unique=True)
    issued_at = db.Column(db.DateTime, default=datetime.utcnow)
    verification_code = db.Column(db.String(64), unique=True, nullable=False, default=new_verification_code)

    holder = db.relationship('User', foreign_keys=[user_id])
    course = db.relationship('Course', foreign_keys=[course_id])

    @staticmethod
    def next_number():
        current = db.session.query(db.func.coalesce(db.func.max(Certificate.certificate_number), 0)).scalar()
        return (current or 0) + 1

    @classmethod
    def issue(cls, user_id, title_ar, title_en=None, course_id=None, activity_id=None, kind='course_completion'):
        """Issue a certificate with the next global number.

        The number is max + 1 inserted inside a SAVEPOINT. The unique
        constraint on certificate_number rejects a concurrent duplicate, and
        the insert is retried with a fresh number. The caller commits.
        """
        retries = current_app.config.get('CERTIFICATE_NUMBER_RETRIES', 5)
        for attempt in range(1, retries + 1):
            certificate = cls(
                user_id=user_id,
                course_id=course_id,
                activity_id=activity_id,
                type=kind,
                title_ar=title_ar,
                title_en=title_en,
                verification_code=new_verification_code()
            )
            try:
                with db.session.begin_nested():
                    certificate.certificate_number = cls.next_number()
                    db.session.add(certificate)
                return certificate
            except IntegrityError:
                logger.warning(f"Certificate number collision on attempt {attempt}, retrying")
        raise CertificateNumberExhausted(f"No free certificate number after {retries} attempts")

    @classmethod
    def for_user(cls, user_id):
        return cls.query.filter_by(user_id=user_id).order_by(cls.issued_at.desc()).all()

    @classmethod
    def find_by_code(cls, code):
        return cls.query.filter_by(verification_code=code).first()

    def __repr__(self):
        return f'<Certificate #{self.certificate_number} {self.user_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'course_id': self.course_id,
            'activity_id': self.activity_id,
            'type': self.type,
            'title_ar': self.title_ar,
            'title_en': self.title_en,
            'certificate_number': self.certificate_number,
            'issued_at': isoformat(self.issued_at),
            'verification_code': self.verification_code
        }

    def to_public_dict(self):
        """Certificate plus holder and course names, for unauthenticated lookup"""
        data = self.to_dict()
        data['user_name'] = (self.holder.full_name or None) if self.holder else None
        data['course_name'] = self.course.title_ar if self.course else None
        return data
