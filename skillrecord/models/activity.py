from .. import db
from .user import new_id, isoformat
from datetime import datetime
import enum


class ActivityType(str, enum.Enum):
    VOLUNTEER_WORK = 'volunteer_work'
    STUDENT_EMPLOYMENT = 'student_employment'
    PARTICIPATION = 'participation'
    SELF_DEVELOPMENT = 'self_development'
    AWARDS = 'awards'
    STUDENT_ACTIVITY = 'student_activity'
    PROFESSIONAL_ACTIVITY = 'professional_activity'
    LEADERSHIP_SKILLS = 'leadership_skills'


class ActivityStatus(str, enum.Enum):
    SUBMITTED = 'submitted'
    APPROVED = 'approved'
    REJECTED = 'rejected'


# Informational targets for the progress view, never enforced
ACTIVITY_MIN_HOURS = {
    ActivityType.VOLUNTEER_WORK.value: 25,
    ActivityType.STUDENT_EMPLOYMENT.value: 10,
    ActivityType.PARTICIPATION.value: 8,
    ActivityType.SELF_DEVELOPMENT.value: 3,
    ActivityType.AWARDS.value: 1,
    ActivityType.STUDENT_ACTIVITY.value: 20,
    ActivityType.PROFESSIONAL_ACTIVITY.value: 5,
    ActivityType.LEADERSHIP_SKILLS.value: 5,
}

MAX_ACTIVITY_HOURS = 500

REVIEW_ACTIONS = {
    'approve': ActivityStatus.APPROVED,
    'reject': ActivityStatus.REJECTED,
}


class Activity(db.Model):
    """Extracurricular activity claimed by a student"""
    __tablename__ = 'activities'
    __table_args__ = (
        db.CheckConstraint('hours > 0', name='ck_activity_hours_positive'),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    type = db.Column(db.String(32), nullable=False)
    name_ar = db.Column(db.Text, nullable=False)
    name_en = db.Column(db.Text)
    organization = db.Column(db.Text, nullable=False)
    hours = db.Column(db.Integer, nullable=False)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime)
    description_ar = db.Column(db.Text)
    description_en = db.Column(db.Text)
    proof_url = db.Column(db.Text)
    certificate_url = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default=ActivityStatus.SUBMITTED.value)
    rejection_reason = db.Column(db.Text)
    reviewed_by = db.Column(db.String(36), db.ForeignKey('users.id'))
    reviewed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    owner = db.relationship('User', foreign_keys=[user_id])

    @classmethod
    def for_user(cls, user_id):
        return cls.query.filter_by(user_id=user_id).order_by(cls.created_at.desc()).all()

    @classmethod
    def all_with_owners(cls):
        return cls.query.order_by(cls.created_at.desc()).all()

    @classmethod
    def review(cls, activity_id, reviewer_id, action, reason=None):
        """Move a submitted activity to approved or rejected.

        The transition is one conditional UPDATE guarded on status = 'submitted'.
        Returns the updated activity, or None when no submitted activity matched.
        """
        target = REVIEW_ACTIONS[action]
        updated = cls.query.filter_by(
            id=activity_id, status=ActivityStatus.SUBMITTED.value
        ).update({
            'status': target.value,
            'rejection_reason': reason or None,
            'reviewed_by': reviewer_id,
            'reviewed_at': datetime.utcnow()
        }, synchronize_session=False)
        if not updated:
            return None
        db.session.commit()
        return db.session.get(cls, activity_id)

    @staticmethod
    def hours_by_type(activities):
        """Sum of approved hours per activity type"""
        totals = {}
        for activity in activities:
            if activity.status == ActivityStatus.APPROVED.value:
                totals[activity.type] = totals.get(activity.type, 0) + activity.hours
        return totals

    @classmethod
    def progress_for_user(cls, user_id):
        totals = cls.hours_by_type(cls.for_user(user_id))
        progress = []
        for activity_type, required in ACTIVITY_MIN_HOURS.items():
            achieved = totals.get(activity_type, 0)
            progress.append({
                'type': activity_type,
                'required': required,
                'achieved': achieved,
                'remaining': max(required - achieved, 0)
            })
        return progress

    def __repr__(self):
        return f'<Activity {self.id} {self.type} ({self.status})>'

    def to_dict(self, include_owner=False):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'type': self.type,
            'name_ar': self.name_ar,
            'name_en': self.name_en,
            'organization': self.organization,
            'hours': self.hours,
            'start_date': isoformat(self.start_date),
            'end_date': isoformat(self.end_date),
            'description_ar': self.description_ar,
            'description_en': self.description_en,
            'proof_url': self.proof_url,
            'certificate_url': self.certificate_url,
            'status': self.status,
            'rejection_reason': self.rejection_reason,
            'reviewed_by': self.reviewed_by,
            'reviewed_at': isoformat(self.reviewed_at),
            'created_at': isoformat(self.created_at)
        }
        if include_owner:
            data['user_name'] = (self.owner.full_name or None) if self.owner else None
            data['user_email'] = self.owner.email if self.owner else None
        return data
