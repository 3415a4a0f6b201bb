"""Read-only aggregate queries for supervisors"""
from sqlalchemy import and_

from .. import db
from ..models.user import User, Profile
from ..models.activity import Activity, ActivityStatus
from ..models.course import Course
from ..models.enrollment import Enrollment

NO_VALUE = '—'


def _name(first_name, last_name):
    return ' '.join(part for part in (first_name, last_name) if part) or NO_VALUE


def stats():
    approved = ActivityStatus.APPROVED.value
    return {
        'total_students': db.session.query(db.func.count(Profile.id)).scalar(),
        'total_activities': db.session.query(db.func.count(Activity.id)).scalar(),
        'total_approved': db.session.query(db.func.count(Activity.id)).filter(Activity.status == approved).scalar(),
        'total_courses': db.session.query(db.func.count(Course.id)).scalar()
    }


def hours_by_student():
    rows = (
        db.session.query(
            Profile.user_id,
            User.first_name,
            User.last_name,
            Profile.major,
            db.func.coalesce(db.func.sum(Activity.hours), 0),
            db.func.count(Activity.id)
        )
        .select_from(Profile)
        .outerjoin(User, User.id == Profile.user_id)
        .outerjoin(Activity, and_(
            Activity.user_id == Profile.user_id,
            Activity.status == ActivityStatus.APPROVED.value
        ))
        .group_by(Profile.user_id, User.first_name, User.last_name, Profile.major)
        .all()
    )
    return [
        {
            'user_id': user_id,
            'user_name': _name(first_name, last_name),
            'major': major or NO_VALUE,
            'total_hours': int(total_hours or 0),
            'approved_activities': approved_count
        }
        for user_id, first_name, last_name, major, total_hours, approved_count in rows
    ]


def students_by_major():
    rows = (
        db.session.query(Profile.major, db.func.count(Profile.id))
        .group_by(Profile.major)
        .all()
    )
    return [{'major': major or NO_VALUE, 'count': count} for major, count in rows]


def completed_courses():
    rows = (
        db.session.query(Course.id, Course.title_ar, db.func.count(Enrollment.id))
        .select_from(Course)
        .outerjoin(Enrollment, and_(
            Enrollment.course_id == Course.id,
            Enrollment.is_completed.is_(True)
        ))
        .group_by(Course.id, Course.title_ar)
        .all()
    )
    return [
        {'course_id': course_id, 'course_name': title, 'completed_count': count}
        for course_id, title, count in rows
    ]


def approved_activities():
    rows = (
        db.session.query(Activity.type, db.func.count(Activity.id), db.func.sum(Activity.hours))
        .filter(Activity.status == ActivityStatus.APPROVED.value)
        .group_by(Activity.type)
        .all()
    )
    return [
        {'type': activity_type, 'count': count, 'total_hours': int(total_hours or 0)}
        for activity_type, count, total_hours in rows
    ]
