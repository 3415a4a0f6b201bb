from .. import db
from .user import new_id, isoformat
from datetime import datetime


class Enrollment(db.Model):
    """Enrollment model for tracking user course enrollments"""
    __tablename__ = 'course_enrollments'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'course_id', name='uq_enrollment_user_course'),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    course_id = db.Column(db.String(36), db.ForeignKey('courses.id'), nullable=False, index=True)
    progress = db.Column(db.Integer, default=0)
    completed_lessons = db.Column(db.JSON, default=list)
    is_completed = db.Column(db.Boolean, default=False)
    completed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    course = db.relationship('Course')

    @classmethod
    def for_user(cls, user_id):
        return cls.query.filter_by(user_id=user_id).order_by(cls.created_at.desc()).all()

    @classmethod
    def find(cls, user_id, course_id):
        return cls.query.filter_by(user_id=user_id, course_id=course_id).first()

    def record_lesson(self, lesson_id, lesson_count):
        """Add a completed lesson and recompute progress; the caller commits"""
        completed = list(self.completed_lessons or [])
        if lesson_id not in completed:
            completed.append(lesson_id)
        self.completed_lessons = completed
        if not self.is_completed and lesson_count:
            self.progress = min(int(len(completed) * 100 / lesson_count + 0.5), 100)

    def complete(self):
        """Mark the enrollment completed with one UPDATE guarded on is_completed.

        Returns False when another request completed it first. The caller commits.
        """
        updated = Enrollment.query.filter_by(id=self.id, is_completed=False).update({
            'is_completed': True,
            'progress': 100,
            'completed_at': datetime.utcnow()
        }, synchronize_session=False)
        return bool(updated)

    def __repr__(self):
        return f'<Enrollment {self.user_id} - {self.course_id}>'

    def to_dict(self):
        """Convert enrollment to dictionary"""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'course_id': self.course_id,
            'progress': self.progress or 0,
            'completed_lessons': self.completed_lessons or [],
            'is_completed': bool(self.is_completed),
            'completed_at': isoformat(self.completed_at),
            'created_at': isoformat(self.created_at)
        }


class LessonProgress(db.Model):
    __tablename__ = 'lesson_progress'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'lesson_id', name='uq_lesson_progress_user_lesson'),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    lesson_id = db.Column(db.String(36), db.ForeignKey('course_lessons.id'), nullable=False)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    completed_at = db.Column(db.DateTime)

    @classmethod
    def mark_complete(cls, user_id, lesson):
        """Mark a lesson complete for a user.

        Repeating the call only refreshes completed_at. When the user is
        enrolled in the lesson's course the enrollment progress follows.
        """
        progress = cls.query.filter_by(user_id=user_id, lesson_id=lesson.id).first()
        if not progress:
            progress = cls(user_id=user_id, lesson_id=lesson.id)
            db.session.add(progress)
        progress.completed = True
        progress.completed_at = datetime.utcnow()

        enrollment = Enrollment.find(user_id, lesson.course_id)
        if enrollment:
            from .course import Lesson
            lesson_count = Lesson.query.filter_by(course_id=lesson.course_id).count()
            enrollment.record_lesson(lesson.id, lesson_count)

        db.session.commit()
        return progress

    @classmethod
    def for_course(cls, user_id, course_id):
        from .course import Lesson
        lesson_ids = db.session.query(Lesson.id).filter(Lesson.course_id == course_id)
        return cls.query.filter(cls.user_id == user_id, cls.lesson_id.in_(lesson_ids)).all()

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'lesson_id': self.lesson_id,
            'completed': self.completed,
            'completed_at': isoformat(self.completed_at)
        }
