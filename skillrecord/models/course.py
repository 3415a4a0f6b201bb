from .. import db
from .user import new_id, isoformat
from datetime import datetime

QUIZ_TYPES = ('intermediate', 'final')
DEFAULT_PASSING_SCORE = 60


class Course(db.Model):
    """Course model for storing course information"""
    __tablename__ = 'courses'

    UPDATABLE_FIELDS = (
        'title_ar', 'title_en', 'description_ar', 'description_en',
        'category', 'duration', 'image_url', 'is_published'
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title_ar = db.Column(db.Text, nullable=False)
    title_en = db.Column(db.Text)
    description_ar = db.Column(db.Text)
    description_en = db.Column(db.Text)
    category = db.Column(db.String(120), nullable=False)
    duration = db.Column(db.Integer, nullable=False)
    instructor_id = db.Column(db.String(36), db.ForeignKey('users.id'))
    image_url = db.Column(db.Text)
    is_published = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    lessons = db.relationship('Lesson', backref='course', lazy=True, order_by='Lesson.order_index')
    quizzes = db.relationship('Quiz', backref='course', lazy=True, order_by='Quiz.order_index')

    @property
    def display_title(self):
        return self.title_en or self.title_ar

    @classmethod
    def published(cls):
        return cls.query.filter_by(is_published=True).order_by(cls.created_at.desc()).all()

    @classmethod
    def everything(cls):
        return cls.query.order_by(cls.created_at.desc()).all()

    def update(self, **fields):
        for name, value in fields.items():
            if name in self.UPDATABLE_FIELDS:
                setattr(self, name, value)
        db.session.commit()
        return self

    def delete_cascade(self):
        """Delete the course and every row that depends on it.

        Children go before parents: lesson progress, lessons, questions,
        attempts, quizzes, project submissions, enrollments, then the course.
        Certificates outlive the course with their course_id cleared.
        """
        from .enrollment import Enrollment, LessonProgress
        from .certificate import Certificate

        lesson_ids = db.session.query(Lesson.id).filter(Lesson.course_id == self.id)
        quiz_ids = db.session.query(Quiz.id).filter(Quiz.course_id == self.id)

        LessonProgress.query.filter(LessonProgress.lesson_id.in_(lesson_ids)).delete(synchronize_session=False)
        Lesson.query.filter_by(course_id=self.id).delete(synchronize_session=False)
        Question.query.filter(Question.quiz_id.in_(quiz_ids)).delete(synchronize_session=False)
        QuizAttempt.query.filter(QuizAttempt.quiz_id.in_(quiz_ids)).delete(synchronize_session=False)
        Quiz.query.filter_by(course_id=self.id).delete(synchronize_session=False)
        ProjectSubmission.query.filter_by(course_id=self.id).delete(synchronize_session=False)
        Enrollment.query.filter_by(course_id=self.id).delete(synchronize_session=False)
        Certificate.query.filter_by(course_id=self.id).update({'course_id': None}, synchronize_session=False)
        Course.query.filter_by(id=self.id).delete(synchronize_session=False)
        db.session.commit()

    def __repr__(self):
        return f'<Course {self.display_title}>'

    def to_dict(self):
        """Convert course to dictionary"""
        return {
            'id': self.id,
            'title_ar': self.title_ar,
            'title_en': self.title_en,
            'description_ar': self.description_ar,
            'description_en': self.description_en,
            'category': self.category,
            'duration': self.duration,
            'instructor_id': self.instructor_id,
            'image_url': self.image_url,
            'is_published': bool(self.is_published),
            'created_at': isoformat(self.created_at)
        }


class Lesson(db.Model):
    __tablename__ = 'course_lessons'

    UPDATABLE_FIELDS = (
        'title_ar', 'title_en', 'content_ar', 'content_en',
        'video_url', 'order_index', 'duration_minutes'
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    course_id = db.Column(db.String(36), db.ForeignKey('courses.id'), nullable=False, index=True)
    title_ar = db.Column(db.Text, nullable=False)
    title_en = db.Column(db.Text)
    content_ar = db.Column(db.Text)
    content_en = db.Column(db.Text)
    video_url = db.Column(db.Text)
    order_index = db.Column(db.Integer, nullable=False, default=0)
    duration_minutes = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @classmethod
    def for_course(cls, course_id):
        return cls.query.filter_by(course_id=course_id).order_by(cls.order_index, cls.created_at).all()

    def update(self, **fields):
        for name, value in fields.items():
            if name in self.UPDATABLE_FIELDS:
                setattr(self, name, value)
        db.session.commit()
        return self

    def delete(self):
        from .enrollment import LessonProgress
        LessonProgress.query.filter_by(lesson_id=self.id).delete(synchronize_session=False)
        db.session.delete(self)
        db.session.commit()

    def to_dict(self):
        return {
            'id': self.id,
            'course_id': self.course_id,
            'title_ar': self.title_ar,
            'title_en': self.title_en,
            'content_ar': self.content_ar,
            'content_en': self.content_en,
            'video_url': self.video_url,
            'order_index': self.order_index,
            'duration_minutes': self.duration_minutes,
            'created_at': isoformat(self.created_at)
        }


class Quiz(db.Model):
    __tablename__ = 'course_quizzes'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    course_id = db.Column(db.String(36), db.ForeignKey('courses.id'), nullable=False, index=True)
    title_ar = db.Column(db.Text, nullable=False)
    title_en = db.Column(db.Text)
    type = db.Column(db.String(20), nullable=False, default='intermediate')
    passing_score = db.Column(db.Integer, nullable=False, default=DEFAULT_PASSING_SCORE)
    order_index = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    questions = db.relationship('Question', backref='quiz', lazy=True, order_by='Question.order_index')

    @classmethod
    def for_course(cls, course_id):
        return cls.query.filter_by(course_id=course_id).order_by(cls.order_index, cls.created_at).all()

    def ordered_questions(self):
        return Question.for_quiz(self.id)

    def score(self, answers):
        """Score an answer list against the questions in display order.

        Answers are matched to questions by position, not by question id,
        so they must arrive in the order the questions were listed.
        Returns (score, passed).
        """
        questions = self.ordered_questions()
        if not questions:
            score = 0
        else:
            correct = sum(
                1 for question, answer in zip(questions, answers)
                if question.correct_answer == answer
            )
            # round half up like Math.round; the ratio is never negative
            score = int(correct * 100 / len(questions) + 0.5)
        passing_score = self.passing_score if self.passing_score is not None else DEFAULT_PASSING_SCORE
        return score, score >= passing_score

    def attempt(self, user_id, answers):
        """Record a graded attempt; attempts are never updated afterwards"""
        score, passed = self.score(answers)
        attempt = QuizAttempt(
            quiz_id=self.id,
            user_id=user_id,
            score=score,
            passed=passed,
            answers=list(answers)
        )
        db.session.add(attempt)
        db.session.commit()
        return attempt

    def to_dict(self):
        return {
            'id': self.id,
            'course_id': self.course_id,
            'title_ar': self.title_ar,
            'title_en': self.title_en,
            'type': self.type,
            'passing_score': self.passing_score,
            'order_index': self.order_index,
            'created_at': isoformat(self.created_at)
        }


class Question(db.Model):
    __tablename__ = 'quiz_questions'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    quiz_id = db.Column(db.String(36), db.ForeignKey('course_quizzes.id'), nullable=False, index=True)
    question_ar = db.Column(db.Text, nullable=False)
    question_en = db.Column(db.Text)
    options = db.Column(db.JSON, nullable=False)
    correct_answer = db.Column(db.Integer, nullable=False)
    order_index = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @classmethod
    def for_quiz(cls, quiz_id):
        """Questions in display order; scoring relies on this exact order"""
        return cls.query.filter_by(quiz_id=quiz_id).order_by(cls.order_index, cls.created_at, cls.id).all()

    def to_dict(self):
        return {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'question_ar': self.question_ar,
            'question_en': self.question_en,
            'options': self.options,
            'correct_answer': self.correct_answer,
            'order_index': self.order_index
        }


class QuizAttempt(db.Model):
    __tablename__ = 'quiz_attempts'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    quiz_id = db.Column(db.String(36), db.ForeignKey('course_quizzes.id'), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    score = db.Column(db.Integer, nullable=False)
    passed = db.Column(db.Boolean, nullable=False, default=False)
    answers = db.Column(db.JSON)
    completed_at = db.Column(db.DateTime, default=datetime.utcnow)

    @classmethod
    def for_user(cls, quiz_id, user_id):
        return cls.query.filter_by(quiz_id=quiz_id, user_id=user_id).order_by(cls.completed_at.desc()).all()

    def to_dict(self):
        return {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'user_id': self.user_id,
            'score': self.score,
            'passed': self.passed,
            'answers': self.answers,
            'completed_at': isoformat(self.completed_at)
        }


class ProjectSubmission(db.Model):
    __tablename__ = 'project_submissions'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    course_id = db.Column(db.String(36), db.ForeignKey('courses.id'), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    title_ar = db.Column(db.Text, nullable=False)
    title_en = db.Column(db.Text)
    description_ar = db.Column(db.Text)
    description_en = db.Column(db.Text)
    file_url = db.Column(db.Text)
    grade = db.Column(db.Integer)
    feedback = db.Column(db.Text)
    reviewed_by = db.Column(db.String(36), db.ForeignKey('users.id'))
    reviewed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    submitter = db.relationship('User', foreign_keys=[user_id])

    @classmethod
    def for_course(cls, course_id):
        return cls.query.filter_by(course_id=course_id).order_by(cls.created_at.desc()).all()

    def set_grade(self, reviewer_id, grade, feedback=''):
        self.grade = grade
        self.feedback = feedback
        self.reviewed_by = reviewer_id
        self.reviewed_at = datetime.utcnow()
        db.session.commit()
        return self

    def to_dict(self, include_submitter=False):
        data = {
            'id': self.id,
            'course_id': self.course_id,
            'user_id': self.user_id,
            'title_ar': self.title_ar,
            'title_en': self.title_en,
            'description_ar': self.description_ar,
            'description_en': self.description_en,
            'file_url': self.file_url,
            'grade': self.grade,
            'feedback': self.feedback,
            'reviewed_by': self.reviewed_by,
            'reviewed_at': isoformat(self.reviewed_at),
            'created_at': isoformat(self.created_at)
        }
        if include_submitter:
            data['user_name'] = (self.submitter.full_name or None) if self.submitter else None
        return data
