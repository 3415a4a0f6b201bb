from flask import Blueprint, request, jsonify
from sqlalchemy.exc import SQLAlchemyError
import logging

from ..models.course import (
    Course, Lesson, Quiz, Question, QuizAttempt, ProjectSubmission,
    QUIZ_TYPES, DEFAULT_PASSING_SCORE
)
from ..models.audit import AuditLog
from ..errors import NotFound
from ..utils.permissions import requires, Capability
from ..utils.validators import (
    text_field, int_field, bool_field, choice_field, int_list_field, raise_for
)
from ..utils.uploads import check_upload, save_upload, discard_upload
from .. import db

logger = logging.getLogger(__name__)

courses_bp = Blueprint('courses', __name__)


def get_or_404(model, object_id, message='Not found'):
    obj = db.session.get(model, object_id)
    if obj is None:
        raise NotFound(message)
    return obj


def _course_fields(data, errors, partial=False):
    required = not partial
    fields = {
        'title_ar': text_field(data, 'title_ar', errors, required=required),
        'title_en': text_field(data, 'title_en', errors),
        'description_ar': text_field(data, 'description_ar', errors),
        'description_en': text_field(data, 'description_en', errors),
        'category': text_field(data, 'category', errors, required=required),
        'duration': int_field(data, 'duration', errors, required=required, minimum=1),
        'image_url': text_field(data, 'image_url', errors),
        'is_published': bool_field(data, 'is_published', errors, default=None if partial else True),
    }
    if partial:
        fields = {name: value for name, value in fields.items() if name in data}
    return fields


def _lesson_fields(data, errors, partial=False):
    fields = {
        'title_ar': text_field(data, 'title_ar', errors, required=not partial),
        'title_en': text_field(data, 'title_en', errors),
        'content_ar': text_field(data, 'content_ar', errors),
        'content_en': text_field(data, 'content_en', errors),
        'video_url': text_field(data, 'video_url', errors),
        'order_index': int_field(data, 'order_index', errors, default=0, minimum=0),
        'duration_minutes': int_field(data, 'duration_minutes', errors, default=0, minimum=0),
    }
    if partial:
        fields = {name: value for name, value in fields.items() if name in data}
    return fields


def _options(data, errors):
    options = data.get('options')
    if not isinstance(options, list) or len(options) < 2:
        errors['options'] = "At least two options are required."
        return None
    cleaned = []
    for option in options:
        if not isinstance(option, dict) or not isinstance(option.get('text_ar'), str) or not option['text_ar'].strip():
            errors['options'] = "Each option needs a text_ar value."
            return None
        cleaned.append({'text_ar': option['text_ar'], 'text_en': option.get('text_en')})
    return cleaned


# Courses

@courses_bp.route('/courses', methods=['GET'])
@requires()
def list_published(principal):
    """Published courses, newest first"""
    return jsonify([c.to_dict() for c in Course.published()])


@courses_bp.route('/courses/all', methods=['GET'])
@requires(Capability.TRAIN)
def list_all(principal):
    return jsonify([c.to_dict() for c in Course.everything()])


@courses_bp.route('/courses/<course_id>', methods=['GET'])
@requires()
def detail(principal, course_id):
    course = db.session.get(Course, course_id)
    # Drafts are invisible to callers who cannot author courses
    if course is None or (not course.is_published and not principal.is_trainer):
        raise NotFound('Course not found')
    return jsonify(course.to_dict())


@courses_bp.route('/courses', methods=['POST'])
@requires(Capability.TRAIN)
def create_course(principal):
    data = request.get_json(silent=True) or {}
    errors = {}
    fields = _course_fields(data, errors)
    raise_for(errors)

    course = Course(instructor_id=principal.id, **fields)
    db.session.add(course)
    db.session.commit()
    logger.info(f"Course {course.id} created by {principal.id}")
    return jsonify(course.to_dict()), 201


@courses_bp.route('/courses/<course_id>', methods=['PATCH'])
@requires(Capability.TRAIN)
def update_course(principal, course_id):
    course = get_or_404(Course, course_id, 'Course not found')
    data = request.get_json(silent=True) or {}
    errors = {}
    fields = _course_fields(data, errors, partial=True)
    for name in ('title_ar', 'category', 'duration', 'is_published'):
        if name in fields and fields[name] is None and name not in errors:
            errors[name] = "This field cannot be empty."
    raise_for(errors)

    course.update(**fields)
    logger.info(f"Course {course_id} updated by {principal.id}")
    return jsonify(course.to_dict())


@courses_bp.route('/courses/<course_id>', methods=['DELETE'])
@requires(Capability.TRAIN)
def delete_course(principal, course_id):
    course = get_or_404(Course, course_id, 'Course not found')
    title = course.title_ar
    course.delete_cascade()
    logger.info(f"Course {course_id} deleted by {principal.id}")

    AuditLog.record(principal.id, 'course_delete', 'course', course_id, {'title_ar': title})
    return jsonify({'message': 'Course deleted'})


# Lessons

@courses_bp.route('/courses/<course_id>/lessons', methods=['GET'])
@requires()
def list_lessons(principal, course_id):
    return jsonify([lesson.to_dict() for lesson in Lesson.for_course(course_id)])


@courses_bp.route('/courses/<course_id>/lessons', methods=['POST'])
@requires(Capability.TRAIN)
def create_lesson(principal, course_id):
    get_or_404(Course, course_id, 'Course not found')
    data = request.get_json(silent=True) or {}
    errors = {}
    fields = _lesson_fields(data, errors)
    raise_for(errors)

    lesson = Lesson(course_id=course_id, **fields)
    db.session.add(lesson)
    db.session.commit()
    return jsonify(lesson.to_dict()), 201


@courses_bp.route('/lessons/<lesson_id>', methods=['PATCH'])
@requires(Capability.TRAIN)
def update_lesson(principal, lesson_id):
    lesson = get_or_404(Lesson, lesson_id, 'Lesson not found')
    data = request.get_json(silent=True) or {}
    errors = {}
    fields = _lesson_fields(data, errors, partial=True)
    if 'title_ar' in fields and fields['title_ar'] is None and 'title_ar' not in errors:
        errors['title_ar'] = "This field cannot be empty."
    raise_for(errors)

    lesson.update(**fields)
    return jsonify(lesson.to_dict())


@courses_bp.route('/lessons/<lesson_id>', methods=['DELETE'])
@requires(Capability.TRAIN)
def delete_lesson(principal, lesson_id):
    lesson = get_or_404(Lesson, lesson_id, 'Lesson not found')
    lesson.delete()
    logger.info(f"Lesson {lesson_id} deleted by {principal.id}")
    return jsonify({'message': 'Lesson deleted'})


# Quizzes

@courses_bp.route('/courses/<course_id>/quizzes', methods=['GET'])
@requires()
def list_quizzes(principal, course_id):
    return jsonify([quiz.to_dict() for quiz in Quiz.for_course(course_id)])


@courses_bp.route('/courses/<course_id>/quizzes', methods=['POST'])
@requires(Capability.TRAIN)
def create_quiz(principal, course_id):
    get_or_404(Course, course_id, 'Course not found')
    data = request.get_json(silent=True) or {}
    errors = {}
    quiz = Quiz(
        course_id=course_id,
        title_ar=text_field(data, 'title_ar', errors, required=True),
        title_en=text_field(data, 'title_en', errors),
        type=choice_field(data, 'type', errors, QUIZ_TYPES, default='intermediate'),
        passing_score=int_field(data, 'passing_score', errors, default=DEFAULT_PASSING_SCORE,
                                minimum=1, maximum=100),
        order_index=int_field(data, 'order_index', errors, default=0, minimum=0)
    )
    raise_for(errors)

    db.session.add(quiz)
    db.session.commit()
    return jsonify(quiz.to_dict()), 201


@courses_bp.route('/quizzes/<quiz_id>/questions', methods=['GET'])
@requires()
def list_questions(principal, quiz_id):
    return jsonify([question.to_dict() for question in Question.for_quiz(quiz_id)])


@courses_bp.route('/quizzes/<quiz_id>/questions', methods=['POST'])
@requires(Capability.TRAIN)
def create_question(principal, quiz_id):
    get_or_404(Quiz, quiz_id, 'Quiz not found')
    data = request.get_json(silent=True) or {}
    errors = {}
    options = _options(data, errors)
    question = Question(
        quiz_id=quiz_id,
        question_ar=text_field(data, 'question_ar', errors, required=True),
        question_en=text_field(data, 'question_en', errors),
        options=options,
        correct_answer=int_field(data, 'correct_answer', errors, required=True, minimum=0),
        order_index=int_field(data, 'order_index', errors, default=0, minimum=0)
    )
    if options and question.correct_answer is not None and question.correct_answer >= len(options):
        errors['correct_answer'] = "Must reference one of the options."
    raise_for(errors)

    db.session.add(question)
    db.session.commit()
    return jsonify(question.to_dict()), 201


@courses_bp.route('/quizzes/<quiz_id>/attempt', methods=['POST'])
@requires()
def attempt_quiz(principal, quiz_id):
    """Score the answers by position and record the attempt"""
    quiz = get_or_404(Quiz, quiz_id, 'Quiz not found')
    data = request.get_json(silent=True) or {}
    errors = {}
    answers = int_list_field(data, 'answers', errors, required=True)
    raise_for(errors)

    attempt = quiz.attempt(principal.id, answers)
    logger.info(f"Quiz {quiz_id} attempt by {principal.id}: {attempt.score} ({'passed' if attempt.passed else 'failed'})")
    return jsonify(attempt.to_dict()), 201


@courses_bp.route('/quizzes/<quiz_id>/attempts', methods=['GET'])
@requires()
def list_attempts(principal, quiz_id):
    return jsonify([a.to_dict() for a in QuizAttempt.for_user(quiz_id, principal.id)])


# Projects

@courses_bp.route('/courses/<course_id>/projects', methods=['GET'])
@requires(Capability.TRAIN)
def list_projects(principal, course_id):
    return jsonify([p.to_dict(include_submitter=True) for p in ProjectSubmission.for_course(course_id)])


@courses_bp.route('/courses/<course_id>/projects', methods=['POST'])
@requires(Capability.STUDY)
def submit_project(principal, course_id):
    get_or_404(Course, course_id, 'Course not found')
    data = request.form.to_dict() if request.form else (request.get_json(silent=True) or {})
    errors = {}
    title_ar = text_field(data, 'title_ar', errors, required=True)
    upload = check_upload(request.files.get('project'), 'project', errors)
    raise_for(errors)

    file_url = save_upload(upload)
    submission = ProjectSubmission(
        course_id=course_id,
        user_id=principal.id,
        title_ar=title_ar,
        title_en=text_field(data, 'title_en', errors),
        description_ar=text_field(data, 'description_ar', errors),
        description_en=text_field(data, 'description_en', errors),
        file_url=file_url
    )
    db.session.add(submission)
    try:
        db.session.commit()
    except SQLAlchemyError:
        discard_upload(file_url)
        raise
    logger.info(f"Project {submission.id} submitted to course {course_id} by {principal.id}")
    return jsonify(submission.to_dict()), 201


@courses_bp.route('/projects/<project_id>/grade', methods=['POST'])
@requires(Capability.TRAIN)
def grade_project(principal, project_id):
    submission = get_or_404(ProjectSubmission, project_id, 'Project not found')
    data = request.get_json(silent=True) or {}
    errors = {}
    grade = int_field(data, 'grade', errors, required=True, minimum=0, maximum=100)
    feedback = text_field(data, 'feedback', errors, default='')
    raise_for(errors)

    submission.set_grade(principal.id, grade, feedback)
    AuditLog.record(principal.id, 'project_graded', 'project_submission', project_id,
                    {'grade': grade})
    return jsonify(submission.to_dict())
