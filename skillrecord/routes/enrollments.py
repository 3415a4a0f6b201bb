from flask import Blueprint, request, jsonify
from sqlalchemy.exc import IntegrityError
import logging

from ..models.course import Course, Lesson
from ..models.enrollment import Enrollment, LessonProgress
from ..models.certificate import Certificate
from ..models.audit import AuditLog
from ..errors import NotFound, Conflict, InvalidStateError
from ..utils.permissions import requires, Capability
from ..utils.validators import text_field, raise_for
from .. import db

logger = logging.getLogger(__name__)

enrollments_bp = Blueprint('enrollments', __name__)


@enrollments_bp.route('/enrollments', methods=['GET'])
@requires()
def list_enrollments(principal):
    return jsonify([e.to_dict() for e in Enrollment.for_user(principal.id)])


@enrollments_bp.route('/enrollments', methods=['POST'])
@requires(Capability.STUDY)
def enroll(principal):
    data = request.get_json(silent=True) or {}
    errors = {}
    course_id = text_field(data, 'course_id', errors, required=True)
    raise_for(errors)

    if db.session.get(Course, course_id) is None:
        raise NotFound('Course not found')
    if Enrollment.find(principal.id, course_id):
        raise Conflict('Already enrolled')

    enrollment = Enrollment(user_id=principal.id, course_id=course_id)
    db.session.add(enrollment)
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent request won the unique (user, course) insert
        db.session.rollback()
        raise Conflict('Already enrolled')
    logger.info(f"User {principal.id} enrolled in course {course_id}")
    return jsonify(enrollment.to_dict()), 201


@enrollments_bp.route('/lessons/<lesson_id>/complete', methods=['POST'])
@requires(Capability.STUDY)
def complete_lesson(principal, lesson_id):
    lesson = db.session.get(Lesson, lesson_id)
    if lesson is None:
        raise NotFound('Lesson not found')
    progress = LessonProgress.mark_complete(principal.id, lesson)
    return jsonify(progress.to_dict())


@enrollments_bp.route('/courses/<course_id>/progress', methods=['GET'])
@requires()
def course_progress(principal, course_id):
    return jsonify([p.to_dict() for p in LessonProgress.for_course(principal.id, course_id)])


@enrollments_bp.route('/courses/<course_id>/complete', methods=['POST'])
@requires(Capability.STUDY)
def complete_course(principal, course_id):
    """Complete an enrollment and issue its certificate in one transaction"""
    enrollment = Enrollment.find(principal.id, course_id)
    if enrollment is None:
        raise NotFound('Not enrolled')
    if enrollment.is_completed:
        raise InvalidStateError('Already completed')

    course = enrollment.course
    if not enrollment.complete():
        raise InvalidStateError('Already completed')
    certificate = Certificate.issue(
        user_id=principal.id,
        course_id=course_id,
        title_ar=f"شهادة إتمام: {course.title_ar}",
        title_en=f"Completion Certificate: {course.display_title}"
    )
    db.session.commit()
    logger.info(f"User {principal.id} completed course {course_id}, certificate #{certificate.certificate_number}")

    AuditLog.record(principal.id, 'course_completed', 'enrollment', enrollment.id,
                    {'course_id': course_id})
    AuditLog.record(principal.id, 'certificate_issued', 'certificate', certificate.id,
                    {'certificate_number': certificate.certificate_number, 'course_id': course_id})
    return jsonify({'enrollment': enrollment.to_dict(), 'certificate': certificate.to_dict()})
