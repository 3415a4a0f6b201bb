from flask import Blueprint, request, jsonify, current_app
import logging

from ..models.user import User, Profile, Role
from ..models.course import Course
from ..models.certificate import Certificate
from ..models.audit import AuditLog
from ..errors import NotFound, Conflict
from ..utils.permissions import requires, Capability
from ..utils.validators import (
    validate_email, validate_password, text_field, choice_field, int_field, raise_for
)
from ..utils import reports
from .. import db

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)


def _user_with_role(user):
    data = user.to_dict()
    data['role'] = user.role.value
    data['profile'] = user.profile.to_dict() if user.profile else None
    return data


@admin_bp.route('/admin/users', methods=['GET'])
@requires(Capability.SUPERVISE)
def list_users(principal):
    users = User.query.order_by(User.created_at.desc()).all()
    return jsonify([_user_with_role(user) for user in users])


@admin_bp.route('/admin/users/<user_id>/role', methods=['PATCH'])
@requires(Capability.SUPERVISE)
def change_role(principal, user_id):
    data = request.get_json(silent=True) or {}
    errors = {}
    role = choice_field(data, 'role', errors, Role.values(), required=True)
    raise_for(errors)

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound('User not found')
    previous = user.role.value
    profile = Profile.set_role(user_id, role)
    db.session.commit()
    logger.info(f"Role of {user_id} changed from {previous} to {role} by {principal.id}")

    AuditLog.record(principal.id, 'role_change', 'user', user_id, {'from': previous, 'to': role})
    return jsonify(profile.to_dict())


@admin_bp.route('/admin/users', methods=['POST'])
@requires(Capability.SUPERVISE)
def create_user(principal):
    data = request.get_json(silent=True) or {}
    errors = {}
    email = text_field(data, 'email', errors, required=True)
    password = data.get('password')
    first_name = text_field(data, 'first_name', errors, required=True)
    last_name = text_field(data, 'last_name', errors, required=True)
    role = choice_field(data, 'role', errors, Role.values(), default=Role.STUDENT.value)
    if 'email' not in errors:
        message = validate_email(email)
        if message:
            errors['email'] = message
    message = validate_password(password)
    if message:
        errors['password'] = message
    raise_for(errors)

    if User.find_by_email(email):
        raise Conflict('Email already registered')

    user = User.create(email=email, password=password, first_name=first_name,
                       last_name=last_name, role=role)
    db.session.commit()
    logger.info(f"User {user.id} created with role {role} by {principal.id}")

    AuditLog.record(principal.id, 'admin_create_user', 'user', user.id, {'email': email, 'role': role})
    return jsonify(_user_with_role(user)), 201


@admin_bp.route('/admin/users/<user_id>/reset-password', methods=['POST'])
@requires(Capability.SUPERVISE)
def reset_password(principal, user_id):
    data = request.get_json(silent=True) or {}
    message = validate_password(data.get('new_password'))
    if message:
        raise_for({'new_password': message})

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound('User not found')
    user.set_password(data['new_password'])
    db.session.commit()
    logger.info(f"Password of {user_id} reset by {principal.id}")

    AuditLog.record(principal.id, 'password_reset', 'user', user_id)
    return jsonify({'message': 'Password reset'})


@admin_bp.route('/admin/issue-certificate', methods=['POST'])
@requires(Capability.SUPERVISE)
def issue_certificate(principal):
    data = request.get_json(silent=True) or {}
    errors = {}
    user_id = text_field(data, 'user_id', errors, required=True)
    course_id = text_field(data, 'course_id', errors, required=True)
    raise_for(errors)

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound('User not found')
    course = db.session.get(Course, course_id)
    if course is None:
        raise NotFound('Course not found')

    certificate = Certificate.issue(
        user_id=user_id,
        course_id=course_id,
        title_ar=f"شهادة إتمام (إصدار إداري): {course.title_ar}",
        title_en=f"Completion Certificate (Admin Issued): {course.display_title}"
    )
    db.session.commit()
    logger.info(f"Certificate #{certificate.certificate_number} issued to {user_id} by {principal.id}")

    AuditLog.record(principal.id, 'admin_certificate_issued', 'certificate', certificate.id,
                    {'user_id': user_id, 'course_id': course_id,
                     'certificate_number': certificate.certificate_number})
    return jsonify(certificate.to_dict()), 201


# Reporting

@admin_bp.route('/stats', methods=['GET'])
@requires(Capability.SUPERVISE)
def stats(principal):
    return jsonify(reports.stats())


@admin_bp.route('/reports/hours-by-student', methods=['GET'])
@requires(Capability.SUPERVISE)
def hours_by_student(principal):
    return jsonify(reports.hours_by_student())


@admin_bp.route('/reports/students-by-major', methods=['GET'])
@requires(Capability.SUPERVISE)
def students_by_major(principal):
    return jsonify(reports.students_by_major())


@admin_bp.route('/reports/completed-courses', methods=['GET'])
@requires(Capability.SUPERVISE)
def completed_courses(principal):
    return jsonify(reports.completed_courses())


@admin_bp.route('/reports/approved-activities', methods=['GET'])
@requires(Capability.SUPERVISE)
def approved_activities(principal):
    return jsonify(reports.approved_activities())


@admin_bp.route('/audit-logs', methods=['GET'])
@requires(Capability.SUPERVISE)
def audit_logs(principal):
    """Most recent audit entries, newest first"""
    errors = {}
    limit = int_field(request.args, 'limit', errors,
                      default=current_app.config['AUDIT_LOG_LIMIT'],
                      minimum=1, maximum=current_app.config['AUDIT_LOG_MAX_LIMIT'])
    raise_for(errors)
    return jsonify([entry.to_dict() for entry in AuditLog.recent(limit)])
