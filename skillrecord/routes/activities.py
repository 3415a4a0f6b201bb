from flask import Blueprint, request, jsonify
from sqlalchemy.exc import SQLAlchemyError
import logging

from ..models.activity import (
    Activity, ActivityType, ActivityStatus, REVIEW_ACTIONS, MAX_ACTIVITY_HOURS
)
from ..models.audit import AuditLog
from ..errors import NotFound, Conflict
from ..utils.permissions import requires, Capability
from ..utils.validators import (
    text_field, int_field, choice_field, date_field, raise_for
)
from ..utils.uploads import check_upload, save_upload, discard_upload
from .. import db

logger = logging.getLogger(__name__)

activities_bp = Blueprint('activities', __name__)


@activities_bp.route('', methods=['GET'])
@requires()
def list_own(principal):
    """Caller's activities, newest first"""
    return jsonify([a.to_dict() for a in Activity.for_user(principal.id)])


@activities_bp.route('/all', methods=['GET'])
@requires(Capability.SUPERVISE)
def list_all(principal):
    return jsonify([a.to_dict(include_owner=True) for a in Activity.all_with_owners()])


@activities_bp.route('/progress', methods=['GET'])
@requires()
def progress(principal):
    """Approved hours per kind against the informational minimums"""
    return jsonify(Activity.progress_for_user(principal.id))


@activities_bp.route('', methods=['POST'])
@requires(Capability.STUDY)
def create(principal):
    data = request.form.to_dict() if request.form else (request.get_json(silent=True) or {})
    errors = {}

    activity_type = choice_field(data, 'type', errors, [t.value for t in ActivityType], required=True)
    name_ar = text_field(data, 'name_ar', errors, required=True)
    organization = text_field(data, 'organization', errors, required=True)
    hours = int_field(data, 'hours', errors, required=True, minimum=1, maximum=MAX_ACTIVITY_HOURS)
    start_date = date_field(data, 'start_date', errors, required=True)
    end_date = date_field(data, 'end_date', errors)
    evidence = check_upload(request.files.get('certificate'), 'certificate', errors)
    raise_for(errors)

    evidence_url = save_upload(evidence)
    activity = Activity(
        user_id=principal.id,
        type=activity_type,
        name_ar=name_ar,
        name_en=text_field(data, 'name_en', errors),
        organization=organization,
        hours=hours,
        start_date=start_date,
        end_date=end_date,
        description_ar=text_field(data, 'description_ar', errors),
        description_en=text_field(data, 'description_en', errors),
        proof_url=text_field(data, 'proof_url', errors),
        certificate_url=evidence_url,
        status=ActivityStatus.SUBMITTED.value
    )
    db.session.add(activity)
    try:
        db.session.commit()
    except SQLAlchemyError:
        discard_upload(evidence_url)
        raise
    logger.info(f"Activity {activity.id} submitted by {principal.id}")
    return jsonify(activity.to_dict()), 201


@activities_bp.route('/<activity_id>/review', methods=['POST'])
@requires(Capability.SUPERVISE)
def review(principal, activity_id):
    data = request.get_json(silent=True) or {}
    errors = {}
    action = choice_field(data, 'action', errors, list(REVIEW_ACTIONS), required=True)
    reason = text_field(data, 'rejection_reason', errors)
    raise_for(errors)

    activity = Activity.review(activity_id, principal.id, action, reason)
    if activity is None:
        if db.session.get(Activity, activity_id) is None:
            raise NotFound('Activity not found')
        raise Conflict('Activity already reviewed')

    logger.info(f"Activity {activity_id} {activity.status} by {principal.id}")
    AuditLog.record(principal.id, f'activity_{action}', 'activity', activity_id,
                    {'status': activity.status, 'rejection_reason': activity.rejection_reason})
    return jsonify(activity.to_dict())
