from flask import Blueprint, request, jsonify
import logging

from ..models.user import Profile
from ..models.audit import AuditLog
from ..utils.permissions import requires
from ..utils.validators import text_field, string_list_field, is_missing, raise_for
from .. import db

logger = logging.getLogger(__name__)

profile_bp = Blueprint('profile', __name__)

TEXT_FIELDS = (
    'student_id', 'training_id', 'phone', 'major', 'bio',
    'linkedin', 'github', 'career_goals'
)


def _languages(data, errors):
    value = data.get('languages')
    if not isinstance(value, list):
        errors['languages'] = "Must be a list of {name, level} objects."
        return None
    for item in value:
        if not isinstance(item, dict) or not isinstance(item.get('name'), str):
            errors['languages'] = "Must be a list of {name, level} objects."
            return None
    return [{'name': item['name'], 'level': item.get('level')} for item in value]


@profile_bp.route('', methods=['GET'])
@requires()
def get_profile(principal):
    profile = Profile.for_user(principal.id)
    return jsonify(profile.to_dict() if profile else None)


@profile_bp.route('', methods=['POST'])
@requires()
def upsert_profile(principal):
    """Create or update the caller's own profile; role is not writable here"""
    data = request.get_json(silent=True) or {}
    errors = {}
    fields = {}

    for name in TEXT_FIELDS:
        if name in data:
            fields[name] = text_field(data, name, errors)
    for name in ('skills', 'interests'):
        value = string_list_field(data, name, errors)
        if not is_missing(value):
            fields[name] = value
    if 'languages' in data:
        fields['languages'] = _languages(data, errors)
    raise_for(errors)

    profile = Profile.upsert(principal.id, **fields)
    db.session.commit()
    logger.info(f"Profile updated for {principal.id}")

    AuditLog.record(principal.id, 'profile_update', 'profile', profile.id,
                    {'fields': sorted(fields)})
    return jsonify(profile.to_dict())
