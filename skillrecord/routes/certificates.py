from flask import Blueprint, jsonify
import logging

from ..models.certificate import Certificate
from ..errors import NotFound, Forbidden
from ..utils.permissions import requires
from .. import db

logger = logging.getLogger(__name__)

certificates_bp = Blueprint('certificates', __name__)


@certificates_bp.route('', methods=['GET'])
@requires()
def list_own(principal):
    return jsonify([c.to_dict() for c in Certificate.for_user(principal.id)])


@certificates_bp.route('/verify/<code>', methods=['GET'])
def verify(code):
    """Public lookup by verification code"""
    certificate = Certificate.find_by_code(code)
    if certificate is None:
        raise NotFound('Certificate not found')
    return jsonify(certificate.to_public_dict())


@certificates_bp.route('/<certificate_id>/user', methods=['GET'])
@requires()
def with_holder(principal, certificate_id):
    certificate = db.session.get(Certificate, certificate_id)
    if certificate is None:
        raise NotFound('Certificate not found')
    if certificate.user_id != principal.id and not principal.is_trainer:
        logger.warning(f"Denied certificate {certificate_id} to {principal.id}")
        raise Forbidden()
    holder = certificate.holder
    return jsonify({
        'certificate': certificate.to_dict(),
        'holder': holder.to_dict() if holder else None
    })
