from flask import Blueprint, current_app, jsonify, send_from_directory
from werkzeug.utils import secure_filename
import logging
import os

from ..errors import NotFound

logger = logging.getLogger(__name__)

main_bp = Blueprint('main', __name__)


@main_bp.route('/api/health')
def health():
    """Liveness check"""
    return jsonify({'status': 'ok'})


@main_bp.route('/uploads/<path:filename>')
def uploaded_file(filename):
    """Serve a previously uploaded evidence file"""
    upload_dir = current_app.config['UPLOAD_FOLDER']
    safe_name = secure_filename(filename)
    if not safe_name or not os.path.isfile(os.path.join(upload_dir, safe_name)):
        raise NotFound('File not found')
    return send_from_directory(upload_dir, safe_name)
