from flask import Blueprint, request, session, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
import logging

from ..models.user import User
from ..errors import AuthenticationError, Conflict
from ..utils.validators import validate_email, validate_password, text_field, raise_for
from .. import db, login_manager

logger = logging.getLogger(__name__)
auth_bp = Blueprint('auth', __name__)


@login_manager.unauthorized_handler
def unauthorized():
    raise AuthenticationError()


def _start_session(user):
    session.clear()
    session.permanent = True
    login_user(user)


@auth_bp.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    errors = {}

    email = text_field(data, 'email', errors, required=True)
    password = data.get('password')
    first_name = text_field(data, 'first_name', errors, required=True)
    last_name = text_field(data, 'last_name', errors, required=True)

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

    user = User.create(email=email, password=password, first_name=first_name, last_name=last_name)
    db.session.commit()
    logger.info(f"Registered user {user.id}")

    _start_session(user)
    return jsonify(user.to_dict()), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    email = data.get('email')
    password = data.get('password')

    # Unknown email and wrong password answer the same way
    user = User.find_by_email(email) if isinstance(email, str) and email else None
    if not user or not isinstance(password, str) or not user.check_password(password):
        logger.info("Rejected login attempt")
        raise AuthenticationError('Invalid email or password')

    _start_session(user)
    logger.info(f"User {user.id} logged in")
    return jsonify(user.to_dict())


@auth_bp.route('/logout', methods=['POST'])
def logout():
    logout_user()
    session.clear()
    response = jsonify({'message': 'Logged out'})
    response.delete_cookie(
        current_app.config['SESSION_COOKIE_NAME'],
        path=current_app.config.get('SESSION_COOKIE_PATH') or '/',
        domain=current_app.config.get('SESSION_COOKIE_DOMAIN')
    )
    return response


@auth_bp.route('/user')
@login_required
def current():
    """Current user with its role"""
    data = current_user.to_dict()
    data['role'] = current_user.role.value
    return jsonify(data)
