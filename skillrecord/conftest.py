import itertools

import pytest

from skillrecord import create_app, db
from skillrecord.config import TestConfig
from skillrecord.models.user import User, Profile, Role
from skillrecord.models.course import Course

PASSWORD = 'secret123'
_counter = itertools.count(1)


@pytest.fixture
def app(tmp_path):
    app = create_app(TestConfig)
    app.config['UPLOAD_FOLDER'] = str(tmp_path / 'uploads')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Create a user directly in the database with the given role"""
    def _make_user(role=Role.STUDENT, email=None, first_name='Test', last_name='User'):
        email = email or f"user{next(_counter)}@example.com"
        with app.app_context():
            user = User.create(email=email, password=PASSWORD, first_name=first_name,
                               last_name=last_name, role=role)
            db.session.commit()
            return user.id, email
    return _make_user


@pytest.fixture
def login_as(app, make_user):
    """Return a fresh logged-in test client for a new user of the given role"""
    def _login_as(role=Role.STUDENT, **kwargs):
        user_id, email = make_user(role=role, **kwargs)
        client = app.test_client()
        response = client.post('/api/auth/login', json={'email': email, 'password': PASSWORD})
        assert response.status_code == 200
        client.user_id = user_id
        return client
    return _login_as


@pytest.fixture
def student(login_as):
    return login_as(Role.STUDENT)


@pytest.fixture
def trainer(login_as):
    return login_as(Role.TRAINER)


@pytest.fixture
def supervisor(login_as):
    return login_as(Role.SUPERVISOR)


@pytest.fixture
def make_course(app):
    def _make_course(title_ar='دورة', title_en='Course', is_published=True, duration=10):
        with app.app_context():
            course = Course(title_ar=title_ar, title_en=title_en, category='Programming',
                            duration=duration, is_published=is_published)
            db.session.add(course)
            db.session.commit()
            return course.id
    return _make_course


def set_role(app, user_id, role):
    with app.app_context():
        Profile.set_role(user_id, role)
        db.session.commit()
