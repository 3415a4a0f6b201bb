import pytest

from skillrecord.models.user import Role
from skillrecord.utils.permissions import (
    Capability, Principal, is_supervisor, is_trainer, can_student_access
)
from skillrecord.errors import Forbidden
from skillrecord.conftest import set_role


@pytest.mark.parametrize('role, supervisor, trainer, student', [
    (Role.STUDENT, False, False, True),
    (Role.TRAINER, False, True, False),
    (Role.SUPERVISOR, True, True, True),
])
def test_role_predicates(role, supervisor, trainer, student):
    assert is_supervisor(role) is supervisor
    assert is_trainer(role) is trainer
    assert can_student_access(role) is student


def test_role_predicates_accept_plain_strings():
    assert is_trainer('trainer')
    assert not can_student_access('trainer')


def test_principal_require_raises_uniform_forbidden():
    principal = Principal(user=type('U', (), {'id': 'u1'})(), role='student')
    assert principal.require(Capability.STUDY) is principal
    with pytest.raises(Forbidden) as excinfo:
        principal.require(Capability.TRAIN)
    assert excinfo.value.message == 'Forbidden'
    assert excinfo.value.status_code == 403


def test_student_cannot_reach_supervisor_endpoints(student):
    for url in ('/api/activities/all', '/api/admin/users', '/api/stats', '/api/audit-logs'):
        response = student.get(url)
        assert response.status_code == 403
        assert response.get_json() == {'message': 'Forbidden'}


def test_trainer_cannot_submit_activity(trainer):
    response = trainer.post('/api/activities', data={
        'type': 'awards', 'name_ar': 'جائزة', 'organization': 'Org',
        'hours': '2', 'start_date': '2024-01-01'
    })
    assert response.status_code == 403


def test_role_change_applies_on_next_request(app, student):
    assert student.get('/api/courses/all').status_code == 403
    set_role(app, student.user_id, Role.TRAINER)
    assert student.get('/api/courses/all').status_code == 200


def test_user_without_profile_is_student(app, make_user):
    from skillrecord import db
    from skillrecord.models.user import User, Profile

    user_id, _ = make_user()
    with app.app_context():
        db.session.delete(Profile.for_user(user_id))
        db.session.commit()
        assert db.session.get(User, user_id).role == Role.STUDENT
