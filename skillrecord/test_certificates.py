from skillrecord import db
from skillrecord.models.certificate import Certificate
from skillrecord.models.user import Role


def complete_course(client, course_id):
    client.post('/api/enrollments', json={'course_id': course_id})
    return client.post(f'/api/courses/{course_id}/complete').get_json()['certificate']


def test_certificate_numbers_increase_and_codes_are_unique(login_as, make_course):
    certificates = []
    for _ in range(3):
        student = login_as(Role.STUDENT)
        certificates.append(complete_course(student, make_course()))

    numbers = [c['certificate_number'] for c in certificates]
    assert numbers == sorted(numbers)
    assert len(set(numbers)) == 3
    assert len({c['verification_code'] for c in certificates}) == 3


def test_issue_continues_after_highest_number(app, make_user, make_course):
    user_id, _ = make_user()
    course_id = make_course()
    with app.app_context():
        db.session.add(Certificate(user_id=user_id, title_ar='قديمة', certificate_number=41))
        db.session.commit()
        certificate = Certificate.issue(user_id=user_id, title_ar='جديدة', course_id=course_id)
        db.session.commit()
        assert certificate.certificate_number == 42


def colliding_numbers(monkeypatch, collisions):
    """Make next_number return the taken number 1 for the first `collisions` calls"""
    calls = []
    real_next_number = Certificate.next_number

    def next_number():
        calls.append(1)
        return 1 if len(calls) <= collisions else real_next_number()

    monkeypatch.setattr(Certificate, 'next_number', staticmethod(next_number))
    return calls


def test_issue_retries_after_number_collision(app, make_user, make_course, monkeypatch):
    user_id, _ = make_user()
    course_id = make_course()
    with app.app_context():
        db.session.add(Certificate(user_id=user_id, title_ar='قديمة', certificate_number=1))
        db.session.commit()
        calls = colliding_numbers(monkeypatch, collisions=1)
        certificate = Certificate.issue(user_id=user_id, title_ar='جديدة', course_id=course_id)
        db.session.commit()
        assert len(calls) == 2
        assert certificate.certificate_number == 2
        assert Certificate.query.count() == 2


def test_exhausted_number_retries_is_503(app, supervisor, make_user, make_course, monkeypatch):
    user_id, _ = make_user()
    course_id = make_course()
    with app.app_context():
        db.session.add(Certificate(user_id=user_id, title_ar='قديمة', certificate_number=1))
        db.session.commit()
    app.config['CERTIFICATE_NUMBER_RETRIES'] = 3
    calls = colliding_numbers(monkeypatch, collisions=3)

    response = supervisor.post('/api/admin/issue-certificate', json={'user_id': user_id, 'course_id': course_id})
    assert response.status_code == 503
    assert len(calls) == 3
    with app.app_context():
        assert Certificate.query.count() == 1


def test_verify_is_public(app, student, make_course):
    course_id = make_course(title_ar='الويب')
    certificate = complete_course(student, course_id)

    anonymous = app.test_client()
    response = anonymous.get(f"/api/certificates/verify/{certificate['verification_code']}")
    assert response.status_code == 200
    body = response.get_json()
    assert body['user_name'] == 'Test User'
    assert body['course_name'] == 'الويب'
    assert body['certificate_number'] == certificate['certificate_number']
    assert 'email' not in body


def test_verify_unknown_code_is_404(client):
    assert client.get('/api/certificates/verify/nope').status_code == 404


def test_certificate_holder_visible_to_owner_and_trainer(login_as, make_course):
    owner = login_as(Role.STUDENT)
    certificate = complete_course(owner, make_course())
    url = f"/api/certificates/{certificate['id']}/user"

    own = owner.get(url)
    assert own.status_code == 200
    assert own.get_json()['holder']['id'] == owner.user_id
    assert 'password_hash' not in own.get_json()['holder']

    assert login_as(Role.TRAINER).get(url).status_code == 200
    assert login_as(Role.STUDENT).get(url).status_code == 403


def test_certificate_holder_unknown_is_404(student):
    assert student.get('/api/certificates/missing/user').status_code == 404
