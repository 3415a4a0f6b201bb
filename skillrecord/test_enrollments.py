from sqlalchemy import update

from skillrecord import db
from skillrecord.models.course import Lesson
from skillrecord.models.enrollment import Enrollment
from skillrecord.models.certificate import Certificate
from skillrecord.models.audit import AuditLog


def add_lessons(app, course_id, count):
    with app.app_context():
        lessons = [Lesson(course_id=course_id, title_ar=f'درس {i}', order_index=i) for i in range(count)]
        db.session.add_all(lessons)
        db.session.commit()
        return [lesson.id for lesson in lessons]


def test_enroll_and_duplicate(student, make_course):
    course_id = make_course()
    response = student.post('/api/enrollments', json={'course_id': course_id})
    assert response.status_code == 201
    assert response.get_json()['progress'] == 0

    again = student.post('/api/enrollments', json={'course_id': course_id})
    assert again.status_code == 409
    assert again.get_json()['message'] == 'Already enrolled'
    assert len(student.get('/api/enrollments').get_json()) == 1


def test_enroll_unknown_course_is_404(student):
    assert student.post('/api/enrollments', json={'course_id': 'nope'}).status_code == 404


def test_trainer_cannot_enroll(trainer, make_course):
    assert trainer.post('/api/enrollments', json={'course_id': make_course()}).status_code == 403


def test_lesson_completion_updates_progress(app, student, make_course):
    course_id = make_course()
    lesson_ids = add_lessons(app, course_id, 3)
    student.post('/api/enrollments', json={'course_id': course_id})

    student.post(f'/api/lessons/{lesson_ids[0]}/complete')
    enrollment = student.get('/api/enrollments').get_json()[0]
    assert enrollment['progress'] == 33
    assert enrollment['completed_lessons'] == [lesson_ids[0]]

    # Repeating a lesson does not count it twice
    student.post(f'/api/lessons/{lesson_ids[0]}/complete')
    student.post(f'/api/lessons/{lesson_ids[1]}/complete')
    enrollment = student.get('/api/enrollments').get_json()[0]
    assert enrollment['progress'] == 67
    assert enrollment['completed_lessons'] == lesson_ids[:2]

    progress = student.get(f'/api/courses/{course_id}/progress').get_json()
    assert {row['lesson_id'] for row in progress} == set(lesson_ids[:2])
    assert all(row['completed'] for row in progress)


def test_lesson_completion_without_enrollment(app, student, make_course):
    course_id = make_course()
    lesson_id = add_lessons(app, course_id, 1)[0]
    response = student.post(f'/api/lessons/{lesson_id}/complete')
    assert response.status_code == 200
    assert response.get_json()['completed'] is True
    assert student.get('/api/enrollments').get_json() == []


def test_complete_unknown_lesson_is_404(student):
    assert student.post('/api/lessons/missing/complete').status_code == 404


def test_complete_course_issues_certificate(app, student, make_course):
    course_id = make_course(title_ar='بايثون', title_en='Python')
    student.post('/api/enrollments', json={'course_id': course_id})

    response = student.post(f'/api/courses/{course_id}/complete')
    assert response.status_code == 200
    body = response.get_json()
    assert body['enrollment']['is_completed'] is True
    assert body['enrollment']['progress'] == 100
    certificate = body['certificate']
    assert certificate['course_id'] == course_id
    assert certificate['title_ar'] == 'شهادة إتمام: بايثون'
    assert certificate['title_en'] == 'Completion Certificate: Python'
    assert certificate['certificate_number'] >= 1

    with app.app_context():
        actions = {entry.action for entry in AuditLog.recent()}
    assert {'course_completed', 'certificate_issued'} <= actions


def test_complete_course_twice_issues_one_certificate(app, student, make_course):
    course_id = make_course()
    student.post('/api/enrollments', json={'course_id': course_id})
    assert student.post(f'/api/courses/{course_id}/complete').status_code == 200

    again = student.post(f'/api/courses/{course_id}/complete')
    assert again.status_code == 400
    assert again.get_json()['message'] == 'Already completed'
    with app.app_context():
        assert Certificate.query.filter_by(user_id=student.user_id).count() == 1


def test_enrollment_completes_once(app, student, make_course):
    course_id = make_course()
    student.post('/api/enrollments', json={'course_id': course_id})
    with app.app_context():
        enrollment = Enrollment.find(student.user_id, course_id)
        assert enrollment.complete() is True
        assert enrollment.complete() is False
        db.session.commit()
        db.session.refresh(enrollment)
        assert enrollment.is_completed is True
        assert enrollment.progress == 100


def test_complete_course_loses_to_concurrent_completion(app, student, make_course, monkeypatch):
    course_id = make_course()
    student.post('/api/enrollments', json={'course_id': course_id})
    original_find = Enrollment.find.__func__

    def find(cls, user_id, course_id):
        enrollment = original_find(cls, user_id, course_id)
        # Another request completes the row after this one has read it
        db.session.execute(
            update(Enrollment).where(Enrollment.id == enrollment.id)
            .values(is_completed=True, progress=100)
            .execution_options(synchronize_session=False)
        )
        return enrollment

    monkeypatch.setattr(Enrollment, 'find', classmethod(find))
    response = student.post(f'/api/courses/{course_id}/complete')
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Already completed'
    with app.app_context():
        assert Certificate.query.count() == 0


def test_complete_course_without_enrollment(student, make_course):
    response = student.post(f'/api/courses/{make_course()}/complete')
    assert response.status_code == 404
    assert response.get_json()['message'] == 'Not enrolled'


def test_full_learning_path(app, student, make_course):
    course_id = make_course()
    lesson_ids = add_lessons(app, course_id, 2)
    student.post('/api/enrollments', json={'course_id': course_id})
    for lesson_id in lesson_ids:
        student.post(f'/api/lessons/{lesson_id}/complete')
    assert student.get('/api/enrollments').get_json()[0]['progress'] == 100

    result = student.post(f'/api/courses/{course_id}/complete').get_json()
    certificates = student.get('/api/certificates').get_json()
    assert [c['id'] for c in certificates] == [result['certificate']['id']]
