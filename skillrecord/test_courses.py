import io
import os

from sqlalchemy.exc import OperationalError

from skillrecord import db
from skillrecord.models.course import Course, Lesson, Quiz, Question, QuizAttempt, ProjectSubmission
from skillrecord.models.enrollment import Enrollment, LessonProgress
from skillrecord.models.certificate import Certificate
from skillrecord.models.audit import AuditLog
from skillrecord.commands import seed_courses, SAMPLE_COURSES

COURSE = {'title_ar': 'بايثون', 'title_en': 'Python', 'category': 'Programming', 'duration': 20}


def create_course(client, **overrides):
    payload = dict(COURSE, **overrides)
    return client.post('/api/courses', json=payload)


def test_trainer_creates_course_as_instructor(trainer):
    response = create_course(trainer)
    assert response.status_code == 201
    body = response.get_json()
    assert body['instructor_id'] == trainer.user_id
    assert body['is_published'] is True


def test_student_cannot_create_course(student):
    assert create_course(student).status_code == 403


def test_course_validation(trainer):
    response = trainer.post('/api/courses', json={'title_ar': '', 'duration': 0})
    assert response.status_code == 400
    assert set(response.get_json()['errors']) >= {'title_ar', 'category', 'duration'}


def test_drafts_hidden_from_students(student, trainer):
    draft_id = create_course(trainer, is_published=False).get_json()['id']
    published_id = create_course(trainer).get_json()['id']

    assert [c['id'] for c in student.get('/api/courses').get_json()] == [published_id]
    assert student.get(f'/api/courses/{draft_id}').status_code == 404
    assert student.get('/api/courses/all').status_code == 403

    assert trainer.get(f'/api/courses/{draft_id}').status_code == 200
    assert {c['id'] for c in trainer.get('/api/courses/all').get_json()} == {draft_id, published_id}


def test_get_unknown_course_is_404(student):
    assert student.get('/api/courses/nope').status_code == 404


def test_partial_update_keeps_other_fields(trainer):
    course_id = create_course(trainer).get_json()['id']
    response = trainer.patch(f'/api/courses/{course_id}', json={'duration': 35, 'instructor_id': 'x'})
    assert response.status_code == 200
    body = response.get_json()
    assert body['duration'] == 35
    assert body['title_ar'] == COURSE['title_ar']
    assert body['instructor_id'] == trainer.user_id


def test_lessons_are_ordered_and_editable(trainer, student):
    course_id = create_course(trainer).get_json()['id']
    trainer.post(f'/api/courses/{course_id}/lessons', json={'title_ar': 'ثاني', 'order_index': 2})
    first = trainer.post(f'/api/courses/{course_id}/lessons', json={'title_ar': 'أول', 'order_index': 1})
    lesson_id = first.get_json()['id']

    titles = [lesson['title_ar'] for lesson in student.get(f'/api/courses/{course_id}/lessons').get_json()]
    assert titles == ['أول', 'ثاني']

    updated = trainer.patch(f'/api/lessons/{lesson_id}', json={'video_url': 'https://video'})
    assert updated.get_json()['video_url'] == 'https://video'
    assert student.patch(f'/api/lessons/{lesson_id}', json={'title_ar': 'x'}).status_code == 403

    assert trainer.delete(f'/api/lessons/{lesson_id}').status_code == 200
    assert len(student.get(f'/api/courses/{course_id}/lessons').get_json()) == 1


def test_question_needs_two_options(trainer):
    course_id = create_course(trainer).get_json()['id']
    quiz_id = trainer.post(f'/api/courses/{course_id}/quizzes', json={'title_ar': 'اختبار'}).get_json()['id']
    response = trainer.post(f'/api/quizzes/{quiz_id}/questions', json={
        'question_ar': 'سؤال', 'options': [{'text_ar': 'أ'}], 'correct_answer': 0
    })
    assert response.status_code == 400
    assert 'options' in response.get_json()['errors']


def test_project_submission_and_grading(app, student, trainer):
    course_id = create_course(trainer).get_json()['id']
    response = student.post(f'/api/courses/{course_id}/projects', data={
        'title_ar': 'مشروعي', 'project': (io.BytesIO(b'PK'), 'work.zip')
    }, content_type='multipart/form-data')
    assert response.status_code == 201
    project = response.get_json()
    assert project['file_url'].endswith('-work.zip')

    listed = trainer.get(f'/api/courses/{course_id}/projects').get_json()
    assert listed[0]['user_name'] == 'Test User'

    bad = trainer.post(f"/api/projects/{project['id']}/grade", json={'grade': 101})
    assert bad.status_code == 400
    graded = trainer.post(f"/api/projects/{project['id']}/grade", json={'grade': 88, 'feedback': 'Good'})
    assert graded.status_code == 200
    assert graded.get_json()['grade'] == 88
    assert graded.get_json()['reviewed_by'] == trainer.user_id

    with app.app_context():
        assert AuditLog.query.filter_by(action='project_graded').count() == 1


def test_failed_project_commit_discards_file(app, student, trainer, monkeypatch):
    course_id = create_course(trainer).get_json()['id']

    def commit():
        raise OperationalError('INSERT INTO project_submissions', {}, Exception('database is locked'))

    monkeypatch.setattr(db.session, 'commit', commit)
    response = student.post(f'/api/courses/{course_id}/projects', data={
        'title_ar': 'مشروعي', 'project': (io.BytesIO(b'PK'), 'work.zip')
    }, content_type='multipart/form-data')
    assert response.status_code == 500
    monkeypatch.undo()

    assert os.listdir(app.config['UPLOAD_FOLDER']) == []
    with app.app_context():
        assert ProjectSubmission.query.count() == 0


def test_delete_course_leaves_no_orphans(app, trainer, student):
    course_id = create_course(trainer).get_json()['id']
    lesson_id = trainer.post(f'/api/courses/{course_id}/lessons', json={'title_ar': 'درس'}).get_json()['id']
    quiz_id = trainer.post(f'/api/courses/{course_id}/quizzes', json={'title_ar': 'اختبار'}).get_json()['id']
    trainer.post(f'/api/quizzes/{quiz_id}/questions', json={
        'question_ar': 'سؤال', 'options': [{'text_ar': 'أ'}, {'text_ar': 'ب'}], 'correct_answer': 1
    })
    student.post('/api/enrollments', json={'course_id': course_id})
    student.post(f'/api/lessons/{lesson_id}/complete')
    student.post(f'/api/quizzes/{quiz_id}/attempt', json={'answers': [1]})
    student.post(f'/api/courses/{course_id}/projects', data={'title_ar': 'مشروع'})
    certificate = student.post(f'/api/courses/{course_id}/complete').get_json()['certificate']

    response = trainer.delete(f'/api/courses/{course_id}')
    assert response.status_code == 200

    with app.app_context():
        assert db.session.get(Course, course_id) is None
        assert Lesson.query.filter_by(course_id=course_id).count() == 0
        assert Quiz.query.filter_by(course_id=course_id).count() == 0
        assert Question.query.filter_by(quiz_id=quiz_id).count() == 0
        assert QuizAttempt.query.filter_by(quiz_id=quiz_id).count() == 0
        assert LessonProgress.query.filter_by(lesson_id=lesson_id).count() == 0
        assert ProjectSubmission.query.filter_by(course_id=course_id).count() == 0
        assert Enrollment.query.filter_by(course_id=course_id).count() == 0
        kept = db.session.get(Certificate, certificate['id'])
        assert kept is not None and kept.course_id is None
        assert AuditLog.query.filter_by(action='course_delete', entity_id=course_id).count() == 1


def test_delete_unknown_course_is_404(trainer):
    assert trainer.delete('/api/courses/unknown').status_code == 404


def test_seed_courses_runs_once(app):
    with app.app_context():
        assert seed_courses() == len(SAMPLE_COURSES)
        assert seed_courses() == 0
        assert Course.query.count() == 6


def test_seed_courses_cli(app):
    result = app.test_cli_runner().invoke(args=['seed-courses'])
    assert 'Added 6 courses.' in result.output
