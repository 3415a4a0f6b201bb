import requests
from flask import current_app
import logging
import json

from ..models.activity import Activity, ActivityStatus, ACTIVITY_MIN_HOURS
from ..models.course import Course
from ..models.enrollment import Enrollment
from ..models.certificate import Certificate
from ..models.user import User, Role

logger = logging.getLogger(__name__)


class AIClientError(Exception):
    pass


class AIChatClient:
    """Streaming client for an OpenAI-compatible chat completions endpoint"""

    def __init__(self):
        self.base_url = current_app.config['AI_BASE_URL'].rstrip('/')
        self.api_key = current_app.config['AI_API_KEY']
        self.model = current_app.config['AI_MODEL']
        self.max_tokens = current_app.config['AI_MAX_COMPLETION_TOKENS']
        self.timeout = current_app.config['AI_TIMEOUT']
        self.session = requests.Session()

        logger.info(f"Initialized AIChatClient with base_url: {self.base_url}, model: {self.model}")

    @staticmethod
    def is_configured():
        return bool(current_app.config.get('AI_API_KEY'))

    def _get_headers(self):
        return {
            'Accept': 'text/event-stream',
            'Content-Type': 'application/json',
            'User-Agent': 'SkillRecord/1.0',
            'Authorization': f'Bearer {self.api_key}'
        }

    def stream_chat(self, system_prompt, message):
        """Yield text deltas from the upstream model as they arrive.

        The upstream response is closed when the generator is closed, so a
        client that disconnects mid-stream also ends the upstream request.
        """
        url = f"{self.base_url}/chat/completions"
        payload = {
            'model': self.model,
            'messages': [
                {'role': 'system', 'content': system_prompt},
                {'role': 'user', 'content': message}
            ],
            'stream': True,
            'max_completion_tokens': self.max_tokens
        }

        logger.info(f"Opening chat stream to {url}")
        try:
            with self.session.post(url, headers=self._get_headers(), json=payload,
                                   stream=True, timeout=self.timeout) as response:
                if response.status_code != 200:
                    logger.error(f"Chat request failed: {response.status_code} {response.text[:500]}")
                    raise AIClientError(f"Upstream returned {response.status_code}")

                for line in response.iter_lines(decode_unicode=True):
                    if not line or not line.startswith('data:'):
                        continue
                    data = line[len('data:'):].strip()
                    if data == '[DONE]':
                        break
                    try:
                        chunk = json.loads(data)
                    except ValueError:
                        logger.warning(f"Skipping malformed stream chunk: {data[:200]}")
                        continue
                    choices = chunk.get('choices') or [{}]
                    content = (choices[0].get('delta') or {}).get('content')
                    if content:
                        yield content
        except requests.exceptions.RequestException as e:
            logger.error(f"Chat stream error: {str(e)}")
            raise AIClientError(str(e)) from e
        finally:
            self.session.close()


ROLE_LABELS = {
    'ar': {'student': 'متدرب', 'trainer': 'مدرب', 'supervisor': 'مشرف'},
    'en': {'student': 'Student', 'trainer': 'Trainer', 'supervisor': 'Supervisor'},
}

ROLE_GOALS = {
    'ar': {
        'student': 'ساعد المتدرب بتقديم نصائح واقتراحات مفيدة لإكمال سجله المهاري.',
        'trainer': 'ساعد المدرب في تحسين دوراته وإدارة المحتوى التعليمي واقتراح أفكار لدورات جديدة ومراجعة المشاريع.',
        'supervisor': 'ساعد المشرف في تحليل أداء المنصة وإدارة المستخدمين ومراجعة الأنشطة واتخاذ القرارات الإدارية المناسبة.',
    },
    'en': {
        'student': 'Help the student with useful advice and suggestions to complete their skill record.',
        'trainer': 'Help the trainer improve their courses, manage educational content, suggest new course ideas, and review projects.',
        'supervisor': 'Help the supervisor analyze platform performance, manage users, review activities, and make administrative decisions.',
    },
}

INTRO = {
    'ar': 'أنت مساعد ذكي متخصص في نظام السجل المهاري للكلية التقنية. أجب دائماً باللغة العربية. كن ودوداً ومختصراً.',
    'en': 'You are an intelligent assistant specialized in the Skill Record system for the Technical College. Always respond in English. Be friendly and concise.',
}

LABELS = {
    'ar': {
        'user_info': 'معلومات المستخدم', 'name': 'الاسم', 'role': 'الدور',
        'student_id': 'الرقم التدريبي', 'major': 'التخصص', 'not_set': 'غير محدد',
        'approved': 'الأنشطة المعتمدة', 'approved_hours': 'إجمالي الساعات المعتمدة',
        'enrolled': 'الدورات المسجلة', 'completed': 'الدورات المكتملة', 'certificates': 'الشهادات',
        'required_hours': 'الساعات المطلوبة لكل فئة', 'needs_more': 'الفئات التي تحتاج ساعات إضافية',
        'all_done': 'لا يوجد - أكمل جميع الفئات!', 'available': 'الدورات المتاحة',
        'no_courses': 'لا توجد دورات متاحة حالياً', 'hours': 'ساعة',
        'trainer_info': 'معلومات المدرب', 'total_courses': 'إجمالي الدورات',
        'published': 'دورات منشورة', 'drafts': 'دورات مسودة', 'courses': 'الدورات', 'none': 'لا توجد',
        'supervision_info': 'معلومات الإشراف', 'total_users': 'إجمالي المستخدمين',
        'pending': 'أنشطة بانتظار المراجعة', 'rejected': 'أنشطة مرفوضة',
        'total_activities': 'إجمالي الأنشطة', 'published_courses': 'إجمالي الدورات المنشورة',
    },
    'en': {
        'user_info': 'User Info', 'name': 'Name', 'role': 'Role',
        'student_id': 'Student ID', 'major': 'Major', 'not_set': 'Not set',
        'approved': 'Approved activities', 'approved_hours': 'Total approved hours',
        'enrolled': 'Enrolled courses', 'completed': 'Completed courses', 'certificates': 'Certificates',
        'required_hours': 'Required hours per category', 'needs_more': 'Categories needing more hours',
        'all_done': 'None - all categories completed!', 'available': 'Available courses',
        'no_courses': 'No courses available currently', 'hours': 'hours',
        'trainer_info': 'Trainer Info', 'total_courses': 'Total courses',
        'published': 'Published', 'drafts': 'Drafts', 'courses': 'Courses', 'none': 'None',
        'supervision_info': 'Supervision Info', 'total_users': 'Total users',
        'pending': 'Activities pending review', 'rejected': 'Rejected activities',
        'total_activities': 'Total activities', 'published_courses': 'Published courses',
    },
}


def _course_title(course, lang):
    return course.title_ar if lang == 'ar' else (course.title_en or course.title_ar)


def build_system_prompt(principal, lang='ar'):
    """Build the assistant's system prompt from the caller's own records"""
    t = LABELS[lang]
    user = principal.user
    role = principal.role.value
    profile = user.profile

    activities = Activity.for_user(user.id)
    approved = [a for a in activities if a.status == ActivityStatus.APPROVED.value]
    hours_by_type = Activity.hours_by_type(activities)
    enrollments = Enrollment.for_user(user.id)
    enrolled_ids = {e.course_id for e in enrollments}
    completed = [e for e in enrollments if e.is_completed]
    certificates = Certificate.for_user(user.id)
    published = Course.published()
    available = [c for c in published if c.id not in enrolled_ids]

    lines = [
        INTRO[lang],
        '',
        f"{t['user_info']}:",
        f"- {t['name']}: {user.full_name}",
        f"- {t['role']}: {ROLE_LABELS[lang][role]}",
        f"- {t['student_id']}: {(profile.student_id if profile else None) or t['not_set']}",
        f"- {t['major']}: {(profile.major if profile else None) or t['not_set']}",
        f"- {t['approved']}: {len(approved)}",
        f"- {t['approved_hours']}: {sum(a.hours for a in approved)}",
        f"- {t['enrolled']}: {len(enrollments)}",
        f"- {t['completed']}: {len(completed)}",
        f"- {t['certificates']}: {len(certificates)}",
    ]

    if principal.is_trainer:
        courses = Course.everything()
        if principal.role == Role.TRAINER:
            courses = [c for c in courses if c.instructor_id == user.id]
        published_count = sum(1 for c in courses if c.is_published)
        titles = ', '.join(
            f"{_course_title(c, lang)} ({c.duration} {t['hours']})" for c in courses[:10]
        ) or t['none']
        lines += [
            '',
            f"{t['trainer_info']}:",
            f"- {t['total_courses']}: {len(courses)}",
            f"- {t['published']}: {published_count}",
            f"- {t['drafts']}: {len(courses) - published_count}",
            f"- {t['courses']}: {titles}",
        ]

    if principal.is_supervisor:
        all_activities = Activity.all_with_owners()
        lines += [
            '',
            f"{t['supervision_info']}:",
            f"- {t['total_users']}: {User.query.count()}",
            f"- {t['pending']}: {sum(1 for a in all_activities if a.status == ActivityStatus.SUBMITTED.value)}",
            f"- {t['approved']}: {sum(1 for a in all_activities if a.status == ActivityStatus.APPROVED.value)}",
            f"- {t['rejected']}: {sum(1 for a in all_activities if a.status == ActivityStatus.REJECTED.value)}",
            f"- {t['total_activities']}: {len(all_activities)}",
            f"- {t['published_courses']}: {len(published)}",
        ]

    lines += ['', f"{t['required_hours']}:"]
    needed = []
    for activity_type, required in ACTIVITY_MIN_HOURS.items():
        achieved = hours_by_type.get(activity_type, 0)
        lines.append(f"- {activity_type}: {required}/{achieved}")
        if achieved < required:
            needed.append(f"- {activity_type}: {required - achieved} {t['hours']}")

    lines += ['', f"{t['needs_more']}:"]
    lines += needed or [t['all_done']]

    lines += ['', f"{t['available']}:"]
    lines += [
        f"- {_course_title(c, lang)} ({c.duration} {t['hours']})" for c in available[:5]
    ] or [t['no_courses']]

    lines += ['', ROLE_GOALS[lang][role]]
    return '\n'.join(lines)
