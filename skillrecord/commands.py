from flask.cli import with_appcontext
import click
import logging

from .models.course import Course
from . import db

logger = logging.getLogger(__name__)

SAMPLE_COURSES = [
    {
        'title_ar': 'مقدمة في البرمجة بلغة بايثون',
        'title_en': 'Introduction to Python Programming',
        'description_ar': 'تعلم أساسيات البرمجة باستخدام لغة بايثون من الصفر. يشمل المتغيرات، الحلقات، الدوال، والتعامل مع الملفات.',
        'description_en': 'Learn programming fundamentals using Python from scratch. Covers variables, loops, functions, and file handling.',
        'category': 'Programming',
        'duration': 20,
    },
    {
        'title_ar': 'تطوير تطبيقات الويب',
        'title_en': 'Web Development Fundamentals',
        'description_ar': 'تعلم تطوير مواقع الويب باستخدام HTML وCSS وJavaScript. بناء مشاريع عملية وتعلم أساسيات التصميم المتجاوب.',
        'description_en': 'Learn web development using HTML, CSS, and JavaScript. Build practical projects and learn responsive design basics.',
        'category': 'Web Development',
        'duration': 30,
    },
    {
        'title_ar': 'تحليل البيانات والذكاء الاصطناعي',
        'title_en': 'Data Analysis & AI',
        'description_ar': 'مقدمة في تحليل البيانات باستخدام بايثون والمكتبات الشائعة. تعلم أساسيات التعلم الآلي وتطبيقاته العملية.',
        'description_en': 'Introduction to data analysis using Python and popular libraries. Learn machine learning basics and practical applications.',
        'category': 'Data Science',
        'duration': 25,
    },
    {
        'title_ar': 'القيادة وإدارة الفرق',
        'title_en': 'Leadership & Team Management',
        'description_ar': 'تطوير المهارات القيادية وتعلم أساليب إدارة الفرق الفعّالة. يشمل التواصل، التخطيط، وحل المشكلات.',
        'description_en': 'Develop leadership skills and learn effective team management methods. Includes communication, planning, and problem-solving.',
        'category': 'Leadership',
        'duration': 15,
    },
    {
        'title_ar': 'ريادة الأعمال والابتكار',
        'title_en': 'Entrepreneurship & Innovation',
        'description_ar': 'تعلم كيفية تحويل الأفكار إلى مشاريع ناجحة. يشمل دراسة الجدوى، خطة العمل، والتمويل.',
        'description_en': 'Learn how to turn ideas into successful projects. Covers feasibility studies, business plans, and funding.',
        'category': 'Business',
        'duration': 18,
    },
    {
        'title_ar': 'مهارات التواصل والعرض',
        'title_en': 'Communication & Presentation Skills',
        'description_ar': 'تعلم فن التواصل الفعّال ومهارات العرض التقديمي. يشمل التحدث أمام الجمهور والكتابة المهنية.',
        'description_en': 'Master effective communication and presentation skills. Includes public speaking and professional writing.',
        'category': 'Soft Skills',
        'duration': 10,
    },
]


def seed_courses():
    """Insert the sample catalogue unless courses already exist; returns the number added"""
    if Course.query.count() > 0:
        logger.info("Courses already seeded, skipping")
        return 0
    for fields in SAMPLE_COURSES:
        db.session.add(Course(is_published=True, **fields))
    db.session.commit()
    logger.info(f"Seeded {len(SAMPLE_COURSES)} courses")
    return len(SAMPLE_COURSES)


@click.command('seed-courses')
@with_appcontext
def seed_courses_command():
    """Seed the sample course catalogue."""
    added = seed_courses()
    click.echo(f"Added {added} courses.")
