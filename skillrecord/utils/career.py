"""Keyword scoring for the career guidance questionnaire"""

DEFAULT_MAJOR = 'it'
POINTS_PER_MATCH = 2

# Major keys in tie-break order
ANSWER_KEYWORDS = {
    'it': ('it', 'coding', 'technical', 'computers'),
    'engineering': ('engineering', 'design', 'math', 'tools'),
    'business': ('business', 'leadership', 'efficiency', 'numbers'),
    'health': ('health', 'helping', 'scientific', 'service'),
    'arts': ('arts', 'creative', 'images', 'creative_space'),
    'science': ('science', 'analysis', 'research', 'lab'),
    'media': ('media', 'words', 'communication', 'customer_facing'),
    'education': ('education', 'people', 'helping', 'teaching'),
}

RESULTS = {
    'it': {
        'suggested_major': 'Information Technology',
        'major_ar': 'تكنولوجيا المعلومات',
        'matching_skills': ['Programming', 'Problem Solving', 'Logical Thinking', 'Technical Skills'],
        'career_paths': ['Software Developer', 'Web Developer', 'Mobile App Developer', 'System Administrator'],
        'description': 'Information Technology is ideal for those who love technology, programming, and solving technical problems.',
        'description_ar': 'تكنولوجيا المعلومات مثالي لمن يحب التقنية والبرمجة وحل المشكلات التقنية.',
    },
    'engineering': {
        'suggested_major': 'Engineering',
        'major_ar': 'الهندسة',
        'matching_skills': ['Problem Solving', 'Mathematics', 'Technical Skills', 'Analytical Thinking'],
        'career_paths': ['Civil Engineer', 'Mechanical Engineer', 'Electrical Engineer', 'Project Manager'],
        'description': 'Engineering is perfect for those who enjoy applying science and mathematics to solve real-world problems.',
        'description_ar': 'الهندسة مثالية لمن يستمتع بتطبيق العلوم والرياضيات لحل مشاكل العالم الحقيقي.',
    },
    'business': {
        'suggested_major': 'Business Administration',
        'major_ar': 'إدارة الأعمال',
        'matching_skills': ['Communication', 'Leadership', 'Organization', 'Analytical Thinking'],
        'career_paths': ['Business Manager', 'Marketing Specialist', 'Financial Analyst', 'HR Manager'],
        'description': 'Business Administration suits those who enjoy leadership and working with numbers.',
        'description_ar': 'إدارة الأعمال مناسبة لمن يستمتع بالقيادة والتواصل والعمل مع الأرقام.',
    },
    'health': {
        'suggested_major': 'Health Sciences',
        'major_ar': 'العلوم الصحية',
        'matching_skills': ['Helping Others', 'Scientific Knowledge', 'Attention to Detail', 'Compassion'],
        'career_paths': ['Physician', 'Nurse', 'Pharmacist', 'Physical Therapist'],
        'description': 'Health Sciences is ideal for those passionate about helping others.',
        'description_ar': 'العلوم الصحية مثالية لمن شغوف بمساعدة الآخرين.',
    },
    'arts': {
        'suggested_major': 'Arts & Design',
        'major_ar': 'الفنون والتصميم',
        'matching_skills': ['Creativity', 'Visual Thinking', 'Artistic Skills', 'Imagination'],
        'career_paths': ['Graphic Designer', 'UI/UX Designer', 'Interior Designer', 'Multimedia Artist'],
        'description': 'Arts & Design is perfect for creative individuals.',
        'description_ar': 'الفنون والتصميم مثالي للأفراد المبدعين.',
    },
    'science': {
        'suggested_major': 'Computer Science',
        'major_ar': 'علوم الحاسب',
        'matching_skills': ['Logical Thinking', 'Problem Solving', 'Research', 'Mathematics'],
        'career_paths': ['Software Engineer', 'Data Scientist', 'AI Researcher', 'Machine Learning Engineer'],
        'description': 'Computer Science suits those who love algorithms and data.',
        'description_ar': 'علوم الحاسب مناسبة لمن يحب الخوارزميات والبيانات.',
    },
    'media': {
        'suggested_major': 'Media & Communication',
        'major_ar': 'الإعلام والتواصل',
        'matching_skills': ['Communication', 'Creativity', 'Writing', 'Social Skills'],
        'career_paths': ['Content Creator', 'Journalist', 'Social Media Manager', 'Marketing Coordinator'],
        'description': 'Media & Communication is ideal for those who enjoy storytelling.',
        'description_ar': 'الإعلام والتواصل مثالي لمن يستمتع بسرد القصص.',
    },
    'education': {
        'suggested_major': 'Education & Training',
        'major_ar': 'التعليم والتدريب',
        'matching_skills': ['Communication', 'Patience', 'Helping Others', 'Presentation Skills'],
        'career_paths': ['Teacher', 'Trainer', 'Educational Administrator', 'Curriculum Developer'],
        'description': 'Education is perfect for those who love sharing knowledge.',
        'description_ar': 'التعليم مثالي لمن يحب مشاركة المعرفة.',
    },
}


def score_answers(answers):
    scores = dict.fromkeys(ANSWER_KEYWORDS, 0)
    for answer in answers:
        for major, keywords in ANSWER_KEYWORDS.items():
            if answer in keywords:
                scores[major] += POINTS_PER_MATCH
    return scores


def suggest_major(answers):
    """Highest scoring major; ties keep the earlier one, no match gives the default"""
    best, best_score = DEFAULT_MAJOR, 0
    for major, score in score_answers(answers).items():
        if score > best_score:
            best, best_score = major, score
    return best


def analyze(answers):
    return dict(RESULTS[suggest_major(answers)])
