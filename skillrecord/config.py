import os
from dotenv import load_dotenv
from datetime import timedelta
from cachelib import SimpleCache

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

class Config:
    # Flask Configuration
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///skillrecord.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Debug Configuration
    DEBUG = os.getenv('FLASK_ENV') == 'development'

    # Upload Configuration
    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', os.path.join(BASE_DIR, 'uploads'))
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024
    ALLOWED_UPLOAD_EXTENSIONS = {'.pdf', '.jpg', '.jpeg', '.png', '.doc', '.docx', '.zip'}

    # AI Assistant Configuration (any OpenAI-compatible endpoint)
    AI_API_KEY = os.getenv('AI_API_KEY')
    AI_BASE_URL = os.getenv('AI_BASE_URL', 'https://api.openai.com/v1')
    AI_MODEL = os.getenv('AI_MODEL', 'gpt-5-nano')
    AI_MAX_COMPLETION_TOKENS = int(os.getenv('AI_MAX_COMPLETION_TOKENS', '8192'))
    AI_TIMEOUT = int(os.getenv('AI_TIMEOUT', '60'))

    # Audit / certificates
    AUDIT_LOG_LIMIT = 200
    AUDIT_LOG_MAX_LIMIT = 1000
    CERTIFICATE_NUMBER_RETRIES = 5

    # Logging Configuration
    LOGGING = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'standard'
            }
        },
        'root': {
            'level': os.getenv('LOG_LEVEL', 'INFO'),
            'handlers': ['console']
        }
    }

    # Session Configuration
    SESSION_TYPE = os.getenv('SESSION_TYPE', 'cachelib')
    SESSION_DIR = os.getenv('SESSION_DIR', os.path.join(BASE_DIR, 'flask_session'))
    SESSION_CACHELIB = None
    SESSION_SQLALCHEMY_TABLE = 'sessions'
    SESSION_PERMANENT = True
    SESSION_COOKIE_NAME = 'skillrecord.sid'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SESSION_TYPE = 'cachelib'
    SESSION_CACHELIB = SimpleCache()
    AI_API_KEY = None
    LOGGING = dict(Config.LOGGING, root={'level': 'WARNING', 'handlers': ['console']})
