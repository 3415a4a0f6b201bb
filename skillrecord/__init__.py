from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_session import Session
from cachelib import FileSystemCache
from .config import Config
import logging.config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
server_session = Session()

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    # Server-side session store
    if app.config.get('SESSION_TYPE') == 'sqlalchemy':
        app.config.setdefault('SESSION_SQLALCHEMY', db)
    elif app.config.get('SESSION_CACHELIB') is None:
        app.config['SESSION_CACHELIB'] = FileSystemCache(app.config['SESSION_DIR'], threshold=5000)

    # Initialize logging
    logging.config.dictConfig(app.config['LOGGING'])

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    server_session.init_app(app)

    from .errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints
    from .routes.main import main_bp
    from .routes.auth import auth_bp
    from .routes.profile import profile_bp
    from .routes.activities import activities_bp
    from .routes.courses import courses_bp
    from .routes.enrollments import enrollments_bp
    from .routes.certificates import certificates_bp
    from .routes.admin import admin_bp
    from .routes.ai import ai_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(profile_bp, url_prefix='/api/profile')
    app.register_blueprint(activities_bp, url_prefix='/api/activities')
    app.register_blueprint(courses_bp, url_prefix='/api')
    app.register_blueprint(enrollments_bp, url_prefix='/api')
    app.register_blueprint(certificates_bp, url_prefix='/api/certificates')
    app.register_blueprint(admin_bp, url_prefix='/api')
    app.register_blueprint(ai_bp, url_prefix='/api')

    from .commands import seed_courses_command
    app.cli.add_command(seed_courses_command)

    # Create database tables
    with app.app_context():
        db.create_all()

    return app
