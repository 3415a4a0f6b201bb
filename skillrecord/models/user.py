from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from .. import db, login_manager
from datetime import datetime
import enum
import uuid


def new_id():
    return str(uuid.uuid4())


def isoformat(value):
    return value.isoformat() if value else None


class Role(str, enum.Enum):
    STUDENT = 'student'
    TRAINER = 'trainer'
    SUPERVISOR = 'supervisor'

    @classmethod
    def values(cls):
        return [role.value for role in cls]


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, user_id)

class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255))
    first_name = db.Column(db.String(120))
    last_name = db.Column(db.String(120))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    profile = db.relationship('Profile', back_populates='user', uselist=False)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def get_id(self):
        return str(self.id)

    @property
    def full_name(self):
        return ' '.join(part for part in (self.first_name, self.last_name) if part)

    @property
    def role(self):
        """Role from the profile; users without one are students"""
        if self.profile and self.profile.role:
            return Role(self.profile.role)
        return Role.STUDENT

    @classmethod
    def find_by_email(cls, email):
        return cls.query.filter(db.func.lower(cls.email) == email.lower()).first()

    @classmethod
    def create(cls, email, password, first_name, last_name, role=Role.STUDENT):
        """Create a user together with its profile; the caller commits"""
        user = cls(email=email, first_name=first_name, last_name=last_name)
        user.set_password(password)
        user.profile = Profile(role=Role(role).value)
        db.session.add(user)
        return user

    def __repr__(self):
        return f'<User {self.email}>'

    def to_dict(self):
        """Convert user to dictionary, never including the password hash"""
        return {
            'id': self.id,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'created_at': isoformat(self.created_at)
        }


class Profile(db.Model):
    """Role and CV fields, one per user"""
    __tablename__ = 'student_profiles'

    UPDATABLE_FIELDS = (
        'student_id', 'training_id', 'phone', 'major', 'bio', 'skills',
        'languages', 'linkedin', 'github', 'interests', 'career_goals'
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), unique=True, nullable=False)
    role = db.Column(db.String(20), nullable=False, default=Role.STUDENT.value)
    student_id = db.Column(db.String(64))
    training_id = db.Column(db.String(64))
    phone = db.Column(db.String(32))
    major = db.Column(db.String(120))
    bio = db.Column(db.Text)
    skills = db.Column(db.JSON, default=list)
    languages = db.Column(db.JSON, default=list)
    linkedin = db.Column(db.String(255))
    github = db.Column(db.String(255))
    interests = db.Column(db.JSON, default=list)
    career_goals = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User', back_populates='profile')

    @classmethod
    def for_user(cls, user_id):
        return cls.query.filter_by(user_id=user_id).first()

    @classmethod
    def upsert(cls, user_id, **fields):
        """Insert or update the profile of a user; the caller commits"""
        profile = cls.for_user(user_id)
        if not profile:
            profile = cls(user_id=user_id, role=Role.STUDENT.value)
            db.session.add(profile)
        for name, value in fields.items():
            if name in cls.UPDATABLE_FIELDS:
                setattr(profile, name, value)
        return profile

    @classmethod
    def set_role(cls, user_id, role):
        profile = cls.for_user(user_id)
        if not profile:
            profile = cls(user_id=user_id)
            db.session.add(profile)
        profile.role = Role(role).value
        return profile

    def __repr__(self):
        return f'<Profile {self.user_id} ({self.role})>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'role': self.role,
            'student_id': self.student_id,
            'training_id': self.training_id,
            'phone': self.phone,
            'major': self.major,
            'bio': self.bio,
            'skills': self.skills or [],
            'languages': self.languages or [],
            'linkedin': self.linkedin,
            'github': self.github,
            'interests': self.interests or [],
            'career_goals': self.career_goals,
            'created_at': isoformat(self.created_at)
        }
