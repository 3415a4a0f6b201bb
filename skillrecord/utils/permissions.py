from flask import g
from flask_login import current_user, login_required
from functools import wraps
import enum
import logging

from ..errors import Forbidden
from ..models.user import Role

logger = logging.getLogger(__name__)


class Capability(enum.Enum):
    SUPERVISE = 'supervise'
    TRAIN = 'train'
    STUDY = 'study'


# Supervisors hold every capability; trainers do not inherit STUDY
ROLE_CAPABILITIES = {
    Role.STUDENT: frozenset({Capability.STUDY}),
    Role.TRAINER: frozenset({Capability.TRAIN}),
    Role.SUPERVISOR: frozenset({Capability.SUPERVISE, Capability.TRAIN, Capability.STUDY}),
}


def capabilities_for(role):
    return ROLE_CAPABILITIES[Role(role)]


def is_supervisor(role):
    return Capability.SUPERVISE in capabilities_for(role)


def is_trainer(role):
    return Capability.TRAIN in capabilities_for(role)


def can_student_access(role):
    return Capability.STUDY in capabilities_for(role)


class Principal:
    """The authenticated user of a request with its resolved capabilities"""

    def __init__(self, user, role):
        self.user = user
        self.role = Role(role)
        self.capabilities = capabilities_for(self.role)

    @property
    def id(self):
        return self.user.id

    def can(self, capability):
        return capability in self.capabilities

    @property
    def is_supervisor(self):
        return self.can(Capability.SUPERVISE)

    @property
    def is_trainer(self):
        return self.can(Capability.TRAIN)

    @property
    def can_study(self):
        return self.can(Capability.STUDY)

    def require(self, *capabilities):
        missing = [c for c in capabilities if not self.can(c)]
        if missing:
            logger.warning(f"Denied {self.user.id} ({self.role.value}) lacking {[c.value for c in missing]}")
            raise Forbidden()
        return self

    def __repr__(self):
        return f'<Principal {self.user.id} {self.role.value}>'


def current_principal():
    """Resolve the principal once per request"""
    if 'principal' not in g:
        user = current_user._get_current_object()
        g.principal = Principal(user, user.role)
    return g.principal


def requires(*capabilities):
    """Login-protect a view and pass it the principal as first argument.

    Missing capabilities give a uniform 403 before the view body runs.
    """
    def decorator(view):
        @wraps(view)
        @login_required
        def wrapped(*args, **kwargs):
            principal = current_principal().require(*capabilities)
            return view(principal, *args, **kwargs)
        return wrapped
    return decorator
