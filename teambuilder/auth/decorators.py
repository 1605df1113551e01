"""Decorators for the auth blueprint."""

from functools import wraps

from flask import session

from teambuilder.core.constants import SESSION_EMAIL_VERIFIED, SESSION_USER_ID
from teambuilder.errors import ForbiddenError, UnauthorizedError


def login_required(f=None, verified_required=False):
    """Reject the request unless a user is logged in.

    Usage:
    @login_required
    def protected_view():
        ...

    @login_required(verified_required=True)
    def verified_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            if SESSION_USER_ID not in session:
                raise UnauthorizedError()
            if verified_required and not session.get(SESSION_EMAIL_VERIFIED):
                raise ForbiddenError("Please verify your email address first.")
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
