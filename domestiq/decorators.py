from functools import wraps

from flask import abort, request
from flask_login import current_user

from domestiq.errors import AppError


def role_required(*roles):
    def wrapper(func):
        @wraps(func)
        def inner(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)
            if current_user.role not in roles:
                raise AppError(f"Only {' or '.join(roles)} accounts can do this.", 403)
            return func(*args, **kwargs)

        return inner

    return wrapper


def json_body(*required):
    """Hand the parsed JSON body to the view as ``payload``.

    Any name in ``required`` that is absent or blank rejects the request with a
    400 naming the missing fields.
    """

    def wrapper(func):
        @wraps(func)
        def inner(*args, **kwargs):
            payload = request.get_json(silent=True)
            if not isinstance(payload, dict):
                payload = {}
            missing = [name for name in required if payload.get(name) in (None, "")]
            if missing:
                raise AppError(f"Missing required fields: {', '.join(missing)}", 400)
            return func(*args, payload=payload, **kwargs)

        return inner

    return wrapper


def parse_id(value, field):
    """Accept a positive integer id from JSON, either as a number or a digit string."""
    if isinstance(value, bool) or not str(value).isdigit():
        raise AppError(f"{field} must be an integer.", 400)
    return int(value)
