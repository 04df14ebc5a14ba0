from flask import jsonify


class ApiError(Exception):
    status_code = 500
    retryable = False

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError):
    status_code = 400


class Unauthorized(ApiError):
    status_code = 401


class NotFound(ApiError):
    status_code = 404


class Conflict(ApiError):
    status_code = 409


class StoreError(ApiError):
    status_code = 500


class StoreUnavailable(StoreError):
    """The connection pool could not hand out a connection in time."""
    status_code = 503
    retryable = True


def success(message=None, status_code=200, **payload):
    body = {'status': 'success'}
    if message is not None:
        body['message'] = message
    body.update(payload)
    return jsonify(body), status_code


def error(message, status_code, **extra):
    body = {'status': 'error', 'message': message}
    body.update(extra)
    return jsonify(body), status_code


def render(exc: ApiError):
    if exc.retryable:
        return error(exc.message, exc.status_code, retryable=True)
    return error(exc.message, exc.status_code)
