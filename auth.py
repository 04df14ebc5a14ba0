import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash, check_password_hash

from errors import Conflict, Unauthorized
from models import db, User
from validation import validate_email, validate_username

logger = logging.getLogger(__name__)

BAD_CREDENTIALS = 'Incorrect username / password!'


def register_user(username: str, email: str, password: str) -> User:
    validate_username(username)
    validate_email(email)
    if User.query.filter(or_(User.username == username, User.email == email)).first():
        raise Conflict('Account already exists with that username or email!')
    user = User(username=username, email=email, password_hash=generate_password_hash(password))
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # another request registered the same name between the check and the insert
        db.session.rollback()
        raise Conflict('Account already exists with that username or email!')
    logger.info('Registered user %s', user.id)
    return user


def authenticate(username: str, password: str) -> User:
    user = User.query.filter_by(username=username).first()
    if not user or not check_password_hash(user.password_hash, password):
        logger.warning('Failed login for username %r', username)
        raise Unauthorized(BAD_CREDENTIALS)
    return user
