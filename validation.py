import math
import re
from datetime import datetime

from errors import ValidationError

USERNAME_RE = re.compile(r'^[A-Za-z0-9_.-]+$')
EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

DATE_FORMATS = ['%Y-%m-%d', '%Y-%m-%dT%H:%M', '%Y-%m-%dT%H:%M:%S', '%Y-%m-%d %H:%M', '%Y-%m-%d %H:%M:%S']
MAX_LABEL_LENGTH = 100
MAX_AMOUNT = 1e12


def require_fields(values: dict, names, message='Please fill out all fields!'):
    cleaned = ['' if values.get(n) is None else str(values[n]).strip() for n in names]
    if not all(cleaned):
        raise ValidationError(message)
    return cleaned


def parse_id(raw, label='User ID'):
    if raw is None or str(raw).strip() == '':
        raise ValidationError(f'{label} is required!')
    raw = str(raw).strip()
    if not re.fullmatch(r'[+-]?\d+', raw):
        raise ValidationError(f'Invalid {label} format!')
    value = int(raw)
    # ids are signed 64-bit in every backend
    if not -2**63 <= value < 2**63:
        raise ValidationError(f'Invalid {label} format!')
    return value


def parse_amount(raw, label='amount'):
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid {label} format! {label.capitalize()} must be a number.')
    if not math.isfinite(value) or value < 0:
        raise ValidationError(f'Invalid {label}! {label.capitalize()} must be a non-negative number.')
    if value > MAX_AMOUNT:
        raise ValidationError(f'Invalid {label}! {label.capitalize()} must not exceed {MAX_AMOUNT:,.0f}.')
    return value


def parse_date(raw):
    s = str(raw or '').strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    raise ValidationError('Invalid date format! Use YYYY-MM-DD.')


def clean_label(raw, label):
    value = str(raw or '').strip()
    if not value:
        raise ValidationError(f'{label} is required!')
    if len(value) > MAX_LABEL_LENGTH:
        raise ValidationError(f'{label} must be at most {MAX_LABEL_LENGTH} characters.')
    return value


def validate_username(username):
    if not USERNAME_RE.match(username):
        raise ValidationError('Username can only contain letters, numbers, underscores, dots, and hyphens!')
    if len(username) > 80:
        raise ValidationError('Username must be at most 80 characters.')
    return username


def validate_email(email):
    if not EMAIL_RE.match(email):
        raise ValidationError('Invalid email address!')
    return email
