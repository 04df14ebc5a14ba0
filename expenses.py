import logging

from errors import NotFound
from models import db, Expense, User

logger = logging.getLogger(__name__)

NOT_FOUND = 'Expense not found or not authorized.'


def _owned(expense_id, user_id):
    return Expense.query.filter_by(id=expense_id, user_id=user_id)


def create_expense(user_id, fields: dict) -> Expense:
    expense = Expense(
        user_id=user_id,
        date=fields['date'],
        name=fields['name'],
        amount=round(fields['amount'], 2),
        paymode=fields['paymode'],
        category=fields['category'],
    )
    db.session.add(expense)
    db.session.commit()
    logger.info('User %s added expense %s', user_id, expense.id)
    return expense


def list_expenses(user_id):
    return (Expense.query.filter_by(user_id=user_id)
            .order_by(Expense.date.desc(), Expense.id.desc())
            .all())


def get_expense(expense_id, user_id) -> Expense:
    expense = _owned(expense_id, user_id).first()
    if expense is None:
        raise NotFound(NOT_FOUND)
    return expense


def update_expense(expense_id, user_id, fields: dict) -> int:
    count = _owned(expense_id, user_id).update({
        Expense.date: fields['date'],
        Expense.name: fields['name'],
        Expense.amount: round(fields['amount'], 2),
        Expense.paymode: fields['paymode'],
        Expense.category: fields['category'],
    }, synchronize_session=False)
    db.session.commit()
    if count == 0:
        raise NotFound(NOT_FOUND)
    logger.info('User %s updated expense %s', user_id, expense_id)
    return count


def delete_expense(expense_id, user_id) -> int:
    count = _owned(expense_id, user_id).delete(synchronize_session=False)
    db.session.commit()
    if count == 0:
        raise NotFound(NOT_FOUND)
    logger.info('User %s deleted expense %s', user_id, expense_id)
    return count


def get_limit(user_id) -> float:
    """Return the user's spending limit, 0.0 when unset or the user is unknown."""
    limit = db.session.query(User.spending_limit).filter(User.id == user_id).scalar()
    return float(limit) if limit is not None else 0.0


def set_limit(user_id, value: float):
    count = User.query.filter_by(id=user_id).update({User.spending_limit: value}, synchronize_session=False)
    db.session.commit()
    if count == 0:
        raise NotFound('User not found or limit not updated.')
    logger.info('User %s set spending limit', user_id)
