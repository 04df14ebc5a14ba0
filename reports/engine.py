from datetime import datetime, timedelta

import pandas as pd

from models import Expense

WINDOWS = ('today', 'month', 'year')


def window_bounds(window, now=None):
    """Return the half-open ``[start, end)`` datetime range of ``window``."""
    now = now or datetime.now()
    if window == 'today':
        start = datetime(now.year, now.month, now.day)
        return start, start + timedelta(days=1)
    if window == 'month':
        start = datetime(now.year, now.month, 1)
        if now.month == 12:
            return start, datetime(now.year + 1, 1, 1)
        return start, datetime(now.year, now.month + 1, 1)
    if window == 'year':
        return datetime(now.year, 1, 1), datetime(now.year + 1, 1, 1)
    raise ValueError(f'Unknown report window: {window!r}')


def _query_window(user_id, start, end):
    return (Expense.query
            .filter(Expense.user_id == user_id, Expense.date >= start, Expense.date < end)
            .order_by(Expense.date.desc(), Expense.id.desc())
            .all())


def _frame(rows):
    if not rows:
        return pd.DataFrame(columns=['id', 'date', 'amount', 'category'])
    df = pd.DataFrame([{
        'id': r.id,
        'date': r.date,
        'amount': float(r.amount),
        'category': r.category,
    } for r in rows])
    df['date'] = pd.to_datetime(df['date'])
    return df


def _category_totals(df):
    # sort=False keeps first-appearance order of the descending raw list
    totals = df.groupby('category', sort=False)['amount'].sum()
    return {str(c): float(v) for c, v in totals.items()}


def _time_series(df):
    points = df.sort_values(['date', 'id'], kind='stable')
    return [{
        'date_only': ts.strftime('%Y-%m-%d'),
        'time_of_day': ts.strftime('%H:%M'),
        'amount': float(amount),
    } for ts, amount in zip(points['date'], points['amount'])]


def _daily_totals(df):
    days = df.groupby(df['date'].dt.strftime('%Y-%m-%d'))['amount'].sum().sort_index()
    return [{'day': day, 'total_amount': float(total)} for day, total in days.items()]


def _monthly_totals(df):
    months = df.groupby(df['date'].dt.month)['amount'].sum().sort_index()
    return [{
        'month_num': int(m),
        'month_name': datetime(2000, int(m), 1).strftime('%B'),
        'total_amount': float(total),
    } for m, total in months.items()]


SERIES = {
    'today': ('time_series_data', _time_series),
    'month': ('daily_totals', _daily_totals),
    'year': ('monthly_totals', _monthly_totals),
}


def build_report(user_id, window, now=None):
    """Build the report bundle for ``user_id`` over ``window``.

    ``now`` pins the clock for callers that need a fixed reference date;
    the HTTP layer always leaves it unset. Storage errors propagate.
    """
    start, end = window_bounds(window, now)
    rows = _query_window(user_id, start, end)
    df = _frame(rows)

    key, series = SERIES[window]
    if df.empty:
        return {
            key: [],
            'raw_expenses': [],
            'total_expenses': 0.0,
            'category_totals': {},
        }
    return {
        key: series(df),
        'raw_expenses': [r.to_dict() for r in rows],
        'total_expenses': float(df['amount'].sum()),
        'category_totals': _category_totals(df),
    }
