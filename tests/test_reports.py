from datetime import date, datetime

import pytest

import expenses
from conftest import add_expense
from reports.engine import build_report, window_bounds

MAY_2024 = datetime(2024, 5, 20, 12, 0)


@pytest.fixture
def seed(app, user_id, other_user_id):
    def _seed(rows, owner=None):
        with app.app_context():
            for when, amount, category in rows:
                expenses.create_expense(owner or user_id, {
                    'date': when, 'name': category, 'amount': amount,
                    'paymode': 'cash', 'category': category,
                })
    return _seed


def _report(app, user_id, window, now=MAY_2024):
    with app.app_context():
        return build_report(user_id, window, now=now)


def test_window_bounds():
    assert window_bounds('today', MAY_2024) == (datetime(2024, 5, 20), datetime(2024, 5, 21))
    assert window_bounds('month', MAY_2024) == (datetime(2024, 5, 1), datetime(2024, 6, 1))
    assert window_bounds('month', datetime(2024, 12, 3)) == (datetime(2024, 12, 1), datetime(2025, 1, 1))
    assert window_bounds('year', MAY_2024) == (datetime(2024, 1, 1), datetime(2025, 1, 1))
    with pytest.raises(ValueError):
        window_bounds('week', MAY_2024)


def test_month_report_scenario(app, user_id, seed):
    seed([(datetime(2024, 5, 1), 10, 'food'), (datetime(2024, 5, 2), 20, 'rent')])
    report = _report(app, user_id, 'month')
    assert report['total_expenses'] == 30
    assert report['category_totals'] == {'food': 10, 'rent': 20}
    assert report['daily_totals'] == [
        {'day': '2024-05-01', 'total_amount': 10.0},
        {'day': '2024-05-02', 'total_amount': 20.0},
    ]


def test_month_sums_per_day_and_respects_window(app, user_id, other_user_id, seed):
    seed([
        (datetime(2024, 5, 3, 9, 15), 5.5, 'food'),
        (datetime(2024, 5, 3, 18, 40), 4.25, 'food'),
        (datetime(2024, 5, 31, 23, 59), 100, 'rent'),
        (datetime(2024, 4, 30), 1000, 'rent'),
        (datetime(2024, 6, 1), 1000, 'rent'),
    ])
    seed([(datetime(2024, 5, 3), 77, 'food')], owner=other_user_id)

    report = _report(app, user_id, 'month')
    assert report['daily_totals'] == [
        {'day': '2024-05-03', 'total_amount': 9.75},
        {'day': '2024-05-31', 'total_amount': 100.0},
    ]
    for expense in report['raw_expenses']:
        assert expense['userid'] == user_id
        assert expense['date'].startswith('2024-05-')
    assert report['total_expenses'] == pytest.approx(109.75)


def test_year_groups_by_month_with_names(app, user_id, seed):
    seed([
        (datetime(2024, 1, 15), 10, 'food'),
        (datetime(2024, 1, 20), 15, 'EMI'),
        (datetime(2024, 11, 2), 40, 'business'),
        (datetime(2023, 12, 31), 999, 'food'),
    ])
    report = _report(app, user_id, 'year')
    assert [(m['month_num'], m['total_amount']) for m in report['monthly_totals']] == [(1, 25.0), (11, 40.0)]
    assert all(isinstance(m['month_name'], str) and m['month_name'] for m in report['monthly_totals'])
    assert report['total_expenses'] == 65


def test_today_is_one_point_per_expense(app, user_id, seed):
    seed([
        (datetime(2024, 5, 20, 14, 30), 3, 'food'),
        (datetime(2024, 5, 20, 9, 5), 2, 'food'),
        (datetime(2024, 5, 20, 9, 5), 7, 'other'),
        (datetime(2024, 5, 19, 23, 59), 50, 'food'),
    ])
    report = _report(app, user_id, 'today')
    assert report['time_series_data'] == [
        {'date_only': '2024-05-20', 'time_of_day': '09:05', 'amount': 2.0},
        {'date_only': '2024-05-20', 'time_of_day': '09:05', 'amount': 7.0},
        {'date_only': '2024-05-20', 'time_of_day': '14:30', 'amount': 3.0},
    ]
    assert report['total_expenses'] == 12
    assert report['category_totals'] == {'food': 5.0, 'other': 7.0}


@pytest.mark.parametrize('window, series', [
    ('today', 'time_series_data'), ('month', 'daily_totals'), ('year', 'monthly_totals'),
])
def test_sums_agree(app, user_id, seed, window, series):
    seed([
        (datetime(2024, 5, 20, 8, 0), 0.1, 'food'),
        (datetime(2024, 5, 20, 9, 0), 0.2, 'food'),
        (datetime(2024, 5, 11), 33.33, 'rent'),
        (datetime(2024, 2, 29), 12.5, 'entertainment'),
    ])
    report = _report(app, user_id, window)
    total = report['total_expenses']
    assert total == pytest.approx(sum(e['amount'] for e in report['raw_expenses']))
    assert total == pytest.approx(sum(report['category_totals'].values()))
    amount_key = 'amount' if window == 'today' else 'total_amount'
    assert total == pytest.approx(sum(p[amount_key] for p in report[series]))


@pytest.mark.parametrize('window, series', [
    ('today', 'time_series_data'), ('month', 'daily_totals'), ('year', 'monthly_totals'),
])
def test_empty_window(app, user_id, seed, window, series):
    seed([(datetime(2020, 1, 1), 10, 'food')])
    assert _report(app, user_id, window) == {
        series: [],
        'raw_expenses': [],
        'total_expenses': 0.0,
        'category_totals': {},
    }


def test_unknown_user_gets_empty_report(app):
    report = _report(app, 4242, 'year')
    assert report['raw_expenses'] == [] and report['total_expenses'] == 0.0


def test_raw_expenses_descending(app, user_id, seed):
    seed([(datetime(2024, 5, 2), 1, 'food'), (datetime(2024, 5, 9), 2, 'food'), (datetime(2024, 5, 2), 3, 'food')])
    raw = _report(app, user_id, 'month')['raw_expenses']
    assert [e['amount'] for e in raw] == [2.0, 3.0, 1.0]


def test_report_endpoint_uses_server_clock(client, user_id):
    today = date.today().isoformat()
    add_expense(client, user_id, date=today, amount='8', category='food')
    add_expense(client, user_id, date='1999-01-01', amount='500', category='rent')

    for window in ('today', 'month', 'year'):
        resp = client.get(f'/report/{window}?userid={user_id}')
        assert resp.status_code == 200
        body = resp.get_json()
        assert body['status'] == 'success'
        assert body['data']['total_expenses'] == 8.0
        assert body['data']['category_totals'] == {'food': 8.0}

    points = client.get(f'/report/today?userid={user_id}').get_json()['data']['time_series_data']
    assert points == [{'date_only': today, 'time_of_day': '00:00', 'amount': 8.0}]


def test_report_endpoint_errors(client, user_id):
    assert client.get('/report/today').status_code == 400
    assert client.get('/report/today?userid=x1').status_code == 400
    resp = client.get(f'/report/week?userid={user_id}')
    assert resp.status_code == 404
    assert resp.get_json()['status'] == 'error'
