import logging
import os

from flask import Blueprint, Flask, request
from flask_cors import CORS
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError, TimeoutError as PoolTimeoutError
from werkzeug.exceptions import HTTPException

import auth
import expenses
from errors import ApiError, NotFound, StoreError, StoreUnavailable, ValidationError, render, success, error
from models import db, KNOWN_CATEGORIES, KNOWN_PAYMODES
from reports.engine import WINDOWS, build_report
from validation import clean_label, parse_amount, parse_date, parse_id, require_fields

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__)

EXPENSE_FIELDS = ['date', 'expensename', 'amount', 'paymode', 'category']


def create_app(test_config=None):
    app = Flask(__name__)
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///expenses.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-me')
    app.config['CORS_ORIGIN'] = os.environ.get('CORS_ORIGIN', os.environ.get('REACT_APP_ORIGIN', 'http://localhost:8080'))
    app.config['DB_POOL_SIZE'] = int(os.environ.get('DB_POOL_SIZE', 5))
    app.config['DB_MAX_OVERFLOW'] = int(os.environ.get('DB_MAX_OVERFLOW', 5))
    app.config['DB_POOL_TIMEOUT'] = float(os.environ.get('DB_POOL_TIMEOUT', 10))
    app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL', 'INFO')
    if test_config:
        app.config.update(test_config)

    options = engine_options(app.config)
    if options:
        app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', options)

    logging.basicConfig(level=app.config['LOG_LEVEL'])
    CORS(app, origins=[app.config['CORS_ORIGIN']], supports_credentials=True)

    db.init_app(app)
    with app.app_context():
        db.create_all()

    app.register_blueprint(api)
    register_error_handlers(app)
    logger.info('CORS allowed for origin: %s', app.config['CORS_ORIGIN'])
    return app


def engine_options(config):
    # SQLite keeps SQLAlchemy's own pool; server databases get a bounded one
    if config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite'):
        return {}
    return {
        'pool_size': config['DB_POOL_SIZE'],
        'max_overflow': config['DB_MAX_OVERFLOW'],
        'pool_timeout': config['DB_POOL_TIMEOUT'],
        'pool_pre_ping': True,
    }


# ---------------------- Error Handlers ----------------------
def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(exc):
        return render(exc)

    @app.errorhandler(PoolTimeoutError)
    def handle_pool_timeout(exc):
        db.session.rollback()
        logger.error('No database connection available: %s', exc)
        return render(StoreUnavailable('Database is busy, please retry.'))

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(exc):
        db.session.rollback()
        logger.exception('Database error on %s %s', request.method, request.path)
        return render(StoreError(f'Database error: {exc.__class__.__name__}'))

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        return error(exc.description, exc.code)

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        logger.exception('Unhandled error on %s %s', request.method, request.path)
        return error('Internal Server Error', 500)


# ---------------------- Request Helpers ----------------------
def _form():
    """Form fields, falling back to a JSON body."""
    if request.form:
        return request.form.to_dict()
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError('Request body must be a JSON object or form data.')
    return body


def _expense_fields(values):
    date, name, amount, paymode, category = require_fields(
        values, EXPENSE_FIELDS, 'Please fill out all fields for expense!')
    return {
        'date': parse_date(date),
        'name': name,
        'amount': parse_amount(amount),
        'paymode': clean_label(paymode, 'Payment mode'),
        'category': clean_label(category, 'Category'),
    }


# ---------------------- Routes: Health ----------------------
@api.route('/')
def index():
    return success('Hello from the Expense Tracker API!')


@api.route('/db_check')
def db_check():
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Database connection error: %s', e)
        return error(f'Failed to connect to the database: {e.__class__.__name__}', 500)
    return success('Successfully connected to the database.')


# ---------------------- Routes: Auth ----------------------
@api.route('/register', methods=['POST'])
def register():
    values = _form()
    username, email, _ = require_fields(values, ['username', 'email', 'password'])
    auth.register_user(username, email, str(values['password']))
    return success('You have successfully registered!', 201)


@api.route('/login', methods=['POST'])
def login():
    values = _form()
    username, _ = require_fields(values, ['username', 'password'], 'Please enter username and password!')
    user = auth.authenticate(username, str(values['password']))
    return success('Login successful!', user=user.to_public())


@api.route('/logout')
def logout():
    # no server-side session exists; clients drop their own state
    return success('Logged out successfully! (No server-side session used)')


# ---------------------- Routes: Expenses ----------------------
@api.route('/categories')
def categories():
    return success(data={'categories': list(KNOWN_CATEGORIES), 'paymodes': list(KNOWN_PAYMODES)})


@api.route('/expenses')
def list_expenses():
    user_id = parse_id(request.args.get('userid'))
    rows = expenses.list_expenses(user_id)
    return success(data=[e.to_dict() for e in rows])


@api.route('/addexpense', methods=['POST'])
def add_expense():
    values = _form()
    user_id = parse_id(values.get('userid'))
    expense = expenses.create_expense(user_id, _expense_fields(values))
    return success('Expense added successfully!', 201, data={'id': expense.id})


@api.route('/expense/<expense_id>')
def get_expense(expense_id):
    expense_id = parse_id(expense_id, 'Expense ID')
    user_id = parse_id(request.args.get('userid'))
    return success(data=expenses.get_expense(expense_id, user_id).to_dict())


@api.route('/update_expense/<expense_id>', methods=['PUT'])
def update_expense(expense_id):
    expense_id = parse_id(expense_id, 'Expense ID')
    values = _form()
    user_id = parse_id(values.get('userid') or request.args.get('userid'))
    expenses.update_expense(expense_id, user_id, _expense_fields(values))
    return success('Expense updated successfully!')


@api.route('/delete_expense/<expense_id>', methods=['DELETE'])
def delete_expense(expense_id):
    expense_id = parse_id(expense_id, 'Expense ID')
    user_id = parse_id(request.args.get('userid'))
    expenses.delete_expense(expense_id, user_id)
    return success('Expense deleted successfully!')


# ---------------------- Routes: Limit ----------------------
@api.route('/limit', methods=['GET'])
def get_limit():
    user_id = parse_id(request.args.get('userid'))
    return success(data={'limit': expenses.get_limit(user_id)})


@api.route('/limit', methods=['POST'])
def set_limit():
    values = _form()
    user_id = parse_id(values.get('userid'))
    (number,) = require_fields(values, ['number'], 'Limit value is required!')
    expenses.set_limit(user_id, parse_amount(number, 'limit'))
    return success('Spending limit set successfully!', 201)


# ---------------------- Routes: Reports ----------------------
@api.route('/report/<window>')
def report(window):
    if window not in WINDOWS:
        raise NotFound(f'Unknown report window: {window}')
    user_id = parse_id(request.args.get('userid'))
    return success(data=build_report(user_id, window))


# ---------------------- Run App ----------------------
if __name__ == '__main__':
    create_app().run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)), debug=True)
