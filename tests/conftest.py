import pytest

from app import create_app
from models import db


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'test.db'}",
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, username='alice', email='alice@example.com', password='s3cret-pw'):
    return client.post('/register', data={'username': username, 'email': email, 'password': password})


def login(client, username='alice', password='s3cret-pw'):
    return client.post('/login', data={'username': username, 'password': password})


@pytest.fixture
def user_id(client):
    register(client)
    return login(client).get_json()['user']['id']


@pytest.fixture
def other_user_id(client):
    register(client, 'bob', 'bob@example.com', 'hunter22')
    return login(client, 'bob', 'hunter22').get_json()['user']['id']


def add_expense(client, userid, date='2024-05-01', name='Lunch', amount='10', paymode='cash', category='food'):
    return client.post('/addexpense', data={
        'userid': str(userid),
        'date': date,
        'expensename': name,
        'amount': amount,
        'paymode': paymode,
        'category': category,
    })
