from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Open vocabularies: offered to clients, never enforced at the storage layer.
KNOWN_CATEGORIES = ('food', 'entertainment', 'business', 'rent', 'EMI', 'other')
KNOWN_PAYMODES = ('cash', 'card', 'online')


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    spending_limit = db.Column(db.Float, nullable=True)
    expenses = db.relationship('Expense', backref='user', lazy=True, cascade="all, delete-orphan")

    def to_public(self):
        return {'id': self.id, 'username': self.username, 'email': self.email}


class Expense(db.Model):
    __tablename__ = 'expenses'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    date = db.Column(db.DateTime, nullable=False, index=True)
    name = db.Column(db.Text, nullable=False)
    amount = db.Column(db.Float, nullable=False)  # always non-negative
    paymode = db.Column(db.String(50), nullable=False)
    category = db.Column(db.String(100), nullable=False, default='other')

    def to_dict(self):
        return {
            'id': self.id,
            'userid': self.user_id,
            'date': self.date.strftime('%Y-%m-%d'),
            'expensename': self.name,
            'amount': float(self.amount),
            'paymode': self.paymode,
            'category': self.category,
        }
