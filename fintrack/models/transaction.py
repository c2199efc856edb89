from datetime import date, datetime
from ..extensions import db

INCOME = "income"
EXPENSE = "expense"
TYPES = (INCOME, EXPENSE)

PAID = "paid"
PENDING = "pending"
STATUSES = (PAID, PENDING)

CATEGORIES = (
    "Housing",
    "Food",
    "Transport",
    "Leisure",
    "Health",
    "Education",
    "Work",
    "Other",
)


class Transaction(db.Model):
    __tablename__ = "transactions"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    type = db.Column(db.String(10), nullable=False)  # income/expense
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(100), nullable=False)
    date = db.Column(db.Date, default=date.today, nullable=False)
    status = db.Column(db.String(10))  # paid/pending, expenses only
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def is_income(self) -> bool:
        return self.type == INCOME

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "amount": f"{self.amount:.2f}",
            "description": self.description,
            "category": self.category,
            "date": self.date.isoformat(),
            "status": self.status,
        }

    def __repr__(self):
        return f"<Transaction {self.description}: {self.amount} ({self.type})>"
