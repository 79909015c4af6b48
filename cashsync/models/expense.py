from datetime import date, datetime
from ..extensions import db


# Stored symbol -> label shown in filters and the currency breakdown
CURRENCIES = {
    "$": "USD ($)",
    "₹": "INR (₹)",
}

CATEGORIES = [
    "food", "transport", "medicine", "groceries", "rent", "gifts", "utilities",
    "entertainment", "education", "household", "clothing", "network", "travel",
    "housing", "emergency", "tuition", "gadgets", "loan",
]
OTHER_CATEGORY = "others"


class Expense(db.Model):
    __tablename__ = "expenses"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    currency = db.Column(db.String(8), nullable=False)
    category = db.Column(db.String(100), nullable=False)  # free text when "others" was picked
    spent_on = db.Column(db.Date, default=date.today, nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @property
    def is_custom_category(self):
        return self.category not in CATEGORIES

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "amount": self.amount,
            "currency": self.currency,
            "category": self.category,
            "date": self.spent_on,
            "notes": self.notes,
            "created_at": self.created_at,
        }
