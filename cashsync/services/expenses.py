from datetime import date, timedelta
from math import ceil

from flask import current_app

from . import guard_storage
from .aggregation import parse_date
from ..errors import NotFound, Unauthenticated
from ..extensions import db, feed
from ..models import Expense, CATEGORIES, OTHER_CATEGORY


def resolve_category(category, other_text=None):
    """Map the form's category choice to the stored value."""
    if category == OTHER_CATEGORY:
        return (other_text or "").strip() or OTHER_CATEGORY
    return category


@guard_storage
def list_expenses(owner_id):
    return Expense.query.filter_by(user_id=owner_id).order_by(Expense.spent_on.desc(), Expense.id.desc()).all()


def snapshot(owner_id):
    return [e.to_dict() for e in list_expenses(owner_id)]


@guard_storage
def get_owned_expense(expense_id, owner_id):
    exp = Expense.query.filter_by(id=expense_id, user_id=owner_id).first()
    if exp is None:
        raise NotFound("Expense not found")
    return exp


@guard_storage
def create_expense(owner_id, title, amount, currency, category, spent_on=None, notes=None):
    if owner_id is None:
        raise Unauthenticated()
    exp = Expense(
        user_id=owner_id,
        title=title,
        amount=amount,
        currency=currency,
        category=category,
        spent_on=spent_on or date.today(),
        notes=notes,
    )
    db.session.add(exp)
    db.session.commit()
    current_app.logger.info("expense %s created for user %s", exp.id, owner_id)
    feed.publish(owner_id)
    return exp


@guard_storage
def update_expense(expense_id, owner_id, **fields):
    exp = get_owned_expense(expense_id, owner_id)
    for name in ("title", "amount", "currency", "category", "spent_on", "notes"):
        if name in fields:
            setattr(exp, name, fields[name])
    db.session.commit()
    feed.publish(owner_id)
    return exp


@guard_storage
def delete_expense(expense_id, owner_id):
    exp = get_owned_expense(expense_id, owner_id)
    db.session.delete(exp)
    db.session.commit()
    current_app.logger.info("expense %s deleted by user %s", expense_id, owner_id)
    feed.publish(owner_id)


def filter_expenses(expenses, currency=None, category=None, days=None, on_date=None, today=None):
    """Apply the expense list filters; an empty filter value matches everything."""
    today = today or date.today()
    since = today - timedelta(days=int(days)) if days else None
    on_date = parse_date(on_date) if on_date else None
    rows = []
    for exp in expenses:
        spent_on = parse_date(exp["date"] if isinstance(exp, dict) else exp.spent_on)
        exp_category = exp["category"] if isinstance(exp, dict) else exp.category
        exp_currency = exp["currency"] if isinstance(exp, dict) else exp.currency
        if currency and exp_currency != currency:
            continue
        if category == OTHER_CATEGORY:
            if exp_category in CATEGORIES:
                continue
        elif category and exp_category != category:
            continue
        if since and (spent_on is None or spent_on < since or spent_on > today):
            continue
        if on_date and spent_on != on_date:
            continue
        rows.append(exp)
    return rows


def paginate(items, page=1, per_page=20):
    pages = max(1, ceil(len(items) / per_page))
    page = min(max(1, page), pages)
    start = (page - 1) * per_page
    return {
        "items": items[start:start + per_page],
        "page": page,
        "pages": pages,
        "total": len(items),
    }
