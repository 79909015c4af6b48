from datetime import date
from decimal import Decimal, InvalidOperation
from flask import Blueprint, current_app, render_template, request, redirect, url_for, flash, abort
from flask_login import login_required, current_user
from ...errors import NotFound
from ...models import CATEGORIES, CURRENCIES, OTHER_CATEGORY
from ...services import expenses as expense_service
from ...services.aggregation import compute_totals


expenses_bp = Blueprint("expenses", __name__, url_prefix="/expenses")

DATE_RANGES = [7, 20, 30]


def _read_form(form):
    """Validate the expense form; returns ``(fields, errors)``."""
    errors = []
    title = (form.get("title") or "").strip()
    if not title:
        errors.append("Title is required")

    amount = None
    try:
        amount = Decimal((form.get("amount") or "").strip())
        if not amount.is_finite() or amount < 0:
            errors.append("Amount must be zero or more")
    except InvalidOperation:
        errors.append("Invalid amount")

    currency = form.get("currency")
    if currency not in CURRENCIES:
        errors.append("Please pick a currency")

    category = form.get("category")
    if category != OTHER_CATEGORY and category not in CATEGORIES:
        errors.append("Please pick a category")
    elif category == OTHER_CATEGORY and not (form.get("other_category") or "").strip():
        errors.append("Please describe the category")

    spent_on = date.today()
    spent_on_str = form.get("spent_on")
    if spent_on_str:
        try:
            spent_on = date.fromisoformat(spent_on_str)
        except ValueError:
            errors.append("Invalid date")

    fields = {
        "title": title,
        "amount": amount,
        "currency": currency,
        "category": expense_service.resolve_category(category, form.get("other_category")),
        "spent_on": spent_on,
        "notes": (form.get("notes") or "").strip() or None,
    }
    return fields, errors


def _form_context(expense=None):
    return {
        "expense": expense,
        "currencies": CURRENCIES,
        "categories": CATEGORIES,
        "other_category": OTHER_CATEGORY,
    }


@expenses_bp.route("/")
@login_required
def list_expenses():
    filters = {
        "currency": request.args.get("currency") or None,
        "category": request.args.get("category") or None,
        "days": request.args.get("days", type=int),
        "on_date": request.args.get("on_date") or None,
    }
    rows = expense_service.filter_expenses(expense_service.list_expenses(current_user.id), **filters)
    page = expense_service.paginate(
        rows,
        page=request.args.get("page", 1, type=int),
        per_page=current_app.config["EXPENSES_PER_PAGE"],
    )
    return render_template(
        "expenses/list.html",
        page=page,
        totals=compute_totals(rows),
        filters=filters,
        date_ranges=DATE_RANGES,
        **_form_context(),
    )


@expenses_bp.route("/create", methods=["GET", "POST"])
@login_required
def create_expense():
    if request.method == "POST":
        fields, errors = _read_form(request.form)
        if errors:
            for error in errors:
                flash(error, "danger")
            return render_template("expenses/form.html", **_form_context()), 400
        expense_service.create_expense(current_user.id, **fields)
        flash("Expense added", "success")
        return redirect(url_for("expenses.list_expenses"))
    return render_template("expenses/form.html", **_form_context())


@expenses_bp.route("/<int:expense_id>/edit", methods=["GET", "POST"])
@login_required
def edit_expense(expense_id):
    try:
        exp = expense_service.get_owned_expense(expense_id, current_user.id)
    except NotFound:
        abort(404)
    if request.method == "POST":
        fields, errors = _read_form(request.form)
        if errors:
            for error in errors:
                flash(error, "danger")
            return render_template("expenses/form.html", **_form_context(exp)), 400
        expense_service.update_expense(expense_id, current_user.id, **fields)
        flash("Expense updated", "success")
        return redirect(url_for("expenses.list_expenses"))
    return render_template("expenses/form.html", **_form_context(exp))


@expenses_bp.route("/<int:expense_id>/delete", methods=["POST"])
@login_required
def delete_expense(expense_id):
    try:
        expense_service.delete_expense(expense_id, current_user.id)
    except NotFound:
        abort(404)
    flash("Expense deleted", "info")
    return redirect(url_for("expenses.list_expenses"))
