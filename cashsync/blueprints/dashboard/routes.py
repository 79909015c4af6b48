import json
import queue
from flask import Blueprint, Response, current_app, jsonify, render_template, stream_with_context, url_for
from flask_login import login_required, current_user
from ...extensions import feed
from ...models import CURRENCIES
from ...services.aggregation import summarize, parse_amount
from ...services.expenses import snapshot


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")


def _field(expense, name):
    return expense[name] if isinstance(expense, dict) else getattr(expense, name)


def summary_payload(summary):
    """JSON-friendly copy of an aggregation summary."""
    return {
        "totals": {code: float(amount) for code, amount in summary["totals"].items()},
        "transaction_count": summary["transaction_count"],
        "highest_category": summary["highest_category"],
        "lowest_category": summary["lowest_category"],
        "category_totals": [
            {"name": name, "value": float(total)} for name, total in summary["category_totals"].items()
        ],
        "trend": [
            {"date": point.date.isoformat() if point.date else None, "amount": float(point.amount)}
            for point in summary["trend"]
        ],
        "currency_breakdown": [
            {"currency": CURRENCIES.get(code, code), "amount": float(amount)}
            for code, amount in summary["currency_breakdown"]
        ],
        "top_expenses": [
            {
                "id": _field(e, "id"),
                "title": _field(e, "title"),
                "amount": float(parse_amount(_field(e, "amount"))),
                "currency": _field(e, "currency"),
                "category": _field(e, "category"),
            }
            for e in summary["top_expenses"]
        ],
    }


def summary_stream(owner_id):
    """Server-sent events: one full summary per snapshot of ``owner_id``'s expenses."""
    updates = queue.Queue()
    keepalive = current_app.config["STREAM_KEEPALIVE_SECONDS"]
    top = current_app.config["TOP_EXPENSES"]

    def generate():
        subscription = feed.subscribe(owner_id, updates.put)
        try:
            while True:
                try:
                    records = updates.get(timeout=keepalive)
                except queue.Empty:
                    yield ": keepalive\n\n"
                    continue
                payload = summary_payload(summarize(records, top=top))
                yield f"data: {json.dumps(payload)}\n\n"
        finally:
            subscription.unsubscribe()

    return Response(stream_with_context(generate()), mimetype="text/event-stream",
                    headers={"Cache-Control": "no-cache"})


@dashboard_bp.route("/")
@login_required
def index():
    summary = summarize(snapshot(current_user.id), top=current_app.config["TOP_EXPENSES"])
    return render_template("dashboard/index.html", summary=summary, currencies=CURRENCIES,
                           title=f"{current_user.name}'s Dashboard",
                           stream_url=url_for("dashboard.stream"))


@dashboard_bp.route("/summary.json")
@login_required
def summary_json():
    summary = summarize(snapshot(current_user.id), top=current_app.config["TOP_EXPENSES"])
    return jsonify(summary_payload(summary))


@dashboard_bp.route("/stream")
@login_required
def stream():
    return summary_stream(current_user.id)
