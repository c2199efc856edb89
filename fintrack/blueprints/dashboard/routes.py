from datetime import date, timedelta
from decimal import Decimal
from flask import Blueprint, current_app, render_template, redirect, url_for, flash, jsonify
from flask_login import login_required, current_user
from ...models import Transaction
from ...models.transaction import EXPENSE, INCOME, PAID, PENDING
from ...services import store
from ...services.dashboard import summarize


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")


def _current_summary():
    cfg = current_app.config
    # Every view re-reads the full list; there is no cache
    transactions = store.find_by(Transaction, user_id=current_user.id)
    return summarize(
        transactions,
        date.today(),
        months=cfg["DASHBOARD_MONTHS"],
        bills_days=cfg["UPCOMING_BILLS_DAYS"],
        recent_limit=cfg["RECENT_TRANSACTIONS_LIMIT"],
    )


@dashboard_bp.route("/")
@login_required
def index():
    summary = _current_summary()
    series_labels = [m.month for m in summary.monthly_series]
    return render_template(
        "dashboard/index.html",
        summary=summary,
        series_labels=series_labels,
        series_income=[float(m.income) for m in summary.monthly_series],
        series_expense=[float(m.expense) for m in summary.monthly_series],
        category_labels=list(summary.category_totals.keys()),
        category_data=[float(v) for v in summary.category_totals.values()],
    )


@dashboard_bp.route("/summary.json")
@login_required
def summary_json():
    return jsonify(_current_summary().to_dict())


@dashboard_bp.route("/seed")
@login_required
def seed_demo():
    """Seed a few months of sample income, expenses and pending bills for an empty account."""
    if store.find_by(Transaction, user_id=current_user.id):
        flash("Demo data is only added to an empty account", "warning")
        return redirect(url_for("dashboard.index"))

    today = date.today()
    first = today.replace(day=1)
    demo = [
        (INCOME, "Salary", "Work", "4500", first, None),
        (INCOME, "Freelance", "Work", "700", first + timedelta(days=3), None),
        (EXPENSE, "Groceries", "Food", "280", first + timedelta(days=1), PAID),
        (EXPENSE, "Restaurant", "Leisure", "120", first + timedelta(days=2), PAID),
        (EXPENSE, "Fuel", "Transport", "150", first + timedelta(days=4), PAID),
        (EXPENSE, "Rent", "Housing", "1500", today + timedelta(days=2), PENDING),
        (EXPENSE, "Electricity", "Housing", "180", today + timedelta(days=5), PENDING),
        (EXPENSE, "Internet", "Housing", "99", today + timedelta(days=15), PENDING),
    ]
    # Previous months so the income vs. expense chart has history
    previous = first
    for _ in range(3):
        previous = (previous - timedelta(days=1)).replace(day=1)
        demo.append((INCOME, "Salary", "Work", "4500", previous, None))
        demo.append((EXPENSE, "Rent", "Housing", "1500", previous + timedelta(days=4), PAID))
        demo.append((EXPENSE, "Groceries", "Food", "650", previous + timedelta(days=10), PAID))

    try:
        for tx_type, description, category, amount, on_date, status in demo:
            store.insert(Transaction(
                user_id=current_user.id,
                type=tx_type,
                description=description,
                category=category,
                amount=Decimal(amount),
                date=on_date,
                status=status,
            ))
    except store.StoreError:
        flash("Error seeding demo data", "danger")
    else:
        flash("Demo data seeded", "success")
    return redirect(url_for("dashboard.index"))
