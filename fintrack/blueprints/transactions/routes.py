import csv
from io import StringIO
from datetime import date
from decimal import Decimal, InvalidOperation
from flask import Blueprint, render_template, request, redirect, url_for, flash, make_response
from flask_login import login_required, current_user
from ...models import Transaction
from ...models.transaction import CATEGORIES, EXPENSE, INCOME, PAID, PENDING, STATUSES, TYPES
from ...services import store


transactions_bp = Blueprint("transactions", __name__, url_prefix="/transactions")


def _user_transactions():
    return store.find_by(
        Transaction,
        order_by=(Transaction.date.desc(), Transaction.id.desc()),
        user_id=current_user.id,
    )


def _own_transaction_or_404(transaction_id):
    return Transaction.query.filter_by(id=transaction_id, user_id=current_user.id).first_or_404()


def parse_transaction_form(form):
    """Validate the add form; returns ``(fields, errors)``."""
    errors = []
    tx_type = form.get("type") or EXPENSE
    if tx_type not in TYPES:
        errors.append("Type must be income or expense")

    description = (form.get("description") or "").strip()
    if not description:
        errors.append("Description is required")

    amount = None
    try:
        amount = Decimal((form.get("amount") or "").strip())
        if not amount.is_finite():
            raise InvalidOperation
        # Compare after rounding to cents so 0.004 cannot be stored as 0.00
        amount = amount.quantize(Decimal("0.01"))
        if amount <= 0:
            raise InvalidOperation
    except (InvalidOperation, ValueError):
        errors.append("Amount must be a positive number")
        amount = None

    on_date = None
    date_str = form.get("date")
    if not date_str:
        errors.append("Date is required")
    else:
        try:
            on_date = date.fromisoformat(date_str)
        except ValueError:
            errors.append("Date must be in YYYY-MM-DD format")

    category = (form.get("category") or "").strip()
    if not category:
        errors.append("Category is required")

    status = None
    if tx_type == EXPENSE:
        status = form.get("status") or PAID
        if status not in STATUSES:
            errors.append("Status must be paid or pending")

    fields = {
        "type": tx_type,
        "description": description,
        "amount": amount,
        "date": on_date,
        "category": category,
        "status": status,
    }
    return fields, errors


def _form_defaults(tx_type=EXPENSE, status=PENDING):
    return {
        "type": tx_type,
        "description": "",
        "amount": "",
        "date": date.today().isoformat(),
        "category": CATEGORIES[0],
        "status": status,
    }


@transactions_bp.route("/")
@login_required
def list_transactions():
    return render_template(
        "transactions/list.html",
        transactions=_user_transactions(),
        categories=CATEGORIES,
        form=_form_defaults(),
    )


@transactions_bp.route("/add", methods=["GET", "POST"])
@login_required
def add_transaction():
    if request.method == "POST":
        fields, errors = parse_transaction_form(request.form)
        if errors:
            for error in errors:
                flash(error, "danger")
            return render_template("transactions/form.html", categories=CATEGORIES, form=request.form)
        try:
            store.insert(Transaction(user_id=current_user.id, **fields))
        except store.StoreError:
            flash("Error adding transaction", "danger")
            return render_template("transactions/form.html", categories=CATEGORIES, form=request.form)
        flash("Transaction added successfully!", "success")
        next_url = request.form.get("next") or ""
        if not next_url.startswith("/") or next_url.startswith("//"):
            next_url = url_for("dashboard.index")
        return redirect(next_url)
    # The standalone add page starts as a paid income, the list form as a pending expense
    form = _form_defaults(INCOME, PAID)
    if request.args.get("type") in TYPES:
        form["type"] = request.args["type"]
    return render_template("transactions/form.html", categories=CATEGORIES, form=form)


@transactions_bp.route("/<int:transaction_id>/edit", methods=["POST"])
@login_required
def edit_transaction(transaction_id):
    tx = _own_transaction_or_404(transaction_id)
    # Description is the only inline-editable field; blank keeps the current one
    description = (request.form.get("description") or "").strip() or tx.description
    try:
        store.update_fields(tx, description=description)
    except store.StoreError:
        flash("Error updating transaction", "danger")
    else:
        flash("Transaction updated!", "success")
    return redirect(url_for("transactions.list_transactions"))


@transactions_bp.route("/<int:transaction_id>/delete", methods=["POST"])
@login_required
def delete_transaction(transaction_id):
    tx = _own_transaction_or_404(transaction_id)
    try:
        store.delete(tx)
    except store.StoreError:
        flash("Error deleting transaction", "danger")
    else:
        flash("Transaction deleted!", "info")
    return redirect(url_for("transactions.list_transactions"))


@transactions_bp.route("/export.csv")
@login_required
def export_csv():
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(["Date", "Type", "Description", "Category", "Amount", "Status"])
    for tx in _user_transactions():
        writer.writerow([tx.date.isoformat(), tx.type, tx.description, tx.category, f"{tx.amount:.2f}", tx.status or ""])
    response = make_response(output.getvalue())
    response.headers["Content-Disposition"] = "attachment; filename=transactions.csv"
    response.headers["Content-Type"] = "text/csv"
    return response
