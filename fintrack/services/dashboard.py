"""Dashboard figures computed from a user's full transaction list.

Everything here is a linear pass over the list handed in; nothing touches the
database, so the functions work on model rows and on any object exposing
``type``, ``amount``, ``category``, ``date`` and ``status``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from ..models.transaction import EXPENSE, INCOME, PENDING

ZERO = Decimal("0.00")


@dataclass
class MonthTotals:
    month: str  # YYYY-MM
    income: Decimal = ZERO
    expense: Decimal = ZERO


@dataclass
class DashboardSummary:
    income_total: Decimal = ZERO
    expense_total: Decimal = ZERO
    balance: Decimal = ZERO
    category_totals: dict[str, Decimal] = field(default_factory=dict)
    monthly_series: list[MonthTotals] = field(default_factory=list)
    upcoming_bills: list = field(default_factory=list)
    recent: list = field(default_factory=list)

    def to_dict(self) -> dict:
        def money(value: Decimal) -> str:
            return f"{value:.2f}"

        def row(t) -> dict:
            if hasattr(t, "to_dict"):
                return t.to_dict()
            return {
                "type": t.type,
                "amount": money(_amount(t)),
                "description": getattr(t, "description", ""),
                "category": t.category,
                "date": _as_date(t.date).isoformat(),
                "status": getattr(t, "status", None),
            }

        return {
            "income_total": money(self.income_total),
            "expense_total": money(self.expense_total),
            "balance": money(self.balance),
            "category_totals": {k: money(v) for k, v in self.category_totals.items()},
            "monthly_series": [
                {"month": m.month, "income": money(m.income), "expense": money(m.expense)}
                for m in self.monthly_series
            ],
            "upcoming_bills": [row(t) for t in self.upcoming_bills],
            "recent": [row(t) for t in self.recent],
        }


def _amount(t) -> Decimal:
    value = t.amount
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _as_date(value) -> date:
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value


def _month_key(value: date) -> str:
    return value.strftime("%Y-%m")


def totals(transactions) -> tuple[Decimal, Decimal, Decimal]:
    """Return ``(income, expense, balance)``."""
    income = sum((_amount(t) for t in transactions if t.type == INCOME), ZERO)
    expense = sum((_amount(t) for t in transactions if t.type == EXPENSE), ZERO)
    return income, expense, income - expense


def category_totals(transactions) -> dict[str, Decimal]:
    """Expense totals per category, largest first."""
    by_category: dict[str, Decimal] = {}
    for t in transactions:
        if t.type != EXPENSE:
            continue
        by_category[t.category] = by_category.get(t.category, ZERO) + _amount(t)
    return dict(sorted(by_category.items(), key=lambda kv: (-kv[1], kv[0])))


def monthly_series(transactions, today: date, months: int = 4) -> list[MonthTotals]:
    """Income/expense per month for the current month and the ``months - 1`` before it."""
    first_of_month = today.replace(day=1)
    series = [
        MonthTotals(month=_month_key(first_of_month - relativedelta(months=offset)))
        for offset in range(months - 1, -1, -1)
    ]
    index = {m.month: m for m in series}
    for t in transactions:
        bucket = index.get(_month_key(_as_date(t.date)))
        if bucket is None:
            continue
        if t.type == INCOME:
            bucket.income += _amount(t)
        elif t.type == EXPENSE:
            bucket.expense += _amount(t)
    return series


def upcoming_bills(transactions, today: date, days: int = 7) -> list:
    """Pending expenses due between today and ``today + days``, soonest first."""
    horizon = today + timedelta(days=days)
    due = [
        t for t in transactions
        if t.type == EXPENSE and t.status == PENDING and today <= _as_date(t.date) <= horizon
    ]
    return sorted(due, key=lambda t: _as_date(t.date))


def recent_transactions(transactions, limit: int = 5) -> list:
    """Newest transactions first; same-day rows keep the most recently inserted on top."""
    ordered = sorted(
        transactions,
        key=lambda t: (_as_date(t.date), getattr(t, "id", None) or 0),
        reverse=True,
    )
    return ordered[:limit]


def summarize(transactions, today: date | None = None, *, months: int = 4,
              bills_days: int = 7, recent_limit: int = 5) -> DashboardSummary:
    transactions = list(transactions)
    today = today or date.today()
    income, expense, balance = totals(transactions)
    return DashboardSummary(
        income_total=income,
        expense_total=expense,
        balance=balance,
        category_totals=category_totals(transactions),
        monthly_series=monthly_series(transactions, today, months),
        upcoming_bills=upcoming_bills(transactions, today, bills_days),
        recent=recent_transactions(transactions, recent_limit),
    )
