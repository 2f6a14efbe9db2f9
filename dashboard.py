# dashboard.py: range/search filters, summary stats, category and monthly rollups

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from schemas import (
    CategoryTotal,
    DashboardView,
    FilterRange,
    MonthlyBucket,
    Stats,
    Transaction,
    TransactionType,
)

TREND_MONTHS = 6

DF_COLUMNS = ["id", "date", "description", "category", "type", "account_name", "amount"]


def _as_datetime(now: Optional[datetime | date]) -> datetime:
    if now is None:
        return datetime.now()
    if isinstance(now, datetime):
        # Aware values are compared as naive local time
        return now.astimezone().replace(tzinfo=None) if now.tzinfo else now
    return datetime.combine(now, datetime.min.time())


def transactions_to_df(transactions: Sequence[Transaction]) -> pd.DataFrame:
    """
    Prepares the dataframe for dashboarding, one row per transaction in input order.
    """
    df = pd.DataFrame(
        [
            {
                "id": t.id,
                "date": t.date,
                "description": t.description,
                "category": t.category,
                "type": TransactionType(t.type).value,
                "account_name": t.account_name,
                "amount": float(t.amount),
            }
            for t in transactions
        ],
        columns=DF_COLUMNS,
    )
    df["date"] = pd.to_datetime(df["date"])
    df["amount"] = df["amount"].astype(float)
    return df


def _select(transactions: Sequence[Transaction], mask: pd.Series) -> List[Transaction]:
    return [t for t, keep in zip(transactions, mask.tolist()) if keep]


def filter_by_range(
    transactions: Sequence[Transaction],
    filter_range: FilterRange,
    now: Optional[datetime | date] = None,
) -> List[Transaction]:
    """
    Keep the transactions inside the selected window.

    week keeps anything dated on or after the day seven days before ``now``;
    month and year compare calendar fields with ``now``.
    """
    now = _as_datetime(now)
    df = transactions_to_df(transactions)
    if df.empty:
        return []

    filter_range = FilterRange(filter_range)
    if filter_range is FilterRange.WEEK:
        cutoff = pd.Timestamp((now - timedelta(days=7)).date())
        mask = df["date"] >= cutoff
    elif filter_range is FilterRange.MONTH:
        mask = (df["date"].dt.month == now.month) & (df["date"].dt.year == now.year)
    else:
        mask = df["date"].dt.year == now.year
    return _select(transactions, mask)


def filter_by_search(transactions: Sequence[Transaction], query: str) -> List[Transaction]:
    """Case-insensitive substring match on description, category or account."""
    if not query:
        return list(transactions)
    df = transactions_to_df(transactions)
    if df.empty:
        return []

    q = query.lower()
    mask = pd.Series(False, index=df.index)
    for col in ("description", "category", "account_name"):
        mask |= df[col].fillna("").str.lower().str.contains(q, regex=False)
    return _select(transactions, mask)


def filter_transactions(
    transactions: Sequence[Transaction],
    filter_range: FilterRange = FilterRange.MONTH,
    query: str = "",
    now: Optional[datetime | date] = None,
) -> List[Transaction]:
    return filter_by_search(filter_by_range(transactions, filter_range, now), query)


def summarize(transactions: Sequence[Transaction]) -> Stats:
    df = transactions_to_df(transactions)
    income = float(df.loc[df["type"] == TransactionType.INCOME.value, "amount"].sum())
    expense = float(df.loc[df["type"] == TransactionType.EXPENSE.value, "amount"].sum())
    return Stats(income=income, expense=expense, balance=income - expense)


def category_breakdown(transactions: Sequence[Transaction]) -> List[CategoryTotal]:
    """
    Expense totals per category, largest first.

    Categories with equal totals stay in the order they were first seen.
    """
    df = transactions_to_df(transactions)
    expenses = df[df["type"] == TransactionType.EXPENSE.value]
    if expenses.empty:
        return []

    by_cat = (
        expenses.groupby("category", sort=False)["amount"]
        .sum()
        .sort_values(ascending=False, kind="stable")
    )
    return [CategoryTotal(category=str(cat), total=float(total)) for cat, total in by_cat.items()]


def monthly_trend(
    transactions: Sequence[Transaction],
    now: Optional[datetime | date] = None,
    months: int = TREND_MONTHS,
) -> List[MonthlyBucket]:
    """
    Income and expense per calendar month for the ``months`` months ending at
    ``now``'s month, oldest first. Empty months are kept with zero sums.
    """
    now = _as_datetime(now)
    periods = pd.period_range(end=pd.Period(now, freq="M"), periods=months, freq="M")

    df = transactions_to_df(transactions)
    totals = {}
    if not df.empty:
        grouped = df.groupby(
            [df["date"].dt.year.rename("year"), df["date"].dt.month.rename("month"), "type"]
        )["amount"].sum()
        totals = {(int(y), int(m), t): float(v) for (y, m, t), v in grouped.items()}

    buckets = []
    for period in periods:
        buckets.append(
            MonthlyBucket(
                year=period.year,
                month=period.month,
                name=period.strftime("%b"),
                income=totals.get((period.year, period.month, TransactionType.INCOME.value), 0.0),
                expense=totals.get((period.year, period.month, TransactionType.EXPENSE.value), 0.0),
            )
        )
    return buckets


def build_dashboard(
    transactions: Sequence[Transaction],
    filter_range: FilterRange = FilterRange.MONTH,
    query: str = "",
    now: Optional[datetime | date] = None,
) -> DashboardView:
    """Everything the home screen shows. The trend ignores the active filters."""
    now = _as_datetime(now)
    filtered = filter_transactions(transactions, filter_range, query, now)
    return DashboardView(
        transactions=filtered,
        stats=summarize(filtered),
        breakdown=category_breakdown(filtered),
        monthly=monthly_trend(transactions, now),
    )


def income_vs_expense_monthly(buckets: Sequence[MonthlyBucket]):
    """
    Bar chart of Income vs Expenses per month.
    """
    names = [b.name for b in buckets]
    fig = go.Figure()
    fig.add_trace(go.Bar(x=names, y=[b.income for b in buckets], name="Income", marker_color="#10B981"))
    fig.add_trace(go.Bar(x=names, y=[b.expense for b in buckets], name="Expenses", marker_color="#EF4444"))

    fig.update_layout(barmode="group", title="6 Month Trends", height=350)
    return fig


def cat_spend(breakdown: Sequence[CategoryTotal]):
    """
    Donut chart of spending by category.
    """
    by_cat = pd.DataFrame(
        [{"Category": c.category, "Amount": c.total} for c in breakdown],
        columns=["Category", "Amount"],
    )
    fig = px.pie(by_cat, values="Amount", names="Category", hole=0.4, title="Spending by Category")
    fig.update_traces(textposition="inside", textinfo="percent+label")
    return fig
