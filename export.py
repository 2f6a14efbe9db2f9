"""CSV report of a profile's transactions, split into income and expense sections."""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional, Sequence

from schemas import Transaction, TransactionType

REPORT_HEADER = "Date,Description,Category,Account,Amount"


def _format_amount(amount: float) -> str:
    amount = float(amount)
    if amount.is_integer():
        return str(int(amount))
    return repr(amount)


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def _section(title: str, transactions: Iterable[Transaction]) -> List[str]:
    lines = [title, REPORT_HEADER]
    for t in transactions:
        lines.append(
            f"{t.date.isoformat()},{_quote(t.description)},{t.category},{t.account_name},{_format_amount(t.amount)}"
        )
    return lines


def generate_csv(
    transactions: Sequence[Transaction],
    total_balance: float,
    generated_on: Optional[date] = None,
) -> str:
    """
    Build the report text: a summary block, then INCOME REPORT and
    EXPENSE REPORT sections sharing the same header row. Descriptions are
    always quoted; the other fields are written as-is.
    """
    generated_on = generated_on or date.today()
    incomes = [t for t in transactions if t.type == TransactionType.INCOME]
    expenses = [t for t in transactions if t.type == TransactionType.EXPENSE]

    lines = [
        "FINANCIAL SUMMARY",
        f"Total Balance,{total_balance:.2f}",
        f"Generated Date,{generated_on.isoformat()}",
        "",
    ]
    lines += _section("INCOME REPORT", incomes)
    lines.append("")
    lines += _section("EXPENSE REPORT", expenses)
    return "\n".join(lines) + "\n"


def report_filename(today: Optional[date] = None) -> str:
    return f"nova_report_{(today or date.today()).isoformat()}.csv"
