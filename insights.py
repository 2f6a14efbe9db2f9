import calendar
import math
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence

from logging_setup import get_logger
from schemas import Prediction, Transaction, TransactionType

logger = get_logger("nova_finance.insights")

MIN_HISTORY = 5
MIN_OCCURRENCES = 2
MONTHLY_GAP_DAYS = (25, 35)
ALERT_WINDOW_DAYS = (0, 5)

OVERFLOW_ROLL = "roll"
OVERFLOW_CLAMP = "clamp"


def add_months(day: date, months: int = 1, overflow: str = OVERFLOW_ROLL) -> date:
    """
    Calendar month addition on explicit year/month/day fields.

    When the day does not exist in the target month (Jan 31 + 1 month),
    ``overflow`` decides: ``"roll"`` carries the surplus days into the
    following month (Mar 3, or Mar 2 in a leap year), ``"clamp"`` pins to the
    target month's last day (Feb 28/29).
    """
    if overflow not in (OVERFLOW_ROLL, OVERFLOW_CLAMP):
        raise ValueError(f"Unknown month overflow policy: {overflow!r}")

    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]

    if day.day <= last_day:
        return date(year, month, day.day)
    if overflow == OVERFLOW_CLAMP:
        return date(year, month, last_day)
    return date(year, month, last_day) + timedelta(days=day.day - last_day)


def _days_until(target: date, now: datetime) -> int:
    delta = datetime.combine(target, datetime.min.time()) - now
    return math.ceil(delta.total_seconds() / 86400)


def _group_expenses(transactions: Sequence[Transaction]) -> Dict[str, List[Transaction]]:
    groups: Dict[str, List[Transaction]] = defaultdict(list)
    for t in transactions:
        if t.type != TransactionType.EXPENSE:
            continue
        groups[t.description.strip().casefold()].append(t)
    return groups


def analyze_recurring_bills(
    transactions: Sequence[Transaction],
    now: Optional[datetime] = None,
    month_overflow: str = OVERFLOW_ROLL,
) -> Optional[Prediction]:
    """
    Predict the single most urgent monthly bill, or ``None``.

    Expenses are grouped by trimmed, case-folded description. A group looks
    monthly when its two most recent entries are 25-35 days apart; the next
    charge is expected one calendar month after the latest. Only bills due
    within the next 5 days (today included) qualify, and the soonest wins.
    Ties go to the group seen first in ``transactions``.
    ``now`` is naive local time; an aware value is converted to it first.
    """
    if len(transactions) < MIN_HISTORY:
        return None

    if now is None:
        now = datetime.now()
    elif not isinstance(now, datetime):
        now = datetime.combine(now, datetime.min.time())
    elif now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)

    best: Optional[Prediction] = None
    for history in _group_expenses(transactions).values():
        if len(history) < MIN_OCCURRENCES:
            continue

        history = sorted(history, key=lambda t: t.date, reverse=True)
        last, prev = history[0], history[1]
        day_diff = (last.date - prev.date).days
        if not MONTHLY_GAP_DAYS[0] <= day_diff <= MONTHLY_GAP_DAYS[1]:
            continue

        next_date = add_months(last.date, 1, overflow=month_overflow)
        days_until = _days_until(next_date, now)
        if not ALERT_WINDOW_DAYS[0] <= days_until <= ALERT_WINDOW_DAYS[1]:
            continue

        if best is None or days_until < best.days_remaining:
            best = Prediction(
                description=last.description,
                predicted_date=next_date,
                days_remaining=days_until,
                avg_amount=sum(t.amount for t in history) / len(history),
            )

    if best is not None:
        logger.debug("Upcoming bill %r due %s", best.description, best.predicted_date)
    return best


def format_bill_alert(prediction: Prediction, symbol: str = "$") -> str:
    """Banner text for an upcoming bill."""
    return (
        f"{prediction.description} due in {prediction.days_remaining} days. "
        f"Est: {symbol}{prediction.avg_amount:,.2f}"
    )

