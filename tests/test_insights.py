import itertools
from datetime import date, datetime, timedelta, timezone

import pytest

from insights import add_months, analyze_recurring_bills, format_bill_alert
from schemas import Prediction, Transaction, TransactionType

_ids = itertools.count(1)

NOW = datetime(2026, 10, 19, 9, 0)


def _tx(description: str, amount: float, day: date, tx_type: str = "expense") -> Transaction:
    return Transaction(
        id=f"tx_{next(_ids)}",
        amount=amount,
        description=description,
        category="Utilities",
        date=day,
        type=TransactionType(tx_type),
        account_name="Personal",
    )


def _filler(count: int) -> list[Transaction]:
    return [_tx("Salary", 1000.0, date(2026, 1, 1) + timedelta(days=i), "income") for i in range(count)]


def test_fewer_than_five_transactions_returns_none() -> None:
    bills = [_tx("Netflix", 15.0, date(2026, 8, 20)), _tx("Netflix", 15.0, date(2026, 9, 20))]

    assert analyze_recurring_bills(bills + _filler(2), now=NOW) is None
    assert analyze_recurring_bills(bills + _filler(3), now=NOW) is not None


def test_income_counts_toward_history_floor_but_never_predicts() -> None:
    salaries = [_tx("Salary", 3000.0, date(2026, 8, 20), "income"), _tx("Salary", 3000.0, date(2026, 9, 20), "income")]
    others = [_tx("Coffee", 4.0, date(2026, 9, d)) for d in (1, 2, 3)]

    assert analyze_recurring_bills(salaries + others, now=NOW) is None


def test_predicts_one_calendar_month_after_last_charge() -> None:
    txs = [_tx("Netflix", 15.0, date(2026, 8, 20)), _tx("Netflix", 15.0, date(2026, 9, 20))] + _filler(3)

    prediction = analyze_recurring_bills(txs, now=NOW)

    assert prediction is not None
    assert prediction.description == "Netflix"
    assert prediction.predicted_date == date(2026, 10, 20)
    # 15 hours away still counts as a full day
    assert prediction.days_remaining == 1
    assert prediction.avg_amount == 15.0


@pytest.mark.parametrize(
    ("now", "expected_days"),
    [
        (datetime(2026, 10, 9), None),
        (datetime(2026, 10, 10), 5),
        (datetime(2026, 10, 12, 18, 0), 3),
        (datetime(2026, 10, 15), 0),
        (datetime(2026, 10, 15, 12, 0), 0),
        (datetime(2026, 10, 16), None),
    ],
)
def test_alert_window_is_zero_to_five_days(now, expected_days) -> None:
    txs = [_tx("Rent", 900.0, date(2026, 8, 16)), _tx("Rent", 900.0, date(2026, 9, 15))] + _filler(3)

    prediction = analyze_recurring_bills(txs, now=now)

    if expected_days is None:
        assert prediction is None
    else:
        assert prediction is not None
        assert prediction.predicted_date == date(2026, 10, 15)
        assert prediction.days_remaining == expected_days


@pytest.mark.parametrize(("gap", "is_monthly"), [(24, False), (25, True), (30, True), (35, True), (36, False)])
def test_monthly_gap_bounds(gap: int, is_monthly: bool) -> None:
    last = date(2026, 9, 20)
    txs = [_tx("Gym", 40.0, last - timedelta(days=gap)), _tx("Gym", 40.0, last)] + _filler(3)

    prediction = analyze_recurring_bills(txs, now=datetime(2026, 10, 18))

    assert (prediction is not None) is is_monthly


def test_only_two_most_recent_charges_decide_periodicity() -> None:
    irregular_before = [
        _tx("Phone", 30.0, date(2026, 6, 1)),
        _tx("Phone", 30.0, date(2026, 8, 21)),
        _tx("Phone", 30.0, date(2026, 9, 20)),
    ]
    irregular_last = [
        _tx("Water", 20.0, date(2026, 6, 20)),
        _tx("Water", 20.0, date(2026, 7, 21)),
        _tx("Water", 20.0, date(2026, 9, 20)),
    ]

    assert analyze_recurring_bills(irregular_before + _filler(2), now=NOW) is not None
    assert analyze_recurring_bills(irregular_last + _filler(2), now=NOW) is None


def test_average_uses_every_charge_in_group() -> None:
    txs = [
        _tx("Insurance", 30.0, date(2026, 9, 20)),
        _tx("Insurance", 10.0, date(2026, 7, 20)),
        _tx("Insurance", 20.0, date(2026, 8, 21)),
    ] + _filler(2)

    prediction = analyze_recurring_bills(txs, now=NOW)

    assert prediction is not None
    assert prediction.avg_amount == 20.0


def test_descriptions_group_case_and_whitespace_insensitively() -> None:
    txs = [
        _tx("netflix", 15.0, date(2026, 8, 20)),
        _tx("Netflix ", 17.0, date(2026, 9, 20)),
    ] + _filler(3)

    prediction = analyze_recurring_bills(txs, now=NOW)

    assert prediction is not None
    assert prediction.description == "Netflix "
    assert prediction.avg_amount == 16.0


def test_single_occurrence_groups_are_ignored() -> None:
    txs = [_tx(f"Shop {i}", 10.0, date(2026, 9, 20)) for i in range(5)]

    assert analyze_recurring_bills(txs, now=NOW) is None


def test_soonest_bill_wins() -> None:
    later = [_tx("Rent", 900.0, date(2026, 8, 23)), _tx("Rent", 900.0, date(2026, 9, 23))]
    sooner = [_tx("Netflix", 15.0, date(2026, 8, 21)), _tx("Netflix", 15.0, date(2026, 9, 21))]

    prediction = analyze_recurring_bills(later + sooner + _filler(1), now=datetime(2026, 10, 19))

    assert prediction is not None
    assert prediction.description == "Netflix"
    assert prediction.days_remaining == 2


def test_tie_goes_to_first_group_seen() -> None:
    first = [_tx("Spotify", 10.0, date(2026, 8, 21)), _tx("Spotify", 10.0, date(2026, 9, 21))]
    second = [_tx("Hulu", 12.0, date(2026, 8, 21)), _tx("Hulu", 12.0, date(2026, 9, 21))]

    prediction = analyze_recurring_bills(first + second + _filler(1), now=datetime(2026, 10, 19))

    assert prediction is not None
    assert prediction.description == "Spotify"


def test_accepts_plain_date_as_now() -> None:
    txs = [_tx("Netflix", 15.0, date(2026, 8, 20)), _tx("Netflix", 15.0, date(2026, 9, 20))] + _filler(3)

    prediction = analyze_recurring_bills(txs, now=date(2026, 10, 17))

    assert prediction is not None
    assert prediction.days_remaining == 3


def test_aware_now_matches_local_naive_now() -> None:
    txs = [_tx("Netflix", 15.0, date(2026, 8, 21)), _tx("Netflix", 15.0, date(2026, 9, 21))] + _filler(3)
    aware = NOW.astimezone().astimezone(timezone.utc)

    assert analyze_recurring_bills(txs, now=aware) == analyze_recurring_bills(txs, now=NOW)
    assert analyze_recurring_bills(txs, now=aware).days_remaining == 2


def test_month_end_overflow_policy_changes_due_date() -> None:
    txs = [_tx("Loan", 250.0, date(2026, 1, 1)), _tx("Loan", 250.0, date(2026, 1, 31))] + _filler(3)
    now = datetime(2026, 2, 27)

    rolled = analyze_recurring_bills(txs, now=now)
    clamped = analyze_recurring_bills(txs, now=now, month_overflow="clamp")

    assert rolled is not None and rolled.predicted_date == date(2026, 3, 3)
    assert rolled.days_remaining == 4
    assert clamped is not None and clamped.predicted_date == date(2026, 2, 28)
    assert clamped.days_remaining == 1


@pytest.mark.parametrize(
    ("start", "months", "overflow", "expected"),
    [
        (date(2026, 3, 15), 1, "roll", date(2026, 4, 15)),
        (date(2026, 12, 15), 1, "roll", date(2027, 1, 15)),
        (date(2026, 1, 15), -1, "roll", date(2025, 12, 15)),
        (date(2026, 1, 31), 1, "roll", date(2026, 3, 3)),
        (date(2028, 1, 31), 1, "roll", date(2028, 3, 2)),
        (date(2026, 3, 31), 1, "roll", date(2026, 5, 1)),
        (date(2026, 1, 31), 1, "clamp", date(2026, 2, 28)),
        (date(2028, 1, 31), 1, "clamp", date(2028, 2, 29)),
    ],
)
def test_add_months(start: date, months: int, overflow: str, expected: date) -> None:
    assert add_months(start, months, overflow=overflow) == expected


def test_add_months_rejects_unknown_policy() -> None:
    with pytest.raises(ValueError):
        add_months(date(2026, 1, 31), 1, overflow="nearest")


def test_format_bill_alert() -> None:
    prediction = Prediction(
        description="Netflix",
        predicted_date=date(2026, 10, 22),
        days_remaining=3,
        avg_amount=15.99,
    )

    assert format_bill_alert(prediction) == "Netflix due in 3 days. Est: $15.99"
    assert format_bill_alert(prediction, "€") == "Netflix due in 3 days. Est: €15.99"
