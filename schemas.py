"""Pydantic records shared by the dashboard, the bill predictor and the API."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CATEGORIES = [
    "Housing", "Food", "Transportation", "Utilities", "Insurance",
    "Healthcare", "Savings", "Personal", "Entertainment", "Salary", "Business", "Shopping", "Education",
]

ACCOUNTS = ["Personal", "Business"]


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class FilterRange(str, Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class CurrencyCode(str, Enum):
    USD = "USD"
    INR = "INR"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"


CURRENCIES = {
    CurrencyCode.USD: {"symbol": "$", "name": "US Dollar"},
    CurrencyCode.INR: {"symbol": "₹", "name": "Indian Rupee"},
    CurrencyCode.EUR: {"symbol": "€", "name": "Euro"},
    CurrencyCode.GBP: {"symbol": "£", "name": "British Pound"},
    CurrencyCode.JPY: {"symbol": "¥", "name": "Japanese Yen"},
}


def currency_symbol(code: Optional[CurrencyCode]) -> str:
    entry = CURRENCIES.get(code) if code else None
    return entry["symbol"] if entry else "$"


# --- Records ---

class TransactionDraft(BaseModel):
    """User-editable fields of a transaction, as submitted by a form or API call."""

    amount: float = Field(..., ge=0)
    description: str = Field(..., min_length=1)
    category: str = CATEGORIES[0]
    type: TransactionType = TransactionType.EXPENSE
    account_name: str = "Personal"

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: str) -> str:
        if value not in CATEGORIES:
            raise ValueError(f"Unknown category: {value!r}")
        return value


class Transaction(TransactionDraft):
    model_config = ConfigDict(frozen=True)

    id: str
    date: dt.date
    created_at: int = 0  # epoch milliseconds


class Prediction(BaseModel):
    description: str
    predicted_date: dt.date
    days_remaining: int
    avg_amount: float


class Profile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    uid: str
    display_name: str
    email: Optional[str] = None
    photo_url: Optional[str] = None
    currency: CurrencyCode = CurrencyCode.USD


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None
    currency: Optional[CurrencyCode] = None


# --- Dashboard values ---

class Stats(BaseModel):
    income: float = 0.0
    expense: float = 0.0
    balance: float = 0.0


class CategoryTotal(BaseModel):
    category: str
    total: float


class MonthlyBucket(BaseModel):
    year: int
    month: int
    name: str
    income: float = 0.0
    expense: float = 0.0


class DashboardView(BaseModel):
    transactions: List[Transaction]
    stats: Stats
    breakdown: List[CategoryTotal]
    monthly: List[MonthlyBucket]
