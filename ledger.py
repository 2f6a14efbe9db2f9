"""
ledger.py
---------
Profile and transaction persistence on top of the SQLAlchemy models in
``database.py``. Every function takes an explicit session and profile uid;
nothing here tracks a "current" user.
"""

from __future__ import annotations

import secrets
import string
import time
from datetime import date
from typing import List, Optional
from urllib.parse import quote

from sqlalchemy.orm import Session

from database import Profile, TransactionRecord
from exceptions import ProfileNotFoundError, TransactionNotFoundError
from logging_setup import get_logger
from schemas import CurrencyCode, ProfileUpdate, Transaction, TransactionDraft, TransactionType
from schemas import Profile as ProfileOut

logger = get_logger("nova_finance.ledger")

AVATAR_URL = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"
_BASE36 = string.digits + string.ascii_lowercase


def _now_ms() -> int:
    return int(time.time() * 1000)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def new_transaction_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(11))
    return f"tx_{_to_base36(_now_ms())}{suffix}"


def to_transaction(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=record.id,
        amount=record.amount,
        description=record.description,
        category=record.category,
        date=record.date,
        type=TransactionType(record.type),
        account_name=record.account_name or "",
        created_at=record.created_at or 0,
    )


# --- Profiles ---

def list_profiles(db: Session) -> List[ProfileOut]:
    return [ProfileOut.model_validate(p) for p in db.query(Profile).order_by(Profile.uid).all()]


def _get_profile_row(db: Session, uid: str) -> Profile:
    profile = db.get(Profile, uid)
    if profile is None:
        raise ProfileNotFoundError(uid)
    return profile


def get_profile(db: Session, uid: str) -> ProfileOut:
    return ProfileOut.model_validate(_get_profile_row(db, uid))


def create_profile(db: Session, name: str, currency: CurrencyCode = CurrencyCode.USD) -> ProfileOut:
    profile = Profile(
        uid=f"user_{_now_ms()}",
        display_name=name,
        email=None,
        photo_url=AVATAR_URL.format(seed=quote(name)),
        currency=CurrencyCode(currency).value,
    )
    # Two profiles created within the same millisecond would collide
    while db.get(Profile, profile.uid) is not None:
        profile.uid = f"user_{int(profile.uid[5:]) + 1}"
    db.add(profile)
    db.commit()
    logger.info("Created profile %s (%s)", profile.uid, name)
    return ProfileOut.model_validate(profile)


def update_profile(db: Session, uid: str, **changes) -> ProfileOut:
    """Apply partial ``changes`` (display_name, email, photo_url, currency)."""
    profile = _get_profile_row(db, uid)
    for field, value in changes.items():
        if value is None:
            continue
        if field not in ProfileUpdate.model_fields:
            raise ValueError(f"Unknown profile field: {field}")
        if field == "currency":
            value = CurrencyCode(value).value
        setattr(profile, field, value)
    db.commit()
    return ProfileOut.model_validate(profile)


# --- Transactions ---

def load_transactions(db: Session, uid: str) -> List[Transaction]:
    """Return all of ``uid``'s transactions, newest date first."""
    _get_profile_row(db, uid)
    rows = (
        db.query(TransactionRecord)
        .filter(TransactionRecord.profile_uid == uid)
        .order_by(TransactionRecord.date.desc(), TransactionRecord.created_at.desc())
        .all()
    )
    return [to_transaction(r) for r in rows]


def _get_record(db: Session, uid: str, tx_id: str) -> TransactionRecord:
    record = db.get(TransactionRecord, tx_id)
    if record is None or record.profile_uid != uid:
        raise TransactionNotFoundError(tx_id)
    return record


def add_transaction(db: Session, uid: str, draft: TransactionDraft, today: Optional[date] = None) -> Transaction:
    """Create a transaction dated ``today``; new entries are never back-dated."""
    _get_profile_row(db, uid)
    record = TransactionRecord(
        id=new_transaction_id(),
        profile_uid=uid,
        date=today or date.today(),
        description=draft.description,
        amount=draft.amount,
        category=draft.category,
        type=TransactionType(draft.type).value,
        account_name=draft.account_name,
        created_at=_now_ms(),
    )
    db.add(record)
    db.commit()
    logger.debug("Added %s %s for %s", record.type, record.id, uid)
    return to_transaction(record)


def update_transaction(db: Session, uid: str, tx_id: str, draft: TransactionDraft) -> Transaction:
    """Replace the editable fields of ``tx_id``; date and created_at are kept."""
    record = _get_record(db, uid, tx_id)
    record.amount = draft.amount
    record.description = draft.description
    record.category = draft.category
    record.type = TransactionType(draft.type).value
    record.account_name = draft.account_name
    db.commit()
    return to_transaction(record)


def delete_transaction(db: Session, uid: str, tx_id: str) -> None:
    record = _get_record(db, uid, tx_id)
    db.delete(record)
    db.commit()
    logger.debug("Deleted %s for %s", tx_id, uid)
