"""Lightweight FastAPI service exposing profiles, transactions and dashboard tools."""

from contextlib import asynccontextmanager
from datetime import date
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

import ledger
from dashboard import build_dashboard
from database import get_db, init_db
from exceptions import ProfileNotFoundError, TransactionNotFoundError
from export import generate_csv, report_filename
from insights import analyze_recurring_bills, format_bill_alert
from logging_setup import configure_logging, get_logger
from schemas import (
    CurrencyCode,
    DashboardView,
    FilterRange,
    Prediction,
    Profile,
    ProfileUpdate,
    Transaction,
    TransactionDraft,
    currency_symbol,
)

logger = get_logger("nova_finance.server")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    configure_logging()
    init_db()
    logger.info("Nova Finance server ready")
    yield


app = FastAPI(title="Nova Finance Server", version="1.2.0", lifespan=lifespan)


def _not_found(exc: Exception) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


class CreateProfileRequest(BaseModel):
    display_name: str
    currency: CurrencyCode = CurrencyCode.USD


class UpcomingBillResponse(BaseModel):
    prediction: Optional[Prediction]
    message: Optional[str]


@app.get("/profiles", response_model=List[Profile])
async def get_profiles(db: Session = Depends(get_db)):
    return ledger.list_profiles(db)


@app.post("/profiles", response_model=Profile, status_code=201)
async def post_profile(req: CreateProfileRequest, db: Session = Depends(get_db)):
    return ledger.create_profile(db, req.display_name, req.currency)


@app.patch("/profiles/{uid}", response_model=Profile)
async def patch_profile(uid: str, req: ProfileUpdate, db: Session = Depends(get_db)):
    try:
        return ledger.update_profile(db, uid, **req.model_dump(exclude_none=True))
    except ProfileNotFoundError as exc:
        raise _not_found(exc)


@app.get("/profiles/{uid}/transactions", response_model=List[Transaction])
async def get_transactions(uid: str, db: Session = Depends(get_db)):
    try:
        return ledger.load_transactions(db, uid)
    except ProfileNotFoundError as exc:
        raise _not_found(exc)


@app.post("/profiles/{uid}/transactions", response_model=Transaction, status_code=201)
async def post_transaction(uid: str, draft: TransactionDraft, db: Session = Depends(get_db)):
    try:
        return ledger.add_transaction(db, uid, draft)
    except ProfileNotFoundError as exc:
        raise _not_found(exc)


@app.put("/profiles/{uid}/transactions/{tx_id}", response_model=Transaction)
async def put_transaction(uid: str, tx_id: str, draft: TransactionDraft, db: Session = Depends(get_db)):
    try:
        return ledger.update_transaction(db, uid, tx_id, draft)
    except TransactionNotFoundError as exc:
        raise _not_found(exc)


@app.delete("/profiles/{uid}/transactions/{tx_id}", status_code=204)
async def remove_transaction(uid: str, tx_id: str, db: Session = Depends(get_db)):
    try:
        ledger.delete_transaction(db, uid, tx_id)
    except TransactionNotFoundError as exc:
        raise _not_found(exc)
    return Response(status_code=204)


@app.get("/profiles/{uid}/dashboard", response_model=DashboardView)
async def get_dashboard(
    uid: str,
    range: FilterRange = FilterRange.MONTH,
    q: str = Query("", description="Search description, category or account"),
    db: Session = Depends(get_db),
):
    try:
        transactions = ledger.load_transactions(db, uid)
    except ProfileNotFoundError as exc:
        raise _not_found(exc)
    return build_dashboard(transactions, range, q)


@app.get("/profiles/{uid}/upcoming-bill", response_model=UpcomingBillResponse)
async def get_upcoming_bill(uid: str, db: Session = Depends(get_db)):
    try:
        profile = ledger.get_profile(db, uid)
        transactions = ledger.load_transactions(db, uid)
    except ProfileNotFoundError as exc:
        raise _not_found(exc)

    prediction = analyze_recurring_bills(transactions)
    if prediction is None:
        return UpcomingBillResponse(prediction=None, message=None)
    return UpcomingBillResponse(
        prediction=prediction,
        message=format_bill_alert(prediction, currency_symbol(profile.currency)),
    )


@app.get("/profiles/{uid}/report.csv")
async def get_report(
    uid: str,
    range: FilterRange = FilterRange.MONTH,
    db: Session = Depends(get_db),
):
    try:
        transactions = ledger.load_transactions(db, uid)
    except ProfileNotFoundError as exc:
        raise _not_found(exc)

    # The summary balance follows the active range; the rows cover everything
    balance = build_dashboard(transactions, range).stats.balance
    today = date.today()
    body = generate_csv(transactions, balance, today)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{report_filename(today)}"'},
    )


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server:app", host="0.0.0.0", port=8001, reload=True)
