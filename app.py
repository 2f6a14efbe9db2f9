import streamlit as st
from datetime import date

import ledger
from dashboard import build_dashboard, cat_spend, income_vs_expense_monthly
from database import SessionLocal, init_db
from exceptions import NovaFinanceError, ProfileNotFoundError
from export import generate_csv, report_filename
from insights import analyze_recurring_bills, format_bill_alert
from logging_setup import configure_logging, get_logger
from pydantic import ValidationError
from schemas import (
    ACCOUNTS,
    CATEGORIES,
    CURRENCIES,
    CurrencyCode,
    FilterRange,
    TransactionDraft,
    TransactionType,
    currency_symbol,
)
from storage import save_file

# --- Configuration ---
st.set_page_config(page_title="Nova Finance", layout="centered", page_icon="💰")
configure_logging()
logger = get_logger("nova_finance.app")

# --- Database Session ---
init_db()

if "db" not in st.session_state:
    st.session_state.db = SessionLocal()

def get_db():
    return st.session_state.db

def _init_state():
    defaults = {
        "profile_uid": None,
        "view": "home",
        "editing_id": None,
        "filter": FilterRange.MONTH.value,
        "dismissed_bill": None,
    }
    for key, value in defaults.items():
        st.session_state.setdefault(key, value)

# --- Profiles ---
def profile_selector():
    """Pick an existing profile or create a new one."""
    st.title("💰 Nova Finance")
    st.caption("Choose a profile to continue")

    db = get_db()
    for profile in ledger.list_profiles(db):
        col1, col2 = st.columns([4, 1])
        col1.markdown(f"**{profile.display_name}** · {profile.currency.value}")
        if col2.button("Open", key=f"open_{profile.uid}"):
            st.session_state["profile_uid"] = profile.uid
            st.session_state["view"] = "home"
            st.rerun()

    st.divider()
    with st.form("new_profile"):
        name = st.text_input("Name", placeholder="e.g. Personal")
        currency = st.selectbox(
            "Currency",
            [c.value for c in CurrencyCode],
            format_func=lambda code: f"{CURRENCIES[CurrencyCode(code)]['symbol']} {CURRENCIES[CurrencyCode(code)]['name']}",
        )
        if st.form_submit_button("Create profile") and name.strip():
            profile = ledger.create_profile(db, name.strip(), CurrencyCode(currency))
            st.session_state["profile_uid"] = profile.uid
            st.rerun()

def switch_profile():
    st.session_state["profile_uid"] = None
    st.session_state["view"] = "home"
    st.session_state["editing_id"] = None
    st.session_state["dismissed_bill"] = None

# --- Views ---
def home_view(profile, transactions):
    symbol = currency_symbol(profile.currency)

    filter_value = st.radio(
        "Range",
        [f.value for f in FilterRange],
        index=[f.value for f in FilterRange].index(st.session_state["filter"]),
        horizontal=True,
        format_func=str.upper,
    )
    st.session_state["filter"] = filter_value
    query = st.text_input("Search", placeholder="Search transactions...", label_visibility="collapsed")

    view = build_dashboard(transactions, FilterRange(filter_value), query)
    stats = view.stats

    st.metric("Total Balance", f"{symbol}{stats.balance:,.2f}")
    col1, col2 = st.columns(2)
    col1.metric("Income", f"+{symbol}{stats.income:,.0f}")
    col2.metric("Expense", f"-{symbol}{stats.expense:,.0f}")

    # Upcoming bill banner; dismissal only lasts for this session
    prediction = analyze_recurring_bills(transactions)
    if prediction is not None:
        bill_key = f"{prediction.description}|{prediction.predicted_date}"
        if st.session_state["dismissed_bill"] != bill_key:
            banner, close = st.columns([6, 1])
            banner.warning(f"**Upcoming Bill** · {format_bill_alert(prediction, symbol)}")
            if close.button("✕", key="dismiss_bill"):
                st.session_state["dismissed_bill"] = bill_key
                st.rerun()

    if view.breakdown:
        st.plotly_chart(cat_spend(view.breakdown), use_container_width=True)
    st.plotly_chart(income_vs_expense_monthly(view.monthly), use_container_width=True)

    st.subheader("Recent Activity")
    if not transactions:
        st.info("No transactions yet. Add your first one.")
    elif not view.transactions:
        st.info("No transactions match this range or search.")

    for t in view.transactions:
        sign = "+" if t.type == TransactionType.INCOME else "-"
        col1, col2, col3, col4 = st.columns([5, 2, 1, 1])
        col1.markdown(f"**{t.description}**  \n{t.category} · {t.account_name} · {t.date.isoformat()}")
        col2.markdown(f"{sign}{symbol}{t.amount:,.2f}")
        if col3.button("✏️", key=f"edit_{t.id}"):
            st.session_state["editing_id"] = t.id
            st.session_state["view"] = "add"
            st.rerun()
        if col4.button("🗑️", key=f"delete_{t.id}"):
            ledger.delete_transaction(get_db(), profile.uid, t.id)
            st.rerun()

def transaction_form(profile, transactions):
    editing_id = st.session_state.get("editing_id")
    editing = next((t for t in transactions if t.id == editing_id), None)
    st.header("Edit Transaction" if editing else "Add Transaction")

    types = [t.value for t in TransactionType]
    with st.form("transaction_form"):
        amount = st.number_input(
            f"Amount ({currency_symbol(profile.currency)})",
            min_value=0.0,
            step=0.01,
            value=float(editing.amount) if editing else 0.0,
        )
        tx_type = st.radio(
            "Type",
            types,
            index=types.index(editing.type.value) if editing else types.index(TransactionType.EXPENSE.value),
            horizontal=True,
            format_func=str.title,
        )
        description = st.text_input(
            "Description",
            value=editing.description if editing else "",
            placeholder="Description (e.g. Netflix, Rent)",
        )
        category = st.selectbox(
            "Category",
            CATEGORIES,
            index=CATEGORIES.index(editing.category) if editing and editing.category in CATEGORIES else 0,
        )
        account = st.selectbox(
            "Account",
            ACCOUNTS,
            index=ACCOUNTS.index(editing.account_name) if editing and editing.account_name in ACCOUNTS else 0,
        )
        save, cancel = st.columns(2)
        submitted = save.form_submit_button("Save", type="primary")
        cancelled = cancel.form_submit_button("Cancel")

    if cancelled:
        st.session_state["editing_id"] = None
        st.session_state["view"] = "home"
        st.rerun()

    if submitted:
        try:
            draft = TransactionDraft(
                amount=amount,
                description=description,
                category=category,
                type=TransactionType(tx_type),
                account_name=account,
            )
        except ValidationError:
            st.error("Enter an amount and a description.")
            return

        db = get_db()
        try:
            if editing:
                ledger.update_transaction(db, profile.uid, editing.id, draft)
            else:
                ledger.add_transaction(db, profile.uid, draft)
        except NovaFinanceError as e:
            logger.error("Saving transaction failed: %s", e)
            st.error(f"Could not save transaction: {e}")
            return

        st.session_state["editing_id"] = None
        st.session_state["view"] = "home"
        st.rerun()

def settings_view(profile, transactions):
    st.header("Settings")
    st.caption(f"Signed in as **{profile.display_name}**")

    st.subheader("Preferences")
    codes = [c.value for c in CurrencyCode]
    currency = st.selectbox(
        "Currency",
        codes,
        index=codes.index(profile.currency.value),
        format_func=lambda code: f"{CURRENCIES[CurrencyCode(code)]['symbol']} {CURRENCIES[CurrencyCode(code)]['name']}",
    )
    if currency != profile.currency.value:
        ledger.update_profile(get_db(), profile.uid, currency=currency)
        st.rerun()

    st.subheader("Data")
    balance = build_dashboard(transactions, FilterRange(st.session_state["filter"])).stats.balance
    today = date.today()
    report = generate_csv(transactions, balance, today)
    st.download_button(
        "Export CSV Report",
        data=report,
        file_name=report_filename(today),
        mime="text/csv",
        use_container_width=True,
    )
    if st.button("Save report to storage", use_container_width=True):
        try:
            location = save_file(f"{profile.uid}_{report_filename(today)}", report)
            st.success(f"Report saved to {location}")
        except NovaFinanceError as e:
            st.error(str(e))

    if st.button("Switch Profile", type="primary", use_container_width=True):
        switch_profile()
        st.rerun()
    st.caption("Version 1.2.0 (Multi-Profile)")

# --- Main ---
def main():
    _init_state()

    uid = st.session_state.get("profile_uid")
    if not uid:
        profile_selector()
        return

    db = get_db()
    try:
        profile = ledger.get_profile(db, uid)
    except ProfileNotFoundError:
        switch_profile()
        st.rerun()
        return

    # Always recompute from a fresh load so views never see a half-applied edit
    transactions = ledger.load_transactions(db, uid)

    st.caption("Welcome,")
    st.subheader(profile.display_name)

    nav = {"home": "🏠 Home", "add": "➕ Add", "settings": "⚙️ Settings"}
    choice = st.sidebar.radio(
        "Navigate",
        list(nav),
        index=list(nav).index(st.session_state["view"]),
        format_func=nav.get,
    )
    if choice != st.session_state["view"]:
        st.session_state["view"] = choice
        if choice != "add":
            st.session_state["editing_id"] = None

    if choice == "home":
        home_view(profile, transactions)
    elif choice == "add":
        transaction_form(profile, transactions)
    else:
        settings_view(profile, transactions)

main()
