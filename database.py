import os
from sqlalchemy import create_engine, Column, String, Float, Date, BigInteger, ForeignKey
from sqlalchemy.orm import sessionmaker, declarative_base, relationship
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Database Setup
# Default to local SQLite, but allow override for a hosted Postgres
DB_URL = os.getenv("DATABASE_URL", "sqlite:///nova_finance.db")

engine = create_engine(DB_URL, connect_args={"check_same_thread": False} if "sqlite" in DB_URL else {})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# --- Models ---

class Profile(Base):
    __tablename__ = "profiles"

    uid = Column(String, primary_key=True, index=True)  # 'user_<epoch ms>'
    display_name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    photo_url = Column(String, nullable=True)
    currency = Column(String, default="USD")

    transactions = relationship("TransactionRecord", back_populates="profile", cascade="all, delete-orphan")

class TransactionRecord(Base):
    __tablename__ = "transactions"

    id = Column(String, primary_key=True, index=True)  # 'tx_<base36 time><random>'
    profile_uid = Column(String, ForeignKey("profiles.uid"), index=True, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    category = Column(String, nullable=False)
    type = Column(String, nullable=False)  # 'income' or 'expense'
    account_name = Column(String, default="Personal")  # 'Personal' or 'Business'

    # Audit only, epoch milliseconds
    created_at = Column(BigInteger, default=0)

    profile = relationship("Profile", back_populates="transactions")

# --- Init DB ---
def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
