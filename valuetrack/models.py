# valuetrack/models.py
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, ForeignKey, Numeric, UniqueConstraint, Boolean, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# Values are capped at 999,999,999.99 by input validation
MONEY = Numeric(12, 2)
# Portfolio totals can exceed a single account's cap
TOTAL_MONEY = Numeric(18, 2)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class Account(Base):
    """
    A named money-holding entity (bank account, ISA, pension pot, ...).

    Inactive (closed) accounts keep their history but are excluded from
    portfolio totals. Name uniqueness is case-insensitive and enforced by
    input validation rather than a database constraint.
    """
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, default=None)

    updates: Mapped[list["AccountUpdate"]] = relationship(
        back_populates="account",
        order_by="AccountUpdate.date",
        cascade="all, delete-orphan",
    )
    snapshots: Mapped[list["AccountSnapshot"]] = relationship(
        back_populates="account",
        order_by="AccountSnapshot.date",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, name={self.name!r}, active={self.is_active})>"


class AccountUpdate(Base):
    """
    One recorded value for an account at a point in time.

    Never modified after creation. Several updates may share a calendar day.
    """
    __tablename__ = "account_updates"
    __table_args__ = (
        Index("ix_account_updates_account_date", "account_id", "date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    value: Mapped[Decimal] = mapped_column(MONEY)
    date: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    account: Mapped["Account"] = relationship(back_populates="updates")

    def __repr__(self) -> str:
        return f"<AccountUpdate(id={self.id}, account_id={self.account_id}, value={self.value}, date={self.date})>"


class AccountSnapshot(Base):
    """Forward-filled value of one account on one calendar day."""
    __tablename__ = "account_snapshots"
    __table_args__ = (
        UniqueConstraint("account_id", "date", name="uq_account_snapshot_day"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False, index=True)
    date: Mapped[date] = mapped_column(Date)
    value: Mapped[Decimal] = mapped_column(MONEY)

    account: Mapped["Account"] = relationship(back_populates="snapshots")


class PortfolioSnapshot(Base):
    """Total value of all active accounts on one calendar day."""
    __tablename__ = "portfolio_snapshots"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    date: Mapped[date] = mapped_column(Date, unique=True, index=True)
    total_value: Mapped[Decimal] = mapped_column(TOTAL_MONEY)
