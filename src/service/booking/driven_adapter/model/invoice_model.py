from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.db_setting import Base


class InvoiceModel(Base):
    __tablename__ = 'invoice'

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # UUID7
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    show_time_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('show_time.id'), nullable=False, index=True
    )
    txn_ref: Mapped[str] = mapped_column(
        String(64), ForeignKey('payment_transaction.txn_ref'), nullable=False, unique=True
    )
    session_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # [{"seat_id": 1, "code": "A1", "price": 75000}, ...] frozen at creation
    seats: Mapped[list] = mapped_column(JSON, nullable=False)
    total_money: Mapped[int] = mapped_column(Integer, nullable=False)
    booking_code: Mapped[str] = mapped_column(String(16), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default='PENDING', index=True)
    cancel_reason: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    refund_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    finalized_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
