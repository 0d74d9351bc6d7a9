from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.db_setting import Base


class SeatModel(Base):
    __tablename__ = 'seat'
    __table_args__ = (
        UniqueConstraint('show_time_id', 'code', name='uq_seat_show_time_code'),
        Index('ix_seat_status_hold_expires_at', 'status', 'hold_expires_at'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    show_time_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('show_time.id'), nullable=False, index=True
    )
    code: Mapped[str] = mapped_column(String(10), nullable=False)
    seat_type: Mapped[str] = mapped_column(String(20), nullable=False, default='STANDARD')
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default='AVAILABLE')
    hold_session_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    hold_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    invoice_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
