"""Booking model consumed by availability lookups and pricing history."""
from __future__ import annotations

import datetime
import enum
from decimal import Decimal

from sqlalchemy import Date, Enum, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from sliding_pricing.db.base import Base
from sliding_pricing.models.mixins import TimestampMixin


class BookingStatus(str, enum.Enum):
    """Lifecycle states for bookings."""

    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    MISSED = "missed"


class Booking(TimestampMixin, Base):
    """A booked service slot."""

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    service_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    staff_id: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    booking_date: Mapped[datetime.date] = mapped_column(
        Date, index=True, nullable=False
    )
    booking_time: Mapped[str] = mapped_column(String(5), nullable=False)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, values_callable=lambda cls: [m.value for m in cls]),
        default=BookingStatus.PENDING,
        nullable=False,
    )
