# tutor_scheduling/models/time_slot.py
"""
Time slot model.

A slot is one bookable window a provider has published for a calendar date.
Slots are never edited in place: changing the times means deleting the slot
and creating a new one. The ``occupied`` flag is the only mutable column and
it is written exclusively by the booking service.
"""

from datetime import datetime
import logging

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, Index, String, Time
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class TimeSlot(Base):
    """Open (or occupied) window on a provider's calendar."""

    __tablename__ = "time_slots"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    provider_id = Column(String(64), nullable=False)
    slot_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    occupied = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_time_slots_time_order"),
        Index("ix_time_slots_provider_date", "provider_id", "slot_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<TimeSlot {self.id}: provider={self.provider_id}, date={self.slot_date}, "
            f"time={self.start_time}-{self.end_time}, occupied={self.occupied}>"
        )
