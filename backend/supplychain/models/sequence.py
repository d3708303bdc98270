"""Per-day document number counters."""

from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from supplychain.db.base import Base


class SequenceCounter(Base):
    """Last number issued for a prefix on a given day (or for all time)."""

    __tablename__ = "sequence_counters"

    # e.g. "SRN-20260314" or "SQ"
    key: Mapped[str] = mapped_column(String(40), primary_key=True)
    current_value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
