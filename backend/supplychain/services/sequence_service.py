"""Human-readable document numbers.

Dated documents use ``PREFIX-YYYYMMDD-NNNNNN`` with a counter that restarts
each day; material codes use ``SQ-NNNNNN`` with a single running counter.
The counter row is bumped with a single UPDATE so concurrent callers never
read the same value.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from supplychain.db.unit_of_work import UnitOfWork
from supplychain.models.sequence import SequenceCounter
from supplychain.services.common import utcnow

logger = logging.getLogger(__name__)

SRN_PREFIX = "SRN"
DISPATCH_PREFIX = "DO"
GRN_PREFIX = "GRN"
INVOICE_PREFIX = "INV"
SALE_PREFIX = "SALE"
RETURN_PREFIX = "RET"
MATERIAL_PREFIX = "SQ"


class SequenceService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session

    def _bump(self, key: str) -> bool:
        result = self.db.execute(
            update(SequenceCounter)
            .where(SequenceCounter.key == key)
            .values(current_value=SequenceCounter.current_value + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _increment(self, key: str) -> int:
        with self.uow.transaction():
            if not self._bump(key):
                try:
                    with self.db.begin_nested():
                        self.db.add(SequenceCounter(key=key, current_value=1))
                except IntegrityError:
                    # Another caller created the row first
                    logger.debug(f"Sequence {key} created concurrently, retrying increment")
                    self._bump(key)
            value = self.db.execute(
                select(SequenceCounter.current_value).where(SequenceCounter.key == key)
            ).scalar_one()
            return value

    def next_number(self, prefix: str, on: Optional[date] = None) -> str:
        """Next dated number, e.g. ``SRN-20260314-000001``."""
        day = (on or utcnow().date()).strftime("%Y%m%d")
        value = self._increment(f"{prefix}-{day}")
        return f"{prefix}-{day}-{value:06d}"

    def next_material_code(self) -> str:
        value = self._increment(MATERIAL_PREFIX)
        return f"{MATERIAL_PREFIX}-{value:06d}"
