"""SQLAlchemy declarative base and common utilities."""

from datetime import datetime

from sqlalchemy import DateTime, event, func, inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from supplychain.core.errors import ImmutableFieldViolation


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class AppendOnlyMixin:
    """Rows that are written once and never updated or deleted.

    Used for the inventory transaction log, production batches and invoices.
    A flush that would UPDATE or DELETE such a row raises
    ``ImmutableFieldViolation`` before any SQL is emitted.
    """

    pass


def _changed_columns(target) -> list[str]:
    state = inspect(target)
    changed = []
    for attr in state.mapper.column_attrs:
        if state.attrs[attr.key].history.has_changes():
            changed.append(attr.key)
    return changed


@event.listens_for(AppendOnlyMixin, "before_update", propagate=True)
def _reject_update(mapper, connection, target):
    changed = _changed_columns(target)
    if changed:
        raise ImmutableFieldViolation(
            f"{type(target).__name__} is immutable once created",
            entity=type(target).__name__,
            fields=",".join(changed),
        )


@event.listens_for(AppendOnlyMixin, "before_delete", propagate=True)
def _reject_delete(mapper, connection, target):
    raise ImmutableFieldViolation(
        f"{type(target).__name__} cannot be deleted",
        entity=type(target).__name__,
    )
