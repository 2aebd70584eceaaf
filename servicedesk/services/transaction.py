"""
Write-path helpers shared by the ledger, lifecycle and undo services.

Capacity checks and the writes that depend on them run inside one
transaction that holds the (service, day) partition row FOR UPDATE, so two
staff clients racing for the last seat serialize on that row.
"""
import logging
from contextlib import contextmanager
from datetime import date

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from servicedesk.core.errors import StorageError
from servicedesk.models.booking import SlotPartition, ServiceType

logger = logging.getLogger(__name__)


def _insert_ignore(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(SlotPartition).on_conflict_do_nothing()
    if dialect == "sqlite":
        return sqlite.insert(SlotPartition).on_conflict_do_nothing()
    raise NotImplementedError(f"Unsupported database dialect: {dialect}")


def lock_partition(db: Session, service_type: ServiceType, service_date: date) -> None:
    """Take the write lock for one (service, day) capacity partition."""
    key = {"service_type": ServiceType(service_type).value, "service_date": service_date}
    try:
        db.execute(_insert_ignore(db).values(**key))
        db.execute(
            select(SlotPartition)
            .where(
                SlotPartition.service_type == key["service_type"],
                SlotPartition.service_date == service_date,
            )
            .with_for_update()
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Could not lock %s partition for %s", key["service_type"], service_date)
        raise StorageError() from exc


def commit(db: Session) -> None:
    """Commit, or roll the session back and raise StorageError."""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Commit failed; session rolled back")
        raise StorageError() from exc


@contextmanager
def rollback_on_error(db: Session):
    """Roll back whatever the block staged if it raises.

    Database errors come out as StorageError; everything else is re-raised.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database error; session rolled back")
        raise StorageError() from exc
    except Exception:
        db.rollback()
        raise


@contextmanager
def locked_partition(db: Session, service_type: ServiceType, service_date: date):
    """Hold the partition lock for the block; roll back if it raises."""
    with rollback_on_error(db):
        lock_partition(db, service_type, service_date)
        yield
