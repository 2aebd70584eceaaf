"""
Blocking registry: (service, slot, day) tuples withdrawn by staff.

A block only stops new bookings and reschedules into the slot; bookings that
already hold the slot are left alone. Role checks happen in the API layer.
"""
import logging
from datetime import date, datetime
from typing import List, Optional, Set
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from servicedesk.core.errors import UnknownSlotError
from servicedesk.core.service_day import now_utc
from servicedesk.models.blocked_slot import BlockedSlot
from servicedesk.models.booking import ServiceType
from servicedesk.services.transaction import commit
from servicedesk.utils.timeslots import slot_catalog

logger = logging.getLogger(__name__)


def list_blocked_slots(
    db: Session,
    service_type: Optional[ServiceType] = None,
    service_date: Optional[date] = None,
) -> List[BlockedSlot]:
    query = db.query(BlockedSlot)
    if service_type:
        query = query.filter(BlockedSlot.service_type == service_type)
    if service_date:
        query = query.filter(BlockedSlot.service_date == service_date)
    return query.order_by(BlockedSlot.service_date, BlockedSlot.slot_id).all()


def blocked_slot_ids(db: Session, service_type: ServiceType, service_date: date) -> Set[str]:
    rows = (
        db.query(BlockedSlot.slot_id)
        .filter(
            BlockedSlot.service_type == service_type,
            BlockedSlot.service_date == service_date,
        )
        .all()
    )
    return {slot_id for (slot_id,) in rows}


def is_slot_blocked(db: Session, service_type: ServiceType, slot_id: str, service_date: date) -> bool:
    return (
        db.query(BlockedSlot.id)
        .filter(
            BlockedSlot.service_type == service_type,
            BlockedSlot.slot_id == slot_id,
            BlockedSlot.service_date == service_date,
        )
        .first()
        is not None
    )


def block_slot(
    db: Session,
    service_type: ServiceType,
    slot_id: str,
    service_date: date,
    blocked_by: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> BlockedSlot:
    """Block a slot. Blocking an already-blocked slot returns the existing row."""
    if slot_id not in slot_catalog(service_type, service_date):
        raise UnknownSlotError(
            f"{slot_id} is not a {ServiceType(service_type).value} slot on {service_date}.",
        )

    existing = (
        db.query(BlockedSlot)
        .filter(
            BlockedSlot.service_type == service_type,
            BlockedSlot.slot_id == slot_id,
            BlockedSlot.service_date == service_date,
        )
        .first()
    )
    if existing:
        return existing

    row = BlockedSlot(
        service_type=service_type,
        slot_id=slot_id,
        service_date=service_date,
        blocked_by=blocked_by,
        created_at=now or now_utc(),
    )
    db.add(row)
    try:
        db.flush()
    except IntegrityError:
        # Another client blocked it first.
        db.rollback()
        return (
            db.query(BlockedSlot)
            .filter(
                BlockedSlot.service_type == service_type,
                BlockedSlot.slot_id == slot_id,
                BlockedSlot.service_date == service_date,
            )
            .one()
        )
    commit(db)
    db.refresh(row)
    logger.info("Blocked %s slot %s on %s", ServiceType(service_type).value, slot_id, service_date)
    return row


def unblock_slot(db: Session, service_type: ServiceType, slot_id: str, service_date: date) -> bool:
    """Remove a block. Returns False when the slot was not blocked."""
    deleted = (
        db.query(BlockedSlot)
        .filter(
            BlockedSlot.service_type == service_type,
            BlockedSlot.slot_id == slot_id,
            BlockedSlot.service_date == service_date,
        )
        .delete(synchronize_session="fetch")
    )
    commit(db)
    if deleted:
        logger.info("Unblocked %s slot %s on %s", ServiceType(service_type).value, slot_id, service_date)
    return bool(deleted)
