from models import db
from models.offered_service import OfferedService
from models.slot import TimeSlot, TimeSlotStatus


def find_time_slot_by_id(slot_id, for_update=False):
    if slot_id is None:
        return None
    if for_update:
        return TimeSlot.query.filter_by(id=slot_id).with_for_update().first()
    return db.session.get(TimeSlot, slot_id)


def find_time_slot_by_public_id(public_id, for_update=False):
    q = TimeSlot.query.filter_by(public_id=public_id)
    if for_update:
        q = q.with_for_update()
    return q.first()


def find_overlapping_slots_for_provider(provider_id, start_time, end_time, exclude_slot_id=None):
    """Non-cancelled slots of any service owned by ``provider_id`` sharing an instant with [start, end)."""
    q = (
        TimeSlot.query
        .join(OfferedService, TimeSlot.service_id == OfferedService.id)
        .filter(
            OfferedService.owner_id == provider_id,
            TimeSlot.status != TimeSlotStatus.CANCELLED,
            TimeSlot.start_time < end_time,
            TimeSlot.end_time > start_time,
        )
    )
    if exclude_slot_id is not None:
        q = q.filter(TimeSlot.id != exclude_slot_id)
    return q.order_by(TimeSlot.start_time.asc()).all()


def has_future_time_slots(service_id, now) -> bool:
    q = TimeSlot.query.filter(
        TimeSlot.service_id == service_id,
        TimeSlot.start_time > now,
    )
    return db.session.query(q.exists()).scalar()


def find_slots_for_service(service_id, start=None, end=None, statuses=None, limit=200):
    q = TimeSlot.query.filter(TimeSlot.service_id == service_id)
    if start is not None:
        q = q.filter(TimeSlot.start_time >= start)
    if end is not None:
        q = q.filter(TimeSlot.start_time < end)
    if statuses:
        q = q.filter(TimeSlot.status.in_(statuses))
    return q.order_by(TimeSlot.start_time.asc()).limit(limit).all()


def save_time_slot(slot):
    db.session.add(slot)
    db.session.flush()
    return slot
