from repositories import bookings as booking_repo


class CapacityTracker:
    """Seat accounting for a slot, always from a fresh COUNT query."""

    def count_active(self, slot_id) -> int:
        return booking_repo.count_bookings_for_slot(slot_id)

    def is_full(self, slot) -> bool:
        return self.count_active(slot.id) >= slot.capacity

    def remaining(self, slot) -> int:
        return max(slot.capacity - self.count_active(slot.id), 0)


capacity_tracker = CapacityTracker()
