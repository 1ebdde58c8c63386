"""
Overlap checkers.

Time slots clash across a provider's whole calendar (every service they
own). Reservations clash per service, since in that flow a service is a
single exclusive resource. Cancelled rows never clash.

Callers hold a row lock on the provider (slots) or the service
(reservations) across the query and the insert.
"""
from repositories import reservations as reservation_repo
from repositories import slots as slot_repo
from services.errors import ReservationClashError, TimeSlotClashError


class TimeSlotOverlapChecker:

    def find_overlapping(self, provider_id, start_time, end_time, exclude_slot_id=None):
        return slot_repo.find_overlapping_slots_for_provider(
            provider_id, start_time, end_time, exclude_slot_id=exclude_slot_id
        )

    def ensure_no_clash(self, provider_id, start_time, end_time, exclude_slot_id=None):
        clashes = self.find_overlapping(provider_id, start_time, end_time, exclude_slot_id)
        if clashes:
            raise TimeSlotClashError(
                "The proposed time slot clashes with an existing one for this provider "
                f"({clashes[0].start_time.isoformat()} - {clashes[0].end_time.isoformat()})."
            )


class ReservationOverlapChecker:

    def find_overlapping(self, service_id, start_time, end_time, exclude_reservation_id=None):
        return reservation_repo.find_overlapping_reservations(
            service_id, start_time, end_time, exclude_reservation_id=exclude_reservation_id
        )

    def ensure_no_clash(self, service_id, start_time, end_time, exclude_reservation_id=None):
        if self.find_overlapping(service_id, start_time, end_time, exclude_reservation_id):
            raise ReservationClashError("The selected time window is not available for this service.")


slot_overlap_checker = TimeSlotOverlapChecker()
reservation_overlap_checker = ReservationOverlapChecker()
