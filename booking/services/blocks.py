# booking/services/blocks.py
#
# Purpose:
# - Create/update/delete BlockedTimeSlot rows for the admin surface.
#
# Rules:
# - start < end (serializer + DB check constraint)
# - a block may not overlap another block in its scope
# - a block may not cover an existing non-cancelled booking in its scope;
#   cancel or move the booking first
#
import logging

from django.db import transaction

from ..exceptions import InvalidBookingOperation
from ..models import BlockedTimeSlot, ScheduleLock
from .availability_engine import AvailabilityEngine

logger = logging.getLogger(__name__)


class BlockedSlotService:
    def __init__(self):
        self.availability = AvailabilityEngine()

    def _check(self, block_date, start_time, end_time, employee, exclude_id=None):
        ScheduleLock.objects.get_or_create(day=block_date)
        ScheduleLock.objects.select_for_update().get(day=block_date)

        employee_id = employee.pk if employee is not None else None
        conflicts = self.availability.block_conflicts(
            block_date, start_time, end_time, employee_id, exclude_block_id=exclude_id
        )
        if conflicts["blocks"]:
            raise InvalidBookingOperation("This time overlaps another blocked time slot.")
        if conflicts["bookings"]:
            raise InvalidBookingOperation("This time overlaps an existing booking.")

    @transaction.atomic
    def create(self, block_date, start_time, end_time, reason="", employee=None) -> BlockedTimeSlot:
        self._check(block_date, start_time, end_time, employee)
        block = BlockedTimeSlot.objects.create(
            block_date=block_date,
            start_time=start_time,
            end_time=end_time,
            reason=reason or "",
            employee=employee,
        )
        logger.info(
            "Blocked slot %s created: %s %s-%s employee=%s",
            block.pk, block_date, start_time, end_time, block.employee_id,
        )
        return block

    @transaction.atomic
    def update(self, block: BlockedTimeSlot, **changes) -> BlockedTimeSlot:
        for name, value in changes.items():
            setattr(block, name, value)
        self._check(block.block_date, block.start_time, block.end_time, block.employee, exclude_id=block.pk)
        block.save()
        logger.info("Blocked slot %s updated", block.pk)
        return block

    def delete(self, block: BlockedTimeSlot) -> None:
        block_id = block.pk
        block.delete()
        logger.info("Blocked slot %s deleted", block_id)
