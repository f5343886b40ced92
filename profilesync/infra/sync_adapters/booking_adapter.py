# =============================================================================
# File: profilesync/infra/sync_adapters/booking_adapter.py
# Description: Pushes schedule, consultation and status changes to the
#              booking system
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from profilesync.profile_sync.enums import DownstreamSystem, Section, SubjectStatus
from profilesync.profile_sync.notification_templates import available_modes
from profilesync.profile_sync.ports.booking_client_port import BookingSystemClientPort
from profilesync.utils.content_hash import content_hash

log = logging.getLogger("profilesync.sync_adapters.booking")


class BookingSyncAdapter:
    """Booking consumer; one client call per section, skipped if the value was already applied"""

    system = DownstreamSystem.BOOKING

    def __init__(self, client: BookingSystemClientPort):
        self._client = client
        self._applied: Dict[Tuple[str, Section], str] = {}

    async def apply(self, subject_id: str, section: Section, value: Any) -> None:
        key = (subject_id, section)
        digest = content_hash(value)
        if self._applied.get(key) == digest:
            log.debug(f"Booking already has {section.value} for {subject_id}, skipping")
            return

        await self._dispatch(subject_id, section, value)
        self._applied[key] = digest

    async def _dispatch(self, subject_id: str, section: Section, value: Any) -> None:
        if section is Section.AVAILABILITY:
            await self._client.update_availability(subject_id, value)
        elif section is Section.SERVICE_OFFERING:
            await self._client.update_consultation_options(subject_id, available_modes(value), value)
        elif section is Section.BOOKING_SETTINGS:
            await self._client.update_booking_configuration(subject_id, value)
        elif section is Section.STATUS:
            try:
                accepting = not SubjectStatus(value).is_unavailable
            except ValueError:
                accepting = True
            if not accepting:
                log.info(f"Provider {subject_id} is {value}; booking system stops new bookings")
            await self._client.update_provider_status(subject_id, value, accepting)
        else:
            await self._client.update_provider_details(subject_id, section.value, value)
