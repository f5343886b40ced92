# =============================================================================
# File: profilesync/infra/collaborators/booking_client.py
# Description: Booking / scheduling service client
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List

from profilesync.infra.collaborators.base_http_client import BaseHttpCollaborator


class HttpBookingSystemClient(BaseHttpCollaborator):
    """BookingSystemClientPort; every call is a PUT under /providers/{subject_id}"""

    async def _put(self, subject_id: str, path: str, body: Dict[str, Any]) -> None:
        client = await self._get_client()
        url = f"{self._config.booking_service_url.rstrip('/')}/providers/{subject_id}/{path}"
        response = await client.put(url, json=body)
        response.raise_for_status()

    async def update_availability(self, subject_id: str, availability: Dict[str, Any]) -> None:
        await self._put(subject_id, "availability", {"availability": availability})

    async def update_consultation_options(self, subject_id: str, available_modes: List[str],
                                          offering: Dict[str, Any]) -> None:
        await self._put(subject_id, "consultation-options",
                        {"available_modes": available_modes, "offering": offering})

    async def update_booking_configuration(self, subject_id: str, settings: Dict[str, Any]) -> None:
        await self._put(subject_id, "booking-configuration", {"settings": settings})

    async def update_provider_status(self, subject_id: str, status: str, accepting_bookings: bool) -> None:
        await self._put(subject_id, "status", {"status": status, "accepting_bookings": accepting_bookings})

    async def update_provider_details(self, subject_id: str, section: str, value: Any) -> None:
        await self._put(subject_id, f"details/{section}", {"value": value})
