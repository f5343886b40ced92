# =============================================================================
# File: profilesync/profile_sync/ports/booking_client_port.py
# Description: Port interface for the booking / scheduling system
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Protocol, runtime_checkable


@runtime_checkable
class BookingSystemClientPort(Protocol):
    """
    Port: Booking System Client

    Defined by: Profile Sync Domain
    Used by: BookingSyncAdapter
    Implemented by: HttpBookingSystemClient (profilesync/infra/collaborators/booking_client.py)

    Every call replaces the booking system's copy of the given data.
    """

    async def update_availability(self, subject_id: str, availability: Dict[str, Any]) -> None:
        ...

    async def update_consultation_options(self, subject_id: str, available_modes: List[str],
                                          offering: Dict[str, Any]) -> None:
        ...

    async def update_booking_configuration(self, subject_id: str, settings: Dict[str, Any]) -> None:
        ...

    async def update_provider_status(self, subject_id: str, status: str, accepting_bookings: bool) -> None:
        """Unavailable statuses stop new bookings for the provider."""
        ...

    async def update_provider_details(self, subject_id: str, section: str, value: Any) -> None:
        """Credentials, specializations and other matching attributes."""
        ...
