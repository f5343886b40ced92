# =============================================================================
# File: tests/fakes/fake_downstream_clients.py
# Description: Fake search index, booking system and Redis clients used to
#              test the concrete sync adapters
# Pattern: Ports & Adapters - Fake/Stub adapter
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List

from tests.fakes.call_recorder import CallRecorder


class FakeSearchIndexClient(CallRecorder):
    """SearchIndexClientPort keeping the last document per id"""

    def __init__(self):
        super().__init__()
        self.documents: Dict[str, Dict[str, Any]] = {}

    async def upsert(self, document_id: str, document: Dict[str, Any]) -> None:
        self._record_call("upsert", document_id, document)
        await self._before("upsert")
        self.documents[document_id] = document


class FakeBookingSystemClient(CallRecorder):
    """BookingSystemClientPort recording each call"""

    async def update_availability(self, subject_id: str, availability: Any) -> None:
        self._record_call("update_availability", subject_id, availability)
        await self._before("update_availability")

    async def update_consultation_options(self, subject_id: str, available_modes: List[str], offering: Any) -> None:
        self._record_call("update_consultation_options", subject_id, available_modes, offering)
        await self._before("update_consultation_options")

    async def update_booking_configuration(self, subject_id: str, settings: Any) -> None:
        self._record_call("update_booking_configuration", subject_id, settings)
        await self._before("update_booking_configuration")

    async def update_provider_status(self, subject_id: str, status: str, accepting_bookings: bool) -> None:
        self._record_call("update_provider_status", subject_id, status, accepting_bookings)
        await self._before("update_provider_status")

    async def update_provider_details(self, subject_id: str, section: str, value: Any) -> None:
        self._record_call("update_provider_details", subject_id, section, value)
        await self._before("update_provider_details")


class FakeRedis(CallRecorder):
    """The slice of redis.asyncio.Redis the cache adapter uses"""

    def __init__(self):
        super().__init__()
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.ttls: Dict[str, int] = {}

    async def hset(self, name: str, key: str = None, value: str = None, mapping: Dict[str, str] = None) -> int:
        self._record_call("hset", name, key=key, value=value, mapping=mapping)
        await self._before("hset")
        fields = dict(mapping or {})
        if key is not None:
            fields[key] = value
        target = self.hashes.setdefault(name, {})
        added = sum(1 for k in fields if k not in target)
        target.update(fields)
        return added

    async def expire(self, name: str, time: int) -> bool:
        self._record_call("expire", name, time)
        await self._before("expire")
        self.ttls[name] = time
        return name in self.hashes

    async def hgetall(self, name: str) -> Dict[str, str]:
        self._record_call("hgetall", name)
        return dict(self.hashes.get(name, {}))
