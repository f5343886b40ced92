# =============================================================================
# File: profilesync/infra/sync_adapters/search_index_adapter.py
# Description: Rebuilds the subject's search document and upserts it
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, List

from profilesync.profile_sync.enums import DownstreamSystem, Section
from profilesync.profile_sync.notification_templates import available_modes, display_name
from profilesync.profile_sync.ports.authoritative_store_port import AuthoritativeStorePort
from profilesync.profile_sync.ports.search_index_client_port import SearchIndexClientPort
from profilesync.utils.content_hash import content_hash

log = logging.getLogger("profilesync.sync_adapters.search")

# Sections that contribute to the search document
SEARCH_SECTIONS = (
    Section.PERSONAL_INFO,
    Section.SPECIALIZATIONS,
    Section.QUALIFICATIONS,
    Section.EXPERIENCE,
    Section.SERVICE_OFFERING,
    Section.AVAILABILITY,
    Section.BIO,
    Section.LANGUAGES,
    Section.STATUS,
    Section.CREDENTIALS,
)


def _available_days(availability: Any) -> List[str]:
    if not isinstance(availability, dict):
        return []
    return [
        day for day, slot in availability.items()
        if isinstance(slot, dict) and slot.get("available", slot.get("is_available"))
    ]


def build_search_document(subject_id: str, profile: Dict[Section, Any]) -> Dict[str, Any]:
    """Flatten the searchable parts of a profile into one document."""
    credentials = profile.get(Section.CREDENTIALS)
    experience = profile.get(Section.EXPERIENCE)
    return {
        "subject_id": subject_id,
        "name": display_name(profile.get(Section.PERSONAL_INFO)),
        "specializations": profile.get(Section.SPECIALIZATIONS) or [],
        "qualifications": profile.get(Section.QUALIFICATIONS) or [],
        "years_of_experience": experience.get("years") if isinstance(experience, dict) else None,
        "bio": profile.get(Section.BIO) or "",
        "languages": profile.get(Section.LANGUAGES) or [],
        "consultation_modes": available_modes(profile.get(Section.SERVICE_OFFERING)),
        "available_days": _available_days(profile.get(Section.AVAILABILITY)),
        "verified": bool(credentials.get("verified")) if isinstance(credentials, dict) else False,
        "status": profile.get(Section.STATUS),
    }


class SearchIndexSyncAdapter:
    """
    Search consumer. Reads the other searchable sections from the
    authoritative store, overlays the propagated value and upserts the
    result. An unchanged document is not re-sent.
    """

    system = DownstreamSystem.SEARCH

    def __init__(self, store: AuthoritativeStorePort, client: SearchIndexClientPort):
        self._store = store
        self._client = client
        self._last_hash: Dict[str, str] = {}

    async def apply(self, subject_id: str, section: Section, value: Any) -> None:
        profile: Dict[Section, Any] = {}
        for s in SEARCH_SECTIONS:
            profile[s] = value if s is section else await self._store.read_section(subject_id, s)

        document = build_search_document(subject_id, profile)
        digest = content_hash(document)
        if self._last_hash.get(subject_id) == digest:
            log.debug(f"Search document for {subject_id} unchanged, skipping upsert")
            return

        await self._client.upsert(subject_id, document)
        self._last_hash[subject_id] = digest
        log.debug(f"Search document for {subject_id} upserted after {section.value} change")
