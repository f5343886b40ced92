# =============================================================================
# File: profilesync/profile_sync/ports/authoritative_store_port.py
# Description: Port interface for the authoritative subject record
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from profilesync.profile_sync.enums import Section


@runtime_checkable
class AuthoritativeStorePort(Protocol):
    """
    Port: Authoritative Store

    Defined by: Profile Sync Domain
    Implemented by: InMemoryProfileStore (profilesync/infra/persistence/memory_profile_store.py)
                    or the host application's document store

    Exactly one authoritative copy of each subject exists. Writes are
    last-writer-wins per section; the engine serializes its own writes
    per subject.
    """

    async def read_section(self, subject_id: str, section: Section) -> Any:
        """
        Read the current value of a section.

        Raises:
            SubjectNotFoundError: if the subject does not exist
        """
        ...

    async def write_section(self, subject_id: str, section: Section, value: Any) -> None:
        """
        Replace the stored value of a section.

        Raises:
            Exception: any failure means the write did not happen
        """
        ...
