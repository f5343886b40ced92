# =============================================================================
# File: profilesync/profile_sync/ports/stakeholder_port.py
# Description: Port interface for resolving stakeholders affected by a subject
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from typing import List, Protocol, runtime_checkable


@runtime_checkable
class StakeholderResolverPort(Protocol):
    """
    Port: Stakeholder Resolver

    Defined by: Profile Sync Domain
    Implemented by: HttpStakeholderResolver (profilesync/infra/collaborators/stakeholder_resolver.py)

    Typical stakeholders: holders of upcoming engagements with the subject,
    recent clients, users who follow the subject.
    """

    async def affected_stakeholders(self, subject_id: str) -> List[str]:
        """Recipient ids currently affected by changes to this subject."""
        ...
