# =============================================================================
# File: profilesync/infra/collaborators/stakeholder_resolver.py
# Description: Looks up stakeholders affected by a subject change
# =============================================================================

from __future__ import annotations

import logging
from typing import List

from profilesync.config.reliability_config import ReliabilityConfigs
from profilesync.infra.collaborators.base_http_client import BaseHttpCollaborator
from profilesync.infra.reliability.retry import retry_async

log = logging.getLogger("profilesync.collaborators.stakeholders")


class HttpStakeholderResolver(BaseHttpCollaborator):
    """
    StakeholderResolverPort over HTTP.

    GET {stakeholder_service_url}/subjects/{subject_id}/stakeholders
    -> {"stakeholders": ["user-1", ...]} (a bare list is accepted too).
    Clients with upcoming engagements, recent clients and followers are all
    returned by the service; duplicates are removed here, order kept.
    """

    async def affected_stakeholders(self, subject_id: str) -> List[str]:
        url = self._config.stakeholders_url_template.format(subject_id=subject_id)

        async def _fetch():
            client = await self._get_client()
            response = await client.get(url)
            response.raise_for_status()
            return response.json()

        data = await retry_async(
            _fetch,
            retry_config=ReliabilityConfigs.http_collaborator_retry(),
            context=f"stakeholder lookup for {subject_id}",
        )
        raw = data.get("stakeholders", []) if isinstance(data, dict) else data
        recipients = list(dict.fromkeys(str(r) for r in raw or []))
        log.debug(f"{len(recipients)} stakeholders affected by changes to {subject_id}")
        return recipients
