# =============================================================================
# File: profilesync/profile_sync/classifier.py
# Description: Static change classification policy (section -> impact level
#              and affected downstream systems). Pure, no I/O.
# =============================================================================

from __future__ import annotations

from types import MappingProxyType
from typing import FrozenSet, Mapping, Union

from profilesync.profile_sync.enums import DownstreamSystem, ImpactLevel, Section
from profilesync.profile_sync.exceptions import SectionValidationError
from profilesync.profile_sync.value_objects import ChangeClassification

_S = DownstreamSystem


def _entry(section: Section, impact: ImpactLevel, *systems: DownstreamSystem) -> ChangeClassification:
    return ChangeClassification(section=section, impact_level=impact, affected_systems=tuple(systems))


# Single point of change for new sections or new downstream systems.
# Systems are listed in the order the worker propagates to them.
CLASSIFICATION_TABLE: Mapping[Section, ChangeClassification] = MappingProxyType({
    # Matching, discovery and scheduling
    Section.CREDENTIALS: _entry(Section.CREDENTIALS, ImpactLevel.CRITICAL, _S.SEARCH, _S.BOOKING),
    Section.SPECIALIZATIONS: _entry(Section.SPECIALIZATIONS, ImpactLevel.CRITICAL, _S.SEARCH, _S.BOOKING),
    Section.SERVICE_OFFERING: _entry(Section.SERVICE_OFFERING, ImpactLevel.CRITICAL, _S.BOOKING, _S.SEARCH, _S.CACHE),
    Section.AVAILABILITY: _entry(Section.AVAILABILITY, ImpactLevel.CRITICAL, _S.BOOKING, _S.CACHE),
    Section.STATUS: _entry(Section.STATUS, ImpactLevel.CRITICAL, _S.SEARCH, _S.BOOKING, _S.CACHE, _S.EXTERNAL),

    Section.QUALIFICATIONS: _entry(Section.QUALIFICATIONS, ImpactLevel.HIGH, _S.SEARCH),

    Section.EXPERIENCE: _entry(Section.EXPERIENCE, ImpactLevel.MEDIUM, _S.SEARCH),
    Section.BOOKING_SETTINGS: _entry(Section.BOOKING_SETTINGS, ImpactLevel.MEDIUM, _S.BOOKING, _S.CACHE),

    Section.PERSONAL_INFO: _entry(Section.PERSONAL_INFO, ImpactLevel.LOW, _S.SEARCH, _S.CACHE),
    Section.BIO: _entry(Section.BIO, ImpactLevel.LOW, _S.SEARCH),
    Section.LANGUAGES: _entry(Section.LANGUAGES, ImpactLevel.LOW, _S.SEARCH),
    Section.NOTIFICATION_PREFERENCES: _entry(Section.NOTIFICATION_PREFERENCES, ImpactLevel.LOW, _S.CACHE),
})

_missing = set(Section) - set(CLASSIFICATION_TABLE)
if _missing:
    raise RuntimeError(f"Classification table is missing sections: {sorted(s.value for s in _missing)}")

CRITICAL_SECTIONS: FrozenSet[Section] = frozenset(
    s for s, c in CLASSIFICATION_TABLE.items() if c.impact_level is ImpactLevel.CRITICAL
)


def resolve_section(section: Union[Section, str]) -> Section:
    """Map a wire name onto a Section, rejecting anything outside the table."""
    if isinstance(section, Section):
        return section
    try:
        return Section(section)
    except ValueError:
        raise SectionValidationError(section) from None


def classify(section: Union[Section, str]) -> ChangeClassification:
    """Impact level and affected systems for a section."""
    return CLASSIFICATION_TABLE[resolve_section(section)]


def is_critical_change(section: Union[Section, str]) -> bool:
    return resolve_section(section) in CRITICAL_SECTIONS
