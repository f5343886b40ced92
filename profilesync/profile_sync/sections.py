# =============================================================================
# File: profilesync/profile_sync/sections.py
# Description: One handler per profile section: structural shape check and
#              how a requested value becomes the full stored value
# =============================================================================

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Any, Mapping

from profilesync.profile_sync.enums import Section
from profilesync.profile_sync.exceptions import SectionShapeError


class SectionHandler(ABC):
    """Shape check and write semantics for one section."""

    expected: str = "a value"

    def __init__(self, section: Section):
        self.section = section

    @abstractmethod
    def accepts(self, value: Any) -> bool:
        """Whether value has the structural shape this section stores."""

    def validate(self, value: Any) -> None:
        if not self.accepts(value):
            raise SectionShapeError(self.section.value, self.expected, value)

    def merge(self, previous: Any, value: Any) -> Any:
        """Full value to store, given the pre-image and the requested value."""
        return copy.deepcopy(value)


class MappingSection(SectionHandler):
    """Partial updates: requested keys overwrite, other stored keys survive."""

    expected = "an object"

    def accepts(self, value: Any) -> bool:
        return isinstance(value, Mapping)

    def merge(self, previous: Any, value: Any) -> Any:
        merged = copy.deepcopy(dict(previous)) if isinstance(previous, Mapping) else {}
        merged.update(copy.deepcopy(dict(value)))
        return merged


class ListSection(SectionHandler):
    expected = "a list"

    def accepts(self, value: Any) -> bool:
        return isinstance(value, list)


class TextSection(SectionHandler):
    expected = "a string"

    def accepts(self, value: Any) -> bool:
        return isinstance(value, str)


SECTION_HANDLERS: Mapping[Section, SectionHandler] = {
    Section.PERSONAL_INFO: MappingSection(Section.PERSONAL_INFO),
    Section.CREDENTIALS: MappingSection(Section.CREDENTIALS),
    Section.SPECIALIZATIONS: ListSection(Section.SPECIALIZATIONS),
    Section.QUALIFICATIONS: ListSection(Section.QUALIFICATIONS),
    Section.EXPERIENCE: MappingSection(Section.EXPERIENCE),
    Section.SERVICE_OFFERING: MappingSection(Section.SERVICE_OFFERING),
    Section.AVAILABILITY: MappingSection(Section.AVAILABILITY),
    Section.BOOKING_SETTINGS: MappingSection(Section.BOOKING_SETTINGS),
    Section.BIO: TextSection(Section.BIO),
    Section.LANGUAGES: ListSection(Section.LANGUAGES),
    Section.NOTIFICATION_PREFERENCES: MappingSection(Section.NOTIFICATION_PREFERENCES),
    Section.STATUS: TextSection(Section.STATUS),
}

if set(SECTION_HANDLERS) != set(Section):
    raise RuntimeError("Every section needs exactly one handler")


def get_section_handler(section: Section) -> SectionHandler:
    return SECTION_HANDLERS[section]
