# =============================================================================
# File: profilesync/infra/persistence/memory_profile_store.py
# Description: In-process authoritative store for subject profiles
# =============================================================================

from __future__ import annotations

import copy
import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from profilesync.profile_sync.enums import Section
from profilesync.profile_sync.exceptions import SubjectNotFoundError


class InMemoryProfileStore:
    """
    AuthoritativeStorePort backed by a dict. Values are deep-copied in and
    out so callers never share mutable state with the store.
    """

    def __init__(self, profiles: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._profiles: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        for subject_id, profile in (profiles or {}).items():
            self.create_subject(subject_id, profile)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> InMemoryProfileStore:
        """
        Build a store from a JSON object mapping subject id to profile
        (section name to value). Any other shape raises ValueError.
        """
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict) or not all(isinstance(p, dict) for p in data.values()):
            raise ValueError(f"{path}: expected an object of subject id to profile object")
        return cls(data)

    def subject_ids(self) -> List[str]:
        with self._lock:
            return list(self._profiles)

    def create_subject(self, subject_id: str, profile: Optional[Mapping[str, Any]] = None) -> None:
        with self._lock:
            self._profiles[subject_id] = copy.deepcopy(dict(profile or {}))

    def has_subject(self, subject_id: str) -> bool:
        with self._lock:
            return subject_id in self._profiles

    def get_profile(self, subject_id: str) -> Dict[str, Any]:
        with self._lock:
            if subject_id not in self._profiles:
                raise SubjectNotFoundError(subject_id)
            return copy.deepcopy(self._profiles[subject_id])

    async def read_section(self, subject_id: str, section: Section) -> Any:
        with self._lock:
            profile = self._profiles.get(subject_id)
            if profile is None:
                raise SubjectNotFoundError(subject_id)
            return copy.deepcopy(profile.get(section.value))

    async def write_section(self, subject_id: str, section: Section, value: Any) -> None:
        with self._lock:
            profile = self._profiles.get(subject_id)
            if profile is None:
                raise SubjectNotFoundError(subject_id)
            profile[section.value] = copy.deepcopy(value)
