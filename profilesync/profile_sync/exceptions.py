# =============================================================================
# File: profilesync/profile_sync/exceptions.py
# Description: Profile sync domain exceptions
# =============================================================================

from typing import Any, Optional

from profilesync.common.exceptions.exceptions import (
    DomainError,
    ResourceNotFoundError,
    ValidationError,
)


class ProfileSyncError(DomainError):
    """Base exception for the profile sync domain"""
    pass


class SectionValidationError(ValidationError):
    """Section name is not part of the classification table"""
    def __init__(self, section: Any):
        super().__init__(f"Invalid profile section: {section}")
        self.section = section


class SectionShapeError(ValidationError):
    """Value does not have the structural shape its section expects"""
    def __init__(self, section: str, expected: str, actual: Any):
        super().__init__(
            f"Section '{section}' expects {expected}, got {type(actual).__name__}"
        )
        self.section = section
        self.expected = expected


class SubjectNotFoundError(ResourceNotFoundError):
    """Subject does not exist in the authoritative store"""
    def __init__(self, subject_id: str):
        super().__init__(f"Subject not found: {subject_id}")
        self.subject_id = subject_id


class ApplyError(ProfileSyncError):
    """Authoritative write failed; the update was aborted before queueing"""
    def __init__(
        self,
        subject_id: str,
        section: str,
        reason: str,
        operation_id: Optional[str] = None,
    ):
        super().__init__(
            f"Profile update failed for subject {subject_id}, section {section}: {reason}"
        )
        self.subject_id = subject_id
        self.section = section
        self.reason = reason
        self.operation_id = operation_id


class PropagationError(ProfileSyncError):
    """A downstream adapter failed or timed out; retryable"""
    def __init__(self, operation_id: str, system: str, reason: str):
        super().__init__(f"Propagation to {system} failed for {operation_id}: {reason}")
        self.operation_id = operation_id
        self.system = system
        self.reason = reason


class ExhaustedRetriesError(ProfileSyncError):
    """Propagation gave up after max retries; surfaced only via audit and stats"""
    def __init__(self, operation_id: str, retry_count: int, last_error: Optional[str]):
        super().__init__(
            f"Max retries exceeded for sync operation {operation_id} "
            f"after {retry_count} attempts: {last_error}"
        )
        self.operation_id = operation_id
        self.retry_count = retry_count
        self.last_error = last_error


class RollbackError(ProfileSyncError):
    """
    Compensating write failed after a snapshot was found.

    The authoritative record is now inconsistent with what the caller
    believes was undone. Never absorbed.
    """
    def __init__(self, operation_id: str, subject_id: str, section: str, reason: str):
        super().__init__(
            f"Rollback failed for operation {operation_id} "
            f"(subject {subject_id}, section {section}): {reason}"
        )
        self.operation_id = operation_id
        self.subject_id = subject_id
        self.section = section
        self.reason = reason
