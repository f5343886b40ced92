# =============================================================================
# File: profilesync/api/models/profile_sync_api_models.py
# Description: Profile sync API models (Pydantic v2)
# =============================================================================

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Request Models
# =============================================================================

class SectionUpdateRequest(BaseModel):
    """Request to change one section of a subject's profile"""
    value: Any = Field(..., description="New section value; mapping sections accept a partial object")
    actor_id: str = Field(..., min_length=1, max_length=255, description="Who made the change")


# =============================================================================
# Response Models
# =============================================================================

class UpdateResultResponse(BaseModel):
    """Returned as soon as the authoritative record is written"""
    operation_id: str
    updated_value: Any
    rollback_available: bool = True


class RollbackResponse(BaseModel):
    operation_id: str
    rolled_back: bool
    message: str


class SystemSyncResponse(BaseModel):
    system: str
    status: str
    updated_at: Optional[datetime] = None
    error: Optional[str] = None


class SyncAttemptResponse(BaseModel):
    attempt: int
    retry_count: int
    error: str
    failed_system: Optional[str] = None
    occurred_at: datetime


class NotificationRecordResponse(BaseModel):
    recipient_id: str
    channel: str
    status: str
    sent_at: datetime
    error: Optional[str] = None


class AuditEntryResponse(BaseModel):
    """One audit trail entry (update or rollback)"""
    model_config = ConfigDict(from_attributes=True)

    entry_id: str
    operation_id: str
    subject_id: str
    section: str
    actor_id: str
    change_type: str
    is_rollback: bool
    previous_value: Any = None
    new_value: Any = None
    impact_level: str
    sync_status: str
    sync_attempts: int = 0
    sync_errors: List[SyncAttemptResponse] = Field(default_factory=list)
    affected_systems: List[SystemSyncResponse] = Field(default_factory=list)
    notification_status: str
    notifications: List[NotificationRecordResponse] = Field(default_factory=list)
    failure_reason: Optional[str] = None
    timestamp: datetime
    completed_at: Optional[datetime] = None


class OperationResponse(BaseModel):
    """Current state of an operation, live or from the audit trail"""
    operation_id: str
    subject_id: str
    section: str
    status: str
    actor_id: str
    retry_count: int = 0
    max_retries: Optional[int] = None
    last_error: Optional[str] = None
    impact_level: Optional[str] = None
    systems: List[SystemSyncResponse] = Field(default_factory=list)
    rollback_available: bool = False
    completed_at: Optional[datetime] = None


class SyncStatsResponse(BaseModel):
    queued_operations: int
    rollback_cache_size: int
    in_flight_subjects: int
    active_operations: int
    critical_sections: List[str]
    operations_by_status: Dict[str, int]
    worker_running: bool
    timestamp: datetime
