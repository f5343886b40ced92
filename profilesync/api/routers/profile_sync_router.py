# =============================================================================
# File: profilesync/api/routers/profile_sync_router.py
# Description: Profile sync engine HTTP endpoints
# =============================================================================

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from profilesync.api.models.profile_sync_api_models import (
    AuditEntryResponse,
    OperationResponse,
    RollbackResponse,
    SectionUpdateRequest,
    SyncStatsResponse,
    UpdateResultResponse,
)
from profilesync.services.application.profile_sync_service import ProfileSyncService

log = logging.getLogger("profilesync.api.profile_sync")

router = APIRouter(prefix="/profile-sync", tags=["Profile Sync"])


async def get_profile_sync_service(request: Request) -> ProfileSyncService:
    """Get the engine from app state"""
    service = getattr(request.app.state, 'profile_sync_service', None)
    if service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Profile sync engine not initialized")
    return service


# =============================================================================
# Updates and Rollback
# =============================================================================

@router.put("/subjects/{subject_id}/sections/{section}", response_model=UpdateResultResponse)
async def update_section(
    subject_id: str,
    section: str,
    body: SectionUpdateRequest,
    service: ProfileSyncService = Depends(get_profile_sync_service),
):
    """
    Apply a section change immediately.

    Downstream propagation continues in the background; poll
    GET /operations/{operation_id} for its progress.
    """
    result = await service.perform_update(subject_id, section, body.value, body.actor_id)
    return UpdateResultResponse(**result.to_dict())


@router.post("/operations/{operation_id}/rollback", response_model=RollbackResponse)
async def rollback_operation(
    operation_id: str,
    service: ProfileSyncService = Depends(get_profile_sync_service),
):
    if not await service.rollback(operation_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No rollback snapshot for operation {operation_id} (unknown or expired)",
        )
    return RollbackResponse(operation_id=operation_id, rolled_back=True, message="Previous value restored")


# =============================================================================
# Queries
# =============================================================================

@router.get("/stats", response_model=SyncStatsResponse)
async def get_sync_stats(service: ProfileSyncService = Depends(get_profile_sync_service)):
    return SyncStatsResponse(**service.get_sync_stats())


@router.get("/operations/pending", response_model=List[AuditEntryResponse])
async def get_pending_operations(
    limit: int = Query(100, ge=1, le=1000),
    service: ProfileSyncService = Depends(get_profile_sync_service),
):
    entries = await service.get_pending_sync_operations(limit)
    return [AuditEntryResponse(**e.to_dict()) for e in entries]


@router.get("/operations/{operation_id}", response_model=OperationResponse)
async def get_operation(
    operation_id: str,
    service: ProfileSyncService = Depends(get_profile_sync_service),
):
    operation = await service.get_operation(operation_id)
    if operation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Operation not found")
    return OperationResponse(**operation)


@router.get("/subjects/{subject_id}/changes", response_model=List[AuditEntryResponse])
async def get_recent_changes(
    subject_id: str,
    limit: int = Query(10, ge=1, le=100),
    service: ProfileSyncService = Depends(get_profile_sync_service),
):
    entries = await service.get_recent_changes(subject_id, limit)
    return [AuditEntryResponse(**e.to_dict()) for e in entries]


@router.get("/subjects/{subject_id}/sections/{section}/changes", response_model=List[AuditEntryResponse])
async def get_section_changes(
    subject_id: str,
    section: str,
    limit: int = Query(5, ge=1, le=100),
    service: ProfileSyncService = Depends(get_profile_sync_service),
):
    entries = await service.get_changes_by_section(subject_id, section, limit)
    return [AuditEntryResponse(**e.to_dict()) for e in entries]
