# =============================================================================
# File: profilesync/profile_sync/notification_templates.py
# Description: Human-readable notification payloads for stakeholders
#              affected by a profile change
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Optional

from profilesync.profile_sync.enums import Section, SubjectStatus

DEFAULT_SUBJECT_NAME = "Your provider"
NOTIFICATION_TYPE = "subject_profile_change"

_STATUS_MESSAGES = {
    SubjectStatus.SUSPENDED.value: "temporarily unavailable",
    SubjectStatus.INACTIVE.value: "currently inactive",
    SubjectStatus.VERIFIED.value: "now verified and available",
    SubjectStatus.ACTIVE.value: "now available",
}


def display_name(personal_info: Any) -> Optional[str]:
    """Name shown to stakeholders, from the personal_info section."""
    if not isinstance(personal_info, dict):
        return None
    if personal_info.get("name"):
        return str(personal_info["name"])
    parts = [personal_info.get("first_name"), personal_info.get("last_name")]
    name = " ".join(str(p) for p in parts if p)
    return name or None


def available_modes(offering: Any) -> List[str]:
    """Names of service modes flagged available in a service offering."""
    if not isinstance(offering, dict):
        return []
    return [
        mode for mode, config in offering.items()
        if isinstance(config, dict) and config.get("available")
    ]


def build_notification_payload(
    section: Section,
    value: Any,
    subject_id: str,
    operation_id: str,
    subject_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the payload sent to each affected stakeholder.

    Returns:
        Dict with title, message, description, priority and section-specific data
    """
    name = subject_name or DEFAULT_SUBJECT_NAME

    if section is Section.AVAILABILITY:
        content = {
            "title": "Schedule Updated",
            "message": f"{name} has updated their working hours",
            "description": "Working hours have been modified",
            "priority": "medium",
            "data": {"availability": value},
        }
    elif section is Section.SERVICE_OFFERING:
        modes = available_modes(value)
        content = {
            "title": "Consultation Options Updated",
            "message": f"{name} has updated their available consultation methods",
            "description": f"Available consultation modes: {', '.join(modes)}",
            "priority": "medium",
            "data": {"available_modes": modes, "service_offering": value},
        }
    elif section is Section.SPECIALIZATIONS:
        items = value if isinstance(value, list) else []
        content = {
            "title": "Specializations Updated",
            "message": f"{name} has updated their specializations",
            "description": f"New specializations: {', '.join(str(i) for i in items)}",
            "priority": "low",
            "data": {"specializations": value},
        }
    elif section is Section.CREDENTIALS:
        content = {
            "title": "Credentials Updated",
            "message": f"{name} has updated their license information",
            "description": "License information has been updated",
            "priority": "high",
            "data": {"credentials": value},
        }
    elif section is Section.STATUS:
        unavailable = value in (SubjectStatus.SUSPENDED.value, SubjectStatus.INACTIVE.value)
        content = {
            "title": "Provider Status Updated",
            "message": f"{name} is {_STATUS_MESSAGES.get(value, 'status updated')}",
            "description": f"Status changed to: {value}",
            "priority": "high" if unavailable else "medium",
            "data": {"new_status": value},
        }
    elif section is Section.QUALIFICATIONS:
        content = {
            "title": "Qualifications Updated",
            "message": f"{name} has updated their qualifications",
            "description": "Qualifications have been updated",
            "priority": "low",
            "data": {"qualifications": value},
        }
    else:
        content = {
            "title": "Profile Updated",
            "message": f"{name} has updated their profile",
            "description": f"Profile section updated: {section.value}",
            "priority": "low",
            "data": {"section": section.value, "value": value},
        }

    return {
        "type": NOTIFICATION_TYPE,
        "subject_id": subject_id,
        "subject_name": name,
        "operation_id": operation_id,
        "change_type": section.value,
        **content,
    }
