# =============================================================================
# File: profilesync/profile_sync/enums.py
# Description: Profile sync domain enumerations
# =============================================================================

from enum import Enum


class Section(str, Enum):
    """Independently updatable parts of a subject's profile"""
    PERSONAL_INFO = "personal_info"
    CREDENTIALS = "credentials"                    # License / registration details
    SPECIALIZATIONS = "specializations"
    QUALIFICATIONS = "qualifications"
    EXPERIENCE = "experience"
    SERVICE_OFFERING = "service_offering"          # Consultation modes and their pricing
    AVAILABILITY = "availability"                  # Working hours per weekday
    BOOKING_SETTINGS = "booking_settings"          # Slot duration, breaks, advance window
    BIO = "bio"
    LANGUAGES = "languages"
    NOTIFICATION_PREFERENCES = "notification_preferences"
    STATUS = "status"


class ImpactLevel(str, Enum):
    """Blast radius of a section change"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class DownstreamSystem(str, Enum):
    """Consumers that receive propagated profile changes"""
    SEARCH = "search"
    BOOKING = "booking"
    CACHE = "cache"
    EXTERNAL = "external"


class OperationStatus(str, Enum):
    """Lifecycle of an update operation"""
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OperationStatus.COMPLETED, OperationStatus.FAILED)


class SystemSyncStatus(str, Enum):
    """Per-system status inside one propagation attempt"""
    PENDING = "pending"
    UPDATED = "updated"
    FAILED = "failed"


class NotificationStatus(str, Enum):
    """Overall notification outcome recorded on an audit entry"""
    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    SENT = "sent"
    PARTIAL = "partial"
    FAILED = "failed"


class DeliveryStatus(str, Enum):
    """Outcome of a single notification delivery"""
    SENT = "sent"
    FAILED = "failed"


class ChangeType(str, Enum):
    """Kind of audit entry"""
    UPDATE = "update"
    ROLLBACK = "rollback"


class SubjectStatus(str, Enum):
    """Values accepted by the status section"""
    PENDING = "pending"
    VERIFIED = "verified"
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"

    @property
    def is_unavailable(self) -> bool:
        return self in (SubjectStatus.INACTIVE, SubjectStatus.SUSPENDED)
