# profilesync/common/exceptions/exceptions.py
# =============================================================================
# Custom exceptions for the Profile Sync platform
# =============================================================================


class ProfileSyncException(Exception):
    """Base exception for the Profile Sync platform"""
    pass


class ValidationError(ProfileSyncException):
    """Raised when validation fails"""
    pass


class NotFoundError(ProfileSyncException):
    """Raised when a resource is not found"""
    pass


# Alias for compatibility
ResourceNotFoundError = NotFoundError


class DomainError(ProfileSyncException):
    """Raised for domain-specific errors"""
    pass


class InfrastructureError(ProfileSyncException):
    """Raised for infrastructure errors"""
    pass
