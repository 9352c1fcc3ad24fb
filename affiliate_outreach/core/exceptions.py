"""
Custom exceptions for the Affiliate Outreach API.
Provides consistent error handling across discovery, dispatch and the HTTP layer.
"""
from fastapi import status


class AffiliateOutreachException(Exception):
    """Base exception for Affiliate Outreach"""
    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(AffiliateOutreachException):
    """Resource not found"""
    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class CampaignNotFoundError(NotFoundError):
    """Campaign id does not exist"""
    def __init__(self, campaign_id: str = None):
        super().__init__("Campaign", campaign_id)


class AuthUnavailableError(AffiliateOutreachException):
    """No valid access token is stored"""
    def __init__(self, message: str = "No valid authentication token found"):
        super().__init__(message)


class InvalidTokenPayloadError(AffiliateOutreachException):
    """Credential exchange returned no usable access token"""
    def __init__(self, message: str = "No access token received from provider"):
        super().__init__(message)


class ChannelUnavailableError(AffiliateOutreachException):
    """A single discovery source or delivery channel failed"""
    def __init__(self, channel: str = "Channel", message: str = None):
        self.channel = channel
        msg = f"{channel} unavailable"
        if message:
            msg = f"{msg}: {message}"
        super().__init__(msg)


class InvalidStateTransitionError(AffiliateOutreachException):
    """Campaign is not in a state that allows the requested transition"""
    def __init__(self, entity: str = "Campaign", current: str = None, target: str = None):
        message = f"{entity} cannot move to '{target}'"
        if current:
            message = f"{entity} in '{current}' status cannot move to '{target}'"
        super().__init__(message)


class PersistenceFailureError(AffiliateOutreachException):
    """A store write failed"""
    def __init__(self, operation: str = "write", message: str = None):
        msg = f"Persistence failure during {operation}"
        if message:
            msg = f"{msg}: {message}"
        super().__init__(msg)


class ExternalServiceError(AffiliateOutreachException):
    """External service call failed"""
    def __init__(self, service: str = "External service", message: str = None):
        msg = f"{service} call failed"
        if message:
            msg = f"{msg}: {message}"
        super().__init__(msg)


def status_code_for(exc: AffiliateOutreachException) -> int:
    """Map an application exception to the HTTP status returned to callers."""
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, InvalidStateTransitionError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, InvalidTokenPayloadError):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR
