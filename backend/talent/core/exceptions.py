"""
Custom exception classes for the application
"""
from typing import Optional, Dict, Any


class TalentException(Exception):
    """Base exception for DX Talent"""
    
    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(TalentException):
    """Authentication related errors"""
    
    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=401, details=details)


class ValidationError(TalentException):
    """Malformed or out-of-range input rejected at construction time"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=422, details=details)


class InvalidStateTransition(TalentException):
    """Operation not permitted in the resume's current status"""
    
    def __init__(
        self,
        message: str,
        current_status: Optional[str] = None,
        target_status: Optional[str] = None,
    ):
        details = {}
        if current_status is not None:
            details["current_status"] = current_status
        if target_status is not None:
            details["target_status"] = target_status
        super().__init__(message, status_code=409, details=details)


class NotFoundError(TalentException):
    """Resource not found"""
    
    def __init__(self, resource: str, identifier: str):
        super().__init__(
            f"{resource} not found: {identifier}",
            status_code=404,
            details={"resource": resource, "identifier": identifier},
        )


class AlreadyExistsError(TalentException):
    """Resource with the same identity already present"""
    
    def __init__(self, resource: str, identifier: str):
        super().__init__(
            f"{resource} already exists: {identifier}",
            status_code=409,
            details={"resource": resource, "identifier": identifier},
        )


class OwnershipViolationError(TalentException):
    """User is not the owner of the resource"""
    
    def __init__(self, message: str = "Only the owner can perform this operation", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=403, details=details)


class FileStorageError(TalentException):
    """File storage backend failures"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=502, details=details)


class ParsingError(TalentException):
    """Resume text extraction or parsing failures"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=422, details=details)
