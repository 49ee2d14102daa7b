"""
Error handling utilities
"""

from typing import Optional
from todoflow.models.response import ErrorResponse
from todoflow.utils.logger import logger


class TodoFlowError(Exception):
    """Base exception for task core errors"""
    error_code = "error"


class ValidationError(TodoFlowError):
    """Rejected input, raised before anything is persisted"""
    error_code = "validation_error"


class NotFoundError(TodoFlowError):
    """Operation targets an id outside the caller's visible set"""
    error_code = "not_found"
    
    def __init__(self, task_id: str, message: Optional[str] = None):
        self.task_id = task_id
        super().__init__(message or f"Task {task_id} not found")


class StorageError(TodoFlowError):
    """Local persistence failure (quota, serialization, I/O)"""
    error_code = "storage_error"


class RemoteError(TodoFlowError):
    """Any failure reported by the remote service, including network and auth"""
    error_code = "remote_error"
    
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class SessionError(TodoFlowError):
    """Operation requires an active guest or authenticated session"""
    error_code = "session_error"


def handle_error(error: Exception) -> ErrorResponse:
    """
    Handle error and return user-friendly message
    
    Args:
        error: Exception to handle
        
    Returns:
        ErrorResponse with user-friendly message
    """
    logger.error(f"Error occurred: {error}", exc_info=error)
    return build_error_response(error)


def build_error_response(error: Exception) -> ErrorResponse:
    """Map an exception to its user-facing response without logging it"""
    if isinstance(error, RemoteError):
        details = {"status_code": error.status_code} if error.status_code else None
        return ErrorResponse(
            message=f"Remote service error: {error.message}",
            error_code=error.error_code,
            details=details,
        )
    
    if isinstance(error, NotFoundError):
        return ErrorResponse(
            message=str(error),
            error_code=error.error_code,
            details={"task_id": error.task_id},
        )
    
    if isinstance(error, ValidationError):
        return ErrorResponse(
            message=f"Validation error: {error}",
            error_code=error.error_code,
        )
    
    if isinstance(error, TodoFlowError):
        return ErrorResponse(
            message=str(error),
            error_code=error.error_code,
        )
    
    # Generic error message
    return ErrorResponse(
        message="Something went wrong. Please try again later.",
    )


def format_error_message(error: Exception) -> str:
    """
    Format error message for user
    
    Args:
        error: Exception to format
        
    Returns:
        User-friendly error message
    """
    return build_error_response(error).message
