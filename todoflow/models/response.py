"""
Response models for operation results
"""

from typing import Optional
from pydantic import BaseModel


class OperationResponse(BaseModel):
    """Result of a successful operation"""
    message: str
    success: bool = True
    data: Optional[dict] = None


class ErrorResponse(BaseModel):
    """Error response model"""
    message: str
    error_code: Optional[str] = None
    details: Optional[dict] = None
