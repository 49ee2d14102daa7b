"""
Identity model
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel


class SessionMode(str, Enum):
    """Which backend a session is bound to"""
    GUEST = "guest"
    AUTHENTICATED = "authenticated"


class Identity(BaseModel):
    """Signed-in user"""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
